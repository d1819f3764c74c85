"""sqlscope - browse and query SQL databases through one interface."""

__version__ = "0.1.0"
