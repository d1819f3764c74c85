"""Shared pytest fixtures for sqlscope tests."""

import sqlite3

import pytest

from sqlscope.config import Settings
from sqlscope.database.sqlite import SQLiteAdapter
from sqlscope.registry import ConnectionDescriptor, ConnectionRegistry
from sqlscope.service import ExplorerService


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from the environment, writing the preview DB under tmp_path."""
    return Settings(
        page_size=50,
        file_pool_size=2,
        preview_path=str(tmp_path / "sample.db"),
        allow_shutdown=True,
    )


@pytest.fixture
def items_db(tmp_path):
    """A SQLite file with a 250-row ``items`` table and a composite foreign key."""
    path = tmp_path / "shop.db"
    conn = sqlite3.connect(str(path))
    conn.executescript(
        """
        CREATE TABLE items (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            price REAL,
            data BLOB
        );

        CREATE TABLE warehouses (
            region TEXT NOT NULL,
            code INTEGER NOT NULL,
            label TEXT,
            PRIMARY KEY (region, code)
        );

        CREATE TABLE stock (
            item_id INTEGER NOT NULL REFERENCES items(id),
            region TEXT NOT NULL,
            code INTEGER NOT NULL,
            quantity INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY (region, code) REFERENCES warehouses(region, code)
        );

        CREATE TABLE notes (
            body TEXT
        );

        CREATE INDEX idx_items_name ON items(name);
        CREATE VIEW cheap_items AS SELECT * FROM items WHERE price < 10;
        """
    )
    conn.executemany(
        "INSERT INTO items (id, name, price, data) VALUES (?, ?, ?, ?)",
        [(i, f"item-{i:03d}", i * 0.5, bytes([i % 256])) for i in range(1, 251)],
    )
    conn.executemany(
        "INSERT INTO warehouses (region, code, label) VALUES (?, ?, ?)",
        [("eu", 1, "Dublin"), ("eu", 2, "Lyon"), ("us", 1, "Reno")],
    )
    conn.executemany(
        "INSERT INTO stock (item_id, region, code, quantity) VALUES (?, ?, ?, ?)",
        [(1, "eu", 1, 10), (2, "eu", 2, 0), (3, "us", 1, 7)],
    )
    conn.executemany("INSERT INTO notes (body) VALUES (?)", [("b",), ("a",), ("c",)])
    conn.commit()
    conn.close()
    return str(path)


@pytest.fixture
def sqlite_adapter(items_db, test_settings):
    """A connected SQLiteAdapter over ``items_db``."""
    adapter = SQLiteAdapter(items_db, settings=test_settings)
    adapter.connect()
    yield adapter
    adapter.close()


@pytest.fixture
def registry(items_db, test_settings):
    """An opened registry over ``items_db``."""
    descriptor = ConnectionDescriptor.from_url(items_db)
    reg = ConnectionRegistry.open(descriptor, test_settings)
    yield reg
    reg.close()


@pytest.fixture
def service(registry, test_settings):
    """An ExplorerService over the ``registry`` fixture."""
    return ExplorerService(registry, test_settings)
