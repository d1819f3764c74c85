"""Generated sample database behind the ``preview`` connection target."""

import logging
import os
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE artists (
    artist_id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    country TEXT
);

CREATE TABLE albums (
    album_id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    artist_id INTEGER NOT NULL REFERENCES artists(artist_id),
    released DATE
);

CREATE TABLE tracks (
    track_id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    album_id INTEGER REFERENCES albums(album_id),
    milliseconds INTEGER NOT NULL,
    unit_price REAL NOT NULL DEFAULT 0.99,
    explicit BOOLEAN NOT NULL DEFAULT 0,
    updated_at DATETIME
);

CREATE TABLE playlists (
    playlist_id INTEGER PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE playlist_track (
    playlist_id INTEGER NOT NULL REFERENCES playlists(playlist_id),
    track_id INTEGER NOT NULL REFERENCES tracks(track_id),
    position INTEGER NOT NULL,
    PRIMARY KEY (playlist_id, track_id)
);

CREATE INDEX idx_tracks_album ON tracks(album_id);

CREATE VIEW album_lengths AS
    SELECT a.album_id, a.title, count(t.track_id) AS track_count,
           sum(t.milliseconds) AS milliseconds
    FROM albums a LEFT JOIN tracks t ON t.album_id = a.album_id
    GROUP BY a.album_id, a.title;

CREATE TRIGGER tracks_touch AFTER UPDATE OF name, milliseconds ON tracks
BEGIN
    UPDATE tracks SET updated_at = CURRENT_TIMESTAMP WHERE track_id = NEW.track_id;
END;
"""

ARTISTS = [
    ("Low Orbit", "UK"),
    ("The Quiet Engines", "US"),
    ("Marisol Vega", "MX"),
    ("Northern Static", "CA"),
    ("Kite Theory", "AU"),
    ("Ada & the Lamplighters", "IE"),
]

ALBUMS = [
    ("Perigee", 1, "2016-03-04"),
    ("Apogee", 1, "2019-09-13"),
    ("Idle Hands", 2, "2012-05-22"),
    ("Cold Start", 2, "2015-11-06"),
    ("Mareas", 3, "2018-02-16"),
    ("Whiteout", 4, "2021-01-29"),
    ("Updraft", 5, "2014-07-11"),
    ("Tailwind", 5, "2017-10-20"),
    ("Wick", 6, "2020-04-03"),
]

TRACK_WORDS = [
    "Signal", "Drift", "Harbour", "Glass", "Ember", "Falling", "Lantern", "Static",
    "Meridian", "Echo", "Paper", "Tide", "Orbit", "Hollow", "Satellite", "Fever",
]

PLAYLISTS = ["Morning Commute", "Deep Focus", "Late Night", "Road Trip"]


def _tracks():
    track_id = 0
    for album_id in range(1, len(ALBUMS) + 1):
        for n in range(6 + album_id % 4):
            track_id += 1
            name = f"{TRACK_WORDS[(track_id * 7) % len(TRACK_WORDS)]} {TRACK_WORDS[(track_id * 3 + n) % len(TRACK_WORDS)]}"
            milliseconds = 150_000 + (track_id * 7919) % 180_000
            unit_price = 1.29 if track_id % 5 == 0 else 0.99
            explicit = 1 if track_id % 9 == 0 else 0
            yield (track_id, name, album_id, milliseconds, unit_price, explicit)


def write_sample_database(path: str) -> str:
    """Write the sample database to ``path``, replacing any existing file.

    Returns:
        The path that was written
    """
    target = Path(path)
    if target.parent != Path(""):
        target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists():
        os.remove(target)

    conn = sqlite3.connect(str(target))
    try:
        conn.executescript(SCHEMA_SQL)
        conn.executemany("INSERT INTO artists (name, country) VALUES (?, ?)", ARTISTS)
        conn.executemany("INSERT INTO albums (title, artist_id, released) VALUES (?, ?, ?)", ALBUMS)
        tracks = list(_tracks())
        conn.executemany(
            "INSERT INTO tracks (track_id, name, album_id, milliseconds, unit_price, explicit) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            tracks,
        )
        conn.executemany("INSERT INTO playlists (name) VALUES (?)", [(p,) for p in PLAYLISTS])

        entries = []
        for playlist_id in range(1, len(PLAYLISTS) + 1):
            chosen = [t[0] for t in tracks if (t[0] + playlist_id) % (playlist_id + 2) == 0]
            entries.extend((playlist_id, track_id, pos) for pos, track_id in enumerate(chosen, start=1))
        conn.executemany(
            "INSERT INTO playlist_track (playlist_id, track_id, position) VALUES (?, ?, ?)",
            entries,
        )
        conn.commit()
    finally:
        conn.close()

    logger.info("Wrote sample database to %s", target)
    return str(target)
