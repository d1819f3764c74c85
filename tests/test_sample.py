"""Tests for the generated preview database."""

import sqlite3

from sqlscope.database.sqlite import SQLiteAdapter
from sqlscope.sample import ALBUMS, ARTISTS, PLAYLISTS, write_sample_database


class TestSampleDatabase:
    """Test the sample database contents."""

    def test_writes_schema_and_rows(self, tmp_path):
        path = write_sample_database(str(tmp_path / "sample.db"))

        conn = sqlite3.connect(path)
        try:
            counts = {
                table: conn.execute(f"SELECT count(*) FROM {table}").fetchone()[0]
                for table in ("artists", "albums", "playlists")
            }
            tracks = conn.execute("SELECT count(*) FROM tracks").fetchone()[0]
            kinds = dict(conn.execute(
                "SELECT name, type FROM sqlite_master WHERE name IN ('album_lengths', 'tracks_touch', 'idx_tracks_album')"
            ).fetchall())
        finally:
            conn.close()

        assert counts == {"artists": len(ARTISTS), "albums": len(ALBUMS), "playlists": len(PLAYLISTS)}
        assert tracks == sum(6 + album_id % 4 for album_id in range(1, len(ALBUMS) + 1))
        assert kinds == {"album_lengths": "view", "tracks_touch": "trigger", "idx_tracks_album": "index"}

    def test_replaces_existing_file(self, tmp_path):
        path = tmp_path / "sample.db"
        path.write_text("stale")

        write_sample_database(str(path))

        conn = sqlite3.connect(str(path))
        try:
            assert conn.execute("SELECT count(*) FROM artists").fetchone()[0] == len(ARTISTS)
        finally:
            conn.close()

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "sample.db"
        assert write_sample_database(str(path)) == str(path)
        assert path.exists()

    def test_deterministic(self, tmp_path):
        first = write_sample_database(str(tmp_path / "a.db"))
        second = write_sample_database(str(tmp_path / "b.db"))
        query = "SELECT * FROM playlist_track ORDER BY playlist_id, track_id"

        rows = []
        for path in (first, second):
            conn = sqlite3.connect(path)
            try:
                rows.append(conn.execute(query).fetchall())
            finally:
                conn.close()
        assert rows[0] == rows[1]
        assert rows[0]

    def test_relationships(self, tmp_path, test_settings):
        path = write_sample_database(str(tmp_path / "sample.db"))

        with SQLiteAdapter(path, read_only=True, settings=test_settings) as adapter:
            pairs = {(r.from_table, r.to_table) for r in adapter.relationships()}
            meta = adapter.table_meta("playlist_track")

        assert pairs == {
            ("albums", "artists"),
            ("tracks", "albums"),
            ("playlist_track", "playlists"),
            ("playlist_track", "tracks"),
        }
        assert meta.primary_key_columns == ["playlist_id", "track_id"]
