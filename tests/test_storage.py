"""Tests for the file and PostgreSQL storage backends."""

import itertools
import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from server.file_storage import FileStorage, audio_filename
from server.postgres_storage import PostgresStorage


class TestFileStorage(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.config_file = os.path.join(self.tmp.name, 'config.json')
        self.storage = FileStorage(config_file=self.config_file, state_dir=self.tmp.name,
                                   audio_max_bytes=10)
        # Strictly increasing timestamps so LRU order is deterministic
        clock = itertools.count(1)
        patcher = patch('server.file_storage.time')
        patcher.start().time.side_effect = lambda: next(clock)
        self.addCleanup(patcher.stop)

    def test_load_config(self):
        with open(self.config_file, 'w') as f:
            json.dump({'gemini_api_key': 'abc'}, f)
        self.assertEqual(self.storage.load_config(), {'gemini_api_key': 'abc'})

    def test_load_config_missing(self):
        with self.assertRaises(FileNotFoundError):
            self.storage.load_config()

    def test_missing_state(self):
        self.assertIsNone(self.storage.load_settings())
        self.assertIsNone(self.storage.load_progress())

    def test_settings_round_trip(self):
        self.storage.save_settings({'language': 'en', 'sfx_enabled': False})
        self.assertEqual(self.storage.load_settings(), {'language': 'en', 'sfx_enabled': False})

    def test_progress_round_trip_and_clear(self):
        self.storage.save_progress({'difficulty': 'medium', 'attempted': ['gatto']})
        self.assertEqual(self.storage.load_progress()['attempted'], ['gatto'])
        self.storage.clear_progress()
        self.assertIsNone(self.storage.load_progress())
        self.storage.clear_progress()

    def test_corrupt_state_reads_as_missing(self):
        with open(os.path.join(self.tmp.name, 'parola_progress.json'), 'w') as f:
            f.write('{not json')
        self.assertIsNone(self.storage.load_progress())

    def test_state_dir_from_environment(self):
        with patch.dict(os.environ, {'PAROLA_STATE_DIR': self.tmp.name}):
            storage = FileStorage()
        self.assertEqual(storage.state_dir, self.tmp.name)

    def test_audio_round_trip(self):
        self.storage.save_audio('it:gatto', b'\x00\x01')
        self.assertEqual(self.storage.get_audio('it:gatto'), b'\x00\x01')
        self.assertIsNone(self.storage.get_audio('it:cane'))

    def test_audio_survives_new_instance(self):
        self.storage.save_audio('it:gatto', b'\x00\x01')
        reopened = FileStorage(config_file=self.config_file, state_dir=self.tmp.name)
        self.assertEqual(reopened.get_audio('it:gatto'), b'\x00\x01')

    def test_evicts_least_recently_used(self):
        self.storage.save_audio('it:a', b'1234')
        self.storage.save_audio('it:b', b'1234')
        self.storage.get_audio('it:a')
        self.storage.save_audio('it:c', b'1234')

        self.assertIsNone(self.storage.get_audio('it:b'))
        self.assertEqual(self.storage.get_audio('it:a'), b'1234')
        self.assertEqual(self.storage.get_audio('it:c'), b'1234')
        self.assertEqual(self.storage.audio_cache_size(), 8)
        self.assertFalse(os.path.exists(os.path.join(self.storage.audio_dir, audio_filename('it:b'))))

    def test_oversized_clip_not_cached(self):
        self.storage.save_audio('it:a', b'1234')
        self.storage.save_audio('it:huge', b'x' * 11)
        self.assertIsNone(self.storage.get_audio('it:huge'))
        self.assertEqual(self.storage.get_audio('it:a'), b'1234')

    def test_missing_audio_file_drops_entry(self):
        self.storage.save_audio('it:a', b'1234')
        os.remove(os.path.join(self.storage.audio_dir, audio_filename('it:a')))
        self.assertIsNone(self.storage.get_audio('it:a'))
        self.assertEqual(self.storage.audio_cache_size(), 0)


class TestPostgresStorage(unittest.TestCase):
    """PostgresStorage against a mocked psycopg2 connection."""

    def setUp(self):
        self.storage = PostgresStorage(db_url='postgresql://test/parola', audio_max_bytes=10)
        self.conn = MagicMock()
        self.conn.closed = False
        self.cursor = self.conn.cursor.return_value.__enter__.return_value
        self.storage._conn = self.conn
        self.storage._initialized = True

    def test_lazy_connect_initializes_schema(self):
        storage = PostgresStorage(db_url='postgresql://test/parola')
        with patch('server.postgres_storage.psycopg2.connect', return_value=self.conn) as connect:
            self.assertIs(storage.conn, self.conn)
            self.assertIs(storage.conn, self.conn)
        connect.assert_called_once_with('postgresql://test/parola')
        statements = ' '.join(call.args[0] for call in self.cursor.execute.call_args_list)
        self.assertIn('CREATE TABLE IF NOT EXISTS audio_cache', statements)
        self.assertIn('CREATE TABLE IF NOT EXISTS game_progress', statements)

    def test_load_settings(self):
        self.cursor.fetchall.return_value = [('language', '"en"'), ('sfx_enabled', 'false')]
        self.assertEqual(self.storage.load_settings(), {'language': 'en', 'sfx_enabled': False})

    def test_load_settings_empty(self):
        self.cursor.fetchall.return_value = []
        self.assertIsNone(self.storage.load_settings())

    def test_load_progress_error_is_none(self):
        self.cursor.execute.side_effect = Exception("connection lost")
        self.assertIsNone(self.storage.load_progress())

    def test_save_progress_rolls_back_on_error(self):
        self.cursor.execute.side_effect = Exception("disk full")
        with self.assertRaises(Exception):
            self.storage.save_progress({'streak': 1})
        self.conn.rollback.assert_called_once()

    def test_get_audio(self):
        self.cursor.fetchone.return_value = (memoryview(b'\x00\x01'),)
        self.assertEqual(self.storage.get_audio('it:gatto'), b'\x00\x01')
        self.conn.commit.assert_called_once()

    def test_get_audio_miss(self):
        self.cursor.fetchone.return_value = None
        self.assertIsNone(self.storage.get_audio('it:gatto'))

    def test_save_audio_evicts(self):
        self.cursor.rowcount = 1
        self.storage.save_audio('it:gatto', b'\x00\x01')
        insert, evict = self.cursor.execute.call_args_list
        self.assertIn('INSERT INTO audio_cache', insert.args[0])
        self.assertIn('DELETE FROM audio_cache', evict.args[0])
        self.assertEqual(evict.args[1], (10,))
        self.conn.commit.assert_called_once()

    def test_save_audio_oversized_skipped(self):
        self.storage.save_audio('it:huge', b'x' * 11)
        self.cursor.execute.assert_not_called()


if __name__ == '__main__':
    unittest.main()
