"""File-based storage implementation."""

import hashlib
import json
import logging
import os
import time

from core.interfaces import Storage, AudioStore
from core.config import AUDIO_CACHE_MAX_BYTES

logger = logging.getLogger(__name__)


def audio_filename(key: str) -> str:
    """Stable file name for a cache key."""
    return hashlib.sha256(key.encode('utf-8')).hexdigest() + '.pcm'


class FileStorage(Storage, AudioStore):
    """File-based storage implementation.

    Settings and progress are JSON files; the audio cache is a directory
    of raw PCM files plus an index used for LRU eviction.
    """

    def __init__(self, config_file: str = None, state_dir: str = None,
                 audio_max_bytes: int = AUDIO_CACHE_MAX_BYTES):
        self.config_file = config_file or os.path.expanduser('~/.config/parola/config.json')
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.environ.get('PAROLA_STATE_DIR') or project_root
        self.audio_dir = os.path.join(self.state_dir, 'audio_cache')
        self.audio_max_bytes = audio_max_bytes

    def _path(self, name: str) -> str:
        return os.path.join(self.state_dir, name)

    def _load_json(self, path: str):
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except Exception as e:
            logger.error(f"Error reading {path}: {e}")
            return None

    def _save_json(self, path: str, data) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp_path = path + '.tmp'
        with open(tmp_path, 'w') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)

    def load_config(self) -> dict:
        if not os.path.exists(self.config_file):
            raise FileNotFoundError(
                f"Config file not found at {self.config_file}\n"
                f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
            )
        with open(self.config_file, 'r') as f:
            return json.load(f)

    def load_settings(self) -> dict | None:
        return self._load_json(self._path('parola_settings.json'))

    def save_settings(self, settings: dict) -> None:
        self._save_json(self._path('parola_settings.json'), settings)

    def load_progress(self) -> dict | None:
        return self._load_json(self._path('parola_progress.json'))

    def save_progress(self, progress: dict) -> None:
        self._save_json(self._path('parola_progress.json'), progress)

    def clear_progress(self) -> None:
        path = self._path('parola_progress.json')
        if os.path.exists(path):
            os.remove(path)

    # Audio cache

    def _index_path(self) -> str:
        return os.path.join(self.audio_dir, 'index.json')

    def _load_index(self) -> dict:
        index = self._load_json(self._index_path())
        return index if isinstance(index, dict) else {}

    def _save_index(self, index: dict) -> None:
        self._save_json(self._index_path(), index)

    def get_audio(self, key: str) -> bytes | None:
        index = self._load_index()
        meta = index.get(key)
        if not meta:
            return None
        path = os.path.join(self.audio_dir, meta['file'])
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except FileNotFoundError:
            logger.warning(f"Audio cache file missing for {key}, dropping index entry")
            del index[key]
            self._save_index(index)
            return None
        meta['last_used'] = time.time()
        self._save_index(index)
        return data

    def save_audio(self, key: str, data: bytes) -> None:
        if len(data) > self.audio_max_bytes:
            logger.warning(f"Not caching {key}: {len(data)} bytes exceeds the {self.audio_max_bytes} byte budget")
            return
        os.makedirs(self.audio_dir, exist_ok=True)
        filename = audio_filename(key)
        with open(os.path.join(self.audio_dir, filename), 'wb') as f:
            f.write(data)

        index = self._load_index()
        index[key] = {'file': filename, 'size': len(data), 'last_used': time.time()}
        self._evict(index, keep=key)
        self._save_index(index)

    def _evict(self, index: dict, keep: str = None) -> None:
        """Drop least recently used entries until the cache fits its budget."""
        total = sum(meta['size'] for meta in index.values())
        for key in sorted(index, key=lambda k: index[k]['last_used']):
            if total <= self.audio_max_bytes:
                break
            if key == keep:
                continue
            meta = index.pop(key)
            total -= meta['size']
            try:
                os.remove(os.path.join(self.audio_dir, meta['file']))
            except FileNotFoundError:
                pass
            logger.info(f"Evicted {key} from audio cache ({meta['size']} bytes)")

    def audio_cache_size(self) -> int:
        """Total bytes held by the audio cache."""
        return sum(meta['size'] for meta in self._load_index().values())
