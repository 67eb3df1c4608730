"""Speech delivery: two-tier audio cache, remote quota breaker, local fallback.

Resolution for the primary language is memory cache -> persistent cache ->
remote provider; anything that fails along the way degrades to the local
speech engine. The secondary language always goes straight to the local
engine. Nothing raised here ever reaches the game state.
"""

import asyncio
import logging

import numpy as np

from .config import (
    PRIMARY_LANGUAGE, SECONDARY_LANGUAGE, AUDIO_DELAY_MS,
    TTS_SAMPLE_RATE, TTS_CHANNELS
)
from .interfaces import AudioPlayer, AudioStore, LocalSpeechEngine, SpeechProvider, SpeechQuotaExceeded
from .lexicon import LexiconEntry
from .utils import normalize_text

logger = logging.getLogger(__name__)

QUOTA_SIGNATURES = ('resource_exhausted', 'resourceexhausted', 'quota', 'rate limit', 'too many requests')


class AudioClip:
    """Decoded mono or multi-channel float32 audio."""

    def __init__(self, samples: np.ndarray, sample_rate: int):
        self.samples = samples
        self.sample_rate = sample_rate

    @property
    def duration_ms(self) -> float:
        if not self.sample_rate:
            return 0.0
        return len(self.samples) * 1000.0 / self.sample_rate


def decode_pcm16(data: bytes, sample_rate: int = TTS_SAMPLE_RATE, channels: int = TTS_CHANNELS) -> AudioClip:
    """Decode raw little-endian PCM16 into float32 samples in [-1, 1)."""
    if not data:
        raise ValueError("Empty audio payload")
    frame_bytes = 2 * channels
    if len(data) % frame_bytes:
        raise ValueError(f"Audio payload of {len(data)} bytes is not a whole number of {frame_bytes}-byte frames")
    pcm = np.frombuffer(data, dtype='<i2')
    samples = pcm.astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples.reshape(-1, channels)
    return AudioClip(samples, sample_rate)


def cache_key(language: str, text: str) -> str:
    """Cache key for an utterance, e.g. 'it:gatto'."""
    return f"{language}:{normalize_text(text)}"


def is_quota_error(error: Exception) -> bool:
    """Recognize a quota / rate-limit failure from any client library."""
    if isinstance(error, SpeechQuotaExceeded):
        return True
    for attr in ('code', 'status_code', 'status'):
        if getattr(error, attr, None) == 429:
            return True
    if type(error).__name__ in ('ResourceExhausted', 'TooManyRequests'):
        return True
    text = str(error).lower()
    return '429' in text or any(sig in text for sig in QUOTA_SIGNATURES)


class CircuitBreaker:
    """Session-scoped quota flag. Once tripped it stays open for the session."""

    def __init__(self):
        self.quota_exhausted = False

    @property
    def is_open(self) -> bool:
        return self.quota_exhausted

    def trip(self, reason: Exception | str = None) -> None:
        if not self.quota_exhausted:
            logger.warning(f"Remote speech quota exhausted, disabling remote synthesis for this session: {reason}")
        self.quota_exhausted = True


class SpeechCache:
    """In-memory tier in front of an optional persistent AudioStore.

    The persistent tier holds raw PCM bytes; the memory tier holds decoded
    clips. Writes go to the persistent tier before the memory tier.
    """

    def __init__(self, store: AudioStore | None = None, decoder=decode_pcm16):
        self.store = store
        self.decoder = decoder
        self._memory: dict[str, AudioClip] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._memory

    def __len__(self) -> int:
        return len(self._memory)

    def get_memory(self, key: str) -> AudioClip | None:
        return self._memory.get(key)

    def get(self, key: str) -> AudioClip | None:
        """Memory lookup, then persistent lookup with promotion. Failures count as misses."""
        clip = self._memory.get(key)
        if clip is not None:
            return clip
        if self.store is None:
            return None
        try:
            data = self.store.get_audio(key)
        except Exception as e:
            logger.warning(f"Audio cache read failed for {key}: {e}")
            return None
        if data is None:
            return None
        try:
            return self.promote(key, data)
        except ValueError as e:
            logger.warning(f"Discarding undecodable cached audio for {key}: {e}")
            return None

    def promote(self, key: str, data: bytes) -> AudioClip:
        """Decode persisted bytes into the memory tier."""
        clip = self.decoder(data)
        self._memory[key] = clip
        return clip

    def put(self, key: str, data: bytes) -> AudioClip:
        """Decode, write through to the persistent tier, then populate memory.
        Raises ValueError if the data cannot be decoded."""
        clip = self.decoder(data)
        if self.store is not None:
            try:
                self.store.save_audio(key, data)
            except Exception as e:
                logger.warning(f"Audio cache write failed for {key}: {e}")
        self._memory[key] = clip
        return clip


class SpeechDelivery:
    """Speaks words, remote-first for the primary language.

    All collaborators are injected so separate sessions never share a
    cache, a breaker or an engine unless the caller wants them to.
    """

    def __init__(self, local_engine: LocalSpeechEngine, player: AudioPlayer | None = None,
                 provider: SpeechProvider | None = None, cache: SpeechCache | None = None,
                 breaker: CircuitBreaker | None = None,
                 primary_language: str = PRIMARY_LANGUAGE,
                 secondary_language: str = SECONDARY_LANGUAGE,
                 announce_delay_ms: int = AUDIO_DELAY_MS):
        self.local_engine = local_engine
        self.player = player
        self.provider = provider
        self.cache = cache or SpeechCache()
        self.breaker = breaker or CircuitBreaker()
        self.primary_language = primary_language
        self.secondary_language = secondary_language
        self.announce_delay_ms = announce_delay_ms
        self.remote_calls = 0
        self._store_lock = asyncio.Lock()
        self._inflight: dict[str, asyncio.Task] = {}

    async def _resolve(self, text: str, language: str) -> AudioClip | None:
        """Find or fetch decoded audio. Returns None when the local engine must be used."""
        if language != self.primary_language or not text.strip():
            return None
        key = cache_key(language, text)

        clip = self.cache.get_memory(key)
        if clip is not None:
            return clip
        async with self._store_lock:
            clip = await asyncio.to_thread(self.cache.get, key)
        if clip is not None:
            return clip

        if self.provider is None or self.breaker.is_open:
            return None

        # Share one remote fetch between a preload and a speak for the same key
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, text, language))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _fetch(self, key: str, text: str, language: str) -> AudioClip | None:
        self.remote_calls += 1
        try:
            data = await asyncio.to_thread(self.provider.synthesize, text, language)
        except Exception as e:
            if is_quota_error(e):
                self.breaker.trip(e)
            else:
                logger.error(f"Remote speech failed for {key!r}: {e}")
            return None

        try:
            async with self._store_lock:
                return await asyncio.to_thread(self.cache.put, key, data)
        except ValueError as e:
            logger.warning(f"Could not decode remote audio for {key!r}: {e}")
            return None

    async def preload(self, text: str, language: str) -> None:
        """Warm the cache for an utterance without playing anything."""
        try:
            await self._resolve(text, language)
        except Exception as e:
            logger.warning(f"Preload failed for {text!r}: {e}")

    async def speak(self, text: str, language: str) -> None:
        """Play cached or remote audio, or fall back to the local engine."""
        try:
            clip = await self._resolve(text, language)
        except Exception as e:
            logger.warning(f"Speech resolution failed for {text!r}: {e}")
            clip = None

        if clip is not None and self.player is not None:
            try:
                self.player.play(clip.samples, clip.sample_rate)
                return
            except Exception as e:
                logger.warning(f"Playback failed for {text!r}, using local speech: {e}")
        self.speak_local(text, language)

    def speak_local(self, text: str, language: str) -> None:
        """Best-effort request to the local engine."""
        try:
            self.local_engine.speak(text, language)
        except Exception as e:
            logger.warning(f"Local speech failed for {text!r}: {e}")

    async def announce(self, entry: LexiconEntry) -> None:
        """Speak a word, wait, then speak its translation."""
        await self.speak(entry.source_text, self.primary_language)
        await asyncio.sleep(self.announce_delay_ms / 1000)
        await self.speak(entry.target_text, self.secondary_language)
