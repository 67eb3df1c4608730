"""Tests for speech delivery: caching, the quota breaker and local fallback."""

import asyncio
import random
import time
import unittest
from unittest.mock import MagicMock

import numpy as np

from core.game import GameSession
from core.interfaces import (
    AudioPlayer, AudioStore, LocalSpeechEngine, SpeechProvider,
    SpeechQuotaExceeded, SpeechUnavailable
)
from core.lexicon import Lexicon, LexiconEntry
from core.speech import (
    SpeechDelivery, SpeechCache, CircuitBreaker,
    decode_pcm16, cache_key, is_quota_error
)

PCM = b'\x00\x00\xff\x7f\x00\x80\x00\x00'


class FakeProvider(SpeechProvider):
    """Records calls; returns canned PCM or raises a queued error."""

    def __init__(self, data: bytes = PCM, error: Exception = None, delay: float = 0.0):
        self.data = data
        self.error = error
        self.delay = delay
        self.calls = []

    def synthesize(self, text: str, language: str) -> bytes:
        self.calls.append((text, language))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.data


class FakeEngine(LocalSpeechEngine):

    def __init__(self):
        self.spoken = []
        self.stops = 0

    def speak(self, text: str, language: str) -> None:
        self.spoken.append((text, language, time.monotonic()))

    def stop(self) -> None:
        self.stops += 1

    def texts(self) -> list[tuple[str, str]]:
        return [(text, language) for text, language, _ in self.spoken]


class FakePlayer(AudioPlayer):

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.played = []

    def play(self, samples, sample_rate: int) -> None:
        if self.fail:
            raise OSError("no output device")
        self.played.append((samples, sample_rate))


class DictStore(AudioStore):

    def __init__(self, data: dict = None):
        self.data = dict(data or {})
        self.reads = 0

    def get_audio(self, key: str) -> bytes | None:
        self.reads += 1
        return self.data.get(key)

    def save_audio(self, key: str, data: bytes) -> None:
        self.data[key] = data


class TestDecodePcm16(unittest.TestCase):

    def test_decode(self):
        clip = decode_pcm16(PCM)
        self.assertEqual(clip.sample_rate, 24000)
        self.assertEqual(clip.samples.dtype, np.float32)
        np.testing.assert_allclose(clip.samples, [0.0, 32767 / 32768, -1.0, 0.0])

    def test_duration(self):
        clip = decode_pcm16(b'\x00\x00' * 24000)
        self.assertAlmostEqual(clip.duration_ms, 1000.0)

    def test_stereo(self):
        clip = decode_pcm16(PCM, channels=2)
        self.assertEqual(clip.samples.shape, (2, 2))

    def test_empty_payload(self):
        with self.assertRaises(ValueError):
            decode_pcm16(b'')

    def test_partial_frame(self):
        with self.assertRaises(ValueError):
            decode_pcm16(b'\x00\x00\x00')


class TestHelpers(unittest.TestCase):

    def test_cache_key_normalizes(self):
        self.assertEqual(cache_key('it', '  Tazza  di Tè '), 'it:tazza di tè')

    def test_quota_error_detection(self):
        self.assertTrue(is_quota_error(SpeechQuotaExceeded("quota")))
        self.assertTrue(is_quota_error(Exception("429 Resource has been exhausted")))
        self.assertTrue(is_quota_error(Exception("RESOURCE_EXHAUSTED")))
        error = Exception("busy")
        error.code = 429
        self.assertTrue(is_quota_error(error))
        self.assertFalse(is_quota_error(SpeechUnavailable("connection reset")))
        self.assertFalse(is_quota_error(ValueError("bad audio")))

    def test_circuit_breaker(self):
        breaker = CircuitBreaker()
        self.assertFalse(breaker.is_open)
        breaker.trip("429")
        breaker.trip("429 again")
        self.assertTrue(breaker.is_open)


class TestSpeechCache(unittest.TestCase):

    def test_put_writes_both_tiers(self):
        store = DictStore()
        cache = SpeechCache(store)
        cache.put('it:gatto', PCM)
        self.assertIn('it:gatto', cache)
        self.assertEqual(store.data['it:gatto'], PCM)

    def test_get_promotes_from_store(self):
        store = DictStore({'it:gatto': PCM})
        cache = SpeechCache(store)
        self.assertNotIn('it:gatto', cache)
        self.assertIsNotNone(cache.get('it:gatto'))
        self.assertIn('it:gatto', cache)
        cache.get('it:gatto')
        self.assertEqual(store.reads, 1)

    def test_store_read_failure_is_miss(self):
        store = MagicMock()
        store.get_audio.side_effect = IOError("locked")
        self.assertIsNone(SpeechCache(store).get('it:gatto'))

    def test_store_write_failure_keeps_memory(self):
        store = MagicMock()
        store.save_audio.side_effect = IOError("read-only")
        cache = SpeechCache(store)
        cache.put('it:gatto', PCM)
        self.assertIn('it:gatto', cache)

    def test_corrupt_stored_audio_is_miss(self):
        cache = SpeechCache(DictStore({'it:gatto': b'\x01'}))
        self.assertIsNone(cache.get('it:gatto'))
        self.assertNotIn('it:gatto', cache)

    def test_put_rejects_undecodable(self):
        store = DictStore()
        with self.assertRaises(ValueError):
            SpeechCache(store).put('it:gatto', b'\x01')
        self.assertEqual(store.data, {})


class TestSpeechDelivery(unittest.IsolatedAsyncioTestCase):

    def make(self, provider=None, player=None, store=None, **kwargs) -> SpeechDelivery:
        self.engine = FakeEngine()
        return SpeechDelivery(
            local_engine=self.engine,
            player=player,
            provider=provider,
            cache=SpeechCache(store),
            announce_delay_ms=kwargs.pop('announce_delay_ms', 0),
            **kwargs
        )

    async def test_preload_then_speak_uses_cache(self):
        provider = FakeProvider()
        player = FakePlayer()
        delivery = self.make(provider, player)
        await delivery.preload('gatto', 'it')
        await delivery.speak('gatto', 'it')
        self.assertEqual(provider.calls, [('gatto', 'it')])
        self.assertEqual(len(player.played), 1)
        self.assertEqual(player.played[0][1], 24000)
        self.assertEqual(self.engine.spoken, [])

    async def test_cache_key_ignores_case(self):
        provider = FakeProvider()
        delivery = self.make(provider, FakePlayer())
        await delivery.preload('Gatto', 'it')
        await delivery.speak('gatto ', 'it')
        self.assertEqual(len(provider.calls), 1)

    async def test_persistent_tier_avoids_remote_call(self):
        provider = FakeProvider()
        player = FakePlayer()
        delivery = self.make(provider, player, DictStore({'it:gatto': PCM}))
        await delivery.speak('gatto', 'it')
        self.assertEqual(provider.calls, [])
        self.assertEqual(len(player.played), 1)

    async def test_remote_audio_is_persisted(self):
        store = DictStore()
        delivery = self.make(FakeProvider(), FakePlayer(), store)
        await delivery.preload('gatto', 'it')
        self.assertEqual(store.data, {'it:gatto': PCM})

    async def test_quota_error_trips_breaker(self):
        provider = FakeProvider(error=SpeechQuotaExceeded("429 quota"))
        player = FakePlayer()
        delivery = self.make(provider, player)

        await delivery.speak('gatto', 'it')
        self.assertTrue(delivery.breaker.is_open)
        await delivery.speak('cane', 'it')
        await delivery.preload('topo', 'it')

        self.assertEqual(len(provider.calls), 1)
        self.assertEqual(self.engine.texts(), [('gatto', 'it'), ('cane', 'it')])
        self.assertEqual(player.played, [])

    async def test_open_breaker_still_reads_cache(self):
        provider = FakeProvider()
        player = FakePlayer()
        delivery = self.make(provider, player, DictStore({'it:gatto': PCM}))
        delivery.breaker.trip("test")
        await delivery.speak('gatto', 'it')
        self.assertEqual(len(player.played), 1)
        self.assertEqual(provider.calls, [])

    async def test_other_errors_do_not_trip_breaker(self):
        provider = FakeProvider(error=SpeechUnavailable("connection reset"))
        delivery = self.make(provider, FakePlayer())
        await delivery.speak('gatto', 'it')
        await delivery.speak('gatto', 'it')
        self.assertFalse(delivery.breaker.is_open)
        self.assertEqual(len(provider.calls), 2)
        self.assertEqual(self.engine.texts(), [('gatto', 'it'), ('gatto', 'it')])

    async def test_undecodable_response_falls_back(self):
        store = DictStore()
        delivery = self.make(FakeProvider(data=b'\x01\x02\x03'), FakePlayer(), store)
        await delivery.speak('gatto', 'it')
        self.assertEqual(self.engine.texts(), [('gatto', 'it')])
        self.assertEqual(store.data, {})

    async def test_playback_failure_falls_back(self):
        delivery = self.make(FakeProvider(), FakePlayer(fail=True))
        await delivery.speak('gatto', 'it')
        self.assertEqual(self.engine.texts(), [('gatto', 'it')])

    async def test_no_provider_uses_local_engine(self):
        delivery = self.make(None, FakePlayer())
        await delivery.speak('gatto', 'it')
        self.assertEqual(self.engine.texts(), [('gatto', 'it')])

    async def test_secondary_language_is_always_local(self):
        provider = FakeProvider()
        delivery = self.make(provider, FakePlayer())
        await delivery.speak('cat', 'en')
        await delivery.preload('cat', 'en')
        self.assertEqual(provider.calls, [])
        self.assertEqual(self.engine.texts(), [('cat', 'en')])

    async def test_local_engine_failure_is_swallowed(self):
        delivery = self.make()
        self.engine.speak = MagicMock(side_effect=RuntimeError("no voices"))
        await delivery.speak('gatto', 'it')

    async def test_concurrent_requests_share_one_fetch(self):
        provider = FakeProvider(delay=0.2)
        player = FakePlayer()
        delivery = self.make(provider, player)
        await asyncio.gather(delivery.preload('gatto', 'it'), delivery.speak('gatto', 'it'))
        self.assertEqual(len(provider.calls), 1)
        self.assertEqual(len(player.played), 1)

    async def test_announce_order_and_delay(self):
        delivery = self.make(announce_delay_ms=50)
        await delivery.announce(LexiconEntry('gatto', 'cat', 'animals', 'easy'))
        self.assertEqual(self.engine.texts(), [('gatto', 'it'), ('cat', 'en')])
        first, second = self.engine.spoken[0][2], self.engine.spoken[1][2]
        self.assertGreaterEqual(second - first, 0.04)


class TestSessionSpeech(unittest.IsolatedAsyncioTestCase):
    """Speech side effects driven by the game session."""

    async def asyncSetUp(self):
        self.provider = FakeProvider()
        self.player = FakePlayer()
        self.engine = FakeEngine()
        self.speech = SpeechDelivery(self.engine, self.player, self.provider, announce_delay_ms=0)
        self.session = GameSession(
            Lexicon([LexiconEntry('gatto', 'cat', 'animals', 'easy')]),
            speech=self.speech,
            rng=random.Random(0)
        )

    async def drain(self):
        pending = [task for task in self.session._tasks if not task.done()]
        while pending:
            await asyncio.gather(*pending)
            pending = [task for task in self.session._tasks if not task.done()]

    async def test_round_start_preloads(self):
        self.session.start_round()
        await self.drain()
        self.assertEqual(self.provider.calls, [('gatto', 'it')])
        self.assertEqual(self.player.played, [])

    async def test_win_announces_word_then_translation(self):
        self.session.start_round()
        await self.drain()
        for letter in 'gato':
            self.session.guess(letter)
        await self.drain()
        self.assertEqual(len(self.provider.calls), 1)
        self.assertEqual(len(self.player.played), 1)
        self.assertEqual(self.engine.texts(), [
            ('gi', 'it'), ('a', 'it'), ('ti', 'it'), ('o', 'it'), ('cat', 'en')
        ])

    async def test_speech_failure_leaves_game_state(self):
        self.provider.error = RuntimeError("boom")
        self.engine.speak = MagicMock(side_effect=RuntimeError("no voices"))
        self.session.start_round()
        for letter in 'gato':
            self.session.guess(letter)
        await self.drain()
        self.assertEqual(self.session.state.round.status.value, 'won')
        self.assertEqual(self.session.state.progress.total_successes, 1)

    async def test_audio_disabled(self):
        self.session.update_settings(audio_enabled=False)
        self.session.start_round()
        for letter in 'gato':
            self.session.guess(letter)
        await self.drain()
        self.assertEqual(self.provider.calls, [])
        self.assertEqual(self.engine.spoken, [])


if __name__ == '__main__':
    unittest.main()
