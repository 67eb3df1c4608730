"""Tests for the Gemini speech provider."""

import base64
import unittest
from unittest.mock import MagicMock, patch
import sys

# Mock google.generativeai before importing
sys.modules['google'] = MagicMock()
sys.modules['google.generativeai'] = MagicMock()

from core.interfaces import SpeechQuotaExceeded, SpeechUnavailable
from core.config import TTS_MODEL, TTS_VOICE
from server.gemini_provider import GeminiSpeechProvider


def audio_response(data):
    part = MagicMock()
    part.inline_data.data = data
    response = MagicMock()
    response.candidates = [MagicMock()]
    response.candidates[0].content.parts = [part]
    return response


class TestGeminiSpeechProvider(unittest.TestCase):

    def setUp(self):
        self.provider = GeminiSpeechProvider.__new__(GeminiSpeechProvider)
        self.provider.model = MagicMock()
        self.provider.model_name = TTS_MODEL
        self.provider.voice_name = TTS_VOICE
        self.provider.stats = {'calls': 0, 'errors': 0, 'total_ms': 0, 'total_bytes': 0}

    def test_init_configures_client(self):
        with patch('server.gemini_provider.genai') as genai:
            provider = GeminiSpeechProvider('test-key')
        genai.configure.assert_called_once_with(api_key='test-key')
        genai.GenerativeModel.assert_called_once_with(TTS_MODEL)
        self.assertEqual(provider.voice_name, 'Kore')

    def test_synthesize_returns_bytes(self):
        self.provider.model.generate_content.return_value = audio_response(b'\x00\x01\x02\x03')
        self.assertEqual(self.provider.synthesize('gatto', 'it'), b'\x00\x01\x02\x03')
        self.assertEqual(self.provider.get_stats()['total_bytes'], 4)

    def test_prompt_and_voice(self):
        self.provider.model.generate_content.return_value = audio_response(b'\x00\x00')
        self.provider.synthesize('gatto', 'it')
        args, kwargs = self.provider.model.generate_content.call_args
        self.assertIn('gatto', args[0])
        config = kwargs['generation_config']
        self.assertEqual(config['response_modalities'], ['AUDIO'])
        self.assertEqual(
            config['speech_config']['voice_config']['prebuilt_voice_config']['voice_name'], 'Kore'
        )

    def test_base64_payload_is_decoded(self):
        encoded = base64.b64encode(b'\x10\x00').decode('ascii')
        self.provider.model.generate_content.return_value = audio_response(encoded)
        self.assertEqual(self.provider.synthesize('gatto', 'it'), b'\x10\x00')

    def test_quota_error(self):
        self.provider.model.generate_content.side_effect = Exception(
            "429 Resource has been exhausted (e.g. check quota)."
        )
        with self.assertRaises(SpeechQuotaExceeded):
            self.provider.synthesize('gatto', 'it')
        self.assertEqual(self.provider.get_stats()['errors'], 1)

    def test_other_error(self):
        self.provider.model.generate_content.side_effect = ConnectionError("connection reset")
        with self.assertRaises(SpeechUnavailable):
            self.provider.synthesize('gatto', 'it')

    def test_no_audio_in_response(self):
        self.provider.model.generate_content.return_value = audio_response(b'')
        with self.assertRaises(SpeechUnavailable):
            self.provider.synthesize('gatto', 'it')

    def test_no_candidates(self):
        response = MagicMock()
        response.candidates = []
        self.provider.model.generate_content.return_value = response
        with self.assertRaises(SpeechUnavailable):
            self.provider.synthesize('gatto', 'it')


if __name__ == '__main__':
    unittest.main()
