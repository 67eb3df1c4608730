"""Gemini text-to-speech provider implementation."""

import base64
import logging
import time
import google.generativeai as genai

from core.interfaces import SpeechProvider, SpeechQuotaExceeded, SpeechUnavailable
from core.config import TTS_MODEL, TTS_VOICE, TTS_PROMPT
from core.speech import is_quota_error

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class GeminiSpeechProvider(SpeechProvider):
    """Gemini TTS provider. Returns raw 24 kHz mono PCM16."""

    def __init__(self, api_key: str, model_name: str = TTS_MODEL, voice_name: str = TTS_VOICE):
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)
        self.model_name = model_name
        self.voice_name = voice_name
        self.stats = {'calls': 0, 'errors': 0, 'total_ms': 0, 'total_bytes': 0}

    def _build_prompt(self, text: str) -> str:
        return TTS_PROMPT.format(text=text)

    def _generation_config(self) -> dict:
        return {
            'response_modalities': ['AUDIO'],
            'speech_config': {
                'voice_config': {
                    'prebuilt_voice_config': {'voice_name': self.voice_name}
                }
            }
        }

    def _extract_audio(self, response) -> bytes | None:
        """Pull the inline audio payload out of the first candidate."""
        try:
            part = response.candidates[0].content.parts[0]
        except (AttributeError, IndexError, TypeError):
            return None
        inline = getattr(part, 'inline_data', None)
        data = getattr(inline, 'data', None) if inline is not None else None
        if not data:
            return None
        if isinstance(data, str):
            # Some transports hand back base64 text instead of bytes
            return base64.b64decode(data)
        return bytes(data)

    def synthesize(self, text: str, language: str) -> bytes:
        # The prompt carries the language; the model picks the accent from it
        start_time = time.time()
        self.stats['calls'] += 1
        try:
            response = self.model.generate_content(
                self._build_prompt(text),
                generation_config=self._generation_config()
            )
        except Exception as e:
            self.stats['errors'] += 1
            if is_quota_error(e):
                logger.warning(f"Gemini TTS quota error for {text!r}: {e}")
                raise SpeechQuotaExceeded(str(e)) from e
            logger.error(f"Gemini TTS request failed for {text!r}: {e}")
            raise SpeechUnavailable(str(e)) from e

        audio = self._extract_audio(response)
        ms = int((time.time() - start_time) * 1000)
        self.stats['total_ms'] += ms
        if not audio:
            self.stats['errors'] += 1
            logger.error(f"Gemini TTS returned no audio for {text!r} ({ms}ms)")
            raise SpeechUnavailable("No audio in response")

        self.stats['total_bytes'] += len(audio)
        logger.info(f"Gemini TTS synthesized {text!r} ({language}): {len(audio)} bytes in {ms}ms")
        return audio

    def get_stats(self) -> dict:
        return dict(self.stats, model=self.model_name)
