"""Local speech fallback using the operating system voices via pyttsx3."""

import logging
import threading

from core.interfaces import LocalSpeechEngine
from core.config import LOCAL_SPEECH_RATE, LOCAL_VOICE_LOCALES

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {'it': 'italian', 'en': 'english'}


def _voice_matches(voice, language: str, locale: str) -> bool:
    """Match a pyttsx3 voice against a language code like 'it' or locale like 'it-IT'."""
    candidates = []
    for lang in getattr(voice, 'languages', None) or []:
        if isinstance(lang, bytes):
            lang = lang.decode('utf-8', errors='ignore')
        candidates.append(str(lang).lower().lstrip('\x05'))
    candidates.append(str(getattr(voice, 'id', '')).lower())
    candidates.append(str(getattr(voice, 'name', '')).lower())

    locale = locale.lower()
    underscored = locale.replace('-', '_')
    name = LANGUAGE_NAMES.get(language, language)
    for text in candidates:
        if locale in text or underscored in text or text == language or name in text:
            return True
    return False


class Pyttsx3SpeechEngine(LocalSpeechEngine):
    """Speaks on a background thread. At most one utterance plays at a time:
    a new request stops the one in flight, and requests still waiting to
    start are dropped once a newer one arrives."""

    def __init__(self, rate: int = LOCAL_SPEECH_RATE, locales: dict = None):
        self.rate = rate
        self.locales = locales or LOCAL_VOICE_LOCALES
        self._current = None
        self._generation = 0
        self._state_lock = threading.Lock()
        self._utterance_lock = threading.Lock()

    def _select_voice(self, engine, language: str) -> None:
        locale = self.locales.get(language, language)
        try:
            for voice in engine.getProperty('voices') or []:
                if _voice_matches(voice, language, locale):
                    engine.setProperty('voice', voice.id)
                    return
        except Exception as e:
            logger.debug(f"Voice lookup failed for {language}: {e}")
        logger.debug(f"No {locale} voice installed, using the default voice")

    def _is_stale(self, ticket: int) -> bool:
        with self._state_lock:
            return ticket != self._generation

    def _run(self, text: str, language: str, ticket: int) -> None:
        with self._utterance_lock:
            if self._is_stale(ticket):
                return
            try:
                import pyttsx3
                engine = pyttsx3.init()
                self._select_voice(engine, language)
                engine.setProperty('rate', self.rate)
            except Exception as e:
                logger.warning(f"Local speech engine unavailable: {e}")
                return

            # Same lock speak() takes to bump the generation
            with self._state_lock:
                if ticket != self._generation:
                    return
                self._current = engine
            try:
                engine.say(text)
                if not self._is_stale(ticket):
                    engine.runAndWait()
            except Exception as e:
                logger.warning(f"Local speech failed for {text!r}: {e}")
            finally:
                with self._state_lock:
                    if self._current is engine:
                        self._current = None

    def speak(self, text: str, language: str) -> None:
        if not text or not text.strip():
            return
        with self._state_lock:
            self._generation += 1
            ticket = self._generation
        self.stop()
        threading.Thread(target=self._run, args=(text, language, ticket), daemon=True).start()

    def stop(self) -> None:
        with self._state_lock:
            engine = self._current
        if engine is None:
            return
        try:
            engine.stop()
        except Exception as e:
            logger.debug(f"Stopping local speech failed: {e}")
