"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod


class SpeechQuotaExceeded(Exception):
    """The remote speech service refused a request for quota or rate limits."""


class SpeechUnavailable(Exception):
    """The remote speech service failed for any other reason."""


class SpeechProvider(ABC):
    """Abstract base class for a hosted text-to-speech service."""

    @abstractmethod
    def synthesize(self, text: str, language: str) -> bytes:
        """Synthesize text. Returns raw PCM16 audio.
        Raises SpeechQuotaExceeded or SpeechUnavailable."""
        pass


class LocalSpeechEngine(ABC):
    """Abstract base class for the device's native speech engine."""

    @abstractmethod
    def speak(self, text: str, language: str) -> None:
        """Start speaking text, cancelling any utterance in flight. Returns immediately."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Cancel the utterance in flight, if any."""
        pass


class AudioPlayer(ABC):
    """Abstract base class for decoded audio playback."""

    @abstractmethod
    def play(self, samples, sample_rate: int) -> None:
        """Start playing float32 samples. Returns immediately."""
        pass


class Storage(ABC):
    """Abstract base class for config, settings and progress storage."""

    @abstractmethod
    def load_config(self) -> dict:
        """Load configuration. Returns config dict."""
        pass

    @abstractmethod
    def load_settings(self) -> dict | None:
        """Load player settings. Returns settings dict or None if not found."""
        pass

    @abstractmethod
    def save_settings(self, settings: dict) -> None:
        """Save player settings."""
        pass

    @abstractmethod
    def load_progress(self) -> dict | None:
        """Load saved progress. Returns progress dict or None if not found."""
        pass

    @abstractmethod
    def save_progress(self, progress: dict) -> None:
        """Save progress."""
        pass

    @abstractmethod
    def clear_progress(self) -> None:
        """Delete saved progress."""
        pass


class AudioStore(ABC):
    """Abstract base class for the persistent audio cache tier."""

    @abstractmethod
    def get_audio(self, key: str) -> bytes | None:
        """Get raw audio for a cache key. Returns None on a miss."""
        pass

    @abstractmethod
    def save_audio(self, key: str, data: bytes) -> None:
        """Save raw audio under a cache key, evicting old entries past the byte budget."""
        pass
