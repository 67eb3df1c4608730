"""Audio output: decoded clip playback and synthesized sound effects."""

import logging

import numpy as np

from core.interfaces import AudioPlayer

logger = logging.getLogger(__name__)

EFFECTS_SAMPLE_RATE = 44100
EFFECTS_VOLUME = 0.1


class SoundDevicePlayer(AudioPlayer):
    """Plays float32 samples on the default output device.

    sounddevice is imported on first use; importing it fails on machines
    without PortAudio, which must not break the rest of the server.
    """

    def __init__(self, device=None):
        self.device = device
        self._sd = None

    def _backend(self):
        if self._sd is None:
            import sounddevice
            self._sd = sounddevice
        return self._sd

    def is_available(self) -> bool:
        try:
            self._backend()
            return True
        except (ImportError, OSError) as e:
            logger.info(f"Audio playback unavailable: {e}")
            return False

    def play(self, samples, sample_rate: int) -> None:
        sd = self._backend()
        # Stop whatever clip is still playing; sd.play does not block
        sd.stop()
        sd.play(samples, samplerate=sample_rate, device=self.device)


def _envelope(count: int, kind: str) -> np.ndarray:
    if kind == 'exponential':
        return EFFECTS_VOLUME * np.geomspace(1.0, 0.1, count, dtype=np.float32)
    return EFFECTS_VOLUME * np.linspace(1.0, 0.0, count, dtype=np.float32)


def tone(freq: float, duration: float, wave: str = 'sine', sample_rate: int = EFFECTS_SAMPLE_RATE) -> np.ndarray:
    """A single decaying tone."""
    t = np.arange(int(sample_rate * duration), dtype=np.float32) / sample_rate
    phase = freq * t
    if wave == 'triangle':
        signal = 2.0 * np.abs(2.0 * (phase - np.floor(phase + 0.5))) - 1.0
    elif wave == 'sawtooth':
        signal = 2.0 * (phase - np.floor(phase + 0.5))
    else:
        signal = np.sin(2.0 * np.pi * phase)
    return (signal * _envelope(len(t), 'exponential')).astype(np.float32)


def sweep(start_freq: float, end_freq: float, duration: float, sample_rate: int = EFFECTS_SAMPLE_RATE) -> np.ndarray:
    """Sawtooth with an exponential pitch drop and a linear fade."""
    count = int(sample_rate * duration)
    freqs = np.geomspace(start_freq, end_freq, count)
    phase = np.cumsum(freqs) / sample_rate
    signal = 2.0 * (phase - np.floor(phase + 0.5))
    return (signal * _envelope(count, 'linear')).astype(np.float32)


def mix(parts: list[tuple[float, np.ndarray]], sample_rate: int = EFFECTS_SAMPLE_RATE) -> np.ndarray:
    """Overlay (start_seconds, samples) parts into one buffer."""
    length = max(int(start * sample_rate) + len(samples) for start, samples in parts)
    out = np.zeros(length, dtype=np.float32)
    for start, samples in parts:
        offset = int(start * sample_rate)
        out[offset:offset + len(samples)] += samples
    return out


def build_effects(sample_rate: int = EFFECTS_SAMPLE_RATE) -> dict[str, np.ndarray]:
    return {
        'click': tone(600, 0.1, 'sine', sample_rate),
        'win': mix([
            (0.0, tone(523.25, 0.2, 'triangle', sample_rate)),
            (0.1, tone(659.25, 0.2, 'triangle', sample_rate)),
            (0.2, tone(783.99, 0.4, 'triangle', sample_rate)),
        ], sample_rate),
        'lose': sweep(200, 50, 0.5, sample_rate),
    }


class SoundEffects:
    """Click, win and lose cues played through an AudioPlayer."""

    def __init__(self, player: AudioPlayer, sample_rate: int = EFFECTS_SAMPLE_RATE):
        self.player = player
        self.sample_rate = sample_rate
        self.effects = build_effects(sample_rate)

    def play(self, name: str) -> None:
        samples = self.effects.get(name)
        if samples is None:
            raise KeyError(f"Unknown sound effect: {name}")
        self.player.play(samples, self.sample_rate)
