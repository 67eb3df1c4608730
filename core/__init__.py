from .models import RoundState, RoundStatus, ProgressState, Settings
from .lexicon import Lexicon, LexiconEntry, default_lexicon
from .interfaces import (
    SpeechProvider, LocalSpeechEngine, AudioPlayer, Storage, AudioStore,
    SpeechQuotaExceeded, SpeechUnavailable
)
from .evaluator import Outcome, guess_letter, use_hint
from .selector import select_next
from .game import (
    GameState, GameSession, Transition, transition,
    StartRound, GuessLetter, UseHint, Reset, RoundStarted, RoundEnded
)
from .speech import SpeechDelivery, SpeechCache, CircuitBreaker, AudioClip
from .config import (
    PRIMARY_LANGUAGE, SECONDARY_LANGUAGE, TIERS,
    WORDS_PER_DIFFICULTY_LEVEL, MAX_ATTEMPTS, MAX_HINTS, AUDIO_DELAY_MS
)

__all__ = [
    'RoundState', 'RoundStatus', 'ProgressState', 'Settings',
    'Lexicon', 'LexiconEntry', 'default_lexicon',
    'SpeechProvider', 'LocalSpeechEngine', 'AudioPlayer', 'Storage', 'AudioStore',
    'SpeechQuotaExceeded', 'SpeechUnavailable',
    'Outcome', 'guess_letter', 'use_hint',
    'select_next',
    'GameState', 'GameSession', 'Transition', 'transition',
    'StartRound', 'GuessLetter', 'UseHint', 'Reset', 'RoundStarted', 'RoundEnded',
    'SpeechDelivery', 'SpeechCache', 'CircuitBreaker', 'AudioClip',
    'PRIMARY_LANGUAGE', 'SECONDARY_LANGUAGE', 'TIERS',
    'WORDS_PER_DIFFICULTY_LEVEL', 'MAX_ATTEMPTS', 'MAX_HINTS', 'AUDIO_DELAY_MS'
]
