"""Domain models for parola application."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from .config import (
    TIERS, MAX_ATTEMPTS, WORDS_PER_DIFFICULTY_LEVEL,
    STARS_PERFECT, STARS_GOOD, STARS_MIN, GOOD_MAX_ERRORS,
    UI_LANGUAGES, DEFAULT_UI_LANGUAGE
)
from .lexicon import LexiconEntry
from .utils import fold_letter, word_letters

logger = logging.getLogger(__name__)


class RoundStatus(str, Enum):
    IDLE = 'idle'
    ACTIVE = 'active'
    WON = 'won'
    LOST = 'lost'


def stars_for_errors(errors: int) -> int:
    """Grade a win by its number of wrong guesses."""
    if errors <= 0:
        return STARS_PERFECT
    if errors <= GOOD_MAX_ERRORS:
        return STARS_GOOD
    return STARS_MIN


@dataclass(frozen=True)
class RoundState:
    """One play-through of a single word. Replaced wholesale, never mutated."""
    entry: LexiconEntry | None = None
    revealed: frozenset = frozenset()
    remaining_attempts: int = MAX_ATTEMPTS
    hints_used: int = 0
    status: RoundStatus = RoundStatus.IDLE
    feedback: str = ''
    max_attempts: int = MAX_ATTEMPTS

    @classmethod
    def start(cls, entry: LexiconEntry, max_attempts: int = MAX_ATTEMPTS) -> 'RoundState':
        return cls(entry=entry, remaining_attempts=max_attempts,
                   status=RoundStatus.ACTIVE, max_attempts=max_attempts)

    @property
    def is_active(self) -> bool:
        return self.status == RoundStatus.ACTIVE and self.entry is not None

    @property
    def is_over(self) -> bool:
        return self.status in (RoundStatus.WON, RoundStatus.LOST)

    @property
    def errors(self) -> int:
        return self.max_attempts - self.remaining_attempts

    def is_complete(self) -> bool:
        """True when every letter of the word has been revealed."""
        if self.entry is None:
            return False
        return word_letters(self.entry.source_text) <= self.revealed

    def masked_word(self, mask: str = '_') -> str:
        """The word with unrevealed letters masked; separators always shown."""
        if self.entry is None:
            return ''
        chars = []
        for char in self.entry.source_text:
            if not char.isalpha() or fold_letter(char) in self.revealed:
                chars.append(char)
            else:
                chars.append(mask)
        return ''.join(chars)

    def with_changes(self, **changes) -> 'RoundState':
        return replace(self, **changes)

    def to_dict(self) -> dict:
        show_word = self.is_over
        return {
            'status': self.status.value,
            'masked_word': self.masked_word(),
            'word': self.entry.source_text if (self.entry and show_word) else None,
            'translation': self.entry.target_text if (self.entry and show_word) else None,
            'category': self.entry.category if self.entry else None,
            'difficulty': self.entry.difficulty if self.entry else None,
            'revealed': sorted(self.revealed),
            'remaining_attempts': self.remaining_attempts,
            'max_attempts': self.max_attempts,
            'hints_used': self.hints_used,
            'feedback': self.feedback
        }


@dataclass(frozen=True)
class ProgressState:
    """Cross-round statistics. Persisted; rounds themselves never are."""
    difficulty: str = TIERS[0]
    attempted: tuple = ()
    tier_completed: dict = field(default_factory=lambda: {tier: 0 for tier in TIERS})
    total_completed: int = 0
    total_successes: int = 0
    streak: int = 0
    total_stars: int = 0

    def has_attempted(self, text: str) -> bool:
        return text in self.attempted

    def with_difficulty(self, tier: str) -> 'ProgressState':
        return replace(self, difficulty=tier)

    def _with_attempt(self, text: str) -> tuple:
        if text in self.attempted:
            return self.attempted
        return self.attempted + (text,)

    def record_win(self, round: RoundState) -> tuple['ProgressState', int]:
        """Apply a won round. Returns (new_progress, stars_earned)."""
        stars = stars_for_errors(round.errors)
        tier = self.difficulty
        tier_completed = dict(self.tier_completed)
        tier_completed[tier] = tier_completed.get(tier, 0) + 1

        next_tier = tier
        if tier_completed[tier] >= WORDS_PER_DIFFICULTY_LEVEL:
            # Capped at the top tier; only pool exhaustion wraps around
            index = TIERS.index(tier) if tier in TIERS else 0
            next_tier = TIERS[min(index + 1, len(TIERS) - 1)]

        progress = replace(
            self,
            difficulty=next_tier,
            attempted=self._with_attempt(round.entry.source_text),
            tier_completed=tier_completed,
            total_completed=self.total_completed + 1,
            total_successes=self.total_successes + 1,
            streak=self.streak + 1,
            total_stars=self.total_stars + stars
        )
        return progress, stars

    def record_loss(self, round: RoundState) -> 'ProgressState':
        """Apply a lost round: no stars, no advancement, streak reset."""
        return replace(
            self,
            attempted=self._with_attempt(round.entry.source_text),
            total_completed=self.total_completed + 1,
            streak=0
        )

    def get_progress_display(self) -> str:
        """Progress toward the next tier, e.g. '3/5 easy'."""
        done = self.tier_completed.get(self.difficulty, 0)
        return f"{min(done, WORDS_PER_DIFFICULTY_LEVEL)}/{WORDS_PER_DIFFICULTY_LEVEL} {self.difficulty}"

    def to_dict(self) -> dict:
        return {
            'difficulty': self.difficulty,
            'attempted': list(self.attempted),
            'tier_completed': dict(self.tier_completed),
            'total_completed': self.total_completed,
            'total_successes': self.total_successes,
            'streak': self.streak,
            'total_stars': self.total_stars
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> 'ProgressState':
        """Load saved progress, defaulting any missing or malformed field."""
        if not data:
            return cls()

        def count(key: str) -> int:
            value = data.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                if key in data:
                    logger.warning(f"Ignoring malformed progress field {key}={value!r}")
                return 0
            return value

        difficulty = data.get('difficulty')
        if difficulty not in TIERS:
            difficulty = TIERS[0]

        attempted = []
        for text in data.get('attempted') or []:
            if isinstance(text, str) and text not in attempted:
                attempted.append(text)

        saved_counts = data.get('tier_completed') or {}
        tier_completed = {}
        for tier in TIERS:
            value = saved_counts.get(tier, 0) if isinstance(saved_counts, dict) else 0
            valid = isinstance(value, int) and not isinstance(value, bool) and value >= 0
            tier_completed[tier] = value if valid else 0

        return cls(
            difficulty=difficulty,
            attempted=tuple(attempted),
            tier_completed=tier_completed,
            total_completed=count('total_completed'),
            total_successes=count('total_successes'),
            streak=count('streak'),
            total_stars=count('total_stars')
        )


@dataclass(frozen=True)
class Settings:
    """Persisted player preferences."""
    language: str = DEFAULT_UI_LANGUAGE
    theme: str = 'light'
    sfx_enabled: bool = True
    audio_enabled: bool = True

    def to_dict(self) -> dict:
        return {
            'language': self.language,
            'theme': self.theme,
            'sfx_enabled': self.sfx_enabled,
            'audio_enabled': self.audio_enabled
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> 'Settings':
        defaults = cls()
        if not data:
            return defaults
        language = data.get('language')
        theme = data.get('theme')
        sfx = data.get('sfx_enabled')
        audio = data.get('audio_enabled')
        return cls(
            language=language if language in UI_LANGUAGES else defaults.language,
            theme=theme if theme in ('light', 'dark') else defaults.theme,
            sfx_enabled=sfx if isinstance(sfx, bool) else defaults.sfx_enabled,
            audio_enabled=audio if isinstance(audio, bool) else defaults.audio_enabled
        )

    def updated(self, **changes) -> 'Settings':
        """Apply changes, dropping unknown keys and invalid values."""
        merged = self.to_dict()
        merged.update({k: v for k, v in changes.items() if k in merged and v is not None})
        return Settings.from_dict(merged)
