"""Guess and hint evaluation: pure functions of (round, input) -> (round, outcome)."""

import random
from enum import Enum

from .config import ALPHABET, VOWELS, MAX_HINTS, DEFAULT_UI_LANGUAGE
from .lexicon import get_category_name
from .messages import message
from .models import RoundState, RoundStatus
from .utils import fold_letter, word_letters


class Outcome(str, Enum):
    IGNORED = 'ignored'
    CORRECT = 'correct'
    INCORRECT = 'incorrect'
    WON = 'won'
    LOST = 'lost'
    HINT_TEXT = 'hint_text'
    HINT_LETTER = 'hint_letter'
    HINT_NONE = 'hint_none'


def active_alphabet(round: RoundState) -> set[str]:
    """Letters the player may guess this round.

    The keyboard alphabet plus any foreign letter (j, k, w, x, y) the
    word itself contains, so every word stays completable.
    """
    letters = set(ALPHABET)
    if round.entry is not None:
        letters |= word_letters(round.entry.source_text)
    return letters


def is_valid_guess(round: RoundState, letter: str) -> bool:
    if not isinstance(letter, str) or len(letter) != 1 or not letter.isalpha():
        return False
    return fold_letter(letter) in active_alphabet(round)


def _resolve(round: RoundState, language: str, progress_outcome: Outcome, feedback: str) -> tuple[RoundState, Outcome]:
    """Apply the win check, then the loss check. A win always takes precedence."""
    if round.is_complete():
        return round.with_changes(status=RoundStatus.WON, feedback=message('win_msg', language)), Outcome.WON
    if round.remaining_attempts <= 0:
        return round.with_changes(status=RoundStatus.LOST, remaining_attempts=0,
                                  feedback=message('feedback_try_again', language)), Outcome.LOST
    return round.with_changes(feedback=feedback), progress_outcome


def guess_letter(round: RoundState, letter: str, language: str = DEFAULT_UI_LANGUAGE) -> tuple[RoundState, Outcome]:
    """Evaluate a single-letter guess.

    Returns the same round object unchanged when the round is not active
    or the letter was already revealed.
    """
    if not round.is_active or not is_valid_guess(round, letter):
        return round, Outcome.IGNORED
    letter = fold_letter(letter)
    if letter in round.revealed:
        return round, Outcome.IGNORED

    is_correct = letter in word_letters(round.entry.source_text)
    remaining = round.remaining_attempts if is_correct else max(round.remaining_attempts - 1, 0)
    updated = round.with_changes(revealed=round.revealed | {letter}, remaining_attempts=remaining)

    if is_correct:
        return _resolve(updated, language, Outcome.CORRECT, message('feedback_good', language))
    return _resolve(updated, language, Outcome.INCORRECT, message('feedback_bad', language))


def use_hint(round: RoundState, rng: random.Random = None,
             language: str = DEFAULT_UI_LANGUAGE) -> tuple[RoundState, Outcome]:
    """Give the next hint level.

    Level 1 shows the authored hint (or the category); level 2 reveals one
    unrevealed consonant. Vowels are never revealed by a hint.
    """
    if not round.is_active or round.hints_used >= MAX_HINTS:
        return round, Outcome.IGNORED

    rng = rng or random
    level = round.hints_used + 1
    entry = round.entry

    if level == 1:
        if entry.hint:
            feedback = entry.hint
        else:
            feedback = f"{message('hint_intro_generic', language)} {get_category_name(entry.category, language)}..."
        return round.with_changes(hints_used=level, feedback=feedback), Outcome.HINT_TEXT

    consonants = sorted(word_letters(entry.source_text) - round.revealed - set(VOWELS))
    if not consonants:
        return round.with_changes(hints_used=level,
                                  feedback=message('hint_no_consonants', language)), Outcome.HINT_NONE

    letter = rng.choice(consonants)
    updated = round.with_changes(hints_used=level, revealed=round.revealed | {letter})
    feedback = f"{message('hint_intro_letter', language)}: {letter.upper()}"
    return _resolve(updated, language, Outcome.HINT_LETTER, feedback)
