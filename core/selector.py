"""Word selection with tier cycling on pool exhaustion."""

import logging
import random

from .config import TIERS
from .lexicon import Lexicon, LexiconEntry
from .models import ProgressState

logger = logging.getLogger(__name__)


def next_tier(tier: str) -> str:
    """The following tier, wrapping hard -> easy."""
    if tier not in TIERS:
        return TIERS[0]
    return TIERS[(TIERS.index(tier) + 1) % len(TIERS)]


def _unattempted(lexicon: Lexicon, tier: str, progress: ProgressState) -> list[LexiconEntry]:
    return [e for e in lexicon.by_tier(tier) if not progress.has_attempted(e.source_text)]


def select_next(lexicon: Lexicon, progress: ProgressState,
                rng: random.Random = None) -> tuple[LexiconEntry | None, ProgressState]:
    """Pick the next entry for the current tier.

    When the current tier has no unattempted entries, moves to the next
    tier and picks from its unattempted entries, or replays that whole
    tier if it is exhausted too. Returns (entry, progress) where progress
    carries the possibly changed tier. Entry is None only for an empty
    lexicon.
    """
    rng = rng or random
    tier = progress.difficulty if progress.difficulty in TIERS else TIERS[0]

    candidates = _unattempted(lexicon, tier, progress)
    if not candidates:
        tier = next_tier(tier)
        candidates = _unattempted(lexicon, tier, progress)
        if not candidates:
            candidates = list(lexicon.by_tier(tier))
        logger.info(f"Word pool exhausted, moving to tier {tier} ({len(candidates)} candidates)")

    if not candidates:
        # A tier with no entries at all: walk the remaining tiers
        for _ in range(len(TIERS) - 1):
            tier = next_tier(tier)
            candidates = _unattempted(lexicon, tier, progress) or list(lexicon.by_tier(tier))
            if candidates:
                break

    if not candidates:
        logger.error("Lexicon is empty, no word to select")
        return None, progress

    if tier != progress.difficulty:
        progress = progress.with_difficulty(tier)
    return rng.choice(candidates), progress
