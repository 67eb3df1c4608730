"""Game state machine: a pure reducer plus the session that drives it."""

import asyncio
import logging
import random
from dataclasses import dataclass, field, replace

from .config import LETTER_NAMES, MAX_HINTS, PRIMARY_LANGUAGE, DEFAULT_UI_LANGUAGE
from .evaluator import Outcome, guess_letter, use_hint, is_valid_guess
from .interfaces import Storage
from .lexicon import Lexicon, LexiconEntry
from .models import ProgressState, RoundState, Settings
from .selector import select_next
from .speech import SpeechDelivery
from .utils import fold_letter

logger = logging.getLogger(__name__)


# Actions

@dataclass(frozen=True)
class StartRound:
    pass


@dataclass(frozen=True)
class GuessLetter:
    letter: str


@dataclass(frozen=True)
class UseHint:
    pass


@dataclass(frozen=True)
class Reset:
    pass


# Events

@dataclass(frozen=True)
class RoundStarted:
    entry: LexiconEntry


@dataclass(frozen=True)
class RoundEnded:
    entry: LexiconEntry
    outcome: Outcome
    stars: int = 0


@dataclass(frozen=True)
class GameState:
    round: RoundState = field(default_factory=RoundState)
    progress: ProgressState = field(default_factory=ProgressState)


@dataclass(frozen=True)
class Transition:
    state: GameState
    outcome: Outcome = Outcome.IGNORED
    events: tuple = ()


def _finish(state: GameState, round: RoundState, outcome: Outcome) -> Transition:
    """Fold a round result into progress, emitting RoundEnded when the round is over."""
    if outcome == Outcome.WON:
        progress, stars = state.progress.record_win(round)
        return Transition(GameState(round, progress), outcome, (RoundEnded(round.entry, outcome, stars),))
    if outcome == Outcome.LOST:
        progress = state.progress.record_loss(round)
        return Transition(GameState(round, progress), outcome, (RoundEnded(round.entry, outcome, 0),))
    if round is state.round:
        return Transition(state, outcome)
    return Transition(replace(state, round=round), outcome)


def transition(state: GameState, action, lexicon: Lexicon, rng: random.Random = None,
               language: str = DEFAULT_UI_LANGUAGE) -> Transition:
    """Apply one action. Performs no I/O; side effects are returned as events."""
    if isinstance(action, GuessLetter):
        round, outcome = guess_letter(state.round, action.letter, language)
        return _finish(state, round, outcome)

    if isinstance(action, UseHint):
        round, outcome = use_hint(state.round, rng, language)
        return _finish(state, round, outcome)

    if isinstance(action, StartRound):
        # Abandoning an unresolved round does not mark its word attempted
        entry, progress = select_next(lexicon, state.progress, rng)
        if entry is None:
            return Transition(GameState(RoundState(), progress))
        return Transition(GameState(RoundState.start(entry), progress), events=(RoundStarted(entry),))

    if isinstance(action, Reset):
        return Transition(GameState())

    raise TypeError(f"Unknown action: {action!r}")


class GameSession:
    """Owns the game state for one player and forwards events to speech.

    Speech runs as independent asyncio tasks; its failures never reach
    the game state.
    """

    def __init__(self, lexicon: Lexicon, storage: Storage | None = None,
                 speech: SpeechDelivery | None = None, effects=None,
                 rng: random.Random = None):
        self.lexicon = lexicon
        self.storage = storage
        self.speech = speech
        self.effects = effects
        self.rng = rng or random.Random()
        self.settings = self._load_settings()
        self.state = GameState(progress=self._load_progress())
        self._tasks: set[asyncio.Task] = set()

    # Persistence

    def _load_settings(self) -> Settings:
        if self.storage is None:
            return Settings()
        try:
            return Settings.from_dict(self.storage.load_settings())
        except Exception as e:
            logger.error(f"Failed to load settings, using defaults: {e}")
            return Settings()

    def _load_progress(self) -> ProgressState:
        if self.storage is None:
            return ProgressState()
        try:
            return ProgressState.from_dict(self.storage.load_progress())
        except Exception as e:
            logger.error(f"Failed to load progress, starting fresh: {e}")
            return ProgressState()

    def _save_progress(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save_progress(self.state.progress.to_dict())
        except Exception as e:
            logger.error(f"Failed to save progress: {e}")

    def _save_settings(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save_settings(self.settings.to_dict())
        except Exception as e:
            logger.error(f"Failed to save settings: {e}")

    # Side effects

    def _spawn(self, coro) -> None:
        """Run a speech coroutine in the background of the running loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, skipping speech")
            coro.close()
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _play_effect(self, name: str) -> None:
        if self.effects is None or not self.settings.sfx_enabled:
            return
        try:
            self.effects.play(name)
        except Exception as e:
            logger.warning(f"Sound effect {name!r} failed: {e}")

    def _dispatch(self, action) -> Transition:
        previous = self.state
        result = transition(self.state, action, self.lexicon, self.rng, self.settings.language)
        self.state = result.state
        if result.state.progress is not previous.progress and not isinstance(action, Reset):
            self._save_progress()

        for event in result.events:
            if isinstance(event, RoundStarted):
                if self.speech is not None and self.settings.audio_enabled:
                    self._spawn(self.speech.preload(event.entry.source_text, PRIMARY_LANGUAGE))
            elif isinstance(event, RoundEnded):
                self._play_effect('win' if event.outcome == Outcome.WON else 'lose')
                if self.speech is not None and self.settings.audio_enabled:
                    self._spawn(self.speech.announce(event.entry))
        return result

    # Entry points

    def start_round(self) -> Transition:
        """Start the next round, abandoning any unresolved one."""
        return self._dispatch(StartRound())

    def guess(self, letter: str) -> Transition:
        """Guess a letter. Input outside the round's alphabet is ignored."""
        round = self.state.round
        if not round.is_active or not is_valid_guess(round, letter):
            return Transition(self.state)
        folded = fold_letter(letter)
        if folded not in round.revealed:
            self._play_effect('click')
            if self.speech is not None and self.settings.audio_enabled:
                self.speech.speak_local(LETTER_NAMES.get(folded, folded), PRIMARY_LANGUAGE)
        return self._dispatch(GuessLetter(folded))

    def hint(self) -> Transition:
        """Use the next hint. The click precedes any win cue the hint triggers."""
        round = self.state.round
        if round.is_active and round.hints_used < MAX_HINTS:
            self._play_effect('click')
        return self._dispatch(UseHint())

    def reset(self) -> Transition:
        """Wipe progress and return to an idle round."""
        if self.storage is not None:
            try:
                self.storage.clear_progress()
            except Exception as e:
                logger.error(f"Failed to clear saved progress: {e}")
        return self._dispatch(Reset())

    def update_settings(self, **changes) -> Settings:
        self.settings = self.settings.updated(**changes)
        self._save_settings()
        return self.settings

    def say(self, text: str, language: str) -> None:
        """Queue a one-off utterance."""
        if self.speech is not None:
            self._spawn(self.speech.speak(text, language))

    def status(self) -> dict:
        return {
            'round': self.state.round.to_dict(),
            'progress': self.state.progress.to_dict(),
            'progress_display': self.state.progress.get_progress_display(),
            'settings': self.settings.to_dict()
        }
