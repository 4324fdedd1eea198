"""Study session state machine and the driver that persists reviews."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Sequence, Union

from .card_filters import SessionConfig, build_session
from .models import Flashcard
from .sm2 import apply_review, is_passing, validate_quality
from .store import NotFoundError

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Base exception for study session errors."""
    pass


class EmptySessionError(SessionError):
    """No cards matched the session configuration."""
    pass


class NoCurrentCardError(SessionError):
    """A card was rated while no card is being shown."""
    pass


class PersistenceError(SessionError):
    """Saving a reviewed card failed; the session stays on that card."""
    pass


@dataclass(frozen=True)
class CardResult:
    """Outcome of one reviewed card."""

    flashcard_id: str
    quality: int
    time_spent: int  # milliseconds


@dataclass(frozen=True)
class SessionState:
    """Snapshot of a study session. Never persisted."""

    config: SessionConfig = field(default_factory=SessionConfig)
    deck_id: str = ""
    cards: tuple[Flashcard, ...] = ()
    current_index: int = 0
    start_time: datetime | None = None
    completed_cards: int = 0
    correct_count: int = 0   # quality >= 3
    wrong_count: int = 0     # quality < 3
    current_streak: int = 0
    best_streak: int = 0
    show_back: bool = False
    card_start_time: datetime | None = None
    card_results: tuple[CardResult, ...] = ()
    is_active: bool = False
    is_completed: bool = False

    @property
    def current_card(self) -> Flashcard | None:
        if self.is_active and self.current_index < len(self.cards):
            return self.cards[self.current_index]
        return None

    @property
    def is_last_card(self) -> bool:
        return self.current_index >= len(self.cards) - 1

    @property
    def accuracy(self) -> float:
        return (self.correct_count / self.completed_cards) * 100 if self.completed_cards > 0 else 0

    @property
    def progress(self) -> float:
        return (self.completed_cards / len(self.cards)) * 100 if self.cards else 0

    def elapsed_time(self, now: datetime | None = None) -> int:
        """Whole seconds since the session started."""
        if self.start_time is None:
            return 0
        return int(((now or datetime.now()) - self.start_time).total_seconds())


# Events

@dataclass(frozen=True)
class StartSession:
    cards: Sequence[Flashcard]
    config: SessionConfig = field(default_factory=SessionConfig)
    deck_id: str = ""
    now: datetime | None = None


@dataclass(frozen=True)
class FlipCard:
    pass


@dataclass(frozen=True)
class RateCard:
    quality: int
    time_spent: int = 0


@dataclass(frozen=True)
class NextCard:
    now: datetime | None = None


@dataclass(frozen=True)
class CompleteSession:
    pass


@dataclass(frozen=True)
class ResetSession:
    pass


SessionEvent = Union[StartSession, FlipCard, RateCard, NextCard, CompleteSession, ResetSession]


def session_reducer(state: SessionState, event: SessionEvent) -> SessionState:
    """Apply one event to a session state and return the new state.

    Pure: the input state is left untouched and nothing is persisted.

    Raises:
        EmptySessionError: starting a session with no cards.
        NoCurrentCardError: rating when there is no card to rate.
    """
    if isinstance(event, StartSession):
        if not event.cards:
            raise EmptySessionError("No cards to study with the current settings")
        now = event.now or datetime.now()
        return SessionState(
            config=event.config,
            deck_id=event.deck_id,
            cards=tuple(event.cards),
            start_time=now,
            card_start_time=now,
            is_active=True,
        )

    if isinstance(event, FlipCard):
        if not state.is_active:
            return state
        return replace(state, show_back=not state.show_back)

    if isinstance(event, RateCard):
        card = state.current_card
        if card is None:
            raise NoCurrentCardError("There is no card to rate")
        correct = is_passing(event.quality)
        streak = state.current_streak + 1 if correct else 0
        return replace(
            state,
            completed_cards=state.completed_cards + 1,
            correct_count=state.correct_count + 1 if correct else state.correct_count,
            wrong_count=state.wrong_count if correct else state.wrong_count + 1,
            current_streak=streak,
            best_streak=max(streak, state.best_streak),
            card_results=state.card_results + (
                CardResult(flashcard_id=card.id, quality=event.quality, time_spent=event.time_spent),
            ),
        )

    if isinstance(event, NextCard):
        if not state.is_active:
            return state
        return replace(
            state,
            current_index=state.current_index + 1,
            show_back=False,
            card_start_time=event.now or datetime.now(),
        )

    if isinstance(event, CompleteSession):
        if not state.is_active:
            return state
        return replace(state, is_active=False, is_completed=True)

    if isinstance(event, ResetSession):
        return SessionState()

    raise TypeError(f"Unknown session event: {event!r}")


Persist = Callable[[Flashcard, int], Flashcard]


class StudySession:
    """Drives a session: builds the queue, schedules reviews, saves them.

    ``persist`` receives the rescheduled card and the quality rating and
    returns the stored card. If it raises, the session does not advance
    so the same card can be rated again.
    """

    def __init__(
        self,
        persist: Persist,
        clock: Callable[[], datetime] = datetime.now,
        rng: random.Random | None = None,
    ):
        self.persist = persist
        self.clock = clock
        self.rng = rng
        self.state = SessionState()

    def dispatch(self, event: SessionEvent) -> SessionState:
        self.state = session_reducer(self.state, event)
        logger.debug("%s -> index=%d active=%s completed=%s",
                     type(event).__name__, self.state.current_index,
                     self.state.is_active, self.state.is_completed)
        return self.state

    @property
    def current_card(self) -> Flashcard | None:
        return self.state.current_card

    @property
    def accuracy(self) -> float:
        return self.state.accuracy

    @property
    def progress(self) -> float:
        return self.state.progress

    @property
    def elapsed_time(self) -> int:
        return self.state.elapsed_time(self.clock())

    def start(
        self,
        all_cards: Sequence[Flashcard],
        config: SessionConfig,
        deck_id: str = "",
    ) -> SessionState:
        """Build the queue from ``all_cards`` and begin studying it."""
        now = self.clock()
        cards = build_session(all_cards, config, now=now, rng=self.rng)
        logger.debug("Built session of %d/%d cards for deck %s", len(cards), len(all_cards), deck_id)
        return self.dispatch(StartSession(cards=cards, config=config, deck_id=deck_id, now=now))

    def flip(self) -> SessionState:
        return self.dispatch(FlipCard())

    def rate(self, quality: int) -> Flashcard:
        """Rate the current card, save its new schedule and advance.

        Returns:
            The card as returned by ``persist``.

        Raises:
            InvalidQualityError: quality outside 0-5.
            NoCurrentCardError: no card is being shown.
            PersistenceError: saving failed; the session is unchanged.
            NotFoundError: the card no longer exists; the session is unchanged.
        """
        validate_quality(quality)
        card = self.state.current_card
        if card is None:
            raise NoCurrentCardError("There is no card to rate")

        now = self.clock()
        time_spent = 0
        if self.state.card_start_time is not None:
            time_spent = max(int((now - self.state.card_start_time).total_seconds() * 1000), 0)

        updated = apply_review(card, quality, now)
        try:
            saved = self.persist(updated, quality)
        except NotFoundError:
            logger.warning("Card %s no longer exists; not retrying", card.id)
            raise
        except Exception as e:
            logger.error("Failed to save card %s: %s", card.id, e)
            raise PersistenceError(f"Failed to save card: {e}") from e

        was_last = self.state.is_last_card
        self.dispatch(RateCard(quality=quality, time_spent=time_spent))
        if was_last:
            self.dispatch(CompleteSession())
        else:
            self.dispatch(NextCard(now=now))
        return saved

    def end(self) -> SessionState:
        """End the session early."""
        return self.dispatch(CompleteSession())

    def reset(self) -> SessionState:
        return self.dispatch(ResetSession())

    def get_summary_dict(self) -> dict:
        """Return a summary dict for display."""
        state = self.state
        return {
            "deck_id": state.deck_id,
            "total_cards": len(state.cards),
            "completed": state.completed_cards,
            "correct": state.correct_count,
            "wrong": state.wrong_count,
            "best_streak": state.best_streak,
            "accuracy": round(state.accuracy, 1),
            "progress": round(state.progress, 1),
            "elapsed_seconds": self.elapsed_time,
        }
