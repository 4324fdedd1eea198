"""Card selection: due/new filters, ordering and session configuration."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Sequence

from .models import Flashcard, is_card_due, is_card_new


class SortBy(str, Enum):
    DUE_DATE = "dueDate"
    DIFFICULTY = "difficulty"
    RANDOM = "random"


@dataclass
class SessionConfig:
    """How to pick and order cards for a study session.

    Unset limits mean "no limit"; a zero limit is treated the same way.
    Negative limits are rejected.
    """

    max_cards: int | None = None
    max_new_cards: int | None = None
    due_only: bool = False
    shuffled: bool = False
    sort_by: SortBy | None = None

    def __post_init__(self) -> None:
        for name in ("max_cards", "max_new_cards"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be 0 or more, got {value}")
        if self.sort_by is not None:
            self.sort_by = SortBy(self.sort_by)


@dataclass(frozen=True)
class SessionPreview:
    """Card counts shown before a session starts."""

    total: int
    due: int
    new: int
    estimated_new: int
    estimated_review: int

    @property
    def estimated_total(self) -> int:
        return self.estimated_new + self.estimated_review


def filter_due_cards(cards: Sequence[Flashcard], now: datetime | None = None) -> list[Flashcard]:
    now = now or datetime.now()
    return [c for c in cards if is_card_due(c, now)]


def filter_new_cards(cards: Sequence[Flashcard], limit: int | None = None) -> list[Flashcard]:
    new_cards = [c for c in cards if is_card_new(c)]
    return new_cards[:limit] if limit else new_cards


def shuffle_cards(cards: Sequence[Flashcard], rng: random.Random | None = None) -> list[Flashcard]:
    """Return a uniformly shuffled copy of ``cards``."""
    shuffled = list(cards)
    (rng or random).shuffle(shuffled)
    return shuffled


def sort_by_due_date(cards: Sequence[Flashcard]) -> list[Flashcard]:
    """Most overdue first; cards without a next review date lead."""
    return sorted(cards, key=lambda c: (c.next_review is not None, c.next_review or datetime.min))


def sort_by_difficulty(cards: Sequence[Flashcard]) -> list[Flashcard]:
    """Hardest first (lowest ease factor)."""
    return sorted(cards, key=lambda c: c.ease_factor)


def build_session(
    all_cards: Sequence[Flashcard],
    config: SessionConfig,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[Flashcard]:
    """Filter, order and cap a deck's cards into a study queue.

    Stages run in a fixed order: due filter, new card cap (new cards are
    placed ahead of review cards), sort or shuffle, then the total cap.
    """
    now = now or datetime.now()
    cards = list(all_cards)

    if config.due_only:
        cards = filter_due_cards(cards, now)

    new_cards = [c for c in cards if is_card_new(c)]
    review_cards = [c for c in cards if not is_card_new(c)]
    if config.max_new_cards:
        new_cards = new_cards[:config.max_new_cards]
    cards = new_cards + review_cards

    if config.sort_by == SortBy.DUE_DATE:
        cards = sort_by_due_date(cards)
    elif config.sort_by == SortBy.DIFFICULTY:
        cards = sort_by_difficulty(cards)
    elif config.sort_by == SortBy.RANDOM or config.shuffled:
        cards = shuffle_cards(cards, rng)

    if config.max_cards:
        cards = cards[:config.max_cards]

    return cards


def preview_session(
    all_cards: Sequence[Flashcard],
    config: SessionConfig,
    now: datetime | None = None,
) -> SessionPreview:
    """Estimate how many new and review cards a session will contain."""
    now = now or datetime.now()
    due_cards = filter_due_cards(all_cards, now)
    new_cards = filter_new_cards(all_cards)
    review_pool = [
        c for c in all_cards
        if not is_card_new(c) and (is_card_due(c, now) if config.due_only else True)
    ]

    estimated_new = min(config.max_new_cards or len(new_cards), len(new_cards))
    estimated_review = min((config.max_cards or len(all_cards)) - estimated_new, len(review_pool))

    return SessionPreview(
        total=len(all_cards),
        due=len(due_cards),
        new=len(new_cards),
        estimated_new=estimated_new,
        estimated_review=max(estimated_review, 0),
    )
