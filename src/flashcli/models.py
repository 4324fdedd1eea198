"""Data models for flashcli."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        # Stored times are naive local; an offset is converted, not kept.
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def is_card_due(card: Flashcard, now: datetime | None = None) -> bool:
    """A card is due if it has no next review date or that date has passed."""
    if card.next_review is None:
        return True
    return card.next_review <= (now or datetime.now())


def is_card_new(card: Flashcard) -> bool:
    """A card is new if it has never been reviewed."""
    return card.last_reviewed is None


@dataclass
class Flashcard:
    """A single flashcard and its review schedule."""

    id: str
    deck_id: str
    front: str
    back: str
    notes: str | None = None
    difficulty: int = 0           # last quality rating, 0-5
    repetitions: int = 0          # consecutive passes since the last lapse
    interval: float = 0           # days until the next review
    ease_factor: float = DEFAULT_EASE_FACTOR
    last_reviewed: datetime | None = None
    next_review: datetime | None = None
    streak: int = 0
    total_reviews: int = 0
    correct_reviews: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def accuracy(self) -> float:
        """Lifetime percentage of passing reviews."""
        return (self.correct_reviews / self.total_reviews) * 100 if self.total_reviews > 0 else 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "deck_id": self.deck_id,
            "front": self.front,
            "back": self.back,
            "notes": self.notes,
            "difficulty": self.difficulty,
            "repetitions": self.repetitions,
            "interval": self.interval,
            "ease_factor": self.ease_factor,
            "last_reviewed": _format_timestamp(self.last_reviewed),
            "next_review": _format_timestamp(self.next_review),
            "streak": self.streak,
            "total_reviews": self.total_reviews,
            "correct_reviews": self.correct_reviews,
            "created_at": _format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Flashcard:
        return cls(
            id=data["id"],
            deck_id=data.get("deck_id", ""),
            front=data.get("front", ""),
            back=data.get("back", ""),
            notes=data.get("notes"),
            difficulty=data.get("difficulty", 0),
            repetitions=data.get("repetitions", 0),
            interval=data.get("interval", 0),
            ease_factor=max(data.get("ease_factor", DEFAULT_EASE_FACTOR), MIN_EASE_FACTOR),
            last_reviewed=_parse_timestamp(data.get("last_reviewed")),
            next_review=_parse_timestamp(data.get("next_review")),
            streak=data.get("streak", 0),
            total_reviews=data.get("total_reviews", 0),
            correct_reviews=data.get("correct_reviews", 0),
            created_at=_parse_timestamp(data.get("created_at")) or datetime.now(),
        )


@dataclass
class Deck:
    """A named collection of flashcards."""

    id: str
    title: str
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    flashcards: list[Flashcard] = field(default_factory=list)

    @property
    def card_count(self) -> int:
        return len(self.flashcards)

    @property
    def new_count(self) -> int:
        """Cards that have never been reviewed."""
        return sum(1 for c in self.flashcards if is_card_new(c))

    def due_count(self, now: datetime | None = None) -> int:
        """Cards whose next review is unset or already passed."""
        return sum(1 for c in self.flashcards if is_card_due(c, now))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "created_at": _format_timestamp(self.created_at),
            "flashcards": [c.to_dict() for c in self.flashcards],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Deck:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            created_at=_parse_timestamp(data.get("created_at")) or datetime.now(),
            flashcards=[Flashcard.from_dict(c) for c in data.get("flashcards", [])],
        )
