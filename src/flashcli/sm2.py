"""SM-2 spaced repetition scheduling."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .models import MIN_EASE_FACTOR, Flashcard

# Quality ratings are 0-5; anything at or above this counts as recalled
PASSING_QUALITY = 3
MAX_QUALITY = 5

QUALITY_LABELS = {
    0: "Blackout",
    1: "Incorrect",
    2: "Hard Recall",
    3: "Correct",
    4: "Easy",
    5: "Perfect",
}

# Rating buttons offered after the answer is shown
QUALITY_AGAIN = 0
QUALITY_HARD = 2
QUALITY_GOOD = 4
QUALITY_EASY = 5

RATING_BUTTONS = {
    "again": QUALITY_AGAIN,
    "hard": QUALITY_HARD,
    "good": QUALITY_GOOD,
    "easy": QUALITY_EASY,
}


class InvalidQualityError(ValueError):
    """A quality rating outside the 0-5 range."""
    pass


@dataclass(frozen=True)
class ScheduleResult:
    """New schedule for a card after one review."""

    interval: float
    repetitions: int
    ease_factor: float


def is_passing(quality: int) -> bool:
    return quality >= PASSING_QUALITY


def validate_quality(quality: int) -> int:
    """Return ``quality`` unchanged or raise InvalidQualityError."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(f"Quality must be an integer 0-{MAX_QUALITY}, got {quality!r}")
    if not 0 <= quality <= MAX_QUALITY:
        raise InvalidQualityError(f"Quality must be between 0 and {MAX_QUALITY}, got {quality}")
    return quality


def schedule(
    quality: int,
    repetitions: int,
    previous_interval: float,
    previous_ease_factor: float,
) -> ScheduleResult:
    """Compute the next interval, repetition count and ease factor.

    Classic SM-2: the first two passes are scheduled 1 and 6 days out,
    later passes multiply the previous interval by the ease factor. A
    failed recall (quality < 3) restarts the repetition count with a
    1 day interval and leaves the ease factor alone.

    ``quality`` must already be within 0-5; see ``validate_quality``.
    """
    if is_passing(quality):
        if repetitions == 0:
            interval = 1
        elif repetitions == 1:
            interval = 6
        else:
            interval = round(previous_interval * previous_ease_factor, 2)

        repetitions += 1
        miss = MAX_QUALITY - quality
        ease_factor = previous_ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    else:
        interval = 1
        repetitions = 0
        ease_factor = previous_ease_factor

    return ScheduleResult(
        interval=interval,
        repetitions=repetitions,
        ease_factor=max(ease_factor, MIN_EASE_FACTOR),
    )


def apply_review(card: Flashcard, quality: int, now: datetime | None = None) -> Flashcard:
    """Return a copy of ``card`` updated for a review rated ``quality``.

    Besides the schedule this updates the card's lifetime counters:
    total and correct reviews, and the streak of consecutive passes.
    """
    now = now or datetime.now()
    result = schedule(quality, card.repetitions, card.interval, card.ease_factor)
    passed = is_passing(quality)

    return replace(
        card,
        difficulty=quality,
        interval=result.interval,
        repetitions=result.repetitions,
        ease_factor=result.ease_factor,
        last_reviewed=now,
        next_review=now + timedelta(days=result.interval),
        streak=card.streak + 1 if passed else 0,
        total_reviews=card.total_reviews + 1,
        correct_reviews=card.correct_reviews + 1 if passed else card.correct_reviews,
    )


def quality_label(quality: int) -> str:
    return QUALITY_LABELS.get(quality, str(quality))
