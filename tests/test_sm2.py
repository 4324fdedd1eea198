"""Tests for sm2 module - SM-2 scheduling."""

from datetime import datetime, timedelta

import pytest

from flashcli.models import Flashcard
from flashcli.sm2 import (
    QUALITY_LABELS,
    RATING_BUTTONS,
    InvalidQualityError,
    ScheduleResult,
    apply_review,
    is_passing,
    quality_label,
    schedule,
    validate_quality,
)

NOW = datetime(2025, 3, 1, 9, 30)


class TestSchedulePass:
    """Passing reviews (quality >= 3)."""

    def test_first_pass_is_one_day(self):
        for quality in (3, 4, 5):
            assert schedule(quality, 0, 0, 2.5).interval == 1

    def test_second_pass_is_six_days(self):
        for quality in (3, 4, 5):
            assert schedule(quality, 1, 1, 2.5).interval == 6

    def test_growth_interval(self):
        result = schedule(4, 2, 10, 2.0)
        assert result.interval == 20.00
        assert result.repetitions == 3

    def test_growth_interval_rounded_to_two_places(self):
        result = schedule(4, 3, 7, 2.345)
        assert result.interval == round(7 * 2.345, 2)

    def test_repetitions_increment(self):
        assert schedule(3, 0, 0, 2.5).repetitions == 1
        assert schedule(5, 7, 30, 2.5).repetitions == 8

    def test_perfect_recall_increases_ease(self):
        for reps, interval in [(0, 0), (1, 1), (4, 40)]:
            assert schedule(5, reps, interval, 2.5).ease_factor > 2.5

    def test_ease_delta_by_quality(self):
        assert schedule(5, 0, 0, 2.5).ease_factor == pytest.approx(2.6)
        assert schedule(4, 0, 0, 2.5).ease_factor == pytest.approx(2.5)
        assert schedule(3, 0, 0, 2.5).ease_factor == pytest.approx(2.36)

    def test_uses_previous_ease_for_interval(self):
        # Interval uses the ease factor from before this review
        result = schedule(3, 2, 10, 2.5)
        assert result.interval == 25.0
        assert result.ease_factor == pytest.approx(2.36)


class TestScheduleFail:
    """Failed reviews (quality < 3)."""

    def test_fail_resets_repetitions_and_interval(self):
        for quality in (0, 1, 2):
            for reps, interval, ease in [(0, 0, 2.5), (3, 15, 2.1), (10, 200, 1.8)]:
                result = schedule(quality, reps, interval, ease)
                assert result.repetitions == 0
                assert result.interval == 1

    def test_fail_leaves_ease_unchanged(self):
        for quality in (0, 1, 2):
            assert schedule(quality, 4, 30, 2.2).ease_factor == 2.2


class TestEaseFloor:
    """The ease factor never drops below 1.3."""

    def test_floor_on_low_pass(self):
        assert schedule(3, 5, 10, 1.3).ease_factor == 1.3

    def test_floor_for_all_inputs(self):
        for quality in range(6):
            for reps in (0, 1, 2, 5):
                for ease in (1.0, 1.3, 1.4, 2.5):
                    assert schedule(quality, reps, 10, ease).ease_factor >= 1.3

    def test_result_type(self):
        assert isinstance(schedule(4, 0, 0, 2.5), ScheduleResult)


class TestValidateQuality:
    """Tests for quality range checking."""

    def test_valid_values(self):
        for q in range(6):
            assert validate_quality(q) == q

    def test_out_of_range(self):
        with pytest.raises(InvalidQualityError):
            validate_quality(6)
        with pytest.raises(InvalidQualityError):
            validate_quality(-1)

    def test_non_integer(self):
        with pytest.raises(InvalidQualityError):
            validate_quality(3.5)
        with pytest.raises(InvalidQualityError):
            validate_quality(True)

    def test_is_value_error(self):
        assert issubclass(InvalidQualityError, ValueError)

    def test_is_passing(self):
        assert is_passing(3)
        assert not is_passing(2)


class TestApplyReview:
    """Tests for applying a review to a card."""

    def _card(self, **kwargs) -> Flashcard:
        defaults = {"id": "c1", "deck_id": "d1", "front": "hola", "back": "hello"}
        defaults.update(kwargs)
        return Flashcard(**defaults)

    def test_new_card_pass(self):
        card = self._card()
        updated = apply_review(card, 4, NOW)
        assert updated.difficulty == 4
        assert updated.interval == 1
        assert updated.repetitions == 1
        assert updated.last_reviewed == NOW
        assert updated.next_review == NOW + timedelta(days=1)
        assert updated.streak == 1
        assert updated.total_reviews == 1
        assert updated.correct_reviews == 1

    def test_fail_resets_streak(self):
        card = self._card(repetitions=3, interval=15, ease_factor=2.2,
                          streak=3, total_reviews=5, correct_reviews=4,
                          last_reviewed=NOW - timedelta(days=15))
        updated = apply_review(card, 1, NOW)
        assert updated.repetitions == 0
        assert updated.interval == 1
        assert updated.ease_factor == 2.2
        assert updated.streak == 0
        assert updated.total_reviews == 6
        assert updated.correct_reviews == 4

    def test_fractional_interval_next_review(self):
        card = self._card(repetitions=2, interval=6, ease_factor=2.5)
        updated = apply_review(card, 4, NOW)
        assert updated.interval == 15.0
        assert updated.next_review == NOW + timedelta(days=15)

    def test_does_not_mutate_input(self):
        card = self._card()
        apply_review(card, 5, NOW)
        assert card.repetitions == 0
        assert card.last_reviewed is None
        assert card.total_reviews == 0

    def test_keeps_content(self):
        card = self._card(notes="greeting")
        updated = apply_review(card, 5, NOW)
        assert updated.id == "c1"
        assert updated.front == "hola"
        assert updated.notes == "greeting"


class TestLabels:
    """Tests for rating labels and buttons."""

    def test_labels_cover_all_qualities(self):
        assert set(QUALITY_LABELS) == set(range(6))
        assert quality_label(0) == "Blackout"
        assert quality_label(5) == "Perfect"

    def test_unknown_label(self):
        assert quality_label(9) == "9"

    def test_buttons(self):
        assert RATING_BUTTONS == {"again": 0, "hard": 2, "good": 4, "easy": 5}
