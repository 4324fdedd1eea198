"""JSON file storage for decks and flashcards."""

from __future__ import annotations

import json
import logging
import shutil
import uuid
from dataclasses import replace
from pathlib import Path

from .models import Deck, Flashcard
from .paths import DECKS_FILE, atomic_json_write

logger = logging.getLogger(__name__)

# Fields a review is allowed to change on a stored card
REVIEW_FIELDS = (
    "difficulty",
    "interval",
    "repetitions",
    "ease_factor",
    "last_reviewed",
    "next_review",
    "streak",
    "total_reviews",
    "correct_reviews",
)


class StoreError(Exception):
    """Base exception for deck storage errors."""
    pass


class NotFoundError(StoreError):
    """The requested deck or card does not exist."""
    pass


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class DeckStore:
    """Decks and their cards kept in a single JSON document."""

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else DECKS_FILE

    def _load(self) -> list[Deck]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
            return [Deck.from_dict(d) for d in raw.get("decks", [])]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            # Back up the unreadable file so the next save does not destroy it
            backup_path = self.path.with_suffix(".json.bak")
            try:
                shutil.copy2(self.path, backup_path)
            except OSError:
                pass
            logger.warning("Could not read %s (%s); backed up to %s", self.path, e, backup_path)
            raise StoreError(f"Deck file is corrupted: {self.path}") from e

    def _save(self, decks: list[Deck]) -> None:
        atomic_json_write(self.path, {"decks": [d.to_dict() for d in decks]})
        logger.debug("Saved %d deck(s) to %s", len(decks), self.path)

    @staticmethod
    def _find_deck(decks: list[Deck], deck_ref: str) -> Deck:
        for deck in decks:
            if deck.id == deck_ref:
                return deck
        matches = [d for d in decks if d.title.lower() == deck_ref.lower()]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise StoreError(f"Ambiguous deck title '{deck_ref}', use the deck ID")
        raise NotFoundError(f"Deck '{deck_ref}' not found")

    def list_decks(self) -> list[Deck]:
        return self._load()

    def get_deck(self, deck_ref: str) -> Deck:
        """Look up a deck by ID or (case-insensitive) title."""
        return self._find_deck(self._load(), deck_ref)

    def create_deck(self, title: str, description: str = "") -> Deck:
        if not title.strip():
            raise StoreError("Deck title is required")
        decks = self._load()
        deck = Deck(id=_new_id(), title=title.strip(), description=description)
        decks.append(deck)
        self._save(decks)
        return deck

    def delete_deck(self, deck_ref: str) -> Deck:
        """Delete a deck together with all of its cards."""
        decks = self._load()
        deck = self._find_deck(decks, deck_ref)
        decks = [d for d in decks if d.id != deck.id]
        self._save(decks)
        return deck

    def get_flashcards(self, deck_ref: str) -> list[Flashcard]:
        return list(self.get_deck(deck_ref).flashcards)

    def add_flashcard(
        self,
        deck_ref: str,
        front: str,
        back: str,
        notes: str | None = None,
    ) -> Flashcard:
        if not front.strip() or not back.strip():
            raise StoreError("Both front and back are required")
        decks = self._load()
        deck = self._find_deck(decks, deck_ref)
        card = Flashcard(id=_new_id(), deck_id=deck.id, front=front, back=back, notes=notes or None)
        deck.flashcards.append(card)
        self._save(decks)
        return card

    def delete_flashcard(self, deck_ref: str, card_id: str) -> Flashcard:
        decks = self._load()
        deck = self._find_deck(decks, deck_ref)
        for i, card in enumerate(deck.flashcards):
            if card.id == card_id:
                del deck.flashcards[i]
                self._save(decks)
                return card
        raise NotFoundError(f"Flashcard '{card_id}' not found in deck '{deck.title}'")

    def update_flashcard(self, card: Flashcard) -> Flashcard:
        """Store the review fields of ``card`` and return the stored record."""
        decks = self._load()
        deck = self._find_deck(decks, card.deck_id)
        for i, stored in enumerate(deck.flashcards):
            if stored.id == card.id:
                updated = replace(stored, **{name: getattr(card, name) for name in REVIEW_FIELDS})
                deck.flashcards[i] = updated
                self._save(decks)
                return updated
        raise NotFoundError(f"Flashcard '{card.id}' not found in deck '{deck.title}'")

    def save_review(self, card: Flashcard, quality: int) -> Flashcard:
        """Persistence hook for StudySession.

        ``quality`` is unused here; the card already carries the counters.
        """
        return self.update_flashcard(card)
