"""Tests for cli module - Click command registration and basic behavior."""

from datetime import datetime, timedelta
from unittest.mock import patch

from click.testing import CliRunner

from flashcli.card_filters import SortBy
from flashcli.cli import cli
from flashcli.config import Config
from flashcli.store import DeckStore


def _invoke(store, args, config=None, **kwargs):
    runner = CliRunner()
    with patch("flashcli.cli.get_store", return_value=store), \
         patch("flashcli.cli.load_config", return_value=config or Config()):
        return runner.invoke(cli, args, **kwargs)


class TestCLIGroup:
    """Tests for the top-level CLI group."""

    def test_cli_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Flashcards CLI" in result.output

    def test_cli_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestCLICommands:
    """Tests that all expected commands are registered."""

    def test_commands_registered(self):
        names = set(cli.commands.keys())
        for name in ["decks", "create-deck", "delete-deck", "add", "cards",
                     "delete-card", "due", "study", "config"]:
            assert name in names

    def test_study_help(self):
        result = CliRunner().invoke(cli, ["study", "--help"])
        assert result.exit_code == 0
        assert "--max-cards" in result.output
        assert "dueDate" in result.output


class TestDeckCommands:
    """Tests for deck and card management commands."""

    def test_decks_empty(self, tmp_path):
        result = _invoke(DeckStore(tmp_path / "decks.json"), ["decks"])
        assert result.exit_code == 0
        assert "No decks found" in result.output

    def test_create_and_list(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        result = _invoke(store, ["create-deck", "Spanish", "-d", "vocab"])
        assert result.exit_code == 0
        assert "created" in result.output

        result = _invoke(store, ["decks"])
        assert result.exit_code == 0
        assert "Spanish" in result.output

    def test_add_and_cards(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        result = _invoke(store, ["add", "Spanish", "-f", "hola", "-b", "hello"])
        assert result.exit_code == 0
        assert "Card added" in result.output

        result = _invoke(store, ["cards", "Spanish"])
        assert result.exit_code == 0
        assert "hola" in result.output
        assert "new" in result.output

    def test_add_prompts(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        with patch("flashcli.cli.Prompt.ask", side_effect=["gato", "cat"]):
            result = _invoke(store, ["add", "Spanish"])
        assert result.exit_code == 0
        assert store.get_flashcards("Spanish")[0].back == "cat"

    def test_missing_deck_exits_1(self, tmp_path):
        result = _invoke(DeckStore(tmp_path / "decks.json"), ["cards", "Nope"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete_card(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        card = store.add_flashcard("Spanish", "hola", "hello")
        result = _invoke(store, ["delete-card", "Spanish", card.id])
        assert result.exit_code == 0
        assert store.get_flashcards("Spanish") == []

    def test_delete_deck_confirm(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        result = _invoke(store, ["delete-deck", "Spanish"], input="n\n")
        assert "Cancelled" in result.output
        assert len(store.list_decks()) == 1

        result = _invoke(store, ["delete-deck", "Spanish", "--yes"])
        assert result.exit_code == 0
        assert store.list_decks() == []

    def test_due_preview(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        for i in range(3):
            store.add_flashcard("Spanish", f"f{i}", f"b{i}")
        result = _invoke(store, ["due", "Spanish"])
        assert result.exit_code == 0
        assert "3 cards" in result.output
        assert "3 new / 0 review" in result.output


class TestStudyCommand:
    """Tests for the study command's option handling."""

    def _run(self, tmp_path, args, config=None):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        with patch("flashcli.study.run_study") as run_study:
            result = _invoke(store, ["study", "Spanish", *args], config=config)
        return result, run_study

    def test_uses_config_defaults(self, tmp_path):
        result, run_study = self._run(tmp_path, [])
        assert result.exit_code == 0
        session_config = run_study.call_args[0][2]
        assert session_config.max_cards == 20
        assert session_config.max_new_cards == 5
        assert session_config.due_only is True
        assert session_config.sort_by == SortBy.DUE_DATE

    def test_overrides(self, tmp_path):
        result, run_study = self._run(
            tmp_path, ["--max-cards", "0", "--max-new", "2", "--all", "--sort", "difficulty"],
        )
        assert result.exit_code == 0
        session_config = run_study.call_args[0][2]
        assert session_config.max_cards is None
        assert session_config.max_new_cards == 2
        assert session_config.due_only is False
        assert session_config.sort_by == SortBy.DIFFICULTY

    def test_negative_limits_rejected(self, tmp_path):
        for option in ("--max-cards", "--max-new"):
            workdir = tmp_path / option.strip("-")
            workdir.mkdir()
            result, run_study = self._run(workdir, [option, "-1"])
            assert result.exit_code == 2
            assert "-1" in result.output
            run_study.assert_not_called()

    def test_shuffle_sets_random_order(self, tmp_path):
        result, run_study = self._run(tmp_path, ["--shuffle"])
        session_config = run_study.call_args[0][2]
        assert session_config.shuffled is True
        assert session_config.sort_by == SortBy.RANDOM

    def test_empty_deck_reports_error(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        result = _invoke(store, ["study", "Spanish"])
        assert result.exit_code == 1
        assert "No cards to study" in result.output

    def test_nothing_due_reports_error(self, tmp_path):
        store = DeckStore(tmp_path / "decks.json")
        store.create_deck("Spanish")
        card = store.add_flashcard("Spanish", "hola", "hello")
        now = datetime.now()
        card.last_reviewed = now
        card.next_review = now + timedelta(days=3)
        store.update_flashcard(card)
        result = _invoke(store, ["study", "Spanish"])
        assert result.exit_code == 1


class TestConfigCommand:
    """Tests for the config command group."""

    def test_show(self, tmp_path):
        result = _invoke(DeckStore(tmp_path / "decks.json"), ["config"])
        assert result.exit_code == 0
        assert "max_cards" in result.output

    def test_set(self, tmp_path):
        with patch("flashcli.cli.set_config_value", return_value=Config(max_cards=40)) as set_value:
            result = _invoke(DeckStore(tmp_path / "decks.json"), ["config", "set", "max_cards", "40"])
        assert result.exit_code == 0
        assert set_value.call_args[0][1:] == ("max_cards", "40")

    def test_set_invalid_value(self, tmp_path):
        with patch("flashcli.config.save_config"):
            result = _invoke(DeckStore(tmp_path / "decks.json"), ["config", "set", "max_cards", "lots"])
        assert result.exit_code == 1
