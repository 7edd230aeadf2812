"""Tests for CLI commands: decks, cards, due/new listing, review, stats and config."""

import json
import logging
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from noetica.infrastructure.clock import FixedClock
from noetica.interface.cli import app

runner = CliRunner()

CLOCK_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path, mock_home):
    return tmp_path / "store.yaml"


@pytest.fixture(autouse=True)
def fixed_clock():
    clock = FixedClock(CLOCK_TIME)
    with patch("noetica.infrastructure.clock.SystemClock.now", side_effect=clock.now):
        yield clock


def invoke(store, *args):
    return runner.invoke(app, ["--store", str(store), *args])


def add_deck(store, name="Biology") -> str:
    result = invoke(store, "deck", "add", name)
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


def add_card(store, deck_id, front="Q", back="A") -> str:
    result = invoke(store, "card", "add", deck_id, front, back)
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "spaced-repetition scheduling" in result.stdout
    assert "review" in result.stdout
    assert "stats" in result.stdout


# --- Decks and cards ---


def test_deck_add_and_list(store):
    deck_id = add_deck(store, "Chemistry")
    assert deck_id.startswith("deck_")

    result = invoke(store, "deck", "list")
    assert result.exit_code == 0
    assert f"{deck_id}  Chemistry  0%" in result.stdout


def test_deck_list_empty(store):
    result = invoke(store, "deck", "list")
    assert result.exit_code == 0
    assert "No decks found." in result.stdout


def test_card_add_requires_existing_deck(store):
    result = invoke(store, "card", "add", "deck_missing", "Q", "A")
    assert result.exit_code == 1
    assert "Deck not found" in result.output


# --- Study flow ---


def test_review_flow(store, fixed_clock):
    deck_id = add_deck(store)
    card_id = add_card(store, deck_id, "Capital of France?", "Paris")
    add_card(store, deck_id, "Capital of Spain?", "Madrid")

    result = invoke(store, "due")
    assert result.exit_code == 0
    assert "Capital of France?" in result.stdout

    result = invoke(store, "review", card_id, "easy")
    assert result.exit_code == 0, result.output
    assert "Next review: 2024-01-02 12:00 (interval 1d, ease 2.36, streak 1)" in result.stdout
    assert "Deck mastery: 50%" in result.stdout

    result = invoke(store, "stats", "--deck", deck_id, "--json")
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data == {
        "due_cards": 1,
        "new_cards": 1,
        "total_cards": 2,
        "reviewed_today": 1,
        "has_cards_to_review": True,
    }

    fixed_clock.advance(days=1)
    result = invoke(store, "due", "--deck", deck_id)
    assert card_id in result.stdout


def test_review_accepts_numeric_quality(store):
    card_id = add_card(store, add_deck(store))

    result = invoke(store, "review", card_id, "0")

    assert result.exit_code == 0
    assert "streak 0" in result.stdout


def test_review_rejects_invalid_quality(store):
    card_id = add_card(store, add_deck(store))

    result = invoke(store, "review", card_id, "7")

    assert result.exit_code == 2
    assert "Invalid review quality" in result.output


def test_review_unknown_card(store):
    result = invoke(store, "review", "card_missing", "good")
    assert result.exit_code == 1
    assert "Card not found" in result.output


def test_new_lists_oldest_first_with_limit(store, fixed_clock):
    deck_id = add_deck(store)
    first = add_card(store, deck_id, "first")
    fixed_clock.advance(minutes=1)
    second = add_card(store, deck_id, "second")
    fixed_clock.advance(minutes=1)
    add_card(store, deck_id, "third")

    result = invoke(store, "new", "--limit", "2")

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert [line.split()[0] for line in lines] == [first, second]


def test_overview_json(store):
    deck_id = add_deck(store)
    card_id = add_card(store, deck_id)
    history_id = add_deck(store, "History")
    invoke(store, "review", card_id, "good")

    result = invoke(store, "overview", "--json")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["total_decks"] == 2
    assert data["total_cards"] == 1
    assert data["average_mastery"] == 0.5
    assert data["deck_card_counts"] == {deck_id: 1, history_id: 0}


def test_corrupt_store_reports_storage_error(store):
    store.write_text("decks: [oops\n", encoding="utf-8")

    result = invoke(store, "deck", "list")

    assert result.exit_code == 1
    assert "Storage error" in result.output


def test_stats_text_for_empty_store(store):
    result = invoke(store, "stats")
    assert result.exit_code == 0
    assert "Due: 0  New: 0  Total: 0  Reviewed today: 0" in result.stdout
    assert "Nothing to study right now." in result.stdout


# --- Config ---


def test_config_show(store):
    result = invoke(store, "config", "show")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["store_path"] == str(store.resolve())
    assert data["backend"] == "yaml"
    assert data["verbose"] == 1


def test_verbose_flag_overrides_config(store, monkeypatch):
    monkeypatch.setenv("NOETICA_VERBOSE", "1")

    result = invoke(store, "-v", "config", "show")

    assert result.exit_code == 0
    assert json.loads(result.stdout)["verbose"] == 2
    assert logging.getLogger().level == logging.INFO


# --- Logging ---


def test_verbose_from_environment_sets_debug_level(store, monkeypatch):
    monkeypatch.setenv("NOETICA_VERBOSE", "3")

    result = invoke(store, "deck", "list")

    assert result.exit_code == 0
    assert logging.getLogger().level == logging.DEBUG


def test_log_file_written_to_log_dir(store, tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("NOETICA_LOG_DIR", str(log_dir))

    add_deck_result = invoke(store, "-vv", "deck", "add", "Biology")
    assert add_deck_result.exit_code == 0, add_deck_result.output

    log_file = log_dir / "noetica.log"
    assert log_file.exists()
    assert "Committed 1 decks" in log_file.read_text()


@patch("subprocess.run")
def test_logs_opens_log_dir(mock_run, store, tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("NOETICA_LOG_DIR", str(log_dir))
    monkeypatch.setattr("sys.platform", "linux")

    result = invoke(store, "logs")

    assert result.exit_code == 0
    assert log_dir.is_dir()
    mock_run.assert_called_once_with(["xdg-open", str(log_dir.resolve())])


# --- Server ---


@patch("uvicorn.run")
def test_serve_command(mock_run):
    result = runner.invoke(app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    mock_run.assert_called_with("noetica.server:app", host="127.0.0.1", port=9000, reload=False)


def test_due_empty(store):
    result = invoke(store, "due")
    assert result.exit_code == 0
    assert "No cards due." in result.stdout
