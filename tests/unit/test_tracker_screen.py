"""Unit tests for the terminal TrackerScreen."""

import io
from unittest.mock import Mock

import pytest
from rich.console import Console

from sleeptracker.ui.tracker_screen import TrackerScreen

HOUR_MS = 3600 * 1000


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=100)


@pytest.fixture
def screen(factory, console):
    tracker_screen = TrackerScreen(factory, console=console)
    tracker_screen.open()
    yield tracker_screen
    tracker_screen.close()


@pytest.mark.unit
class TestTrackerScreen:
    """Test cases for TrackerScreen."""

    def test_initial_commands(self, screen):
        assert screen.available_commands() == ["s"]

    def test_start_shows_stop_and_clear(self, screen):
        assert screen.handle_command("s")
        assert screen.available_commands() == ["t", "c"]

    def test_unavailable_command(self, screen):
        assert screen.handle_command("t")
        assert screen.messages == ["Command 't' not available"]

    def test_quit(self, screen):
        assert screen.handle_command("q") is False

    def test_stop_then_rate(self, screen, store, fake_clock):
        screen.handle_command("s")
        fake_clock.advance(7 * HOUR_MS)
        screen.handle_command("t")

        stopped = screen.pending_rating
        assert stopped is not None
        assert screen.tracker.proceed_to_rating_signal.value is None

        old_tracker = screen.tracker
        assert screen.rate(4) is True

        assert store.get(stopped.session_id).quality == 4
        assert screen.pending_rating is None
        assert old_tracker.is_torn_down
        assert screen.tracker is not old_tracker
        assert screen.available_commands() == ["s", "c"]
        assert "Rated session" in screen.messages[-1]

    def test_rate_without_pending_session(self, screen):
        assert screen.rate(3) is False

    def test_clear_shows_snackbar_once(self, screen):
        screen.handle_command("s")
        screen.handle_command("c")

        assert screen.messages == ["All sleep data cleared"]
        assert screen.tracker.snackbar_signal.value is False
        assert screen.available_commands() == ["s"]

    def test_rating_prompt_rejects_non_decimal_digits(self, screen, console, store, fake_clock):
        screen.handle_command("s")
        fake_clock.advance(HOUR_MS)
        screen.handle_command("t")
        stopped = screen.pending_rating
        console.input = Mock(side_effect=["\u00b2", "3"])

        screen.prompt_rating()

        assert store.get(stopped.session_id).quality == 3
        assert "Please enter a number between 0 and 5" in console.file.getvalue()

    def test_render(self, screen, console):
        screen.handle_command("s")
        screen.render()

        output = console.file.getvalue()
        assert "SleepTracker" in output
        assert "Session #1" in output
        assert "Stop" in output
        assert "Last change: inserted" in output

    def test_run_loop(self, factory, console, store, fake_clock):
        tracker_screen = TrackerScreen(factory, console=console)

        def answers():
            yield "s"
            fake_clock.advance(HOUR_MS)
            yield "t"
            yield "9"
            yield "2"
            yield "q"

        console.input = Mock(side_effect=answers())

        tracker_screen.run()

        assert store.get_latest().quality == 2
        assert tracker_screen.tracker is None
        assert "between 0 and 5" in console.file.getvalue()
