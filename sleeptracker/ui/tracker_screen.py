"""Terminal front end for the sleep tracker."""

import logging
from typing import List, Optional

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..controllers.factory import ControllerFactory
from ..controllers.tracker import SessionTrackingController
from ..models.events import SessionStoreEvent
from ..models.session import MIN_QUALITY, MAX_QUALITY, QUALITY_LABELS, SessionRecord

logger = logging.getLogger(__name__)

COMMANDS = [
    ("s", "Start", "start_visible"),
    ("t", "Stop", "stop_visible"),
    ("c", "Clear", "clear_visible"),
]


class TrackerScreen:
    """Renders a tracking controller and turns key presses into its operations.

    Signals raised by the controllers are recorded by observers (which run
    on the foreground thread) and handled here, on the caller's thread,
    after each command.
    """

    def __init__(self, factory: ControllerFactory, console: Optional[Console] = None, join_timeout: float = 5.0):
        self.factory = factory
        self.console = console or Console()
        self.join_timeout = join_timeout
        self.tracker: Optional[SessionTrackingController] = None
        self.messages: List[str] = []
        self.pending_rating: Optional[SessionRecord] = None
        self.last_store_event: Optional[SessionStoreEvent] = None
        self._snackbar_pending = False
        pub.subscribe(self._on_store_event, factory.store.topic)

    def _on_store_event(self, event: SessionStoreEvent) -> None:
        # Called on the IO thread that wrote
        self.last_store_event = event

    def open(self) -> SessionTrackingController:
        """Show a fresh tracking controller (tears down the previous one)."""
        if self.tracker is not None:
            self.tracker.teardown()
        self.tracker = self.factory.tracker()
        self.tracker.snackbar_signal.observe(self._on_snackbar)
        self.tracker.proceed_to_rating_signal.observe(self._on_proceed_to_rating)
        self._wait(self.tracker)
        return self.tracker

    def close(self) -> None:
        if self.tracker is not None:
            self.tracker.teardown()
            self.tracker = None

    def _wait(self, controller) -> None:
        if not controller.scope.join(self.join_timeout):
            logger.warning(f"Timed out waiting for {controller.scope.name}")

    def _on_snackbar(self, value: bool) -> None:
        if value:
            self._snackbar_pending = True

    def _on_proceed_to_rating(self, session: Optional[SessionRecord]) -> None:
        if session is not None:
            self.pending_rating = session

    def available_commands(self) -> List[str]:
        keys = []
        for key, _, visibility in COMMANDS:
            if getattr(self.tracker, visibility).value:
                keys.append(key)
        return keys

    def handle_command(self, key: str) -> bool:
        """Run one command; returns False when the user asked to quit."""
        key = key.strip().lower()
        if key == "q":
            return False
        if key not in self.available_commands():
            self.messages.append(f"Command '{key}' not available")
            return True

        if key == "s":
            self.tracker.start()
        elif key == "t":
            self.tracker.stop()
        elif key == "c":
            self.tracker.clear()
        self._wait(self.tracker)
        self._handle_signals()
        return True

    def _handle_signals(self) -> None:
        if self._snackbar_pending:
            self._snackbar_pending = False
            self.messages.append("All sleep data cleared")
            self.tracker.acknowledge_snackbar()
        if self.pending_rating is not None:
            self.tracker.acknowledge_proceed_to_rating()

    def rate(self, rating: int) -> bool:
        """Rate the session that was just stopped, then reopen the tracker.

        Returns:
            True if the rating was stored
        """
        session = self.pending_rating
        if session is None:
            return False

        quality = self.factory.quality(session.session_id)
        stored = False
        try:
            quality.set_quality(rating)
            self._wait(quality)
            stored = quality.proceed_signal.pending
            if stored:
                quality.acknowledge_proceed()
                self.messages.append(f"Rated session #{session.session_id}: {QUALITY_LABELS[rating]}")
        finally:
            quality.teardown()

        self.pending_rating = None
        self.open()
        return stored

    def render(self) -> None:
        self.console.clear()
        self.console.print("😴  SleepTracker", style="bold blue")

        text = self.tracker.display_text.value or ""
        self.console.print(Panel(text, title="History", expand=False))

        table = Table(show_header=False, box=None)
        for key, label, visibility in COMMANDS:
            if getattr(self.tracker, visibility).value:
                table.add_row(f"[bold]{key}[/bold]", label)
        table.add_row("[bold]q[/bold]", "Quit")
        self.console.print(table)

        if self.last_store_event is not None:
            event = self.last_store_event
            self.console.print(f"Last change: {event.action} at {event.timestamp:%H:%M:%S}", style="dim")
        for message in self.messages:
            self.console.print(message, style="green")
        self.messages.clear()

    def prompt_rating(self) -> None:
        labels = ", ".join(f"{q}={QUALITY_LABELS[q]}" for q in range(MIN_QUALITY, MAX_QUALITY + 1))
        while self.pending_rating is not None:
            answer = self.console.input(f"How did you sleep? ({labels}): ").strip()
            if answer.isdecimal() and MIN_QUALITY <= int(answer) <= MAX_QUALITY:
                self.rate(int(answer))
            else:
                self.console.print("Please enter a number between 0 and 5", style="red")

    def run(self) -> None:
        """Interactive loop until the user quits."""
        self.open()
        try:
            while True:
                self.render()
                key = self.console.input("> ")
                if not self.handle_command(key):
                    break
                self.prompt_rating()
        finally:
            self.close()
