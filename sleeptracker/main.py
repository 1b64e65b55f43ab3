"""Main application entry point for SleepTracker."""

import sys
import argparse
import logging
from pathlib import Path
from typing import Optional

from .concurrency.dispatchers import ForegroundLoop, create_io_executor
from .config import SleepTrackerConfig
from .controllers.factory import ControllerFactory
from .formatting import format_sessions
from .storage.session_store import SessionStore
from .ui.tracker_screen import TrackerScreen

logger = logging.getLogger(__name__)


class SleepTrackerApp:
    """Wires the foreground loop, IO pool, store and controllers together."""

    def __init__(self, config: SleepTrackerConfig):
        self.config = config
        self.foreground: Optional[ForegroundLoop] = None
        self.io_executor = None
        self.store: Optional[SessionStore] = None
        self.factory: Optional[ControllerFactory] = None

    def init(self) -> None:
        logger.info("Initializing services...")
        self.foreground = ForegroundLoop("sleeptracker-main").start()
        self.io_executor = create_io_executor(self.config.get_io_workers())
        self.store = SessionStore(self.config.get_database_path(), dispatcher=self.foreground.post)
        self.factory = ControllerFactory(self.store, self.foreground, self.io_executor)

    def run(self) -> None:
        try:
            screen = TrackerScreen(self.factory, join_timeout=self.config.get('concurrency.join_timeout', 5.0))
            screen.run()
        finally:
            self.cleanup()

    def list_sessions(self) -> str:
        return format_sessions(self.store.list_sessions())

    def cleanup(self) -> None:
        if self.io_executor is not None:
            self.io_executor.shutdown(wait=True)
            self.io_executor = None
        if self.foreground is not None:
            self.foreground.stop()
        if self.store is not None:
            self.store.close()
            self.store = None
        logger.info("SleepTracker shut down")


def setup_logging(config, level: str = "INFO") -> None:
    """File handler at DEBUG, plus warnings on stderr when console_output is set."""
    log_file_path = config.get('logging.file_path', 'data/logs/sleeptracker.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info(f"SleepTracker starting up (log file {log_file_path}, level {level})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SleepTracker - record sleep sessions and rate them",
        epilog="Commands: s=Start, t=Stop, c=Clear, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--database",
        type=str,
        help="Path to the session database (overrides config)"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the recorded sessions and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="SleepTracker v0.1.0"
    )
    return parser


def main(argv=None) -> None:
    """Main entry point for SleepTracker."""
    args = build_parser().parse_args(argv)

    try:
        config = SleepTrackerConfig(args.config)
        if args.database:
            config.set('storage.database_path', args.database)
        setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

        app = SleepTrackerApp(config)
        app.init()
        if args.list:
            try:
                print(app.list_sessions())
            finally:
                app.cleanup()
        else:
            app.run()
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
