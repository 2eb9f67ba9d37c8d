"""
LDK Server Console - Main Entry Point

Usage:
    python -m ldk_console --frontend tk
    python -m ldk_console --frontend tui --config ./ldk-server-config.toml
    python -m ldk_console --help
"""
from typing import List, Optional
import argparse
import logging
import os
import sys

from ldk_console import __version__
from ldk_console.application import NodeConsole
from ldk_console.infrastructure.logging import setup_logging
from ldk_console.infrastructure.settings import ConsoleSettings, FRONTENDS
from ldk_console.infrastructure.tasks import Substrate, create_dispatcher

logger = logging.getLogger(__name__)

# Each frontend runs on the substrate its event model allows
FRONTEND_SUBSTRATES = {
    "tk": Substrate.WORKER_POOL,
    "tui": Substrate.EVENT_LOOP,
}


def build_console(settings: ConsoleSettings) -> NodeConsole:
    """Create the controller for the selected frontend and apply any config found."""
    substrate = FRONTEND_SUBSTRATES[settings.frontend]
    dispatcher = create_dispatcher(substrate)

    console = NodeConsole(dispatcher, request_timeout=settings.request_timeout)
    if settings.config_path:
        console.load_config_file(settings.config_path)
    else:
        console.load_default_config()
    return console


def run_desktop_gui(settings: ConsoleSettings) -> None:
    """Run the desktop GUI (Tkinter)."""
    if sys.platform != 'win32' and not os.environ.get('DISPLAY'):
        print("Error: No display available.")
        print("For headless servers, use --frontend tui instead.")
        sys.exit(1)

    from ldk_console.presentation.views import MainWindow

    console = build_console(settings)
    window = MainWindow(console, poll_interval=settings.poll_interval)
    window.run()


def run_tui_gui(settings: ConsoleSettings) -> None:
    """Run the terminal TUI (Textual)."""
    from ldk_console.tui import ConsoleTUI

    console = build_console(settings)
    app = ConsoleTUI(console, poll_interval=settings.poll_interval)
    app.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ldk-console",
        description="Desktop and terminal console for LDK Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Frontends:
  tk   Desktop window (requires display); operations run on a worker pool
  tui  Terminal UI that works over SSH; operations run on its event loop

Examples:
  %(prog)s --frontend tui
  %(prog)s --config ../ldk-server/ldk-server-config.toml
"""
    )
    parser.add_argument(
        "-f", "--frontend",
        choices=FRONTENDS,
        default=None,
        help="Frontend to run (default: tk, or $LDK_CONSOLE_FRONTEND)"
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to ldk-server-config.toml (default: search standard locations)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Console log level (default: INFO)"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="Emit JSON log lines"
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Also write DEBUG logs as JSON to this directory"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"LDK Server Console {__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = ConsoleSettings.from_env().with_overrides(
        frontend=args.frontend,
        config_path=args.config,
        log_level=args.log_level,
        json_logs=args.json_logs,
        log_dir=args.log_dir,
    )

    # The TUI owns the terminal, so its logs go to the file only
    setup_logging(
        level=settings.log_level,
        json_output=settings.json_logs,
        log_file=settings.log_file,
        console=settings.frontend != "tui",
    )
    logger.info(f"Starting {settings.frontend} frontend", extra={"fields": settings.to_dict()})

    if settings.frontend == "tui":
        run_tui_gui(settings)
    else:
        run_desktop_gui(settings)


if __name__ == "__main__":
    main()
