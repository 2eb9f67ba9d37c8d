"""
Terminal frontend, running every operation on the app's event loop.
"""
from .app import ConsoleTUI, run_tui

__all__ = ["ConsoleTUI", "run_tui"]
