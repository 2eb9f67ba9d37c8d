"""
LDK Server Console

Graphical client for an LDK Server node.

Architecture:
- domain/: Operation keys, application state and form entities
- application/: Operation registry, console controller and poll scheduling
- infrastructure/: Task dispatchers, API client, configuration and logging
- presentation/: View models and the Tk desktop window
- tui/: Textual terminal frontend
"""

__version__ = "0.1.0"
