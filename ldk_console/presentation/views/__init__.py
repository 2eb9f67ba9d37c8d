"""
Tkinter-based views for the console.
"""
from .main_window import MainWindow

__all__ = [
    'MainWindow',
]
