"""
State management components.

World snapshots live in disperse.state.world.
"""

from disperse.state.journal import Journal
from disperse.state.book import AccountBook

__all__ = [
    "AccountBook",
    "Journal",
]
