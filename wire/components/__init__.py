"""
Built-in interactive components.
"""

from wire.components.counter import Counter

__all__ = ['Counter']
