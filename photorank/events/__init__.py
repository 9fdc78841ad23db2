"""
Модуль исходящих событий
"""

from .channel import EventChannel, ScoreChanged

__all__ = [
    "EventChannel",
    "ScoreChanged",
]
