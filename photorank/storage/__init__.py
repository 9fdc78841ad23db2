"""
Модуль снимков хранилища
"""

from .snapshot import load_snapshot, save_snapshot

__all__ = [
    "load_snapshot",
    "save_snapshot",
]
