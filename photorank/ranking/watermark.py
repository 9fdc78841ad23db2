"""
Отслеживание наивысшей достигнутой позиции элемента
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from photorank.ids import ItemId


class HighWaterTracker(ABC):
    """Лучшая (наименьшая) позиция элемента за все время"""

    @abstractmethod
    async def observe(self, item_id: ItemId, rank: int) -> int:
        """
        Учет текущей позиции элемента

        Сохраняет rank, только если она лучше сохраненной (или ее нет).
        Обновление атомарно для элемента: побеждает лучшая позиция,
        а не последняя записанная.

        Returns:
            Итоговая отметка элемента
        """

    @abstractmethod
    async def get(self, item_id: ItemId) -> Optional[int]:
        """Отметка элемента или None"""

    async def close(self) -> None:
        """Освобождение ресурсов"""


class MemoryHighWaterTracker(HighWaterTracker):
    """In-memory отметки с блокировками по страйпам"""

    def __init__(self, lock_stripes: int = 64):
        self._marks: Dict[ItemId, int] = {}
        self._stripes = [threading.Lock() for _ in range(max(1, lock_stripes))]

    async def observe(self, item_id: ItemId, rank: int) -> int:
        if rank < 0:
            raise ValueError(f"Rank must be non-negative, got {rank}")

        with self._stripes[hash(item_id) % len(self._stripes)]:
            current = self._marks.get(item_id)
            if current is None or rank < current:
                self._marks[item_id] = rank
                return rank
            return current

    async def get(self, item_id: ItemId) -> Optional[int]:
        return self._marks.get(item_id)

    def dump(self) -> Dict[ItemId, int]:
        return dict(self._marks)

    def restore(self, marks: Dict[ItemId, int]) -> None:
        self._marks = dict(marks)
