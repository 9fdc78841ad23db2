"""
Упорядоченное хранилище рейтингов
"""

import threading
from abc import ABC, abstractmethod
from numbers import Integral
from typing import Dict, List, Optional, Tuple

from sortedcontainers import SortedList

from photorank.exceptions import InvalidDeltaError
from photorank.ids import ItemId
from photorank.logger import get_logger


def validate_delta(delta) -> int:
    """
    Проверка величины изменения рейтинга

    Инкремент и декремент принимают неотрицательную целую величину,
    направление задается самой операцией.

    Raises:
        InvalidDeltaError: Если delta не целое число или отрицательна
    """
    if isinstance(delta, bool) or not isinstance(delta, Integral):
        raise InvalidDeltaError(f"Delta must be a finite integer, got {delta!r}")
    if delta < 0:
        raise InvalidDeltaError(f"Delta must be non-negative, got {delta}")
    return int(delta)


class ScoreStore(ABC):
    """Упорядоченное отображение ID элемента -> рейтинг"""

    def __init__(self, floor: Optional[int] = 0):
        self.floor = floor

    def _clamp(self, score: int) -> int:
        if self.floor is not None and score < self.floor:
            return self.floor
        return score

    async def increment(self, item_id: ItemId, delta: int = 1) -> int:
        """Атомарное увеличение рейтинга, запись создается при отсутствии"""
        return await self._apply(item_id, validate_delta(delta))

    async def decrement(self, item_id: ItemId, delta: int = 1) -> int:
        """Атомарное уменьшение рейтинга (с ограничением снизу floor)"""
        return await self._apply(item_id, -validate_delta(delta))

    @abstractmethod
    async def _apply(self, item_id: ItemId, signed_delta: int) -> int:
        """Атомарное применение изменения со знаком"""

    @abstractmethod
    async def score(self, item_id: ItemId) -> Optional[int]:
        """Рейтинг элемента или None, если элемент не оценивался"""

    @abstractmethod
    async def rank(self, item_id: ItemId) -> Optional[int]:
        """Позиция элемента (с 0) по убыванию рейтинга"""

    @abstractmethod
    async def top_n(self, n: int) -> List[Tuple[ItemId, int]]:
        """n элементов с наибольшим рейтингом, по убыванию"""

    @abstractmethod
    async def revrange(self, start: int, end: int) -> List[ItemId]:
        """Срез порядка по убыванию, границы включительно (end=-1 - до конца)"""

    @abstractmethod
    async def count(self) -> int:
        """Количество оцененных элементов"""

    async def members(self) -> List[ItemId]:
        """Полный порядок по убыванию рейтинга"""
        return await self.revrange(0, -1)

    async def close(self) -> None:
        """Освобождение ресурсов хранилища"""


class MemoryScoreStore(ScoreStore):
    """
    In-memory хранилище на SortedList с ключами (-score, id)

    Чтение-изменение-запись одного элемента выполняется под блокировкой
    его страйпа, поэтому изменения разных элементов не сериализуются
    целиком. Короткая блокировка индекса держится только на время
    O(log N) перестановки ключа в SortedList.
    """

    def __init__(self, floor: Optional[int] = 0, lock_stripes: int = 64):
        super().__init__(floor=floor)
        self._scores: Dict[ItemId, int] = {}
        self._index = SortedList()
        self._stripes = [threading.Lock() for _ in range(max(1, lock_stripes))]
        self._index_lock = threading.Lock()
        self.logger = get_logger("ranking.store")

    def _stripe(self, item_id: ItemId) -> threading.Lock:
        return self._stripes[hash(item_id) % len(self._stripes)]

    async def _apply(self, item_id: ItemId, signed_delta: int) -> int:
        with self._stripe(item_id):
            old = self._scores.get(item_id)
            new = self._clamp((old or 0) + signed_delta)

            with self._index_lock:
                if old is not None:
                    self._index.remove((-old, item_id))
                self._index.add((-new, item_id))
                self._scores[item_id] = new

        return new

    async def score(self, item_id: ItemId) -> Optional[int]:
        return self._scores.get(item_id)

    async def rank(self, item_id: ItemId) -> Optional[int]:
        with self._index_lock:
            current = self._scores.get(item_id)
            if current is None:
                return None
            return self._index.index((-current, item_id))

    async def top_n(self, n: int) -> List[Tuple[ItemId, int]]:
        if n <= 0:
            return []
        with self._index_lock:
            head = list(self._index.islice(0, n))
        return [(item_id, -neg_score) for neg_score, item_id in head]

    async def revrange(self, start: int, end: int) -> List[ItemId]:
        with self._index_lock:
            size = len(self._index)
            if start < 0:
                start += size
            if end < 0:
                end += size
            start = max(start, 0)
            end = min(end, size - 1)
            if start > end:
                return []
            return [item_id for _, item_id in self._index.islice(start, end + 1)]

    async def count(self) -> int:
        return len(self._scores)

    def dump(self) -> Dict[ItemId, int]:
        """Копия всех рейтингов (для снимка)"""
        with self._index_lock:
            return dict(self._scores)

    def restore(self, scores: Dict[ItemId, int]) -> None:
        """Замена содержимого хранилища рейтингами из снимка"""
        with self._index_lock:
            self._scores = dict(scores)
            self._index = SortedList((-score, item_id) for item_id, score in self._scores.items())

        self.logger.info("Score store restored", items=len(self._scores))
