"""
Сервис ранжирования: публичные операции над рейтингами
"""

import statistics
from typing import List, Optional

from photorank.catalog.base import ItemCatalog, Viewer
from photorank.events.channel import EventChannel, ScoreChanged
from photorank.exceptions import EventChannelError, StoreError
from photorank.ids import ItemId
from photorank.logger import get_logger
from photorank.ranking.store import ScoreStore, validate_delta
from photorank.ranking.watermark import HighWaterTracker


class RankingService:
    """
    Рейтинги элементов, отметки наивысших позиций и рекомендации

    Пример использования:
        ```python
        store = MemoryScoreStore()
        service = RankingService(store, MemoryHighWaterTracker())

        await service.increment_score(42, 5)
        rank = await service.current_rank(42)  # 0
        ids = await service.recommended(limit=10)
        ```
    """

    def __init__(
        self,
        store: ScoreStore,
        tracker: HighWaterTracker,
        catalog: Optional[ItemCatalog] = None,
        channel: Optional[EventChannel] = None,
    ):
        self.store = store
        self.tracker = tracker
        self.catalog = catalog
        self.channel = channel
        self.logger = get_logger("ranking.service")

    async def increment_score(self, item_id: ItemId, delta: int = 1) -> int:
        """
        Увеличение рейтинга элемента

        После изменения вычисляется новая позиция и передается
        в HighWaterTracker, поэтому отметка может улучшиться.

        Returns:
            Новый рейтинг

        Raises:
            InvalidDeltaError: Недопустимая величина delta
            StoreUnavailableError: Хранилище недоступно
        """
        score = await self.store.increment(item_id, delta)

        rank = await self._rank_after_commit(item_id, observe=True)
        self._emit(item_id, score, rank, delta)
        return score

    async def decrement_score(self, item_id: ItemId, delta: int = 1) -> int:
        """
        Уменьшение рейтинга элемента

        Текущая позиция фиксируется в HighWaterTracker до снижения.

        Returns:
            Новый рейтинг
        """
        delta = validate_delta(delta)

        rank = await self.store.rank(item_id)
        if rank is not None:
            await self.tracker.observe(item_id, rank)

        score = await self.store.decrement(item_id, delta)

        rank = await self._rank_after_commit(item_id)
        self._emit(item_id, score, rank, -delta)
        return score

    async def current_score(self, item_id: ItemId) -> int:
        """Рейтинг элемента (0 если элемент не оценивался)"""
        score = await self.store.score(item_id)
        return score if score is not None else 0

    async def current_rank(self, item_id: ItemId) -> Optional[int]:
        """Позиция элемента или None, если элемент не ранжирован"""
        return await self.store.rank(item_id)

    async def highest_rank(self, item_id: ItemId) -> Optional[int]:
        """Лучшая позиция элемента за все время"""
        return await self.tracker.get(item_id)

    async def recommended(
        self, limit: Optional[int] = None, viewer: Optional[Viewer] = None
    ) -> List[ItemId]:
        """
        Рекомендуемые элементы в порядке рейтинга

        Args:
            limit: Сколько элементов с вершины взять (None или <= 0 - все)
            viewer: Зритель для фильтра видимости каталога

        Returns:
            Список ID; элементы без метаданных или невидимые зрителю
            пропускаются
        """
        if limit is not None and limit > 0:
            item_ids = [item_id for item_id, _ in await self.store.top_n(limit)]
        else:
            item_ids = await self.store.members()

        if self.catalog is None or not item_ids:
            return item_ids

        records = await self.catalog.get_items(item_ids)
        visible = [
            item_id
            for item_id in item_ids
            if item_id in records and self.catalog.is_visible(records[item_id], viewer)
        ]

        if len(visible) < len(item_ids):
            self.logger.debug(
                "Filtered recommendations", requested=len(item_ids), visible=len(visible)
            )

        return visible

    async def median_score(self, n: int) -> float:
        """
        Медиана рейтингов топ-n элементов

        Для четного количества - среднее двух средних значений.
        Пустое хранилище дает 0.0.
        """
        if n <= 0:
            raise ValueError(f"n must be positive, got {n}")

        top = await self.store.top_n(n)
        if not top:
            return 0.0

        return float(statistics.median(score for _, score in top))

    async def _rank_after_commit(self, item_id: ItemId, observe: bool = False) -> Optional[int]:
        """
        Позиция элемента после записанного изменения

        Изменение уже сохранено, поэтому ошибка хранилища здесь не
        передается вызывающему: позиция события становится None,
        а отметка не обновляется.
        """
        try:
            rank = await self.store.rank(item_id)
            if observe and rank is not None:
                await self.tracker.observe(item_id, rank)
            return rank
        except StoreError as e:
            self.logger.warning("Rank lookup after update failed", item_id=item_id, error=str(e))
            return None

    def _emit(self, item_id: ItemId, score: int, rank: Optional[int], delta: int) -> None:
        if self.channel is None:
            return
        try:
            self.channel.publish(ScoreChanged(item_id=item_id, score=score, rank=rank, delta=delta))
        except EventChannelError as e:
            # Изменение уже записано, событие теряется
            self.logger.warning("Score event not published", item_id=item_id, error=str(e))
