"""
Канал исходящих событий ранжирования
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from photorank.exceptions import EventChannelError
from photorank.ids import ItemId
from photorank.logger import get_logger


@dataclass
class ScoreChanged:
    """Рейтинг элемента изменился"""

    item_id: ItemId
    score: int
    rank: Optional[int]
    delta: int  # Со знаком: отрицательный для декремента
    timestamp: float = field(default_factory=time.time)

    kind = "score_changed"

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind,
            "item_id": self.item_id,
            "score": self.score,
            "rank": self.rank,
            "delta": self.delta,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ScoreChanged":
        return cls(
            item_id=data["item_id"],
            score=data["score"],
            rank=data.get("rank"),
            delta=data.get("delta", 0),
            timestamp=data.get("timestamp", time.time()),
        )


Handler = Callable[[ScoreChanged], Awaitable[None]]


class EventChannel:
    """
    Ограниченная очередь событий с фоновой доставкой подписчикам

    publish() никогда не блокирует вызывающего: при переполнении очереди
    событие отбрасывается по политике drop_policy. Ошибка подписчика
    повторяется до max_retries раз, затем событие для него теряется.
    """

    DROP_POLICIES = ["drop_oldest", "drop_new"]

    def __init__(
        self,
        queue_size: int = 1000,
        drop_policy: str = "drop_oldest",
        max_retries: int = 3,
        retry_delay: float = 0.5,
    ):
        if drop_policy not in self.DROP_POLICIES:
            raise ValueError(f"Unknown drop policy: {drop_policy}")

        self.drop_policy = drop_policy
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.handlers: List[Handler] = []

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._task: Optional[asyncio.Task] = None
        self._closed = False

        self.published = 0
        self.dropped = 0
        self.failed = 0

        self.logger = get_logger("events.channel")

    def subscribe(self, handler: Handler) -> None:
        """Подписка на все события канала"""
        self.handlers.append(handler)

    def publish(self, event: ScoreChanged) -> bool:
        """
        Публикация события без ожидания

        Returns:
            True если событие поставлено в очередь

        Raises:
            EventChannelError: Если канал закрыт
        """
        if self._closed:
            raise EventChannelError("Event channel is closed")

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            if self.drop_policy == "drop_new":
                self.logger.warning("Event queue full, dropping new event", kind=event.kind)
                return False

            self._queue.get_nowait()
            self._queue.task_done()
            self._queue.put_nowait(event)
            self.logger.warning("Event queue full, dropped oldest event", kind=event.kind)

        self.published += 1
        return True

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Запуск фоновой доставки"""
        if self.is_running:
            return
        self._closed = False
        self._task = asyncio.create_task(self._dispatch())
        self.logger.debug("Event channel started", handlers=len(self.handlers))

    async def stop(self, drain: bool = True) -> None:
        """
        Остановка канала

        Args:
            drain: Дождаться доставки событий, уже находящихся в очереди
        """
        self._closed = True

        if not self.is_running:
            return

        if drain:
            await self._queue.join()

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        self.logger.debug(
            "Event channel stopped",
            published=self.published,
            dropped=self.dropped,
            failed=self.failed,
        )

    async def _dispatch(self) -> None:
        """Доставка событий подписчикам"""
        while True:
            event = await self._queue.get()
            try:
                for handler in self.handlers:
                    await self._deliver(handler, event)
            finally:
                self._queue.task_done()

    async def _deliver(self, handler: Handler, event: ScoreChanged) -> bool:
        for attempt in range(self.max_retries + 1):
            try:
                await handler(event)
                return True
            except Exception as e:
                self.logger.warning(
                    "Event handler failed",
                    kind=event.kind,
                    item_id=event.item_id,
                    attempt=attempt + 1,
                    error=str(e),
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay)

        self.failed += 1
        self.logger.error("Event dropped after retries", kind=event.kind, item_id=event.item_id)
        return False
