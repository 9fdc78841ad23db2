"""
Периодическое затухание рейтингов
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from photorank.catalog.base import ItemCatalog
from photorank.decay.policy import RULE_NONE, DecayPolicy
from photorank.ids import ItemId
from photorank.logger import get_logger
from photorank.ranking.service import RankingService


@dataclass
class DecayReport:
    """Итоги одного цикла затухания"""

    median: float = 0.0
    examined: int = 0
    unchanged: int = 0
    failed: int = 0
    decayed: Dict[str, int] = field(default_factory=dict)  # правило -> количество
    started_at: float = field(default_factory=time.time)
    duration: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "median": self.median,
            "examined": self.examined,
            "unchanged": self.unchanged,
            "failed": self.failed,
            "decayed": dict(self.decayed),
            "started_at": self.started_at,
            "duration": self.duration,
        }


class DecayScheduler:
    """
    Фоновая задача затухания рейтингов топ-K элементов

    Каждый элемент снижается отдельным вызовом decrement_score, поэтому
    отмена посреди цикла оставляет уже примененные снижения и просто не
    трогает остальные элементы.
    """

    def __init__(
        self,
        service: RankingService,
        policy: Optional[DecayPolicy] = None,
        catalog: Optional[ItemCatalog] = None,
        top_k: int = 20,
        interval: float = 3600,
        max_retries: int = 2,
        clock: Callable[[], float] = time.time,
    ):
        if top_k <= 0:
            raise ValueError(f"top_k must be positive, got {top_k}")

        self.service = service
        self.policy = policy or DecayPolicy()
        self.catalog = catalog
        self.top_k = top_k
        self.interval = interval
        self.max_retries = max_retries
        self.clock = clock

        self.last_report: Optional[DecayReport] = None
        self._task: Optional[asyncio.Task] = None
        self.logger = get_logger("decay.scheduler")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_cycle(self) -> DecayReport:
        """
        Один цикл затухания

        Медиана считается один раз по топ-K, затем для каждого элемента
        заново читается текущий рейтинг и применяется DecayPolicy.
        Ошибка на одном элементе повторяется до max_retries раз, затем
        элемент пропускается; цикл продолжается.
        """
        report = DecayReport(started_at=self.clock())
        started = time.monotonic()

        report.median = await self.service.median_score(self.top_k)
        top = await self.service.store.top_n(self.top_k)

        created = await self._creation_times([item_id for item_id, _ in top])
        now = self.clock()

        for item_id, _ in top:
            report.examined += 1
            rule = await self._decay_item(item_id, report.median, created.get(item_id), now)

            if rule is None:
                report.failed += 1
            elif rule == RULE_NONE:
                report.unchanged += 1
            else:
                report.decayed[rule] = report.decayed.get(rule, 0) + 1

        report.duration = time.monotonic() - started
        self.last_report = report

        self.logger.info(
            "Decay cycle completed",
            median=report.median,
            examined=report.examined,
            decayed=report.decayed,
            failed=report.failed,
            duration=round(report.duration, 3),
        )
        return report

    async def _creation_times(self, item_ids) -> Dict[ItemId, float]:
        if self.catalog is None or not item_ids:
            return {}

        try:
            records = await self.catalog.get_items(item_ids)
        except Exception as e:
            # Без метаданных правило возраста просто не применяется
            self.logger.warning("Catalog lookup failed", count=len(item_ids), error=str(e))
            return {}

        return {item_id: record.created_at for item_id, record in records.items()}

    async def _decay_item(
        self, item_id: ItemId, median: float, created_at: Optional[float], now: float
    ) -> Optional[str]:
        """Снижение одного элемента; None если все попытки завершились ошибкой"""
        for attempt in range(self.max_retries + 1):
            try:
                score = await self.service.current_score(item_id)
                rule, amount = self.policy.decrement_for(score, median, created_at, now)

                if amount <= 0:
                    return RULE_NONE

                new_score = await self.service.decrement_score(item_id, amount)
                self.logger.debug(
                    "Decayed item",
                    item_id=item_id,
                    rule=rule,
                    score=score,
                    decrement=amount,
                    new_score=new_score,
                )
                return rule

            except Exception as e:
                self.logger.warning(
                    "Decay failed for item",
                    item_id=item_id,
                    attempt=attempt + 1,
                    error=str(e),
                )

        self.logger.error("Skipping item after decay retries", item_id=item_id)
        return None

    async def start(self) -> None:
        """Запуск периодической задачи"""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run_forever())
        self.logger.info("Decay scheduler started", interval=self.interval, top_k=self.top_k)

    async def stop(self) -> None:
        """Остановка задачи (текущий цикл прерывается между элементами)"""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        self.logger.info("Decay scheduler stopped")

    async def _run_forever(self) -> None:
        while True:
            try:
                await self.run_cycle()
            except Exception as e:
                self.logger.error("Error in decay cycle", error=str(e), exc_info=True)

            await asyncio.sleep(self.interval)
