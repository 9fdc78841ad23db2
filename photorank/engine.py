"""
Движок ранжирования: сборка компонентов и жизненный цикл
"""

import asyncio
from typing import Optional

from photorank.catalog.base import ItemCatalog
from photorank.config import Config
from photorank.decay.policy import DecayPolicy
from photorank.decay.scheduler import DecayScheduler
from photorank.events.channel import EventChannel
from photorank.exceptions import InvalidBackendError
from photorank.logger import setup_logging
from photorank.ranking.redis_store import (
    RedisHighWaterTracker,
    RedisScoreStore,
    create_client,
)
from photorank.ranking.service import RankingService
from photorank.ranking.store import MemoryScoreStore
from photorank.ranking.watermark import MemoryHighWaterTracker
from photorank.storage.snapshot import load_snapshot, save_snapshot

ID_TYPES = {"int": int, "str": str}


class RankingEngine:
    """Экземпляр движка: хранилище, отметки, сервис, затухание и события"""

    BACKENDS = ["memory", "redis"]

    def __init__(self, config: Config, catalog: Optional[ItemCatalog] = None, name: str = "default"):
        self.config = config
        self.backend = config.store.backend

        if self.backend not in self.BACKENDS:
            raise InvalidBackendError(f"Invalid store backend: {self.backend}")
        if config.store.id_type not in ID_TYPES:
            raise InvalidBackendError(f"Invalid id type: {config.store.id_type}")

        self.logger = setup_logging(
            log_level=config.log_level, log_file=config.log_file, instance=name
        )
        self.logger = self.logger.bind(backend=self.backend)

        self.redis_client = None
        if self.backend == "redis":
            self.redis_client = create_client(
                config.store.redis_url, socket_timeout=config.store.socket_timeout
            )
            prefix = config.store.key_prefix
            self.store = RedisScoreStore(
                self.redis_client,
                key=f"{prefix}:rankings",
                floor=config.ranking.score_floor,
                id_type=ID_TYPES[config.store.id_type],
            )
            self.tracker = RedisHighWaterTracker(self.redis_client, key=f"{prefix}:highest_rank")
        else:
            self.store = MemoryScoreStore(
                floor=config.ranking.score_floor, lock_stripes=config.store.lock_stripes
            )
            self.tracker = MemoryHighWaterTracker(lock_stripes=config.store.lock_stripes)

        self.channel = EventChannel(
            queue_size=config.events.queue_size,
            drop_policy=config.events.drop_policy,
            max_retries=config.events.max_retries,
            retry_delay=config.events.retry_delay,
        )

        self.catalog = catalog
        self.service = RankingService(
            self.store, self.tracker, catalog=catalog, channel=self.channel
        )

        self.scheduler = DecayScheduler(
            self.service,
            policy=DecayPolicy(
                outlier_factor=config.decay.outlier_factor,
                outlier_ratio=config.decay.outlier_ratio,
                stale_ratio=config.decay.stale_ratio,
                freshness_window=config.decay.freshness_window,
            ),
            catalog=catalog,
            top_k=config.decay.top_k,
            interval=config.decay.interval,
            max_retries=config.decay.max_retries,
        )

        self.is_running = False
        self.start_time: Optional[float] = None

        self.logger.info("Engine initialized")

    async def start(self, run_decay: Optional[bool] = None):
        """
        Запуск движка

        Args:
            run_decay: Запускать ли периодическое затухание
                (по умолчанию из config.decay.enabled)
        """
        if self.is_running:
            return

        self.logger.info("Starting engine")

        self._restore_snapshot()

        await self.channel.start()

        if run_decay is None:
            run_decay = self.config.decay.enabled
        if run_decay:
            await self.scheduler.start()

        self.is_running = True
        self.start_time = asyncio.get_running_loop().time()

        self.logger.info("Engine started", decay=run_decay)

    async def stop(self):
        """Остановка движка"""
        if not self.is_running:
            return

        self.logger.info("Stopping engine")
        self.is_running = False

        await self.scheduler.stop()
        await self.channel.stop(drain=True)

        self._save_snapshot()

        await self.store.close()
        await self.tracker.close()
        if self.redis_client is not None:
            await self.redis_client.aclose()

        self.logger.info("Engine stopped")

    async def __aenter__(self) -> "RankingEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    def _restore_snapshot(self):
        snapshot_file = self.config.store.snapshot_file
        if self.backend != "memory" or snapshot_file is None:
            return

        scores, watermarks = load_snapshot(snapshot_file)
        self.store.restore(scores)
        self.tracker.restore(watermarks)

    def _save_snapshot(self):
        snapshot_file = self.config.store.snapshot_file
        if self.backend != "memory" or snapshot_file is None:
            return

        save_snapshot(snapshot_file, self.store.dump(), self.tracker.dump())
