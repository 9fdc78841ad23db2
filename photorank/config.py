"""
Модуль конфигурации Photorank
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

load_dotenv()


@dataclass
class StoreConfig:
    """Конфигурация хранилища рейтингов"""
    backend: str = "memory"  # memory, redis
    redis_url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    key_prefix: str = "photorank"
    socket_timeout: float = 5.0  # Таймаут операций Redis (секунды)
    lock_stripes: int = 64  # Количество блокировок для in-memory хранилища
    snapshot_file: Optional[Path] = None  # Снимок in-memory хранилища между перезапусками
    id_type: str = "int"  # int, str


@dataclass
class RankingConfig:
    """Конфигурация ранжирования"""
    score_floor: Optional[int] = 0  # None - разрешить отрицательные рейтинги


@dataclass
class DecayConfig:
    """Конфигурация затухания рейтингов"""
    enabled: bool = True
    interval: int = 3600  # Запуск цикла каждый час
    top_k: int = 20  # Размер рабочего набора (топ-K)
    outlier_factor: float = 2.0  # Выброс: рейтинг > factor * медиана
    outlier_ratio: float = 0.5  # Снижение выбросов на 50%
    stale_ratio: float = 0.1  # Снижение устаревших на 10%
    freshness_window: int = 86400  # 1 день в секундах
    max_retries: int = 2  # Повторы при ошибке для одного элемента


@dataclass
class EventsConfig:
    """Конфигурация канала событий"""
    queue_size: int = 1000
    drop_policy: str = "drop_oldest"  # drop_oldest, drop_new
    max_retries: int = 3
    retry_delay: float = 0.5


@dataclass
class Config:
    """Главная конфигурация"""
    store: StoreConfig = field(default_factory=StoreConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    decay: DecayConfig = field(default_factory=DecayConfig)
    events: EventsConfig = field(default_factory=EventsConfig)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[Path] = None

    @classmethod
    def from_file(cls, config_path: Optional[Path] = None) -> "Config":
        """Загрузка конфигурации из файла"""
        if config_path is None:
            config_path = Path("config.yaml")

        if config_path.exists():
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        else:
            config_data = {}

        store_data = config_data.get("store", {})
        snapshot_file = store_data.get("snapshot_file")

        return cls(
            store=StoreConfig(
                snapshot_file=Path(snapshot_file) if snapshot_file else None,
                **{k: v for k, v in store_data.items() if k != "snapshot_file"}
            ),
            ranking=RankingConfig(**config_data.get("ranking", {})),
            decay=DecayConfig(**config_data.get("decay", {})),
            events=EventsConfig(**config_data.get("events", {})),
            log_level=config_data.get("log_level", os.getenv("LOG_LEVEL", "INFO")),
            log_file=Path(config_data["log_file"]) if config_data.get("log_file") else None,
        )

    def to_file(self, config_path: Path) -> None:
        """Сохранение конфигурации в файл"""
        config_data = {
            "store": {
                "backend": self.store.backend,
                "redis_url": self.store.redis_url,
                "key_prefix": self.store.key_prefix,
                "socket_timeout": self.store.socket_timeout,
                "lock_stripes": self.store.lock_stripes,
                "snapshot_file": str(self.store.snapshot_file) if self.store.snapshot_file else None,
                "id_type": self.store.id_type,
            },
            "ranking": {
                "score_floor": self.ranking.score_floor,
            },
            "decay": {
                "enabled": self.decay.enabled,
                "interval": self.decay.interval,
                "top_k": self.decay.top_k,
                "outlier_factor": self.decay.outlier_factor,
                "outlier_ratio": self.decay.outlier_ratio,
                "stale_ratio": self.decay.stale_ratio,
                "freshness_window": self.decay.freshness_window,
                "max_retries": self.decay.max_retries,
            },
            "events": {
                "queue_size": self.events.queue_size,
                "drop_policy": self.events.drop_policy,
                "max_retries": self.events.max_retries,
                "retry_delay": self.events.retry_delay,
            },
            "log_level": self.log_level,
        }

        if self.log_file:
            config_data["log_file"] = str(self.log_file)

        with open(config_path, "w") as f:
            yaml.dump(config_data, f, default_flow_style=False, sort_keys=False)
