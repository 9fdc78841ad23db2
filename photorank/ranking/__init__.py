"""
Модуль ранжирования
"""

from photorank.ids import ItemId

from .service import RankingService
from .store import MemoryScoreStore, ScoreStore, validate_delta
from .watermark import HighWaterTracker, MemoryHighWaterTracker

__all__ = [
    "ItemId",
    "ScoreStore",
    "MemoryScoreStore",
    "HighWaterTracker",
    "MemoryHighWaterTracker",
    "RankingService",
    "validate_delta",
]
