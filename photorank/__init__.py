"""
Photorank: ранжирование фотографий по популярности с периодическим затуханием
"""

from photorank.config import Config
from photorank.engine import RankingEngine
from photorank.ranking.service import RankingService

__version__ = "0.1.0"

__all__ = [
    "Config",
    "RankingEngine",
    "RankingService",
]
