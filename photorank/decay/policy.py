"""
Политика затухания рейтингов
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

RULE_NONE = "none"
RULE_OUTLIER = "outlier"
RULE_STALE = "stale"


@dataclass
class DecayPolicy:
    """
    Правила снижения рейтинга элемента из топ-K

    Выброс (рейтинг больше outlier_factor * медиана) теряет outlier_ratio
    рейтинга. Элемент старше freshness_window теряет stale_ratio.
    Остальные не меняются. Снижение всегда округляется вниз.
    """

    outlier_factor: float = 2.0
    outlier_ratio: float = 0.5
    stale_ratio: float = 0.1
    freshness_window: float = 86400  # 1 день

    def __post_init__(self):
        for name in ("outlier_ratio", "stale_ratio"):
            ratio = getattr(self, name)
            if not 0.0 <= ratio <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {ratio}")

    def decrement_for(
        self, score: int, median: float, created_at: Optional[float], now: float
    ) -> Tuple[str, int]:
        """
        Выбор правила и величины снижения

        Args:
            score: Текущий рейтинг элемента
            median: Медиана рейтингов топ-K
            created_at: Время создания элемента (None - неизвестно)
            now: Текущее время

        Returns:
            (правило, величина снижения >= 0)
        """
        if score <= 0:
            return RULE_NONE, 0

        if score > self.outlier_factor * median:
            return RULE_OUTLIER, math.floor(score * self.outlier_ratio)

        if created_at is not None and created_at < now - self.freshness_window:
            return RULE_STALE, math.floor(score * self.stale_ratio)

        return RULE_NONE, 0
