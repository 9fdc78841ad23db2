"""
Модуль затухания рейтингов
"""

from .policy import RULE_NONE, RULE_OUTLIER, RULE_STALE, DecayPolicy
from .scheduler import DecayReport, DecayScheduler

__all__ = [
    "DecayPolicy",
    "DecayReport",
    "DecayScheduler",
    "RULE_NONE",
    "RULE_OUTLIER",
    "RULE_STALE",
]
