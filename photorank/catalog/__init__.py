"""
Модуль каталога метаданных элементов
"""

from .base import InMemoryCatalog, ItemCatalog, ItemRecord, Viewer

__all__ = [
    "ItemCatalog",
    "ItemRecord",
    "InMemoryCatalog",
    "Viewer",
]
