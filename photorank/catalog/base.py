"""
Интерфейс к внешнему хранилищу метаданных элементов
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from photorank.ids import ItemId


@dataclass
class ItemRecord:
    """Метаданные элемента, нужные движку ранжирования"""

    item_id: ItemId
    created_at: float = field(default_factory=time.time)
    public: bool = True  # Элемент находится в публичной коллекции
    processing: bool = False  # Производные изображения еще не готовы
    safe_for_work: bool = True

    def to_dict(self) -> Dict:
        return {
            "item_id": self.item_id,
            "created_at": self.created_at,
            "public": self.public,
            "processing": self.processing,
            "safe_for_work": self.safe_for_work,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ItemRecord":
        return cls(
            item_id=data["item_id"],
            created_at=data.get("created_at", time.time()),
            public=data.get("public", True),
            processing=data.get("processing", False),
            safe_for_work=data.get("safe_for_work", True),
        )


@dataclass
class Viewer:
    """Зритель, для которого строится лента"""

    show_nsfw_content: bool = False


class ItemCatalog(ABC):
    """Хранилище метаданных (только чтение)"""

    @abstractmethod
    async def get_items(self, item_ids: Iterable[ItemId]) -> Dict[ItemId, ItemRecord]:
        """
        Пакетное получение метаданных

        Returns:
            Словарь ID -> запись; отсутствующие элементы не включаются
        """

    def is_visible(self, record: ItemRecord, viewer: Optional[Viewer] = None) -> bool:
        """Виден ли элемент зрителю в рекомендациях"""
        if not record.public or record.processing:
            return False
        if record.safe_for_work:
            return True
        return viewer is not None and viewer.show_nsfw_content


class InMemoryCatalog(ItemCatalog):
    """Каталог в памяти (для тестов и примеров)"""

    def __init__(self, records: Optional[Iterable[ItemRecord]] = None):
        self.records: Dict[ItemId, ItemRecord] = {}
        for record in records or []:
            self.add(record)

    def add(self, record: ItemRecord) -> None:
        self.records[record.item_id] = record

    def remove(self, item_id: ItemId) -> None:
        self.records.pop(item_id, None)

    async def get_items(self, item_ids: Iterable[ItemId]) -> Dict[ItemId, ItemRecord]:
        return {
            item_id: self.records[item_id] for item_id in item_ids if item_id in self.records
        }
