"""
Тесты для сервиса ранжирования
"""

import pytest

from photorank.catalog.base import InMemoryCatalog, ItemRecord, Viewer
from photorank.events.channel import EventChannel
from photorank.exceptions import InvalidDeltaError, StoreUnavailableError
from photorank.ranking.service import RankingService
from photorank.ranking.store import MemoryScoreStore
from photorank.ranking.watermark import MemoryHighWaterTracker


def make_service(catalog=None, channel=None, floor=0):
    return RankingService(
        MemoryScoreStore(floor=floor),
        MemoryHighWaterTracker(),
        catalog=catalog,
        channel=channel,
    )


@pytest.mark.asyncio
async def test_increment_and_rank_scenario():
    """Тест сценария: X получает 5, затем Y получает 50"""
    service = make_service()

    assert await service.current_score("X") == 0
    assert await service.current_rank("X") is None

    assert await service.increment_score("X", 5) == 5
    assert await service.current_rank("X") == 0

    await service.increment_score("Y", 50)
    assert await service.current_rank("Y") == 0
    assert await service.current_rank("X") == 1

    assert await service.highest_rank("X") == 0
    assert await service.highest_rank("Y") == 0


@pytest.mark.asyncio
async def test_watermark_survives_score_drop():
    """Тест: отметка не ухудшается при падении рейтинга"""
    service = make_service()
    await service.increment_score("a", 10)
    await service.increment_score("b", 5)
    await service.increment_score("c", 1)

    # c поднимается на вершину
    await service.increment_score("c", 100)
    assert await service.highest_rank("c") == 0

    # и падает вниз
    await service.decrement_score("c", 100)
    assert await service.current_rank("c") == 2
    assert await service.highest_rank("c") == 0


@pytest.mark.asyncio
async def test_decrement_records_rank_before_drop():
    """Тест: позиция фиксируется до снижения"""
    service = make_service()
    await service.increment_score("a", 10)
    await service.increment_score("b", 20)
    await service.increment_score("a", 15)  # a на вершине, отметка 0

    service.tracker = MemoryHighWaterTracker()
    await service.decrement_score("a", 20)

    assert await service.current_rank("a") == 1
    assert await service.highest_rank("a") == 0


@pytest.mark.asyncio
async def test_decrement_unscored_item():
    """Тест декремента элемента без записи при обоих правилах floor"""
    clamped = make_service(floor=0)
    assert await clamped.decrement_score("x") == 0
    assert await clamped.current_rank("x") == 0

    unclamped = make_service(floor=None)
    assert await unclamped.decrement_score("x", 4) == -4
    assert await unclamped.current_score("x") == -4


@pytest.mark.asyncio
async def test_invalid_delta_does_not_mutate():
    """Тест: недопустимая величина отклоняется до изменения"""
    service = make_service()
    with pytest.raises(InvalidDeltaError):
        await service.increment_score("x", -3)
    with pytest.raises(InvalidDeltaError):
        await service.decrement_score("x", 2.5)

    assert await service.current_rank("x") is None
    assert await service.highest_rank("x") is None


@pytest.mark.asyncio
async def test_median_score():
    """Тест медианы топ-n"""
    service = make_service()
    for item_id, score in enumerate([50, 40, 30, 20, 10]):
        await service.increment_score(item_id, score)

    assert await service.median_score(5) == 30
    assert await service.median_score(4) == 35
    assert await service.median_score(100) == 30
    assert await make_service().median_score(20) == 0.0

    with pytest.raises(ValueError):
        await service.median_score(0)


@pytest.mark.asyncio
async def test_recommended_without_catalog():
    """Тест рекомендаций без каталога"""
    service = make_service()
    for item_id, score in [(1, 10), (2, 30), (3, 20)]:
        await service.increment_score(item_id, score)

    assert await service.recommended() == [2, 3, 1]
    assert await service.recommended(limit=2) == [2, 3]
    assert await service.recommended(limit=0) == [2, 3, 1]
    assert await service.recommended(limit=-5) == [2, 3, 1]


@pytest.mark.asyncio
async def test_recommended_filters_through_catalog():
    """Тест фильтрации рекомендаций по видимости"""
    catalog = InMemoryCatalog([
        ItemRecord(item_id=1),
        ItemRecord(item_id=2, processing=True),
        ItemRecord(item_id=3, safe_for_work=False),
        ItemRecord(item_id=4, public=False),
        ItemRecord(item_id=5),
    ])
    service = make_service(catalog=catalog)

    for item_id, score in [(1, 10), (2, 60), (3, 50), (4, 40), (5, 30), (6, 70)]:
        await service.increment_score(item_id, score)

    # 6 без метаданных, 2 обрабатывается, 4 не публичный, 3 NSFW
    assert await service.recommended() == [5, 1]
    assert await service.recommended(viewer=Viewer(show_nsfw_content=True)) == [3, 5, 1]

    # Фильтр применяется после выбора топ-n
    assert await service.recommended(limit=3) == []
    assert await service.recommended(limit=5) == [5]


@pytest.mark.asyncio
async def test_score_events_emitted():
    """Тест публикации событий изменения рейтинга"""
    received = []

    async def handler(event):
        received.append(event)

    channel = EventChannel()
    channel.subscribe(handler)
    await channel.start()

    service = make_service(channel=channel)
    await service.increment_score("x", 5)
    await service.increment_score("y", 7)
    await service.decrement_score("x", 2)

    await channel.stop(drain=True)

    assert [(e.item_id, e.score, e.rank, e.delta) for e in received] == [
        ("x", 5, 0, 5),
        ("y", 7, 0, 7),
        ("x", 3, 1, -2),
    ]

    # Закрытый канал не мешает изменению рейтинга
    assert await service.increment_score("x") == 4


class UnrankableStore(MemoryScoreStore):
    """Хранилище, в котором чтение позиции недоступно"""

    async def rank(self, item_id):
        raise StoreUnavailableError("timeout reading from socket")


@pytest.mark.asyncio
async def test_increment_survives_rank_read_failure():
    """Тест: записанное изменение не сообщается как ошибка"""
    received = []

    async def handler(event):
        received.append(event)

    channel = EventChannel()
    channel.subscribe(handler)
    await channel.start()
    service = RankingService(UnrankableStore(), MemoryHighWaterTracker(), channel=channel)

    assert await service.increment_score("x", 5) == 5
    assert await service.current_score("x") == 5
    assert await service.highest_rank("x") is None

    await channel.stop(drain=True)
    assert [(e.score, e.rank) for e in received] == [(5, None)]
