"""
Тесты для канала событий
"""

import asyncio

import pytest

from photorank.events.channel import EventChannel, ScoreChanged
from photorank.exceptions import EventChannelError


def make_event(item_id, score=1):
    return ScoreChanged(item_id=item_id, score=score, rank=0, delta=1)


@pytest.mark.asyncio
async def test_events_delivered_to_all_subscribers():
    """Тест доставки событий всем подписчикам"""
    first, second = [], []

    async def handler_first(event):
        first.append(event.item_id)

    async def handler_second(event):
        second.append(event.item_id)

    channel = EventChannel()
    channel.subscribe(handler_first)
    channel.subscribe(handler_second)
    await channel.start()

    for item_id in range(5):
        assert channel.publish(make_event(item_id)) is True

    await channel.stop(drain=True)

    assert first == [0, 1, 2, 3, 4]
    assert second == [0, 1, 2, 3, 4]
    assert channel.published == 5


@pytest.mark.asyncio
async def test_drop_new_when_full():
    """Тест политики drop_new"""
    channel = EventChannel(queue_size=2, drop_policy="drop_new")

    assert channel.publish(make_event(1)) is True
    assert channel.publish(make_event(2)) is True
    assert channel.publish(make_event(3)) is False
    assert channel.dropped == 1

    received = []

    async def handler(event):
        received.append(event.item_id)

    channel.subscribe(handler)
    await channel.start()
    await channel.stop(drain=True)

    assert received == [1, 2]


@pytest.mark.asyncio
async def test_drop_oldest_when_full():
    """Тест политики drop_oldest"""
    channel = EventChannel(queue_size=2, drop_policy="drop_oldest")

    for item_id in (1, 2, 3):
        assert channel.publish(make_event(item_id)) is True
    assert channel.dropped == 1

    received = []

    async def handler(event):
        received.append(event.item_id)

    channel.subscribe(handler)
    await channel.start()
    await channel.stop(drain=True)

    assert received == [2, 3]


@pytest.mark.asyncio
async def test_failing_handler_retried_then_dropped():
    """Тест повторов и отбрасывания события при ошибках подписчика"""
    attempts = {}
    delivered = []

    async def flaky(event):
        attempts[event.item_id] = attempts.get(event.item_id, 0) + 1
        if event.item_id == "always" or attempts[event.item_id] < 2:
            raise RuntimeError("push failed")
        delivered.append(event.item_id)

    channel = EventChannel(max_retries=2, retry_delay=0)
    channel.subscribe(flaky)
    await channel.start()

    channel.publish(make_event("once"))
    channel.publish(make_event("always"))
    await channel.stop(drain=True)

    assert delivered == ["once"]
    assert attempts == {"once": 2, "always": 3}
    assert channel.failed == 1


@pytest.mark.asyncio
async def test_publish_does_not_block_slow_handler():
    """Тест: publish не ждет подписчика"""
    gate = asyncio.Event()

    async def slow(event):
        await gate.wait()

    channel = EventChannel()
    channel.subscribe(slow)
    await channel.start()

    for item_id in range(10):
        channel.publish(make_event(item_id))

    gate.set()
    await channel.stop(drain=True)
    assert channel.published == 10


@pytest.mark.asyncio
async def test_publish_on_closed_channel():
    """Тест публикации в закрытый канал"""
    channel = EventChannel()
    await channel.start()
    await channel.stop()

    with pytest.raises(EventChannelError):
        channel.publish(make_event(1))


def test_unknown_drop_policy():
    """Тест проверки политики отбрасывания"""
    with pytest.raises(ValueError):
        EventChannel(drop_policy="block")


def test_score_changed_dict():
    """Тест преобразования события в словарь"""
    event = ScoreChanged(item_id=7, score=45, rank=3, delta=-5, timestamp=10.0)
    data = event.to_dict()

    assert data["kind"] == "score_changed"
    assert ScoreChanged.from_dict(data) == event
