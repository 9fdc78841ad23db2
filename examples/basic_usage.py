#!/usr/bin/env python3
"""
Пример базового использования Photorank
"""

import asyncio
import time

from photorank.catalog import InMemoryCatalog, ItemRecord, Viewer
from photorank.config import Config
from photorank.engine import RankingEngine


async def print_push(event):
    """Подписчик канала событий (например, отправка push-уведомления)"""
    print(f"  событие: {event.to_dict()}")


async def main():
    catalog = InMemoryCatalog([
        ItemRecord(item_id=1, created_at=time.time() - 2 * 86400),
        ItemRecord(item_id=2),
        ItemRecord(item_id=3, safe_for_work=False),
        ItemRecord(item_id=4, processing=True),
    ])

    config = Config()
    config.decay.enabled = False

    engine = RankingEngine(config, catalog=catalog)
    engine.channel.subscribe(print_push)

    async with engine:
        service = engine.service

        print("Просмотры и голоса...")
        await service.increment_score(1, 50)
        await service.increment_score(2, 5)
        await service.increment_score(3, 30)
        await service.increment_score(4, 100)

        print(f"Рекомендации: {await service.recommended(limit=10)}")
        print(f"Рекомендации (NSFW): {await service.recommended(viewer=Viewer(show_nsfw_content=True))}")
        print(f"Медиана топ-20: {await service.median_score(20)}")

        report = await engine.scheduler.run_cycle()
        print(f"Затухание: {report.to_dict()}")

        for item_id in (1, 2, 3, 4):
            print(
                f"  {item_id}: score={await service.current_score(item_id)} "
                f"rank={await service.current_rank(item_id)} "
                f"highest={await service.highest_rank(item_id)}"
            )


if __name__ == "__main__":
    asyncio.run(main())
