"""
Командная строка для Photorank
"""

import asyncio
import json
import sys
from pathlib import Path

from photorank.config import Config
from photorank.engine import ID_TYPES, RankingEngine


def main(argv=None):
    """Главная функция CLI"""
    import argparse

    parser = argparse.ArgumentParser(description="Photorank ranking & decay engine")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file"
    )
    parser.add_argument(
        "--backend",
        choices=RankingEngine.BACKENDS,
        help="Override store backend from config"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("serve", help="Run the engine with periodic decay")

    top_parser = subparsers.add_parser("top", help="Print the highest ranked items")
    top_parser.add_argument("--limit", type=int, default=20)

    score_parser = subparsers.add_parser("score", help="Print score and rank of an item")
    score_parser.add_argument("item_id")

    subparsers.add_parser("decay", help="Run a single decay cycle")

    args = parser.parse_args(argv)

    config = Config.from_file(args.config)
    if args.backend:
        config.store.backend = args.backend

    engine = RankingEngine(config)

    if args.command == "serve":
        try:
            asyncio.run(run_engine(engine))
        except KeyboardInterrupt:
            print("\nShutting down...")
        return 0

    commands = {
        "top": lambda: print_top(engine, args.limit),
        "score": lambda: print_score(engine, ID_TYPES[config.store.id_type](args.item_id)),
        "decay": lambda: run_decay(engine),
    }
    return asyncio.run(run_once(engine, commands[args.command]))


async def run_engine(engine: RankingEngine):
    """Запуск движка до прерывания"""
    await engine.start()

    try:
        while engine.is_running:
            await asyncio.sleep(1)
    finally:
        await engine.stop()


async def run_once(engine: RankingEngine, command) -> int:
    """Выполнение одной команды без фонового затухания"""
    await engine.start(run_decay=False)
    try:
        await command()
    finally:
        await engine.stop()
    return 0


async def print_top(engine: RankingEngine, limit: int):
    for rank, (item_id, score) in enumerate(await engine.store.top_n(limit)):
        print(f"{rank:>4}  {item_id}  {score}")


async def print_score(engine: RankingEngine, item_id):
    service = engine.service
    print(json.dumps({
        "item_id": item_id,
        "score": await service.current_score(item_id),
        "rank": await service.current_rank(item_id),
        "highest_rank": await service.highest_rank(item_id),
    }))


async def run_decay(engine: RankingEngine):
    report = await engine.scheduler.run_cycle()
    print(json.dumps(report.to_dict()))


if __name__ == "__main__":
    sys.exit(main())
