"""
Снимок in-memory хранилища рейтингов на диске (msgpack)
"""

import os
from pathlib import Path
from typing import Dict, Tuple

import msgpack

from photorank.exceptions import SnapshotError
from photorank.ids import ItemId
from photorank.logger import get_logger

SNAPSHOT_VERSION = 1


def save_snapshot(path: Path, scores: Dict[ItemId, int], watermarks: Dict[ItemId, int]) -> None:
    """
    Сохранение рейтингов и отметок

    Запись идет во временный файл с последующим переименованием,
    поэтому прерванная запись не портит предыдущий снимок.
    """
    logger = get_logger("storage.snapshot")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = msgpack.packb(
        {
            "version": SNAPSHOT_VERSION,
            "scores": [[item_id, score] for item_id, score in scores.items()],
            "watermarks": [[item_id, rank] for item_id, rank in watermarks.items()],
        },
        use_bin_type=True,
    )

    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)

    logger.info("Snapshot saved", file=str(path), items=len(scores))


def load_snapshot(path: Path) -> Tuple[Dict[ItemId, int], Dict[ItemId, int]]:
    """
    Загрузка снимка

    Returns:
        (рейтинги, отметки); пустые словари, если файла нет

    Raises:
        SnapshotError: Файл поврежден или неизвестной версии
    """
    logger = get_logger("storage.snapshot")
    path = Path(path)
    if not path.exists():
        logger.info("Snapshot not found, starting empty", file=str(path))
        return {}, {}

    try:
        with open(path, "rb") as f:
            data = msgpack.unpackb(f.read(), raw=False)
        if data.get("version") != SNAPSHOT_VERSION:
            raise SnapshotError(f"Unsupported snapshot version: {data.get('version')}")
        scores = {item_id: score for item_id, score in data["scores"]}
        watermarks = {item_id: rank for item_id, rank in data["watermarks"]}
    except SnapshotError:
        raise
    except (msgpack.UnpackException, ValueError, KeyError, TypeError, AttributeError) as e:
        raise SnapshotError(f"Corrupt snapshot {path}: {e}") from e

    logger.info("Snapshot loaded", file=str(path), items=len(scores))
    return scores, watermarks
