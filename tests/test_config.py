"""
Тесты для конфигурации
"""

from pathlib import Path

import yaml

from photorank.config import Config


def test_defaults_when_file_missing(tmp_path):
    """Тест конфигурации по умолчанию"""
    config = Config.from_file(tmp_path / "missing.yaml")

    assert config.store.backend == "memory"
    assert config.ranking.score_floor == 0
    assert config.decay.top_k == 20
    assert config.decay.freshness_window == 86400
    assert config.decay.outlier_factor == 2.0
    assert config.events.drop_policy == "drop_oldest"
    assert config.store.snapshot_file is None


def test_load_from_yaml(tmp_path):
    """Тест загрузки из YAML"""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({
        "store": {
            "backend": "redis",
            "redis_url": "redis://cache:6379/2",
            "snapshot_file": "data/rankings.msgpack",
        },
        "ranking": {"score_floor": None},
        "decay": {"top_k": 50, "interval": 600},
        "log_level": "DEBUG",
    }))

    config = Config.from_file(config_path)

    assert config.store.backend == "redis"
    assert config.store.redis_url == "redis://cache:6379/2"
    assert config.store.snapshot_file == Path("data/rankings.msgpack")
    assert config.ranking.score_floor is None
    assert config.decay.top_k == 50
    assert config.decay.interval == 600
    assert config.decay.stale_ratio == 0.1
    assert config.log_level == "DEBUG"


def test_save_and_reload(tmp_path):
    """Тест сохранения конфигурации"""
    config = Config()
    config.decay.top_k = 15
    config.store.snapshot_file = tmp_path / "snap.msgpack"

    config_path = tmp_path / "saved.yaml"
    config.to_file(config_path)
    loaded = Config.from_file(config_path)

    assert loaded.decay.top_k == 15
    assert loaded.store.snapshot_file == tmp_path / "snap.msgpack"
    assert loaded.ranking.score_floor == 0
