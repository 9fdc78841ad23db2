"""
Система логирования для Photorank
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog


FILE_LOGGER_NAME = "photorank"


def _file_logger(log_file: Optional[Path]) -> logging.Logger:
    """Логгер stdlib для записи в файл; прежний обработчик закрывается"""
    logger = logging.getLogger(FILE_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.propagate = log_file is None
    if log_file:
        handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

    return logger


def _stderr_logger_factory(*args) -> structlog.PrintLogger:
    # sys.stderr берется в момент создания логгера, а не при настройке
    return structlog.PrintLogger(file=sys.stderr)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    instance: Optional[str] = None
) -> structlog.BoundLogger:
    """
    Настройка системы логирования

    Args:
        log_level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Путь к файлу логов (опционально, включает JSON формат)
        instance: Имя экземпляра движка для добавления в логи

    Returns:
        Настроенный логгер
    """
    file_logger = _file_logger(log_file)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer() if log_file else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=(
            (lambda *args: file_logger)
            if log_file
            else _stderr_logger_factory
        ),
        cache_logger_on_first_use=True,
    )

    # Стандартный logging (redis и asyncio пишут через него); stdout остается для вывода CLI
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )

    logger = structlog.get_logger()
    if instance:
        logger = logger.bind(instance=instance)

    return logger


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Получение логгера для модуля

    Args:
        name: Имя модуля (опционально)

    Returns:
        Логгер
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(module=name)
    return logger
