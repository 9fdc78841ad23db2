"""
Исключения для Photorank
"""


class PhotorankError(Exception):
    """Базовое исключение для Photorank"""
    pass


class StoreError(PhotorankError):
    """Ошибка хранилища рейтингов"""
    pass


class StoreUnavailableError(StoreError):
    """Хранилище временно недоступно"""
    pass


class SnapshotError(StoreError):
    """Снимок хранилища поврежден или не читается"""
    pass


class InvalidDeltaError(PhotorankError, ValueError):
    """Недопустимое изменение рейтинга"""
    pass


class InvalidBackendError(PhotorankError):
    """Неизвестный тип хранилища"""
    pass


class EventChannelError(PhotorankError):
    """Ошибка канала событий"""
    pass
