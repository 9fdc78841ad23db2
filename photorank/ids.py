"""
Общие типы Photorank
"""

from typing import Union

# Идентификатор элемента из внешнего хранилища метаданных.
# Одно хранилище рейтингов содержит ID одного типа.
ItemId = Union[int, str]
