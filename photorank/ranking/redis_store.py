"""
Хранилище рейтингов на Redis sorted set
"""

import functools
from typing import Callable, List, Optional, Tuple

import redis.asyncio as redis
from redis import exceptions as redis_exceptions

from photorank.exceptions import StoreError, StoreUnavailableError
from photorank.ids import ItemId
from photorank.logger import get_logger
from photorank.ranking.store import ScoreStore
from photorank.ranking.watermark import HighWaterTracker

# В sorted set хранится -score: ZRANGE по возрастанию дает убывание рейтинга,
# а равные рейтинги упорядочены по возрастанию member.
APPLY_DELTA_SCRIPT = """
local current = redis.call('ZSCORE', KEYS[1], ARGV[1])
local score = 0
if current then
    score = 0 - tonumber(current)
end
score = score + tonumber(ARGV[2])
if ARGV[3] ~= '' and score < tonumber(ARGV[3]) then
    score = tonumber(ARGV[3])
end
redis.call('ZADD', KEYS[1], 0 - score, ARGV[1])
return score
"""

OBSERVE_RANK_SCRIPT = """
local current = redis.call('HGET', KEYS[1], ARGV[1])
local rank = tonumber(ARGV[2])
if (not current) or rank < tonumber(current) then
    redis.call('HSET', KEYS[1], ARGV[1], rank)
    return rank
end
return tonumber(current)
"""


def translate_errors(func):
    """Преобразование ошибок redis в исключения Photorank"""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError) as e:
            raise StoreUnavailableError(f"Redis unavailable: {e}") from e
        except redis_exceptions.RedisError as e:
            raise StoreError(f"Redis error: {e}") from e

    return wrapper


def create_client(redis_url: str, socket_timeout: float = 5.0) -> redis.Redis:
    """Создание асинхронного клиента Redis"""
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


class RedisScoreStore(ScoreStore):
    """Рейтинги в Redis sorted set; каждое изменение - один Lua скрипт"""

    def __init__(
        self,
        client: redis.Redis,
        key: str = "photorank:rankings",
        floor: Optional[int] = 0,
        id_type: Callable[[str], ItemId] = int,
    ):
        super().__init__(floor=floor)
        self.client = client
        self.key = key
        self.id_type = id_type
        self._apply_script = client.register_script(APPLY_DELTA_SCRIPT)
        self.logger = get_logger("ranking.redis_store")

    @translate_errors
    async def _apply(self, item_id: ItemId, signed_delta: int) -> int:
        floor = "" if self.floor is None else str(self.floor)
        result = await self._apply_script(
            keys=[self.key], args=[str(item_id), signed_delta, floor]
        )
        return int(result)

    @translate_errors
    async def score(self, item_id: ItemId) -> Optional[int]:
        value = await self.client.zscore(self.key, str(item_id))
        if value is None:
            return None
        return int(-float(value))

    @translate_errors
    async def rank(self, item_id: ItemId) -> Optional[int]:
        return await self.client.zrank(self.key, str(item_id))

    @translate_errors
    async def top_n(self, n: int) -> List[Tuple[ItemId, int]]:
        if n <= 0:
            return []
        entries = await self.client.zrange(self.key, 0, n - 1, withscores=True)
        return [(self._member_id(member), int(-float(value))) for member, value in entries]

    @translate_errors
    async def revrange(self, start: int, end: int) -> List[ItemId]:
        members = await self.client.zrange(self.key, start, end)
        return [self._member_id(member) for member in members]

    def _member_id(self, member: str) -> ItemId:
        try:
            return self.id_type(member)
        except ValueError as e:
            raise StoreError(
                f"Member {member!r} in {self.key} does not match id type {self.id_type.__name__}"
            ) from e

    @translate_errors
    async def count(self) -> int:
        return await self.client.zcard(self.key)


class RedisHighWaterTracker(HighWaterTracker):
    """Отметки в Redis hash, сравнение и запись атомарно в Lua"""

    def __init__(self, client: redis.Redis, key: str = "photorank:highest_rank"):
        self.client = client
        self.key = key
        self._observe_script = client.register_script(OBSERVE_RANK_SCRIPT)

    @translate_errors
    async def observe(self, item_id: ItemId, rank: int) -> int:
        if rank < 0:
            raise ValueError(f"Rank must be non-negative, got {rank}")
        result = await self._observe_script(keys=[self.key], args=[str(item_id), rank])
        return int(result)

    @translate_errors
    async def get(self, item_id: ItemId) -> Optional[int]:
        value = await self.client.hget(self.key, str(item_id))
        return int(value) if value is not None else None
