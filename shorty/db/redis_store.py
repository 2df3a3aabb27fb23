from datetime import datetime
from typing import Dict, List, Optional
import logging

import redis
import redis.exceptions

from shorty.core.errors import ConflictError, NotFoundError, StoreUnavailableError
from shorty.db.Models.models import UrlMapping, utcnow
from shorty.db.repository import MappingStore

logger = logging.getLogger(__name__)

NEXT_ID_KEY = "urls:next_id"
# sorted set of short codes scored by id, for newest-first listing
BY_ID_KEY = "urls:by_id"
# hash original_url -> first short code created for it
BY_ORIGINAL_KEY = "urls:by_original"

# redis-py TimeoutError is not a ConnectionError subclass
UNAVAILABLE_ERRORS = (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)


def mapping_key(short_code: str) -> str:
    return f"url:{short_code}"


def _decode(value) -> str:
    if isinstance(value, (bytes, bytearray)):
        return value.decode()
    return str(value)


class RedisMappingStore(MappingStore):
    """Mapping store on Redis hashes.

    Each mapping lives in ``url:{short_code}``. HSETNX on the short_code field
    is the uniqueness guard and HINCRBY is the click counter.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisMappingStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_keepalive=True,
            retry_on_timeout=True,
        )
        return cls(client)

    def _to_mapping(self, data: Dict) -> Optional[UrlMapping]:
        data = {_decode(k): _decode(v) for k, v in data.items()}
        # a hash without original_url is a create still in flight
        if "original_url" not in data:
            return None
        return UrlMapping(
            id=int(data["id"]),
            original_url=data["original_url"],
            short_code=data["short_code"],
            clicks=int(data.get("clicks", 0)),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )

    def find_by_original_url(self, original_url: str) -> Optional[UrlMapping]:
        try:
            short_code = self.client.hget(BY_ORIGINAL_KEY, original_url)
            if not short_code:
                return None
            return self._to_mapping(self.client.hgetall(mapping_key(_decode(short_code))))
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError() from e

    def find_by_short_code(self, short_code: str) -> Optional[UrlMapping]:
        try:
            return self._to_mapping(self.client.hgetall(mapping_key(short_code)))
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError() from e

    def create(self, original_url: str, short_code: str) -> UrlMapping:
        key = mapping_key(short_code)
        try:
            reserved = self.client.hsetnx(key, "short_code", short_code)
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError() from e
        if not reserved:
            logger.warning("Short code already taken in redis: %s", short_code)
            raise ConflictError()

        try:
            mapping_id = int(self.client.incr(NEXT_ID_KEY))
            now = utcnow().isoformat()
            pipe = self.client.pipeline(transaction=True)
            pipe.hset(key, mapping={
                "id": mapping_id,
                "original_url": original_url,
                "clicks": 0,
                "created_at": now,
                "updated_at": now,
            })
            pipe.zadd(BY_ID_KEY, {short_code: mapping_id})
            # first mapping for a URL stays the canonical one
            pipe.hsetnx(BY_ORIGINAL_KEY, original_url, short_code)
            pipe.hgetall(key)
            results = pipe.execute()
        except UNAVAILABLE_ERRORS as e:
            self._release(key)
            raise StoreUnavailableError() from e
        return self._to_mapping(results[-1])

    def _release(self, key: str) -> None:
        # drop a reservation whose mapping was never written, so the code
        # does not stay blocked forever
        try:
            # the MULTI may have committed even though its reply was lost
            if not self.client.hexists(key, "original_url"):
                self.client.delete(key)
        except redis.exceptions.RedisError as e:
            logger.error("Could not release reserved key %s: %s", key, e)

    def increment_clicks(self, short_code: str) -> UrlMapping:
        key = mapping_key(short_code)
        try:
            if not self.client.hexists(key, "original_url"):
                raise NotFoundError()
            pipe = self.client.pipeline(transaction=True)
            pipe.hincrby(key, "clicks", 1)
            pipe.hset(key, "updated_at", utcnow().isoformat())
            pipe.hgetall(key)
            results = pipe.execute()
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError() from e
        return self._to_mapping(results[-1])

    def list_all(self) -> List[UrlMapping]:
        try:
            codes = self.client.zrevrange(BY_ID_KEY, 0, -1)
            if not codes:
                return []
            pipe = self.client.pipeline(transaction=False)
            for code in codes:
                pipe.hgetall(mapping_key(_decode(code)))
            rows = pipe.execute()
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError() from e
        mappings = [self._to_mapping(row) for row in rows]
        return [m for m in mappings if m is not None]

    def ping(self) -> bool:
        try:
            self.client.ping()
            return True
        except redis.exceptions.RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            return False

    def close(self) -> None:
        try:
            self.client.close()
        except redis.exceptions.RedisError:
            logger.debug("Error closing Redis client")
