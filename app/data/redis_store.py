# app/data/redis_store.py
import json

import redis
from redis.exceptions import RedisError

from app.data.partition_store import PartitionStore, Snapshot
from app.domain.errors import TransportError
from app.utils.logging import get_logger
from app.utils.retry import redis_retry
from app.utils.settings import REDIS_URL

logger = get_logger(__name__)

#LUA porownaj wersje i zapisz, atomowo
#KEYS[1] = wartosc, KEYS[2] = wersja, ARGV[1] = oczekiwana wersja, ARGV[2] = nowa wartosc, ARGV[3] = kanal
_CAS_LUA = """
local current = tonumber(redis.call('GET', KEYS[2]) or '0')
if current ~= tonumber(ARGV[1]) then
    return 0
end
local version = current + 1
redis.call('SET', KEYS[1], ARGV[2])
redis.call('SET', KEYS[2], version)
redis.call('PUBLISH', ARGV[3], cjson.encode({version = version, value = ARGV[2]}))
return version
"""

#skrypt lua dziala jako jedna nieprzerywalna operacja, nikt nie wcisnie sie miedzy GET a SET
#PUBLISH w tym samym skrypcie, wiec kolejnosc powiadomien = kolejnosc commitow


class RedisPartitionStore(PartitionStore):
    """
    Partycja = dwa klucze (wartosc JSON + licznik wersji) i kanal pub/sub.
    Zmiany z innych urzadzen przychodza przez pub/sub w watku w tle.
    """

    def __init__(self, url: str | None = None, prefix: str = "cart", client: redis.Redis | None = None):
        super().__init__()
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.prefix = prefix
        self._cas = self.redis.register_script(_CAS_LUA)
        self._pubsub = None
        self._thread = None

    def _keys(self, name: str) -> tuple[str, str]:
        return f"{self.prefix}:{name}:value", f"{self.prefix}:{name}:version"

    def channel(self, name: str) -> str:
        return f"{self.prefix}:{name}:changes"

    def read(self, name: str) -> Snapshot:
        try:
            return self._read(name)
        except RedisError as e:
            logger.error(f"Redis read {name} failed: {e}")
            raise TransportError(f"Storage unavailable: {e}") from e

    def compare_and_set(self, name: str, expected_version: int, value: dict) -> bool:
        try:
            version = self._compare_and_set(name, expected_version, value)
        except RedisError as e:
            logger.error(f"Redis CAS {name} failed: {e}")
            raise TransportError(f"Storage unavailable: {e}") from e
        # powiadomienie przyjdzie przez pub/sub, tez dla wlasnych zapisow
        return bool(version)

    @redis_retry()
    def _read(self, name: str) -> Snapshot:
        value_key, version_key = self._keys(name)
        #MGET jest atomowy, wartosc i wersja z tej samej chwili
        raw, version = self.redis.mget(value_key, version_key)
        if raw is None:
            return Snapshot(None, int(version or 0))
        return Snapshot(json.loads(raw), int(version))

    @redis_retry()
    def _compare_and_set(self, name: str, expected_version: int, value: dict) -> int:
        value_key, version_key = self._keys(name)
        return int(
            self._cas(
                keys=[value_key, version_key],
                args=[expected_version, json.dumps(value), self.channel(name)],
            )
        )

    def _handle_message(self, message: dict) -> None:
        if message.get("type") != "message":
            return
        prefix_len = len(self.prefix) + 1
        name = message["channel"][prefix_len:-len(":changes")]
        event = json.loads(message["data"])
        self._dispatch(name, json.loads(event["value"]), int(event["version"]))

    def _on_listener_error(self, error: Exception, pubsub, thread) -> None:
        #watek pub/sub ma zyc dalej, inaczej zmiany z innych urzadzen przestaja przychodzic
        logger.error(f"Redis pub/sub listener error: {error!r}")

    def _on_first_subscriber(self, name: str) -> None:
        if self._pubsub is None:
            self._pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(**{self.channel(name): self._handle_message})
        if self._thread is None:
            self._thread = self._pubsub.run_in_thread(
                sleep_time=0.1,
                daemon=True,
                exception_handler=self._on_listener_error,
            )
        logger.info(f"Subscribed to {self.channel(name)}")

    def _on_last_unsubscribe(self, name: str) -> None:
        if self._pubsub is not None:
            self._pubsub.unsubscribe(self.channel(name))
            logger.info(f"Unsubscribed from {self.channel(name)}")

    def close(self) -> None:
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None
