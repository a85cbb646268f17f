"""
Best-effort serialization of toggles on the same message.

State of reaction message is read from the message snapshot attached to the
update, so two presses that arrive close together can still overwrite each
other's vote. Lock only keeps edits of one message from interleaving.
"""
import asyncio
import logging
import weakref
from contextlib import asynccontextmanager

from django.conf import settings
from redis import asyncio as aioredis
from redis.exceptions import LockError, RedisError

logger = logging.getLogger(__name__)
rc = aioredis.Redis.from_url(settings.REDIS_URL) if settings.REDIS_URL else None

_local_locks = weakref.WeakValueDictionary()


def _lock_key(chat_id, message_id):
    return f'lock:message:{chat_id}:{message_id}'


@asynccontextmanager
async def message_lock(chat_id, message_id):
    key = _lock_key(chat_id, message_id)
    if rc is None:
        lock = _local_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            _local_locks[key] = lock
        async with lock:
            yield
        return

    lock = rc.lock(
        key,
        timeout=settings.TOGGLE_LOCK_TIMEOUT,
        blocking_timeout=settings.TOGGLE_LOCK_WAIT,
    )
    try:
        acquired = await lock.acquire()
    except RedisError as e:
        logger.warning(f"can't acquire {key}, proceeding without lock: {e}")
        acquired = False
    if not acquired:
        logger.debug(f"{key} is busy, proceeding without lock")
    try:
        yield
    finally:
        if acquired:
            try:
                await lock.release()
            except (LockError, RedisError) as e:
                logger.debug(f"lock {key} expired before release: {e}")
