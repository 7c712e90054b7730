# backend/marketplace/core/booking_lock.py
"""
Distributed lock serializing booking writes for one vendor day.

The lock is a Redis ``SET NX EX`` key. Acquisition polls until
``booking_lock_wait_seconds`` elapses. When Redis is unreachable the lock
fails open and the database advisory lock is the only serialization.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import Iterator, Optional
import uuid

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import BookingLockTimeoutException

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

# Only delete the key if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def _lock_key(vendor_id: str, day: date) -> str:
    return f"marketplace:lock:booking:{vendor_id}:{day.isoformat()}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.booking_lock_enabled:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
            client.ping()
        except Exception as exc:
            logger.warning("booking_lock_sync_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def reset_redis_client() -> None:
    """Drop the cached client so the next acquisition reconnects."""
    global _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        _SYNC_REDIS = None


def acquire_booking_lock_sync(
    vendor_id: str,
    day: date,
    ttl_s: Optional[int] = None,
    wait_s: Optional[float] = None,
) -> Optional[str]:
    """
    Acquire the vendor day lock.

    Returns:
        The lock token, or None when Redis is unavailable (fail open)

    Raises:
        BookingLockTimeoutException: If the lock stays held past the wait limit
    """
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_booking_lock("acquire", "redis_unavailable")
        return None

    ttl = ttl_s if ttl_s is not None else settings.booking_lock_ttl_seconds
    wait = wait_s if wait_s is not None else settings.booking_lock_wait_seconds
    poll = settings.booking_lock_poll_interval_seconds
    key = _lock_key(vendor_id, day)
    token = uuid.uuid4().hex
    started = time.monotonic()

    while True:
        try:
            acquired = bool(client.set(key, token, nx=True, ex=ttl))
        except Exception as exc:
            prometheus_metrics.record_booking_lock("acquire", "error")
            logger.warning(
                "booking_lock_sync_failed",
                extra={
                    "vendor_id": vendor_id,
                    "date": day.isoformat(),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return None

        waited = time.monotonic() - started
        if acquired:
            prometheus_metrics.record_booking_lock("acquire", "success")
            prometheus_metrics.observe_booking_lock_wait(waited)
            return token
        if waited >= wait:
            prometheus_metrics.record_booking_lock("acquire", "timeout")
            logger.warning(
                f"Booking lock for vendor {vendor_id} on {day} still held after {waited:.2f}s"
            )
            raise BookingLockTimeoutException(vendor_id, day.isoformat(), round(waited, 3))
        time.sleep(poll)


def release_booking_lock_sync(vendor_id: str, day: date, token: str) -> None:
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_booking_lock("release", "redis_unavailable")
        return
    try:
        deleted = client.eval(_RELEASE_SCRIPT, 1, _lock_key(vendor_id, day), token)
        if deleted:
            prometheus_metrics.record_booking_lock("release", "success")
        else:
            prometheus_metrics.record_booking_lock("release", "not_found")
    except Exception as exc:
        prometheus_metrics.record_booking_lock("release", "error")
        logger.warning(
            "booking_lock_sync_release_failed",
            extra={
                "vendor_id": vendor_id,
                "date": day.isoformat(),
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def booking_lock_sync(vendor_id: str, day: date, ttl_s: Optional[int] = None) -> Iterator[bool]:
    """Hold the vendor day lock for the block. Yields whether Redis granted it."""
    token = acquire_booking_lock_sync(vendor_id, day, ttl_s=ttl_s)
    try:
        yield token is not None
    finally:
        if token is not None:
            release_booking_lock_sync(vendor_id, day, token)
