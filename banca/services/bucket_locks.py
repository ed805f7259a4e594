"""In-process serialization of exposure decisions per bucket."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from threading import Lock

from banca.buckets import BucketKey
from banca.errors import InfrastructureError

logger = logging.getLogger(__name__)


class BucketLocks:
    """Fixed table of striped locks.

    Buckets hash onto stripes; a caller touching several buckets takes their
    stripes in ascending order, so two callers never wait on each other in a
    cycle.
    """

    def __init__(self, stripes: int = 256) -> None:
        if stripes < 1:
            raise ValueError("stripes must be positive")
        self._locks = [Lock() for _ in range(stripes)]

    def _stripes(self, keys: Iterable[BucketKey]) -> list[int]:
        return sorted({hash(key) % len(self._locks) for key in keys})

    @contextmanager
    def hold(self, keys: Iterable[BucketKey], timeout: float | None = None) -> Iterator[None]:
        acquired: list[Lock] = []
        try:
            for idx in self._stripes(keys):
                lock = self._locks[idx]
                ok = lock.acquire(timeout=timeout) if timeout is not None else lock.acquire()
                if not ok:
                    logger.error("Timed out after %ss waiting for bucket lock stripe %s", timeout, idx)
                    raise InfrastructureError(
                        message="Exposure check timed out, outcome unknown",
                        details={"lock_timeout_seconds": timeout},
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


_LOCKS = BucketLocks()


def bucket_locks() -> BucketLocks:
    return _LOCKS
