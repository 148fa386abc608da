from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Callable
from functools import partial

from ..db.store import ConflictError, PersistenceSink, StoreError, write_with_retries
from ..models.doctor import DoctorIdentity

"""Identity registry (doctor resolver).

Maps a doctor's display name to a stable DoctorIdentity. The natural key is
the name lowercased with every whitespace character removed, so
"Dr. Jane  Doe" and "dr.jane doe" resolve to the same doctor. One registry
lives for one import run and is passed into the pipeline explicitly.
"""

__all__ = [
    "natural_key_for",
    "DoctorRegistry",
]

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def natural_key_for(display_name: str) -> str:
    return _WHITESPACE.sub("", display_name).lower()


class DoctorRegistry:
    """Resolve-or-create doctor identities with at most one create per key.

    Lookups are memoized per run. The whole resolve step runs under one lock,
    so concurrent callers asking for the same name collapse to a single
    create; a ConflictError from the store (another process won the race)
    is answered by re-reading the existing identity. Store calls retry
    TransientStoreError like record writes do.
    """

    def __init__(
        self,
        sink: PersistenceSink,
        email_domain: str = "example.com",
        default_clinic: str = "TK1",
        attempts: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._sink = sink
        self._email_domain = email_domain
        self._default_clinic = default_clinic
        self._attempts = attempts
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._cache: dict[str, DoctorIdentity] = {}
        self._lock = threading.Lock()
        self.created = 0
        self.reused = 0

    def __len__(self) -> int:
        return len(self._cache)

    def _retry(self, operation):
        return write_with_retries(
            operation,
            attempts=self._attempts,
            backoff_seconds=self._backoff_seconds,
            sleep=self._sleep,
        )

    def provisional_identity(self, display_name: str) -> DoctorIdentity:
        """Identity as it would be created, without touching the store."""
        name = display_name.strip()
        key = natural_key_for(name)
        return DoctorIdentity(
            natural_key=key,
            display_name=name,
            default_clinic=self._default_clinic,
            email=f"{key}@{self._email_domain}",
        )

    def resolve_or_create(self, display_name: str) -> DoctorIdentity:
        new = self.provisional_identity(display_name)
        key = new.natural_key
        if not key:
            raise ValueError(f"doctor name has no usable characters: {display_name!r}")

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            identity = self._retry(partial(self._sink.find_identity, key))
            if identity is not None:
                self.reused += 1
                logger.debug("doctor %s already exists", key)
            else:
                try:
                    identity = self._retry(partial(self._sink.create_identity, new))
                    self.created += 1
                    logger.info("created doctor %s (%s)", new.display_name, key)
                except ConflictError:
                    identity = self._retry(partial(self._sink.find_identity, key))
                    if identity is None:
                        raise StoreError(f"identity {key} reported as existing but cannot be read back")
                    self.reused += 1
                    logger.debug("doctor %s created concurrently, reusing", key)

            self._cache[key] = identity
            return identity
