"""
Document Store - Loads and saves decoded collections by storage key.

Composes the key-value substrate, the serialization codec and the
read-through cache. Repositories and the season manager only talk to this
class; none of them touch the substrate or the cache directly.
"""

import copy
import logging
import threading
from collections import deque
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, Union

from .. import config
from ..codec import Codec
from ..storage.base import KeyValueStorage
from ..storage.exceptions import CorruptDataError, StorageError, StorageWriteError
from .cache import MISS, ReadThroughCache

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Codec- and cache-aware access to the substrate.

    All load-modify-store sequences must run inside ``transaction()`` so
    the background season copy and foreground calls never interleave on
    the same key.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        codec: Codec,
        cache: Optional[ReadThroughCache] = None,
        error_history: int = config.ERROR_HISTORY_SIZE,
    ):
        self.storage = storage
        self.codec = codec
        self.cache = cache if cache is not None else ReadThroughCache(ttl=0)
        self._lock = threading.RLock()
        self._errors: deque = deque(maxlen=max(1, error_history))

    @contextmanager
    def transaction(self) -> Iterator['DocumentStore']:
        """Hold the store lock for one load-modify-store unit (re-entrant)."""
        with self._lock:
            yield self

    # =========================================================================
    # READS
    # =========================================================================

    def exists(self, key: str) -> bool:
        """Check whether the substrate holds a value for the key."""
        return self.storage.get(key) is not None

    def load(
        self,
        key: str,
        default: Any,
        expected: Union[Type, Tuple[Type, ...]] = (list, dict),
    ) -> Any:
        """
        Load and decode the value stored under a key.

        Args:
            key: Storage key
            default: Value returned when the key is absent or corrupt
            expected: Type(s) the decoded value must have

        Returns:
            The decoded value (a private copy the caller may mutate)

        Corrupt or mistyped data is logged, replaced by the default in
        storage, and the default is returned.
        """
        cached = self.cache.get(key)
        if cached is not MISS:
            logger.debug(f"Cache hit for {key}")
            return cached

        # Writers hold the lock, so a miss must not re-cache a value read before their write
        with self._lock:
            cached = self.cache.get(key)
            if cached is not MISS:
                return cached

            raw = self.storage.get(key)
            if raw is None:
                return copy.deepcopy(default)

            try:
                value = self.codec.decode(raw)
                if not isinstance(value, expected):
                    raise CorruptDataError(
                        f"Expected {expected} but decoded {type(value).__name__}"
                    )
            except CorruptDataError as e:
                self._recover(key, default, e)
                return copy.deepcopy(default)

            self.cache.set(key, value)
            return value

    def _recover(self, key: str, default: Any, error: CorruptDataError) -> None:
        """Replace a corrupt value by its default."""
        self.record_error(f"Corrupt data under {key}: {error}")
        logger.warning(f"Corrupt data under {key}, resetting to default: {error}")
        try:
            with self.transaction():
                self.save(key, default)
        except StorageWriteError as e:
            logger.error(f"Could not self-heal {key}: {e}")

    # =========================================================================
    # WRITES
    # =========================================================================

    def save(self, key: str, value: Any) -> None:
        """
        Encode and store a value.

        Raises:
            StorageWriteError: If encoding fails or the substrate rejects the write
        """
        try:
            raw = self.codec.encode(value)
        except (TypeError, ValueError) as e:
            self.cache.invalidate(key)
            self.record_error(f"Serialization of {key} failed: {e}")
            raise StorageWriteError(f"Cannot serialize {key}: {e}") from e

        try:
            self.storage.set(key, raw)
        except StorageWriteError as e:
            self.cache.invalidate(key)
            self.record_error(f"Write of {key} failed: {e}")
            logger.error(f"Write of {key} failed: {e}")
            raise

        self.cache.set(key, value)

    def save_many(self, updates: Dict[str, Any]) -> None:
        """
        Store several keys, restoring the already-written ones if a write fails.

        Args:
            updates: Mapping of storage key to value, written in order

        Raises:
            StorageWriteError: If any write fails (after the restore)
        """
        with self.transaction():
            previous = {key: self.storage.get(key) for key in updates}
            written: List[str] = []
            try:
                for key, value in updates.items():
                    self.save(key, value)
                    written.append(key)
            except StorageWriteError:
                self._restore(previous, written)
                raise

    def _restore(self, previous: Dict[str, Optional[str]], written: List[str]) -> None:
        for key in reversed(written):
            try:
                if previous[key] is None:
                    self.storage.remove(key)
                else:
                    self.storage.set(key, previous[key])
            except StorageError as e:
                self.record_error(f"Rollback of {key} failed: {e}")
                logger.error(f"Rollback of {key} failed: {e}")
            finally:
                self.cache.invalidate(key)
        if written:
            logger.warning(f"Rolled back {len(written)} key(s): {', '.join(written)}")

    def remove(self, key: str) -> None:
        with self.transaction():
            self.storage.remove(key)
            self.cache.invalidate(key)

    def invalidate(self, key: Optional[str] = None) -> None:
        self.cache.invalidate(key)

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    def record_error(self, message: str) -> None:
        self._errors.append(message)

    def recent_errors(self) -> List[str]:
        return list(self._errors)

    def clear_errors(self) -> None:
        self._errors.clear()
