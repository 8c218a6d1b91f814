"""In-memory stores for authorization codes and access tokens.

Each AuthorizationServer owns one OAuthStores instance, so tests get
isolated state. Nothing is persisted; a restart forgets every code and
token.

Expiry is checked lazily when an entry is used. Expired entries that are
never touched again stay in memory until sweep() is called explicitly.
There is no background sweeper.

Handlers may run concurrently, so lookup -> validate -> delete sequences
must run inside transaction() to keep a code from being redeemed twice.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generic, Iterator, Optional, TypeVar

from oauth.providers import ProviderId


@dataclass(frozen=True)
class AuthorizationCode:
    value: str
    provider_id: ProviderId
    issued_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class AccessToken:
    value: str
    provider_id: ProviderId
    user_id: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


T = TypeVar("T", AuthorizationCode, AccessToken)


class ExpiringStore(Generic[T]):
    """Keyed map of expiring entries guarded by a re-entrant lock."""

    def __init__(self):
        self._entries: dict[str, T] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator["ExpiringStore[T]"]:
        """Hold the store lock across several operations."""
        with self._lock:
            yield self

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, entry: T) -> None:
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns False if it was not present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def sweep(self, now: float) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class OAuthStores:
    """The code and token stores shared by the OAuth handlers."""

    def __init__(self):
        # Authorization codes (short-lived, single use)
        self.codes: ExpiringStore[AuthorizationCode] = ExpiringStore()
        # Bearer tokens issued by the token endpoint
        self.tokens: ExpiringStore[AccessToken] = ExpiringStore()
