"""
Snapshot Repository — versioned, append-only dictionary storage.

The engine only consumes ``load_snapshot(version_id=None)`` and
``list_versions()``. Publishing is an administrator concern: every edit
produces a new snapshot under a strictly greater version_id, so a batch that
pinned an older version keeps seeing exactly what it pinned.

Two backends:
- InMemorySnapshotRepository — process-local; ``publish`` guarded by a lock
- RedisSnapshotRepository    — payload JSON per version + a version index

Redis key scheme
----------------
  {prefix}:versions      – list of published version ids (append order)
  {prefix}:v:{version}   – snapshot payload JSON (SNAPSHOT_PAYLOAD_SCHEMA)
"""
from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

import redis

from keyword_intel.config.settings import REDIS_URL, SNAPSHOT_BACKEND, SNAPSHOT_KEY_PREFIX
from keyword_intel.dictionary.payload import dumps_snapshot, snapshot_from_payload
from keyword_intel.dictionary.system_dictionary import build_seed_snapshot
from keyword_intel.insights.metrics import record_snapshot_failure
from keyword_intel.models.dictionary import CustomRule, DictionaryEntry
from keyword_intel.models.snapshot import DictionarySnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Custom exception
# ---------------------------------------------------------------------------

class SnapshotUnavailable(Exception):
    """Raised when a requested snapshot cannot be loaded."""

    def __init__(self, version_id: Optional[int], reason: str) -> None:
        self.version_id = version_id
        self.reason = reason
        label = "latest" if version_id is None else f"v{version_id}"
        super().__init__(f"Snapshot {label} unavailable: {reason}")


def _unavailable(version_id: Optional[int], reason: str) -> SnapshotUnavailable:
    record_snapshot_failure(reason.split(":", 1)[0])
    logger.error("Snapshot %s unavailable: %s", version_id if version_id is not None else "latest", reason)
    return SnapshotUnavailable(version_id, reason)


# ---------------------------------------------------------------------------
# Base interface
# ---------------------------------------------------------------------------

class SnapshotRepository:
    """Read side consumed by the batch runner."""

    def load_snapshot(self, version_id: Optional[int] = None) -> DictionarySnapshot:
        """
        Return the snapshot for *version_id*, or the latest one when None.

        Raises:
            SnapshotUnavailable: Unknown version, empty store or backend failure.
        """
        raise NotImplementedError

    def list_versions(self) -> List[int]:
        """Published version ids, ascending."""
        raise NotImplementedError

    def latest_version(self) -> Optional[int]:
        versions = self.list_versions()
        return versions[-1] if versions else None


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------

class InMemorySnapshotRepository(SnapshotRepository):
    """
    Process-local copy-on-write store.

    Snapshots are immutable, so readers only take ``_lock`` to read the
    version index; ``publish`` and the helpers built on it hold it for the
    whole check-and-append.
    """

    def __init__(self, snapshots: Iterable[DictionarySnapshot] = ()) -> None:
        self._lock = threading.Lock()
        self._snapshots: Dict[int, DictionarySnapshot] = {}
        for snapshot in snapshots:
            self.publish(snapshot)

    def list_versions(self) -> List[int]:
        with self._lock:
            return sorted(self._snapshots)

    def load_snapshot(self, version_id: Optional[int] = None) -> DictionarySnapshot:
        if version_id is None:
            version_id = self.latest_version()
            if version_id is None:
                raise _unavailable(None, "empty: no snapshot published")
        snapshot = self._snapshots.get(version_id)
        if snapshot is None:
            raise _unavailable(version_id, "missing: version not published")
        return snapshot

    def publish(self, snapshot: DictionarySnapshot) -> DictionarySnapshot:
        """
        Append *snapshot*; its version must exceed every published version.

        Raises:
            ValueError: If the version is not strictly greater than the latest.
        """
        with self._lock:
            self._check_version(snapshot.version_id)
            self._snapshots[snapshot.version_id] = snapshot
        logger.info("Published %r", snapshot)
        return snapshot

    def publish_changes(
        self,
        entries: Iterable[DictionaryEntry] = (),
        rules: Iterable[CustomRule] = (),
    ) -> DictionarySnapshot:
        """
        Extend the latest snapshot under the next version id.

        Items must carry a version_id no greater than ``next_version_id()``.
        """
        with self._lock:
            latest = self._latest_locked()
            snapshot = latest.extend(latest.version_id + 1, entries=entries, rules=rules)
            self._snapshots[snapshot.version_id] = snapshot
        logger.info("Published %r", snapshot)
        return snapshot

    def deactivate_rule(self, rule_id: str) -> DictionarySnapshot:
        """Publish a new version in which *rule_id* is inactive."""
        with self._lock:
            latest = self._latest_locked()
            current = next((r for r in latest.rules if r.rule_id == rule_id), None)
            if current is None:
                raise KeyError(f"Unknown rule_id: {rule_id}")
            new_version = latest.version_id + 1
            retired = dataclasses.replace(current, active=False, version_id=new_version)
            snapshot = latest.extend(new_version, rules=(retired,))
            self._snapshots[new_version] = snapshot
        logger.info("Rule %s deactivated in %r", rule_id, snapshot)
        return snapshot

    def next_version_id(self) -> int:
        latest = self.latest_version()
        return 1 if latest is None else latest + 1

    def _latest_locked(self) -> DictionarySnapshot:
        if not self._snapshots:
            raise _unavailable(None, "empty: no snapshot published")
        return self._snapshots[max(self._snapshots)]

    def _check_version(self, version_id: int) -> None:
        if self._snapshots and version_id <= max(self._snapshots):
            raise ValueError(
                f"Version {version_id} must be greater than latest {max(self._snapshots)}"
            )


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------

class RedisSnapshotRepository(SnapshotRepository):
    """
    Redis-backed store. Payloads are validated (jsonschema + model
    invariants) on every load; an invalid payload is reported as
    SnapshotUnavailable rather than a half-built snapshot.
    """

    def __init__(self, redis_client: Any, key_prefix: str = SNAPSHOT_KEY_PREFIX) -> None:
        self._redis = redis_client
        self._prefix = key_prefix

    @property
    def versions_key(self) -> str:
        return f"{self._prefix}:versions"

    def snapshot_key(self, version_id: int) -> str:
        return f"{self._prefix}:v:{version_id}"

    def list_versions(self) -> List[int]:
        try:
            raw = self._redis.lrange(self.versions_key, 0, -1)
        except redis.RedisError as exc:
            raise _unavailable(None, f"backend: {exc}") from exc
        return sorted(int(v) for v in raw)

    def load_snapshot(self, version_id: Optional[int] = None) -> DictionarySnapshot:
        if version_id is None:
            version_id = self.latest_version()
            if version_id is None:
                raise _unavailable(None, "empty: no snapshot published")

        try:
            data = self._redis.get(self.snapshot_key(version_id))
        except redis.RedisError as exc:
            raise _unavailable(version_id, f"backend: {exc}") from exc
        if data is None:
            raise _unavailable(version_id, "missing: version not published")

        try:
            snapshot = snapshot_from_payload(data)
        except ValueError as exc:
            raise _unavailable(version_id, f"invalid: {exc}") from exc

        if snapshot.version_id != version_id:
            raise _unavailable(
                version_id, f"invalid: payload carries version {snapshot.version_id}"
            )
        logger.debug("Loaded %r from %s", snapshot, self.snapshot_key(version_id))
        return snapshot

    def publish(self, snapshot: DictionarySnapshot) -> DictionarySnapshot:
        """
        Store *snapshot* and append its version to the index.

        Raises:
            ValueError: If the version is not strictly greater than the latest.
        """
        latest = self.latest_version()
        if latest is not None and snapshot.version_id <= latest:
            raise ValueError(
                f"Version {snapshot.version_id} must be greater than latest {latest}"
            )
        # nx: never overwrite a published payload
        stored = self._redis.set(self.snapshot_key(snapshot.version_id), dumps_snapshot(snapshot), nx=True)
        if not stored:
            raise ValueError(f"Version {snapshot.version_id} already published")
        self._redis.rpush(self.versions_key, snapshot.version_id)
        logger.info("Published %r → %s", snapshot, self.snapshot_key(snapshot.version_id))
        return snapshot


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def build_redis_client(url: Optional[str] = None) -> Any:
    """
    Build and return a redis.Redis client.

    Falls back to REDIS_URL from settings if *url* is not provided.
    """
    target_url = url or REDIS_URL
    client = redis.Redis.from_url(target_url, decode_responses=True)
    logger.debug("Redis client created for URL: %s", target_url)
    return client


def build_default_repository(backend: Optional[str] = None) -> SnapshotRepository:
    """
    Repository for SNAPSHOT_BACKEND ("memory" or "redis"), seeded with the
    bilingual system dictionary when it holds no version yet.
    """
    backend = (backend or SNAPSHOT_BACKEND).lower()
    if backend == "memory":
        return InMemorySnapshotRepository([build_seed_snapshot()])
    if backend != "redis":
        raise ValueError(f"Unknown snapshot backend: {backend!r}")

    repo = RedisSnapshotRepository(build_redis_client())
    if repo.latest_version() is None:
        repo.publish(build_seed_snapshot())
    return repo
