"""Append-only audit record store with live snapshots.

Design invariants
-----------------
1.  ``append()`` assigns ``id`` and ``createdAt`` and is **idempotent**
    on ``id``: appending a record whose id is already stored is a no-op.
2.  ``subscribe()`` delivers the **full** record collection, once
    immediately and again after every change.  Subscribers must treat
    each delivery as a replacement, never as a diff.
3.  One store serves one namespace (the application id).  It is trader
    agnostic: filtering by trader is the analytics layer's job.
4.  A failing subscriber is logged and never prevents delivery to the
    others.

This module provides:

*  ``IRecordStore``: the protocol.
*  ``InMemoryRecordStore``: list-backed store for tests and embedding.
   Can defer server timestamps to model the window in which a freshly
   written record has no ``createdAt`` yet.
*  ``JsonlRecordStore``: append-to-JSONL-file store for local durability.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Protocol

from neuro_audit.core.errors import StoreError
from neuro_audit.core.file_io import append_json_line, iter_json_lines
from neuro_audit.core.models import AuditRecord, StoreTimestamp

logger = logging.getLogger(__name__)

Snapshot = tuple[AuditRecord, ...]
Subscriber = Callable[[Snapshot], None]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class IRecordStore(Protocol):
    """Live, append-only collection of audit records."""

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Deliver every snapshot to *callback*.  Returns an unsubscribe hook."""
        ...

    def append(self, record: AuditRecord) -> AuditRecord:
        """Persist *record*, returning it with ``id`` and ``createdAt`` set."""
        ...

    def snapshot(self) -> Snapshot:
        """Current collection, in append order."""
        ...


# ---------------------------------------------------------------------------
# Shared subscription plumbing
# ---------------------------------------------------------------------------

class _SubscribableStore:
    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now
        self._records: list[AuditRecord] = []
        self._ids: set[str] = set()
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)
        self._deliver(callback, self.snapshot())

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> Snapshot:
        return tuple(self._records)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            self._deliver(callback, snapshot)

    @staticmethod
    def _deliver(callback: Subscriber, snapshot: Snapshot) -> None:
        try:
            callback(snapshot)
        except Exception:
            logger.exception(
                "Subscriber error delivering %d records", len(snapshot)
            )

    def _stamp(self, record: AuditRecord, *, with_created_at: bool) -> AuditRecord:
        update: dict = {}
        if not record.id:
            update["id"] = uuid.uuid4().hex
        if with_created_at and record.created_at is None:
            update["created_at"] = StoreTimestamp.from_datetime(self._clock())
        return record.model_copy(update=update) if update else record

    def _remember(self, record: AuditRecord) -> None:
        if record.id:
            self._ids.add(record.id)
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryRecordStore(_SubscribableStore):
    """List-backed record store.  No persistence across restarts.

    Parameters
    ----------
    records : Iterable[AuditRecord], optional
        Initial contents, kept as given (no stamping).
    clock : Callable[[], datetime], optional
        Source of ``createdAt``.  Defaults to the current UTC time.
    defer_server_timestamps : bool
        When True, appended records are delivered without ``createdAt``
        until :meth:`confirm_server_timestamps` is called.
    """

    def __init__(
        self,
        records: Iterable[AuditRecord] = (),
        clock: Clock | None = None,
        *,
        defer_server_timestamps: bool = False,
    ) -> None:
        super().__init__(clock)
        self._defer = defer_server_timestamps
        for record in records:
            self._remember(record)

    def append(self, record: AuditRecord) -> AuditRecord:
        if record.id and record.id in self._ids:
            return next(r for r in self._records if r.id == record.id)
        stored = self._stamp(record, with_created_at=not self._defer)
        self._remember(stored)
        logger.debug("Appended record id=%s trader=%s", stored.id, stored.trader_name)
        self._notify()
        return stored

    def confirm_server_timestamps(self) -> int:
        """Stamp every record still lacking ``createdAt``.  Returns the count."""
        pending = [i for i, r in enumerate(self._records) if r.created_at is None]
        for i in pending:
            self._records[i] = self._stamp(self._records[i], with_created_at=True)
        if pending:
            self._notify()
        return len(pending)

    # -- Testing helpers ---------------------------------------------------

    def clear(self) -> None:
        """Remove all records.  Testing only."""
        self._records.clear()
        self._ids.clear()
        self._notify()


# ---------------------------------------------------------------------------
# JSON-Lines file implementation
# ---------------------------------------------------------------------------

class JsonlRecordStore(_SubscribableStore):
    """Append-only JSONL file store.  Durable across restarts.

    Each line is one record document with camelCase keys.  Undecodable
    lines are skipped with a warning unless ``strict`` is set.
    """

    def __init__(
        self,
        path: str | Path,
        clock: Clock | None = None,
        *,
        strict: bool = False,
    ) -> None:
        super().__init__(clock)
        self._path = Path(path)
        self._strict = strict
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        self._records.clear()
        self._ids.clear()
        for document in iter_json_lines(self._path, strict=self._strict):
            self._remember(AuditRecord.from_document(document))
        logger.debug("Loaded %d records from %s", len(self._records), self._path)

    def append(self, record: AuditRecord) -> AuditRecord:
        if record.id and record.id in self._ids:
            return next(r for r in self._records if r.id == record.id)
        stored = self._stamp(record, with_created_at=True)
        append_json_line(self._path, stored.to_document())
        self._remember(stored)
        logger.info("Appended record id=%s to %s", stored.id, self._path)
        self._notify()
        return stored

    def reload(self) -> Snapshot:
        """Re-read the file (other writers may have appended) and redeliver."""
        try:
            self._load()
        except StoreError:
            logger.exception("Reload of %s failed", self._path)
            raise
        self._notify()
        return self.snapshot()
