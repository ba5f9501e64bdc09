"""JSONL file I/O for the file-backed record store.

Appends take an exclusive ``fcntl`` lock and ``fsync`` before releasing
it, so concurrent writers never interleave half lines and a crash right
after return does not lose the document.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterator

from .errors import RecordDecodeError, StoreUnavailable

logger = logging.getLogger(__name__)


def append_json_line(path: Path, document: dict[str, Any]) -> None:
    """Append one JSON document as a line.  Creates parent directories."""
    line = json.dumps(document, ensure_ascii=False, sort_keys=True)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except OSError as exc:
        raise StoreUnavailable(f"Cannot write {path}: {exc}") from exc


def iter_json_lines(path: Path, *, strict: bool = True) -> Iterator[dict[str, Any]]:
    """Yield documents from a JSONL file.  A missing file yields nothing.

    With ``strict=False`` undecodable lines are logged and skipped.

    Raises:
        RecordDecodeError: on a line that is not a JSON object (strict only).
    """
    if not path.exists():
        return
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as exc:
        raise StoreUnavailable(f"Cannot read {path}: {exc}") from exc

    for lineno, raw in enumerate(lines, start=1):
        raw = raw.strip()
        if not raw:
            continue
        try:
            document = json.loads(raw)
            if not isinstance(document, dict):
                raise RecordDecodeError(f"{path}:{lineno}", "not a JSON object")
        except json.JSONDecodeError as exc:
            error = RecordDecodeError(f"{path}:{lineno}", str(exc))
            if strict:
                raise error from exc
            logger.warning("Skipping line: %s", error)
            continue
        except RecordDecodeError as error:
            if strict:
                raise
            logger.warning("Skipping line: %s", error)
            continue
        yield document
