"""Small JSON-file persistence helpers shared by the local stores.

Writes go to a sibling temp file and are moved into place with
``os.replace`` so a crash never leaves a half-written document behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger("runledger.storage")


def read_json(path: Path) -> Any | None:
    """Return the decoded JSON document at ``path``.

    Returns None when the file is missing, unreadable or not valid JSON.
    Callers treat that as "no state yet".
    """
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable state file %s: %s", path, exc)
        return None


def write_json_atomic(path: Path, document: Any, mode: int | None = None) -> None:
    """Serialize ``document`` to ``path`` atomically.

    Args:
        path:     Destination file. Parent directories are created.
        document: JSON-serializable value.
        mode:     Optional permission bits applied before the rename
                  (e.g. ``0o600`` for secrets).
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(document, fh, sort_keys=True, separators=(",", ":"))
            fh.flush()
            os.fsync(fh.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def remove_file(path: Path) -> None:
    """Delete ``path`` if it exists."""
    path.unlink(missing_ok=True)
