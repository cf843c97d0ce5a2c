"""Utility module for secure directory and file management."""

import os
import tempfile


def ensure_dir(path: str) -> None:
    """Create directory with owner-only permissions if missing."""
    if path and not os.path.exists(path):
        os.makedirs(path, 0o700)


def atomic_write(path: str, data: str) -> None:
    """Write data to path through a temporary file in the same directory.

    Readers see either the previous contents or the new ones, never a partial
    file. The result is readable by the owner only.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise
