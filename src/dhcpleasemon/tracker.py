# tracker.py - modification time bookkeeping for watched lease files

import os
from typing import Dict

from .errors import LeaseFileError


class ChangeTracker:
    """Remembers the last seen mtime of every path it is asked about."""

    def __init__(self):
        self._mtimes: Dict[str, int] = {}

    def was_modified(self, path: str) -> bool:
        """True if *path* changed since the previous call for the same path.

        Unknown paths start at the epoch, so an existing file always counts
        as modified the first time.  Raises LeaseFileError if the file
        cannot be stat'ed.
        """
        try:
            current = os.stat(path).st_mtime_ns
        except OSError as e:
            raise LeaseFileError(path, e.strerror or str(e)) from e

        if current > self._mtimes.get(path, 0):
            self._mtimes[path] = current
            return True
        return False

    def last_seen(self, path: str):
        return self._mtimes.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self._mtimes
