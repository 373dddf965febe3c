"""
importer.access
~~~~~~~~~~~~~~~
Scoped access to the folders a batch touches.

Sandboxed desktops hand out folder access per drop or per picker choice and
want it given back when the work is done. On a plain Linux desktop there is
nothing to acquire, so ScopedAccess only records whether the path was
reachable and logs the bracket; the orchestrator still opens one for every
input root and for a chosen output base and closes them all when the batch
ends, whichever way it ends.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class ScopedAccess:

    def __init__(self, path: Path, write: bool = False):
        self.path = Path(path)
        self.write = write
        self.granted = False
        self._open = False

    def __enter__(self) -> ScopedAccess:
        mode = os.R_OK | (os.W_OK if self.write else 0)
        self.granted = os.access(self.path, mode)
        self._open = True
        logger.debug("[ACCESS] Acquired '%s' (granted=%s)", self.path, self.granted)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def release(self) -> None:
        if self._open:
            self._open = False
            logger.debug("[ACCESS] Released '%s'", self.path)

    @property
    def is_open(self) -> bool:
        return self._open
