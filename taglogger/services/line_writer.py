"""Per-device output file: one CRLF-terminated UTF-8 line per sample."""
from __future__ import annotations
import logging
from typing import Optional, TextIO

logger = logging.getLogger(__name__)


class LineWriter:
    """Line-oriented file sink opened in overwrite or append mode.

    Writes after ``close`` are dropped silently; ``close`` is idempotent.
    """

    TERMINATOR = "\r\n"

    def __init__(self, path: str, append: bool = False):
        self.path = path
        self.append = append
        # newline="" keeps the CRLF terminator exactly as written on every platform
        self._fh: Optional[TextIO] = open(path, "a" if append else "w",
                                          encoding="utf-8", newline="")
        logger.info(f"Opened {path} ({'append' if append else 'overwrite'})")

    @property
    def closed(self) -> bool:
        return self._fh is None

    def write_line(self, line: str) -> bool:
        if self._fh is None:
            return False
        self._fh.write(line + self.TERMINATOR)
        self._fh.flush()
        return True

    def close(self) -> None:
        fh, self._fh = self._fh, None
        if fh is not None:
            fh.close()
            logger.info(f"Closed {self.path}")
