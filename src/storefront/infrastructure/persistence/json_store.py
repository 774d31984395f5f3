"""A single JSON document holding products and orders.

Products and orders share one file so that creating an order and
decrementing stock commit together.  Writes go to a temporary file in
the same directory followed by ``os.replace``, so readers see either the
old document or the new one, never a partial write.

File access is synchronous and blocks the event loop for the duration of
each read or write.  This store is meant for the single-process CLI.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path

_EMPTY = {"products": [], "orders": []}


class JsonDocumentStore:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self.lock = asyncio.Lock()
        self._ensure_file()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> dict:
        doc = json.loads(self._file_path.read_text(encoding="utf-8"))
        for key, default in _EMPTY.items():
            doc.setdefault(key, list(default))
        return doc

    def write(self, doc: dict) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=".storefront-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(doc, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(_EMPTY, indent=2) + "\n", encoding="utf-8")
