from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional, Set

from ..config import AUDIT_LOG_PATH
from ..schemas import Document
from ..utils.logging import get_logger

logger = get_logger(__name__)


class AuditLog:
    """Append-only text log, one ``<id>:\\t<json>`` line per document.

    Best-effort and outside the index transaction: an I/O failure is
    logged and the run carries on. A re-run can repeat entries, so
    readers deduplicate by ID.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else AUDIT_LOG_PATH

    def append(self, docs: Iterable[Document]) -> int:
        lines = [f"{doc.id}:\t{doc.model_dump_json()}\n" for doc in docs]
        if not lines:
            return 0
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.writelines(lines)
        except OSError as e:
            logger.warning("audit log %s not written (%d entries): %s", self.path, len(lines), e)
            return 0
        return len(lines)

    def logged_ids(self) -> Set[int]:
        if not self.path.exists():
            return set()
        ids: Set[int] = set()
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                head, sep, _ = line.partition(":\t")
                if sep and head.isdigit():
                    ids.add(int(head))
        return ids
