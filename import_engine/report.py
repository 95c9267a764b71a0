"""
import_engine.report - Structured result of one file import.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ImportReport:
    entity: str = ""
    file_name: Optional[str] = None
    total_rows: int = 0
    committed: int = 0
    rejected: int = 0
    errors: list[dict] = field(default_factory=list)   # [{row, key, kind, reason}]
    fatal: Optional[str] = None

    def add_rejection(self, row: int, key: Optional[str], kind: str, reason: str):
        self.errors.append({"row": row, "key": key, "kind": kind, "reason": reason})
        self.rejected += 1

    def set_fatal(self, reason: str):
        self.fatal = reason

    @property
    def ok(self) -> bool:
        return self.fatal is None

    def summary(self) -> str:
        return (f"Total rows: {self.total_rows}, committed: {self.committed}, "
                f"rejected: {self.rejected}")

    def to_dict(self) -> dict:
        return {
            "entity": self.entity,
            "file_name": self.file_name,
            "total_rows": self.total_rows,
            "committed": self.committed,
            "rejected": self.rejected,
            "errors": self.errors,
            "fatal": self.fatal,
        }
