"""
Diagnostics — structured failure records and the sinks that receive them.

The bridge emits exactly one DiagnosticRecord per failed call. Sinks are
fire-and-forget: emit() returns nothing and must not raise.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Optional

from .models import OutcomeKind

__all__ = ["DiagnosticRecord", "DiagnosticsSink", "LoggingSink", "MemorySink"]

_LEVELS = {
    "debug":   logging.DEBUG,
    "info":    logging.INFO,
    "warning": logging.WARNING,
    "error":   logging.ERROR,
}


@dataclass(frozen=True)
class DiagnosticRecord:
    severity:  str                    # "debug" | "info" | "warning" | "error"
    component: str
    message:   str
    member:    str = ""
    type_name: str = ""
    kind:      Optional[OutcomeKind] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["kind"] = self.kind.value if self.kind is not None else None
        return d

    def __str__(self) -> str:
        return f"[{self.severity}] {self.component}: {self.message}"


class DiagnosticsSink(ABC):
    @abstractmethod
    def emit(self, record: DiagnosticRecord) -> None:
        """Accept one record."""


class LoggingSink(DiagnosticsSink):
    """Routes records to `<prefix>.<component>` loggers at the matching level."""

    def __init__(self, prefix: str = "modbridge.diagnostics") -> None:
        self._prefix = prefix

    def emit(self, record: DiagnosticRecord) -> None:
        level = _LEVELS.get(record.severity, logging.WARNING)
        logging.getLogger(f"{self._prefix}.{record.component}").log(level, "%s", record.message)


class MemorySink(DiagnosticsSink):
    """Collects records in memory; used by tests and the `probe` CLI command."""

    def __init__(self) -> None:
        self._records: list[DiagnosticRecord] = []
        self._lock = threading.Lock()

    def emit(self, record: DiagnosticRecord) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> list[DiagnosticRecord]:
        with self._lock:
            return list(self._records)

    def of_kind(self, kind: OutcomeKind) -> list[DiagnosticRecord]:
        return [r for r in self.records if r.kind is kind]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
