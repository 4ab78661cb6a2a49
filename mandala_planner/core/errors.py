from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Literal, Optional


Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class MandalaError(Exception):
    """Error envelope for chart documents and CLI reports.

    Codes starting with `W_` are warnings: the command carries on (or the
    store no-ops) instead of failing.
    """

    source: ClassVar[str] = "mandala"

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return "warning" if self.code.startswith("W_") else "error"

    def as_item(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "path": self.path,
            "severity": self.severity,
            "source": self.source,
        }

    def __str__(self) -> str:
        loc = ":".join(p for p in (self.file, self.path) if p) or "<chart>"
        return f"{loc}: {self.code}: {self.message}"


class StateLoadError(MandalaError):
    source = "load"


class StateValidationError(MandalaError):
    source = "validate"
