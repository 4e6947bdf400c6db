"""Error and warning types raised by the attribution engine."""

from typing import Any, Dict, Optional


class ConfigError(Exception):
    """Malformed or incomplete feature/rule configuration. Fatal for the run."""

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        error_type: str = "config_invalid",
    ):
        super().__init__(message)
        self.message = message
        self.file = file
        self.line = line
        self.error_type = error_type

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "error": self.error_type,
            "message": self.message,
        }
        if self.file:
            result["file"] = self.file
        if self.line:
            result["line"] = self.line
        return result

    def __str__(self) -> str:
        parts = [self.message]
        if self.file:
            parts.append(f"file: {self.file}")
        if self.line:
            parts.append(f"line: {self.line}")
        return " | ".join(parts)


class SnapshotError(Exception):
    """A call graph, LOC or symbol snapshot file could not be parsed."""

    def __init__(self, message: str, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.file = file
        self.line = line

    def __str__(self) -> str:
        location = self.file or "<input>"
        if self.line:
            location = f"{location}:{self.line}"
        return f"{location}: {self.message}"


class SymbolResolutionWarning(UserWarning):
    """
    A symbol could not be resolved against the known universe or LOC maps.

    Non-fatal: the symbol is skipped and the run continues. Instances are
    collected on the run result so callers can report them.
    """

    def __init__(self, symbol: str, reason: str, feature_key: Optional[str] = None):
        super().__init__(f"{symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason
        self.feature_key = feature_key

    def __str__(self) -> str:
        if self.feature_key:
            return f"[{self.feature_key}] {self.symbol}: {self.reason}"
        return f"{self.symbol}: {self.reason}"
