"""Fatal error taxonomy for a munihash run.

Every exception carries the pipeline ``stage`` it belongs to so the CLI can
report *where* a run died.  Row-level parse problems are deliberately absent:
malformed rows are dropped and counted, never raised.
"""

from __future__ import annotations


class MunihashError(Exception):
    """Base class for all fatal munihash errors."""

    stage: str = "run"

    def __init__(self, message: str, *, group: str | None = None) -> None:
        super().__init__(message)
        self.group = group

    def describe(self) -> str:
        """One-line, human-readable description including stage and group."""
        where = f" (group {self.group})" if self.group else ""
        return f"[{self.stage}]{where} {self}"


class AcquisitionError(MunihashError):
    """Network, timeout, or decoding failure while obtaining the dataset."""

    stage = "acquisition"


class ConfigurationError(MunihashError, ValueError):
    """Invalid KDF parameters, worker settings, or batch contents."""

    stage = "configuration"


class DerivationError(MunihashError):
    """A salt or key derivation failed for one record of a batch."""

    stage = "derivation"

    def __init__(
        self,
        message: str,
        *,
        group: str | None = None,
        identifier: str | None = None,
    ) -> None:
        super().__init__(message, group=group)
        self.identifier = identifier

    def describe(self) -> str:
        base = super().describe()
        if self.identifier is not None:
            return f"{base} [record {self.identifier!r}]"
        return base


class BatchCancelledError(MunihashError):
    """The batch was cancelled cooperatively before all records were hashed."""

    stage = "derivation"

    def __init__(self, message: str, *, group: str | None = None, completed: int = 0) -> None:
        super().__init__(message, group=group)
        self.completed = completed


class OutputError(MunihashError):
    """Writing or serializing a group's output files failed."""

    stage = "output"
