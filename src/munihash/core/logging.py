"""Logging setup and a sanitizing filter for key-derivation material.

The password bytes fed to PBKDF2 are the concatenated record fields, and
salts are derived from identifiers; neither belongs in log output.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Final

_SENSITIVE_KEYS: Final[tuple[str, ...]] = (
    "password",
    "salt",
    "derived_key",
    "key_material",
)

_REDACTED: Final[str] = "[REDACTED]"

_SENSITIVE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?P<key>"
    + "|".join(re.escape(k) for k in _SENSITIVE_KEYS)
    + r")\s*[=:]\s*(?P<value>\"[^\"]*\"|'[^']*'|\S+)",
    re.IGNORECASE,
)

_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def redact_message(message: str) -> str:
    """Replace sensitive ``key=value`` or ``key: value`` pairs with redaction markers.

    Args:
        message: Raw log message string.

    Returns:
        Message with sensitive values replaced by ``[REDACTED]``.
    """
    return _SENSITIVE_PATTERN.sub(
        lambda m: f"{m.group('key')}={_REDACTED}", message,
    )


class SanitizingFilter(logging.Filter):
    """A :class:`logging.Filter` that rewrites log records to strip sensitive data."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = redact_message(record.getMessage())
            record.args = None
        else:
            record.msg = redact_message(str(record.msg))
        return True


def install_sanitizing_filter(
    target: logging.Logger | logging.Handler | None = None,
) -> SanitizingFilter:
    """Attach a :class:`SanitizingFilter` to *target* (or the root logger).

    A filter on a handler also covers records propagated from child
    loggers; a filter on a logger only sees records logged on it directly.

    Returns:
        The filter instance that was installed (useful for later removal).
    """
    filt = SanitizingFilter()
    (logging.getLogger() if target is None else target).addFilter(filt)
    return filt


class _StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time."""

    def __init__(self, level: int = logging.NOTSET) -> None:
        logging.Handler.__init__(self, level)

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr


def configure_logging(verbose: bool = False) -> logging.Handler:
    """Send ``munihash`` log records to stderr, sanitized.

    Idempotent: a handler installed by an earlier call is replaced, so
    repeated CLI invocations in one process never duplicate output.

    Returns:
        The installed handler.
    """
    pkg_logger = logging.getLogger("munihash")
    for old in [h for h in pkg_logger.handlers if isinstance(h, _StderrHandler)]:
        pkg_logger.removeHandler(old)

    handler = _StderrHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    install_sanitizing_filter(handler)
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return handler
