"""Receita Federal municipality table: download, local read, and text decoding.

Two acquisition paths feed the same decoder:

* **REST-based** -- :func:`fetch_dataset` downloads the published CSV.
* **File-based** -- :func:`read_dataset_file` reads a local copy (offline
  runs, tests, re-runs against a pinned snapshot).

The table has been published both as UTF-8 and as ISO-8859-1, so
:func:`decode_dataset` detects which one it got.  Every failure here is an
:class:`~munihash.core.errors.AcquisitionError`: nothing downstream runs on
a dataset that could not be read completely.
"""

from __future__ import annotations

import codecs
import logging
import urllib.error
import urllib.request
from pathlib import Path

from munihash.core.defaults import DEFAULT_FETCH_TIMEOUT_SECONDS
from munihash.core.errors import AcquisitionError

logger = logging.getLogger(__name__)

_USER_AGENT = "munihash/0.1 (+https://pypi.org/project/munihash/)"


def decode_dataset(raw: bytes) -> str:
    """Decode raw dataset bytes into text.

    Strict UTF-8 is tried first (a leading BOM is dropped).  Any byte
    sequence that is not valid UTF-8 means the file is in an 8-bit
    encoding, and it is decoded as ISO-8859-1, which maps every byte.

    Raises:
        AcquisitionError: If *raw* is empty.
    """
    if not raw:
        raise AcquisitionError("Dataset is empty")
    if raw.startswith(codecs.BOM_UTF8):
        raw = raw[len(codecs.BOM_UTF8):]
    try:
        text = raw.decode("utf-8")
        logger.debug("Decoded dataset as UTF-8 (%d bytes)", len(raw))
    except UnicodeDecodeError:
        text = raw.decode("latin-1")
        logger.debug("Decoded dataset as ISO-8859-1 (%d bytes)", len(raw))
    return text


def fetch_dataset(
    url: str,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> bytes:
    """Download the dataset at *url*.

    Args:
        url: HTTP(S) address of the CSV.
        timeout: Socket timeout in seconds.

    Returns:
        The raw response body.

    Raises:
        AcquisitionError: On HTTP errors, connection failures, or timeouts.
    """
    logger.info("Fetching dataset from %s (timeout=%ss)", url, timeout)
    request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:
            body: bytes = resp.read()
    except urllib.error.HTTPError as exc:
        raise AcquisitionError(f"HTTP {exc.code} fetching {url}") from exc
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        raise AcquisitionError(f"Cannot fetch {url}: {exc}") from exc
    logger.info("Fetched %d bytes", len(body))
    return body


def read_dataset_file(path: Path) -> bytes:
    """Read a local copy of the dataset.

    Raises:
        AcquisitionError: If *path* cannot be read.
    """
    try:
        return path.read_bytes()
    except OSError as exc:
        raise AcquisitionError(f"Cannot read dataset file {path}: {exc}") from exc


def load_dataset_text(
    *,
    url: str | None = None,
    path: Path | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> str:
    """Acquire and decode the dataset from a local *path* or a remote *url*.

    *path* wins when both are given.

    Raises:
        AcquisitionError: If neither source is given or acquisition fails.
    """
    if path is not None:
        raw = read_dataset_file(path)
    elif url:
        raw = fetch_dataset(url, timeout=timeout)
    else:
        raise AcquisitionError("No dataset source given (need a URL or a file path)")
    return decode_dataset(raw)
