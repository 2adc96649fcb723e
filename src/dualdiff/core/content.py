"""Staged content comparison for a single file pair."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dualdiff.core.models import Status

if TYPE_CHECKING:
    from pathlib import Path

    from dualdiff.core.models import Entry

logger = logging.getLogger(__name__)

_HASH_BUFFER_SIZE = 65536


@dataclass(frozen=True)
class CompareThresholds:
    """Policy constants trading accuracy for speed.

    Files below ``small_file_limit`` bytes are compared byte for byte,
    files below ``hash_file_limit`` by digest, and anything larger only by
    its leading ``head_bytes``.
    """

    small_file_limit: int = 4 * 1024
    hash_file_limit: int = 1024 * 1024
    head_bytes: int = 4 * 1024
    hash_algo: str = "sha256"


class ContentComparator:
    """Compares two file entries with a staged, short-circuiting policy.

    Stages, in order:

    1. sizes differ -> different (no content read)
    2. both empty -> identical
    3. small files -> full byte comparison
    4. medium files -> streaming hash digest comparison
    5. large files -> leading ``head_bytes`` only

    Stage 5 reports equal prefixes as identical even when the tails differ.
    Unreadable files yield ``Status.error`` rather than raising.
    """

    def __init__(self, thresholds: CompareThresholds | None = None) -> None:
        """Initialize with comparison thresholds.

        Args:
            thresholds: Policy constants. Defaults to CompareThresholds().
        """
        self._thresholds = thresholds or CompareThresholds()

    @property
    def thresholds(self) -> CompareThresholds:
        """The policy constants in use."""
        return self._thresholds

    def compare(self, left: Entry, right: Entry) -> Status:
        """Compare two file entries.

        Args:
            left: Entry captured under the left root.
            right: Entry captured under the right root.

        Returns:
            ``identical``, ``different`` or ``error``.
        """
        if left.kind != right.kind:
            return Status.different
        if left.size != right.size:
            return Status.different
        if left.size == 0:
            return Status.identical
        if not (left.readable and right.readable):
            logger.debug("Unreadable pair: %s / %s", left.path, right.path)
            return Status.error

        size = left.size
        limits = self._thresholds
        try:
            if size < limits.small_file_limit:
                same = left.path.read_bytes() == right.path.read_bytes()
            elif size < limits.hash_file_limit:
                same = self._hash_file(left.path) == self._hash_file(right.path)
            else:
                same = self._read_head(left.path) == self._read_head(right.path)
        except OSError as exc:
            logger.warning("Cannot compare %s: %s", left.relative_path, exc)
            return Status.error

        return Status.identical if same else Status.different

    def _hash_file(self, path: Path) -> str:
        """Compute the hex digest of a file using streaming reads."""
        hasher = hashlib.new(self._thresholds.hash_algo)
        with path.open("rb") as f:
            while True:
                chunk = f.read(_HASH_BUFFER_SIZE)
                if not chunk:
                    break
                hasher.update(chunk)
        return hasher.hexdigest()

    def _read_head(self, path: Path) -> bytes:
        """Read the leading bytes of a file."""
        with path.open("rb") as f:
            return f.read(self._thresholds.head_bytes)
