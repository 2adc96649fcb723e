"""Background scan of both roots for one generation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from queue import Empty, Full, Queue
from typing import TYPE_CHECKING

from dualdiff.core.content import ContentComparator
from dualdiff.core.errors import RootError
from dualdiff.core.models import Entry, EntryKind, ScanError, Side, Status
from dualdiff.core.scanner import DirectoryListed, EntryFailed, EntryFound, Scanner

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from dualdiff.core.filtering import FilterConfig
    from dualdiff.core.tree import ComparisonTree

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 4096
_PUT_TIMEOUT = 0.1


@dataclass(frozen=True)
class EntryMessage:
    """An entry, or a read error, for one side of a path."""

    generation: int
    relative_path: str
    side: Side
    item: Entry | ScanError


@dataclass(frozen=True)
class ListedMessage:
    """All children of a directory on one side have been sent."""

    generation: int
    relative_path: str
    side: Side


@dataclass(frozen=True)
class LeafMessage:
    """Comparator result for a file present on both sides."""

    generation: int
    relative_path: str
    status: Status


@dataclass(frozen=True)
class SideDoneMessage:
    """The scan of one root has finished."""

    generation: int
    side: Side
    entries: int


@dataclass(frozen=True)
class DoneMessage:
    """Both roots have been scanned and every pair compared."""

    generation: int


@dataclass(frozen=True)
class FailedMessage:
    """The scan could not run at all (an unreadable root)."""

    generation: int
    message: str


ScanMessage = (
    EntryMessage | ListedMessage | LeafMessage | SideDoneMessage | DoneMessage | FailedMessage
)


def apply_message(tree: ComparisonTree, message: ScanMessage) -> bool:
    """Apply one message to *tree*.

    Messages from any other generation are discarded.

    Returns:
        True if the message was applied.
    """
    if message.generation != tree.generation:
        return False
    if isinstance(message, EntryMessage):
        tree.insert_or_update(message.relative_path, message.side, message.item)
    elif isinstance(message, ListedMessage):
        tree.mark_listed(message.relative_path, message.side)
    elif isinstance(message, LeafMessage):
        tree.resolve_leaf(message.relative_path, message.status)
    elif isinstance(message, SideDoneMessage):
        tree.mark_side_complete(message.side)
    elif isinstance(message, DoneMessage):
        tree.mark_complete(message.generation)
    return True


class ScanSession:
    """Scans both roots on a worker thread and queues results.

    The worker only produces messages; the consumer applies them to its
    tree with :func:`apply_message`. The left root is scanned first, then
    the right one, and each file found on the right whose left counterpart
    is also a file is compared right away.
    """

    def __init__(
        self,
        generation: int,
        left_root: Path,
        right_root: Path,
        *,
        comparator: ContentComparator | None = None,
        filter_config: FilterConfig | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self._generation = generation
        self._roots = {Side.left: left_root, Side.right: right_root}
        self._comparator = comparator or ContentComparator()
        self._filter_config = filter_config
        self._queue: Queue[ScanMessage] = Queue(maxsize=queue_size)
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None
        self._counts: dict[Side, int] = {Side.left: 0, Side.right: 0}
        self._current: Side | None = None

    @property
    def generation(self) -> int:
        """Generation tag carried by every message."""
        return self._generation

    @property
    def cancelled(self) -> bool:
        """True once cancellation has been requested."""
        return self._cancel.is_set()

    @property
    def running(self) -> bool:
        """True while the worker thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def progress(self) -> str:
        """Short progress text for a status line."""
        if self._current is None:
            return "Starting scan..."
        return f"Scanning {self._current.value}... {self._counts[self._current]} entries"

    def start(self) -> None:
        """Start the worker thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.run,
            name=f"dualdiff-scan-{self._generation}",
            daemon=True,
        )
        self._thread.start()

    def cancel(self) -> None:
        """Ask the worker to stop at the next entry."""
        self._cancel.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the worker thread to finish."""
        if self._thread is not None:
            self._thread.join(timeout)

    def drain(self, limit: int | None = None) -> list[ScanMessage]:
        """Return queued messages without blocking."""
        out: list[ScanMessage] = []
        while limit is None or len(out) < limit:
            try:
                out.append(self._queue.get_nowait())
            except Empty:
                break
        return out

    def messages(self, poll_interval: float = 0.05) -> Iterator[ScanMessage]:
        """Yield messages as they arrive until the worker has finished."""
        while True:
            try:
                message = self._queue.get(timeout=poll_interval)
            except Empty:
                if not self.running:
                    yield from self.drain()
                    return
                continue
            yield message
            if isinstance(message, (DoneMessage, FailedMessage)):
                return

    def run(self) -> None:
        """Worker body: scan left, then right, comparing pairs as they meet."""
        logger.debug(
            "Generation %d: scanning %s and %s",
            self._generation,
            self._roots[Side.left],
            self._roots[Side.right],
        )
        try:
            left_files = self._scan_side(Side.left, None)
            if self.cancelled:
                return
            self._scan_side(Side.right, left_files)
            if self.cancelled:
                return
        except RootError as exc:
            logger.error("Generation %d failed: %s", self._generation, exc)
            self._put(FailedMessage(self._generation, str(exc)))
            return
        self._put(DoneMessage(self._generation))
        logger.debug("Generation %d complete", self._generation)

    def _scan_side(
        self,
        side: Side,
        counterpart: dict[str, Entry] | None,
    ) -> dict[str, Entry]:
        """Scan one root, returning its file entries by relative path."""
        self._current = side
        files: dict[str, Entry] = {}
        scanner = Scanner(self._roots[side], self._filter_config)

        for event in scanner.scan(self._cancel):
            if isinstance(event, EntryFound):
                self._counts[side] += 1
                if not self._put(
                    EntryMessage(self._generation, event.relative_path, side, event.entry)
                ):
                    return files
                if event.entry.kind != EntryKind.file:
                    continue
                files[event.relative_path] = event.entry
                other = counterpart.get(event.relative_path) if counterpart else None
                if other is not None and not self._put_comparison(other, event.entry):
                    return files
            elif isinstance(event, EntryFailed):
                if not self._put(
                    EntryMessage(self._generation, event.relative_path, side, event.error)
                ):
                    return files
            elif isinstance(event, DirectoryListed) and not self._put(
                ListedMessage(self._generation, event.relative_path, side)
            ):
                return files

        if not self.cancelled:
            self._put(SideDoneMessage(self._generation, side, self._counts[side]))
        return files

    def _put_comparison(self, left: Entry, right: Entry) -> bool:
        status = self._comparator.compare(left, right)
        return self._put(LeafMessage(self._generation, right.relative_path, status))

    def _put(self, message: ScanMessage) -> bool:
        """Queue a message, giving up once the session is cancelled."""
        while not self.cancelled:
            try:
                self._queue.put(message, timeout=_PUT_TIMEOUT)
            except Full:
                continue
            return True
        return False


def build_tree(
    left_root: Path,
    right_root: Path,
    *,
    comparator: ContentComparator | None = None,
    filter_config: FilterConfig | None = None,
    generation: int = 0,
) -> ComparisonTree:
    """Scan both roots to completion and return the finished tree.

    Raises:
        RootError: If either root cannot be scanned.
    """
    from dualdiff.core.tree import ComparisonTree

    tree = ComparisonTree(left_root, right_root, generation=generation)
    session = ScanSession(
        generation,
        left_root,
        right_root,
        comparator=comparator,
        filter_config=filter_config,
    )
    session.start()
    for message in session.messages():
        if isinstance(message, FailedMessage):
            raise RootError(message.message)
        apply_message(tree, message)
    session.join()
    return tree
