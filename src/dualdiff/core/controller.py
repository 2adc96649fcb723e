"""Dual-panel state machine over one comparison tree.

Every user command goes through :class:`SyncController`, which decides
whether it touches the active panel only (navigation) or both panels
(expansion, filtering, swapping). Panels are keyed by relative path, so
they survive tree rebuilds.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from dualdiff.core.content import ContentComparator
from dualdiff.core.copier import CopyOperator
from dualdiff.core.errors import DualDiffError, LaunchError, ScanBusyError
from dualdiff.core.models import (
    CopyDirection,
    FilterMode,
    PanelState,
    PanelView,
    Row,
    Side,
    ViewSnapshot,
)
from dualdiff.core.paths import depth_of, parent_of, resolve
from dualdiff.core.session import DoneMessage, FailedMessage, ScanSession, apply_message
from dualdiff.core.tree import ComparisonTree

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from dualdiff.core.copier import CopyPlan
    from dualdiff.core.filtering import FilterConfig
    from dualdiff.core.models import Node

logger = logging.getLogger(__name__)

GLYPH_EXPANDED = "▾"
GLYPH_COLLAPSED = "▸"
GLYPH_NONE = " "
TYPE_CONFLICT_CLASS = "type_conflict"
_JOIN_TIMEOUT = 1.0


class Command(StrEnum):
    """Interactive command vocabulary, independent of key bindings."""

    navigate_up = "navigate_up"
    navigate_down = "navigate_down"
    page_up = "page_up"
    page_down = "page_down"
    top = "top"
    bottom = "bottom"
    switch_side = "switch_side"
    toggle_expand = "toggle_expand"
    expand_all = "expand_all"
    collapse_all = "collapse_all"
    set_filter = "set_filter"
    refresh = "refresh"
    cancel = "cancel"
    swap_sides = "swap_sides"
    copy = "copy"
    open_compare = "open_compare"
    quit = "quit"


def _is_directory(node: Node, side: Side) -> bool:
    entry = node.entry(side)
    return entry is not None and entry.is_dir


class SyncController:
    """Keeps both panels aligned over one ComparisonTree.

    Only the thread that owns the controller mutates the tree: scan
    results are pulled from the current session in :meth:`tick`.
    """

    def __init__(
        self,
        left_root: Path,
        right_root: Path,
        *,
        comparator: ContentComparator | None = None,
        filter_config: FilterConfig | None = None,
        open_diff_or_view: Callable[[Path | None, Path | None], None] | None = None,
        viewport_height: int = 20,
    ) -> None:
        """Set up an idle controller; call :meth:`refresh` to start scanning.

        Args:
            left_root: Left root directory.
            right_root: Right root directory.
            comparator: File pair comparator shared by scans and copies.
            filter_config: Entry filtering used by every scan.
            open_diff_or_view: External launcher for compare/open requests.
            viewport_height: Visible rows per panel, updated by the renderer.
        """
        self._roots: dict[Side, Path] = {Side.left: left_root, Side.right: right_root}
        self._comparator = comparator or ContentComparator()
        self._filter_config = filter_config
        self._open_diff_or_view = open_diff_or_view
        self.viewport_height = viewport_height

        self._generation = 0
        self._tree = ComparisonTree(left_root, right_root, generation=0)
        self._session: ScanSession | None = None
        self._panels: dict[Side, PanelState] = {Side.left: PanelState(), Side.right: PanelState()}
        self._filter_mode = FilterMode.all
        self._active = Side.left
        self._message: str | None = None
        self._failure: str | None = None

    # -- read-only state --------------------------------------------------

    @property
    def tree(self) -> ComparisonTree:
        """The tree of the current generation."""
        return self._tree

    @property
    def generation(self) -> int:
        """Current scan generation."""
        return self._generation

    @property
    def scanning(self) -> bool:
        """True while a scan generation is in flight."""
        return self._session is not None

    @property
    def active_side(self) -> Side:
        """Panel receiving navigation commands."""
        return self._active

    @property
    def filter_mode(self) -> FilterMode:
        """Filter applied to both panels."""
        return self._filter_mode

    @property
    def message(self) -> str | None:
        """Transient message for the user, if any."""
        return self._message

    @property
    def failure(self) -> str | None:
        """Set when a scan could not run at all."""
        return self._failure

    def root_of(self, side: Side) -> Path:
        """Return the root directory shown on *side*."""
        return self._roots[side]

    def panel(self, side: Side) -> PanelState:
        """Return the state of one panel."""
        return self._panels[side]

    def cursor_node(self, side: Side | None = None) -> Node | None:
        """Return the node under the cursor of *side* (default: active)."""
        side = side or self._active
        paths = self._visible_paths(side)
        index = self._resolve_cursor(side, paths)
        if index is None:
            return None
        return self._tree.get(paths[index])

    # -- scanning ---------------------------------------------------------

    def refresh(self) -> None:
        """Start a new scan generation, superseding any in flight."""
        if self._session is not None:
            self._session.cancel()
            self._session.join(_JOIN_TIMEOUT)
            if self._session.running:
                logger.warning("Scan generation %d is still winding down", self._generation)
        self._generation += 1
        self._tree = ComparisonTree(
            self._roots[Side.left],
            self._roots[Side.right],
            generation=self._generation,
        )
        self._failure = None
        self._session = ScanSession(
            self._generation,
            self._roots[Side.left],
            self._roots[Side.right],
            comparator=self._comparator,
            filter_config=self._filter_config,
        )
        logger.info("Starting scan generation %d", self._generation)
        self._session.start()

    def cancel(self) -> None:
        """Stop the in-flight scan, keeping the partial tree."""
        if self._session is None:
            return
        self._session.cancel()
        self._session = None
        self._message = "Scan cancelled"
        logger.info("Scan generation %d cancelled", self._generation)

    def tick(self, max_messages: int | None = None) -> bool:
        """Apply pending scan messages without blocking.

        Returns:
            True if the tree changed.
        """
        session = self._session
        if session is None:
            return False
        changed = False
        messages = session.drain(max_messages)
        if not messages and not session.running:
            # The worker may have queued its last message just before exiting.
            messages = session.drain(max_messages)
        if not messages and not session.running:
            logger.error("Scan generation %d stopped without finishing", self._generation)
            self._session = None
            self._message = "Scan stopped unexpectedly"
            return False
        for message in messages:
            if message.generation != self._generation:
                continue
            if isinstance(message, FailedMessage):
                self._failure = message.message
                self._message = message.message
                self._session = None
                return changed
            changed = apply_message(self._tree, message) or changed
            if isinstance(message, DoneMessage):
                self._session = None
                self._reconcile()
                break
        return changed

    def wait(self) -> None:
        """Block until the current scan generation has been fully applied."""
        session = self._session
        if session is None:
            return
        for message in session.messages():
            if self._session is not session:
                return
            if isinstance(message, FailedMessage):
                self._failure = message.message
                self._message = message.message
                self._session = None
                return
            apply_message(self._tree, message)
            if isinstance(message, DoneMessage):
                self._session = None
                self._reconcile()
                return

    def _reconcile(self) -> None:
        """Drop state for paths that vanished; move cursors to surviving ancestors."""
        for side, panel in self._panels.items():
            panel.expanded = {
                path
                for path in panel.expanded
                if (node := self._tree.get(path)) is not None and _is_directory(node, side)
            }
            cursor: str | None = panel.cursor
            while cursor is not None and cursor not in self._tree:
                cursor = parent_of(cursor)
            panel.cursor = cursor or ""

    def _require_idle(self) -> None:
        if self._session is not None:
            msg = "A scan is in progress; wait for it to finish or cancel it"
            raise ScanBusyError(msg)

    # -- navigation -------------------------------------------------------

    def navigate(self, delta: int) -> None:
        """Move the active cursor by *delta* rows."""
        side = self._active
        paths = self._visible_paths(side)
        if not paths:
            return
        index = self._resolve_cursor(side, paths) or 0
        self._place_cursor(side, paths, max(0, min(index + delta, len(paths) - 1)))

    def page(self, direction: int) -> None:
        """Move the active cursor by half a viewport."""
        self.navigate(direction * max(1, self.viewport_height // 2))

    def to_top(self) -> None:
        """Move the active cursor to the first row."""
        paths = self._visible_paths(self._active)
        if paths:
            self._place_cursor(self._active, paths, 0)

    def to_bottom(self) -> None:
        """Move the active cursor to the last row."""
        paths = self._visible_paths(self._active)
        if paths:
            self._place_cursor(self._active, paths, len(paths) - 1)

    def switch_side(self, side: Side | None = None) -> None:
        """Make *side* (default: the other panel) active.

        Rows are aligned, so the cursor row and scroll offset carry over.
        """
        target = side or self._active.opposite
        if target is self._active:
            return
        source = self._panels[self._active]
        self._panels[target].cursor = source.cursor
        self._panels[target].scroll_offset = source.scroll_offset
        self._active = target

    def _place_cursor(self, side: Side, paths: list[str], index: int) -> None:
        panel = self._panels[side]
        panel.cursor = paths[index]
        height = max(1, self.viewport_height)
        if index < panel.scroll_offset:
            panel.scroll_offset = index
        elif index >= panel.scroll_offset + height:
            panel.scroll_offset = index - height + 1

    # -- expansion and filtering -----------------------------------------

    def toggle_expand(self, relative_path: str | None = None) -> None:
        """Expand or collapse a directory on every side where it exists."""
        node = self._tree.get(relative_path) if relative_path is not None else self.cursor_node()
        if node is None or not node.is_dir or not node.relative_path:
            return
        opening = not self._is_open(node, self._active)
        for side, panel in self._panels.items():
            if not _is_directory(node, side):
                continue
            if opening:
                panel.expanded.add(node.relative_path)
            else:
                panel.expanded.discard(node.relative_path)
        self._clamp_cursors({})

    def expand_all(self) -> None:
        """Expand every directory present in the tree."""
        for path in self._tree.directory_paths()[1:]:
            node = self._tree.node(path)
            for side, panel in self._panels.items():
                if _is_directory(node, side):
                    panel.expanded.add(path)

    def collapse_all(self) -> None:
        """Collapse every directory."""
        fallback = self._cursor_indices()
        for panel in self._panels.values():
            panel.expanded.clear()
        self._clamp_cursors(fallback)

    def set_filter(self, filter_mode: FilterMode) -> None:
        """Apply *filter_mode* to both panels."""
        fallback = self._cursor_indices()
        self._filter_mode = filter_mode
        self._clamp_cursors(fallback)

    def _cursor_indices(self) -> dict[Side, int]:
        indices: dict[Side, int] = {}
        for side in Side:
            index = self._resolve_cursor(side, self._visible_paths(side))
            if index is not None:
                indices[side] = index
        return indices

    def _clamp_cursors(self, fallback: dict[Side, int]) -> None:
        """Move cursors that are no longer visible to the nearest visible row."""
        for side, panel in self._panels.items():
            paths = self._visible_paths(side)
            if not paths:
                panel.scroll_offset = 0
                continue
            index = self._resolve_cursor(side, paths, fallback.get(side, 0))
            assert index is not None
            self._place_cursor(side, paths, index)

    # -- tree-changing commands ------------------------------------------

    def swap_sides(self) -> None:
        """Exchange the two roots together with their panel states."""
        self._require_idle()
        self._roots = {Side.left: self._roots[Side.right], Side.right: self._roots[Side.left]}
        self._panels = {Side.left: self._panels[Side.right], Side.right: self._panels[Side.left]}
        self._tree.swap_sides()
        logger.info("Swapped sides: %s | %s", self._roots[Side.left], self._roots[Side.right])

    def plan_copy(self, direction: CopyDirection, relative_path: str | None = None) -> CopyPlan:
        """Describe a copy of the cursor row (or *relative_path*) for confirmation.

        Raises:
            ScanBusyError: While a scan is in flight.
            CopyError: If the source side has nothing at that path.
        """
        self._require_idle()
        return self._copier().plan(direction.source, self._target_path(relative_path))

    def copy(self, direction: CopyDirection, relative_path: str | None = None) -> None:
        """Copy the cursor row (or *relative_path*) in *direction*.

        Panels, filter and active side are left untouched.

        Raises:
            ScanBusyError: While a scan is in flight.
            CopyError: If the copy fails.
        """
        self._require_idle()
        path = self._target_path(relative_path)
        self._copier().copy(direction.source, path)
        self._message = f"Copied {path or '.'} to the {direction.source.opposite} side"

    def open_compare(self, relative_path: str | None = None) -> None:
        """Open a file row in the external diff tool or viewer.

        Raises:
            ScanBusyError: While a scan is in flight.
            LaunchError: If the row is not a file or no tool is available.
        """
        self._require_idle()
        node = self._tree.get(self._target_path(relative_path))
        if node is None or node.is_dir:
            msg = "Only files can be opened"
            raise LaunchError(msg)
        if self._open_diff_or_view is None:
            msg = "No external viewer configured"
            raise LaunchError(msg)
        paths = {
            side: resolve(self._roots[side], node.relative_path)
            if node.entry(side) is not None
            else None
            for side in Side
        }
        self._open_diff_or_view(paths[Side.left], paths[Side.right])

    def _target_path(self, relative_path: str | None) -> str:
        if relative_path is not None:
            return relative_path
        node = self.cursor_node()
        return node.relative_path if node is not None else ""

    def _copier(self) -> CopyOperator:
        return CopyOperator(
            self._tree,
            comparator=self._comparator,
            filter_config=self._filter_config,
        )

    # -- dispatch ---------------------------------------------------------

    def dispatch(self, command: Command, argument: object = None) -> bool:
        """Run one command, reporting failures as the transient message.

        Returns:
            False once the user asked to quit, True otherwise.
        """
        self._message = None
        if command == Command.quit:
            self.cancel()
            return False

        handlers: dict[Command, Callable[[], None]] = {
            Command.navigate_up: lambda: self.navigate(-1),
            Command.navigate_down: lambda: self.navigate(1),
            Command.page_up: lambda: self.page(-1),
            Command.page_down: lambda: self.page(1),
            Command.top: self.to_top,
            Command.bottom: self.to_bottom,
            Command.switch_side: lambda: self.switch_side(
                Side(str(argument)) if argument is not None else None
            ),
            Command.toggle_expand: self.toggle_expand,
            Command.expand_all: self.expand_all,
            Command.collapse_all: self.collapse_all,
            Command.refresh: self.refresh,
            Command.cancel: self.cancel,
            Command.swap_sides: self.swap_sides,
        }
        try:
            if command == Command.set_filter:
                self.set_filter(FilterMode(str(argument)))
            elif command == Command.copy:
                self.copy(CopyDirection(str(argument)))
            elif command == Command.open_compare:
                self.open_compare(argument if isinstance(argument, str) else None)
            else:
                handlers[command]()
        except DualDiffError as exc:
            logger.info("%s failed: %s", command.value, exc)
            self._message = str(exc)
        return True

    # -- views ------------------------------------------------------------

    def snapshot(self) -> ViewSnapshot:
        """Return the read-only view for one render tick."""
        return ViewSnapshot(
            left=self._panel_view(Side.left),
            right=self._panel_view(Side.right),
            active_side=self._active,
            filter_mode=self._filter_mode,
            scanning=self.scanning,
            progress=self._session.progress if self._session is not None else "",
            message=self._message,
            generation=self._generation,
        )

    def _panel_view(self, side: Side) -> PanelView:
        nodes = self._visible_nodes(side)
        paths = [n.relative_path for n in nodes]
        return PanelView(
            side=side,
            root=self._roots[side],
            rows=tuple(self._row(node, side) for node in nodes),
            cursor=self._resolve_cursor(side, paths),
            scroll_offset=self._panels[side].scroll_offset,
        )

    def _row(self, node: Node, side: Side) -> Row:
        entry = node.entry(side)
        if entry is None:
            glyph = GLYPH_NONE
        elif entry.is_dir:
            glyph = GLYPH_EXPANDED if self._is_open(node, side) else GLYPH_COLLAPSED
        else:
            glyph = GLYPH_NONE
        status_class = node.status.value
        if node.diff_kind is not None and node.diff_kind.value == TYPE_CONFLICT_CLASS:
            status_class = TYPE_CONFLICT_CLASS
        return Row(
            relative_path=node.relative_path,
            name=entry.name if entry is not None else "",
            depth=depth_of(node.relative_path),
            kind=entry.kind if entry is not None else None,
            size=entry.size if entry is not None and not entry.is_dir else None,
            modified=entry.modified if entry is not None else None,
            status=node.status,
            status_class=status_class,
            glyph=glyph,
            present=entry is not None,
        )

    def _is_open(self, node: Node, side: Side) -> bool:
        """A row is open if expanded on its side, or not a directory there but open opposite."""
        if node.relative_path in self._panels[side].expanded:
            return True
        return not _is_directory(node, side) and node.relative_path in (
            self._panels[side.opposite].expanded
        )

    def _visible_nodes(self, side: Side) -> list[Node]:
        out: list[Node] = []
        stack = list(reversed(list(self._tree.iter_children("", self._filter_mode))))
        while stack:
            node = stack.pop()
            out.append(node)
            if node.is_dir and self._is_open(node, side):
                children = list(self._tree.iter_children(node.relative_path, self._filter_mode))
                stack.extend(reversed(children))
        return out

    def _visible_paths(self, side: Side) -> list[str]:
        return [n.relative_path for n in self._visible_nodes(side)]

    def _resolve_cursor(
        self,
        side: Side,
        paths: list[str],
        fallback: int = 0,
    ) -> int | None:
        """Index of the cursor row, its nearest visible ancestor, or *fallback*."""
        if not paths:
            return None
        positions = {path: i for i, path in enumerate(paths)}
        current: str | None = self._panels[side].cursor
        while current:
            if current in positions:
                return positions[current]
            current = parent_of(current)
        return max(0, min(fallback, len(paths) - 1))
