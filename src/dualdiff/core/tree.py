"""Paired comparison tree with incremental, bottom-up status propagation."""

from __future__ import annotations

import bisect
import logging
from typing import TYPE_CHECKING

from dualdiff.core.models import (
    Entry,
    FilterMode,
    Node,
    ScanError,
    Side,
    Status,
    TreeStats,
)
from dualdiff.core.paths import name_of, parent_of

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)


def _sort_key(node: Node) -> tuple[int, str, str]:
    """Directories first, then case-insensitive name."""
    return (0 if node.is_dir else 1, node.name.casefold(), node.name)


class ComparisonTree:
    """The paired tree for one scan generation of both roots.

    Nodes live in an arena keyed by relative path. Every mutation
    recomputes the status of the touched node and its ancestor chain only;
    ``refold`` recomputes everything bottom-up.

    Directory status is derived from children, in priority order:
    pending, one-sided, error, different, identical.
    """

    def __init__(self, left_root: Path, right_root: Path, *, generation: int = 0) -> None:
        """Create an empty tree for one generation.

        Args:
            left_root: Root directory of the left side.
            right_root: Root directory of the right side.
            generation: Scan generation this tree belongs to.
        """
        self._roots: dict[Side, Path] = {Side.left: left_root, Side.right: right_root}
        self._generation = generation
        self._nodes: dict[str, Node] = {"": Node("", "", scan_generation=generation)}
        self._complete_sides: set[Side] = set()
        self._complete = False

    @property
    def generation(self) -> int:
        """Scan generation of this tree."""
        return self._generation

    @property
    def complete(self) -> bool:
        """True once the generation has been marked complete."""
        return self._complete

    @property
    def root(self) -> Node:
        """The node for the two roots themselves."""
        return self._nodes[""]

    def root_of(self, side: Side) -> Path:
        """Return the root directory for *side*."""
        return self._roots[side]

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, relative_path: str) -> Node | None:
        """Return the node at *relative_path*, or None."""
        return self._nodes.get(relative_path)

    def node(self, relative_path: str) -> Node:
        """Return the node at *relative_path*.

        Raises:
            KeyError: If no such node exists.
        """
        return self._nodes[relative_path]

    def status_of(self, relative_path: str) -> Status:
        """Return the current status at *relative_path*."""
        return self._nodes[relative_path].status

    def iter_children(
        self,
        relative_path: str,
        filter_mode: FilterMode = FilterMode.all,
    ) -> Iterator[Node]:
        """Yield the ordered children of a node that pass *filter_mode*.

        Filtering is a view predicate; the tree is never modified.
        """
        for child in self._nodes[relative_path].children:
            if filter_mode.accepts(child.status):
                yield child

    def walk(self) -> Iterator[Node]:
        """Yield every node below the root in display order (pre-order)."""
        stack = list(reversed(self.root.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def subtree(self, relative_path: str) -> Iterator[Node]:
        """Yield the node at *relative_path* and all its descendants."""
        top = self._nodes.get(relative_path)
        if top is None:
            return
        stack = [top]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def directory_paths(self) -> list[str]:
        """Return every directory path in the tree, the root included."""
        return [""] + [n.relative_path for n in self.walk() if n.is_dir]

    def stats(self) -> TreeStats:
        """Count file nodes by status."""
        return TreeStats.from_statuses(n.status for n in self.walk() if not n.is_dir)

    # -- mutation ---------------------------------------------------------

    def insert_or_update(self, relative_path: str, side: Side, item: Entry | ScanError) -> Node:
        """Record an entry, or a read error, for one side of a path.

        Missing ancestors are created as placeholders. A new entry clears
        any previous error and comparison result on that side.
        """
        node = self._ensure(relative_path)
        if isinstance(item, ScanError):
            node.errors[side] = item
        else:
            was_dir = node.is_dir
            node.set_entry(side, item)
            node.errors.pop(side, None)
            node.compared = None
            if node.is_dir != was_dir and relative_path:
                self._reposition(node)
        node.scan_generation = self._generation
        self._refresh_chain(relative_path)
        return node

    def discard(self, relative_path: str, side: Side) -> None:
        """Forget one side of a path; drop the node once both sides are gone."""
        node = self._nodes.get(relative_path)
        if node is None or not relative_path:
            return
        node.set_entry(side, None)
        node.errors.pop(side, None)
        node.listed.discard(side)
        node.compared = None
        if node.left is None and node.right is None and not node.errors:
            self._remove_subtree(node)
            parent_path = parent_of(relative_path)
            if parent_path is not None:
                self._refresh_chain(parent_path)
            return
        self._refresh_chain(relative_path)

    def resolve_leaf(self, relative_path: str, status: Status) -> None:
        """Store a comparator result for a file pair."""
        node = self._nodes.get(relative_path)
        if node is None:
            return
        node.compared = status
        node.scan_generation = self._generation
        self._refresh_chain(relative_path)

    def mark_listed(self, relative_path: str, side: Side) -> None:
        """Record that all children of a directory on *side* are known.

        Children lacking that side are now settled as one-sided.
        """
        node = self._nodes.get(relative_path)
        if node is None:
            return
        node.listed.add(side)
        for child in node.children:
            if child.entry(side) is None:
                self._refold_subtree(child)
        self._refresh_chain(relative_path)

    def mark_side_complete(self, side: Side) -> None:
        """Record that the scan of *side* has finished."""
        self._complete_sides.add(side)
        self.refold()

    def mark_complete(self, generation: int) -> bool:
        """Mark the generation complete and refold every status.

        Returns:
            False, and changes nothing, if *generation* is not this tree's.
        """
        if generation != self._generation:
            logger.debug("Ignoring completion of stale generation %d", generation)
            return False
        self._complete_sides.update(Side)
        self._complete = True
        self.refold()
        return True

    def swap_sides(self) -> None:
        """Exchange left and right everywhere; relative paths are unchanged."""
        self._roots = {Side.left: self._roots[Side.right], Side.right: self._roots[Side.left]}
        self._complete_sides = {s.opposite for s in self._complete_sides}
        for node in self._nodes.values():
            node.left, node.right = node.right, node.left
            node.errors = {s.opposite: e for s, e in node.errors.items()}
            node.listed = {s.opposite for s in node.listed}
        self.refold()

    def refold(self) -> None:
        """Recompute every status bottom-up."""
        self._refold_subtree(self.root)

    # -- internals --------------------------------------------------------

    def _ensure(self, relative_path: str) -> Node:
        node = self._nodes.get(relative_path)
        if node is not None:
            return node
        parent_path = parent_of(relative_path)
        assert parent_path is not None
        parent = self._ensure(parent_path)
        node = Node(relative_path, name_of(relative_path), scan_generation=self._generation)
        self._nodes[relative_path] = node
        bisect.insort(parent.children, node, key=_sort_key)
        parent.child_counts[node.status] += 1
        return node

    def _reposition(self, node: Node) -> None:
        parent_path = parent_of(node.relative_path)
        assert parent_path is not None
        siblings = self._nodes[parent_path].children
        siblings.remove(node)
        bisect.insort(siblings, node, key=_sort_key)

    def _remove_subtree(self, node: Node) -> None:
        parent_path = parent_of(node.relative_path)
        assert parent_path is not None
        parent = self._nodes[parent_path]
        parent.children.remove(node)
        parent.child_counts[node.status] -= 1
        stack = [node]
        while stack:
            current = stack.pop()
            self._nodes.pop(current.relative_path, None)
            stack.extend(current.children)

    def _refresh_chain(self, relative_path: str) -> None:
        current: str | None = relative_path
        while current is not None:
            node = self._nodes[current]
            self._set_status(node, self._evaluate(node))
            current = parent_of(current)

    def _refold_subtree(self, top: Node) -> None:
        order: list[Node] = []
        stack = [top]
        while stack:
            node = stack.pop()
            order.append(node)
            stack.extend(node.children)
        for node in reversed(order):
            self._set_status(node, self._evaluate(node))
        parent_path = parent_of(top.relative_path)
        if parent_path is not None:
            self._refresh_chain(parent_path)

    def _set_status(self, node: Node, status: Status) -> None:
        if node.status == status:
            return
        parent_path = parent_of(node.relative_path)
        if parent_path is not None:
            counts = self._nodes[parent_path].child_counts
            counts[node.status] -= 1
            counts[status] += 1
        node.status = status

    def _side_settled(self, node: Node, side: Side) -> bool:
        """True once an absent entry on *side* is known to be truly absent."""
        if side in self._complete_sides:
            return True
        current = parent_of(node.relative_path)
        while current is not None:
            parent = self._nodes[current]
            if side in parent.listed:
                return True
            if parent.entry(side) is not None or side in parent.errors:
                return False
            current = parent_of(current)
        return False

    def _evaluate(self, node: Node) -> Status:
        missing = [s for s in Side if node.entry(s) is None and s not in node.errors]
        if not node.is_dir:
            return self._evaluate_leaf(node, missing)

        if node.child_counts[Status.pending]:
            return Status.pending
        for side in Side:
            entry = node.entry(side)
            if (
                entry is not None
                and entry.is_dir
                and side not in node.listed
                and side not in self._complete_sides
            ):
                return Status.pending
        if len(missing) == 2:
            return Status.pending
        if missing:
            if not self._side_settled(node, missing[0]):
                return Status.pending
            return Status.only(missing[0].opposite)
        if node.errors:
            return Status.error
        if node.left is not None and node.right is not None and node.left.kind != node.right.kind:
            return Status.different
        if node.child_counts[Status.identical] < len(node.children):
            return Status.different
        return Status.identical

    def _evaluate_leaf(self, node: Node, missing: list[Side]) -> Status:
        if node.errors:
            return Status.error
        if len(missing) == 2:
            return Status.pending
        if missing:
            if not self._side_settled(node, missing[0]):
                return Status.pending
            return Status.only(missing[0].opposite)
        return node.compared or Status.pending
