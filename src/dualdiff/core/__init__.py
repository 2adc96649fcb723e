"""Public API for dualdiff.core."""

from __future__ import annotations

from dualdiff.core.content import CompareThresholds, ContentComparator
from dualdiff.core.controller import Command, SyncController
from dualdiff.core.copier import CopyOperator, CopyPlan
from dualdiff.core.errors import (
    CopyError,
    CopyFailure,
    DualDiffError,
    LaunchError,
    RootError,
    ScanBusyError,
)
from dualdiff.core.filtering import FileFilter, FilterConfig
from dualdiff.core.launcher import Launcher
from dualdiff.core.models import (
    CopyDirection,
    DiffKind,
    Entry,
    EntryKind,
    FilterMode,
    Node,
    PanelState,
    PanelView,
    Row,
    ScanError,
    Side,
    Status,
    TreeStats,
    ViewSnapshot,
)
from dualdiff.core.scanner import Scanner, check_root
from dualdiff.core.session import ScanSession, build_tree
from dualdiff.core.tree import ComparisonTree

__all__ = [
    "Command",
    "CompareThresholds",
    "ComparisonTree",
    "ContentComparator",
    "CopyDirection",
    "CopyError",
    "CopyFailure",
    "CopyOperator",
    "CopyPlan",
    "DiffKind",
    "DualDiffError",
    "Entry",
    "EntryKind",
    "FileFilter",
    "FilterConfig",
    "FilterMode",
    "LaunchError",
    "Launcher",
    "Node",
    "PanelState",
    "PanelView",
    "RootError",
    "Row",
    "ScanBusyError",
    "ScanError",
    "ScanSession",
    "Scanner",
    "Side",
    "Status",
    "SyncController",
    "TreeStats",
    "ViewSnapshot",
    "build_tree",
    "check_root",
]
