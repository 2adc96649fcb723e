"""Modal confirmation for a planned copy."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding, BindingType
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from dualdiff.tui.widgets._styles import format_size

if TYPE_CHECKING:
    from textual.app import ComposeResult

    from dualdiff.core.copier import CopyPlan


def describe_plan(plan: CopyPlan) -> str:
    """Return the confirmation text for *plan*."""
    arrow = "->" if plan.direction.source.value == "left" else "<-"
    lines = [
        f"Copy {plan.relative_path or '.'} {arrow}",
        f"  from {plan.source}",
        f"  to   {plan.target}",
    ]
    if plan.is_dir:
        lines.append(
            f"{plan.file_count} files, {plan.folder_count} folders, "
            f"{format_size(plan.total_bytes).strip()}"
        )
    else:
        lines.append(format_size(plan.total_bytes).strip())
    if plan.overwrites:
        lines.append("The destination exists and will be overwritten.")
    return "\n".join(lines)


class ConfirmCopyScreen(ModalScreen[bool]):
    """Asks the user to confirm a copy; dismisses with True to proceed."""

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape,n,q", "cancel", "Cancel"),
        Binding("y,enter", "confirm", "Copy"),
    ]

    DEFAULT_CSS = """
    ConfirmCopyScreen {
        align: center middle;
    }
    #confirm-box {
        width: 72;
        height: auto;
        border: round $accent;
        padding: 1 2;
    }
    #confirm-buttons {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, plan: CopyPlan) -> None:
        super().__init__()
        self.plan = plan

    def compose(self) -> ComposeResult:
        with Container(), Vertical(id="confirm-box"):
            yield Static(describe_plan(self.plan), markup=False)
            with Horizontal(id="confirm-buttons"):
                yield Button("Copy [Y]", id="confirm", variant="warning")
                yield Button("Cancel [N]", id="cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm")

    def action_cancel(self) -> None:
        self.dismiss(False)

    def action_confirm(self) -> None:
        self.dismiss(True)
