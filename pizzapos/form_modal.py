"""Keyboard-driven multi-field form modal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static


@dataclass(frozen=True)
class FormField:
    """One text field of a form."""

    key: str
    label: str
    secret: bool = False
    max_length: int = 80
    initial: str = ""


class FormModal(ModalScreen[dict[str, str] | None]):
    """Collect a few text values; `on_confirm` returns an error message or None to accept."""

    CSS = """
    FormModal {
        align: center middle;
        background: $background 60%;
    }

    #form-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #form-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #form-body {
        color: white;
        margin-bottom: 1;
    }

    #form-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #form-help {
        color: #dddddd;
    }
    """

    def __init__(
        self,
        title: str,
        fields: list[FormField],
        on_confirm: Callable[[dict[str, str]], str | None] | None = None,
    ) -> None:
        super().__init__()
        self.title_text = title
        self.fields = fields
        self.on_confirm = on_confirm
        self.values = {field.key: field.initial for field in fields}
        self.cursor = 0
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="form-dialog"):
            yield Static(self.title_text, id="form-title")
            yield Static(id="form-body")
            yield Static(id="form-error")
            yield Static("Tab/Up/Down move. Enter confirm. Backspace delete. Esc cancel.", id="form-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key in {"tab", "down"}:
            self.cursor = (self.cursor + 1) % len(self.fields)
            self._refresh_content()
            event.stop()
            return

        if event.key in {"shift+tab", "up"}:
            self.cursor = (self.cursor - 1) % len(self.fields)
            self._refresh_content()
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        field = self.fields[self.cursor]
        if event.key == "backspace":
            self.values[field.key] = self.values[field.key][:-1]
            self.error = ""
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            if len(self.values[field.key]) < field.max_length:
                self.values[field.key] += event.character
            self.error = ""
            self._refresh_content()
            event.stop()
            return

        # Ignore all other keys while the form is open.
        event.stop()

    def _confirm(self) -> None:
        values = dict(self.values)
        if self.on_confirm is not None:
            error = self.on_confirm(values)
            if error:
                self.error = error
                self._refresh_content()
                return
        self.dismiss(values)

    def _refresh_content(self) -> None:
        body = Text()
        for idx, field in enumerate(self.fields):
            if idx > 0:
                body.append("\n")
            pointer = "➤ " if idx == self.cursor else "  "
            value = self.values[field.key]
            shown = "•" * len(value) if field.secret else value
            body.append(pointer)
            body.append(f"{field.label}: ", style="bold")
            body.append(shown)
            if idx == self.cursor:
                body.append("▏", style="blink")
        self.query_one("#form-body", Static).update(body)
        self.query_one("#form-error", Static).update(self.error or "")


class ChoiceModal(ModalScreen[str | None]):
    """Pick one option by its hotkey."""

    CSS = """
    ChoiceModal {
        align: center middle;
        background: $background 60%;
    }

    #choice-dialog {
        width: 48;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #choice-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }
    """

    def __init__(self, title: str, options: list[tuple[str, str, str]]) -> None:
        """`options` holds (hotkey, value, label) triples."""
        super().__init__()
        self.title_text = title
        self.options = options

    def compose(self) -> ComposeResult:
        lines = Text()
        for idx, (hotkey, _, label) in enumerate(self.options):
            if idx > 0:
                lines.append("\n")
            lines.append(f"[{hotkey}]", style="bold")
            lines.append(f" {label}")
        lines.append("\n\nEsc cancel", style="dim")
        with Container(id="choice-dialog"):
            yield Static(self.title_text, id="choice-title")
            yield Static(lines)

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "q", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return
        for hotkey, value, _ in self.options:
            if event.key == hotkey:
                self.dismiss(value)
                event.stop()
                return
