"""Custom date range entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from order_board.filters import CustomRange

_FIELDS = ("start", "end")
_ALLOWED_CHARS = set("0123456789-: ")
_MAX_LEN = len("YYYY-MM-DD HH:MM")


def parse_range_input(start: str, end: str) -> CustomRange:
    """Build a range from ``YYYY-MM-DD[ HH:MM]`` inputs. Raises ValueError when invalid."""
    start_date, _, start_time = start.strip().partition(" ")
    end_date, _, end_time = end.strip().partition(" ")
    custom_range = CustomRange(
        start_date=start_date,
        end_date=end_date,
        start_time=start_time.strip(),
        end_time=end_time.strip(),
    )
    if custom_range.is_empty():
        raise ValueError("Enter a start date, an end date, or both.")
    try:
        bounds = custom_range.bounds()
    except ValueError as exc:
        raise ValueError("Dates must look like YYYY-MM-DD.") from exc
    if bounds is not None and bounds[0] > bounds[1]:
        raise ValueError("Start must be before end.")
    return custom_range


class DateRangeModal(ModalScreen[CustomRange | None]):
    """Prompt for a custom start/end range."""

    CSS = """
    DateRangeModal {
        align: center middle;
        background: $background 60%;
    }

    #range-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #range-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    .range-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #range-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #range-help {
        color: #dddddd;
    }
    """

    def __init__(self, initial: CustomRange | None = None) -> None:
        super().__init__()
        self.values = {"start": "", "end": ""}
        if initial is not None:
            self.values["start"] = f"{initial.start_date} {initial.start_time}".strip()
            self.values["end"] = f"{initial.end_date} {initial.end_time}".strip()
        self.active_field = "start"
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="range-dialog"):
            yield Static("Custom Range", id="range-title")
            yield Static(id="range-start", classes="range-value")
            yield Static(id="range-end", classes="range-value")
            yield Static(id="range-error")
            yield Static("YYYY-MM-DD [HH:MM]. Tab switch field. Enter confirm. Esc cancel.", id="range-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key in {"tab", "shift+tab", "up", "down"}:
            idx = _FIELDS.index(self.active_field)
            self.active_field = _FIELDS[(idx + 1) % len(_FIELDS)]
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            value = self.values[self.active_field]
            if value:
                self.values[self.active_field] = value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and event.character in _ALLOWED_CHARS:
            if len(self.values[self.active_field]) < _MAX_LEN:
                self.values[self.active_field] += event.character
            self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        try:
            custom_range = parse_range_input(self.values["start"], self.values["end"])
        except ValueError as exc:
            self.error = str(exc)
            self._refresh_content()
            return
        self.dismiss(custom_range)

    def _refresh_content(self) -> None:
        for name in _FIELDS:
            widget = self.query_one(f"#range-{name}", Static)
            pointer = "➤ " if name == self.active_field else "  "
            cursor = "|" if name == self.active_field else ""
            widget.update(f"{pointer}{name.title()}: {self.values[name]}{cursor}")
        self.query_one("#range-error", Static).update(self.error or "")
