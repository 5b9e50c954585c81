"""Panes: filtered, independently scrollable regions stacked above the transcript."""

import re

from mud_panes.ansi import RESET, strip_positioning, truncate_visible
from mud_panes.config import PaneConfig
from mud_panes.terminal import CLEAR_LINE, RESTORE_CURSOR, SAVE_CURSOR, cursor_to
from mud_panes.types import ClassifiedMessage, MessageType

FOCUS_BORDER = "\x1b[33m│\x1b[0m"

# Transcript rows kept free when shrinking panes on a small terminal
MIN_TRANSCRIPT_ROWS = 3


def normalize_channel(name: str) -> str:
    """Strip one surrounding pair of marker characters and lower-case.

    '*mortal*' -> 'mortal', 'Chat' -> 'chat'.
    """
    if len(name) >= 2 and name[0] == name[-1] and not name[0].isalnum():
        name = name[1:-1]
    return name.lower()


class Pane:
    """A bounded message list shown in a fixed block of rows.

    scroll_offset counts messages hidden below the view (0 = following the
    newest). While scrolled, new messages do not move the view; has_new is
    set until the view returns to the bottom.
    """

    def __init__(self, config: PaneConfig):
        self.config = config
        self.id = config.id
        self.filter = config.filter
        self.max_messages = config.max_messages
        self.focused = False
        self.height = config.height
        self.top_row = 0  # 0 = not placed on screen
        self.scroll_offset = 0
        self.has_new = False
        self.messages: list[str] = []
        self._pattern = re.compile(config.filter.pattern) if config.filter.pattern else None
        self._channels = {normalize_channel(c) for c in config.filter.channels}
        self._exclude = {normalize_channel(c) for c in config.filter.exclude_channels}

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def passthrough(self) -> bool:
        return self.config.passthrough

    def accepts(self, classified: ClassifiedMessage) -> bool:
        flt = self.filter
        if flt.types and classified.type.value not in flt.types:
            return False

        is_channel = classified.type is MessageType.CHANNEL
        channel = normalize_channel(classified.channel) if classified.channel else None

        if self._channels and is_channel:
            if channel is None or channel not in self._channels:
                return False

        if self._exclude and is_channel and channel is not None:
            if channel in self._exclude:
                return False

        if self._pattern is not None and not self._pattern.search(classified.raw):
            return False

        return True

    def add_message(self, text: str):
        self.messages.append(strip_positioning(text))
        if len(self.messages) > self.max_messages:
            del self.messages[: len(self.messages) - self.max_messages]
        if self.scroll_offset > 0:
            # Keep the same messages in view
            self.scroll_offset = min(self.scroll_offset + 1, self.max_scroll)
            self.has_new = True

    @property
    def max_scroll(self) -> int:
        return max(0, len(self.messages) - self.height)

    def scroll_up(self, n: int = 1):
        self.scroll_offset = min(self.max_scroll, self.scroll_offset + n)

    def scroll_down(self, n: int = 1):
        self.scroll_offset = max(0, self.scroll_offset - n)
        if self.scroll_offset == 0:
            self.has_new = False

    def reset_scroll(self):
        self.scroll_offset = 0
        self.has_new = False

    def clear(self):
        self.messages.clear()
        self.reset_scroll()

    def visible_messages(self) -> list[str]:
        end = len(self.messages) - self.scroll_offset
        start = max(0, end - self.height)
        return self.messages[start:end]

    def render(self, term):
        """Draw the visible window bottom-aligned into the assigned rows."""
        if self.top_row == 0 or self.height <= 0:
            return
        border = FOCUS_BORDER if self.focused else ""
        content_width = term.cols - (1 if self.focused else 0)

        out = []
        for i in range(self.height):
            out.append(cursor_to(self.top_row + i, 1) + CLEAR_LINE + border)

        visible = self.visible_messages()
        first_row = self.top_row + self.height - len(visible)
        for i, text in enumerate(visible):
            line = truncate_visible(text, content_width)
            out.append(cursor_to(first_row + i, 1) + border + line + RESET)
        term.write("".join(out))


class PaneManager:
    """Routes classified messages to panes and lays them out from row 1 down."""

    def __init__(self, configs: list[PaneConfig]):
        self.panes = [Pane(c) for c in configs]
        self._dirty: set[str] = set()

    def enabled_panes(self) -> list[Pane]:
        return [p for p in self.panes if p.enabled]

    def total_height(self) -> int:
        return sum(p.height for p in self.enabled_panes())

    def pane_ids(self) -> list[str]:
        return [p.id for p in self.panes]

    def get_pane(self, pane_id: str) -> Pane | None:
        for pane in self.panes:
            if pane.id == pane_id:
                return pane
        return None

    def status(self) -> list[dict]:
        return [
            {
                "id": p.id,
                "enabled": p.enabled,
                "height": p.config.height,
                "passthrough": p.passthrough,
                "messages": len(p.messages),
            }
            for p in self.panes
        ]

    @property
    def focused(self) -> Pane | None:
        for pane in self.panes:
            if pane.focused:
                return pane
        return None

    def route(self, text: str, classified: ClassifiedMessage) -> bool:
        """Deliver text to every enabled pane that accepts it.

        Returns True when it was consumed: at least one pane took it and
        none of those panes is passthrough.
        """
        matched = False
        passthrough = False
        for pane in self.enabled_panes():
            if pane.accepts(classified):
                pane.add_message(text)
                self._dirty.add(pane.id)
                matched = True
                if pane.passthrough:
                    passthrough = True
        return matched and not passthrough

    def layout(self, rows: int, start_row: int = 1) -> int:
        """Assign rows to enabled panes and return the first transcript row.

        When the terminal cannot fit every pane plus MIN_TRANSCRIPT_ROWS and
        the input line, panes shrink starting from the last one.
        """
        enabled = self.enabled_panes()
        for pane in self.panes:
            pane.height = pane.config.height
            pane.top_row = 0

        available = max(0, rows - 1 - MIN_TRANSCRIPT_ROWS - (start_row - 1))
        excess = sum(p.height for p in enabled) - available
        # First pass keeps one row per pane, second pass takes the rest
        for floor in (1, 0):
            for pane in reversed(enabled):
                if excess <= 0:
                    break
                cut = min(excess, pane.height - floor)
                if cut > 0:
                    pane.height -= cut
                    excess -= cut

        row = start_row
        for pane in enabled:
            if pane.height > 0:
                pane.top_row = row
                row += pane.height
            pane.scroll_offset = min(pane.scroll_offset, pane.max_scroll)
        return row

    def render_all(self, term):
        self._dirty.clear()
        panes = self.enabled_panes()
        if not panes:
            return
        term.write(SAVE_CURSOR)
        for pane in panes:
            pane.render(term)
        term.write(RESTORE_CURSOR)

    def render_dirty(self, term) -> bool:
        """Render panes that received messages since the last render."""
        dirty = [p for p in self.enabled_panes() if p.id in self._dirty]
        self._dirty.clear()
        if not dirty:
            return False
        term.write(SAVE_CURSOR)
        for pane in dirty:
            pane.render(term)
        term.write(RESTORE_CURSOR)
        return True

    def clear_all(self):
        for pane in self.panes:
            pane.clear()
            self._dirty.add(pane.id)

    def enable_pane(self, pane_id: str) -> bool:
        pane = self.get_pane(pane_id)
        if pane is None:
            return False
        pane.config.enabled = True
        return True

    def disable_pane(self, pane_id: str) -> bool:
        pane = self.get_pane(pane_id)
        if pane is None:
            return False
        pane.config.enabled = False
        pane.focused = False
        pane.top_row = 0
        return True

    def set_height(self, pane_id: str, height: int) -> bool:
        pane = self.get_pane(pane_id)
        if pane is None or height < 1:
            return False
        pane.config.height = height
        pane.height = height
        return True

    def set_passthrough(self, pane_id: str, passthrough: bool) -> bool:
        pane = self.get_pane(pane_id)
        if pane is None:
            return False
        pane.config.passthrough = passthrough
        return True

    def focus_next(self) -> Pane | None:
        """Move focus to the next enabled pane; after the last one, focus nothing."""
        candidates = [p for p in self.enabled_panes() if p.height > 0]
        current = self.focused
        for pane in self.panes:
            pane.focused = False
        if not candidates:
            return None
        if current is None or current not in candidates:
            nxt = candidates[0]
        else:
            index = candidates.index(current) + 1
            if index >= len(candidates):
                return None
            nxt = candidates[index]
        nxt.focused = True
        return nxt
