from __future__ import annotations

import time
from typing import TYPE_CHECKING

from mud_panes.aliases import AliasStore
from mud_panes.classifier import MessageClassifier
from mud_panes.completion import TabCompletion, WordBuffer
from mud_panes.debug_log import DebugLogger
from mud_panes.history import CommandHistory, ReverseSearch
from mud_panes.input_line import InputLine
from mud_panes.output import OutputPipeline
from mud_panes.panes import PaneManager
from mud_panes.terminal import CLEAR_LINE, RESTORE_CURSOR, SAVE_CURSOR, cursor_to
from mud_panes.types import ConnectionState

if TYPE_CHECKING:
    from mud_panes.config import PanesConfig, Settings
    from mud_panes.terminal import Terminal


class ClientUI:
    PROMPT = "> "
    SET_PREFIX = "/set "

    def __init__(self, term: "Terminal", panes_config: "PanesConfig", settings: "Settings",
                 debug_logger: "DebugLogger | None" = None, aliases: "AliasStore | None" = None,
                 clock=time.monotonic, now=time.time):
        self.term = term
        self.panes_config = panes_config
        self.settings = settings
        self.debug_logger = debug_logger or DebugLogger()

        self.classifier = MessageClassifier(panes_config.classifiers)
        self.panes = PaneManager(panes_config.panes)
        self.aliases = aliases if aliases is not None else AliasStore()

        self.input_line = InputLine()
        self.history = CommandHistory()
        self.search = ReverseSearch(self.history)
        self.completion = TabCompletion()
        self.words = WordBuffer()

        self.output = OutputPipeline(term, self.classifier, self.panes, settings,
                                     logger=self.debug_logger, clock=clock, now=now,
                                     on_flush=self.draw_input, on_line=self.words.add_text)

        self.status = "disconnected"

    # --- Screen ---

    def setup(self):
        self.term.clear_screen()
        self.relayout()

    def relayout(self):
        """Re-derive pane rows and the scroll region together, then redraw fixed rows."""
        top = self.panes.layout(self.term.rows)
        self.term.set_scroll_top(top)
        self.panes.render_all(self.term)
        self.draw_input()

    def redraw(self):
        self.term.clear_screen()
        self.relayout()

    def resize(self) -> bool:
        """Re-read the terminal size and re-derive the layout.

        Only the rows panes and the input line used are cleared; the
        transcript keeps whatever the terminal left on screen.
        """
        old_top, old_rows = self.term.scroll_top, self.term.rows
        if not self.term.refresh_size():
            return False
        stale = set(range(1, old_top))
        stale.add(old_rows)
        rows = [r for r in sorted(stale) if r <= self.term.rows]
        self.term.write(SAVE_CURSOR
                        + "".join(cursor_to(r, 1) + CLEAR_LINE for r in rows)
                        + RESTORE_CURSOR)
        self.relayout()
        return True

    def shutdown(self):
        self.term.reset_scroll_region()
        self.term.write(cursor_to(self.term.rows, 1) + "\r\n")
        self.term.flush()

    def set_status(self, state: ConnectionState, host: str | None):
        if state is ConnectionState.CONNECTED:
            self.status = host or "connected"
        elif state is ConnectionState.CONNECTING:
            self.status = f"connecting to {host}..." if host else "connecting..."
        elif host:
            self.status = f"{host} (disconnected)"
        else:
            self.status = "disconnected"
        self.draw_input()

    def draw_input(self):
        status = self.status if self.settings.status == "right" else ""
        if self.search.active:
            match = self.search.match or ""
            self.term.draw_input(self.search.prompt(), match, len(match), status)
        else:
            self.term.draw_input(self.PROMPT, self.input_line.text, self.input_line.cursor, status)

    # --- Output ---

    def add_server_text(self, text: str):
        self.output.feed(text)

    def echo(self, message: str):
        self.output.echo(message)

    def clear(self):
        """Clear the transcript and every pane."""
        self.output.flush()
        self.panes.clear_all()
        self.redraw()

    # --- Keys ---

    def handle_key(self, key: str):
        # Returns (line_to_send or None, interrupt_bool)
        if key in ("ctrl-c", "ctrl-d"):
            if self.search.active:
                self.input_line.set_text(self.search.cancel())
                self.draw_input()
                return None, False
            return None, True

        if self.search.active:
            self._handle_search_key(key)
            self.draw_input()
            return None, False

        if key != "tab":
            self.completion.reset()

        line = self._handle_edit_key(key)
        self.draw_input()
        return line, False

    def _handle_search_key(self, key: str):
        if key == "ctrl-r":
            self.search.next()
        elif key == "backspace":
            self.search.backspace()
        elif key in ("esc", "ctrl-g"):
            self.input_line.set_text(self.search.cancel())
        elif len(key) == 1:
            self.search.type(key)
        else:
            # Any other key accepts the match for editing
            self.input_line.set_text(self.search.accept())

    def _handle_edit_key(self, key: str) -> str | None:
        buf = self.input_line

        if key == "enter":
            line = buf.clear()
            self.history.reset()
            return line

        if key == "tab":
            buf.set_text(self._complete(buf.text))
            return None

        if key == "ctrl-r":
            self.search.start(buf.text)
            return None

        if key == "ctrl-o":
            self.panes.focus_next()
            self.panes.render_all(self.term)
            return None

        if key in ("pgup", "pgdn"):
            self._scroll_pane(up=key == "pgup")
            return None

        if key == "ctrl-l":
            self.redraw()
            return None

        if key == "up":
            buf.set_text(self.history.navigate_up(buf.text))
            return None

        if key == "down":
            buf.set_text(self.history.navigate_down(buf.text))
            return None

        if key == "left":
            buf.move_left()
        elif key == "right":
            buf.move_right()
        elif key in ("home", "ctrl-a"):
            buf.move_home()
        elif key in ("end", "ctrl-e"):
            buf.move_end()
        elif key == "ctrl-left":
            buf.move_word_left()
        elif key == "ctrl-right":
            buf.move_word_right()
        elif key == "backspace":
            buf.backspace()
            self.history.reset()
        elif key == "delete":
            buf.delete()
            self.history.reset()
        elif key == "ctrl-w":
            buf.kill_word_back()
            self.history.reset()
        elif key == "ctrl-u":
            buf.kill_to_start()
            self.history.reset()
        elif len(key) == 1:
            buf.insert(key)
            self.history.reset()
        return None

    def _complete(self, text: str) -> str:
        """Tab: cycle setting names and values after /set, otherwise complete a word."""
        if text.lower().startswith(self.SET_PREFIX):
            rest = text[len(self.SET_PREFIX):]
            if " " not in rest:
                return self.completion.cycle(self.SET_PREFIX, self.settings.keys(), rest, text)
            key, _, value = rest.partition(" ")
            if self.settings.is_valid_key(key):
                return self.completion.cycle(f"{self.SET_PREFIX}{key} ",
                                             self.settings.valid_values(key), value, text)
            return text
        return self.completion.complete(text, self.words)

    def _scroll_pane(self, up: bool):
        pane = self.panes.focused
        if pane is None:
            enabled = [p for p in self.panes.enabled_panes() if p.height > 0]
            if not enabled:
                return
            pane = enabled[0]
        page = max(1, pane.height - 1)
        if up:
            pane.scroll_up(page)
        else:
            pane.scroll_down(page)
        self.panes.render_all(self.term)
