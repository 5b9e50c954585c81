"""Tests for terminal escape sequences and screen layout."""

import io
import os

from mud_panes.terminal import Terminal, cursor_to, raw_mode, set_scroll_region


def make_term(cols=80, rows=24):
    size = [cols, rows]
    term = Terminal(stream=io.StringIO(), size=lambda: tuple(size))
    return term, size


class TestSequences:
    def test_cursor_to(self):
        assert cursor_to(3, 7) == "\x1b[3;7H"

    def test_set_scroll_region(self):
        assert set_scroll_region(5, 23) == "\x1b[5;23r"


class TestLayout:
    def test_scroll_bottom_leaves_input_row(self):
        term, _ = make_term(rows=24)
        assert term.scroll_bottom == 23

    def test_set_scroll_top(self):
        term, _ = make_term()
        term.set_scroll_top(5)
        assert term.scroll_top == 5
        assert term.stream.getvalue() == "\x1b[5;23r"

    def test_scroll_top_clamped(self):
        term, _ = make_term(rows=10)
        term.set_scroll_top(50)
        assert term.scroll_top == 9

    def test_refresh_size(self):
        term, size = make_term()
        assert term.refresh_size() is False
        size[:] = [100, 30]
        assert term.refresh_size() is True
        assert (term.cols, term.rows) == (100, 30)


class TestWriteMain:
    """Transcript writes land at the bottom of the scroll region."""

    def test_writes_at_bottom_of_region_and_restores_cursor(self):
        term, _ = make_term()
        term.write_main("hello\r\n")
        assert term.stream.getvalue() == "\x1b7\x1b[23;1Hhello\r\n\x1b8"

    def test_clear_transcript_only_touches_region(self):
        term, _ = make_term(rows=6)
        term.set_scroll_top(3)
        term.stream.seek(0)
        term.stream.truncate()
        term.clear_transcript()
        out = term.stream.getvalue()
        assert "\x1b[3;1H\x1b[2K" in out
        assert "\x1b[5;1H\x1b[2K" in out
        assert "\x1b[2;1H" not in out
        assert "\x1b[6;1H" not in out


class TestDrawInput:
    def test_prompt_text_and_cursor(self):
        term, _ = make_term()
        term.draw_input("> ", "look", 4)
        assert term.stream.getvalue() == "\x1b[24;1H\x1b[2K> look\x1b[24;7H"

    def test_cursor_mid_text(self):
        term, _ = make_term()
        term.draw_input("> ", "look", 1)
        assert term.stream.getvalue().endswith("\x1b[24;4H")

    def test_status_right_aligned(self):
        term, _ = make_term()
        term.draw_input("> ", "", 0, "mud.example.org")
        out = term.stream.getvalue()
        assert "\x1b[66G\x1b[90mmud.example.org\x1b[0m" in out

    def test_long_text_scrolls_with_cursor(self):
        term, _ = make_term(cols=10)
        term.draw_input("> ", "abcdefghij", 10)
        out = term.stream.getvalue()
        assert "> defghij" in out
        assert out.endswith("\x1b[24;10H")

    def test_status_dropped_when_no_room(self):
        term, _ = make_term(cols=10)
        term.draw_input("> ", "abcdefg", 7, "connected")
        assert "\x1b[90m" not in term.stream.getvalue()


class TestRawMode:
    def test_not_a_tty_is_noop(self):
        r, w = os.pipe()
        try:
            with raw_mode(r):
                entered = True
        finally:
            os.close(r)
            os.close(w)
        assert entered
