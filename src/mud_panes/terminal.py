"""Raw ANSI terminal control: scroll region, transcript writes and the input line."""

import contextlib
import shutil
import sys
import termios
import tty

from mud_panes.ansi import MUTED, RESET, truncate_visible, visible_len

ESC = "\x1b"
CSI = f"{ESC}["
CLEAR_LINE = f"{CSI}2K"
CLEAR_SCREEN = f"{CSI}2J"
CURSOR_HOME = f"{CSI}H"
SAVE_CURSOR = f"{ESC}7"
RESTORE_CURSOR = f"{ESC}8"
RESET_SCROLL_REGION = f"{CSI}r"

DEFAULT_SIZE = (80, 24)


def cursor_to(row: int, col: int) -> str:
    return f"{CSI}{row};{col}H"


def cursor_to_col(col: int) -> str:
    return f"{CSI}{col}G"


def set_scroll_region(top: int, bottom: int) -> str:
    return f"{CSI}{top};{bottom}r"


def _query_size() -> tuple[int, int]:
    size = shutil.get_terminal_size(DEFAULT_SIZE)
    return size.columns, size.lines


class Terminal:
    """Owns the screen layout.

    Rows 1..scroll_top-1 belong to panes, scroll_top..rows-1 is the
    transcript scroll region and the last row is the input line. All
    output is written to `stream`; `size` returns (columns, rows).
    """

    def __init__(self, stream=None, size=None):
        self.stream = stream if stream is not None else sys.stdout
        self._size = size or _query_size
        self.cols, self.rows = self._size()
        self.scroll_top = 1

    @property
    def scroll_bottom(self) -> int:
        return max(1, self.rows - 1)

    def refresh_size(self) -> bool:
        """Re-read the terminal size. Returns True if it changed."""
        cols, rows = self._size()
        if (cols, rows) == (self.cols, self.rows):
            return False
        self.cols, self.rows = cols, rows
        return True

    def write(self, data: str):
        self.stream.write(data)

    def flush(self):
        self.stream.flush()

    def set_scroll_top(self, top: int):
        """Reserve rows above `top` and scroll the transcript below them."""
        self.scroll_top = max(1, min(top, self.scroll_bottom))
        self.write(set_scroll_region(self.scroll_top, self.scroll_bottom))

    def reset_scroll_region(self):
        self.write(RESET_SCROLL_REGION)

    def clear_screen(self):
        self.write(CLEAR_SCREEN + CURSOR_HOME)

    def clear_transcript(self):
        rows = "".join(cursor_to(row, 1) + CLEAR_LINE
                       for row in range(self.scroll_top, self.scroll_bottom + 1))
        self.write(SAVE_CURSOR + rows + RESTORE_CURSOR)

    def write_main(self, text: str):
        """Write text at the bottom of the scroll region without moving the visible cursor.

        Text must end with a line break so the region scrolls up under it.
        """
        self.write(SAVE_CURSOR + cursor_to(self.scroll_bottom, 1) + text + RESTORE_CURSOR)

    def draw_input(self, prompt: str, text: str, cursor: int, status: str = ""):
        """Redraw the input line with an optional right-aligned muted status."""
        avail = max(1, self.cols - len(prompt) - 1)
        # Scroll the visible slice so the cursor stays on screen
        start = max(0, cursor - avail)
        shown = text[start:start + avail]
        out = [cursor_to(self.rows, 1), CLEAR_LINE, prompt, shown]
        if status:
            status = truncate_visible(status, max(0, self.cols - len(prompt) - len(shown) - 2))
            if status:
                col = self.cols - visible_len(status) + 1
                out.append(cursor_to_col(col) + MUTED + status + RESET)
        out.append(cursor_to(self.rows, len(prompt) + cursor - start + 1))
        self.write("".join(out))
        self.flush()


@contextlib.contextmanager
def raw_mode(fd=None):
    """Put the tty in raw mode (keys unbuffered, Ctrl+C delivered as a key), restore on exit."""
    if fd is None:
        fd = sys.stdin.fileno()
    try:
        saved = termios.tcgetattr(fd)
    except termios.error:
        # Not a tty (piped input): nothing to restore
        yield
        return
    try:
        tty.setraw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
