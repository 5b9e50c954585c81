import codecs
import re

_ESCAPE_KEY_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z~]|\x1bO[A-Za-z]")
# An escape sequence cut off at the end of a read
_PARTIAL_ESCAPE_RE = re.compile(r"\x1b(?:\[[0-9;]*|O)?\Z")

_ESCAPE_KEYS = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[7~": "home",
    "\x1b[4~": "end",
    "\x1b[8~": "end",
    "\x1b[3~": "delete",
    "\x1b[5~": "pgup",
    "\x1b[6~": "pgdn",
    "\x1b[1;5C": "ctrl-right",
    "\x1b[1;5D": "ctrl-left",
}


def split_keys(data: str) -> list[str]:
    """Split raw terminal input into key names.

    Printable characters come back as themselves; everything else as a
    name such as "enter", "up", "pgdn" or "ctrl-r". Unknown escape
    sequences are dropped.
    """
    return _scan_keys(data, final=True)[0]


def _scan_keys(data: str, final: bool) -> tuple[list[str], str]:
    # Returns (keys, unconsumed tail); the tail is only non-empty when not final
    keys = []
    i = 0
    while i < len(data):
        ch = data[i]
        if ch == "\x1b":
            if not final and _PARTIAL_ESCAPE_RE.match(data, i):
                return keys, data[i:]
            m = _ESCAPE_KEY_RE.match(data, i)
            if m:
                name = _ESCAPE_KEYS.get(m.group(0))
                if name:
                    keys.append(name)
                i = m.end()
            else:
                keys.append("esc")
                i += 1
            continue
        if ch in ("\r", "\n"):
            keys.append("enter")
            # CR LF from some terminals is one Enter
            if ch == "\r" and data[i + 1 : i + 2] == "\n":
                i += 1
        elif ch in ("\x7f", "\x08"):
            keys.append("backspace")
        elif ch == "\t":
            keys.append("tab")
        elif "\x01" <= ch <= "\x1a":
            keys.append("ctrl-" + chr(ord(ch) + 96))
        elif ch.isprintable():
            keys.append(ch)
        i += 1
    return keys, ""


class KeyReader:
    """Turns stdin reads into key names.

    UTF-8 characters and escape sequences split across reads are held
    until the rest arrives. A lone Esc stays pending until flush(), which
    the caller runs once input has gone quiet.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> bool:
        return bool(self._pending)

    def feed(self, raw: bytes) -> list[str]:
        keys, self._pending = _scan_keys(self._pending + self._decoder.decode(raw), final=False)
        return keys

    def flush(self) -> list[str]:
        """Give up waiting: a lone ESC is the Esc key, a cut-off sequence is dropped."""
        pending, self._pending = self._pending, ""
        return ["esc"] if pending == "\x1b" else []


class InputLine:
    """Editable text buffer with cursor position tracking.

    Supports cursor movement (left/right, home/end, word jumps),
    insertion at cursor, backspace, and delete.
    """

    def __init__(self):
        self._text = ""
        self._cursor = 0

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    def insert(self, s: str):
        """Insert text at the cursor position."""
        self._text = self._text[: self._cursor] + s + self._text[self._cursor :]
        self._cursor += len(s)

    def backspace(self):
        """Delete the character before the cursor."""
        if self._cursor > 0:
            self._text = self._text[: self._cursor - 1] + self._text[self._cursor :]
            self._cursor -= 1

    def delete(self):
        """Delete the character at the cursor."""
        if self._cursor < len(self._text):
            self._text = self._text[: self._cursor] + self._text[self._cursor + 1 :]

    def move_left(self):
        if self._cursor > 0:
            self._cursor -= 1

    def move_right(self):
        if self._cursor < len(self._text):
            self._cursor += 1

    def move_home(self):
        self._cursor = 0

    def move_end(self):
        self._cursor = len(self._text)

    def move_word_left(self):
        """Move cursor to the beginning of the previous word."""
        pos = self._cursor
        while pos > 0 and not self._text[pos - 1].isalnum():
            pos -= 1
        while pos > 0 and self._text[pos - 1].isalnum():
            pos -= 1
        self._cursor = pos

    def move_word_right(self):
        """Move cursor to the end of the next word."""
        pos = self._cursor
        length = len(self._text)
        while pos < length and not self._text[pos].isalnum():
            pos += 1
        while pos < length and self._text[pos].isalnum():
            pos += 1
        self._cursor = pos

    def kill_word_back(self):
        """Delete back to the previous space (Ctrl+W)."""
        pos = self._cursor
        while pos > 0 and self._text[pos - 1] == " ":
            pos -= 1
        while pos > 0 and self._text[pos - 1] != " ":
            pos -= 1
        self._text = self._text[:pos] + self._text[self._cursor :]
        self._cursor = pos

    def kill_to_start(self):
        """Delete from cursor to start of line (Ctrl+U)."""
        self._text = self._text[self._cursor :]
        self._cursor = 0

    def set_text(self, text: str):
        """Replace buffer content and move cursor to end."""
        self._text = text
        self._cursor = len(text)

    def clear(self) -> str:
        """Clear the buffer and return the previous content."""
        text = self._text
        self._text = ""
        self._cursor = 0
        return text
