import re
from dataclasses import dataclass

RESET = "\x1b[0m"
MUTED = "\x1b[90m"

# Any CSI sequence, plus DEC save/restore cursor (ESC 7 / ESC 8) and full reset (ESC c)
_ESCAPE_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[78c]")
_ANSI_SGR_RE = re.compile(r"\x1b\[([0-9;]*)m")
_TOKEN_RE = re.compile(r"\s+|\S+")

# How many SGR sequences to remember since the last reset
_MAX_ACTIVE_SGR = 8


@dataclass
class Segment:
    """A run of text and the SGR codes that immediately precede it."""

    style: str
    text: str


def strip_ansi(text: str) -> str:
    """Remove all ANSI escape sequences from text."""
    return _ESCAPE_RE.sub("", text)


def strip_positioning(text: str) -> str:
    """Remove cursor movement, erase and scroll-region sequences, keep SGR colour/style."""
    return _ESCAPE_RE.sub(lambda m: m.group(0) if _ANSI_SGR_RE.fullmatch(m.group(0)) else "", text)


def visible_len(text: str) -> int:
    return len(strip_ansi(text))


def split_segments(text: str) -> list[Segment]:
    """Split text into segments, each SGR run attached to the text after it.

    Consecutive codes collapse into one style. Codes at the very end become
    a segment with empty text.
    """
    segments = []
    style = ""
    pos = 0
    for m in _ANSI_SGR_RE.finditer(text):
        chunk = text[pos:m.start()]
        if chunk:
            segments.append(Segment(style, chunk))
            style = ""
        style += m.group(0)
        pos = m.end()
    tail = text[pos:]
    if tail or style:
        segments.append(Segment(style, tail))
    return segments


def advance_color(active: str, text: str) -> str:
    """Return the colour state in effect after writing text, starting from active.

    The state is the string of SGR sequences seen since the last reset.
    """
    for m in _ANSI_SGR_RE.finditer(text):
        parts = m.group(1).split(";")
        if parts[0] in ("", "0"):
            active = ""
            if any(p not in ("", "0") for p in parts):
                active = m.group(0)
        else:
            active += m.group(0)
    seqs = [m.group(0) for m in _ANSI_SGR_RE.finditer(active)]
    if len(seqs) > _MAX_ACTIVE_SGR:
        active = "".join(seqs[-_MAX_ACTIVE_SGR:])
    return active


def truncate_visible(text: str, width: int, ellipsis: str = "...") -> str:
    """Truncate text to width visible characters, ending in ellipsis.

    Escape sequences are kept and not counted.
    """
    if visible_len(text) <= width:
        return text
    if width <= len(ellipsis):
        return ellipsis[:max(0, width)]
    limit = width - len(ellipsis)
    out = []
    count = 0
    pos = 0
    for m in _ESCAPE_RE.finditer(text):
        take = text[pos:m.start()][:limit - count]
        out.append(take)
        count += len(take)
        out.append(m.group(0))
        pos = m.end()
    out.append(text[pos:][:limit - count])
    return "".join(out) + ellipsis


def wrap_ansi(text: str, width: int, carry: str = "") -> list[str]:
    """Word-wrap text at width visible columns.

    Colour codes stay glued to the text that follows them. Every
    continuation line starts with the colour that was active at the break.
    carry is the colour in effect before text starts.
    """
    if width <= 0 or visible_len(text) <= width:
        return [text]

    lines: list[str] = []
    cur: list[tuple[str, str]] = []  # (style, token)
    cur_w = 0
    active = carry

    def new_line():
        nonlocal cur, cur_w
        lines.append(_join_trimmed(cur))
        cur = [(active, "")] if active else []
        cur_w = 0

    for seg in split_segments(text):
        style = seg.style
        for token in _TOKEN_RE.findall(seg.text) or [""]:
            if token.isspace():
                if cur_w + len(token) > width:
                    # whitespace at a break is dropped
                    if cur_w:
                        new_line()
                    token = ""
            else:
                if cur_w and cur_w + len(token) > width:
                    new_line()
                while len(token) > width:
                    cur.append((style, token[:width]))
                    active = advance_color(active, style)
                    style = ""
                    token = token[width:]
                    cur_w = width
                    new_line()
            cur.append((style, token))
            cur_w += len(token)
            active = advance_color(active, style)
            style = ""

    lines.append(_join_trimmed(cur))
    return lines


def _join_trimmed(parts: list[tuple[str, str]]) -> str:
    """Join (style, token) pairs, dropping trailing whitespace but not codes."""
    parts = list(parts)
    styles = []
    while parts and parts[-1][1].strip() == "":
        style, _ = parts.pop()
        styles.insert(0, style)
    return "".join(s + t for s, t in parts) + "".join(styles)
