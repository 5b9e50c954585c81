import codecs
from dataclasses import dataclass, field

from mud_panes.constants import (
    IAC, DONT, DO, WONT, WILL, SB, SE,
    DO_REPLIES, WILL_REPLIES, REFUSAL_ACKS,
    NEGOTIATION_CMDS, TELNET_CMD_NAMES, TELNET_OPT_NAMES,
)
from mud_panes.types import hex_preview

IAC_CHAR = "\xff"


@dataclass
class TelnetResult:
    text: list[str] = field(default_factory=list)
    responses: list[bytes] = field(default_factory=list)
    notes: list[bytes] = field(default_factory=list)  # raw commands, for the protocol log


class TelnetParser:
    """
    Telnet stream parser with a fixed negotiation policy:
    - Strips IAC sequences out of the display stream.
    - Answers WILL/WONT/DO/DONT from a static table (see constants).
    - Skips subnegotiation blocks without interpreting them.
    - Keeps incomplete commands buffered until the rest arrives, so any
      split of the stream across feed() calls parses the same way.
    """

    def __init__(self):
        self._buf = bytearray()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._acked: set[tuple[int, int]] = set()

    @property
    def pending(self) -> int:
        """Number of raw bytes held back waiting for the rest of a command."""
        return len(self._buf)

    def reset(self):
        self._buf.clear()
        self._decoder.reset()
        self._acked.clear()

    def feed(self, data: bytes) -> TelnetResult:
        result = TelnetResult()
        self._buf += data
        buf = self._buf
        n = len(buf)

        i = 0
        text_start = 0
        while i < n:
            if buf[i] != IAC:
                i += 1
                continue

            # Lone IAC at the end: wait for the command byte
            if i + 1 >= n:
                break

            self._emit_text(buf[text_start:i], result)
            text_start = i

            cmd = buf[i + 1]
            if cmd == IAC:
                result.text.append(IAC_CHAR)
                i += 2
            elif cmd in NEGOTIATION_CMDS:
                if i + 2 >= n:
                    break
                opt = buf[i + 2]
                result.notes.append(bytes([IAC, cmd, opt]))
                reply = self._negotiate(cmd, opt)
                if reply is not None:
                    result.responses.append(reply)
                i += 3
            elif cmd == SB:
                end = _find_subneg_end(buf, i + 2)
                if end == -1:
                    break
                result.notes.append(bytes(buf[i:end]))
                i = end
            else:
                result.notes.append(bytes([IAC, cmd]))
                i += 2
            text_start = i

        self._emit_text(buf[text_start:i], result)
        del buf[:i]
        return result

    def _emit_text(self, chunk, result: TelnetResult):
        if not chunk:
            return
        text = self._decoder.decode(bytes(chunk))
        if text:
            result.text.append(text.replace("\r\n", "\n"))

    def _negotiate(self, cmd: int, opt: int) -> bytes | None:
        if cmd == DO:
            return bytes([IAC, DO_REPLIES.get(opt, WONT), opt])
        if cmd == WILL:
            return bytes([IAC, WILL_REPLIES.get(opt, DONT), opt])

        # DONT/WONT: acknowledge once per option so two refusing peers
        # don't bounce acknowledgements forever.
        ack = REFUSAL_ACKS[cmd]
        if (ack, opt) in self._acked:
            return None
        self._acked.add((ack, opt))
        return bytes([IAC, ack, opt])


def _find_subneg_end(buf, start: int) -> int:
    """Return the index just past IAC SE, or -1 if the block is incomplete.

    Escaped IAC IAC pairs inside the payload are skipped.
    """
    j = start
    n = len(buf)
    while j < n - 1:
        if buf[j] == IAC:
            if buf[j + 1] == SE:
                return j + 2
            if buf[j + 1] == IAC:
                j += 2
                continue
        j += 1
    return -1


def describe_command(raw: bytes) -> str:
    """Readable form of a telnet command note, for the protocol log."""
    if len(raw) >= 2 and raw[0] == IAC:
        cmd = raw[1]
        cmd_name = TELNET_CMD_NAMES.get(cmd, f"CMD({cmd})")
        if len(raw) >= 3 and cmd in NEGOTIATION_CMDS | {SB}:
            opt = raw[2]
            opt_name = TELNET_OPT_NAMES.get(opt, str(opt))
            if cmd == SB:
                return f"TELNET SB opt={opt_name} ({max(0, len(raw) - 5)} bytes)"
            return f"TELNET {cmd_name} opt={opt_name}"
        return f"TELNET {cmd_name}"
    return f"TELNET {hex_preview(raw)}"
