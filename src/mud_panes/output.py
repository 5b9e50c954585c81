"""Transcript output: buffering, debounce, classification, routing and rendering."""

import time

from mud_panes.ansi import MUTED, RESET, advance_color, strip_ansi, strip_positioning, wrap_ansi

CLIENT_TAG = "\x1b[36m[Client]\x1b[0m"
COMMAND_STYLE = "\x1b[33m"

TIMESTAMP_FORMATS = {
    "time": "%H:%M:%S",
    "datetime": "%Y-%m-%d %H:%M:%S",
}


class Debouncer:
    """Signals once `delay` seconds have passed since the last touch().

    There is no timer: the owner asks due() from its loop, and remaining()
    says how long it may sleep.
    """

    def __init__(self, delay: float = 0.05, clock=time.monotonic):
        self.delay = delay
        self._clock = clock
        self._deadline: float | None = None

    @property
    def armed(self) -> bool:
        return self._deadline is not None

    def touch(self):
        """Cancel any pending deadline and start a new one."""
        self._deadline = self._clock() + self.delay

    def cancel(self):
        self._deadline = None

    def due(self, now: float | None = None) -> bool:
        if self._deadline is None:
            return False
        if now is None:
            now = self._clock()
        return now >= self._deadline

    def remaining(self, now: float | None = None) -> float | None:
        if self._deadline is None:
            return None
        if now is None:
            now = self._clock()
        return max(0.0, self._deadline - now)


class OutputPipeline:
    """Turns server text into transcript lines and pane messages.

    Text is buffered as it arrives. Complete lines are flushed on the next
    poll(); a trailing partial line is only flushed once the stream has
    been idle for the debounce delay, so a line split across packets is
    never drawn in pieces.

    Each flushed line is stripped of cursor movement, classified and routed
    to panes. Lines no pane consumed are timestamped, wrapped and written to
    the transcript scroll region. The colour in effect at the end of a flush
    is re-emitted at the start of the next one.
    """

    def __init__(self, term, classifier, panes, settings, logger=None,
                 clock=time.monotonic, now=time.time, on_flush=None, on_line=None):
        self.term = term
        self.classifier = classifier
        self.panes = panes
        self.settings = settings
        self.logger = logger
        self.on_flush = on_flush
        self.on_line = on_line
        self._now = now
        self.debouncer = Debouncer(settings.debounce_ms / 1000.0, clock)
        self._buf = ""
        self._color = ""

    @property
    def pending(self) -> str:
        return self._buf

    @property
    def color(self) -> str:
        """SGR state carried into the next flush."""
        return self._color

    def feed(self, text: str):
        if not text:
            return
        self._buf += text
        self.debouncer.touch()

    def timeout(self, now: float | None = None) -> float | None:
        """Seconds until a partial line becomes due, or None if nothing is waiting."""
        if not self._buf:
            return None
        return self.debouncer.remaining(now)

    def poll(self, now: float | None = None) -> bool:
        """Flush what is ready. Returns True if anything was written."""
        if not self._buf:
            self.debouncer.cancel()
            return False
        if self.debouncer.due(now):
            return self.flush(partial=True)
        return self.flush(partial=False)

    def flush(self, partial: bool = True) -> bool:
        """Render buffered text.

        With partial=False only complete lines are taken and the tail stays
        buffered (with its deadline still armed).
        """
        # LF CR is a line ending too on many MUD servers
        text = self._buf.replace("\r\n", "\n").replace("\n\r", "\n")
        if partial:
            body, self._buf = text, ""
            self.debouncer.cancel()
        else:
            cut = text.rfind("\n")
            if cut < 0:
                return False
            body, self._buf = text[: cut + 1], text[cut + 1 :]
            if not self._buf:
                self.debouncer.cancel()
        if not body.strip("\r"):
            return False

        lines = body.split("\n")
        if body.endswith("\n"):
            lines.pop()

        out = []
        active = self._color
        for line in lines:
            line = strip_positioning(line).strip("\r")
            if self.on_line is not None:
                self.on_line(line)
            classified = self.classifier.classify(line)
            consumed = self.panes.route(line, classified) if self.panes is not None else False
            if self.logger:
                self.logger.log_route(classified, consumed)
            if consumed:
                continue
            if self.logger:
                self.logger.log_output(line)
            out.extend(self._render_line(line, active))
            active = advance_color(active, line)

        if out:
            self.term.write_main(self._color + "\r\n".join(out) + RESET + "\r\n")
        self._color = active
        if self.panes is not None:
            self.panes.render_dirty(self.term)
        self._notify()
        return True

    def _render_line(self, line: str, active: str) -> list[str]:
        fmt = TIMESTAMP_FORMATS.get(self.settings.timestamps)
        if fmt and strip_ansi(line).strip():
            stamp = time.strftime(fmt, time.localtime(self._now()))
            line = f"{MUTED}[{stamp}]{RESET}{active} {line}"
        if self.settings.word_wrap:
            return wrap_ansi(line, self.term.cols, carry=active)
        return [line]

    def echo(self, message: str):
        """Write a client notice into the transcript, after any complete buffered lines."""
        self.flush(partial=False)
        self.term.write_main(f"{CLIENT_TAG} {message}\r\n")
        if self.logger:
            self.logger.log_output(f"[Client] {message}")
        self._notify()

    def echo_command(self, line: str):
        """Show a sent command in the transcript."""
        self.flush(partial=False)
        self.term.write_main(f"{COMMAND_STYLE}{line}{RESET}\r\n")
        self._notify()

    def reset(self):
        """Forget unflushed text, the pending deadline and the colour state."""
        self._buf = ""
        self._color = ""
        self.debouncer.cancel()
        self.classifier.reset_continuation()

    def _notify(self):
        if self.on_flush is not None:
            self.on_flush()
