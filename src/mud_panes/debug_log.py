import time

from mud_panes.types import ClassifiedMessage, ProtoEvent, ts_str, hex_preview


class DebugLogger:
    """Manages optional debug log files for output, protocol, and routing decisions."""

    def __init__(self, directory: str = "."):
        self.enabled = False
        self.directory = directory
        self._output_fh = None
        self._proto_fh = None
        self._route_fh = None

    def start(self):
        self._output_fh = open(f"{self.directory}/panes_output.log", "a", encoding="utf-8")
        self._proto_fh = open(f"{self.directory}/panes_proto.log", "a", encoding="utf-8")
        self._route_fh = open(f"{self.directory}/panes_route.log", "a", encoding="utf-8")
        self.enabled = True
        sep = f"\n{'='*60}\n  Session started: {time.strftime('%Y-%m-%d %H:%M:%S')}\n{'='*60}\n"
        for fh in (self._output_fh, self._proto_fh, self._route_fh):
            fh.write(sep)
            fh.flush()

    def stop(self):
        self.enabled = False
        for fh in (self._output_fh, self._proto_fh, self._route_fh):
            if fh:
                try:
                    fh.close()
                except OSError:
                    pass
        self._output_fh = self._proto_fh = self._route_fh = None

    def toggle(self) -> bool:
        if self.enabled:
            self.stop()
        else:
            self.start()
        return self.enabled

    def log_output(self, text: str):
        if not self.enabled or not self._output_fh:
            return
        for line in text.split("\n"):
            self._output_fh.write(f"{ts_str(time.time())} | {line}\n")
        self._output_fh.flush()

    def log_proto(self, ev: ProtoEvent):
        if not self.enabled or not self._proto_fh:
            return
        hex_str = hex_preview(ev.raw) if ev.raw else ""
        self._proto_fh.write(
            f"{ts_str(ev.ts)} {ev.direction:>3} | {ev.text_preview}"
            + (f"  | hex: {hex_str}" if hex_str else "")
            + "\n"
        )
        self._proto_fh.flush()

    def log_route(self, msg: ClassifiedMessage, consumed: bool):
        if not self.enabled or not self._route_fh:
            return
        parts = [msg.type.value]
        if msg.channel:
            parts.append(f"channel={msg.channel}")
        if msg.sender:
            parts.append(f"sender={msg.sender}")
        if msg.is_outgoing:
            parts.append("out")
        if msg.is_continuation:
            parts.append("cont")
        where = "pane" if consumed else "main"
        self._route_fh.write(f"{ts_str(time.time())} {where:>4} | {' '.join(parts)} | {msg.raw!r}\n")
        self._route_fh.flush()
