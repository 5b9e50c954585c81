from __future__ import annotations

import errno
import os
import queue
import selectors
import socket
import time
from dataclasses import dataclass
from enum import Enum

from mud_panes.constants import IAC
from mud_panes.telnet import TelnetParser, describe_command
from mud_panes.types import ConnectionState, ProtoEvent, safe_text_preview, hex_preview

DEFAULT_PORT = 23

_CONNECT_PENDING = (0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY)


class EventKind(Enum):
    TEXT = "text"  # data: str
    CONNECTED = "connected"
    CLOSED = "closed"
    ERROR = "error"  # data: error message
    STATE = "state"  # data: ConnectionState


@dataclass
class ConnectionEvent:
    kind: EventKind
    data: object = None


class MudConnection:
    """Single non-blocking telnet connection, driven by poll() from the UI loop.

    Text and lifecycle changes are queued on event_q; protocol traffic on
    proto_q for the debug log. A socket error queues ERROR followed by a
    separate CLOSED, so an error alone never means the connection is gone.
    """

    def __init__(self, proto_q: "queue.Queue[ProtoEvent]",
                 event_q: "queue.Queue[ConnectionEvent]"):
        self.proto_q = proto_q
        self.event_q = event_q
        self.host: str | None = None
        self.port: int | None = None

        self.sock = None
        self.sel = selectors.DefaultSelector()
        self.telnet = TelnetParser()
        self.state = ConnectionState.DISCONNECTED

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def connect(self, host: str, port: int = DEFAULT_PORT):
        """Start connecting. Completion arrives as a CONNECTED event from poll()."""
        if self.sock:
            self.close()
        self.host = host
        self.port = port
        self._set_state(ConnectionState.CONNECTING)
        self._proto("SYS", b"", f"Connecting to {host}:{port}")

        try:
            family, socktype, proto, _, addr = socket.getaddrinfo(
                host, port, type=socket.SOCK_STREAM)[0]
            s = socket.socket(family, socktype, proto)
        except OSError as e:
            self._fail(e)
            return

        self.sock = s
        try:
            s.setblocking(False)
            s.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            err = s.connect_ex(addr)
        except OSError as e:
            self._fail(e)
            return
        if err not in _CONNECT_PENDING:
            self._fail(OSError(err, os.strerror(err)))
            return
        self.sel.register(s, selectors.EVENT_WRITE)

    def disconnect(self):
        self.close()

    def close(self):
        """Drop the socket and any half-parsed bytes. Queues CLOSED once."""
        if self.sock:
            try:
                self.sel.unregister(self.sock)
            except (KeyError, ValueError):
                pass
            try:
                self.sock.close()
            except OSError:
                pass
            self.sock = None
        self.telnet.reset()
        if self.state is not ConnectionState.DISCONNECTED:
            self._proto("SYS", b"", "Disconnected")
            self.event_q.put(ConnectionEvent(EventKind.CLOSED))
            self._set_state(ConnectionState.DISCONNECTED)

    def _set_state(self, state: ConnectionState):
        if state is self.state:
            return
        self.state = state
        self.event_q.put(ConnectionEvent(EventKind.STATE, state))

    def _fail(self, exc: Exception):
        self._proto("SYS", b"", f"Socket error: {exc}")
        self.event_q.put(ConnectionEvent(EventKind.ERROR, str(exc)))
        self.close()

    def _proto(self, direction: str, raw: bytes, preview: str = ""):
        if not preview:
            preview = safe_text_preview(raw)
        self.proto_q.put(ProtoEvent(direction=direction, ts=time.time(), raw=raw, text_preview=preview))

    def send_line(self, line: str) -> bool:
        """Send one line, CRLF terminated, with IAC bytes doubled."""
        if not self.connected:
            return False
        # MUDs typically want \r\n
        data = line.encode("utf-8", errors="replace").replace(bytes([IAC]), bytes([IAC, IAC]))
        data += b"\r\n"
        return self._send(data, f"{safe_text_preview(data)}  |  {hex_preview(data)}")

    def _send(self, data: bytes, preview: str) -> bool:
        try:
            self.sock.sendall(data)
        except OSError as e:
            self._fail(e)
            return False
        self._proto("OUT", data, preview)
        return True

    def poll(self, timeout: float = 0):
        """
        Called from UI loop. Non-blocking read.
        """
        if not self.sock:
            return

        events = self.sel.select(timeout=timeout)
        for key, mask in events:
            if self.state is ConnectionState.CONNECTING:
                if mask & selectors.EVENT_WRITE:
                    self._finish_connect()
                continue

            if mask & selectors.EVENT_READ:
                try:
                    chunk = self.sock.recv(4096)
                except BlockingIOError:
                    continue
                except OSError as e:
                    self._fail(e)
                    return

                if not chunk:
                    self._proto("SYS", b"", "Server closed connection")
                    self.close()
                    return

                self._proto("IN", chunk, f"{safe_text_preview(chunk)}  |  {hex_preview(chunk)}")
                self._handle_chunk(chunk)

    def _finish_connect(self):
        err = self.sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if err:
            self._fail(OSError(err, os.strerror(err)))
            return
        self.sel.modify(self.sock, selectors.EVENT_READ)
        self._proto("SYS", b"", f"Connected to {self.host}:{self.port}")
        self._set_state(ConnectionState.CONNECTED)
        self.event_q.put(ConnectionEvent(EventKind.CONNECTED))

    def _handle_chunk(self, chunk: bytes):
        result = self.telnet.feed(chunk)

        # Log telnet notes as SYS proto events
        for note in result.notes:
            self._proto("SYS", note, describe_command(note))

        for reply in result.responses:
            if not self._send(reply, f"(telnet) {describe_command(reply)}"):
                return

        if result.text:
            self.event_q.put(ConnectionEvent(EventKind.TEXT, "".join(result.text)))
