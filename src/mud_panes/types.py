import time
from dataclasses import dataclass
from enum import Enum


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MessageType(Enum):
    TELL = "tell"  # direct message
    CHANNEL = "channel"
    SAY = "say"  # spoken in the room
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedMessage:
    type: MessageType
    raw: str
    channel: str | None = None
    sender: str | None = None
    is_outgoing: bool = False
    is_continuation: bool = False


@dataclass
class ProtoEvent:
    direction: str  # "IN" or "OUT" or "SYS"
    ts: float
    raw: bytes
    text_preview: str


def ts_str(t: float) -> str:
    return time.strftime("%H:%M:%S", time.localtime(t))


def safe_text_preview(b: bytes, max_len: int = 120) -> str:
    s = b.decode("utf-8", errors="replace")
    s = s.replace("\r", "\\r").replace("\n", "\\n").replace("\x1b", "\\e")
    if len(s) > max_len:
        s = s[:max_len] + "\u2026"
    return s


def hex_preview(b: bytes, max_len: int = 48) -> str:
    hb = b[:max_len].hex(" ")
    if len(b) > max_len:
        hb += " \u2026"
    return hb
