"""Line classifier for tells, says and channel messages."""

import re
from dataclasses import dataclass

from mud_panes.ansi import strip_ansi
from mud_panes.config import ClassifierConfig
from mud_panes.types import ClassifiedMessage, MessageType


@dataclass
class _DirectPattern:
    regex: re.Pattern
    sender_group: int
    outgoing: bool


@dataclass
class _ChannelPattern:
    regex: re.Pattern
    channel_group: int
    content_group: int


@dataclass
class _ContentPattern:
    regex: re.Pattern
    sender_group: int


class MessageClassifier:
    """Classifies server lines as tell, say, channel or other.

    Precedence: continuation, tell, say, channel, other. Patterns are tried
    against the line with ANSI codes removed; the message keeps the raw line.

    The last non-continuation classification is remembered so that an
    indented follow-up line is attributed to the message that started it.
    """

    def __init__(self, config: ClassifierConfig | None = None):
        config = config or ClassifierConfig()
        self._tell = [_DirectPattern(re.compile(p.pattern), p.sender, p.outgoing)
                      for p in config.tell]
        self._say = [_DirectPattern(re.compile(p.pattern), p.sender, p.outgoing)
                     for p in config.say]
        self._channel = [_ChannelPattern(re.compile(p.pattern), p.channel, p.content)
                         for p in config.channel]
        self._content = [_ContentPattern(re.compile(p.pattern), p.sender)
                         for p in config.channel_content]
        self._continuation = re.compile(config.continuation) if config.continuation else None
        self._last: ClassifiedMessage | None = None

    def classify(self, line: str) -> ClassifiedMessage:
        text = strip_ansi(line)

        last = self._last
        if (self._continuation and last is not None
                and last.type is not MessageType.OTHER
                and self._continuation.search(text)):
            # _last is kept: a run of continuations all refer back to the original
            return ClassifiedMessage(
                type=last.type,
                raw=line,
                channel=last.channel,
                sender=last.sender,
                is_outgoing=last.is_outgoing,
                is_continuation=True,
            )

        result = (self._match_direct(self._tell, MessageType.TELL, text, line)
                  or self._match_direct(self._say, MessageType.SAY, text, line)
                  or self._match_channel(text, line))
        if result is not None:
            self._last = result
            return result

        self._last = None
        return ClassifiedMessage(type=MessageType.OTHER, raw=line)

    def classify_lines(self, text: str) -> list[ClassifiedMessage]:
        """Classify each line of text, sharing continuation state across the batch."""
        return [self.classify(line) for line in text.split("\n")]

    def reset_continuation(self):
        self._last = None

    @staticmethod
    def _match_direct(patterns, msg_type, text, line) -> ClassifiedMessage | None:
        for p in patterns:
            m = p.regex.search(text)
            if m:
                return ClassifiedMessage(
                    type=msg_type,
                    raw=line,
                    sender=m.group(p.sender_group) if p.sender_group > 0 else None,
                    is_outgoing=p.outgoing,
                )
        return None

    def _match_channel(self, text, line) -> ClassifiedMessage | None:
        for p in self._channel:
            m = p.regex.search(text)
            if not m:
                continue
            channel = m.group(p.channel_group) if p.channel_group > 0 else None
            content = m.group(p.content_group) if p.content_group > 0 else None
            return ClassifiedMessage(
                type=MessageType.CHANNEL,
                raw=line,
                channel=channel,
                sender=self._content_sender(content),
            )
        return None

    def _content_sender(self, content: str | None) -> str | None:
        """First content pattern that matches names the sender."""
        if not content:
            return None
        for p in self._content:
            m = p.regex.search(content)
            if m:
                return m.group(p.sender_group) if p.sender_group > 0 else None
        return None
