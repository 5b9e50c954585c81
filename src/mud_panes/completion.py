import re
from collections import OrderedDict

from mud_panes.ansi import strip_ansi

_WORD_RE = re.compile(r"\b[a-zA-Z][a-zA-Z0-9_'-]*\b")


class TabCompletion:
    """Tab completion that cycles through matches and back to the original input.

    A call whose input equals the previous result advances the cycle; any
    other input starts a new one.
    """

    def __init__(self):
        self._original = ""
        self._last = ""
        self._matches: list[str] = []
        self._index = -1  # -1 = showing the original input

    def complete(self, current_input: str, words) -> str:
        """Complete the last word of current_input from words.

        Matches are case-insensitive true prefixes, shortest first, then
        alphabetical.
        """
        trimmed = current_input.rstrip()
        cut = trimmed.rfind(" ")
        prefix = trimmed[: cut + 1]
        partial = trimmed[cut + 1 :]
        if not partial:
            return current_input

        if self._continuing(current_input):
            return self._advance(prefix)

        lp = partial.lower()
        matches = sorted(
            {w for w in words if w.lower().startswith(lp) and w.lower() != lp},
            key=lambda w: (len(w), w),
        )
        return self._start(current_input, prefix, matches)

    def cycle(self, prefix: str, options: list[str], current_value: str, full_input: str) -> str:
        """Cycle current_value through a fixed list of options.

        An exact option starts the cycle at the option after it, a partial
        value only offers the options it prefixes, an empty value offers all.
        """
        if self._continuing(full_input):
            return self._advance(prefix)

        lc = current_value.lower()
        if not current_value:
            matches = list(options)
        else:
            exact = next((i for i, o in enumerate(options) if o.lower() == lc), -1)
            if exact >= 0:
                start = (exact + 1) % len(options)
                matches = list(options[start:]) + list(options[:start])
            else:
                matches = [o for o in options if o.lower().startswith(lc)]
        return self._start(full_input, prefix, matches)

    def reset(self):
        self._original = ""
        self._last = ""
        self._matches = []
        self._index = -1

    def is_active(self) -> bool:
        return bool(self._matches)

    def _continuing(self, text: str) -> bool:
        return bool(self._matches) and text == self._last

    def _start(self, original: str, prefix: str, matches: list[str]) -> str:
        if not matches:
            return original
        self._original = original
        self._matches = matches
        self._index = 0
        self._last = prefix + matches[0]
        return self._last

    def _advance(self, prefix: str) -> str:
        self._index += 1
        if self._index >= len(self._matches):
            original = self._original
            self.reset()
            return original
        self._last = prefix + self._matches[self._index]
        return self._last


class WordBuffer:
    """Recently seen words from server output, used as completion candidates.

    Words are lower-cased and at least 2 characters long. The oldest word is
    dropped once max_size is reached.
    """

    def __init__(self, max_size: int = 5000):
        self._words: OrderedDict[str, None] = OrderedDict()
        self._max_size = max_size

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: str) -> bool:
        return word in self._words

    def __iter__(self):
        return iter(self._words)

    def add_text(self, text: str):
        for word in _WORD_RE.findall(strip_ansi(text)):
            if len(word) < 2:
                continue
            word = word.lower()
            if word in self._words:
                continue
            self._words[word] = None
            if len(self._words) > self._max_size:
                self._words.popitem(last=False)

    def clear(self):
        self._words.clear()
