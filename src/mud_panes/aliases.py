"""User command aliases: a first word that expands into a longer command."""

import re
from pathlib import Path

ALIAS_NAME_RE = re.compile(r"^\w[\w.-]*$")
_PLACEHOLDER_RE = re.compile(r"\$(\d+|\*)")


class AliasStore:
    """Alias name -> expansion, in insertion order.

    An expansion may use $1, $2, ... for the words typed after the alias and
    $* for all of them. Without placeholders the words are appended.
    """

    def __init__(self, aliases: dict[str, str] | None = None, path: Path | None = None):
        self._aliases: dict[str, str] = dict(aliases or {})
        self.path = path

    def __len__(self) -> int:
        return len(self._aliases)

    def __contains__(self, name: str) -> bool:
        return name in self._aliases

    @staticmethod
    def is_valid_name(name: str) -> bool:
        return bool(ALIAS_NAME_RE.match(name))

    def get(self, name: str) -> str | None:
        return self._aliases.get(name)

    def items(self) -> list[tuple[str, str]]:
        return list(self._aliases.items())

    def as_dict(self) -> dict[str, str]:
        return dict(self._aliases)

    def set(self, name: str, expansion: str) -> bool:
        if not self.is_valid_name(name) or not expansion.strip():
            return False
        self._aliases[name] = expansion.strip()
        return True

    def remove(self, name: str) -> bool:
        return self._aliases.pop(name, None) is not None

    def expand(self, line: str) -> str:
        """Expand the first word of `line` if it names an alias, else return it unchanged."""
        parts = line.split()
        if not parts or parts[0] not in self._aliases:
            return line
        expansion = self._aliases[parts[0]]
        args = parts[1:]

        def sub(m: re.Match) -> str:
            if m.group(1) == "*":
                return " ".join(args)
            index = int(m.group(1)) - 1
            return args[index] if 0 <= index < len(args) else ""

        result = _PLACEHOLDER_RE.sub(sub, expansion)
        if args and not _PLACEHOLDER_RE.search(expansion):
            result = f"{result} {' '.join(args)}"
        return result.strip()
