"""Configuration system with minimal YAML parser.

Three documents live in ~/.mud-panes/:
- panes.yml: classifier pattern tables and pane definitions
- settings.yml: user settings changed through /set
- aliases.yml: command aliases changed through /alias and /unalias

Uses a minimal YAML parser (no external dependencies) supporting:
- Scalars (strings, numbers, booleans)
- Lists (- item syntax, or inline [a, b])
- Nested dictionaries (key: value syntax), also inside list items
- Comments (# ...)
- Quoted strings (single and double)
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path

from mud_panes.aliases import AliasStore

# --- Minimal YAML Parser ---


def parse_simple_yaml(text: str) -> dict:
    """Parse a simple YAML document into a Python dict.

    Supports:
    - Scalars: strings, integers, floats, booleans, null
    - Lists: using '- item' syntax or inline '[a, b]'
    - Nested dicts: using 'key:' with indented children
    - Dicts as list items: '- key: value' followed by more keys (and nested blocks)
    - Comments: lines starting with # (or inline # comments)
    - Quoted strings: 'single' or "double" quoted
    """
    lines = text.split("\n")
    result = _parse_block(lines, 0, 0)[0]
    return result if isinstance(result, dict) else {}


def _parse_block(lines: list[str], start: int, base_indent: int) -> tuple[dict | list, int]:
    """Parse a block of YAML starting at line `start` with `base_indent`."""
    result: dict | list = {}
    i = start
    is_list = False

    while i < len(lines):
        line = lines[i]
        stripped = line.lstrip()

        # Skip empty lines and comments
        if not stripped or stripped.startswith("#"):
            i += 1
            continue

        # Calculate indent
        indent = len(line) - len(stripped)

        # If we've dedented past base, we're done with this block
        if indent < base_indent:
            break

        # List item
        if stripped.startswith("- ") or stripped == "-":
            if not is_list:
                if result:
                    break
                is_list = True
                result = []

            item_content = _remove_inline_comment(stripped[2:].strip())
            # Content of this item starts after "- "
            item_content_indent = indent + 2

            # Dict item (- key: value [more keys below])
            if ":" in item_content and not _is_quoted_string(item_content):
                colon_pos = _find_unquoted_colon(item_content)
                if colon_pos > 0:
                    # Re-parse this item as a mapping block by blanking the dash
                    patched = list(lines)
                    patched[i] = " " * item_content_indent + item_content
                    item, i = _parse_block(patched, i, item_content_indent)
                    result.append(item)
                    continue

            # Simple list item (scalar value)
            result.append(_parse_value(item_content))
            i += 1
            continue

        # A mapping key ends a list block at the same level
        if is_list:
            break

        # Key-value pair
        colon_pos = _find_unquoted_colon(stripped)
        if colon_pos > 0:
            key = stripped[:colon_pos].strip()
            value_part = stripped[colon_pos + 1 :].strip()

            # Remove inline comments
            value_part = _remove_inline_comment(value_part)

            if value_part:
                # Inline value
                result[key] = _parse_value(value_part)
                i += 1
            else:
                # Check for nested block - skip comments and empty lines to find actual content
                j = i + 1
                while j < len(lines):
                    next_line = lines[j]
                    next_stripped = next_line.lstrip()
                    if not next_stripped or next_stripped.startswith("#"):
                        j += 1
                        continue
                    break

                if j < len(lines):
                    next_line = lines[j]
                    next_stripped = next_line.lstrip()
                    next_indent = len(next_line) - len(next_stripped)

                    # Lists may sit at the same indent as their key
                    if next_indent > indent or (
                        next_indent == indent and next_stripped.startswith("- ")
                    ):
                        nested, i = _parse_block(lines, j, next_indent)
                        result[key] = nested
                        continue

                # No nested content
                result[key] = None
                i += 1
        else:
            i += 1

    return result, i


def _find_unquoted_colon(s: str) -> int:
    """Find the position of the first colon not inside quotes."""
    in_single = False
    in_double = False
    for i, c in enumerate(s):
        if c == "'" and not in_double:
            in_single = not in_single
        elif c == '"' and not in_single:
            in_double = not in_double
        elif c == ":" and not in_single and not in_double:
            return i
    return -1


def _is_quoted_string(s: str) -> bool:
    """Check if a string is quoted."""
    s = s.strip()
    return (s.startswith('"') and s.endswith('"')) or (s.startswith("'") and s.endswith("'"))


def _remove_inline_comment(s: str) -> str:
    """Remove inline comments from a value string."""
    # Only remove comments that have a space before #
    in_single = False
    in_double = False
    for i, c in enumerate(s):
        if c == "'" and not in_double:
            in_single = not in_single
        elif c == '"' and not in_single:
            in_double = not in_double
        elif c == "#" and not in_single and not in_double and i > 0 and s[i - 1] == " ":
            return s[:i].rstrip()
    return s


def _split_flow_items(s: str) -> list[str]:
    """Split the inside of an inline [a, b] list on commas outside quotes."""
    items = []
    in_single = False
    in_double = False
    start = 0
    for i, c in enumerate(s):
        if c == "'" and not in_double:
            in_single = not in_single
        elif c == '"' and not in_single:
            in_double = not in_double
        elif c == "," and not in_single and not in_double:
            items.append(s[start:i])
            start = i + 1
    items.append(s[start:])
    return [item.strip() for item in items if item.strip()]


def _parse_value(s: str) -> str | int | float | bool | list | None:
    """Parse a scalar YAML value."""
    s = s.strip()

    # Empty
    if not s:
        return None

    # Null
    if s.lower() in ("null", "~", "none"):
        return None

    # Boolean
    if s.lower() in ("true", "yes", "on"):
        return True
    if s.lower() in ("false", "no", "off"):
        return False

    # Inline list
    if s[0] == "[" and s[-1] == "]":
        return [_parse_value(item) for item in _split_flow_items(s[1:-1])]

    # Quoted string
    if len(s) >= 2:
        if s[0] == '"' and s[-1] == '"':
            # Double-quoted: process escape sequences
            return _unescape_double_quoted(s[1:-1])
        if s[0] == "'" and s[-1] == "'":
            # Single-quoted: no escape processing (except '' for single quote)
            return s[1:-1].replace("''", "'")

    # Number
    try:
        if "." in s:
            return float(s)
        return int(s)
    except ValueError:
        pass

    # Plain string
    return s


def _unescape_double_quoted(s: str) -> str:
    """Process YAML escape sequences in a double-quoted string."""
    result = []
    i = 0
    while i < len(s):
        if s[i] == "\\" and i + 1 < len(s):
            next_char = s[i + 1]
            if next_char == "n":
                result.append("\n")
            elif next_char == "t":
                result.append("\t")
            elif next_char == "r":
                result.append("\r")
            elif next_char == "\\":
                result.append("\\")
            elif next_char == '"':
                result.append('"')
            elif next_char == "/":
                result.append("/")
            elif next_char == "0":
                result.append("\0")
            else:
                # Unknown escape: keep as-is
                result.append(s[i])
                result.append(next_char)
            i += 2
        else:
            result.append(s[i])
            i += 1
    return "".join(result)


# --- Minimal YAML Writer ---

_BARE_STRING_RE = re.compile(r"^[A-Za-z_][\w.-]*$")


def dump_simple_yaml(data: dict) -> str:
    """Serialize a dict of scalars, lists and dicts into YAML that
    parse_simple_yaml reads back unchanged."""
    return "\n".join(_dump_lines(data, 0)) + "\n"


def _dump_lines(data: dict, indent: int) -> list[str]:
    pad = " " * indent
    lines = []
    for key, value in data.items():
        if isinstance(value, dict) and value:
            lines.append(f"{pad}{key}:")
            lines.extend(_dump_lines(value, indent + 2))
        elif isinstance(value, list) and any(isinstance(v, (dict, list)) for v in value):
            lines.append(f"{pad}{key}:")
            lines.extend(_dump_list(value, indent + 2))
        elif isinstance(value, list):
            lines.append(f"{pad}{key}: [{', '.join(_dump_scalar(v) for v in value)}]")
        elif isinstance(value, dict):
            lines.append(f"{pad}{key}:")
        else:
            lines.append(f"{pad}{key}: {_dump_scalar(value)}")
    return lines


def _dump_list(items: list, indent: int) -> list[str]:
    pad = " " * indent
    lines = []
    for item in items:
        if isinstance(item, dict) and item:
            item_lines = _dump_lines(item, indent + 2)
            item_lines[0] = pad + "- " + item_lines[0].lstrip()
            lines.extend(item_lines)
        elif isinstance(item, list):
            lines.append(f"{pad}- [{', '.join(_dump_scalar(v) for v in item)}]")
        else:
            lines.append(f"{pad}- {_dump_scalar(item)}")
    return lines


def _dump_scalar(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    s = str(value)
    if any(c in s for c in "\n\r\t"):
        escaped = (s.replace("\\", "\\\\").replace('"', '\\"')
                   .replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t"))
        return f'"{escaped}"'
    if _BARE_STRING_RE.match(s) and _parse_value(s) == s:
        return s
    return "'" + s.replace("'", "''") + "'"


# --- Configuration Dataclasses ---


@dataclass
class DirectPatternConfig:
    """Pattern for a tell or say line.

    sender is the capture group holding the speaker's name (0 = no sender).
    """

    pattern: str
    sender: int = 1
    outgoing: bool = False


@dataclass
class ChannelPatternConfig:
    """Pattern for a channel line; channel and content are capture groups."""

    pattern: str
    channel: int = 1
    content: int = 2


@dataclass
class ContentPatternConfig:
    """Pattern run against a channel message's content to find the sender."""

    pattern: str
    sender: int = 1


def _default_tell_patterns() -> list[DirectPatternConfig]:
    return [
        DirectPatternConfig(r"^(\w+) tells you : .+$", sender=1, outgoing=False),
        DirectPatternConfig(r"^You tell (\w+): .+$", sender=1, outgoing=True),
        DirectPatternConfig(r"^(\w+) replies: .+$", sender=1, outgoing=False),
        DirectPatternConfig(r"^You reply to (\w+): .+$", sender=1, outgoing=True),
    ]


def _default_say_patterns() -> list[DirectPatternConfig]:
    return [
        DirectPatternConfig(r"^(\w+) says ?: .+$", sender=1, outgoing=False),
        DirectPatternConfig(r"^You say ?: .+$", sender=0, outgoing=True),
    ]


def _default_channel_patterns() -> list[ChannelPatternConfig]:
    return [ChannelPatternConfig(r"^\[(\*?\w+\*?)\] (.+)$", channel=1, content=2)]


def _default_channel_content_patterns() -> list[ContentPatternConfig]:
    return [
        ContentPatternConfig(r"^(\w+) : .+$", sender=1),
        ContentPatternConfig(
            r"^(?:[\w\s]+\s)?(\w+) has (?:logged in|logged out|gone idle|returned)\.$",
            sender=1,
        ),
        ContentPatternConfig(r"^(\w+) \w+", sender=1),
    ]


DEFAULT_CONTINUATION = r"^\s+\S"


@dataclass
class ClassifierConfig:
    """Ordered pattern tables for the message classifier."""

    tell: list[DirectPatternConfig] = field(default_factory=_default_tell_patterns)
    say: list[DirectPatternConfig] = field(default_factory=_default_say_patterns)
    channel: list[ChannelPatternConfig] = field(default_factory=_default_channel_patterns)
    channel_content: list[ContentPatternConfig] = field(
        default_factory=_default_channel_content_patterns
    )
    # None disables continuation merging
    continuation: str | None = DEFAULT_CONTINUATION


@dataclass
class PaneFilter:
    """Which messages a pane accepts. Empty lists accept everything."""

    types: list[str] = field(default_factory=list)
    channels: list[str] = field(default_factory=list)
    exclude_channels: list[str] = field(default_factory=list)
    pattern: str | None = None


@dataclass
class PaneConfig:
    """A pane definition from panes.yml."""

    id: str
    height: int = 5
    enabled: bool = True
    filter: PaneFilter = field(default_factory=PaneFilter)
    max_messages: int = 100
    passthrough: bool = False


@dataclass
class PanesConfig:
    """The loaded panes.yml document."""

    classifiers: ClassifierConfig = field(default_factory=ClassifierConfig)
    panes: list[PaneConfig] = field(default_factory=list)
    path: Path | None = None
    warnings: list[str] = field(default_factory=list)

    def get_pane(self, pane_id: str) -> PaneConfig | None:
        for pane in self.panes:
            if pane.id == pane_id:
                return pane
        return None


# Settings vocabulary: every value /set accepts, as strings
VALID_VALUES: dict[str, list[str]] = {
    "timestamps": ["hidden", "time", "datetime"],
    "word_wrap": ["true", "false"],
    "echo_commands": ["true", "false"],
    "status": ["right", "hidden"],
    "debounce_ms": ["25", "50", "100", "200"],
}

DESCRIPTIONS: dict[str, str] = {
    "timestamps": "Prefix server lines with a timestamp (hidden, time, or datetime)",
    "word_wrap": "Wrap long server lines at the terminal width",
    "echo_commands": "Show sent commands in the output area",
    "status": "Show connection status right-aligned on the input line",
    "debounce_ms": "Idle time before a partial line is flushed to the screen",
}


@dataclass
class Settings:
    """User settings, validated against VALID_VALUES."""

    timestamps: str = "hidden"
    word_wrap: bool = False
    echo_commands: bool = True
    status: str = "right"
    debounce_ms: int = 50
    path: Path | None = field(default=None, repr=False, compare=False)

    @staticmethod
    def keys() -> list[str]:
        return list(VALID_VALUES)

    @staticmethod
    def is_valid_key(key: str) -> bool:
        return key in VALID_VALUES

    @staticmethod
    def valid_values(key: str) -> list[str]:
        return list(VALID_VALUES.get(key, []))

    @staticmethod
    def describe(key: str) -> str:
        return DESCRIPTIONS.get(key, "")

    def get_str(self, key: str) -> str:
        """Return a setting in its /set vocabulary form."""
        value = getattr(self, key)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def set(self, key: str, value: str) -> bool:
        """Set a setting from its string form. Returns False if key or value is invalid."""
        if key not in VALID_VALUES or value not in VALID_VALUES[key]:
            return False
        current = getattr(self, key)
        if isinstance(current, bool):
            setattr(self, key, value == "true")
        elif isinstance(current, int):
            setattr(self, key, int(value))
        else:
            setattr(self, key, value)
        return True

    def as_dict(self) -> dict:
        return {key: getattr(self, key) for key in VALID_VALUES}


# --- Config Loading ---


def _get_user_data_dir() -> Path:
    """Get the user's mud-panes data directory ($HOME/.mud-panes)."""
    return Path.home() / ".mud-panes"


def default_panes_path() -> Path:
    return _get_user_data_dir() / "panes.yml"


def default_settings_path() -> Path:
    return _get_user_data_dir() / "settings.yml"


def default_aliases_path() -> Path:
    return _get_user_data_dir() / "aliases.yml"


def _is_path_like(name_or_path: str) -> bool:
    return (
        "/" in name_or_path
        or "\\" in name_or_path
        or name_or_path.endswith(".yml")
        or name_or_path.endswith(".yaml")
    )


def _find_panes_file(name_or_path: str) -> Path | None:
    """Find a panes document by name or path.

    Search order:
    1. If it looks like a path (contains / or \\ or ends in .yml), treat as path
    2. $HOME/.mud-panes/panes/<name>.yml
    3. Current working directory panes/<name>.yml

    Args:
        name_or_path: Layout name (without .yml) or path to a panes file.

    Returns:
        Path to the file if found, None otherwise.
    """
    if _is_path_like(name_or_path):
        path = Path(name_or_path).expanduser()
        if path.is_file():
            return path
        return None

    filename = f"{name_or_path}.yml"

    user_file = _get_user_data_dir() / "panes" / filename
    if user_file.is_file():
        return user_file

    cwd_file = Path.cwd() / "panes" / filename
    if cwd_file.is_file():
        return cwd_file

    return None


def _get_panes_search_paths(name: str) -> list[str]:
    """Get list of paths that would be searched for a panes name."""
    filename = f"{name}.yml"
    return [
        str(_get_user_data_dir() / "panes" / filename),
        str(Path.cwd() / "panes" / filename),
    ]


def load_panes_config(name_or_path: str | None = None) -> PanesConfig:
    """Load classifier tables and pane definitions.

    Args:
        name_or_path: Layout name or path. None loads ~/.mud-panes/panes.yml
                      and falls back to built-in classifiers and no panes
                      when it does not exist.

    Returns:
        PanesConfig. Entries that failed validation are replaced by defaults
        (classifier tables) or skipped (panes), each noted in `warnings`.

    Raises:
        FileNotFoundError: If a named document is specified but not found.
    """
    if not name_or_path:
        path = default_panes_path()
        if not path.is_file():
            return PanesConfig(path=path)
    else:
        path = _find_panes_file(name_or_path)
        if path is None:
            if _is_path_like(name_or_path):
                raise FileNotFoundError(f"Panes file not found: {name_or_path}")
            search_paths = _get_panes_search_paths(name_or_path)
            paths_str = "\n  - ".join(search_paths)
            raise FileNotFoundError(
                f"Panes layout '{name_or_path}' not found. Searched:\n  - {paths_str}"
            )

    config = PanesConfig(path=path)
    try:
        with open(path, encoding="utf-8") as f:
            data = parse_simple_yaml(f.read())
    except (OSError, UnicodeDecodeError) as e:
        config.warnings.append(f"{path}: unreadable ({e}), using defaults")
        return config

    _merge_panes_config(config, data)
    return config


def _merge_panes_config(config: PanesConfig, data: dict):
    """Merge parsed YAML data into a PanesConfig object."""
    classifiers = data.get("classifiers")
    if isinstance(classifiers, dict):
        _merge_classifiers(config.classifiers, classifiers, config.warnings)

    panes = data.get("panes")
    if isinstance(panes, list):
        seen: set[str] = set()
        for index, item in enumerate(panes):
            pane = _parse_pane(item, index, config.warnings)
            if pane is None:
                continue
            if pane.id in seen:
                config.warnings.append(f"panes[{index}]: duplicate id '{pane.id}', skipped")
                continue
            seen.add(pane.id)
            config.panes.append(pane)
    elif panes is not None:
        config.warnings.append("panes: expected a list, ignored")


def _check_pattern(pattern, groups: dict[str, object]) -> str | None:
    """Return an error message if pattern does not compile or a group index is out of range."""
    if not isinstance(pattern, str) or not pattern:
        return "missing pattern"
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        return f"invalid pattern {pattern!r}: {e}"
    for name, group in groups.items():
        if isinstance(group, bool) or not isinstance(group, int) or group < 0:
            return f"{name} must be a group number"
        if group > compiled.groups:
            return f"{name} group {group} not in pattern {pattern!r}"
    return None


def _parse_pattern_list(items, build, warnings: list[str], name: str):
    """Build a list of pattern configs, or None when any entry is invalid."""
    if not isinstance(items, list):
        warnings.append(f"classifiers.{name}: expected a list, using defaults")
        return None
    result = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            warnings.append(f"classifiers.{name}[{index}]: expected a mapping, using defaults")
            return None
        entry = build(item)
        groups = {k: v for k, v in vars(entry).items() if k not in ("pattern", "outgoing")}
        error = _check_pattern(entry.pattern, groups)
        if error:
            warnings.append(f"classifiers.{name}[{index}]: {error}, using defaults")
            return None
        result.append(entry)
    return result


def _merge_classifiers(classifiers: ClassifierConfig, data: dict, warnings: list[str]):
    if "tell" in data:
        tell = _parse_pattern_list(data["tell"], _build_direct, warnings, "tell")
        if tell is not None:
            classifiers.tell = tell
    if "say" in data:
        say = _parse_pattern_list(data["say"], _build_direct, warnings, "say")
        if say is not None:
            classifiers.say = say
    if "channel" in data:
        channel = _parse_pattern_list(data["channel"], _build_channel, warnings, "channel")
        if channel is not None:
            classifiers.channel = channel
    if "channel_content" in data:
        content = _parse_pattern_list(data["channel_content"], _build_content, warnings,
                                      "channel_content")
        if content is not None:
            classifiers.channel_content = content
    if "continuation" in data:
        cont = data["continuation"]
        if cont is None:
            classifiers.continuation = None
        else:
            error = _check_pattern(cont, {})
            if error:
                warnings.append(f"classifiers.continuation: {error}, using default")
            else:
                classifiers.continuation = cont


def _build_direct(item: dict) -> DirectPatternConfig:
    return DirectPatternConfig(
        pattern=item.get("pattern"),
        sender=item.get("sender", 1),
        outgoing=bool(item.get("outgoing", False)),
    )


def _build_channel(item: dict) -> ChannelPatternConfig:
    return ChannelPatternConfig(
        pattern=item.get("pattern"),
        channel=item.get("channel", 1),
        content=item.get("content", 2),
    )


def _build_content(item: dict) -> ContentPatternConfig:
    return ContentPatternConfig(pattern=item.get("pattern"), sender=item.get("sender", 1))


def _as_str_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def _parse_pane(item, index: int, warnings: list[str]) -> PaneConfig | None:
    """Build a PaneConfig from a parsed mapping, or None if it must be skipped."""
    if not isinstance(item, dict):
        warnings.append(f"panes[{index}]: expected a mapping, skipped")
        return None
    pane_id = item.get("id")
    if pane_id is None or str(pane_id).strip() == "":
        warnings.append(f"panes[{index}]: missing id, skipped")
        return None
    pane = PaneConfig(id=str(pane_id))

    if "height" in item:
        height = item["height"]
        if isinstance(height, int) and not isinstance(height, bool) and height >= 1:
            pane.height = height
        else:
            warnings.append(f"pane '{pane.id}': invalid height {height!r}, using {pane.height}")
    if "max_messages" in item:
        max_messages = item["max_messages"]
        if isinstance(max_messages, int) and not isinstance(max_messages, bool) and max_messages >= 1:
            pane.max_messages = max_messages
        else:
            warnings.append(
                f"pane '{pane.id}': invalid max_messages {max_messages!r}, using {pane.max_messages}"
            )
    if "enabled" in item:
        pane.enabled = bool(item["enabled"])
    if "passthrough" in item:
        pane.passthrough = bool(item["passthrough"])

    flt = item.get("filter")
    if isinstance(flt, dict):
        pane.filter.types = _as_str_list(flt.get("types"))
        pane.filter.channels = _as_str_list(flt.get("channels"))
        pane.filter.exclude_channels = _as_str_list(flt.get("exclude_channels"))
        pattern = flt.get("pattern")
        if pattern is not None:
            error = _check_pattern(str(pattern), {})
            if error:
                warnings.append(f"pane '{pane.id}': {error}, skipped")
                return None
            pane.filter.pattern = str(pattern)
    elif flt is not None:
        warnings.append(f"pane '{pane.id}': filter must be a mapping, ignored")

    return pane


def save_panes_config(config: PanesConfig) -> bool:
    """Write classifiers and panes back to their document. Best effort."""
    path = config.path or default_panes_path()
    data = {
        "classifiers": asdict(config.classifiers),
        "panes": [asdict(pane) for pane in config.panes],
    }
    return _write_yaml(path, data)


def load_settings(path: Path | None = None) -> Settings:
    """Load settings.yml. Missing or unreadable files and invalid values fall back to defaults."""
    path = path or default_settings_path()
    settings = Settings(path=path)
    try:
        with open(path, encoding="utf-8") as f:
            data = parse_simple_yaml(f.read())
    except (OSError, UnicodeDecodeError):
        return settings

    for key in Settings.keys():
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, bool):
            value = "true" if value else "false"
        settings.set(key, str(value))
    return settings


def save_settings(settings: Settings) -> bool:
    """Write settings.yml. Best effort."""
    return _write_yaml(settings.path or default_settings_path(), settings.as_dict())


def load_aliases(path: Path | None = None) -> AliasStore:
    """Load aliases.yml. Missing or unreadable files give an empty store; bad names are skipped."""
    path = path or default_aliases_path()
    store = AliasStore(path=path)
    try:
        with open(path, encoding="utf-8") as f:
            data = parse_simple_yaml(f.read())
    except (OSError, UnicodeDecodeError):
        return store

    aliases = data.get("aliases")
    if isinstance(aliases, dict):
        for name, expansion in aliases.items():
            if expansion is not None:
                store.set(str(name), str(expansion))
    return store


def save_aliases(store: AliasStore) -> bool:
    """Write aliases.yml. Best effort."""
    return _write_yaml(store.path or default_aliases_path(), {"aliases": store.as_dict()})


def _write_yaml(path: Path, data: dict) -> bool:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(dump_simple_yaml(data))
    except OSError:
        return False
    return True
