"""Tests for configuration loading and YAML parsing."""

from pathlib import Path

import pytest

from mud_panes import config as config_mod
from mud_panes.config import (
    ClassifierConfig,
    PaneConfig,
    PaneFilter,
    PanesConfig,
    dump_simple_yaml,
    load_panes_config,
    parse_simple_yaml,
    save_panes_config,
)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point ~/.mud-panes at a temp dir and run from an empty cwd."""
    home = tmp_path / "home" / ".mud-panes"
    monkeypatch.setattr(config_mod, "_get_user_data_dir", lambda: home)
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    return home


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestParseSimpleYaml:
    """Tests for the minimal YAML parser."""

    def test_empty_document(self):
        assert parse_simple_yaml("") == {}

    def test_scalars(self):
        yaml = """
name: tells
height: 4
ratio: 0.5
enabled: true
passthrough: false
pattern: null
"""
        assert parse_simple_yaml(yaml) == {
            "name": "tells",
            "height": 4,
            "ratio": 0.5,
            "enabled": True,
            "passthrough": False,
            "pattern": None,
        }

    def test_quoted_strings(self):
        result = parse_simple_yaml("a: \"hello world\"\nb: 'it''s'")
        assert result == {"a": "hello world", "b": "it's"}

    def test_comments_ignored(self):
        yaml = """
# This is a comment
key: value  # inline comment
other: data
"""
        assert parse_simple_yaml(yaml) == {"key": "value", "other": "data"}

    def test_nested_dict(self):
        yaml = """
filter:
  types: tell
  pattern: Xal
"""
        assert parse_simple_yaml(yaml) == {"filter": {"types": "tell", "pattern": "Xal"}}

    def test_simple_list(self):
        yaml = """
channels:
  - chat
  - newbie  # the help channel
"""
        assert parse_simple_yaml(yaml) == {"channels": ["chat", "newbie"]}

    def test_list_at_key_indent(self):
        yaml = """
channels:
- chat
- gossip
after: 1
"""
        assert parse_simple_yaml(yaml) == {"channels": ["chat", "gossip"], "after": 1}

    def test_inline_list(self):
        result = parse_simple_yaml("types: [tell, say]\nempty: []\nquoted: ['a, b', c]")
        assert result == {"types": ["tell", "say"], "empty": [], "quoted": ["a, b", "c"]}

    def test_list_of_dicts(self):
        yaml = """
tell:
  - pattern: "^(\\\\w+) tells you : .+$"
    sender: 1
  - pattern: '^You tell (\\w+): .+$'
    outgoing: true
"""
        assert parse_simple_yaml(yaml) == {
            "tell": [
                {"pattern": r"^(\w+) tells you : .+$", "sender": 1},
                {"pattern": r"^You tell (\w+): .+$", "outgoing": True},
            ]
        }

    def test_list_of_dicts_with_nested_block(self):
        yaml = """
panes:
  - id: tells
    height: 3
    filter:
      types: [tell]
      channels:
        - chat
  - id: chat
"""
        assert parse_simple_yaml(yaml) == {
            "panes": [
                {"id": "tells", "height": 3,
                 "filter": {"types": ["tell"], "channels": ["chat"]}},
                {"id": "chat"},
            ]
        }

    def test_special_characters_in_value(self):
        yaml = r"""
pattern: '^\[(\*?\w+\*?)\] (.+)$'
"""
        assert parse_simple_yaml(yaml)["pattern"] == r"^\[(\*?\w+\*?)\] (.+)$"

    def test_comments_before_nested_content(self):
        """Comments between key and nested content should be skipped."""
        yaml = """
classifiers:
  # Custom tells
  say:
    - pattern: x
"""
        assert parse_simple_yaml(yaml) == {"classifiers": {"say": [{"pattern": "x"}]}}


class TestDumpSimpleYaml:
    def test_scalars(self):
        text = dump_simple_yaml({"a": "plain", "b": 3, "c": True, "d": None, "e": "needs quoting: yes"})
        assert text == "a: plain\nb: 3\nc: true\nd: null\ne: 'needs quoting: yes'\n"

    def test_strings_that_look_like_other_types_are_quoted(self):
        assert dump_simple_yaml({"a": "true", "b": "12"}) == "a: 'true'\nb: '12'\n"

    def test_parses_back(self):
        data = {
            "classifiers": {
                "continuation": r"^\s+\S",
                "tell": [{"pattern": r"^(\w+) tells you : .+$", "sender": 1, "outgoing": False}],
            },
            "panes": [
                {"id": "tells", "height": 3, "enabled": True, "max_messages": 100,
                 "passthrough": False,
                 "filter": {"types": ["tell"], "channels": [], "exclude_channels": ["*spam*"],
                            "pattern": "it's"}},
            ],
            "multiline": "a\nb",
        }
        assert parse_simple_yaml(dump_simple_yaml(data)) == data


class TestLoadPanesConfig:
    def test_missing_default_file_gives_defaults(self, data_dir):
        config = load_panes_config()
        assert config.panes == []
        assert config.classifiers == ClassifierConfig()
        assert config.path == data_dir / "panes.yml"
        assert config.warnings == []

    def test_missing_named_layout(self, data_dir):
        with pytest.raises(FileNotFoundError, match="Panes layout 'raid' not found"):
            load_panes_config("raid")

    def test_missing_path(self, data_dir, tmp_path):
        with pytest.raises(FileNotFoundError, match="Panes file not found"):
            load_panes_config(str(tmp_path / "nope.yml"))

    def test_named_layout_in_user_dir(self, data_dir):
        write(data_dir / "panes" / "raid.yml", "panes:\n  - id: raid\n")
        config = load_panes_config("raid")
        assert [p.id for p in config.panes] == ["raid"]

    def test_named_layout_in_cwd(self, data_dir):
        write(Path.cwd() / "panes" / "solo.yml", "panes:\n  - id: solo\n")
        assert load_panes_config("solo").panes[0].id == "solo"

    def test_panes_parsed(self, data_dir):
        write(data_dir / "panes.yml", """
panes:
  - id: tells
    height: 4
    max_messages: 50
    passthrough: true
    filter:
      types: [tell]
  - id: chat
    enabled: false
    filter:
      types: [channel]
      channels: [chat, "*mortal*"]
      exclude_channels: [spam]
      pattern: '\\bXal\\b'
""")
        config = load_panes_config()
        assert config.warnings == []
        assert config.panes == [
            PaneConfig(id="tells", height=4, max_messages=50, passthrough=True,
                       filter=PaneFilter(types=["tell"])),
            PaneConfig(id="chat", enabled=False,
                       filter=PaneFilter(types=["channel"], channels=["chat", "*mortal*"],
                                         exclude_channels=["spam"], pattern=r"\bXal\b")),
        ]

    def test_custom_classifiers(self, data_dir):
        write(data_dir / "panes.yml", """
classifiers:
  tell:
    - pattern: '^(\\w+) whispers: .+$'
  continuation: null
""")
        config = load_panes_config()
        assert [t.pattern for t in config.classifiers.tell] == [r"^(\w+) whispers: .+$"]
        assert config.classifiers.say == ClassifierConfig().say
        assert config.classifiers.continuation is None


class TestLoadWarnings:
    """Invalid config entries fall back to defaults and record a warning."""

    def test_invalid_regex_falls_back_to_default_list(self, data_dir):
        write(data_dir / "panes.yml", """
classifiers:
  say:
    - pattern: '^(\\w+) says: .+$'
    - pattern: '^(unclosed'
""")
        config = load_panes_config()
        assert config.classifiers.say == ClassifierConfig().say
        assert len(config.warnings) == 1
        assert "classifiers.say[1]" in config.warnings[0]

    def test_group_out_of_range(self, data_dir):
        write(data_dir / "panes.yml", """
classifiers:
  channel:
    - pattern: '^\\[(\\w+)\\] .+$'
      content: 2
""")
        config = load_panes_config()
        assert config.classifiers.channel == ClassifierConfig().channel
        assert "content group 2" in config.warnings[0]

    def test_invalid_continuation_keeps_default(self, data_dir):
        write(data_dir / "panes.yml", "classifiers:\n  continuation: '('\n")
        config = load_panes_config()
        assert config.classifiers.continuation == ClassifierConfig().continuation
        assert config.warnings

    def test_pane_without_id_skipped(self, data_dir):
        write(data_dir / "panes.yml", "panes:\n  - height: 3\n  - id: ok\n")
        config = load_panes_config()
        assert [p.id for p in config.panes] == ["ok"]
        assert "missing id" in config.warnings[0]

    def test_duplicate_id_skipped(self, data_dir):
        write(data_dir / "panes.yml", "panes:\n  - id: a\n    height: 2\n  - id: a\n    height: 9\n")
        config = load_panes_config()
        assert [p.height for p in config.panes] == [2]
        assert "duplicate id" in config.warnings[0]

    def test_bad_filter_pattern_skips_pane(self, data_dir):
        write(data_dir / "panes.yml", "panes:\n  - id: a\n    filter:\n      pattern: '['\n")
        config = load_panes_config()
        assert config.panes == []
        assert config.warnings

    def test_bad_height_uses_default(self, data_dir):
        write(data_dir / "panes.yml", "panes:\n  - id: a\n    height: 0\n")
        config = load_panes_config()
        assert config.panes[0].height == 5
        assert "invalid height" in config.warnings[0]


class TestSavePanesConfig:
    def test_round_trip(self, data_dir):
        config = PanesConfig(
            panes=[PaneConfig(id="tells", height=3, filter=PaneFilter(types=["tell"]))],
            path=data_dir / "panes.yml",
        )
        config.panes[0].enabled = False
        assert save_panes_config(config) is True
        loaded = load_panes_config()
        assert loaded.panes == config.panes
        assert loaded.classifiers == config.classifiers
        assert loaded.warnings == []

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        config = PanesConfig(path=blocker / "panes.yml")
        assert save_panes_config(config) is False
