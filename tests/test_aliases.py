"""Tests for command aliases and aliases.yml."""

from mud_panes.aliases import AliasStore
from mud_panes.config import load_aliases, save_aliases


class TestExpand:
    """First-word expansion with $1, $2 and $* placeholders."""

    def test_not_an_alias(self):
        store = AliasStore({"k": "kill $1"})
        assert store.expand("look") == "look"
        assert store.expand("") == ""

    def test_positional_arguments(self):
        store = AliasStore({"gv": "give $1 to $2"})
        assert store.expand("gv sword xal") == "give sword to xal"

    def test_missing_argument_removed(self):
        store = AliasStore({"gv": "give $1 to $2"})
        assert store.expand("gv sword") == "give sword to"

    def test_all_arguments(self):
        store = AliasStore({"ct": "chat $*"})
        assert store.expand("ct hello  there") == "chat hello there"

    def test_arguments_appended_without_placeholders(self):
        store = AliasStore({"gt": "tell guild"})
        assert store.expand("gt hi") == "tell guild hi"
        assert store.expand("gt") == "tell guild"

    def test_only_first_word(self):
        store = AliasStore({"k": "kill"})
        assert store.expand("say k") == "say k"

    def test_case_sensitive(self):
        store = AliasStore({"k": "kill"})
        assert store.expand("K rat") == "K rat"


class TestStore:
    def test_set_and_get(self):
        store = AliasStore()
        assert store.set("k", "  kill $1 ") is True
        assert store.get("k") == "kill $1"
        assert "k" in store

    def test_invalid_names_rejected(self):
        store = AliasStore()
        assert store.set("/k", "kill") is False
        assert store.set("a b", "kill") is False
        assert store.set("k:", "kill") is False
        assert len(store) == 0

    def test_empty_expansion_rejected(self):
        assert AliasStore().set("k", "   ") is False

    def test_remove(self):
        store = AliasStore({"k": "kill"})
        assert store.remove("k") is True
        assert store.remove("k") is False

    def test_items_keep_order(self):
        store = AliasStore()
        store.set("n2", "north;north")
        store.set("k", "kill")
        assert store.items() == [("n2", "north;north"), ("k", "kill")]


class TestPersistence:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "aliases.yml"
        store = AliasStore(path=path)
        store.set("k", "kill $1")
        store.set("gt", "tell guild: hi # all")
        assert save_aliases(store) is True
        loaded = load_aliases(path)
        assert loaded.items() == store.items()
        assert loaded.path == path

    def test_missing_file(self, tmp_path):
        store = load_aliases(tmp_path / "none.yml")
        assert len(store) == 0

    def test_bad_entries_skipped(self, tmp_path):
        path = tmp_path / "aliases.yml"
        path.write_text("aliases:\n  k: kill\n  'a b': look\n  e:\n", encoding="utf-8")
        store = load_aliases(path)
        assert store.items() == [("k", "kill")]

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "aliases.yml"
        path.write_text("aliases: [k, kill]\n", encoding="utf-8")
        assert len(load_aliases(path)) == 0

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        store = AliasStore({"k": "kill"}, path=blocker / "aliases.yml")
        assert save_aliases(store) is False
