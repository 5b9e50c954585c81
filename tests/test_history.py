"""Tests for command history navigation and reverse search."""

from mud_panes.history import CommandHistory, ReverseSearch


def history_of(*cmds):
    h = CommandHistory()
    for cmd in cmds:
        h.add(cmd)
    return h


class TestAdd:
    def test_skips_empty(self):
        h = history_of("", "   ")
        assert len(h) == 0

    def test_skips_consecutive_duplicates(self):
        h = history_of("look", "look", "north", "look")
        assert h.entries == ["look", "north", "look"]

    def test_bounded(self):
        h = CommandHistory(max_size=3)
        for cmd in ["a", "b", "c", "d"]:
            h.add(cmd)
        assert h.entries == ["b", "c", "d"]


class TestNavigation:
    def test_up_walks_back(self):
        h = history_of("one", "two", "three")
        assert h.navigate_up("") == "three"
        assert h.navigate_up("three") == "two"
        assert h.navigate_up("two") == "one"
        assert h.navigate_up("one") == "one"

    def test_down_restores_saved_input(self):
        h = history_of("one", "two")
        h.navigate_up("draft")
        assert h.navigate_down("two") == "draft"

    def test_down_without_browsing(self):
        h = history_of("one")
        assert h.navigate_down("typing") == "typing"

    def test_prefix_filter(self):
        h = history_of("tell xal hi", "look", "tell blizz yo")
        assert h.navigate_up("tell") == "tell blizz yo"
        assert h.navigate_up("tell blizz yo") == "tell xal hi"

    def test_no_prefix_match_keeps_input(self):
        h = history_of("look")
        assert h.navigate_up("zz") == "zz"

    def test_empty_history(self):
        assert CommandHistory().navigate_up("x") == "x"


class TestSearch:
    def test_newest_first_distinct(self):
        h = history_of("tell xal hi", "look", "tell blizz yo", "tell xal hi")
        assert h.search("tell") == ["tell xal hi", "tell blizz yo"]

    def test_case_insensitive(self):
        assert history_of("Tell Xal hi").search("xal") == ["Tell Xal hi"]


class TestReverseSearch:
    """Ctrl+R incremental search state."""

    def test_prompt_shows_query(self):
        rs = ReverseSearch(history_of("look"))
        rs.start("")
        rs.type("l")
        rs.type("o")
        assert rs.prompt() == "(reverse-i-search)`lo': "
        assert rs.match == "look"

    def test_next_steps_to_older_match(self):
        rs = ReverseSearch(history_of("kill rat", "look", "kill goblin"))
        rs.start("")
        rs.type("k")
        rs.type("i")
        assert rs.match == "kill goblin"
        rs.next()
        assert rs.match == "kill rat"
        rs.next()
        assert rs.match == "kill rat"

    def test_backspace_widens(self):
        rs = ReverseSearch(history_of("north", "nod"))
        rs.start("")
        for ch in "nor":
            rs.type(ch)
        assert rs.match == "north"
        rs.backspace()
        rs.backspace()
        assert rs.match == "nod"

    def test_accept_returns_match(self):
        rs = ReverseSearch(history_of("look"))
        rs.start("draft")
        rs.type("oo")
        assert rs.accept() == "look"
        assert rs.active is False

    def test_accept_without_match_returns_saved(self):
        rs = ReverseSearch(history_of("look"))
        rs.start("draft")
        rs.type("zzz")
        assert rs.match is None
        assert rs.accept() == "draft"

    def test_cancel_restores_saved(self):
        rs = ReverseSearch(history_of("look"))
        rs.start("draft")
        rs.type("l")
        assert rs.cancel() == "draft"
        assert rs.active is False
