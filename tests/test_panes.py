"""Tests for pane filtering, scrolling, rendering and layout."""

import io

from mud_panes.config import PaneConfig, PaneFilter
from mud_panes.panes import FOCUS_BORDER, Pane, PaneManager, normalize_channel
from mud_panes.terminal import Terminal
from mud_panes.types import ClassifiedMessage, MessageType


def tell(raw="Xal tells you : hi", sender="Xal"):
    return ClassifiedMessage(MessageType.TELL, raw, sender=sender)


def channel(name, raw="[chat] Xal : hi"):
    return ClassifiedMessage(MessageType.CHANNEL, raw, channel=name, sender="Xal")


def other(raw="A rat squeaks."):
    return ClassifiedMessage(MessageType.OTHER, raw)


def make_term(cols=40, rows=24):
    return Terminal(stream=io.StringIO(), size=lambda: (cols, rows))


def make_pane(pane_id="p", height=3, **filter_kw):
    return Pane(PaneConfig(id=pane_id, height=height, filter=PaneFilter(**filter_kw)))


class TestNormalizeChannel:
    def test_marker_pair_stripped(self):
        assert normalize_channel("*mortal*") == "mortal"

    def test_lowercased(self):
        assert normalize_channel("Chat") == "chat"

    def test_unpaired_marker_kept(self):
        assert normalize_channel("*chat") == "*chat"


class TestFilter:
    def test_empty_filter_accepts_all(self):
        pane = make_pane()
        assert pane.accepts(tell())
        assert pane.accepts(other())

    def test_types(self):
        pane = make_pane(types=["tell"])
        assert pane.accepts(tell())
        assert not pane.accepts(channel("chat"))

    def test_channels_normalised(self):
        pane = make_pane(channels=["Mortal"])
        assert pane.accepts(channel("*mortal*"))
        assert not pane.accepts(channel("chat"))

    def test_channel_list_ignores_non_channel_messages(self):
        pane = make_pane(channels=["chat"])
        assert pane.accepts(tell())

    def test_exclude_channels(self):
        pane = make_pane(types=["channel"], exclude_channels=["*spam*"])
        assert not pane.accepts(channel("spam"))
        assert pane.accepts(channel("chat"))

    def test_pattern_searches_raw_line(self):
        pane = make_pane(pattern="Xal")
        assert pane.accepts(tell())
        assert not pane.accepts(other())


class TestPaneMessages:
    """Eviction, scroll lock and the new-message flag."""

    def test_bounded(self):
        pane = Pane(PaneConfig(id="p", max_messages=2))
        for text in ("a", "b", "c"):
            pane.add_message(text)
        assert pane.messages == ["b", "c"]

    def test_positioning_stripped(self):
        pane = make_pane()
        pane.add_message("\x1b[2J\x1b[31mhi\x1b[0m")
        assert pane.messages == ["\x1b[31mhi\x1b[0m"]

    def test_visible_follows_newest(self):
        pane = make_pane(height=2)
        for text in ("a", "b", "c"):
            pane.add_message(text)
        assert pane.visible_messages() == ["b", "c"]

    def test_scrolled_view_stays_put(self):
        pane = make_pane(height=3)
        for i in range(5):
            pane.add_message(f"m{i}")
        pane.scroll_up()
        assert pane.visible_messages() == ["m1", "m2", "m3"]
        pane.add_message("m5")
        assert pane.visible_messages() == ["m1", "m2", "m3"]
        assert pane.has_new is True

    def test_scroll_clamped(self):
        pane = make_pane(height=3)
        for i in range(5):
            pane.add_message(f"m{i}")
        pane.scroll_up(100)
        assert pane.scroll_offset == 2
        pane.scroll_down(100)
        assert pane.scroll_offset == 0

    def test_returning_to_bottom_clears_new_flag(self):
        pane = make_pane(height=1)
        pane.add_message("a")
        pane.add_message("b")
        pane.scroll_up()
        pane.add_message("c")
        assert pane.has_new
        pane.scroll_down(10)
        assert not pane.has_new

    def test_clear(self):
        pane = make_pane()
        pane.add_message("a")
        pane.scroll_offset = 1
        pane.clear()
        assert pane.messages == []
        assert pane.scroll_offset == 0


class TestPaneRender:
    def test_bottom_aligned(self):
        term = make_term()
        pane = make_pane(height=3)
        pane.top_row = 1
        pane.add_message("first")
        pane.add_message("second")
        pane.render(term)
        out = term.stream.getvalue()
        assert out.count("\x1b[2K") == 3
        assert "\x1b[2;1Hfirst\x1b[0m" in out
        assert "\x1b[3;1Hsecond\x1b[0m" in out

    def test_long_lines_truncated(self):
        term = make_term(cols=10)
        pane = make_pane(height=1)
        pane.top_row = 4
        pane.add_message("a very long message")
        pane.render(term)
        assert "\x1b[4;1Ha very ...\x1b[0m" in term.stream.getvalue()

    def test_focus_border(self):
        term = make_term(cols=10)
        pane = make_pane(height=1)
        pane.top_row = 1
        pane.focused = True
        pane.add_message("a very long message")
        pane.render(term)
        assert f"{FOCUS_BORDER}a very...\x1b[0m" in term.stream.getvalue()

    def test_unplaced_pane_draws_nothing(self):
        term = make_term()
        make_pane().render(term)
        assert term.stream.getvalue() == ""


def manager(*specs):
    return PaneManager([PaneConfig(id=pid, height=h, filter=PaneFilter(types=types))
                        for pid, h, types in specs])


class TestRouting:
    def test_consumed_by_matching_pane(self):
        pm = manager(("tells", 3, ["tell"]))
        assert pm.route("Xal tells you : hi", tell()) is True
        assert pm.get_pane("tells").messages == ["Xal tells you : hi"]

    def test_unmatched_not_consumed(self):
        pm = manager(("tells", 3, ["tell"]))
        assert pm.route("A rat squeaks.", other()) is False

    def test_delivered_to_every_matching_pane(self):
        pm = manager(("tells", 3, ["tell"]), ("social", 3, ["tell", "say"]))
        pm.route("Xal tells you : hi", tell())
        assert len(pm.get_pane("tells").messages) == 1
        assert len(pm.get_pane("social").messages) == 1

    def test_passthrough_not_consumed(self):
        pm = manager(("tells", 3, ["tell"]), ("log", 3, ["tell"]))
        pm.set_passthrough("log", True)
        assert pm.route("Xal tells you : hi", tell()) is False
        assert len(pm.get_pane("tells").messages) == 1

    def test_disabled_pane_skipped(self):
        pm = manager(("tells", 3, ["tell"]))
        pm.disable_pane("tells")
        assert pm.route("Xal tells you : hi", tell()) is False
        assert pm.get_pane("tells").messages == []

    def test_no_panes(self):
        assert PaneManager([]).route("x", other()) is False


class TestLayout:
    """Pane rows stack from the top and shrink last-first on small terminals."""

    def test_stacked_from_top(self):
        pm = manager(("a", 5, []), ("b", 4, []))
        assert pm.layout(24) == 10
        assert pm.get_pane("a").top_row == 1
        assert pm.get_pane("b").top_row == 6

    def test_disabled_panes_take_no_rows(self):
        pm = manager(("a", 5, []), ("b", 4, []))
        pm.disable_pane("a")
        assert pm.layout(24) == 5
        assert pm.get_pane("b").top_row == 1
        assert pm.get_pane("a").top_row == 0

    def test_last_pane_shrinks_first(self):
        pm = manager(("a", 5, []), ("b", 4, []))
        assert pm.layout(10) == 7
        assert pm.get_pane("a").height == 5
        assert pm.get_pane("b").height == 1

    def test_every_pane_keeps_a_row_before_any_is_hidden(self):
        pm = manager(("a", 5, []), ("b", 4, []))
        assert pm.layout(6) == 3
        assert [p.height for p in pm.panes] == [1, 1]

    def test_tiny_terminal_hides_last_pane(self):
        pm = manager(("a", 5, []), ("b", 4, []))
        assert pm.layout(5) == 2
        assert pm.get_pane("b").height == 0
        assert pm.get_pane("b").top_row == 0

    def test_heights_restored_when_room_returns(self):
        pm = manager(("a", 5, []), ("b", 4, []))
        pm.layout(6)
        pm.layout(30)
        assert [p.height for p in pm.panes] == [5, 4]

    def test_no_panes(self):
        assert PaneManager([]).layout(24) == 1


class TestManagerRender:
    def test_render_dirty_only_after_route(self):
        term = make_term()
        pm = manager(("tells", 2, ["tell"]))
        pm.layout(24)
        assert pm.render_dirty(term) is False
        pm.route("Xal tells you : hi", tell())
        assert pm.render_dirty(term) is True
        out = term.stream.getvalue()
        assert out.startswith("\x1b7") and out.endswith("\x1b8")
        assert "Xal tells you : hi" in out
        assert pm.render_dirty(term) is False

    def test_render_all_without_enabled_panes_writes_nothing(self):
        term = make_term()
        PaneManager([]).render_all(term)
        assert term.stream.getvalue() == ""


class TestManagement:
    def test_status(self):
        pm = manager(("tells", 3, ["tell"]))
        pm.route("Xal tells you : hi", tell())
        assert pm.status() == [
            {"id": "tells", "enabled": True, "height": 3, "passthrough": False, "messages": 1},
        ]

    def test_enable_disable_updates_config(self):
        pm = manager(("tells", 3, []))
        pm.disable_pane("tells")
        assert pm.panes[0].config.enabled is False
        pm.enable_pane("tells")
        assert pm.panes[0].config.enabled is True

    def test_unknown_pane(self):
        pm = manager(("tells", 3, []))
        assert pm.enable_pane("nope") is False
        assert pm.set_height("nope", 3) is False

    def test_set_height(self):
        pm = manager(("tells", 3, []))
        assert pm.set_height("tells", 7) is True
        assert pm.panes[0].config.height == 7
        assert pm.set_height("tells", 0) is False

    def test_focus_cycles_then_clears(self):
        pm = manager(("a", 2, []), ("b", 2, []))
        pm.layout(24)
        assert pm.focus_next().id == "a"
        assert pm.focus_next().id == "b"
        assert pm.focus_next() is None
        assert pm.focused is None
        assert pm.focus_next().id == "a"

    def test_disable_clears_focus(self):
        pm = manager(("a", 2, []))
        pm.layout(24)
        pm.focus_next()
        pm.disable_pane("a")
        assert pm.focused is None

    def test_clear_all(self):
        pm = manager(("a", 2, []), ("b", 2, []))
        pm.route("x", other())
        pm.clear_all()
        assert all(p.messages == [] for p in pm.panes)
