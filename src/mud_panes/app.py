import os
import queue
import selectors
import signal
import sys
import time

from mud_panes.config import load_aliases, save_aliases, save_panes_config, save_settings
from mud_panes.connection import DEFAULT_PORT, ConnectionEvent, EventKind, MudConnection
from mud_panes.debug_log import DebugLogger
from mud_panes.input_line import KeyReader
from mud_panes.terminal import Terminal, raw_mode
from mud_panes.types import ConnectionState, ProtoEvent
from mud_panes.ui import ClientUI

# Longest the loop sleeps waiting for keys
INPUT_POLL = 0.025

HELP_LINES = [
    "/connect host [port]   connect (also host:port)",
    "/disconnect            close the connection",
    "/reconnect             connect to the last host again",
    "/clear                 clear the transcript and panes",
    "/pane                  list panes",
    "/pane enable|disable ID",
    "/pane height ID N      set a pane's height",
    "/pane passthrough ID on|off",
    "/pane clear ID         clear one pane",
    "/pane focus [ID]       focus a pane (PgUp/PgDn scroll it)",
    "/set [key [value]]     show or change settings (Tab cycles)",
    "/alias NAME EXPANSION  define an alias ($1, $2, $* for arguments)",
    "/unalias NAME          remove an alias",
    "/aliases               list aliases",
    "/debug                 toggle debug logs (panes_*.log)",
    "/quit, /exit           leave",
    "Keys: Ctrl+R search history, Ctrl+O cycle pane focus, Ctrl+L redraw,",
    "      Ctrl+C/Ctrl+D disconnect (quit when disconnected)",
]


def parse_address(text: str, port: int | None = None) -> tuple[str, int]:
    """Split 'host', 'host:port' or 'host port' into (host, port)."""
    parts = text.split()
    host = parts[0]
    if len(parts) > 1:
        port = int(parts[1])
    elif ":" in host and host.count(":") == 1:
        host, _, port_str = host.partition(":")
        port = int(port_str)
    return host, port or DEFAULT_PORT


def _handle_connect_cmd(ui, conn, arg: str):
    if not arg:
        ui.echo("Usage: /connect host [port]")
        return
    try:
        host, port = parse_address(arg)
    except ValueError:
        ui.echo(f"Invalid port in: {arg}")
        return
    _connect(ui, conn, host, port)


def _handle_disconnect_cmd(ui, conn, arg: str):
    if conn.state is ConnectionState.DISCONNECTED:
        ui.echo("Not connected.")
        return
    conn.disconnect()


def _handle_reconnect_cmd(ui, conn, arg: str):
    if not conn.host:
        ui.echo("No previous connection.")
        return
    _connect(ui, conn, conn.host, conn.port)


def _handle_clear_cmd(ui, conn, arg: str):
    ui.clear()


def _handle_help_cmd(ui, conn, arg: str):
    for line in HELP_LINES:
        ui.echo(line)


def _handle_debug_cmd(ui, conn, arg: str):
    state = ui.debug_logger.toggle()
    label = "ON" if state else "OFF"
    ui.echo(f"Debug logging {label}")


def _handle_pane_cmd(ui, conn, arg: str):
    """/pane [enable|disable|height|passthrough|clear|focus] ..."""
    parts = arg.split()
    panes = ui.panes
    if not parts or parts[0] == "list":
        if not panes.panes:
            path = ui.panes_config.path or "~/.mud-panes/panes.yml"
            ui.echo(f"No panes configured. Define them in {path}")
            return
        for st in panes.status():
            flags = "on " if st["enabled"] else "off"
            extra = " passthrough" if st["passthrough"] else ""
            ui.echo(f"{flags} {st['id']}  height={st['height']}  messages={st['messages']}{extra}")
        return

    sub = parts[0].lower()
    pane_id = parts[1] if len(parts) > 1 else None

    if sub == "focus" and pane_id is None:
        pane = panes.focus_next()
        panes.render_all(ui.term)
        ui.echo(f"Focused pane: {pane.id}" if pane else "Pane focus off")
        return

    if pane_id is None:
        ui.echo(f"Usage: /pane {sub} ID")
        return
    pane = panes.get_pane(pane_id)
    if pane is None:
        ui.echo(f"Unknown pane: {pane_id} (panes: {', '.join(panes.pane_ids()) or 'none'})")
        return

    if sub == "enable":
        panes.enable_pane(pane_id)
        _save_panes(ui, f"Pane {pane_id} enabled")
        ui.relayout()
    elif sub == "disable":
        panes.disable_pane(pane_id)
        _save_panes(ui, f"Pane {pane_id} disabled")
        ui.redraw()
    elif sub == "height":
        try:
            height = int(parts[2])
        except (IndexError, ValueError):
            ui.echo("Usage: /pane height ID N")
            return
        if not panes.set_height(pane_id, height):
            ui.echo("Height must be at least 1")
            return
        _save_panes(ui, f"Pane {pane_id} height {height}")
        ui.redraw()
    elif sub == "passthrough":
        value = parts[2].lower() if len(parts) > 2 else ""
        if value not in ("on", "off", "true", "false"):
            ui.echo("Usage: /pane passthrough ID on|off")
            return
        flag = value in ("on", "true")
        panes.set_passthrough(pane_id, flag)
        _save_panes(ui, f"Pane {pane_id} passthrough {'on' if flag else 'off'}")
    elif sub == "clear":
        pane.clear()
        panes.render_all(ui.term)
    elif sub == "focus":
        for p in panes.panes:
            p.focused = p is pane and p.enabled
        panes.render_all(ui.term)
    else:
        ui.echo(f"Unknown /pane command: {sub}")


def _save_panes(ui, message: str):
    if save_panes_config(ui.panes_config):
        ui.echo(message)
    else:
        ui.echo(f"{message} (could not save pane config)")


def _handle_set_cmd(ui, conn, arg: str):
    """/set, /set key, /set key value"""
    settings = ui.settings
    parts = arg.split()
    if not parts:
        for key in settings.keys():
            ui.echo(f"{key} = {settings.get_str(key)}  ({settings.describe(key)})")
        return

    key = parts[0]
    if not settings.is_valid_key(key):
        ui.echo(f"Unknown setting: {key} (settings: {', '.join(settings.keys())})")
        return
    if len(parts) == 1:
        values = "|".join(settings.valid_values(key))
        ui.echo(f"{key} = {settings.get_str(key)}  [{values}]")
        return

    value = parts[1].lower()
    if not settings.set(key, value):
        ui.echo(f"Invalid value for {key}: {value} [{'|'.join(settings.valid_values(key))}]")
        return
    if key == "debounce_ms":
        ui.output.debouncer.delay = settings.debounce_ms / 1000.0
    saved = save_settings(settings)
    ui.echo(f"{key} = {settings.get_str(key)}" + ("" if saved else " (could not save settings)"))
    ui.draw_input()


def _handle_alias_cmd(ui, conn, arg: str):
    """/alias NAME EXPANSION, or /alias NAME to show one"""
    name, _, expansion = arg.partition(" ")
    if not name:
        ui.echo("Usage: /alias NAME EXPANSION ($1, $2, $* for arguments)")
        return
    if not expansion.strip():
        current = ui.aliases.get(name)
        ui.echo(f"{name} = {current}" if current else f"No alias: {name}")
        return
    if not ui.aliases.set(name, expansion):
        ui.echo(f"Invalid alias name: {name}")
        return
    _save_aliases(ui, f"Alias set: {name} = {ui.aliases.get(name)}")


def _handle_unalias_cmd(ui, conn, arg: str):
    if not arg:
        ui.echo("Usage: /unalias NAME")
        return
    if not ui.aliases.remove(arg):
        ui.echo(f"No alias: {arg}")
        return
    _save_aliases(ui, f"Alias removed: {arg}")


def _handle_aliases_cmd(ui, conn, arg: str):
    if not ui.aliases:
        ui.echo("No aliases defined.")
        return
    for name, expansion in ui.aliases.items():
        ui.echo(f"{name} = {expansion}")


def _save_aliases(ui, message: str):
    if save_aliases(ui.aliases):
        ui.echo(message)
    else:
        ui.echo(f"{message} (could not save aliases)")


_COMMANDS = {
    "/connect": _handle_connect_cmd,
    "/disconnect": _handle_disconnect_cmd,
    "/reconnect": _handle_reconnect_cmd,
    "/clear": _handle_clear_cmd,
    "/help": _handle_help_cmd,
    "/debug": _handle_debug_cmd,
    "/pane": _handle_pane_cmd,
    "/set": _handle_set_cmd,
    "/alias": _handle_alias_cmd,
    "/unalias": _handle_unalias_cmd,
    "/aliases": _handle_aliases_cmd,
}


def _connect(ui, conn, host: str, port: int):
    ui.output.reset()
    ui.echo(f"Connecting to {host}:{port}...")
    conn.connect(host, port)


def handle_line(ui, conn, line: str) -> bool:
    """Run a slash command or send a line to the server. Returns False to quit."""
    stripped = line.strip()
    if stripped.startswith("/"):
        cmd, _, arg = stripped.partition(" ")
        cmd = cmd.lower()
        if cmd in ("/quit", "/exit"):
            return False
        handler = _COMMANDS.get(cmd)
        if handler is None:
            ui.echo(f"Unknown command: {cmd} (try /help)")
        else:
            handler(ui, conn, arg.strip())
        return True

    if not conn.connected:
        ui.echo("Not connected. Use /connect host [port].")
        return True
    command = ui.aliases.expand(line)
    if conn.send_line(command):
        ui.history.add(line)
        if ui.settings.echo_commands:
            ui.output.echo_command(command)
    return True


def handle_interrupt(ui, conn) -> bool:
    """Ctrl+C / Ctrl+D: disconnect if connected, otherwise quit. Returns False to quit."""
    if conn.state is ConnectionState.DISCONNECTED:
        return False
    conn.disconnect()
    return True


def _dispatch_keys(ui, conn, keys: list[str]) -> bool:
    """Feed keys to the UI, running lines and interrupts. Returns False to quit."""
    for key in keys:
        line, interrupt = ui.handle_key(key)
        if interrupt and not handle_interrupt(ui, conn):
            return False
        if line is not None and not handle_line(ui, conn, line):
            return False
    return True


def drain_events(ui, conn, event_q: "queue.Queue[ConnectionEvent]",
                 proto_q: "queue.Queue[ProtoEvent]", logger: DebugLogger):
    while True:
        try:
            ev = proto_q.get_nowait()
        except queue.Empty:
            break
        logger.log_proto(ev)

    while True:
        try:
            ev = event_q.get_nowait()
        except queue.Empty:
            break
        if ev.kind is EventKind.TEXT:
            ui.add_server_text(ev.data)
        elif ev.kind is EventKind.CONNECTED:
            ui.echo(f"Connected to {conn.host}:{conn.port}")
        elif ev.kind is EventKind.ERROR:
            ui.echo(f"Error: {ev.data}")
        elif ev.kind is EventKind.CLOSED:
            # Unflushed partial output is dropped with the connection
            ui.output.reset()
            ui.echo("Disconnected.")
        elif ev.kind is EventKind.STATE:
            ui.set_status(ev.data, conn.host)


def run_client(panes_config, settings, host: str | None = None, port: int | None = None,
               debug: bool = False):
    proto_q: "queue.Queue[ProtoEvent]" = queue.Queue()
    event_q: "queue.Queue[ConnectionEvent]" = queue.Queue()

    logger = DebugLogger()
    if debug:
        logger.start()
    for warning in panes_config.warnings:
        logger.log_proto(ProtoEvent("SYS", time.time(), b"", f"config: {warning}"))

    term = Terminal()
    ui = ClientUI(term, panes_config, settings, debug_logger=logger, aliases=load_aliases())
    conn = MudConnection(proto_q=proto_q, event_q=event_q)

    resized = False

    def on_winch(signum, frame):
        nonlocal resized
        resized = True

    def apply_resize():
        nonlocal resized
        if resized:
            resized = False
            ui.resize()

    fd = sys.stdin.fileno()
    reader = KeyReader()
    sel = selectors.DefaultSelector()
    sel.register(fd, selectors.EVENT_READ)
    old_winch = signal.signal(signal.SIGWINCH, on_winch)

    with raw_mode(fd):
        try:
            ui.setup()
            for warning in panes_config.warnings:
                ui.echo(f"Config warning: {warning}")
            if host:
                _connect(ui, conn, host, port or DEFAULT_PORT)
            else:
                ui.echo("Not connected. Use /connect host [port], /help for commands.")

            while True:
                apply_resize()

                # Poll network and drain everything it produced
                conn.poll()
                drain_events(ui, conn, event_q, proto_q, logger)

                # Wait for keys, no longer than the pending flush allows
                timeout = INPUT_POLL
                pending = ui.output.timeout()
                if pending is not None:
                    timeout = min(timeout, pending)
                ready = sel.select(timeout)

                # A resize during the wait must reach the layout before anything is drawn
                apply_resize()

                if ready:
                    raw = os.read(fd, 4096)
                    if not raw:
                        # stdin closed
                        return
                    keys = reader.feed(raw)
                else:
                    keys = reader.flush() if reader.pending else []
                if not _dispatch_keys(ui, conn, keys):
                    return
                drain_events(ui, conn, event_q, proto_q, logger)

                ui.output.poll()
                term.flush()

        except KeyboardInterrupt:
            return
        finally:
            conn.close()
            logger.stop()
            ui.shutdown()
            signal.signal(signal.SIGWINCH, old_winch)
            sel.close()
