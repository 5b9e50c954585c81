import argparse
import sys

from mud_panes import __version__
from mud_panes.app import parse_address, run_client
from mud_panes.config import load_panes_config, load_settings


def main(argv=None):
    p = argparse.ArgumentParser(description="Terminal MUD client with message panes")
    p.add_argument("-v", "--version", action="version",
                   version=f"%(prog)s {__version__}")
    p.add_argument("host", nargs="?", default=None,
                   help="MUD host (domain or IP), optionally host:port")
    p.add_argument("port", nargs="?", type=int, default=None,
                   help="MUD port (default 23)")
    p.add_argument("--panes", default=None,
                   help="Pane layout name or path (searches ~/.mud-panes/panes/, ./panes/, "
                        "or use full path; default ~/.mud-panes/panes.yml)")
    p.add_argument("-d", "--debug", action="store_true", default=False,
                   help="Enable debug logging to panes_*.log files in current directory")
    args = p.parse_args(argv)

    # Load configuration
    try:
        panes_config = load_panes_config(args.panes)
    except FileNotFoundError as e:
        p.error(str(e))
    settings = load_settings()

    host, port = None, args.port
    if args.host:
        try:
            host, port = parse_address(args.host, args.port)
        except ValueError:
            p.error(f"invalid port in {args.host!r}")

    if not sys.stdin.isatty():
        p.error("an interactive terminal is required")

    run_client(panes_config, settings, host=host, port=port, debug=args.debug)
