import argparse
import asyncio
import logging
import sys

from .config import ServerConfig
from .exceptions import ListenError, StartupConfigError
from .server import BridgeServer

log = logging.getLogger("wsbridge")

DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def build_parser():
    parser = argparse.ArgumentParser(
        prog="wsbridge",
        description="Bridge WebSocket clients to a TCP service.",
    )
    parser.add_argument("listen_addr", help="address to listen on, e.g. :8080")
    parser.add_argument("target_addr", help="TCP service to bridge to, e.g. localhost:5900")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-cert", dest="cert", help="SSL certificate file")
    parser.add_argument("-key", dest="key", help="SSL private key file")
    parser.add_argument("-web", dest="web_dir", metavar="DIR", help="Serve files from DIR")
    parser.add_argument(
        "-run-once",
        dest="run_once",
        action="store_true",
        help="Handle a single WebSocket connection and exit",
    )
    parser.add_argument(
        "-allow-origin",
        dest="origins",
        metavar="ORIGIN",
        action="append",
        help="Accept WebSocket connections only from ORIGIN (repeatable, default: any)",
    )
    return parser


def setup_logging(verbose):
    if verbose:
        fmt = "%(asctime)s %(filename)s:%(lineno)d: %(message)s"
    else:
        fmt = "%(asctime)s %(message)s"
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=fmt,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )


def config_from_args(args):
    if bool(args.cert) != bool(args.key):
        log.warning("Both -cert and -key are needed for TLS, serving plain HTTP")
    return ServerConfig.from_addresses(
        args.listen_addr,
        args.target_addr,
        run_once=args.run_once,
        web_dir=args.web_dir,
        certfile=args.cert if args.key else None,
        keyfile=args.key if args.cert else None,
        allowed_origins=tuple(args.origins) if args.origins else None,
    )


def log_settings(config):
    log.info(
        "WebSocket server settings:\n - Listen on %s\n - %s\n - Proxying to %s",
        config.listen_addr,
        "SSL/TLS support" if config.tls else "No SSL/TLS support (no cert file)",
        config.target_addr,
    )
    if config.serves_static:
        log.info(" - Serving files from %s", config.web_dir)
    if config.allowed_origins is None:
        log.warning("Accepting WebSocket connections from any origin, use -allow-origin to restrict")


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        config = config_from_args(args)
        server = BridgeServer(config)
        log_settings(config)
        asyncio.run(server.run())
    except (StartupConfigError, ListenError) as exc:
        log.critical("%s", exc)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
