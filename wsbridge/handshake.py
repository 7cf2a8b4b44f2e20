"""
WebSocket handshake policy: which subprotocol we speak and which origins
may open a bridge.
"""

import logging

from websockets.typing import Subprotocol

log = logging.getLogger(__name__)

# websockify convention, understood by noVNC and most browser-side bridges
SUBPROTOCOL = Subprotocol("binary")


def select_subprotocol(connection, subprotocols):
    """Pick ``binary`` when offered; accept clients that offer nothing we know."""
    if SUBPROTOCOL in subprotocols:
        return SUBPROTOCOL
    if subprotocols:
        log.debug("Client offered unsupported subprotocols %s", ", ".join(subprotocols))
    return None


class OriginPolicy:
    """
    Decide whether a browser origin may open a bridge.

    ``allowed=None`` accepts every origin. That is only suitable for
    development or a trusted network; pass an explicit collection of origins
    (e.g. ``"https://example.com"``) otherwise. Requests without an Origin
    header come from non-browser clients and are always accepted.
    """

    def __init__(self, allowed=None):
        self.allowed = None if allowed is None else frozenset(allowed)

    @property
    def allows_any(self):
        return self.allowed is None

    def is_allowed(self, origin):
        if origin is None or self.allowed is None:
            return True
        return origin in self.allowed


def log_rejected_handshake(connection, request, response):
    """``process_response`` hook reporting upgrades ``websockets`` refused."""
    exc = connection.protocol.handshake_exc
    if exc is not None:
        log.error(
            "Error upgrading to WebSocket from %s: %s (%d)",
            connection.remote_address, exc, response.status_code,
        )
    return None
