import logging
from http import HTTPStatus

from .static import make_response

log = logging.getLogger(__name__)


def wants_upgrade(headers):
    connection = headers.get("Connection")
    return connection is not None and "upgrade" in connection.lower()


class Router:
    """
    ``process_request`` hook deciding what each inbound HTTP request becomes.

    Returning a response answers the request over plain HTTP and closes the
    connection; returning ``None`` lets ``websockets`` go on with the upgrade.
    """

    def __init__(self, static=None, origins=None, gate=None):
        self.static = static
        self.origins = origins
        self.gate = gate

    async def __call__(self, connection, request):
        if self.gate is not None and self.gate.shutdown:
            log.debug("Refusing %s after run-once admission", connection.remote_address)
            return make_response(HTTPStatus.SERVICE_UNAVAILABLE)

        if self.static is not None and not wants_upgrade(request.headers):
            return await self.static.respond(request)

        origin = request.headers.get("Origin")
        if self.origins is not None and not self.origins.is_allowed(origin):
            log.warning("Rejected WebSocket from origin %s", origin)
            return make_response(HTTPStatus.FORBIDDEN, b"403 Forbidden\n")

        if self.gate is not None and not self.gate.admit(connection):
            log.debug("Refusing %s, run-once session already admitted", connection.remote_address)
            return make_response(HTTPStatus.SERVICE_UNAVAILABLE)

        return None
