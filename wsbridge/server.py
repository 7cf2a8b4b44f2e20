import asyncio
import logging
import ssl

from websockets.asyncio.server import serve
from websockets.frames import CloseCode

from .bridge import Bridge, dial
from .exceptions import DialError, ListenError, StartupConfigError
from .handshake import OriginPolicy, log_rejected_handshake, select_subprotocol
from .lifecycle import RunOnceGate
from .router import Router
from .static import StaticFiles

log = logging.getLogger(__name__)


def create_ssl_context(certfile, keyfile):
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(certfile, keyfile)
    except (OSError, ssl.SSLError) as exc:
        raise StartupConfigError(f"cannot load certificate {certfile} / key {keyfile}: {exc}") from exc
    return context


class BridgeServer:
    """Serves WebSocket bridges to ``config.target_addr`` on ``config.listen_addr``."""

    def __init__(self, config):
        self.config = config
        self.gate = RunOnceGate() if config.run_once else None
        self.origins = OriginPolicy(config.allowed_origins)
        static = StaticFiles(config.web_dir) if config.serves_static else None
        self.router = Router(static=static, origins=self.origins, gate=self.gate)
        self.ssl_context = create_ssl_context(config.certfile, config.keyfile) if config.tls else None

    def serve(self):
        """Return the ``websockets`` server; use it as an async context manager."""
        return serve(
            self.handle,
            self.config.listen_host,
            self.config.listen_port,
            process_request=self.router,
            process_response=log_rejected_handshake,
            select_subprotocol=select_subprotocol,
            ssl=self.ssl_context,
            logger=log,
        )

    async def handle(self, websocket):
        log.debug("Received connection from %s", websocket.remote_address)
        try:
            reader, writer = await dial(self.config.target_host, self.config.target_port)
        except DialError as exc:
            log.error("Error connecting to target %s", exc)
            await websocket.close(CloseCode.INTERNAL_ERROR, "target unreachable")
            return
        await Bridge(websocket, reader, writer).run()

    async def wait_done(self):
        """Return once the run-once session is over; never returns otherwise."""
        if self.gate is None:
            await asyncio.Future()
        else:
            await self.gate.wait()

    async def run(self):
        scheme = "wss" if self.config.tls else "ws"
        try:
            server = await self.serve()
        except OSError as exc:
            raise ListenError(f"cannot listen on {self.config.listen_addr}: {exc}") from exc
        async with server:
            log.info("Starting WebSocket server (%s://) on %s", scheme, self.config.listen_addr)
            await self.wait_done()
        if self.gate is not None:
            log.info("Run once! Exiting...")
