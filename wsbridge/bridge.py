import asyncio
import enum
import logging

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK

from .exceptions import DialError

log = logging.getLogger(__name__)

BUFFER_SIZE = 4096


async def dial(host, port):
    """Open the TCP connection for one session."""
    try:
        return await asyncio.open_connection(host, port)
    except OSError as exc:
        raise DialError(f"{host}:{port}", exc) from exc


class State(enum.Enum):
    ESTABLISHED = "established"
    RELAYING = "relaying"
    TEARING_DOWN = "tearing down"
    CLOSED = "closed"


class Bridge:
    """
    Relays bytes between one WebSocket connection and one TCP connection.

    TCP -> WebSocket runs in its own task; WebSocket -> TCP runs on the task
    that calls :meth:`run`. Whichever direction stops first closes both ends,
    which makes the other direction stop too.
    """

    def __init__(self, websocket, reader, writer):
        self.websocket = websocket
        self.reader = reader
        self.writer = writer
        self.state = State.ESTABLISHED
        self._closing = None

    @property
    def peer(self):
        return self.websocket.remote_address

    async def run(self):
        self.state = State.RELAYING
        relay = asyncio.create_task(self.forward_tcp_to_ws())
        try:
            await self.forward_ws_to_tcp()
        finally:
            try:
                await self.close()
            except asyncio.CancelledError:
                relay.cancel()
                raise
            finally:
                await asyncio.gather(relay, return_exceptions=True)
                self.state = State.CLOSED
                log.debug("Session from %s closed", self.peer)

    async def forward_tcp_to_ws(self):
        try:
            while True:
                data = await self.reader.read(BUFFER_SIZE)
                if not data:
                    log.debug("Target closed the TCP connection for %s", self.peer)
                    break
                await self.websocket.send(data)
        except ConnectionClosedOK:
            pass
        except ConnectionClosed as exc:
            log.error("WebSocket write error: %s", exc)
        except OSError as exc:
            log.error("TCP read error: %s", exc)
        finally:
            log.debug("Closed TCP to WS relay for %s", self.peer)
            self.begin_close()

    async def forward_ws_to_tcp(self):
        while True:
            try:
                message = await self.websocket.recv()
            except ConnectionClosedOK:
                return
            except ConnectionClosed as exc:
                log.error("WebSocket read error: %s", exc)
                return
            if isinstance(message, str):
                log.warning("Non-binary message received from %s, dropped", self.peer)
                continue
            try:
                self.writer.write(message)
                await self.writer.drain()
            except OSError as exc:
                log.error("TCP write error: %s", exc)
                return

    def begin_close(self):
        """Start closing both connections; later calls return the same task."""
        if self._closing is None:
            self.state = State.TEARING_DOWN
            self._closing = asyncio.ensure_future(self._close())
        return self._closing

    async def close(self):
        """Close both connections and wait until they are closed."""
        await asyncio.shield(self.begin_close())

    async def _close(self):
        self.writer.close()
        await self.websocket.close()
        try:
            await self.writer.wait_closed()
        except OSError:
            # already reported by whichever direction hit it
            pass
