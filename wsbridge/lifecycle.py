import asyncio
import logging
import threading

log = logging.getLogger(__name__)


class RunOnceGate:
    """
    Admits at most one connection and reports when it is gone.

    The first call to :meth:`admit` flips the shutdown flag and wins; every
    later call is refused. The flag check and the flip happen under one lock
    so two simultaneous upgrade attempts cannot both get through.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._shutdown = False
        self._watcher = None
        self.finished = asyncio.Event()

    @property
    def shutdown(self):
        return self._shutdown

    def admit(self, connection):
        with self._lock:
            if self._shutdown:
                return False
            self._shutdown = True
        log.debug("Admitted single session from %s", connection.remote_address)
        self._watcher = asyncio.get_running_loop().create_task(self._watch(connection))
        return True

    async def _watch(self, connection):
        try:
            await connection.wait_closed()
        finally:
            self.finished.set()

    async def wait(self):
        await self.finished.wait()
