from .bridge import Bridge
from .config import ServerConfig
from .server import BridgeServer

__version__ = "0.1.0"

__all__ = ["Bridge", "BridgeServer", "ServerConfig"]
