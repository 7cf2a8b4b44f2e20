from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .exceptions import StartupConfigError


def parse_address(value: str, *, allow_empty_host=False) -> Tuple[Optional[str], int]:
    """Split ``host:port`` (or ``[v6addr]:port``) into its parts.

    An empty host is returned as ``None`` so it can be handed straight to
    ``loop.create_server`` to bind every interface.
    """
    host, sep, port = value.rpartition(":")
    if not sep:
        raise StartupConfigError(f"missing port in address {value!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host:
        if not allow_empty_host:
            raise StartupConfigError(f"missing host in address {value!r}")
        host = None
    try:
        port_number = int(port)
    except ValueError:
        raise StartupConfigError(f"invalid port in address {value!r}") from None
    if not 0 <= port_number <= 65535:
        raise StartupConfigError(f"port out of range in address {value!r}")
    return host, port_number


@dataclass(frozen=True)
class ServerConfig:
    listen_host: Optional[str]
    listen_port: int
    target_host: str
    target_port: int
    run_once: bool = False
    web_dir: Optional[Path] = None
    certfile: Optional[str] = None
    keyfile: Optional[str] = None
    allowed_origins: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_addresses(cls, listen_addr: str, target_addr: str, **kwargs) -> "ServerConfig":
        listen_host, listen_port = parse_address(listen_addr, allow_empty_host=True)
        target_host, target_port = parse_address(target_addr)
        web_dir = kwargs.pop("web_dir", None)
        if web_dir is not None:
            web_dir = Path(web_dir)
            if not web_dir.is_dir():
                raise StartupConfigError(f"web directory {str(web_dir)!r} does not exist")
        return cls(listen_host, listen_port, target_host, target_port, web_dir=web_dir, **kwargs)

    @property
    def tls(self) -> bool:
        return bool(self.certfile and self.keyfile)

    @property
    def serves_static(self) -> bool:
        return self.web_dir is not None

    @property
    def listen_addr(self) -> str:
        return format_address(self.listen_host or "", self.listen_port)

    @property
    def target_addr(self) -> str:
        return format_address(self.target_host, self.target_port)


def format_address(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
