"""Port selection and address discovery for server startup."""

import logging
import socket
from typing import Optional

import psutil


logger = logging.getLogger("app.core.network")


def bind_available_port(start_port: int, host: str = "0.0.0.0", attempts: int = 10) -> socket.socket:
    """Bind a TCP socket to the first free port from ``start_port`` upwards.

    The socket stays bound and is handed to the server as is, so no other
    process can take the port between choosing it and listening on it.

    Raises:
        OSError: no free port within ``attempts`` tries.
    """
    for port in range(start_port, start_port + attempts):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError:
            sock.close()
            logger.warning("Port %d is already in use. Trying next port...", port)
            continue
        return sock
    raise OSError(f"No free port in range {start_port}-{start_port + attempts - 1}")


def get_local_ip_address() -> Optional[str]:
    """First non-loopback IPv4 address of this machine, if any."""
    for _name, addresses in psutil.net_if_addrs().items():
        for address in addresses:
            if address.family == socket.AF_INET and not address.address.startswith("127."):
                return address.address
    return None
