"""Network interface lookup"""

import logging
import os
from typing import Iterable, List, Optional

from .errors import UnknownInterfaceError

logger = logging.getLogger('NetShaper.interfaces')


def list_interfaces(sys_net_dir: str = '/sys/class/net') -> List[str]:
    """Return the names of the network devices present on this host"""
    try:
        return sorted(os.listdir(sys_net_dir))
    except FileNotFoundError:
        logger.debug(f"{sys_net_dir} not found, no interfaces visible")
        return []


def validate_interface(interface: str, available: Optional[Iterable[str]] = None,
                       sys_net_dir: str = '/sys/class/net') -> None:
    """
    Raise UnknownInterfaceError unless `interface` names a live device.

    Args:
        interface: Device name to check
        available: Device list to check against (read from sys_net_dir if None)
        sys_net_dir: Directory listing the host's devices
    """
    if available is None:
        available = list_interfaces(sys_net_dir)
    available = list(available)
    if interface not in available:
        logger.debug(f"Known interfaces: {', '.join(available) or 'none'}")
        raise UnknownInterfaceError(interface)
