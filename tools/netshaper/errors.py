"""Error types raised by netshaper"""

from typing import List, Optional


class NetShaperError(Exception):
    """Base class for all netshaper failures"""
    exit_code = 1


class PreconditionError(NetShaperError):
    """tc is missing or the process lacks root privileges"""


class UsageError(NetShaperError):
    """Unknown token, missing flag value or invalid value"""


class UnknownInterfaceError(NetShaperError):
    """The named interface does not exist on this host"""

    def __init__(self, interface: str):
        super().__init__(f"Unknown interface: {interface}")
        self.interface = interface


class ExternalToolError(NetShaperError):
    """An external command (tc, modprobe) exited non-zero"""

    def __init__(self, cmd: List[str], returncode: int, stderr: Optional[str] = None):
        super().__init__(f"Command failed with exit code {returncode}: {' '.join(cmd)}")
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr

    @property
    def exit_code(self) -> int:
        return self.returncode
