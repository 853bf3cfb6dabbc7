"""
Runtime settings read from the environment.

Environment Variables:
    NETSHAPER_TC            - tc executable (default: tc)
    NETSHAPER_MODPROBE      - module loader executable (default: modprobe)
    NETSHAPER_SYS_NET       - network device directory (default: /sys/class/net)
    NETSHAPER_PROC_MODULES  - loaded module list (default: /proc/modules)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Settings:
    tc_path: str = "tc"
    modprobe_path: str = "modprobe"
    sys_net_dir: str = "/sys/class/net"
    proc_modules: str = "/proc/modules"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            tc_path=env.get('NETSHAPER_TC', cls.tc_path),
            modprobe_path=env.get('NETSHAPER_MODPROBE', cls.modprobe_path),
            sys_net_dir=env.get('NETSHAPER_SYS_NET', cls.sys_net_dir),
            proc_modules=env.get('NETSHAPER_PROC_MODULES', cls.proc_modules),
        )
