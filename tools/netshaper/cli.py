#!/usr/bin/env python3
"""
NetShaper command-line entry point.

Usage:
    sudo netshaper -i <interface> { <preset> | [-r <rate>] [-d <delay>] [-l <loss>] }
    sudo netshaper -i <interface> reset
    sudo netshaper status
"""

import logging
import os
import shutil
import sys
from typing import Dict, List, Optional, Sequence, Tuple

from .config import Settings
from .driver import ShapingDriver, format_number
from .errors import ExternalToolError, NetShaperError, PreconditionError, UsageError
from .interfaces import validate_interface
from .presets import (
    PRESETS,
    DEFAULT_INTERFACE,
    DEFAULT_RATE_KBPS,
    DEFAULT_DELAY_MS,
    DEFAULT_LOSS_PCT,
)
from .resolver import Command, ResolvedParameters, resolve, wants_help
from .tc import KernelModules, TrafficControlClient

logger = logging.getLogger('NetShaper')


def _preset_lines() -> List[str]:
    groups: Dict[Tuple[float, int, float], List[str]] = {}
    for preset in PRESETS.values():
        key = (preset.rate_kbps, preset.delay_ms, preset.loss_pct)
        groups.setdefault(key, []).append(preset.name)

    lines = []
    for names in groups.values():
        preset = PRESETS[names[0]]
        lines.append(f"    {'|'.join(names):<22}- {preset.describe()}")
    return lines


def usage(prog: str = 'netshaper') -> str:
    return "\n".join([
        f"Usage: {prog} -i <interface> {{ <preset> | [-r <rate>] [-d <delay>] [-l <loss>] }}",
        f"       {prog} -i <interface> reset",
        f"       {prog} status",
        "",
        "Emulates a slow or lossy link on an interface using tc (htb + netem).",
        "",
        "Options:",
        f"    -i <interface>        Interface to shape (default: {DEFAULT_INTERFACE})",
        f"    -r <rate>             Bandwidth in kbit/s (default: {DEFAULT_RATE_KBPS})",
        f"    -d <delay>            Added latency in ms (default: {DEFAULT_DELAY_MS})",
        f"    -l <loss>             Random packet loss in % (default: {DEFAULT_LOSS_PCT})",
        "    -v, --verbose         Log every tc command",
        "    -h, --help            Show this help",
        "",
        "Commands:",
        "    reset                 Remove shaping from the interface",
        "    status                Show all queueing disciplines on the host",
        "",
        "Presets:",
        *_preset_lines(),
        "",
        "Arguments are applied left to right; later ones win.",
        f"    {prog} -i eth0 4g -r 1000   # 4g delay and loss, 1000 kbit/s",
        "",
        "Environment Variables:",
        "    NETSHAPER_TC            tc executable (default: tc)",
        "    NETSHAPER_MODPROBE      module loader (default: modprobe)",
        "    NETSHAPER_SYS_NET       device directory (default: /sys/class/net)",
        "    NETSHAPER_PROC_MODULES  loaded modules (default: /proc/modules)",
    ])


def check_prerequisites(settings: Settings) -> None:
    """Raise PreconditionError unless tc is installed and we are root"""
    if shutil.which(settings.tc_path) is None:
        raise PreconditionError(f"{settings.tc_path} not found. Install: sudo apt-get install iproute2")
    if os.geteuid() != 0:
        raise PreconditionError("Root privileges required. Run with sudo.")


def _summary(params: ResolvedParameters) -> str:
    return (f"Shaping {params.interface}: {format_number(params.rate_kbps)} kbit/s, "
            f"{params.delay_ms}ms delay, {format_number(params.loss_pct)}% loss")


def main(argv: Optional[Sequence[str]] = None,
         client: Optional[TrafficControlClient] = None,
         settings: Optional[Settings] = None) -> int:
    tokens = list(sys.argv[1:] if argv is None else argv)

    if wants_help(tokens):
        print(usage())
        return 0

    logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
    settings = settings or Settings.from_env()

    try:
        check_prerequisites(settings)

        params = resolve(tokens)
        if params.verbose:
            logging.getLogger().setLevel(logging.DEBUG)
        logger.debug(f"Resolved: {params}")

        if params.command is not Command.STATUS:
            validate_interface(params.interface, sys_net_dir=settings.sys_net_dir)

        driver = ShapingDriver(
            client or TrafficControlClient(settings.tc_path),
            KernelModules(settings.proc_modules, settings.modprobe_path),
        )
        code = driver.run(params)

    except UsageError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        print("Run with --help for usage.", file=sys.stderr)
        return e.exit_code
    except ExternalToolError as e:
        if e.stderr:
            sys.stderr.write(e.stderr)
        logger.debug(str(e))
        return e.exit_code
    except NetShaperError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return e.exit_code

    if params.command is Command.APPLY:
        print(f"[OK] {_summary(params)}")
        print(f"Run with -i {params.interface} reset to restore normal network")
    elif params.command is Command.RESET:
        print(f"[OK] Shaping removed from {params.interface}")
    return code


if __name__ == "__main__":
    sys.exit(main())
