#!/usr/bin/env python3
"""
NetShaper - Link Condition Emulator

Configures Linux traffic control (tc) on an interface so that outgoing
traffic sees a degraded link: limited bandwidth, added latency with jitter
and random packet loss. All shaping is done by the kernel (htb + netem);
this package only works out the parameters and issues the tc commands.

Usage:
    # Emulate a 3G connection on eth0
    sudo netshaper -i eth0 3g

    # Preset with an explicit override (later tokens win)
    sudo netshaper -i eth0 4g -r 1000

    # Custom link
    sudo netshaper -i eth0 -r 2000 -d 80 -l 0.5

    # Show / remove shaping
    sudo netshaper status
    sudo netshaper -i eth0 reset

Exit Codes:
    0 - Success
    1 - Missing tc, not root, bad arguments or unknown interface
    N - Exit code of the failing tc invocation
"""

__version__ = "1.0.0"
__author__ = "NetShaper Dev Team"

from .presets import Preset, PRESETS
from .resolver import Command, ResolvedParameters, resolve
from .driver import ShapingDriver, ShapingPlan, compute_limit, compute_jitter

__all__ = [
    "Preset",
    "PRESETS",
    "Command",
    "ResolvedParameters",
    "resolve",
    "ShapingDriver",
    "ShapingPlan",
    "compute_limit",
    "compute_jitter",
]
