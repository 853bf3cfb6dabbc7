"""
Named link presets.

Each preset fixes the three shaping dimensions: rate (kbit/s), delay (ms)
and loss (%). Several names are aliases for the same link.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Preset:
    """A named link condition"""
    name: str
    rate_kbps: float
    delay_ms: int
    loss_pct: float

    def describe(self) -> str:
        parts = [f"{_format_rate(self.rate_kbps)}", f"{self.delay_ms}ms delay"]
        if self.loss_pct > 0:
            parts.append(f"{self.loss_pct}% loss")
        return ", ".join(parts)


def _format_rate(rate_kbps: float) -> str:
    if rate_kbps >= 1000000:
        return f"{rate_kbps / 1000000:g} Gbit/s"
    if rate_kbps >= 1000:
        return f"{rate_kbps / 1000:g} Mbit/s"
    return f"{rate_kbps:g} kbit/s"


def _build(*entries) -> Dict[str, Preset]:
    table = {}
    for names, rate, delay, loss in entries:
        for name in names:
            table[name] = Preset(name, rate, delay, loss)
    return table


PRESETS: Dict[str, Preset] = _build(
    # Mobile
    (("2.5g", "gprs", "edge"), 50, 400, 2.0),
    (("3g",), 700, 300, 2.0),
    (("4g",), 4500, 120, 1.0),
    # Dial-up
    (("modem-9600",), 9.6, 200, 0.0),
    (("modem-56k",), 56, 120, 0.0),
    # Leased lines and broadband
    (("t1",), 1500, 20, 0.0),
    (("t3",), 45000, 10, 0.0),
    (("dsl",), 2000, 60, 0.0),
    (("cablemodem",), 10000, 50, 0.0),
    # Wireless LAN
    (("wifi-b",), 11000, 10, 0.0),
    (("wifi-g",), 54000, 5, 0.0),
    (("wifi-n",), 110000, 2, 0.0),
    # Ethernet
    (("eth-10",), 10000, 1, 0.0),
    (("eth-100",), 100000, 1, 0.0),
    (("eth-1000",), 1000000, 1, 0.0),
    # Satellite
    (("vsat",), 5000, 500, 2.0),
    (("vsat-busy",), 2000, 800, 4.0),
)

DEFAULT_INTERFACE = "eth0"
DEFAULT_RATE_KBPS = 500
DEFAULT_DELAY_MS = 0
DEFAULT_LOSS_PCT = 0.0
