"""
Shaping-configuration driver.

Layout built on the interface:

    root  htb 1: (default 12)
      └── class 1:12 htb rate <rate>kbit
            └── qdisc 10: netem limit <limit> delay <delay> <jitter> 25% loss random <loss>%

The first apply creates the root qdisc; later applies find it and switch
every step to `change`, so re-running apply is idempotent.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .resolver import Command, ResolvedParameters
from .tc import KernelModules, TrafficControlClient, ROOT, find_discipline

logger = logging.getLogger('NetShaper.driver')

ROOT_HANDLE = "1:"
DEFAULT_CLASS = "12"
CLASS_HANDLE = f"{ROOT_HANDLE}{DEFAULT_CLASS}"
NETEM_HANDLE = "10:"
NETEM_MODULE = "sch_netem"

MTU_SIZE = 1518         # Ethernet frame incl. header and FCS
MIN_LIMIT = 10000       # Packets
JITTER_MS = 5
CORRELATION_PCT = 25


def compute_limit(rate_kbps: float, delay_ms: int) -> int:
    """
    Netem queue length in packets.

    Holds 1.5x the packets in flight during `delay_ms` at `rate_kbps`,
    never less than MIN_LIMIT.
    """
    limit = round(rate_kbps * 1000 / MTU_SIZE * delay_ms * 1.5)
    return max(int(limit), MIN_LIMIT)


def compute_jitter(delay_ms: int) -> int:
    return 0 if delay_ms < JITTER_MS else JITTER_MS


def format_number(value: float) -> str:
    """Render 500 as '500' and 9.6 as '9.6' for tc arguments"""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@dataclass(frozen=True)
class ShapingPlan:
    verb: str
    limit: int
    jitter_ms: int
    correlation_pct: int = CORRELATION_PCT
    qdisc_handle: str = ROOT_HANDLE
    class_handle: str = CLASS_HANDLE

    @classmethod
    def build(cls, params: ResolvedParameters, existing: bool) -> "ShapingPlan":
        return cls(
            verb='change' if existing else 'add',
            limit=compute_limit(params.rate_kbps, params.delay_ms),
            jitter_ms=compute_jitter(params.delay_ms),
        )

    def class_options(self, params: ResolvedParameters) -> List[str]:
        return ['rate', f"{format_number(params.rate_kbps)}kbit"]

    def netem_options(self, params: ResolvedParameters) -> List[str]:
        return [
            'limit', str(self.limit),
            'delay', f"{params.delay_ms}ms", f"{self.jitter_ms}ms", f"{self.correlation_pct}%",
            'loss', 'random', f"{format_number(params.loss_pct)}%",
        ]


class ShapingDriver:
    """Turns resolved parameters into tc invocations"""

    def __init__(self, client: TrafficControlClient, modules: Optional[KernelModules] = None):
        self.client = client
        self.modules = modules

    def run(self, params: ResolvedParameters) -> int:
        if params.command is Command.STATUS:
            return self.status()
        if params.command is Command.RESET:
            return self.reset(params.interface)
        self.apply(params)
        return 0

    def status(self) -> int:
        return self.client.print_disciplines()

    def reset(self, interface: str) -> int:
        logger.info(f"Removing shaping from {interface}")
        self.client.delete_qdisc(interface)
        return 0

    def is_configured(self, interface: str) -> bool:
        """True if our htb root qdisc is already installed on `interface`"""
        disciplines = self.client.show_disciplines(interface)
        return find_discipline(disciplines, 'htb', ROOT_HANDLE, ROOT) is not None

    def apply(self, params: ResolvedParameters) -> ShapingPlan:
        """
        Install or update shaping on params.interface.

        Any tc failure raises ExternalToolError and stops the sequence; steps
        already applied are left in place.
        """
        interface = params.interface
        plan = ShapingPlan.build(params, self.is_configured(interface))
        logger.debug(f"Plan for {interface}: {plan}")

        if plan.verb == 'add':
            self.client.add_qdisc(interface, ROOT, plan.qdisc_handle, 'htb',
                                  ['default', DEFAULT_CLASS])

        set_class = self.client.add_class if plan.verb == 'add' else self.client.change_class
        set_class(interface, plan.qdisc_handle, plan.class_handle, 'htb',
                  plan.class_options(params))

        if self.modules is not None:
            self.modules.ensure_loaded(NETEM_MODULE)

        set_qdisc = self.client.add_qdisc if plan.verb == 'add' else self.client.change_qdisc
        set_qdisc(interface, plan.class_handle, NETEM_HANDLE, 'netem',
                  plan.netem_options(params))

        logger.info(
            f"{interface}: {format_number(params.rate_kbps)}kbit, "
            f"{params.delay_ms}ms ±{plan.jitter_ms}ms, {format_number(params.loss_pct)}% loss "
            f"(limit {plan.limit}, {plan.verb})"
        )
        return plan
