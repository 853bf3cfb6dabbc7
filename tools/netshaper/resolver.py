"""
Command-line token resolution.

Tokens are folded left to right into a ResolvedParameters value. A preset
name overwrites rate, delay and loss; a flag overwrites only its own field.
Whatever is set last wins, so `4g -r 1000` keeps the 4g delay and loss
with a 1000 kbit/s rate, while `-r 1000 4g` ends up at the 4g rate.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, Tuple

from .errors import UsageError
from .presets import (
    PRESETS,
    DEFAULT_INTERFACE,
    DEFAULT_RATE_KBPS,
    DEFAULT_DELAY_MS,
    DEFAULT_LOSS_PCT,
)


class Command(Enum):
    """What to do with the interface"""
    APPLY = "apply"
    RESET = "reset"
    STATUS = "status"


@dataclass(frozen=True)
class ResolvedParameters:
    interface: str = DEFAULT_INTERFACE
    rate_kbps: float = DEFAULT_RATE_KBPS
    delay_ms: int = DEFAULT_DELAY_MS
    loss_pct: float = DEFAULT_LOSS_PCT
    command: Command = Command.APPLY
    verbose: bool = False


HELP_TOKENS = ('-h', '--help')
VERBOSE_TOKENS = ('-v', '--verbose')


def _parse_rate(value: str) -> float:
    try:
        rate = float(value)
    except ValueError:
        raise UsageError(f"Invalid rate: {value!r} (expected kbit/s)")
    if not math.isfinite(rate) or rate < 0:
        raise UsageError(f"Invalid rate: {value!r} (expected kbit/s)")
    return int(rate) if rate.is_integer() else rate


def _parse_delay(value: str) -> int:
    try:
        delay = int(value)
    except ValueError:
        raise UsageError(f"Invalid delay: {value!r} (expected whole milliseconds)")
    if delay < 0:
        raise UsageError(f"Invalid delay: {value!r} (must not be negative)")
    return delay


def _parse_loss(value: str) -> float:
    try:
        loss = float(value)
    except ValueError:
        raise UsageError(f"Invalid loss: {value!r} (expected a percentage)")
    if not 0.0 <= loss <= 100.0:
        raise UsageError(f"Invalid loss: {value!r} (must be between 0 and 100)")
    return loss


# flag -> (field, parser)
VALUE_FLAGS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    '-i': ('interface', str),
    '-r': ('rate_kbps', _parse_rate),
    '-d': ('delay_ms', _parse_delay),
    '-l': ('loss_pct', _parse_loss),
}


def _step(params: ResolvedParameters, token: str, rest: Iterator[str]) -> ResolvedParameters:
    """Apply a single token to the accumulated parameters"""
    preset = PRESETS.get(token)
    if preset is not None:
        return replace(params, rate_kbps=preset.rate_kbps,
                       delay_ms=preset.delay_ms, loss_pct=preset.loss_pct)

    if token == Command.RESET.value:
        return replace(params, command=Command.RESET)
    if token == Command.STATUS.value:
        return replace(params, command=Command.STATUS)

    if token in VERBOSE_TOKENS:
        return replace(params, verbose=True)

    if token in VALUE_FLAGS:
        field_name, parse = VALUE_FLAGS[token]
        value = next(rest, None)
        if value is None:
            raise UsageError(f"Option {token} requires a value")
        return replace(params, **{field_name: parse(value)})

    raise UsageError(f"Unknown argument: {token}")


def resolve(tokens: Iterable[str]) -> ResolvedParameters:
    """
    Fold command-line tokens into the final parameter set.

    Raises:
        UsageError: on an unknown token, a flag without a value, an invalid
            value, or a non-positive rate for the apply command.
    """
    params = ResolvedParameters()
    rest = iter(tokens)
    for token in rest:
        params = _step(params, token, rest)

    if params.command is Command.APPLY and params.rate_kbps <= 0:
        raise UsageError("Rate must be greater than 0 kbit/s")
    return params


def wants_help(tokens: Iterable[str]) -> bool:
    return any(token in HELP_TOKENS for token in tokens)
