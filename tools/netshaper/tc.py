"""
Thin wrapper around the iproute2 `tc` command.

Mutating commands inherit stdout/stderr so tc's own diagnostics reach the
user unchanged; listings are captured and parsed into QueueingDiscipline
records.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import ExternalToolError

logger = logging.getLogger('NetShaper.tc')

ROOT = "root"


@dataclass(frozen=True)
class QueueingDiscipline:
    """One line of `tc qdisc show` output"""
    kind: str
    handle: str
    parent: str
    device: Optional[str] = None
    options: str = ""

    @property
    def is_root(self) -> bool:
        return self.parent == ROOT


def parse_qdisc_listing(text: str) -> List[QueueingDiscipline]:
    """
    Parse `tc qdisc show` output.

    Lines look like:
        qdisc htb 1: root refcnt 2 r2q 10 default 0x12 direct_packets_stat 0
        qdisc netem 10: parent 1:12 limit 10000 delay 100ms  5ms 25%
        qdisc noqueue 0: dev lo root refcnt 2

    Lines that do not start with `qdisc` (statistics, blank lines) are skipped.
    """
    disciplines = []
    for line in text.splitlines():
        tokens = line.split()
        if len(tokens) < 4 or tokens[0] != 'qdisc':
            continue

        kind, handle = tokens[1], tokens[2]
        pos = 3
        device = None
        if tokens[pos] == 'dev' and pos + 1 < len(tokens):
            device = tokens[pos + 1]
            pos += 2
        if pos >= len(tokens):
            continue

        if tokens[pos] == 'parent' and pos + 1 < len(tokens):
            parent = tokens[pos + 1]
            pos += 2
        else:
            # root, ingress, clsact
            parent = tokens[pos]
            pos += 1

        disciplines.append(QueueingDiscipline(
            kind=kind,
            handle=handle,
            parent=parent,
            device=device,
            options=" ".join(tokens[pos:]),
        ))
    return disciplines


def find_discipline(disciplines: Sequence[QueueingDiscipline], kind: str, handle: str,
                    parent: str = ROOT) -> Optional[QueueingDiscipline]:
    for qdisc in disciplines:
        if qdisc.kind == kind and qdisc.handle == handle and qdisc.parent == parent:
            return qdisc
    return None


def _attach_point(parent: str) -> List[str]:
    return [ROOT] if parent == ROOT else ['parent', parent]


class TrafficControlClient:
    """Runs tc subcommands against the host's live traffic-control state"""

    def __init__(self, tc_path: str = 'tc'):
        self.tc_path = tc_path

    def _run(self, args: List[str], capture: bool = False) -> subprocess.CompletedProcess:
        cmd = [self.tc_path] + args
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=capture, text=True, check=False)
        except OSError as e:
            raise ExternalToolError(cmd, 127, str(e))

        if result.returncode != 0:
            raise ExternalToolError(cmd, result.returncode,
                                    result.stderr if capture else None)
        return result

    # Listing

    def show_disciplines(self, interface: str) -> List[QueueingDiscipline]:
        result = self._run(['qdisc', 'show', 'dev', interface], capture=True)
        return parse_qdisc_listing(result.stdout)

    def print_disciplines(self) -> int:
        """Print every qdisc on the host straight to stdout"""
        return self._run(['qdisc', 'show']).returncode

    # Queueing disciplines

    def _qdisc(self, verb: str, interface: str, parent: str, handle: Optional[str],
               kind: str, options: Sequence[str]) -> None:
        args = ['qdisc', verb, 'dev', interface] + _attach_point(parent)
        if handle:
            args += ['handle', handle]
        self._run(args + [kind] + list(options))

    def add_qdisc(self, interface: str, parent: str, handle: Optional[str], kind: str,
                  options: Sequence[str] = ()) -> None:
        self._qdisc('add', interface, parent, handle, kind, options)

    def change_qdisc(self, interface: str, parent: str, handle: Optional[str], kind: str,
                     options: Sequence[str] = ()) -> None:
        self._qdisc('change', interface, parent, handle, kind, options)

    def delete_qdisc(self, interface: str) -> None:
        """Remove the root qdisc (and everything below it)"""
        self._run(['qdisc', 'del', 'dev', interface, ROOT])

    # Classes

    def _class(self, verb: str, interface: str, parent: str, classid: str,
               kind: str, options: Sequence[str]) -> None:
        self._run(['class', verb, 'dev', interface, 'parent', parent,
                   'classid', classid, kind] + list(options))

    def add_class(self, interface: str, parent: str, classid: str, kind: str,
                  options: Sequence[str] = ()) -> None:
        self._class('add', interface, parent, classid, kind, options)

    def change_class(self, interface: str, parent: str, classid: str, kind: str,
                     options: Sequence[str] = ()) -> None:
        self._class('change', interface, parent, classid, kind, options)


class KernelModules:
    """Best-effort loader for the kernel modules tc relies on"""

    def __init__(self, proc_modules: str = '/proc/modules', modprobe_path: str = 'modprobe'):
        self.proc_modules = proc_modules
        self.modprobe_path = modprobe_path

    def is_loaded(self, name: str) -> bool:
        try:
            with open(self.proc_modules) as f:
                return any(line.split(' ', 1)[0] == name for line in f)
        except OSError:
            return False

    def ensure_loaded(self, name: str) -> bool:
        """Load `name` unless it is already present. Never raises."""
        if self.is_loaded(name):
            logger.debug(f"Module {name} already loaded")
            return True

        cmd = [self.modprobe_path, name]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            logger.warning(f"Could not run {self.modprobe_path}: {e}")
            return False

        if result.returncode != 0:
            # Built-in netem has no module to load
            logger.warning(f"modprobe {name} failed: {result.stderr.strip()}")
            return False
        return True
