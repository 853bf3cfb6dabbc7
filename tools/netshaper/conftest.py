"""Shared fixtures for netshaper tests"""

from typing import List, Optional, Sequence

import pytest

from netshaper.config import Settings
from netshaper.errors import ExternalToolError
from netshaper.tc import QueueingDiscipline, ROOT


class FakeTrafficControlClient:
    """Records every call and keeps a tiny model of the installed qdiscs"""

    def __init__(self, disciplines: Optional[List[QueueingDiscipline]] = None,
                 fail_on: Optional[str] = None, returncode: int = 2):
        self.disciplines = list(disciplines or [])
        self.calls = []
        self.fail_on = fail_on
        self.returncode = returncode

    def _record(self, name: str, *args):
        self.calls.append((name,) + args)
        if name == self.fail_on:
            raise ExternalToolError(['tc', name], self.returncode, "RTNETLINK answers: Invalid argument\n")

    def show_disciplines(self, interface: str):
        self._record('show_disciplines', interface)
        return [q for q in self.disciplines if q.device in (None, interface)]

    def print_disciplines(self) -> int:
        self._record('print_disciplines')
        return 0

    def add_qdisc(self, interface, parent, handle, kind, options: Sequence[str] = ()):
        self._record('add_qdisc', interface, parent, handle, kind, list(options))
        self.disciplines.append(QueueingDiscipline(kind, handle, parent, interface))

    def change_qdisc(self, interface, parent, handle, kind, options: Sequence[str] = ()):
        self._record('change_qdisc', interface, parent, handle, kind, list(options))

    def delete_qdisc(self, interface):
        self._record('delete_qdisc', interface)
        self.disciplines = [q for q in self.disciplines if q.device != interface]

    def add_class(self, interface, parent, classid, kind, options: Sequence[str] = ()):
        self._record('add_class', interface, parent, classid, kind, list(options))

    def change_class(self, interface, parent, classid, kind, options: Sequence[str] = ()):
        self._record('change_class', interface, parent, classid, kind, list(options))

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_tc():
    return FakeTrafficControlClient()


@pytest.fixture
def configured_tc():
    return FakeTrafficControlClient([QueueingDiscipline('htb', '1:', ROOT, 'eth0', 'refcnt 2 r2q 10 default 0x12')])


@pytest.fixture
def host(tmp_path):
    """Fake /sys/class/net with eth0 and lo, and a module list with netem loaded"""
    sys_net = tmp_path / 'net'
    for name in ('eth0', 'lo'):
        (sys_net / name).mkdir(parents=True)
    modules = tmp_path / 'modules'
    modules.write_text("sch_netem 40960 1 - Live 0x0000000000000000\n"
                       "sch_htb 28672 1 - Live 0x0000000000000000\n")
    return Settings(
        tc_path='tc',
        modprobe_path=str(tmp_path / 'no-such-modprobe'),
        sys_net_dir=str(sys_net),
        proc_modules=str(modules),
    )
