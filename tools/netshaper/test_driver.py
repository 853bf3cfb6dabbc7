"""Tests for limit/jitter derivation and tc call sequencing"""

import pytest

from netshaper.conftest import FakeTrafficControlClient
from netshaper.driver import (
    ShapingDriver,
    ShapingPlan,
    compute_jitter,
    compute_limit,
    format_number,
    MIN_LIMIT,
)
from netshaper.errors import ExternalToolError
from netshaper.resolver import Command, ResolvedParameters, resolve
from netshaper.tc import KernelModules


def test_limit_floor_with_zero_delay():
    assert compute_limit(500, 0) == 10000


def test_limit_t3():
    assert compute_limit(45000, 10) == 444664


def test_limit_floor_for_small_product():
    assert compute_limit(9.6, 200) == MIN_LIMIT


def test_limit_large_product():
    assert compute_limit(1000000, 1) == round(1000000 * 1000 / 1518 * 1.5)


@pytest.mark.parametrize("delay,jitter", [(0, 0), (1, 0), (4, 0), (5, 5), (6, 5), (800, 5)])
def test_jitter(delay, jitter):
    assert compute_jitter(delay) == jitter


def test_format_number():
    assert format_number(500) == '500'
    assert format_number(1000000) == '1000000'
    assert format_number(2.0) == '2'
    assert format_number(9.6) == '9.6'


def test_plan_verb():
    params = resolve(['3g'])
    assert ShapingPlan.build(params, existing=False).verb == 'add'
    assert ShapingPlan.build(params, existing=True).verb == 'change'


def test_netem_options():
    params = resolve(['3g'])
    plan = ShapingPlan.build(params, existing=False)
    assert plan.netem_options(params) == [
        'limit', '207510', 'delay', '300ms', '5ms', '25%', 'loss', 'random', '2%']


def test_first_apply_adds(fake_tc):
    driver = ShapingDriver(fake_tc)
    plan = driver.apply(resolve(['-i', 'eth0', 't3']))

    assert plan.verb == 'add'
    assert fake_tc.calls == [
        ('show_disciplines', 'eth0'),
        ('add_qdisc', 'eth0', 'root', '1:', 'htb', ['default', '12']),
        ('add_class', 'eth0', '1:', '1:12', 'htb', ['rate', '45000kbit']),
        ('add_qdisc', 'eth0', '1:12', '10:', 'netem',
         ['limit', '444664', 'delay', '10ms', '5ms', '25%', 'loss', 'random', '0%']),
    ]


def test_second_apply_changes(fake_tc):
    driver = ShapingDriver(fake_tc)
    driver.apply(resolve(['3g']))
    fake_tc.calls.clear()

    plan = driver.apply(resolve(['4g', '-r', '1000']))

    assert plan.verb == 'change'
    assert fake_tc.calls == [
        ('show_disciplines', 'eth0'),
        ('change_class', 'eth0', '1:', '1:12', 'htb', ['rate', '1000kbit']),
        ('change_qdisc', 'eth0', '1:12', '10:', 'netem',
         ['limit', '118577', 'delay', '120ms', '5ms', '25%', 'loss', 'random', '1%']),
    ]


def test_existing_configuration_detected(configured_tc):
    assert ShapingDriver(configured_tc).is_configured('eth0')
    assert not ShapingDriver(configured_tc).is_configured('eth1')


def test_other_root_qdisc_means_add():
    from netshaper.tc import QueueingDiscipline
    client = FakeTrafficControlClient([QueueingDiscipline('fq_codel', '0:', 'root', 'eth0')])
    assert ShapingDriver(client).apply(resolve([])).verb == 'add'


def test_small_delay_has_no_jitter(fake_tc):
    ShapingDriver(fake_tc).apply(resolve(['wifi-n']))
    netem = fake_tc.calls[-1]
    assert netem[-1][2:6] == ['delay', '2ms', '0ms', '25%']


def test_failure_aborts_sequence():
    client = FakeTrafficControlClient(fail_on='add_class')
    with pytest.raises(ExternalToolError) as exc_info:
        ShapingDriver(client).apply(resolve(['3g']))

    assert exc_info.value.returncode == 2
    assert client.names() == ['show_disciplines', 'add_qdisc', 'add_class']


def test_reset(fake_tc):
    assert ShapingDriver(fake_tc).run(ResolvedParameters(interface='eth1', command=Command.RESET)) == 0
    assert fake_tc.calls == [('delete_qdisc', 'eth1')]


def test_reset_failure_propagates():
    client = FakeTrafficControlClient(fail_on='delete_qdisc')
    with pytest.raises(ExternalToolError):
        ShapingDriver(client).reset('eth0')


def test_status(fake_tc):
    assert ShapingDriver(fake_tc).run(ResolvedParameters(command=Command.STATUS)) == 0
    assert fake_tc.calls == [('print_disciplines',)]


def test_module_loaded_before_netem(fake_tc, tmp_path):
    order = []

    class RecordingModules(KernelModules):
        def ensure_loaded(self, name):
            order.append(('ensure_loaded', name, len(fake_tc.calls)))
            return True

    ShapingDriver(fake_tc, RecordingModules(str(tmp_path / 'modules'))).apply(resolve(['3g']))
    # after show, add root, add class; before the netem qdisc
    assert order == [('ensure_loaded', 'sch_netem', 3)]
    assert fake_tc.names()[-1] == 'add_qdisc'
