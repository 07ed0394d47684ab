import threading

import pytest

from rtexporter.nrtfake import Generator


def test_invalid_interval():
    with pytest.raises(ValueError):
        Generator(0, 1)


def test_make_zones_layout():
    zones = Generator(1.0, 42).make_zones()
    assert [z.name for z in zones] == ["fake-node-0", "fake-node-1"]
    assert all(z.type == "Node" for z in zones)
    assert [(c.name, c.value) for c in zones[0].costs] == [("fake-node-0", 10), ("fake-node-1", 21)]
    assert [(c.name, c.value) for c in zones[1].costs] == [("fake-node-1", 10), ("fake-node-0", 21)]
    for zone in zones:
        assert [r.name for r in zone.resources] == ["cpu", "vendor.com/device"]


def test_cpu_resource_bounds():
    gen = Generator(1.0, 7)
    for _ in range(50):
        res = gen.make_resource_info_cpus(8, 6, 4)
        assert (res.name, res.capacity, res.allocatable) == ("cpu", 8, 6)
        assert 0 <= res.available <= 4


def test_device_resource_bounds():
    gen = Generator(1.0, 7)
    for _ in range(50):
        res = gen.make_resource_info_devices(16)
        assert res.capacity == res.allocatable == 16
        assert 0 <= res.available <= res.capacity


def _cpu_draws(seed, count=20):
    gen = Generator(1.0, seed)
    return [gen.make_resource_info_cpus(128, 126, 126).available for _ in range(count)]


def test_seed_determines_random_availability():
    first = _cpu_draws(123)
    second = _cpu_draws(123)
    other = _cpu_draws(124)
    assert first == second
    assert all(0 <= value <= 126 for value in first)
    assert first != other


def test_run_emits_timer_updates():
    gen = Generator(0.01, 5)
    thread = threading.Thread(target=gen.run, daemon=True)
    thread.start()
    info = gen.infos.get(timeout=5)
    gen.stop()
    thread.join(timeout=5)
    assert info.timer is True
    assert info.update_reason() == "periodic"
    assert len(info.zones) == 2
    assert not thread.is_alive()