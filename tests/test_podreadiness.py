import queue

import pytest

from rtexporter.podreadiness import (
    ConditionInjector,
    ConditionStatus,
    ConditionType,
    PodCondition,
    new_condition_template,
    set_condition,
)


@pytest.mark.parametrize(
    "cond_type,status",
    [
        (ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.TRUE),
        (ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.FALSE),
        (ConditionType.PODRESOURCES_FETCHED, ConditionStatus.TRUE),
        (ConditionType.PODRESOURCES_FETCHED, ConditionStatus.FALSE),
    ],
)
def test_set_condition(cond_type, status):
    q = queue.Queue()
    set_condition(q, cond_type, status)
    cond = q.get_nowait()
    assert cond.status == status
    assert cond.type == cond_type


def test_set_condition_failure_reason():
    q = queue.Queue()
    set_condition(q, ConditionType.PODRESOURCES_FETCHED, ConditionStatus.FALSE)
    cond = q.get_nowait()
    assert cond.reason == "ScanFailed"
    assert cond.message == "failed to scan pod resources"


def test_set_condition_true_has_no_reason():
    q = queue.Queue()
    set_condition(q, ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.TRUE)
    assert q.get_nowait().reason == ""


def test_set_condition_none_queue():
    assert set_condition(None, ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.TRUE) is None


def test_condition_type_values():
    cond = new_condition_template(ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.TRUE)
    assert cond.type == "NodeTopologyUpdated"
    assert cond.status == "True"


class _FakePods:
    def __init__(self, conditions):
        self.conditions = list(conditions)
        self.updates = []

    def get_pod_conditions(self, namespace, name):
        return list(self.conditions)

    def update_pod_conditions(self, namespace, name, conditions):
        self.updates.append((namespace, name))
        self.conditions = list(conditions)


def test_inject_appends_new():
    pods = _FakePods([])
    inj = ConditionInjector(pods, "ns", "pod")
    cond = new_condition_template(ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.TRUE)
    assert inj.inject(cond) is True
    assert pods.conditions == [cond]
    assert pods.updates == [("ns", "pod")]


def test_inject_same_status_skips_update():
    existing = PodCondition(type="NodeTopologyUpdated", status=ConditionStatus.TRUE)
    pods = _FakePods([existing])
    inj = ConditionInjector(pods, "ns", "pod")
    cond = new_condition_template(ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.TRUE)
    assert inj.inject(cond) is False
    assert pods.updates == []


def test_inject_replaces_changed_status():
    existing = PodCondition(type="NodeTopologyUpdated", status=ConditionStatus.TRUE)
    pods = _FakePods([existing])
    inj = ConditionInjector(pods, "ns", "pod")
    cond = new_condition_template(ConditionType.NODE_TOPOLOGY_UPDATED, ConditionStatus.FALSE)
    assert inj.inject(cond) is True
    assert pods.conditions == [cond]


def test_from_env(monkeypatch):
    monkeypatch.setenv("REFERENCE_NAMESPACE", "foons")
    monkeypatch.setenv("REFERENCE_POD_NAME", "barpod")
    inj = ConditionInjector.from_env(_FakePods([]))
    assert (inj.namespace, inj.pod_name) == ("foons", "barpod")


def test_from_env_missing(monkeypatch):
    monkeypatch.delenv("REFERENCE_NAMESPACE", raising=False)
    with pytest.raises(LookupError):
        ConditionInjector.from_env(_FakePods([]))


def test_run_injects_until_sentinel():
    pods = _FakePods([])
    inj = ConditionInjector(pods, "ns", "pod")
    q = queue.Queue()
    thread = inj.run(q)
    set_condition(q, ConditionType.PODRESOURCES_FETCHED, ConditionStatus.TRUE)
    q.put(None)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert [c.type for c in pods.conditions] == [ConditionType.PODRESOURCES_FETCHED]