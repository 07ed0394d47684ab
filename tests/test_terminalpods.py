from rtexporter.podres import (
    AllocatableResourcesResponse,
    GetPodResourcesResponse,
    ListPodResourcesResponse,
    PodResources,
)
from rtexporter.terminalpods import PodRef, filter_from, new_from_lister


def _resp(*pairs):
    return ListPodResourcesResponse(
        pod_resources=[PodResources(name=name, namespace=ns) for name, ns in pairs]
    )


def _names(resp):
    return sorted((p.name, p.namespace) for p in resp.pod_resources)


def test_filter_from_single():
    resp = _resp(("podA", "nsA"), ("podBB", "nsA"), ("podC", "nsAB"))
    filter_from(resp, [PodRef(namespace="nsA", name="podA")])
    assert _names(resp) == [("podBB", "nsA"), ("podC", "nsAB")]


def test_filter_from_multiple():
    resp = _resp(("foo", "bar"), ("bar", "foo"), ("podA", "nsA"))
    filter_from(resp, [PodRef(namespace="nsA", name="podA"), PodRef(namespace="bar", name="foo")])
    assert _names(resp) == [("bar", "foo")]


def test_filter_from_no_pods():
    resp = _resp(("a", "b"))
    filter_from(resp, [])
    assert _names(resp) == [("a", "b")]


class _StubLister:
    def list(self):
        return _resp(("done", "ns"), ("live", "ns"))

    def get_allocatable_resources(self):
        return AllocatableResourcesResponse(cpu_ids=[7])

    def get(self):
        return GetPodResourcesResponse(pod_resources=PodResources(name="g"))


def test_client_list_filters():
    cli = new_from_lister(_StubLister(), lambda: [PodRef("ns", "done")], False)
    assert _names(cli.list()) == [("live", "ns")]


def test_client_passthrough():
    cli = new_from_lister(_StubLister(), lambda: [], True)
    assert cli.get_allocatable_resources().cpu_ids == [7]
    assert cli.get().pod_resources.name == "g"