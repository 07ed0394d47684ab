import pytest

from rtexporter.numalocality import always_pass, is_present, required
from rtexporter.podres import (
    ContainerDevices,
    ContainerMemory,
    ContainerResources,
    NUMANode,
    PodResources,
    TopologyInfo,
)

NO_EXCLUSIVE = PodResources(
    name="image-registry-78b84dc9f9-zwxtk",
    namespace="image-registry",
    containers=[ContainerResources(name="registry")],
)
EXCLUSIVE_CPUS = PodResources(
    name="highperf-cpus",
    namespace="exclusive-resources",
    containers=[ContainerResources(name="compute-intensive", cpu_ids=[0, 2, 4, 6])],
)
DEVS_NO_TOPOLOGY = PodResources(
    name="highperf-devs-no-topology",
    namespace="exclusive-resources",
    containers=[
        ContainerResources(
            name="require-devices",
            devices=[ContainerDevices(resource_name="fancydev", device_ids=["dev-1", "dev-2"])],
        )
    ],
)
DEVS_WITH_TOPOLOGY = PodResources(
    name="highperf-devs-with-topology",
    namespace="exclusive-resources",
    containers=[
        ContainerResources(
            name="require-devices",
            devices=[ContainerDevices(resource_name="fancydev", device_ids=["dev-1", "dev-2"])],
        )
    ],
)


@pytest.mark.parametrize(
    "pr", [None, NO_EXCLUSIVE, EXCLUSIVE_CPUS, DEVS_NO_TOPOLOGY, DEVS_WITH_TOPOLOGY]
)
def test_always_pass(pr):
    assert always_pass(pr) is True


@pytest.mark.parametrize(
    "pr,expected",
    [
        (None, False),
        (NO_EXCLUSIVE, False),
        (EXCLUSIVE_CPUS, True),
        (DEVS_NO_TOPOLOGY, False),
        (DEVS_WITH_TOPOLOGY, False),
    ],
)
def test_required(pr, expected):
    assert required(pr) is expected


def test_required_devices_with_numa_node():
    pr = PodResources(
        name="devs",
        namespace="ns",
        containers=[
            ContainerResources(
                name="c",
                devices=[
                    ContainerDevices(
                        resource_name="fancydev",
                        device_ids=["dev-1"],
                        topology=TopologyInfo(nodes=[NUMANode(id=0)]),
                    )
                ],
            )
        ],
    )
    assert required(pr) is True


def test_required_devices_topology_without_ids():
    pr = PodResources(
        containers=[
            ContainerResources(
                devices=[
                    ContainerDevices(
                        resource_name="fancydev",
                        topology=TopologyInfo(nodes=[NUMANode(id=0)]),
                    )
                ],
            )
        ],
    )
    assert required(pr) is False


def test_required_memory_with_numa_node():
    pr = PodResources(
        containers=[
            ContainerResources(
                memory=[
                    ContainerMemory(
                        memory_type="memory",
                        size=1024,
                        topology=TopologyInfo(nodes=[NUMANode(id=1)]),
                    )
                ]
            )
        ]
    )
    assert required(pr) is True


@pytest.mark.parametrize(
    "topo,expected",
    [
        (None, False),
        (TopologyInfo(), False),
        (TopologyInfo(nodes=[]), False),
        (TopologyInfo(nodes=[NUMANode(id=-1)]), False),
        (TopologyInfo(nodes=[NUMANode(id=1)]), True),
    ],
)
def test_is_present(topo, expected):
    assert is_present(topo) is expected