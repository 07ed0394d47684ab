# rtexporter

`rtexporter` is a library of the pieces needed to report how a node's
resources (CPUs, memory, devices) are laid out across NUMA zones and how
much of them is still free. It requires Python 3.10 or newer and depends on
`pyyaml` and `watchdog`.

## Modules

- `rtexporter.podres`: data classes for the kubelet pod resources API
  (`PodResources`, `ContainerResources`, `ListPodResourcesResponse`,
  `AllocatableResourcesResponse`, `GetPodResourcesResponse`, ...), built
  from decoded JSON with `from_dict`; the `PodResourcesLister` protocol;
  `parse_endpoint`; and `FakeClient`, which answers `list()`, `get()` and
  `get_allocatable_resources()` from `list.json`, `get.json` and
  `get_allocatable_resources.json` in a directory.
- `rtexporter.numalocality`: `always_pass`, `required` (does a pod hold
  exclusive CPUs, or memory/devices bound to a NUMA node?) and `is_present`.
- `rtexporter.podexclude`: hides pods whose namespace and name match
  path-style globs (`Item`, `should_exclude`, `new_from_lister`).
- `rtexporter.sharedcpuspool`: removes the CPUs of a reference container
  (the shared pool) from every container's CPU list (`ContainerIdent`,
  `container_ident_from_string`, `container_ident_from_env`,
  `new_from_lister`).
- `rtexporter.terminalpods`: hides pods reported as terminal by a callable
  you supply (`PodRef`, `filter_from`, `new_from_lister`).
- `rtexporter.notification`: `UnlimitedEventSource`, which emits an initial
  event, optional timer events, and events when a notification file is
  written or has its mode changed.
- `rtexporter.ratelimiter`: `RateLimiter` and `RateLimitedEventSource`,
  which forwards events of another source no faster than a given rate,
  dropping events when its buffer of 5 is full rather than blocking.
- `rtexporter.nrtupdater`: `NRTUpdater`, which creates or updates a
  `NodeResourceTopology` with zones, annotations, topology manager
  attributes and an owner reference to the node; `CachedNodeGetter` and
  `DisabledNodeGetter`.
- `rtexporter.nrtfake`: `Generator`, which emits random two-zone
  `MonitorInfo` updates at a fixed interval, for load testing.
- `rtexporter.podreadiness`: pod conditions (`set_condition`,
  `ConditionInjector`).
- `rtexporter.kubeconf`: `get_kubelet_config_from_local_file`, returning a
  `KubeletConfiguration` with the topology, CPU and memory manager settings.
- `rtexporter.metrics` and `rtexporter.metrics_server`: counters and gauges
  labelled by node, rendered in the plain-text exposition format and served
  on `/metrics` over HTTP or HTTPS.
- `rtexporter.annotations` and `rtexporter.dump`: annotation keys and
  merging, and YAML rendering of objects for logs.

## Examples

Parse a pod resources endpoint; only the `unix` and `fake` schemes are
accepted, anything else raises `UnsupportedProtocolError` (a `ValueError`):

```python
from rtexporter.podres import parse_endpoint, UnsupportedProtocolError

proto, path = parse_endpoint("unix:///var/lib/kubelet/pod-resources/kubelet.sock")
# proto == "unix", path == "/var/lib/kubelet/pod-resources/kubelet.sock"

try:
    parse_endpoint("foobar:///path")
except UnsupportedProtocolError as err:
    print(err)  # protocol "foobar" not supported
```

Read recorded responses and stack filters over them:

```python
from rtexporter import podexclude, sharedcpuspool
from rtexporter.podres import get_v1_client_fake

client = get_v1_client_fake("/path/to/recorded/responses")
ref = sharedcpuspool.container_ident_from_string("infra/rte-pod/rte")
client = sharedcpuspool.new_from_lister(client, False, ref)
client = podexclude.new_from_lister(
    client, False, [podexclude.Item(namespace_pattern="kube-*", name_pattern="*")]
)
response = client.list()
```

Check a single pod against exclusion globs:

```python
from rtexporter.podexclude import Item, should_exclude

excludes = [Item(namespace_pattern="kube-system", name_pattern="coredns-*")]
should_exclude(excludes, "kube-system", "coredns-abc", False)  # True
```

Produce update events at most once per second:

```python
import threading
from rtexporter.notification import UnlimitedEventSource
from rtexporter.ratelimiter import RateLimitedEventSource

source = UnlimitedEventSource()
source.set_interval(60.0)                 # seconds; 0 disables the timer
source.add_file("/run/rte/notify")        # must be absent or an empty regular file
limited = RateLimitedEventSource(source, 1, 1.0)
threading.Thread(target=limited.run, daemon=True).start()
event = limited.events().get()            # an Event; event.is_timer() tells the trigger
...
limited.stop()
limited.wait()
limited.close()
```

Record and expose metrics:

```python
from rtexporter import metrics, metrics_server

metrics.setup("")  # node label from the argument, else $NODE_NAME, else the host name
metrics.update_node_resource_topology_writes_metric("create", "periodic")
print(metrics.render_exposition())

server = metrics_server.setup("http", metrics_server.new_default_config())
```

`metrics_server.setup` returns `None` for mode `"disabled"`, raises
`ValueError` for an unknown mode or a non-positive port, and raises
`RuntimeError` if the server cannot be bound.

Merge annotation maps; later maps win:

```python
from rtexporter.annotations import merge

merge({"a": "1"}, {"a": "2", "b": "3"})  # {"a": "2", "b": "3"}
```

## Environment variables

| Variable | Used by |
| --- | --- |
| `NODE_NAME` | `metrics.setup` when no node name is given |
| `REFERENCE_NAMESPACE`, `REFERENCE_POD_NAME`, `REFERENCE_CONTAINER_NAME` | `sharedcpuspool.container_ident_from_env`; `ConditionInjector.from_env` (namespace and pod name) |
| `METRICS_PORT`, `METRICS_ADDRESS` | `metrics_server.port_from_env`, `metrics_server.address_from_env` |

## What this package does not do

- It has no command and no daemon: nothing reads flags or configuration
  files and wires the pieces together; you assemble them yourself.
- It does not connect to the kubelet: the only pod resources client is the
  file-backed `FakeClient`; any other client must implement
  `PodResourcesLister`.
- It does not talk to a cluster: node listing, topology object storage,
  pod status access and terminal pod listing are protocols or callables
  that you provide (`NodeLister`, `NRTClient`, `PodStatusClient`,
  the `pod_lister` of `terminalpods`).
- It does not compute zones from the machine's hardware or pod
  allocations; `NRTUpdater` publishes the `MonitorInfo` it is given.