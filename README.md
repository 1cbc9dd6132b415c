# clusterlens

clusterlens looks through the resources of a Kubernetes cluster and reports
what is wrong with them: nodes that are not ready, pods stuck in a crash loop,
claims that cannot be provisioned, services with no endpoints, and more. Each
problem comes back as a `Result` that lists one or more `Failure` entries with
a readable explanation.

## Installation

```
pip install clusterlens
```

## Talking to a cluster

Analyzers never contact a cluster on their own. They read from a
`ClusterClient` (in `clusterlens.common`). To connect one to your cluster,
subclass it and override these methods:

- `list(kind, namespace, label_selector, field_selector)`: the objects of one kind
- `get(kind, namespace, name)`: a single object, raising `NotFoundError` when it is missing
- `latest_event(namespace, name)`: the newest event for an object, or `None`
- `parent_of(metadata)`: the name of the owning object, if there is one
- `api_doc(kind, group, version, field)`: documentation text for a field

You then wrap the client in an `Analyzer` together with a namespace and an
optional label selector.

## Running an analysis

```python
from clusterlens.common import Analyzer
from clusterlens.pod import PodAnalyzer

analyzer = Analyzer(client=my_client, namespace="default")
for result in PodAnalyzer().analyze(analyzer):
    print(result.kind, result.name)
    for failure in result.error:
        print("  -", failure.text)
```

These analyzers are available:

| Module | Analyzer | Looks at |
| --- | --- | --- |
| `clusterlens.node` | `NodeAnalyzer` | Node conditions |
| `clusterlens.pdb` | `PdbAnalyzer` | PodDisruptionBudgets that block disruption |
| `clusterlens.pod` | `PodAnalyzer` | Pending, crashing and unready pods |
| `clusterlens.pvc` | `PvcAnalyzer` | PersistentVolumeClaims that failed to provision |
| `clusterlens.replicaset` | `ReplicaSetAnalyzer` | ReplicaSets that cannot create pods |
| `clusterlens.service` | `ServiceAnalyzer` | Services without ready endpoints |
| `clusterlens.statefulset` | `StatefulSetAnalyzer` | Missing services, storage classes and replicas |
| `clusterlens.validating_webhook` | `ValidatingWebhookAnalyzer` | Webhooks whose backing service or pods are gone |

## Sensitive values

Each failure keeps the names and labels it mentions as `Sensitive` pairs, with
the original value next to a masked one produced by `mask_string`. You can
replace them before passing a report on to someone else.

## Caching

`clusterlens.cache.FileBasedCache` keeps results in files inside the user's
cache directory, or in a directory you name:

```python
from clusterlens.cache import new_cache

cache = new_cache("file", directory="/tmp/clusterlens-cache")
cache.store("key", "value")
assert cache.load("key") == "value"
```

`parse_cache_configuration` reads the `cache` section of a configuration
mapping and returns a `CacheProvider`.

## Custom analyzers

`clusterlens.custom_analyzer.CustomAnalyzer.check` validates a new custom
analyzer entry before you add it to the configuration. It rejects names that
are not valid DNS-style names and entries whose name or connection is already
in use.