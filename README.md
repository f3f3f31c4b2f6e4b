# natscaler

`natscaler` adjusts a deployment's replica count to the backlog of a NATS
JetStream consumer. On each pass it reads the consumer's `num_pending`
count from the NATS monitoring endpoint (`/jsz`) and then changes the
replica count by at most one:

- it scales **up** by one replica when pending messages exceed
  `scale_up_threshold` and the count is below `max_replicas`;
- otherwise it scales **down** by one replica when pending messages fall
  below `scale_down_threshold` and the count is above `min_replicas`;
- after a change it waits out a cooldown (15 seconds by default) before it
  touches the same deployment again.

The package uses only the standard library.

## Installation

```
pip install natscaler
```

## Describing a rule

```python
from natscaler.api import NamespacedName, ScalingRule, ScalingRuleSpec

spec = ScalingRuleSpec(
    deployment_name="orders-worker",
    namespace="default",
    min_replicas=1,
    max_replicas=3,
    nats_monitoring_url="http://localhost:8222",
    stream_name="ORDERS",
    consumer_name="orders-consumer",
    scale_up_threshold=10,
    scale_down_threshold=2,
    poll_interval_seconds=10,
)
rule = ScalingRule(name="orders-rule", namespace="default", spec=spec)
```

`ScalingRuleSpec.from_dict` and `to_dict` read and write the camelCase field
names (`deploymentName`, `minReplicas`, `natsMonitoringURL`, …);
`from_dict` raises `ValueError` when a field is missing.
`ScalingRule.from_dict` and `ScalingRule.to_dict` work on the whole object,
with `apiVersion` (`scaling.my.domain/v1`), `kind`, `metadata` and `spec`.

## Reading the consumer backlog

```python
from natscaler.nats import NatsService

service = NatsService(timeout=30)
pending = service.get_pending_messages("http://localhost:8222", "ORDERS", "orders-consumer")
```

The service sends `GET /jsz?acc=$G&consumers=1&leader_only=1` and looks only
at the first account in the answer (the global account, `$G`). Failures
raise exceptions:

- `natscaler.errors.HTTPStatusCodeError` for an error status. It carries
  `code` and the raw response `body`.
- `ConnectionError` when the server cannot be reached.
- `ValueError` when the response is not valid JSON.
- `natscaler.nats.NoAccountFoundError` when the response lists no accounts.
- `LookupError` when the stream or consumer is not in the response.

`JszResponse.from_dict` and `to_dict` read and write the parts of a `/jsz`
response that the scaler uses.

## Scaling and reconciling

```python
from natscaler.controller import ScalingRuleReconciler
from natscaler.kube import Deployment, InMemoryClient
from natscaler.scaler import RealScaler

client = InMemoryClient()
client.add(Deployment(name="orders-worker", namespace="default", replicas=1))
client.add(rule)

reconciler = ScalingRuleReconciler(client, NatsService(timeout=30), RealScaler(cooldown=15))
result = reconciler.reconcile(NamespacedName(name="orders-rule", namespace="default"))
print(result.requeue_after)  # seconds until the next pass, or None
```

`reconcile` logs failures and does not raise them. The returned
`Result.requeue_after` says when to run it again:

| Outcome | Requeue after |
| --- | --- |
| The rule does not exist | `None` (not requeued) |
| The rule could not be read, or its spec is invalid (`min_replicas > max_replicas`) | 60 seconds |
| The NATS query or the scaling step failed | 10 seconds |
| Success | `poll_interval_seconds` |

`validate_scaling_rule_spec` performs the spec check on its own and raises
`ValueError`.

`RealScaler` keeps the time of each deployment's last change in its own
`last_scaled` mapping; the cooldown applies per scaler instance. Scaling
decisions are logged through the standard `logging` module, under the
`natscaler.scaler` and `natscaler.controller` loggers.

## Storage

`InMemoryClient` is a thread-safe store that holds objects in memory and
returns copies on `get`. `add` raises `ValueError` for an object that is
already stored; `get`, `update` and `delete` raise
`natscaler.kube.NotFoundError` for one that is not. Any object with `get`
and `update` methods of the same shape (the `KubeClient` protocol) can take
its place.

## What the package does not do

- It does not talk to a Kubernetes cluster; there is no API client beyond
  `InMemoryClient`.
- It has no command, no watch loop and no manager: you call `reconcile`
  yourself and schedule the next call from `requeue_after`.
- It serves no health, readiness or metrics endpoints.

## Running the tests

```
pip install -e .[test]
pytest
```