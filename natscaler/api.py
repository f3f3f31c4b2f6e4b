"""Resource types of the scaling API group."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class GroupVersion:
    """An API group together with its version."""

    group: str
    version: str

    def __str__(self) -> str:
        return f"{self.group}/{self.version}"


GROUP_VERSION = GroupVersion(group="scaling.my.domain", version="v1")


@dataclass(frozen=True)
class NamespacedName:
    """Identifies an object by name within a namespace."""

    name: str
    namespace: str


def _require(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field {key!r}") from None


@dataclass
class ScalingRuleSpec:
    """Desired state of a ScalingRule."""

    deployment_name: str
    namespace: str
    min_replicas: int
    max_replicas: int
    nats_monitoring_url: str
    stream_name: str
    consumer_name: str
    scale_up_threshold: int
    scale_down_threshold: int
    poll_interval_seconds: int

    _FIELDS = (
        ("deployment_name", "deploymentName"),
        ("namespace", "namespace"),
        ("min_replicas", "minReplicas"),
        ("max_replicas", "maxReplicas"),
        ("nats_monitoring_url", "natsMonitoringURL"),
        ("stream_name", "streamName"),
        ("consumer_name", "consumerName"),
        ("scale_up_threshold", "scaleUpThreshold"),
        ("scale_down_threshold", "scaleDownThreshold"),
        ("poll_interval_seconds", "pollIntervalSeconds"),
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScalingRuleSpec":
        return cls(**{attr: _require(data, key) for attr, key in cls._FIELDS})

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._FIELDS}


@dataclass
class ScalingRuleStatus:
    """Observed state of a ScalingRule; it carries no fields yet."""


@dataclass
class ScalingRule:
    """A rule tying a deployment's replica count to a NATS consumer's backlog."""

    name: str
    namespace: str
    spec: ScalingRuleSpec
    status: ScalingRuleStatus = field(default_factory=ScalingRuleStatus)

    KIND = "ScalingRule"

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(self.name, self.namespace)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScalingRule":
        metadata = data.get("metadata") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            spec=ScalingRuleSpec.from_dict(_require(data, "spec")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": str(GROUP_VERSION),
            "kind": self.KIND,
            "metadata": {"name": self.name, "namespace": self.namespace},
            "spec": self.spec.to_dict(),
            "status": {},
        }


@dataclass
class ScalingRuleList:
    """A list of ScalingRule objects."""

    items: list[ScalingRule] = field(default_factory=list)


@dataclass(frozen=True)
class ScalerParams:
    """The bounds and thresholds a scaler works within."""

    min_replicas: int
    max_replicas: int
    scale_up_threshold: int
    scale_down_threshold: int