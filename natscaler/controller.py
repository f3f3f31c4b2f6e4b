"""Reconciles ScalingRule objects against NATS backlogs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from natscaler.api import NamespacedName, ScalerParams, ScalingRule, ScalingRuleSpec
from natscaler.kube import KubeClient, NotFoundError
from natscaler.nats import NatsService

ERR_REQUEUE_INTERVAL_LONG = 60.0
ERR_REQUEUE_INTERVAL_SHORT = 10.0

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Result:
    """Outcome of a reconciliation: seconds until the next one, or None for none."""

    requeue_after: float | None = None


class Scaler(Protocol):
    def reconcile_scale(
        self,
        client: KubeClient,
        deployment: NamespacedName,
        rule: ScalerParams,
        pending_msgs: int,
    ) -> None: ...


def validate_scaling_rule_spec(spec: ScalingRuleSpec) -> None:
    """Raise ValueError if the spec's replica bounds are inconsistent."""
    if spec.min_replicas > spec.max_replicas:
        raise ValueError(
            f"minReplicas ({spec.min_replicas}) must be less than or equal to "
            f"maxReplicas ({spec.max_replicas})"
        )


class ScalingRuleReconciler:
    """Moves each deployment's replica count towards what its rule asks for."""

    def __init__(self, client: KubeClient, nats_service: NatsService, scaler: Scaler) -> None:
        self.client = client
        self.nats_service = nats_service
        self.scaler = scaler

    def reconcile(self, request: NamespacedName) -> Result:
        # Errors are logged and turned into a delayed retry, never raised.
        try:
            rule = self.client.get(ScalingRule, request)
        except NotFoundError:
            return Result()
        except Exception as err:
            _log.error("failed to get ScalingRule (retry in %ss)",
                       ERR_REQUEUE_INTERVAL_LONG, exc_info=err)
            return Result(ERR_REQUEUE_INTERVAL_LONG)

        spec = rule.spec
        try:
            validate_scaling_rule_spec(spec)
        except ValueError as err:
            _log.error("invalid ScalingRule spec (retry in %ss)",
                       ERR_REQUEUE_INTERVAL_LONG, exc_info=err)
            return Result(ERR_REQUEUE_INTERVAL_LONG)

        try:
            pending = self.nats_service.get_pending_messages(
                spec.nats_monitoring_url, spec.stream_name, spec.consumer_name
            )
        except Exception as err:
            _log.error("failed to get pending messages from NATS (retry in %ss)",
                       ERR_REQUEUE_INTERVAL_SHORT, exc_info=err)
            return Result(ERR_REQUEUE_INTERVAL_SHORT)

        params = ScalerParams(
            min_replicas=spec.min_replicas,
            max_replicas=spec.max_replicas,
            scale_up_threshold=spec.scale_up_threshold,
            scale_down_threshold=spec.scale_down_threshold,
        )
        try:
            self.scaler.reconcile_scale(
                self.client,
                NamespacedName(spec.deployment_name, spec.namespace),
                params,
                pending,
            )
        except Exception as err:
            _log.error("failed to scale deployment (retry in %ss)",
                       ERR_REQUEUE_INTERVAL_SHORT, exc_info=err)
            return Result(ERR_REQUEUE_INTERVAL_SHORT)

        return Result(float(spec.poll_interval_seconds))