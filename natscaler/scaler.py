"""Steps a deployment's replica count up or down by one per reconciliation."""

from __future__ import annotations

import logging
import threading
import time

from natscaler.api import NamespacedName, ScalerParams
from natscaler.kube import Deployment, KubeClient

DEFAULT_COOLDOWN = 15.0

_log = logging.getLogger(__name__)


class RealScaler:
    """Scales deployments one replica at a time, with a cooldown between changes."""

    def __init__(self, cooldown: float = DEFAULT_COOLDOWN) -> None:
        self.cooldown = cooldown
        self.last_scaled: dict[NamespacedName, float] = {}
        self._lock = threading.Lock()

    def reconcile_scale(
        self,
        client: KubeClient,
        deployment: NamespacedName,
        rule: ScalerParams,
        pending_msgs: int,
    ) -> None:
        now = time.monotonic()

        with self._lock:
            last = self.last_scaled.get(deployment)
        if last is not None and now - last < self.cooldown:
            _log.info("Cooldown in effect — skipping scaling. (pending: %d)", pending_msgs)
            return

        deploy = client.get(Deployment, deployment)
        current = deploy.replicas
        desired = current

        if pending_msgs > rule.scale_up_threshold and current < rule.max_replicas:
            desired = min(current + 1, rule.max_replicas)
            _log.info(
                "Scaling up: %d → %d (pending: %d > %d)",
                current, desired, pending_msgs, rule.scale_up_threshold,
            )
        elif pending_msgs < rule.scale_down_threshold and current > rule.min_replicas:
            desired = max(current - 1, rule.min_replicas)
            _log.info(
                "Scaling down: %d → %d (pending: %d < %d)",
                current, desired, pending_msgs, rule.scale_down_threshold,
            )

        if desired != current:
            deploy.replicas = desired
            client.update(deploy)
            with self._lock:
                self.last_scaled[deployment] = now