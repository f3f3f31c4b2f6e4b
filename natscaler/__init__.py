"""Scale deployments from the pending-message backlog of a NATS JetStream consumer."""

__version__ = "0.1.0"

__all__ = ["api", "controller", "errors", "kube", "nats", "scaler"]