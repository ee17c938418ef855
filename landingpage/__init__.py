"""landingpage: a landing page for ingresses across Kubernetes clusters."""

__version__ = "0.1.0"

# Lazy imports keep `landingpage version` and friends free of the kubernetes client
__all__ = [
    "ClusterRegistry",
    "IngressCache",
    "IngressEntry",
    "IngressSnapshot",
    "RefreshScheduler",
    "normalize_ingress",
]


def __getattr__(name):
    if name == "ClusterRegistry":
        from .registry import ClusterRegistry
        return ClusterRegistry
    elif name == "IngressCache":
        from .cache import IngressCache
        return IngressCache
    elif name in ("IngressEntry", "IngressSnapshot"):
        from . import models
        return getattr(models, name)
    elif name == "RefreshScheduler":
        from .scheduler import RefreshScheduler
        return RefreshScheduler
    elif name == "normalize_ingress":
        from .normalize import normalize_ingress
        return normalize_ingress
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
