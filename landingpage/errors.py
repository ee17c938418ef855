"""Error taxonomy for the ingress aggregation engine."""

from typing import Optional


class LandingPageError(Exception):
    """Base class for all landingpage errors."""


class ConfigurationError(LandingPageError):
    """Malformed or unresolvable configuration. Fatal at startup."""


class ClusterError(LandingPageError):
    """A recoverable failure scoped to a single cluster."""

    def __init__(self, cluster: str, cause: object):
        self.cluster = cluster
        self.cause = cause
        super().__init__(f"{cluster}: {cause}")

    def describe(self) -> str:
        """Short message recorded in a snapshot's cluster_errors."""
        return str(self.cause)


class ClusterConnectionError(ClusterError):
    """Client construction failed (bad kubeconfig, missing credentials)."""

    def describe(self) -> str:
        return f"connection failed: {self.cause}"


class FetchError(ClusterError):
    """Listing ingresses failed (transport, auth or timeout)."""

    def __init__(self, cluster: str, cause: object, timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(cluster, cause)

    @classmethod
    def timeout(cls, cluster: str, seconds: float) -> "FetchError":
        return cls(cluster, f"timed out after {seconds:g}s", timed_out=True)

    def describe(self) -> str:
        if self.timed_out:
            return str(self.cause)
        return f"fetch failed: {self.cause}"


def error_message(error: Optional[BaseException]) -> Optional[str]:
    if error is None:
        return None
    if isinstance(error, ClusterError):
        return error.describe()
    return f"{type(error).__name__}: {error}"
