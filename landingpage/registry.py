"""The static set of clusters the engine refreshes."""

from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from .errors import ConfigurationError
from .logging_config import get_logger
from .models import (
    LOCAL_CLUSTER_NAME,
    LOCAL_GROUP_NAME,
    ClusterDescriptor,
    ClusterSource,
    LandingPageConfig,
)

logger = get_logger(__name__)


class ClusterRegistry:
    """Ordered, read-only collection of cluster descriptors.

    Built once at startup; safe to share between tasks without locking.
    """

    def __init__(self, descriptors: Sequence[ClusterDescriptor] = ()):
        seen: Dict[str, ClusterDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in seen:
                raise ConfigurationError(f"duplicate cluster name '{descriptor.name}'")
            if descriptor.source is ClusterSource.REMOTE and not descriptor.kubeconfig:
                raise ConfigurationError(f"remote cluster '{descriptor.name}' has no kubeconfig")
            seen[descriptor.name] = descriptor
        self._descriptors = tuple(descriptors)
        self._by_name = seen

    @classmethod
    def from_config(cls, config: LandingPageConfig, kubeconfigs: Optional[Mapping[str, bytes]] = None) -> "ClusterRegistry":
        """Build the registry from parsed configuration.

        Args:
            config: The parsed configuration file.
            kubeconfigs: Remote cluster name to kubeconfig bytes, already
                resolved from secrets or files.

        Raises:
            ConfigurationError: a remote cluster lacks a kubeconfig or a
                cluster name is used twice.
        """
        kubeconfigs = kubeconfigs or {}
        descriptors: List[ClusterDescriptor] = []

        if config.local.enabled:
            descriptors.append(ClusterDescriptor(
                name=LOCAL_CLUSTER_NAME,
                description=config.local.description,
                group=LOCAL_GROUP_NAME,
                source=ClusterSource.LOCAL,
                namespaces=tuple(config.local.namespaces),
            ))

        for group, remote in config.remote_clusters():
            kubeconfig = kubeconfigs.get(remote.name)
            if not kubeconfig:
                raise ConfigurationError(f"remote cluster '{remote.name}' has no resolvable kubeconfig")
            descriptors.append(ClusterDescriptor(
                name=remote.name,
                description=remote.description,
                group=group,
                source=ClusterSource.REMOTE,
                kubeconfig=kubeconfig,
                namespaces=tuple(remote.namespaces),
                insecure_skip_tls_verify=remote.insecure_skip_tls_verify,
            ))

        registry = cls(descriptors)
        logger.info("Cluster registry built", clusters=registry.names(), groups=registry.group_order())
        return registry

    def __iter__(self) -> Iterator[ClusterDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, name: str) -> Optional[ClusterDescriptor]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [d.name for d in self._descriptors]

    def group_order(self) -> List[str]:
        """Group names in the order they first appear."""
        groups: List[str] = []
        for descriptor in self._descriptors:
            group = descriptor.group or ""
            if group not in groups:
                groups.append(group)
        return groups
