"""Data models for the landingpage ingress aggregation engine."""

from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

LOCAL_CLUSTER_NAME = "local"
LOCAL_GROUP_NAME = "local"


class _CamelModel(BaseModel):
    """Configuration models accept the camelCase keys used in config.yaml."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class GlobalSettings(_CamelModel):
    """Settings that apply to every cluster."""

    only_with_annotation: bool = Field(False, description="Only surface ingresses carrying a landingpage annotation")
    refresh_interval_seconds: int = Field(30, gt=0, description="Seconds between refresh cycles")
    fetch_timeout_seconds: Optional[float] = Field(None, gt=0, description="Per-cluster fetch timeout")


class LocalClusterConfig(_CamelModel):
    """Configuration for the cluster this service runs in."""

    enabled: bool = Field(False, description="Whether to list ingresses of the local cluster")
    description: Optional[str] = Field(None, description="Display description")
    namespaces: List[str] = Field(default_factory=list, description="Namespaces to list (empty = all)")


class KubeconfigSecretRef(_CamelModel):
    """Reference to a secret in the local cluster holding a kubeconfig."""

    name: str = Field(..., description="Secret name")
    namespace: str = Field(..., description="Secret namespace")
    key: str = Field("value", description="Data key holding the kubeconfig")


class RemoteClusterConfig(_CamelModel):
    """Configuration for one remotely managed cluster."""

    name: str = Field(..., min_length=1, description="Cluster name, unique across all clusters")
    description: Optional[str] = Field(None, description="Display description")
    kubeconfig_secret: Optional[KubeconfigSecretRef] = Field(None, description="Secret holding the kubeconfig")
    kubeconfig_path: Optional[str] = Field(None, description="Path to a kubeconfig file")
    namespaces: List[str] = Field(default_factory=list, description="Namespaces to list (empty = all)")
    insecure_skip_tls_verify: bool = Field(False, description="Skip TLS verification of the API server")

    @model_validator(mode="after")
    def _require_kubeconfig_source(self) -> "RemoteClusterConfig":
        if self.kubeconfig_secret is None and not self.kubeconfig_path:
            raise ValueError(f"remote cluster '{self.name}' needs kubeconfigSecret or kubeconfigPath")
        return self


class LandingPageConfig(_CamelModel):
    """Top level configuration file."""

    global_: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    local: LocalClusterConfig = Field(default_factory=LocalClusterConfig)
    remote: Dict[str, List[RemoteClusterConfig]] = Field(
        default_factory=dict, description="Remote clusters keyed by group name"
    )

    def remote_clusters(self) -> List[Tuple[str, RemoteClusterConfig]]:
        """Remote clusters as (group, cluster) pairs in configuration order."""
        return [(group, cluster) for group, clusters in self.remote.items() for cluster in clusters]


class ClusterSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class ClusterDescriptor(BaseModel):
    """Identity of one target cluster."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Cluster name, unique within the registry")
    description: Optional[str] = Field(None, description="Display description")
    group: Optional[str] = Field(None, description="Display group")
    source: ClusterSource = Field(..., description="Local or remote cluster")
    kubeconfig: Optional[bytes] = Field(None, repr=False, exclude=True, description="Raw kubeconfig for remote clusters")
    namespaces: Tuple[str, ...] = Field(default_factory=tuple, description="Namespaces to list (empty = all)")
    insecure_skip_tls_verify: bool = Field(False, description="Skip TLS verification of the API server")

    @property
    def is_local(self) -> bool:
        return self.source is ClusterSource.LOCAL


class IngressEntry(BaseModel):
    """One discovered endpoint."""

    model_config = ConfigDict(frozen=True)

    cluster_name: str = Field(..., description="Source cluster name")
    name: str = Field(..., description="Ingress object name")
    namespace: str = Field(..., description="Kubernetes namespace")
    display_name: str = Field(..., description="Annotation override, else the object name")
    description: str = Field("", description="Annotation description")
    hosts: Tuple[str, ...] = Field(..., min_length=1, description="Hosts exposed by the rule set")
    urls: Tuple[str, ...] = Field(default_factory=tuple, description="One URL per host and path")


class ClusterSummary(BaseModel):
    """Per-cluster outcome of a refresh cycle, for display."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    group: Optional[str] = None
    entry_count: int = 0
    stale: bool = Field(False, description="Entries were carried over from an earlier cycle")
    error: Optional[str] = None


class ClusterView(BaseModel):
    """A cluster together with its entries, for rendering."""

    model_config = ConfigDict(frozen=True)

    summary: ClusterSummary
    entries: Tuple[IngressEntry, ...] = ()


class GroupView(BaseModel):
    """A display group of clusters, for rendering."""

    model_config = ConfigDict(frozen=True)

    name: str
    clusters: Tuple[ClusterView, ...] = ()


class IngressSnapshot(BaseModel):
    """Immutable result of one refresh cycle."""

    model_config = ConfigDict(frozen=True)

    entries: Tuple[IngressEntry, ...] = Field(default_factory=tuple, description="Entries in display order")
    generated_at: Optional[datetime] = Field(None, description="When the cycle completed")
    cluster_errors: Mapping[str, str] = Field(
        default_factory=dict, validate_default=True, description="Cluster name to last error"
    )
    clusters: Tuple[ClusterSummary, ...] = Field(default_factory=tuple, description="Clusters in registry order")
    generation: int = Field(0, description="Refresh cycle number, 0 before the first cycle")

    @field_validator("cluster_errors", mode="after")
    @classmethod
    def _read_only_errors(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        # snapshots are shared between readers; frozen=True does not cover the mapping itself
        return MappingProxyType(dict(value))

    @field_serializer("cluster_errors")
    def _serialize_errors(self, value: Mapping[str, str]) -> Dict[str, str]:
        return dict(value)

    def entries_for(self, cluster_name: str) -> Tuple[IngressEntry, ...]:
        return tuple(e for e in self.entries if e.cluster_name == cluster_name)

    def grouped(self) -> List[GroupView]:
        """Entries grouped by display group, then cluster."""
        by_cluster: Dict[str, List[IngressEntry]] = {}
        for entry in self.entries:
            by_cluster.setdefault(entry.cluster_name, []).append(entry)

        groups: Dict[str, List[ClusterView]] = {}
        for summary in self.clusters:
            view = ClusterView(summary=summary, entries=tuple(by_cluster.get(summary.name, ())))
            groups.setdefault(summary.group or "", []).append(view)

        return [GroupView(name=name, clusters=tuple(views)) for name, views in groups.items()]


class CacheStatus(BaseModel):
    """Diagnostic view of the current snapshot."""

    generation: int = Field(0, description="Refresh cycle number")
    generated_at: Optional[datetime] = Field(None, description="Last refresh timestamp")
    entry_count: int = Field(0, description="Number of entries in the snapshot")
    cluster_count: int = Field(0, description="Number of clusters in the snapshot")
    cluster_errors: Dict[str, str] = Field(default_factory=dict, description="Cluster name to last error")

    @property
    def healthy(self) -> bool:
        return not self.cluster_errors
