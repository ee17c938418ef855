"""Resolve remote cluster kubeconfigs once at startup."""

import base64
import binascii
from pathlib import Path
from typing import Callable, Dict, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException

from .errors import ConfigurationError
from .logging_config import get_logger, log_k8s_operation
from .models import LOCAL_CLUSTER_NAME, KubeconfigSecretRef, LandingPageConfig, RemoteClusterConfig

logger = get_logger(__name__)


def _local_core_api() -> client.CoreV1Api:
    configuration = client.Configuration()
    try:
        config.load_incluster_config(client_configuration=configuration)
    except ConfigException:
        config.load_kube_config(client_configuration=configuration, persist_config=False)
    return client.CoreV1Api(client.ApiClient(configuration))


class KubeconfigResolver:
    """Reads kubeconfig bytes for remote clusters.

    Secrets are read from the local cluster; the API client is created
    on first use so that file-only setups never touch the local cluster.
    """

    def __init__(self, core_api_factory: Callable[[], client.CoreV1Api] = _local_core_api):
        self._core_api_factory = core_api_factory
        self._core_api: Optional[client.CoreV1Api] = None

    def _core(self) -> client.CoreV1Api:
        if self._core_api is None:
            try:
                self._core_api = self._core_api_factory()
            except ConfigException as e:
                raise ConfigurationError(f"cannot reach the local cluster to read kubeconfig secrets: {e}") from e
        return self._core_api

    def read_secret(self, ref: KubeconfigSecretRef) -> bytes:
        ident = f"{ref.namespace}/{ref.name}"
        log_k8s_operation(logger, "read_secret", LOCAL_CLUSTER_NAME, secret=ident, key=ref.key)
        try:
            secret = self._core().read_namespaced_secret(name=ref.name, namespace=ref.namespace)
        except ApiException as e:
            raise ConfigurationError(f"could not get kubeconfig secret {ident}: {e.reason}") from e

        data = secret.data or {}
        encoded = data.get(ref.key)
        if not encoded:
            raise ConfigurationError(f"could not get kubeconfig secret {ident}: no data field {ref.key}")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(f"kubeconfig secret {ident} is not valid base64: {e}") from e

    def read_file(self, path: str) -> bytes:
        try:
            return Path(path).expanduser().read_bytes()
        except OSError as e:
            raise ConfigurationError(f"could not read kubeconfig file {path}: {e}") from e

    def resolve(self, remote: RemoteClusterConfig) -> bytes:
        if remote.kubeconfig_path:
            kubeconfig = self.read_file(remote.kubeconfig_path)
        else:
            kubeconfig = self.read_secret(remote.kubeconfig_secret)
        if not kubeconfig.strip():
            raise ConfigurationError(f"kubeconfig for remote cluster '{remote.name}' is empty")
        return kubeconfig


def resolve_kubeconfigs(config: LandingPageConfig, resolver: Optional[KubeconfigResolver] = None) -> Dict[str, bytes]:
    """Map each remote cluster name to its kubeconfig bytes.

    Raises:
        ConfigurationError: any kubeconfig cannot be read.
    """
    resolver = resolver or KubeconfigResolver()
    kubeconfigs: Dict[str, bytes] = {}
    for group, remote in config.remote_clusters():
        kubeconfigs[remote.name] = resolver.resolve(remote)
        logger.info("Resolved kubeconfig", cluster=remote.name, group=group,
                    source="file" if remote.kubeconfig_path else "secret")
    return kubeconfigs
