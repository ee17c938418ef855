"""Per-cluster Kubernetes connections."""

import asyncio
from typing import Any, Callable, List, Optional

import yaml
from kubernetes import client, config
from kubernetes.config import ConfigException

from .errors import ClusterConnectionError, FetchError
from .logging_config import get_logger, log_function_entry, log_function_exit, log_k8s_operation
from .models import ClusterDescriptor

logger = get_logger(__name__)


class ClusterConnection:
    """Lists Ingress objects of one cluster.

    Subclasses only decide how the API client is configured. Blocking SDK
    calls run in worker threads so that one slow cluster never holds up
    the event loop. Nothing is cached between fetches.
    """

    def __init__(self, descriptor: ClusterDescriptor):
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    def _build_client(self) -> client.ApiClient:
        raise NotImplementedError

    async def connect(self) -> client.ApiClient:
        """Create an isolated API client for this cluster.

        Raises:
            ClusterConnectionError: credentials could not be loaded.
        """
        log_k8s_operation(logger, "connect", self.name, source=self.descriptor.source.value)
        try:
            api_client = await asyncio.to_thread(self._build_client)
        except ClusterConnectionError:
            raise
        except Exception as e:
            logger.warning("Failed to connect to cluster", cluster=self.name, error=str(e))
            raise ClusterConnectionError(self.name, e) from e
        logger.debug("Connected to cluster", cluster=self.name)
        return api_client

    def _list(self, api_client: client.ApiClient, timeout: Optional[float]) -> List[Any]:
        networking = client.NetworkingV1Api(api_client)
        if not self.descriptor.namespaces:
            return list(networking.list_ingress_for_all_namespaces(_request_timeout=timeout).items)

        ingresses: List[Any] = []
        for namespace in self.descriptor.namespaces:
            response = networking.list_namespaced_ingress(namespace=namespace, _request_timeout=timeout)
            logger.debug("Listed ingresses in namespace", cluster=self.name,
                         namespace=namespace, count=len(response.items))
            ingresses.extend(response.items)
        return ingresses

    async def list_ingresses(self, api_client: client.ApiClient, timeout: Optional[float] = None) -> List[Any]:
        """Issue the list call(s) for this cluster.

        Args:
            api_client: Client returned by ``connect``.
            timeout: Per-request timeout in seconds.

        Raises:
            FetchError: the API call failed.
        """
        log_k8s_operation(logger, "list_ingresses", self.name,
                          namespaces=list(self.descriptor.namespaces) or "all", timeout=timeout)
        try:
            ingresses = await asyncio.to_thread(self._list, api_client, timeout)
        except Exception as e:
            logger.warning("Failed to list ingresses", cluster=self.name, error=str(e))
            raise FetchError(self.name, e) from e
        logger.debug("Listed ingresses", cluster=self.name, count=len(ingresses))
        return ingresses

    def _fetch_blocking(self, timeout: Optional[float]) -> List[Any]:
        try:
            api_client = self._build_client()
        except ClusterConnectionError:
            raise
        except Exception as e:
            logger.warning("Failed to connect to cluster", cluster=self.name, error=str(e))
            raise ClusterConnectionError(self.name, e) from e
        try:
            return self._list(api_client, timeout)
        except Exception as e:
            logger.warning("Failed to list ingresses", cluster=self.name, error=str(e))
            raise FetchError(self.name, e) from e
        finally:
            api_client.close()

    async def fetch(self, timeout: Optional[float] = None) -> List[Any]:
        """Connect, list and close the client again.

        All three steps run in one worker thread, so a caller that stops
        waiting (timeout, cancellation) still gets the client closed once
        the thread finishes.
        """
        log_function_entry(logger, "fetch", cluster=self.name)
        log_k8s_operation(logger, "fetch", self.name, source=self.descriptor.source.value,
                          namespaces=list(self.descriptor.namespaces) or "all", timeout=timeout)
        ingresses = await asyncio.to_thread(self._fetch_blocking, timeout)
        log_function_exit(logger, "fetch", cluster=self.name, count=len(ingresses))
        return ingresses


class LocalClusterConnection(ClusterConnection):
    """The cluster this service runs in, using ambient credentials."""

    def _build_client(self) -> client.ApiClient:
        configuration = client.Configuration()
        try:
            config.load_incluster_config(client_configuration=configuration)
            logger.debug("Loaded in-cluster config", cluster=self.name)
        except ConfigException:
            config.load_kube_config(client_configuration=configuration, persist_config=False)
            logger.debug("Loaded kubeconfig from environment", cluster=self.name)
        return client.ApiClient(configuration)


class RemoteClusterConnection(ClusterConnection):
    """A remote cluster reached through the kubeconfig held by its descriptor."""

    def _build_client(self) -> client.ApiClient:
        if not self.descriptor.kubeconfig:
            raise ClusterConnectionError(self.name, "no kubeconfig available")
        try:
            kubeconfig = yaml.safe_load(self.descriptor.kubeconfig)
        except yaml.YAMLError as e:
            raise ClusterConnectionError(self.name, f"invalid kubeconfig: {e}") from e
        if not isinstance(kubeconfig, dict):
            raise ClusterConnectionError(self.name, "invalid kubeconfig: not a mapping")

        configuration = client.Configuration()
        config.load_kube_config_from_dict(
            kubeconfig,
            client_configuration=configuration,
            persist_config=False,
        )
        if self.descriptor.insecure_skip_tls_verify:
            configuration.verify_ssl = False
        return client.ApiClient(configuration)


ConnectionFactory = Callable[[ClusterDescriptor], ClusterConnection]


def connection_for(descriptor: ClusterDescriptor) -> ClusterConnection:
    if descriptor.is_local:
        return LocalClusterConnection(descriptor)
    return RemoteClusterConnection(descriptor)
