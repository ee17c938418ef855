"""Tests for kubeconfig resolution."""

import base64
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException

from landingpage.errors import ConfigurationError
from landingpage.kubeconfigs import KubeconfigResolver, resolve_kubeconfigs
from landingpage.models import KubeconfigSecretRef, LandingPageConfig, RemoteClusterConfig

KUBECONFIG = b"apiVersion: v1\nkind: Config\n"


def _secret(data):
    return client.V1Secret(metadata=client.V1ObjectMeta(name="foobar-kubeconfig"), data=data)


@pytest.fixture
def core_api():
    return MagicMock()


@pytest.fixture
def resolver(core_api):
    return KubeconfigResolver(core_api_factory=lambda: core_api)


class TestReadSecret:
    """Tests for reading kubeconfigs from secrets."""

    def test_reads_value_key(self, resolver, core_api):
        core_api.read_namespaced_secret.return_value = _secret({"value": base64.b64encode(KUBECONFIG).decode()})

        kubeconfig = resolver.read_secret(KubeconfigSecretRef(name="foobar-kubeconfig", namespace="landingpage"))

        assert kubeconfig == KUBECONFIG
        core_api.read_namespaced_secret.assert_called_once_with(name="foobar-kubeconfig", namespace="landingpage")

    def test_custom_key(self, resolver, core_api):
        core_api.read_namespaced_secret.return_value = _secret({"config": base64.b64encode(KUBECONFIG).decode()})

        ref = KubeconfigSecretRef(name="foobar-kubeconfig", namespace="landingpage", key="config")

        assert resolver.read_secret(ref) == KUBECONFIG

    def test_missing_key(self, resolver, core_api):
        core_api.read_namespaced_secret.return_value = _secret({"other": "eA=="})

        with pytest.raises(ConfigurationError, match="no data field value"):
            resolver.read_secret(KubeconfigSecretRef(name="foobar-kubeconfig", namespace="landingpage"))

    def test_secret_without_data(self, resolver, core_api):
        core_api.read_namespaced_secret.return_value = _secret(None)

        with pytest.raises(ConfigurationError, match="landingpage/foobar-kubeconfig"):
            resolver.read_secret(KubeconfigSecretRef(name="foobar-kubeconfig", namespace="landingpage"))

    def test_invalid_base64(self, resolver, core_api):
        core_api.read_namespaced_secret.return_value = _secret({"value": "not base64!"})

        with pytest.raises(ConfigurationError, match="not valid base64"):
            resolver.read_secret(KubeconfigSecretRef(name="foobar-kubeconfig", namespace="landingpage"))

    def test_api_error(self, resolver, core_api):
        core_api.read_namespaced_secret.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(ConfigurationError, match="could not get kubeconfig secret landingpage/foobar-kubeconfig"):
            resolver.read_secret(KubeconfigSecretRef(name="foobar-kubeconfig", namespace="landingpage"))

    def test_local_cluster_unreachable(self):
        def factory():
            raise ConfigException("Service host/port is not set.")

        resolver = KubeconfigResolver(core_api_factory=factory)

        with pytest.raises(ConfigurationError, match="cannot reach the local cluster"):
            resolver.read_secret(KubeconfigSecretRef(name="foobar-kubeconfig", namespace="landingpage"))


class TestResolve:
    """Tests for KubeconfigResolver.resolve and resolve_kubeconfigs."""

    def test_file(self, tmp_path):
        path = tmp_path / "foobar.yaml"
        path.write_bytes(KUBECONFIG)
        factory = MagicMock()
        resolver = KubeconfigResolver(core_api_factory=factory)

        assert resolver.resolve(RemoteClusterConfig(name="foobar", kubeconfig_path=str(path))) == KUBECONFIG
        factory.assert_not_called()

    def test_missing_file(self, resolver, tmp_path):
        remote = RemoteClusterConfig(name="foobar", kubeconfig_path=str(tmp_path / "missing.yaml"))

        with pytest.raises(ConfigurationError, match="could not read kubeconfig file"):
            resolver.resolve(remote)

    def test_empty_file(self, resolver, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_bytes(b"  \n")

        with pytest.raises(ConfigurationError, match="'foobar' is empty"):
            resolver.resolve(RemoteClusterConfig(name="foobar", kubeconfig_path=str(path)))

    def test_resolve_kubeconfigs(self, resolver, core_api, tmp_path):
        path = tmp_path / "staging.yaml"
        path.write_bytes(b"kind: Config  # staging")
        core_api.read_namespaced_secret.return_value = _secret({"value": base64.b64encode(KUBECONFIG).decode()})
        config = LandingPageConfig.model_validate({
            "remote": {
                "prod": [{"name": "foobar", "kubeconfigSecret": {"name": "foobar-kubeconfig",
                                                                  "namespace": "landingpage"}}],
                "staging": [{"name": "staging", "kubeconfigPath": str(path)}],
            },
        })

        kubeconfigs = resolve_kubeconfigs(config, resolver)

        assert kubeconfigs == {"foobar": KUBECONFIG, "staging": b"kind: Config  # staging"}

    def test_no_remotes(self):
        factory = MagicMock()

        assert resolve_kubeconfigs(LandingPageConfig(), KubeconfigResolver(core_api_factory=factory)) == {}
        factory.assert_not_called()
