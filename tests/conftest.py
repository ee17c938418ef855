"""Shared fixtures for landingpage tests."""

from typing import Dict, Iterable, Optional

import pytest
from kubernetes import client


def build_ingress(
    name: str = "web",
    namespace: Optional[str] = "default",
    hosts: Iterable[Optional[str]] = ("web.example.com",),
    annotations: Optional[Dict[str, str]] = None,
    paths: Optional[Iterable[str]] = ("/",),
    tls_hosts: Optional[Iterable[str]] = None,
) -> client.V1Ingress:
    """A V1Ingress as returned by the kubernetes client."""
    backend = client.V1IngressBackend(
        service=client.V1IngressServiceBackend(name=name, port=client.V1ServiceBackendPort(number=80))
    )
    rules = []
    for host in hosts:
        http = None
        if paths is not None:
            http = client.V1HTTPIngressRuleValue(paths=[
                client.V1HTTPIngressPath(path=p, path_type="Prefix", backend=backend) for p in paths
            ])
        rules.append(client.V1IngressRule(host=host, http=http))
    tls = [client.V1IngressTLS(hosts=list(tls_hosts))] if tls_hosts else None
    return client.V1Ingress(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, annotations=annotations),
        spec=client.V1IngressSpec(rules=rules, tls=tls),
    )


@pytest.fixture
def make_ingress():
    """Factory for V1Ingress objects."""
    return build_ingress
