"""Turn raw Ingress objects into display entries.

Everything here is pure: the same raw object and cluster context always
produce the same ``IngressEntry`` (or ``None``).
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set

from .models import IngressEntry

NAME_ANNOTATION = "landingpage.info/name"
DESCRIPTION_ANNOTATION = "landingpage.info/description"
DEFAULT_NAMESPACE = "default"


def _as_list(value: Any) -> Sequence[Any]:
    if isinstance(value, (list, tuple)):
        return value
    return ()


def _annotations(metadata: Any) -> Mapping[str, str]:
    annotations = getattr(metadata, "annotations", None)
    if isinstance(annotations, Mapping):
        return annotations
    return {}


def _tls_hosts(spec: Any) -> Set[str]:
    hosts: Set[str] = set()
    for tls in _as_list(getattr(spec, "tls", None)):
        hosts.update(h for h in _as_list(getattr(tls, "hosts", None)) if isinstance(h, str))
    return hosts


def _rule_paths(rule: Any) -> List[str]:
    http = getattr(rule, "http", None)
    paths = [getattr(p, "path", None) for p in _as_list(getattr(http, "paths", None))]
    return [p if isinstance(p, str) and p else "/" for p in paths] or ["/"]


def extract_hosts(raw: Any) -> List[str]:
    """Hosts of every rule, in rule order, without duplicates."""
    hosts: List[str] = []
    for rule in _as_list(getattr(getattr(raw, "spec", None), "rules", None)):
        host = getattr(rule, "host", None)
        if isinstance(host, str) and host and host not in hosts:
            hosts.append(host)
    return hosts


def extract_urls(raw: Any) -> List[str]:
    spec = getattr(raw, "spec", None)
    secured = _tls_hosts(spec)
    urls: List[str] = []
    for rule in _as_list(getattr(spec, "rules", None)):
        host = getattr(rule, "host", None)
        if not isinstance(host, str) or not host:
            continue
        scheme = "https" if host in secured else "http"
        for path in _rule_paths(rule):
            url = f"{scheme}://{host}{path}"
            if url not in urls:
                urls.append(url)
    return urls


def is_annotated(raw: Any) -> bool:
    """True when either landingpage annotation is present."""
    annotations = _annotations(getattr(raw, "metadata", None))
    return NAME_ANNOTATION in annotations or DESCRIPTION_ANNOTATION in annotations


def normalize_ingress(raw: Any, cluster_name: str, only_with_annotation: bool = False) -> Optional[IngressEntry]:
    """Build the entry for one raw ingress, or None when it is not surfaced.

    Args:
        raw: An ingress object as returned by the Kubernetes client.
        cluster_name: Name of the cluster the object was listed from.
        only_with_annotation: Drop ingresses carrying neither landingpage
            annotation.

    Returns:
        The entry, or None if the ingress has no hosts or is filtered out.
    """
    if only_with_annotation and not is_annotated(raw):
        return None

    hosts = extract_hosts(raw)
    if not hosts:
        return None

    metadata = getattr(raw, "metadata", None)
    annotations = _annotations(metadata)
    name = getattr(metadata, "name", None) or hosts[0]
    namespace = getattr(metadata, "namespace", None) or DEFAULT_NAMESPACE

    return IngressEntry(
        cluster_name=cluster_name,
        name=name,
        namespace=namespace,
        display_name=annotations.get(NAME_ANNOTATION) or name,
        description=annotations.get(DESCRIPTION_ANNOTATION) or "",
        hosts=tuple(hosts),
        urls=tuple(extract_urls(raw)),
    )


def normalize_all(raws: Iterable[Any], cluster_name: str, only_with_annotation: bool = False) -> List[IngressEntry]:
    entries = []
    for raw in raws:
        entry = normalize_ingress(raw, cluster_name, only_with_annotation)
        if entry is not None:
            entries.append(entry)
    return entries
