"""Command-line interface for landingpage."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .errors import ConfigurationError
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def build_scheduler(config):
    """Resolve kubeconfigs and assemble registry, cache and scheduler.

    Raises:
        ConfigurationError: a remote cluster's kubeconfig cannot be resolved.
    """
    from .cache import IngressCache
    from .kubeconfigs import resolve_kubeconfigs
    from .registry import ClusterRegistry
    from .scheduler import RefreshScheduler

    registry = ClusterRegistry.from_config(config, resolve_kubeconfigs(config))
    return RefreshScheduler(registry, IngressCache(), config.global_)


def _load_or_exit(path):
    from .config import load_config

    try:
        return load_config(path)
    except ConfigurationError as e:
        logger.error("Failed to load configuration", error=str(e))
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(1)


def serve_command(args: argparse.Namespace) -> None:
    """Start the landing page server."""
    # Import heavy dependencies only when needed
    import uvicorn
    from .api import create_app

    setup_logging(args.verbose)
    config = _load_or_exit(args.config)
    try:
        scheduler = build_scheduler(config)
    except ConfigurationError as e:
        logger.error("Startup failed", error=str(e))
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    app = create_app(scheduler.cache, scheduler, title=args.title)
    logger.info("Starting landingpage server", host=args.host, port=args.port,
                clusters=len(scheduler.registry))
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="debug" if args.verbose else "info",
    )


def scan_command(args: argparse.Namespace) -> None:
    """Run a single refresh cycle and print the result."""
    import yaml

    setup_logging(args.verbose)
    config = _load_or_exit(args.config)
    try:
        scheduler = build_scheduler(config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    snapshot = asyncio.run(scheduler.run_cycle())
    entries = [e for e in snapshot.entries if not args.cluster or e.cluster_name == args.cluster]

    if args.output == "json":
        data = snapshot.model_dump(mode="json")
        data["entries"] = [e.model_dump(mode="json") for e in entries]
        print(json.dumps(data, indent=2))
    elif args.output == "yaml":
        data = snapshot.model_dump(mode="json")
        data["entries"] = [e.model_dump(mode="json") for e in entries]
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    else:
        if entries:
            print(f"\nFound {len(entries)} ingresses:\n")
            print(f"{'Name':<30} {'Cluster':<20} {'Namespace':<20} {'Hosts'}")
            print("-" * 100)
            for entry in entries:
                print(f"{entry.display_name:<30} {entry.cluster_name:<20} {entry.namespace:<20} {', '.join(entry.hosts)}")
        else:
            print("No ingresses found.")
        for cluster, error in snapshot.cluster_errors.items():
            print(f"✗ {cluster}: {error}", file=sys.stderr)

    if snapshot.cluster_errors:
        sys.exit(2)


def init_config_command(args: argparse.Namespace) -> None:
    """Generate a sample configuration file."""
    from .config import sample_config_yaml

    config_yaml = sample_config_yaml()
    if args.output:
        output_path = Path(args.output)
        output_path.write_text(config_yaml)
        print(f"Sample configuration written to {output_path}")
    else:
        print("Sample configuration:\n")
        print(config_yaml)


def validate_config_command(args: argparse.Namespace) -> None:
    """Validate a configuration file without contacting any cluster."""
    from .config import config_path, load_config

    path = config_path(args.config)
    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"✗ Configuration file {path} is invalid: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"✓ Configuration file {path} is valid")
    print("\nConfiguration summary:")
    print(f"  Local cluster: {'enabled' if config.local.enabled else 'disabled'}")
    print(f"  Remote clusters: {len(config.remote_clusters())}")
    print(f"  Refresh interval: {config.global_.refresh_interval_seconds}s")
    print(f"  Only with annotation: {config.global_.only_with_annotation}")
    if config.remote:
        print("\nRemote clusters:")
        for group, remote in config.remote_clusters():
            source = "file" if remote.kubeconfig_path else "secret"
            print(f"  - {remote.name} (group {group}, kubeconfig from {source})")


def version_command(args: argparse.Namespace) -> None:
    from . import __version__
    print(f"landingpage {__version__}")


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="landingpage: ingress landing page for multiple Kubernetes clusters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the landing page server")
    serve_parser.add_argument("--config", "-c", help="Configuration file path (default: $CONFIG_FILE or config.yaml)")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    serve_parser.add_argument("--title", help="Page title (default: $PAGE_TITLE or 'Landing Page')")
    serve_parser.set_defaults(func=serve_command)

    scan_parser = subparsers.add_parser("scan", help="Run one refresh cycle and print the ingresses found")
    scan_parser.add_argument("--config", "-c", help="Configuration file path")
    scan_parser.add_argument("--output", "-o", choices=["json", "yaml", "table"], default="table",
                             help="Output format (default: table)")
    scan_parser.add_argument("--cluster", help="Only show entries of this cluster")
    scan_parser.set_defaults(func=scan_command)

    init_parser = subparsers.add_parser("init-config", help="Generate a sample configuration file")
    init_parser.add_argument("--output", "-o", help="Output file path (default: stdout)")
    init_parser.set_defaults(func=init_config_command)

    validate_parser = subparsers.add_parser("validate-config", help="Validate a configuration file")
    validate_parser.add_argument("--config", "-c", help="Configuration file path")
    validate_parser.set_defaults(func=validate_config_command)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=version_command)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
