"""Loading and validating the landingpage configuration file."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .errors import ConfigurationError
from .logging_config import get_logger
from .models import LandingPageConfig

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"

SAMPLE_CONFIG: Dict[str, Any] = {
    "global": {
        "onlyWithAnnotation": False,
        "refreshIntervalSeconds": 30,
    },
    "local": {
        "enabled": True,
        "description": "The cluster landingpage runs in",
    },
    "remote": {
        "prod": [
            {
                "name": "prod-eu-1",
                "description": "Production (EU)",
                "kubeconfigSecret": {"name": "prod-eu-1-kubeconfig", "namespace": "landingpage"},
            },
        ],
        "staging": [
            {
                "name": "staging-eu-1",
                "kubeconfigPath": "/etc/landingpage/staging-eu-1.yaml",
                "namespaces": ["apps"],
            },
        ],
    },
}


def config_path(explicit: Optional[str] = None) -> Path:
    """The file named on the command line, else $CONFIG_FILE, else config.yaml."""
    return Path(explicit or os.getenv("CONFIG_FILE") or DEFAULT_CONFIG_FILE)


def parse_config(data: Any) -> LandingPageConfig:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError("configuration must be a mapping")
    try:
        return LandingPageConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e


def load_config(path: Optional[str] = None) -> LandingPageConfig:
    """Read and validate the configuration file.

    Raises:
        ConfigurationError: the file is missing, not YAML, or invalid.
    """
    resolved = config_path(path)
    logger.debug("Loading configuration file", config_path=str(resolved))
    try:
        with open(resolved) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read configuration file {resolved}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"configuration file {resolved} is not valid YAML: {e}") from e

    config = parse_config(data)
    logger.info("Configuration loaded",
                config_path=str(resolved),
                local_enabled=config.local.enabled,
                remote_clusters=len(config.remote_clusters()),
                refresh_interval_seconds=config.global_.refresh_interval_seconds)
    return config


def sample_config_yaml() -> str:
    return yaml.dump(SAMPLE_CONFIG, default_flow_style=False, sort_keys=False)
