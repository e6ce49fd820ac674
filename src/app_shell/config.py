import logging
import os
from pathlib import Path

from src.domain.errors import StoreConfigError
from src.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Startup configuration is incomplete."""


def validate_ops_rules(rules: Rules, data_dir: Path, backend: str) -> None:
    """
    Validate operational requirements before startup.

    Raises ConfigError naming every missing requirement.
    """
    ops = rules.ops

    # 1. Check Required Env
    missing = [name for name in ops.required_env if not os.environ.get(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    # 2. Check backend prerequisites
    if backend == "github":
        if not os.environ.get("GITHUB_TOKEN"):
            raise StoreConfigError("GITHUB_TOKEN is required for the github store backend")
    elif data_dir.exists() and not os.access(data_dir, os.W_OK):
        raise ConfigError(f"Data directory is not writable: {data_dir}")

    logger.info("Configuration validated (backend=%s)", backend)
