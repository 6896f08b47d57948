"""JSON configuration file for the dev-mode upstream store."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from upstream_pool.core.config import settings

logger = logging.getLogger(__name__)

# Default config file path
DEFAULT_CONFIG_PATH = Path.cwd() / "config" / "upstreams.json"


def _resolve(config_path: Optional[str]) -> Path:
    # Priority: explicit path > UPSTREAM_CONFIG > default
    return Path(config_path or settings.UPSTREAM_CONFIG or DEFAULT_CONFIG_PATH)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from JSON file.

    Args:
        config_path: Path to config file. If None, uses UPSTREAM_CONFIG or the default.

    Returns:
        Configuration dictionary with an "upstreams" list.
    """
    path = _resolve(config_path)

    if not path.exists():
        logger.warning(f"Config file not found at {path}, using empty config")
        return {"upstreams": []}

    with open(path, "r") as f:
        config = json.load(f)

    config.setdefault("upstreams", [])
    return config


def save_config(config: Dict[str, Any], config_path: Optional[str] = None) -> None:
    """Save configuration to JSON file."""
    path = _resolve(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(config, f, indent=2)


def get_upstreams(config_path: Optional[str] = None) -> List[Dict[str, Any]]:
    return load_config(config_path)["upstreams"]
