# This project was developed with assistance from AI tools.
"""Model configuration loader.

Reads config/models.yaml, substitutes ${ENV_VAR:-default} placeholders,
validates required fields, and supports mtime-based hot-reload so config
changes take effect without restarting the server.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# Load .env into os.environ so YAML ${VAR} placeholders resolve correctly.
# pydantic-settings reads .env into its Settings object but doesn't set
# os.environ; the YAML config loader needs actual env vars.
load_dotenv()

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[5] / "config" / "models.yaml"
_cached_config: dict[str, Any] | None = None
_cached_mtime: float = 0.0
_cached_path: Path | None = None

_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)(?::-(.*?))?\}")

REQUIRED_MODEL_FIELDS = {"provider", "model_name", "endpoint"}


def _config_path() -> Path:
    override = os.environ.get("MODELS_CONFIG_PATH")
    return Path(override) if override else _DEFAULT_CONFIG_PATH


def _substitute_env_vars(value: str) -> str:
    """Replace ${VAR:-default} patterns with environment values."""

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        default = match.group(2) or ""
        return os.environ.get(var_name, default)

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars(obj: Any) -> Any:
    """Recursively resolve env var placeholders in a config tree."""
    if isinstance(obj, str):
        return _substitute_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _resolve_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_resolve_env_vars(item) for item in obj]
    return obj


def _validate_config(config: dict[str, Any]) -> None:
    """Validate that all required fields are present in each model definition."""
    if not isinstance(config, dict):
        raise ValueError("models.yaml must be a mapping")

    models = config.get("models")
    if not models or not isinstance(models, dict):
        raise ValueError("models.yaml must contain a 'models' section with at least one model")

    for name, model in models.items():
        if not isinstance(model, dict):
            raise ValueError(f"Model '{name}' must be a mapping")
        missing = REQUIRED_MODEL_FIELDS - set(model.keys())
        if missing:
            raise ValueError(f"Model '{name}' is missing required fields: {missing}")


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load and validate models.yaml from disk."""
    config_path = path or _config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Model config not found: {config_path}")

    raw = config_path.read_text()
    config = yaml.safe_load(raw)
    config = _resolve_env_vars(config)
    _validate_config(config)
    return config


def get_config(path: Path | None = None) -> dict[str, Any]:
    """Return cached config, reloading if the file or its mtime has changed."""
    global _cached_config, _cached_mtime, _cached_path  # noqa: PLW0603
    config_path = path or _config_path()

    try:
        current_mtime = config_path.stat().st_mtime
    except FileNotFoundError:
        if _cached_config is not None and _cached_path == config_path:
            logger.warning("Config file disappeared, using cached config")
            return _cached_config
        raise

    if _cached_config is None or _cached_path != config_path or current_mtime > _cached_mtime:
        logger.info("Loading model config from %s", config_path)
        _cached_config = load_config(config_path)
        _cached_mtime = current_mtime
        _cached_path = config_path

        # Invalidate cached HTTP clients so they pick up new endpoints/keys
        from .client import clear_client_cache

        clear_client_cache()

    return _cached_config


def get_model_config(tier: str, path: Path | None = None) -> dict[str, Any]:
    """Return config for a specific model tier (e.g. 'vision')."""
    config = get_config(path)
    models = config["models"]
    if tier not in models:
        raise KeyError(f"Unknown model tier '{tier}'. Available: {list(models.keys())}")
    return models[tier]
