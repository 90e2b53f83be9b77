"""
Configuration for llm-describe.

All tunable names in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/llm-describe/config.toml) if exists
3. Environment variables (LLM_DESCRIBE_*) override file
4. CLI flags override everything
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class TransformConfig:
    """Names shared by the source rewrite and the runtime wrapper."""
    marker_attribute: str = "llm"
    wrapper_symbol: str = "LLMDescribe"
    import_source: str = "@/widgets/llm-describe"
    content_attribute: str = "content"


@dataclass
class RegistryConfig:
    """Runtime tree publishing settings."""
    state_key: str = "__widget_context"  # reserved key in the host state
    indent: str = "  "  # repeated once per depth level


@dataclass
class Config:
    """Root config with all settings."""
    transform: TransformConfig = field(default_factory=TransformConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "llm-describe" / "config.toml"
    return Path.home() / ".config" / "llm-describe" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Ignoring config file %s: %s", path, e)

    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "transform" in data:
        t = data["transform"]
        if "marker_attribute" in t:
            config.transform.marker_attribute = str(t["marker_attribute"])
        if "wrapper_symbol" in t:
            config.transform.wrapper_symbol = str(t["wrapper_symbol"])
        if "import_source" in t:
            config.transform.import_source = str(t["import_source"])
        if "content_attribute" in t:
            config.transform.content_attribute = str(t["content_attribute"])

    if "registry" in data:
        r = data["registry"]
        if "state_key" in r:
            config.registry.state_key = str(r["state_key"])
        if "indent" in r:
            config.registry.indent = str(r["indent"])

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str]] = {
        "LLM_DESCRIBE_MARKER": ("transform", "marker_attribute"),
        "LLM_DESCRIBE_WRAPPER": ("transform", "wrapper_symbol"),
        "LLM_DESCRIBE_IMPORT_SOURCE": ("transform", "import_source"),
        "LLM_DESCRIBE_STATE_KEY": ("registry", "state_key"),
        "LLM_DESCRIBE_INDENT": ("registry", "indent"),
    }

    for env_key, (section, attr) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            setattr(getattr(config, section), attr, val)

    return config


# Module-level config instance, loaded on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
