"""Configuration loading and management."""
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from hive.models.config import AppConfig, OpenAIConfig
from hive.utils.logger import logger

# Project root is one level above the hive package
PROJECT_ROOT = Path(__file__).parent.parent.parent.absolute()

DEFAULT_SETTINGS_PATH = PROJECT_ROOT / "config" / "settings.yaml"


def load_env_config(env_path: Optional[str] = None) -> None:
    """Load environment variables from .env file.

    Args:
        env_path: Optional path to .env file. If None, searches in default locations.
    """
    if env_path and not os.path.exists(env_path):
        logger.warning(f"Specified .env file not found at {env_path}")
        return

    load_dotenv(env_path)
    logger.debug("Loaded environment variables")


def load_settings(settings_path: Optional[str] = None) -> Dict[str, Any]:
    """Load non-secret settings from a YAML file.

    Args:
        settings_path: Path to the settings YAML file. Defaults to config/settings.yaml.

    Returns:
        Parsed settings, or an empty dict if the file is missing or malformed.
    """
    path = Path(settings_path) if settings_path else DEFAULT_SETTINGS_PATH
    if not path.exists():
        if settings_path:
            logger.warning(f"Settings file not found at {path}, using defaults")
        return {}

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading settings from {path}: {str(e)}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Settings file {path} must contain a mapping, using defaults")
        return {}

    logger.debug(f"Loaded settings from {path}")
    return data


def load_app_config(
    env_path: Optional[str] = None,
    settings_path: Optional[str] = None,
    data_dir: Optional[str] = None,
    log_level: Optional[str] = None,
) -> AppConfig:
    """Load complete application configuration.

    Args:
        env_path: Optional path to .env file.
        settings_path: Optional path to the settings YAML file.
        data_dir: Overrides the storage directory from the settings file.
        log_level: Overrides the logging level from the settings file.

    Returns:
        Complete application configuration.
    """
    load_env_config(env_path)
    settings = load_settings(settings_path)

    # Secrets only ever come from the environment
    openai_settings = dict(settings.get('openai') or {})
    openai_settings.update(
        api_key=os.getenv('OPENAI_API_KEY', ''),
        base_url=os.getenv('OPENAI_BASE_URL') or openai_settings.get('base_url'),
        organization=os.getenv('OPENAI_ORGANIZATION') or openai_settings.get('organization'),
    )
    settings['openai'] = openai_settings

    if data_dir:
        settings.setdefault('storage', {})
        settings['storage'] = dict(settings['storage'] or {}, data_dir=data_dir)
    if log_level:
        settings['log_level'] = log_level

    try:
        config = AppConfig(**settings)
    except ValidationError as e:
        logger.error(f"Invalid settings, using defaults: {str(e)}")
        config = AppConfig(openai=OpenAIConfig(**{
            key: value for key, value in openai_settings.items()
            if key in ('api_key', 'base_url', 'organization')
        }))
        if data_dir:
            config.storage.data_dir = Path(data_dir)
        if log_level:
            config.log_level = log_level

    logger.debug("Loaded complete application configuration")
    return config
