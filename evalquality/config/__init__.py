"""
Configuration loading.

Defaults live in ``eval_config.yaml`` next to this module; a user file and
dotlist overrides (``section.key=value``) are merged on top with OmegaConf.
"""

from pathlib import Path
from typing import List, Optional, Union
import logging

from omegaconf import DictConfig, OmegaConf

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "eval_config.yaml"


def load_config(config_path: Optional[Union[str, Path]] = None,
                overrides: Optional[List[str]] = None) -> DictConfig:
    """
    Load the default configuration merged with an optional user file.

    Raises:
        ConfigurationError: The user file is missing or not valid YAML
    """
    cfg = OmegaConf.load(DEFAULT_CONFIG_PATH)

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        try:
            cfg = OmegaConf.merge(cfg, OmegaConf.load(config_path))
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration {config_path}: {e}") from e
        logger.info(f"Loaded configuration from {config_path}")

    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))

    return cfg
