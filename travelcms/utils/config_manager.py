"""
Content Store Configuration
===========================

Resolves the connection settings for the content store and the location of
the site's image directory.

Resolution order (later wins):
------------------------------
1. Defaults from ``travelcms.core.config``.
2. Hidden JSON file in the user's home directory (``~/.travelcms_config.json``),
   if present.
3. Environment variables, using the same names as the Next.js site so one
   ``.env`` serves both.

The loaded configuration is logged with the token masked.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Mapping, Optional

from travelcms.core import config
from travelcms.utils.logger import log_config

CONFIG_PATH = Path.home() / ".travelcms_config.json"

# Environment variable -> SanityConfig attribute
ENV_VARS = {
    "NEXT_PUBLIC_SANITY_PROJECT_ID": "project_id",
    "NEXT_PUBLIC_SANITY_DATASET": "dataset",
    "NEXT_PUBLIC_SANITY_API_VERSION": "api_version",
    "SANITY_API_TOKEN": "token",
    "TRAVELCMS_IMAGE_DIR": "image_dir",
}

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class SanityConfig:
    """
    Connection settings for the content store.

    Attributes:
        project_id: Content store project identifier
        dataset: Dataset name (e.g. 'production')
        api_version: Dated API version used in request paths
        token: API token; required for uploads, creates and patches
        use_cdn: Read through the cached CDN host (ignored when a token is set)
        image_dir: Directory scanned for images by the uploader
    """
    project_id: str = config.DEFAULT_PROJECT_ID
    dataset: str = config.DEFAULT_DATASET
    api_version: str = config.DEFAULT_API_VERSION
    token: str = ""
    use_cdn: bool = False
    image_dir: str = config.DEFAULT_IMAGE_DIR

    @property
    def has_token(self) -> bool:
        return bool(self.token is not None and str(self.token).strip())


def load_config(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> SanityConfig:
    """
    Build a :class:`SanityConfig` from defaults, the JSON file and the environment.

    A missing file is not an error. A corrupt file is logged and ignored so
    the environment alone can still drive a run.

    Args:
        path: JSON file to read (defaults to ``CONFIG_PATH``).
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        The resolved configuration.
    """
    logger = logging.getLogger(__name__)
    path = CONFIG_PATH if path is None else path
    environ = os.environ if environ is None else environ

    cfg = SanityConfig()
    known = {f.name for f in fields(SanityConfig)}
    text_fields = {f.name for f in fields(SanityConfig) if f.type is str}

    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                for key, value in data.items():
                    if key not in known:
                        logger.debug(f"Ignoring unknown config key: {key}")
                    elif value is None:
                        logger.debug(f"Ignoring null config value: {key}")
                    elif key in text_fields:
                        setattr(cfg, key, str(value).strip())
                    else:
                        setattr(cfg, key, value)
            else:
                logger.error(f"Configuration file {path} does not contain a JSON object")
        except json.JSONDecodeError as e:
            logger.error(f"Configuration file is corrupted: {e}")
        except OSError as e:
            logger.error(f"Failed to read configuration file {path}: {e}")
    else:
        logger.debug(f"No configuration file found at {path}")

    for var, attr in ENV_VARS.items():
        value = environ.get(var)
        if value:
            setattr(cfg, attr, value.strip())

    use_cdn = environ.get("SANITY_USE_CDN")
    if use_cdn is not None:
        cfg.use_cdn = use_cdn.strip().lower() in TRUE_VALUES
    elif isinstance(cfg.use_cdn, str):
        cfg.use_cdn = cfg.use_cdn.strip().lower() in TRUE_VALUES

    log_config("Content store configuration", asdict(cfg), logger)
    return cfg
