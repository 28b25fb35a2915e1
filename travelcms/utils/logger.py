"""
Centralized Logging and Secret Masking
======================================

Logging setup for the travelcms tools. All diagnostic output goes through the
standard ``logging`` module; this module wires the handlers and makes sure the
content store token never reaches the console or the log file.

Key Features:
-------------
- Token Masking: API tokens and Bearer headers are redacted in messages,
  arguments and (recursively) in logged dictionaries.
- Two Handlers: a DEBUG file log that is overwritten on every run and an INFO
  console log for the human-readable run report.
- API Instrumentation: helpers for logging content store requests and
  responses with timing.
"""

import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional


PROJECT_ROOT = Path(__file__).parent.parent.parent
LOG_DIR = PROJECT_ROOT / "logs"
LOG_FILE_NAME = "travelcms.log"

# Dictionary keys whose values are never logged in clear
SENSITIVE_FIELDS = {
    'password', 'secret', 'token', 'api_key', 'apikey',
    'auth', 'authorization', 'credentials', 'access_key'
}

# Patterns for secrets embedded in free text
SENSITIVE_PATTERNS = [
    (re.compile(r'Bearer\s+[a-zA-Z0-9\-._~+/]+=*'), 'Bearer ***'),
    # Sanity robot/personal tokens start with "sk" followed by a long base62 body
    (re.compile(r'\b(sk[a-zA-Z0-9]{40,})\b'), lambda m: f"***{m.group(1)[-4:]}"),
]


class SensitiveDataFilter(logging.Filter):
    """
    Redacts tokens from log records before any handler formats them.

    Attached to both the file and the console handler.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _mask_string(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = mask_sensitive_data(record.args)
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    mask_sensitive_data(arg) if isinstance(arg, (dict, list, str)) else arg
                    for arg in record.args
                )

        return True


def _mask_string(text: str) -> str:
    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_sensitive_data(data: Any, mask_value: str = "***") -> Any:
    """
    Recursively redact sensitive values from dicts, lists and strings.

    Keys matching one of ``SENSITIVE_FIELDS`` are replaced; token-like keys
    keep their last four characters so two tokens can still be told apart.

    Args:
        data: The structure to scrub (not modified in place).
        mask_value: Replacement text for sensitive values.

    Returns:
        A masked copy of ``data``.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
                if ('key' in key_lower or 'token' in key_lower) and isinstance(value, str) and len(value) > 4:
                    masked[key] = f"{mask_value}{value[-4:]}"
                else:
                    masked[key] = mask_value
            else:
                masked[key] = mask_sensitive_data(value, mask_value)
        return masked

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask_value) for item in data)

    if isinstance(data, str):
        return _mask_string(data)

    return data


def setup_logging(
    log_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    log_file: Optional[Path] = None,
    log_format: Optional[str] = None
) -> Path:
    """
    Configure the root logger for a travelcms run.

    - File handler at ``log_level`` writing to ``logs/travelcms.log``
      (replaced on each run).
    - Console handler at ``console_level`` on stdout.
    - Both handlers carry :class:`SensitiveDataFilter`.

    Args:
        log_level: Granularity for the log file.
        console_level: Granularity for the terminal output.
        log_file: Override for the log file location.
        log_format: Optional custom format string for the file handler.

    Returns:
        Path of the log file in use.
    """
    if log_file is None:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        log_file = LOG_DIR / LOG_FILE_NAME
    else:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    if log_format is None:
        log_format = (
            '%(asctime)s - %(name)s - %(levelname)s - '
            '[%(filename)s:%(lineno)d] - %(message)s'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(log_format, datefmt='%Y-%m-%d %H:%M:%S'))
    file_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(file_handler)

    # The console carries the run report, so keep it free of source locations
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    console_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(console_handler)

    logging.getLogger(__name__).debug(f"Logging initialised - log file: {log_file}")
    return log_file


def shutdown_logging():
    """Flush and close every root handler. Call before the process exits."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)


def log_config(config_name: str, config_data: Dict[str, Any], logger: Optional[logging.Logger] = None):
    """
    Log configuration settings with secrets masked.

    Args:
        config_name: Label for the configuration being logged
        config_data: Dictionary of configuration settings
        logger: Optional logger instance (module logger if not provided)
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    masked_config = mask_sensitive_data(config_data)
    logger.debug(f"{config_name}: {json.dumps(masked_config, indent=2, default=str)}")


def log_api_request(
    logger: logging.Logger,
    method: str,
    endpoint: str,
    headers: Optional[Dict] = None,
    params: Optional[Dict] = None,
    data: Optional[Any] = None
):
    """
    Log an outgoing content store request with masked headers and params.

    Binary bodies (asset uploads) are logged by size only.
    """
    logger.debug(f"API Request: {method} {endpoint}")

    if headers:
        logger.debug(f"Request headers: {mask_sensitive_data(headers)}")

    if params:
        logger.debug(f"Request params: {mask_sensitive_data(params)}")

    if isinstance(data, (bytes, bytearray)):
        logger.debug(f"Request body: <{len(data)} bytes>")
    elif data:
        logger.debug(f"Request body: {json.dumps(mask_sensitive_data(data), default=str)}")


def log_api_response(
    logger: logging.Logger,
    status_code: int,
    response_data: Optional[Any] = None,
    elapsed_time: Optional[float] = None
):
    """
    Log a content store response with timing information.

    Large bodies are truncated to keep the log readable.
    """
    timing_info = f" ({elapsed_time:.3f}s)" if elapsed_time is not None else ""
    logger.debug(f"API Response: {status_code}{timing_info}")

    if response_data:
        response_str = json.dumps(mask_sensitive_data(response_data), default=str)
        if len(response_str) > 1000:
            response_str = response_str[:1000] + "... (truncated)"
        logger.debug(f"Response body: {response_str}")
