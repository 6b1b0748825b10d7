from __future__ import annotations

"""Central logging configuration for pom-fixer.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import logging.config
import os

from pom_fixer.config import ConfigManager

__all__ = ["setup_logging"]


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("POM_FIXER_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "pom_fixer.log")

    logging_config = ConfigManager().get_logging_config()
    if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
        # Update the filename dynamically
        if "handlers" in logging_config and "file" in logging_config["handlers"]:
            logging_config["handlers"]["file"]["filename"] = log_file
        try:
            logging.config.dictConfig(logging_config)
            logging.getLogger("pom_fixer").debug("===== Logging initialised from config files =====")
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            _setup_minimal_logging()
            logging.getLogger("pom_fixer").error("Invalid logging config, using fallback: %s", exc)
    else:
        _setup_minimal_logging()

    if verbose:
        logging.getLogger("pom_fixer").setLevel(logging.DEBUG)
        for handler in logging.getLogger("pom_fixer").handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.DEBUG)

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.warning("===== Logging initialised with minimal fallback =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - POM_FIXER_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    extra_modules = os.environ.get('POM_FIXER_DEBUG_MODULES', '').strip()
    targets = [m.strip() for m in extra_modules.split(',') if m.strip()]
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
