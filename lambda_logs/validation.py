import logging

from lambda_logs.config import LOG_DEFAULTS

VALID_FORMATS = ('json', 'text')
VALID_APPLICATION_LEVELS = ('TRACE', 'DEBUG', 'INFO', 'WARN', 'ERROR', 'FATAL')
VALID_SYSTEM_LEVELS = ('DEBUG', 'INFO', 'WARN')

_logger = logging.getLogger(__name__)


def validate_format(log_format, logger=None):
    """
    Normalize a log format to 'json' or 'text'.

    Args:
        log_format: Raw value from the manifest, any case or type
        logger: Optional logger receiving the fallback warning

    Returns:
        str: Lower-cased valid format, or the default when invalid
    """
    logger = logger or _logger
    lower_format = str(log_format).lower()
    if lower_format not in VALID_FORMATS:
        logger.warning(f"Invalid log format: {log_format}. Using default: {LOG_DEFAULTS.format}")
        return LOG_DEFAULTS.format
    return lower_format


def validate_application_level(level, logger=None):
    """Normalize an application log level, falling back to ERROR."""
    logger = logger or _logger
    upper_level = str(level).upper()
    if upper_level not in VALID_APPLICATION_LEVELS:
        logger.warning(f"Invalid application log level: {level}. Using default: {LOG_DEFAULTS.application_level}")
        return LOG_DEFAULTS.application_level
    return upper_level


def validate_system_level(level, logger=None):
    """Normalize a system log level, falling back to WARN."""
    logger = logger or _logger
    upper_level = str(level).upper()
    if upper_level not in VALID_SYSTEM_LEVELS:
        logger.warning(f"Invalid system log level: {level}. Using default: {LOG_DEFAULTS.system_level}")
        return LOG_DEFAULTS.system_level
    return upper_level
