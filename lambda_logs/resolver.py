import logging
from typing import Dict, Any, NamedTuple, Optional

from lambda_logs.config import LogSettings, LOG_DEFAULTS
from lambda_logs.validation import validate_format, validate_application_level, validate_system_level

_logger = logging.getLogger(__name__)

# Environment variables read by the function runtime
LOG_FORMAT_ENV = 'AWS_LAMBDA_HANDLER_LOG_FORMAT'
APPLICATION_LEVEL_ENV = 'LOG_LEVEL'
SYSTEM_LEVEL_ENV = 'AWS_LAMBDA_LOG_LEVEL'


class LoggingConfig(NamedTuple):
    """Resolved and validated logging configuration of one function."""
    format: str
    application_level: str
    system_level: str
    log_group: Optional[str] = None


def merge_config(function_tier: LogSettings, global_tier: LogSettings,
                 defaults: LogSettings = LOG_DEFAULTS, logger=None) -> LoggingConfig:
    """
    Merge the three configuration tiers into a validated LoggingConfig.

    Each field is resolved independently: function tier first, then the
    global tier, then the built-in default. The log group has no built-in
    default and stays None unless one of the tiers sets it.

    Args:
        function_tier: Settings declared on the function
        global_tier: Settings declared under custom.logs
        defaults: Built-in defaults
        logger: Optional logger receiving validation warnings

    Returns:
        LoggingConfig: The validated configuration
    """
    return LoggingConfig(
        format=validate_format(
            function_tier.format or global_tier.format or defaults.format, logger),
        application_level=validate_application_level(
            function_tier.application_level or global_tier.application_level or defaults.application_level, logger),
        system_level=validate_system_level(
            function_tier.system_level or global_tier.system_level or defaults.system_level, logger),
        log_group=function_tier.log_group or global_tier.log_group or None
    )


def get_global_settings(custom_logs: Optional[Dict[str, Any]]) -> LogSettings:
    """Global tier from custom.logs, or the built-in defaults when the block is absent."""
    if custom_logs:
        return LogSettings.from_dict(custom_logs)
    return LOG_DEFAULTS


def configure_function(function_id, entry, global_settings: LogSettings, logger=None) -> LoggingConfig:
    """
    Resolve the logging configuration of one function and attach it.

    Stores the result on entry.logging_config and exposes the resolved
    format and levels to the function code through its environment.

    Args:
        function_id: Function key in the manifest
        entry: FunctionEntry to update
        global_settings: Global tier
        logger: Optional logger for progress lines

    Returns:
        LoggingConfig: The resolved configuration
    """
    logger = logger or _logger
    config = merge_config(LogSettings.from_dict(entry.logs), global_settings, logger=logger)
    entry.logging_config = config

    if entry.environment is None:
        entry.environment = {}
    entry.environment[LOG_FORMAT_ENV] = config.format
    entry.environment[APPLICATION_LEVEL_ENV] = config.application_level
    entry.environment[SYSTEM_LEVEL_ENV] = config.system_level

    logger.info(f"Configured log format for {function_id}: {config.format}")
    logger.info(f"Configured application log level for {function_id}: {config.application_level}")
    logger.info(f"Configured system log level for {function_id}: {config.system_level}")
    if config.log_group:
        logger.info(f"Configured custom log group for {function_id}: {config.log_group}")

    return config


def configure_logs(manifest, function: str = None, logger=None) -> Dict[str, LoggingConfig]:
    """
    Resolve logging configuration for every function, or only for `function`.

    An unknown function name is logged and nothing is configured.

    Returns:
        dict: Resolved configuration per function id
    """
    logger = logger or _logger
    global_settings = get_global_settings(manifest.custom_logs)
    functions = manifest.functions
    if not functions:
        return {}

    if function:
        if function not in functions:
            logger.error(f"Function {function} not found in serverless.yml")
            return {}
        return {function: configure_function(function, functions[function], global_settings, logger)}

    return {
        function_id: configure_function(function_id, entry, global_settings, logger)
        for function_id, entry in functions.items()
    }


def get_function_name(function_id, entry, service, stage) -> str:
    """Deployed name of a function: its explicit name, else <service>-<stage>-<function_id>."""
    if entry is not None and entry.name:
        return entry.name
    return f"{service}-{stage}-{function_id}"


def get_log_group_name(function_id, entry, service, stage) -> str:
    """Custom log group when one was resolved, else the default /aws/lambda/<name> group."""
    config = entry.logging_config if entry is not None else None
    if config is not None and config.log_group:
        return config.log_group
    return f"/aws/lambda/{get_function_name(function_id, entry, service, stage)}"


def build_logging_payload(config: LoggingConfig, log_group: str) -> Dict[str, str]:
    """
    Build the LoggingConfig block shared by the template and the Lambda API.

    Log levels are only meaningful for structured output, so they are
    omitted entirely for the text format.

    Args:
        config: Resolved configuration
        log_group: Target log group name

    Returns:
        dict: LogFormat, LogGroup and, for JSON only, ApplicationLogLevel and SystemLogLevel
    """
    is_json = config.format.lower() == 'json'
    payload = {
        'LogFormat': 'JSON' if is_json else 'Text',
        'LogGroup': log_group
    }
    if is_json:
        payload['ApplicationLogLevel'] = config.application_level.upper()
        payload['SystemLogLevel'] = config.system_level.upper()
    return payload
