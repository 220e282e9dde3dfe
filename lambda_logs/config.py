import logging
import os
from typing import Dict, Any, Optional, NamedTuple

logger = logging.getLogger(__name__)


class LogSettings(NamedTuple):
    """One tier of log settings. Unset fields are None."""
    format: Optional[str] = None
    application_level: Optional[str] = None
    system_level: Optional[str] = None
    log_group: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> 'LogSettings':
        """
        Build a tier from a manifest `logs` block.

        Empty strings and other falsy values are treated as unset so that
        they fall through to the next tier. A block that is not a mapping
        is ignored with a warning.

        Args:
            raw: Mapping with optional format, applicationLevel, systemLevel and logGroup keys

        Returns:
            LogSettings: The tier with unset fields left as None
        """
        raw = raw or {}
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring log settings that are not a mapping: {raw!r}")
            raw = {}
        return cls(
            format=raw.get('format') or None,
            application_level=raw.get('applicationLevel') or None,
            system_level=raw.get('systemLevel') or None,
            log_group=raw.get('logGroup') or None
        )


# Built-in defaults. Text is the AWS default format; levels only apply to JSON.
LOG_DEFAULTS = LogSettings(
    format='text',
    application_level='ERROR',
    system_level='WARN',
    log_group=None
)


class DeployOptions(NamedTuple):
    """Options of the current deployment invocation."""
    # Single-function selector (deploy function -f <name>)
    function: Optional[str]

    # Target environment
    stage: str
    region: str

    # AWS configuration
    sso_profile: Optional[str]


def load_options(options: Dict[str, Any] = None) -> DeployOptions:
    """
    Load deployment options from environment variables and optional CLI options.

    Option values override environment variables when present.

    Args:
        options: Optional options passed by the deployment host

    Returns:
        DeployOptions: Options of the current invocation
    """
    options = options or {}

    function = options.get('function') or os.environ.get('FUNCTION')
    stage = options.get('stage') or os.environ.get('STAGE', 'dev')
    region = options.get('region') or os.environ.get('AWS_REGION', 'us-east-1')
    sso_profile = options.get('aws-profile') or options.get('sso_profile') or os.environ.get('SSO_PROFILE')

    return DeployOptions(
        function=function,
        stage=stage,
        region=region,
        sso_profile=sso_profile
    )
