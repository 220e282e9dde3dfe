import logging
from typing import Dict, Optional

from lambda_logs.resolver import build_logging_payload, get_function_name, get_log_group_name

_logger = logging.getLogger(__name__)


class LoggingReconciler:
    """
    Applies logging configuration through the Lambda API after deployment.

    This backs up the template patch, and is the only path for functions
    that were found in nested stacks.

    Args:
        manifest: ServiceManifest with resolved configs
        aws_wrapper: AWSWrapper used for the update calls
        store: NestedStackConfigStore filled while patching the template
        logger: Optional logger for progress lines
    """

    def __init__(self, manifest, aws_wrapper, store, logger=None):
        self.manifest = manifest
        self.aws_wrapper = aws_wrapper
        self.store = store
        self.logger = logger or _logger

    def update_logging_post_deploy(self, function: str = None) -> Dict[str, bool]:
        """
        Update every function of the service, one at a time.

        Skipped when a single function is being deployed; that case is
        handled by update_function_logging_post_deploy.

        Returns:
            dict: Whether the update succeeded, per function id
        """
        if function:
            return {}

        self.logger.info("Ensuring logging configuration is applied via AWS SDK...")

        results = {}
        for function_id, entry in (self.manifest.functions or {}).items():
            stored_config = self.store.get(function_id)
            if stored_config:
                self.logger.info(f"Applying stored config for nested stack function: {function_id}")
            results[function_id] = self.update_function_logging(function_id, entry, stored_config)
        return results

    def update_function_logging_post_deploy(self, function: str = None) -> Optional[bool]:
        """Update only the function targeted by a single-function deployment."""
        if not function:
            return None

        entry = (self.manifest.functions or {}).get(function)
        if entry is None:
            self.logger.error(f"Function {function} not found in serverless.yml")
            return None

        stored_config = self.store.get(function)
        if stored_config:
            self.logger.info(f"Function {function} was detected in a nested stack")

        return self.update_function_logging(function, entry, stored_config)

    def update_function_logging(self, function_id: str, entry, stored_config: Dict[str, str] = None) -> bool:
        """
        Apply the logging configuration of one function.

        A stored nested-stack payload is used as is; otherwise the payload
        is rebuilt from the resolved config. Failures are logged and never
        raised.

        Args:
            function_id: Function key in the manifest
            entry: FunctionEntry
            stored_config: Payload stored while patching, if any

        Returns:
            bool: True if the Lambda API accepted the update
        """
        try:
            if stored_config:
                logging_config = stored_config
                self.logger.debug(f"Using stored nested stack config for {function_id}")
            else:
                config = entry.logging_config
                if config is None:
                    self.logger.warning(f"No validated log config found for {function_id}")
                    return False
                logging_config = build_logging_payload(
                    config, get_log_group_name(function_id, entry, self.manifest.service, self.manifest.stage))

            function_name = get_function_name(function_id, entry, self.manifest.service, self.manifest.stage)
            self.logger.info(f"Updating logging config for {function_name}...")

            self.aws_wrapper.update_function_logging_config(function_name, logging_config)

            self.logger.info(f"Successfully updated logging config for {function_name}")
            return True
        except Exception as e:
            self.logger.warning(f"Failed to update logging for {function_id}: {e}")
            return False
