import logging
from typing import Dict, Any

from lambda_logs.aws.wrapper import AWSWrapper
from lambda_logs.cloudformation.patcher import attach_logging_config
from lambda_logs.config import load_options
from lambda_logs.reconciler import LoggingReconciler
from lambda_logs.resolver import configure_logs
from lambda_logs.state.nested_stack_store import NestedStackConfigStore

_logger = logging.getLogger(__name__)


class ConfigureLambdaLogs:
    """
    Deployment lifecycle hooks that configure CloudWatch logging of every function.

    The host calls the entries of `hooks` at the matching lifecycle phases.
    One instance covers one deployment operation and owns the store that
    carries nested-stack payloads from packaging to post-deploy.

    Args:
        manifest: ServiceManifest of the service being deployed
        options: Options of the invocation (function, stage, region, aws-profile)
        aws_wrapper: Optional AWSWrapper; created on first use otherwise
        logger: Optional logger for progress lines
    """

    def __init__(self, manifest, options: Dict[str, Any] = None, aws_wrapper: AWSWrapper = None, logger=None):
        self.manifest = manifest
        self.options = load_options(options)
        self.logger = logger or _logger
        self.nested_stack_configs = NestedStackConfigStore()
        self._aws_wrapper = aws_wrapper

        # Explicit options win over the manifest, which wins over environment defaults
        options = options or {}
        if options.get('stage') or not self.manifest.declared_stage:
            self.manifest.stage = self.options.stage
        if options.get('region') or not self.manifest.declared_region:
            self.manifest.region = self.options.region

        self.hooks = {
            'before:package:initialize': self.configure_logs,
            'before:deploy:function:packageFunction': self.configure_logs,
            'before:deploy:deploy': self.configure_logs,
            'after:package:finalize': self.attach_logging_config,
            'after:deploy:deploy': self.update_logging_post_deploy,
            'after:deploy:function:deploy': self.update_function_logging_post_deploy,
        }

    @property
    def aws_wrapper(self) -> AWSWrapper:
        if self._aws_wrapper is None:
            self._aws_wrapper = AWSWrapper(
                sso_profile_name=self.options.sso_profile,
                region_name=self.manifest.region
            )
        return self._aws_wrapper

    def run_hook(self, name: str):
        """Run the handler registered for a lifecycle hook."""
        return self.hooks[name]()

    def configure_logs(self):
        return configure_logs(self.manifest, function=self.options.function, logger=self.logger)

    def attach_logging_config(self):
        return attach_logging_config(self.manifest, self.nested_stack_configs, logger=self.logger)

    def _reconciler(self) -> LoggingReconciler:
        return LoggingReconciler(self.manifest, self.aws_wrapper, self.nested_stack_configs, logger=self.logger)

    def update_logging_post_deploy(self):
        if self.options.function:
            return {}
        try:
            reconciler = self._reconciler()
        except Exception as e:
            self.logger.error(f"Could not create AWS session for logging updates: {e}", exc_info=True)
            return {}
        return reconciler.update_logging_post_deploy()

    def update_function_logging_post_deploy(self):
        if not self.options.function:
            return None
        try:
            reconciler = self._reconciler()
        except Exception as e:
            self.logger.error(f"Could not create AWS session for logging updates: {e}", exc_info=True)
            return None
        return reconciler.update_function_logging_post_deploy(self.options.function)
