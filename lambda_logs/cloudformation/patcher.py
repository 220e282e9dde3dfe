import json
import logging
from typing import Dict

from lambda_logs.cloudformation.locator import ResourceLocator
from lambda_logs.resolver import build_logging_payload, get_function_name, get_log_group_name

_logger = logging.getLogger(__name__)


def attach_logging_config(manifest, store, logger=None) -> Dict[str, Dict[str, str]]:
    """
    Add LoggingConfig to the function resources of the compiled template.

    Functions found in nested stacks cannot be changed here; their payload
    goes to the store and is applied after deployment instead. Re-running
    replaces the block with an identical one and leaves other properties
    alone.

    Args:
        manifest: ServiceManifest with resolved configs and a compiled template
        store: NestedStackConfigStore for the current deployment
        logger: Optional logger for progress lines

    Returns:
        dict: Payload attached per resource logical id
    """
    logger = logger or _logger
    logger.info("Attaching logging configuration to CloudFormation template...")

    functions = manifest.functions
    if not functions:
        return {}

    logger.debug(f"Functions in serverless.yml: {', '.join(functions)}")

    locator = ResourceLocator(manifest.compiled_template, manifest.service, manifest.stage, logger=logger)
    attached = {}

    for function_id, entry in functions.items():
        function_resource = locator.find_function_resource(function_id, entry)
        if not function_resource:
            logger.warning(f"Could not find CloudFormation resource for function: {function_id}")
            continue

        logger.info(f"Found CloudFormation resource for {function_id}: {function_resource.logical_id}")

        config = entry.logging_config
        if config is None:
            logger.warning(f"No validated log config found for {function_id}")
            continue

        payload = build_logging_payload(
            config, get_log_group_name(function_id, entry, manifest.service, manifest.stage))

        if function_resource.is_nested:
            store.put(function_id, payload)
            logger.info(f"Function {function_id} is in nested stack {function_resource.nested_in}. "
                        f"Will apply LoggingConfig in post-deploy phase.")
            logger.debug(f"Configuration stored for post-deployment update: {json.dumps(payload)}")
            logger.debug(f"Function name will resolve to: "
                         f"{get_function_name(function_id, entry, manifest.service, manifest.stage)}")
            continue

        resource = function_resource.resource
        if resource.get('Properties') is None:
            resource['Properties'] = {}
        resource['Properties']['LoggingConfig'] = payload
        attached[function_resource.logical_id] = payload

        logger.info(f"Added LoggingConfig to {function_resource.logical_id}: {json.dumps(payload)}")

    return attached
