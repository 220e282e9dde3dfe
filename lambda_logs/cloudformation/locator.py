import logging
from typing import Dict, Any, List, NamedTuple, Optional

from lambda_logs.resolver import get_function_name

FUNCTION_RESOURCE_TYPE = 'AWS::Lambda::Function'
NESTED_STACK_RESOURCE_TYPE = 'AWS::CloudFormation::Stack'

_logger = logging.getLogger(__name__)


class FunctionResource(NamedTuple):
    """A located function resource. nested_in is set for synthetic nested-stack descriptors."""
    logical_id: str
    resource: Dict[str, Any]
    nested_in: Optional[str] = None

    @property
    def is_nested(self) -> bool:
        return self.nested_in is not None


def normalize_function_id(function_id: str) -> str:
    """Logical-id form of a function key, e.g. my-func_a -> MyDashfuncUnderscorea."""
    if not function_id:
        return function_id
    normalized = function_id.replace('-', 'Dash').replace('_', 'Underscore')
    return normalized[0].upper() + normalized[1:]


def function_logical_ids(function_id: str) -> List[str]:
    """Logical ids a function resource may carry in the compiled template."""
    ids = [f"{function_id}LambdaFunction"]
    normalized = f"{normalize_function_id(function_id)}LambdaFunction"
    if normalized not in ids:
        ids.append(normalized)
    return ids


def name_variations(function_id: str, stage: str, service: str) -> List[str]:
    """
    Strings that identify a function inside a nested stack logical id.

    Underscores are spelled out first, the way split stacks name their
    resources.
    """
    normalized = function_id.replace('_', 'Underscore')
    return [
        normalized,
        f"{normalized}{stage}",
        f"{normalized}Dash{stage}",
        f"{service}{normalized}",
        f"{service}Dash{stage}Dash{normalized}"
    ]


def matches_nested_stack(logical_id: str, variations: List[str]) -> bool:
    """
    Heuristic test whether a nested stack may contain the function.

    The nested template itself is not inspected, so this is a plain
    containment check of each variation against the stack logical id.
    """
    return any(variation and variation in logical_id for variation in variations)


def find_nested_stacks(resources: Dict[str, Any]) -> List[FunctionResource]:
    """All nested stack resources of a template, in template order."""
    return [
        FunctionResource(logical_id, resource)
        for logical_id, resource in resources.items()
        if isinstance(resource, dict) and resource.get('Type') == NESTED_STACK_RESOURCE_TYPE
    ]


class ResourceLocator:
    """
    Finds the CloudFormation resource of a declared function.

    Args:
        template: Compiled CloudFormation template (may be None)
        service: Service name
        stage: Stage name
        logger: Optional logger for progress lines
    """

    def __init__(self, template: Optional[Dict[str, Any]], service: str, stage: str, logger=None):
        self.template = template
        self.service = service
        self.stage = stage
        self.logger = logger or _logger

    @property
    def resources(self) -> Optional[Dict[str, Any]]:
        if not self.template:
            return None
        return self.template.get('Resources')

    def find_function_resource(self, function_id: str, entry=None) -> Optional[FunctionResource]:
        """
        Locate a function in the top-level template, falling back to nested stacks.

        Args:
            function_id: Function key in the manifest
            entry: FunctionEntry, used to resolve an explicit function name

        Returns:
            FunctionResource or None: The real resource, a nested-stack stub, or None when not found
        """
        resources = self.resources
        if not resources:
            return None

        function_name = get_function_name(function_id, entry, self.service, self.stage)

        found = self.find_resource_in_template(resources, function_id, function_name)
        if found:
            return found

        variations = name_variations(function_id, self.stage, self.service)
        for nested_stack in find_nested_stacks(resources):
            if matches_nested_stack(nested_stack.logical_id, variations):
                self.logger.info(
                    f"Found potential nested stack for function {function_id}: {nested_stack.logical_id}")
                return FunctionResource(
                    logical_id=f"{function_id}LambdaFunction",
                    resource={
                        'Type': FUNCTION_RESOURCE_TYPE,
                        'Properties': {'FunctionName': function_name}
                    },
                    nested_in=nested_stack.logical_id
                )

        return None

    @staticmethod
    def find_resource_in_template(resources: Dict[str, Any], function_id: str,
                                  function_name: str) -> Optional[FunctionResource]:
        """Match a function resource by logical id or by its FunctionName property."""
        logical_ids = function_logical_ids(function_id)
        for logical_id, resource in resources.items():
            if not isinstance(resource, dict) or resource.get('Type') != FUNCTION_RESOURCE_TYPE:
                continue

            if logical_id in logical_ids:
                return FunctionResource(logical_id, resource)

            properties = resource.get('Properties') or {}
            if properties.get('FunctionName') == function_name:
                return FunctionResource(logical_id, resource)

        return None
