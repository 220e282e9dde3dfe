import logging
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_STAGE = 'dev'
DEFAULT_REGION = 'us-east-1'


class _ManifestLoader(yaml.SafeLoader):
    """SafeLoader that accepts CloudFormation short-form intrinsics (!Ref, !GetAtt, ...)."""


def _construct_intrinsic(loader, tag_suffix, node):
    if isinstance(node, yaml.ScalarNode):
        value = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)
    key = tag_suffix if tag_suffix in ('Ref', 'Condition') else f"Fn::{tag_suffix}"
    return {key: value}


_ManifestLoader.add_multi_constructor('!', _construct_intrinsic)


class FunctionEntry:
    """A function declared in the service manifest."""

    def __init__(self, function_id: str, name: Optional[str] = None, handler: Optional[str] = None,
                 logs: Optional[Dict[str, Any]] = None, environment: Optional[Dict[str, str]] = None):
        self.function_id = function_id
        self.name = name
        self.handler = handler
        self.logs = logs
        self.environment = environment
        # Set by the resolver
        self.logging_config = None

    @classmethod
    def from_dict(cls, function_id: str, raw: Optional[Dict[str, Any]]) -> 'FunctionEntry':
        raw = raw or {}
        return cls(
            function_id=function_id,
            name=raw.get('name'),
            handler=raw.get('handler'),
            logs=raw.get('logs'),
            environment=raw.get('environment')
        )

    def __repr__(self):
        return f"FunctionEntry({self.function_id!r}, name={self.name!r}, logging_config={self.logging_config!r})"


class ServiceManifest:
    """
    In-memory view of a service manifest and its compiled template.

    The compiled template is attached by the host once packaging has
    produced it; it is None before that.
    """

    def __init__(self, service: str, stage: str = None, region: str = None,
                 functions: Optional[Dict[str, FunctionEntry]] = None,
                 custom_logs: Optional[Dict[str, Any]] = None,
                 compiled_template: Optional[Dict[str, Any]] = None):
        self.service = service
        # None means the manifest leaves stage or region to the deployment options
        self.declared_stage = stage
        self.declared_region = region
        self.stage = stage or DEFAULT_STAGE
        self.region = region or DEFAULT_REGION
        self.functions = functions if functions is not None else {}
        self.custom_logs = custom_logs
        self.compiled_template = compiled_template

    @classmethod
    def from_dict(cls, data: Dict[str, Any], stage: str = None, region: str = None) -> 'ServiceManifest':
        """
        Build a manifest from parsed serverless.yml content.

        Args:
            data: Parsed manifest
            stage: Optional stage override (takes precedence over provider.stage)
            region: Optional region override (takes precedence over provider.region)

        Returns:
            ServiceManifest: The manifest

        Raises:
            ValueError: If the manifest does not declare a service name
        """
        service = data.get('service')
        # Framework v1 allowed `service: {name: ...}`
        if isinstance(service, dict):
            service = service.get('name')
        if not service:
            raise ValueError("Manifest does not declare a service name")

        provider = data.get('provider') or {}
        custom = data.get('custom') or {}
        functions = {
            function_id: FunctionEntry.from_dict(function_id, raw)
            for function_id, raw in (data.get('functions') or {}).items()
        }

        return cls(
            service=service,
            stage=stage or provider.get('stage'),
            region=region or provider.get('region'),
            functions=functions,
            custom_logs=custom.get('logs')
        )


def load_manifest(path, stage: str = None, region: str = None) -> ServiceManifest:
    """
    Load a service manifest from a YAML file.

    Args:
        path: Path to serverless.yml
        stage: Optional stage override
        region: Optional region override

    Returns:
        ServiceManifest: The parsed manifest

    Raises:
        FileNotFoundError: If the manifest file does not exist
        yaml.YAMLError: If the file is not valid YAML
        ValueError: If the manifest has no service name
    """
    manifest_path = Path(path)
    if not manifest_path.is_file():
        logger.error(f"Manifest file not found at path: {manifest_path}")
        raise FileNotFoundError(f"Manifest file not found: {manifest_path}")

    with open(manifest_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.load(f, Loader=_ManifestLoader) or {}
        except yaml.YAMLError as e:
            logger.error(f"Error parsing manifest {manifest_path}: {e}")
            raise

    manifest = ServiceManifest.from_dict(data, stage=stage, region=region)
    logger.debug(f"Loaded manifest for service {manifest.service} with {len(manifest.functions)} functions")
    return manifest
