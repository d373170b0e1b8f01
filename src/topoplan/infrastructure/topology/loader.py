"""Topology document loader for YAML and JSON files."""
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from topoplan.config.utils.env_expansion import expand_env_vars
from topoplan.domain.base.exceptions import ConfigurationError
from topoplan.domain.resource.kind import KindCatalog, ResourceKind
from topoplan.domain.resource.resource import Resource
from topoplan.domain.resource.value_objects import REFERENCE_KEY, Reference
from topoplan.infrastructure.logging.logger import get_logger

from .document import TopologyDocument
from .exceptions import TopologyLoadError

logger = get_logger(__name__)

_RESOURCE_KEYS = {"kind", "logical_id", "properties", "depends_on", "retain_on_delete"}


class TopologyYamlLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!ref LogicalId.output``."""


def _construct_ref(loader: TopologyYamlLoader, node: yaml.Node) -> Reference:
    expression = loader.construct_scalar(node)
    try:
        return Reference.parse(expression)
    except ValueError as e:
        raise yaml.constructor.ConstructorError(None, None, str(e), node.start_mark) from e


TopologyYamlLoader.add_constructor("!ref", _construct_ref)


def load_topology(path: str, environ: Optional[Mapping[str, str]] = None) -> TopologyDocument:
    """
    Load a topology document from a YAML or JSON file.

    Args:
        path: File path; ``.json`` files are parsed as JSON, anything else as YAML
        environ: Environment used for ``${VAR}`` placeholders (defaults to os.environ)

    Raises:
        TopologyLoadError: The file is missing, unparsable or malformed
    """
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise TopologyLoadError(f"Cannot read topology file {file_path}: {e}", str(file_path)) from e

    fmt = "json" if file_path.suffix.lower() == ".json" else "yaml"
    document = loads_topology(content, fmt=fmt, environ=environ, source=str(file_path))
    logger.info(f"Loaded topology '{document.name}' with {len(document.resources)} resources from {file_path}")
    return document


def loads_topology(content: str, fmt: str = "yaml", environ: Optional[Mapping[str, str]] = None,
                   source: Optional[str] = None) -> TopologyDocument:
    """Parse topology document text."""
    try:
        if fmt == "json":
            data = json.loads(content) if content.strip() else {}
        else:
            data = yaml.load(content, Loader=TopologyYamlLoader) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise TopologyLoadError(f"Cannot parse topology document: {e}", source) from e
    return parse_topology(data, environ=environ, source=source)


def parse_topology(data: Any, environ: Optional[Mapping[str, str]] = None,
                   source: Optional[str] = None) -> TopologyDocument:
    """Turn a decoded document into a ``TopologyDocument``."""
    if not isinstance(data, dict):
        raise TopologyLoadError("Topology document must be a mapping", source)

    unknown = sorted(set(data) - {"name", "kinds", "resources", "outputs"})
    if unknown:
        raise TopologyLoadError(f"Unknown top-level keys: {', '.join(unknown)}", source)

    try:
        data = expand_env_vars(data, strict=True, environ=environ, braced_only=True)
    except ConfigurationError as e:
        raise TopologyLoadError(e.message, source) from e

    catalog = _parse_kinds(data.get("kinds") or {}, source)
    resources = _parse_resources(data.get("resources") or {}, source)
    outputs = _parse_outputs(data.get("outputs") or {}, source)
    name = str(data.get("name") or (Path(source).stem if source else "topology"))
    return TopologyDocument(name, catalog, resources, outputs, source)


def _parse_kinds(kinds: Any, source: Optional[str]) -> KindCatalog:
    if not isinstance(kinds, dict):
        raise TopologyLoadError("'kinds' must map kind names to declarations", source)
    catalog = KindCatalog()
    for name in sorted(kinds):
        declaration = kinds[name] or {}
        if not isinstance(declaration, dict):
            raise TopologyLoadError(f"Kind '{name}' must be a mapping", source)
        try:
            catalog.register(ResourceKind.from_dict(name, declaration))
        except (PydanticValidationError, ValueError, TypeError) as e:
            raise TopologyLoadError(f"Invalid kind '{name}': {e}", source) from e
    return catalog


def _parse_resources(resources: Any, source: Optional[str]) -> List[Resource]:
    if isinstance(resources, dict):
        items = [dict(spec or {}, logical_id=logical_id) for logical_id, spec in resources.items()]
    elif isinstance(resources, list):
        items = list(resources)
    else:
        raise TopologyLoadError("'resources' must be a mapping or a list", source)

    parsed = []
    for item in items:
        if not isinstance(item, dict):
            raise TopologyLoadError(f"Resource declaration must be a mapping, got {item!r}", source)
        logical_id = item.get("logical_id", "<unnamed>")
        extra = sorted(set(item) - _RESOURCE_KEYS)
        if extra:
            raise TopologyLoadError(f"Resource '{logical_id}' has unknown keys: {', '.join(extra)}", source)
        properties = item.get("properties") or {}
        if not isinstance(properties, dict):
            raise TopologyLoadError(f"Resource '{logical_id}' properties must be a mapping", source)
        try:
            parsed.append(Resource(
                kind=item.get("kind", ""),
                logical_id=logical_id,
                properties={k: _convert_references(v) for k, v in properties.items()},
                depends_on=frozenset(item.get("depends_on") or []),
                retain_on_delete=item.get("retain_on_delete"),
            ))
        except (PydanticValidationError, ValueError) as e:
            raise TopologyLoadError(f"Invalid resource '{logical_id}': {e}", source) from e
    return parsed


def _parse_outputs(outputs: Any, source: Optional[str]) -> Dict[str, Reference]:
    if not isinstance(outputs, dict):
        raise TopologyLoadError("'outputs' must map names to references", source)
    result = {}
    for name, value in outputs.items():
        try:
            value = _convert_references(value)
            result[name] = value if isinstance(value, Reference) else Reference.parse(value)
        except (PydanticValidationError, ValueError) as e:
            raise TopologyLoadError(f"Invalid output '{name}': {e}", source) from e
    return result


def _convert_references(value: Any) -> Any:
    """Turn ``{"$ref": "Id.output"}`` mappings into ``Reference`` values."""
    if isinstance(value, dict):
        if set(value) == {REFERENCE_KEY}:
            return Reference.parse(value[REFERENCE_KEY])
        return {k: _convert_references(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert_references(v) for v in value]
    return value
