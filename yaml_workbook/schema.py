"""JSON Schema navigation for form workbooks."""

# Module responsibilities:
# - Parse and meta-validate form schemas.
# - Resolve local $ref pointers and merge allOf parts.
# - Look up the schema fragment for a structural path and build a skeleton tree.

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from .errors import MalformedInputError
from .nodes import MappingNode, Node, ScalarNode, SequenceNode
from .utils.log import get_logger

logger = get_logger("schema")

ROOT = "$"
ITEMS = "[*]"

SchemaPath = Tuple[str, ...]
SchemaSource = Union[str, bytes, Mapping[str, Any]]


def load_schema(source: SchemaSource) -> Dict[str, Any]:
    """Parse ``source`` into a JSON Schema dictionary.

    Args:
        source: JSON text, UTF-8 bytes or an already decoded mapping.

    Returns:
        The schema as a plain dictionary.

    Raises:
        MalformedInputError: When the text is not JSON or the schema is invalid.
    """

    if isinstance(source, Mapping):
        schema: Any = deepcopy(dict(source))
    else:
        try:
            schema = json.loads(source)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedInputError(f"Form schema is not valid JSON: {exc}") from exc
    if not isinstance(schema, dict):
        raise MalformedInputError("Form schema must be a JSON object")
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as exc:
        raise MalformedInputError(f"Form schema is invalid: {exc.message}") from exc
    return schema


def load_schema_file(path: Path) -> Dict[str, Any]:
    """Read and parse a JSON Schema file."""

    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    return load_schema(path.read_text(encoding="utf-8"))


def format_path(path: Sequence[str]) -> str:
    """Render ``("$", "tags", "[*]")`` as ``$.tags[*]``."""

    rendered = ""
    for segment in path:
        if segment == ROOT:
            rendered += ROOT
        elif segment == ITEMS:
            rendered += ITEMS
        else:
            rendered += f".{segment}"
    return rendered


def _scalar_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class SchemaNavigator:
    """Resolve schema fragments by structural path."""

    def __init__(self, schema: Mapping[str, Any], *, skip_all_of: bool = False) -> None:
        self.schema = dict(schema)
        self.skip_all_of = skip_all_of

    def _pointer(self, ref: str) -> Optional[Dict[str, Any]]:
        if not ref.startswith("#"):
            logger.warning("Only local $ref pointers are followed", extra={"ref": ref})
            return None
        target: Any = self.schema
        for raw in ref[1:].split("/"):
            if not raw:
                continue
            part = raw.replace("~1", "/").replace("~0", "~")
            if isinstance(target, dict) and part in target:
                target = target[part]
            elif isinstance(target, list) and part.isdigit() and int(part) < len(target):
                target = target[int(part)]
            else:
                logger.warning("Unresolvable $ref pointer", extra={"ref": ref})
                return None
        return target if isinstance(target, dict) else None

    def resolve(self, fragment: Optional[Mapping[str, Any]], _seen: Tuple[str, ...] = ()) -> Dict[str, Any]:
        """Follow ``$ref`` and merge ``allOf`` parts of ``fragment``."""

        if not isinstance(fragment, Mapping):
            return {}
        resolved = dict(fragment)
        ref = resolved.pop("$ref", None)
        if isinstance(ref, str) and ref not in _seen:
            target = self._pointer(ref)
            if target is not None:
                base = self.resolve(target, _seen + (ref,))
                base.update(resolved)
                resolved = base
        parts = resolved.pop("allOf", None)
        if parts and not self.skip_all_of:
            for part in parts:
                resolved = _merge(resolved, self.resolve(part, _seen))
        return resolved

    def fragment_for(self, path: Sequence[str]) -> Optional[Dict[str, Any]]:
        """Return the resolved fragment at ``path`` or ``None`` when it is not described."""

        fragment = self.resolve(self.schema)
        for segment in path:
            if segment == ROOT:
                continue
            if segment == ITEMS:
                items = fragment.get("items")
                if isinstance(items, list):
                    items = items[0] if items else None
                if not isinstance(items, Mapping):
                    return None
                fragment = self.resolve(items)
                continue
            properties = fragment.get("properties") or {}
            if segment not in properties:
                return None
            fragment = self.resolve(properties[segment])
        return fragment

    def skeleton(self) -> Node:
        """Build a blank document tree mirroring the schema's structure."""

        return self._skeleton(self.schema, ())

    def _skeleton(self, raw: Any, refs: Tuple[str, ...]) -> Node:
        ref = raw.get("$ref") if isinstance(raw, Mapping) else None
        if isinstance(ref, str):
            if ref in refs:
                return ScalarNode(None)
            refs = refs + (ref,)
        fragment = self.resolve(raw)
        if "const" in fragment:
            return ScalarNode(_scalar_text(fragment["const"]))
        kind = _primary_type(fragment)
        if kind == "object" or (kind is None and "properties" in fragment):
            entries: List[Tuple[Node, Node]] = []
            for key, child in (fragment.get("properties") or {}).items():
                entries.append((ScalarNode(str(key)), self._skeleton(child, refs)))
            return MappingNode(entries)
        if kind == "array" or (kind is None and "items" in fragment):
            items = fragment.get("items")
            if isinstance(items, list):
                items = items[0] if items else {}
            return SequenceNode([self._skeleton(items or {}, refs)])
        return ScalarNode(_scalar_text(fragment.get("default")))


def _primary_type(fragment: Mapping[str, Any]) -> Optional[str]:
    kind = fragment.get("type")
    if isinstance(kind, list):
        non_null = [entry for entry in kind if entry != "null"]
        return non_null[0] if non_null else None
    return kind if isinstance(kind, str) else None


def _merge(base: Dict[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in extra.items():
        if key == "properties" and isinstance(value, Mapping):
            properties = dict(merged.get("properties") or {})
            for name, child in value.items():
                properties.setdefault(name, child)
            merged["properties"] = properties
        elif key == "required" and isinstance(value, list):
            required = list(merged.get("required") or [])
            required.extend(name for name in value if name not in required)
            merged["required"] = required
        else:
            merged.setdefault(key, value)
    return merged


__all__ = [
    "ROOT",
    "ITEMS",
    "SchemaPath",
    "SchemaNavigator",
    "load_schema",
    "load_schema_file",
    "format_path",
]
