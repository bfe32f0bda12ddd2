"""
CIN Census Extraction

Declarative, path-scoped extraction of typed rows from a SourceDocument.

Key features:
- ExtractionSpec: containment path + field projections
- FieldSpec: output name, source location, semantic type
- coerce_value: raw text -> typed value, absent on failure (never raises)
- resolve_wrapped_values: two-step wrapper join for nested scalar lists
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..document import SourceDocument
from ..models import FieldType


# =============================================================================
# Specs
# =============================================================================

@dataclass(frozen=True)
class FieldSpec:
    """
    One output column of an extraction.

    Attributes:
        name: Output field name
        location: Source location relative to the selected element
        type: Semantic type the raw text is coerced to
    """
    name: str
    location: str
    type: FieldType = FieldType.TEXT


@dataclass(frozen=True)
class ExtractionSpec:
    """
    A path-scoped row extraction.

    Attributes:
        path: Absolute containment path selecting one element per row
        fields: Field projections evaluated against each selected element
    """
    path: str
    fields: tuple[FieldSpec, ...]


# =============================================================================
# Coercion
# =============================================================================

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})(Z|[+-]\d{2}:\d{2})?$")
_DATETIME_RE = re.compile(
    r"^(\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d)(\.\d+)?(\.0)?(Z|[+-]\d\d:\d\d)?$"
)
_TRUE_TOKENS = frozenset({"true", "1"})
_FALSE_TOKENS = frozenset({"false", "0"})


def coerce_value(raw: Optional[str], field_type: FieldType) -> Any:
    """
    Coerce raw source text to a typed value.

    Blank or missing text is absent. Text that does not fit the type is
    also absent; the gap surfaces later only if a rule checks the field.

    Args:
        raw: Raw text from the document (may be None)
        field_type: Target semantic type

    Returns:
        The typed value, or None
    """
    if raw is None or not raw.strip():
        return None

    if field_type == FieldType.TEXT:
        return raw

    text = raw.strip()

    if field_type == FieldType.INTEGER:
        return int(text) if _INTEGER_RE.match(text) else None

    if field_type == FieldType.DATE:
        match = _DATE_RE.match(text)
        if not match:
            return None
        try:
            return date.fromisoformat(match.group(1))
        except ValueError:
            return None

    if field_type == FieldType.BOOLEAN:
        token = text.lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
        return None

    if field_type == FieldType.DATETIME:
        return _parse_datetime(text)

    raise ValueError(f"Unsupported field type: {field_type}")


def _parse_datetime(text: str) -> Optional[datetime]:
    """Parse the census timestamp form to millisecond precision; the zone suffix is dropped."""
    match = _DATETIME_RE.match(text)
    if not match:
        return None
    try:
        value = datetime.strptime(match.group(1), "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    fraction = match.group(2)
    if fraction:
        value = value.replace(microsecond=int(fraction[1:4].ljust(3, "0")) * 1000)
    return value


# =============================================================================
# Row Extraction
# =============================================================================

def extract_rows(document: SourceDocument, spec: ExtractionSpec) -> list[dict[str, Any]]:
    """
    Run one extraction spec against a document.

    Args:
        document: Parsed source document
        spec: Path and field projections

    Returns:
        One dict per selected element, in document order
    """
    rows = []
    for element in document.select(spec.path):
        rows.append({
            f.name: coerce_value(document.resolve(element, f.location), f.type)
            for f in spec.fields
        })
    return rows


def resolve_wrapped_values(
    wrappers: Iterable[dict[str, Any]],
    leaves: Iterable[dict[str, Any]],
    wrapper_key: str = "wrapper_id",
    parent_key: str = "parent_id",
) -> list[dict[str, Any]]:
    """
    Join leaf rows to their wrapper's parent.

    A repeated scalar (e.g. <Disability>) sits under a wrapper element
    (<Disabilities>). The wrapper pass yields (wrapper identity, parent
    identity); the leaf pass yields (leaf identity, wrapper identity, value).
    Inner-joining the two on wrapper identity gives each leaf its real
    parent. Leaves with no matching wrapper are dropped.

    Args:
        wrappers: Rows carrying `wrapper_key` and `parent_key`
        leaves: Rows carrying `wrapper_key` plus their own fields
        wrapper_key: Join column name
        parent_key: Column copied from the wrapper onto each leaf

    Returns:
        Leaf rows (minus the wrapper column) with the parent column added,
        in leaf order
    """
    parents = {
        w[wrapper_key]: w[parent_key]
        for w in wrappers
        if w.get(wrapper_key) is not None
    }
    joined = []
    for leaf in leaves:
        wrapper_id = leaf.get(wrapper_key)
        if wrapper_id not in parents:
            continue
        row = {k: v for k, v in leaf.items() if k != wrapper_key}
        row[parent_key] = parents[wrapper_id]
        joined.append(row)
    return joined
