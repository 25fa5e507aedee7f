"""Parse raw package descriptors into Package models.

Three descriptor shapes are understood, tried in this order:

* structured: a mapping such as ``{"name": "foo", "version": [1, 2], "reqs": [...]}``
* positional: ``[version, requirements, summary, kind?, extras?]``, as found in
  archive-contents indexes; the package name is supplied by the caller
* legacy: ``[name, requirements, summary, version, commentary]``
"""

import logging
from collections.abc import Mapping, Sequence
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from pkgcompat.errors import UnrecognizedFormat
from pkgcompat.models import Package, Requirement
from pkgcompat.version import is_version_vector, parse_version

logger = logging.getLogger(__name__)


class DescriptorShape(StrEnum):
    """Known raw descriptor shapes."""

    STRUCTURED = "structured"
    POSITIONAL = "positional"
    LEGACY = "legacy"


class _StructuredDescriptor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    version: Any
    summary: str | None = Field(
        default=None, validation_alias=AliasChoices("summary", "desc", "description")
    )
    requirements: list[Any] | None = Field(
        default=None, validation_alias=AliasChoices("requirements", "reqs")
    )
    install_directory: Path | None = Field(
        default=None, validation_alias=AliasChoices("install_directory", "dir")
    )
    kind: str | None = None
    archive: str | None = None
    extras: dict[str, Any] | None = None


def _is_sequence(raw: Any) -> bool:
    return isinstance(raw, Sequence) and not isinstance(raw, (str, bytes))


def detect_shape(raw: Any) -> DescriptorShape:
    """Classify a raw descriptor.

    Raises:
        UnrecognizedFormat: If raw matches none of the known shapes.
    """
    if isinstance(raw, Mapping):
        if "version" in raw:
            return DescriptorShape.STRUCTURED
        raise UnrecognizedFormat(raw, "descriptor mapping has no version")
    if _is_sequence(raw):
        if 3 <= len(raw) <= 5 and is_version_vector(raw[0]):
            return DescriptorShape.POSITIONAL
        if len(raw) == 5 and isinstance(raw[0], str):
            return DescriptorShape.LEGACY
    raise UnrecognizedFormat(raw, "unrecognized descriptor shape")


def is_descriptor(raw: Any) -> bool:
    """Return True if raw matches one of the known descriptor shapes."""
    try:
        detect_shape(raw)
    except UnrecognizedFormat:
        return False
    return True


def parse_requirement(raw: Any) -> Requirement:
    """Normalize one requirement: ``[name]``, ``[name, version]``, a mapping or a bare name."""
    if isinstance(raw, Requirement):
        return raw
    if isinstance(raw, str):
        name, version = raw, (0,)
    elif isinstance(raw, Mapping) and isinstance(raw.get("name"), str):
        name, version = raw["name"], raw.get("version", (0,))
    elif _is_sequence(raw) and 1 <= len(raw) <= 2 and isinstance(raw[0], str):
        name, version = raw[0], raw[1] if len(raw) == 2 else (0,)
    else:
        raise UnrecognizedFormat(raw, "unrecognized requirement")
    if not name:
        raise UnrecognizedFormat(raw, "requirement has an empty name")
    return Requirement(name=name, version=parse_version(version))


def parse_requirements(raw: Any) -> tuple[Requirement, ...]:
    """Normalize a requirement list; None means no requirements."""
    if raw is None:
        return ()
    if not _is_sequence(raw):
        raise UnrecognizedFormat(raw, "requirements must be a list")
    return tuple(parse_requirement(item) for item in raw)


def _parse_extras(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    # association list: [[key, value], ...]
    if _is_sequence(raw) and all(_is_sequence(pair) and len(pair) == 2 for pair in raw):
        return {str(key): value for key, value in raw}
    raise UnrecognizedFormat(raw, "extras must be a mapping or a list of pairs")


def _check_summary(raw: Any, summary: Any) -> str | None:
    if summary is None or isinstance(summary, str):
        return summary
    raise UnrecognizedFormat(raw, "summary must be a string")


def _structured_fields(raw: Mapping) -> dict[str, Any]:
    try:
        desc = _StructuredDescriptor.model_validate(dict(raw))
    except ValidationError as e:
        raise UnrecognizedFormat(raw, f"invalid structured descriptor ({e.error_count()} errors)") from e
    return {
        "name": desc.name,
        "version": parse_version(desc.version),
        "summary": desc.summary,
        "requirements": parse_requirements(desc.requirements),
        "install_directory": desc.install_directory,
        "kind": desc.kind,
        "archive": desc.archive,
        "extras": desc.extras or {},
    }


def _positional_fields(raw: Sequence) -> dict[str, Any]:
    kind = raw[3] if len(raw) > 3 else None
    if kind is not None and not isinstance(kind, str):
        raise UnrecognizedFormat(raw, "package kind must be a string")
    return {
        "version": parse_version(raw[0]),
        "requirements": parse_requirements(raw[1]),
        "summary": _check_summary(raw, raw[2]),
        "kind": kind,
        "extras": _parse_extras(raw[4] if len(raw) > 4 else None),
    }


def _legacy_fields(raw: Sequence) -> dict[str, Any]:
    name, requirements, summary, version, commentary = raw
    return {
        "name": name,
        "version": parse_version(version),
        "requirements": parse_requirements(requirements),
        "summary": _check_summary(raw, summary),
        "extras": {"commentary": commentary} if commentary is not None else {},
    }


def parse_descriptor(raw: Any, name: str | None = None) -> Package:
    """Normalize a raw descriptor into a Package.

    Args:
        raw: The raw descriptor, in any shape listed in DescriptorShape. A
            Package is returned unchanged.
        name: Package name to use when the descriptor carries none (always the
            case for positional descriptors).

    Raises:
        UnrecognizedFormat: If raw matches no known shape or a field is invalid.
    """
    if isinstance(raw, Package):
        return raw

    shape = detect_shape(raw)
    match shape:
        case DescriptorShape.STRUCTURED:
            fields = _structured_fields(raw)
        case DescriptorShape.POSITIONAL:
            fields = _positional_fields(raw)
        case DescriptorShape.LEGACY:
            fields = _legacy_fields(raw)

    if not fields.get("name"):
        if not name:
            raise UnrecognizedFormat(raw, f"{shape} descriptor has no package name")
        fields["name"] = name

    try:
        package = Package(**fields)
    except ValidationError as e:
        raise UnrecognizedFormat(raw, f"invalid {shape} descriptor ({e.error_count()} errors)") from e
    logger.debug(f"Parsed {shape} descriptor for {package.full_name}")
    return package


def as_package(obj: Any) -> Package:
    """Return obj if it is a Package, otherwise raise UnrecognizedFormat."""
    if isinstance(obj, Package):
        return obj
    raise UnrecognizedFormat(obj, "expected a Package")
