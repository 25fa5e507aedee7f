"""Queries over installed and available registry snapshots.

A registry snapshot maps package names to raw entries. An entry is either a
single descriptor (one version per name) or a list of descriptors (several
versions or architectures per name). Packages are parsed fresh on every call.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, TypeAlias

from pkgcompat.descriptors import is_descriptor, parse_descriptor
from pkgcompat.errors import UnrecognizedFormat
from pkgcompat.models import Package, Requirement
from pkgcompat.version import compare_versions, version_key

logger = logging.getLogger(__name__)

RegistrySnapshot: TypeAlias = Mapping[str, Any]


def _entry_descriptors(name: str, raw_entry: Any) -> list[Any]:
    """Split a registry entry into its raw descriptors."""
    if isinstance(raw_entry, Package) or is_descriptor(raw_entry):
        return [raw_entry]
    if isinstance(raw_entry, Sequence) and not isinstance(raw_entry, (str, bytes)):
        return list(raw_entry)
    raise UnrecognizedFormat(raw_entry, f"unrecognized registry entry for {name!r}")


def _with_name(name: str, package: Package) -> Package:
    if package.name == name:
        return package
    logger.warning(f"Descriptor for {package.name!r} is filed under {name!r}; using {name!r}")
    return package.model_copy(update={"name": name})


def parse_registry_entry(name: str, raw_entry: Any) -> list[Package]:
    """Parse a registry entry into packages, highest version first.

    Args:
        name: The snapshot key; it names every package in the entry.
        raw_entry: A single raw descriptor or a list of raw descriptors.

    Raises:
        UnrecognizedFormat: If the entry or any descriptor in it is malformed.
    """
    packages = [_with_name(name, parse_descriptor(raw, name)) for raw in _entry_descriptors(name, raw_entry)]
    # sorted() is stable with reverse=True, so equal versions keep entry order
    return sorted(packages, key=lambda p: version_key(p.version), reverse=True)


def _flatten(snapshot: RegistrySnapshot) -> list[Package]:
    packages: list[Package] = []
    for name, raw_entry in snapshot.items():
        packages.extend(parse_registry_entry(name, raw_entry))
    return packages


def list_installed(snapshot: RegistrySnapshot) -> list[Package]:
    """All installed packages, in snapshot order, each name highest version first."""
    return _flatten(snapshot)


def list_available(snapshot: RegistrySnapshot) -> list[Package]:
    """All available packages, in snapshot order, each name highest version first."""
    return _flatten(snapshot)


def find_installed(name: str, snapshot: RegistrySnapshot) -> Package | None:
    """Return the highest installed version of a package, or None."""
    raw_entry = snapshot.get(name)
    if raw_entry is None:
        return None
    packages = parse_registry_entry(name, raw_entry)
    return packages[0] if packages else None


def find_available(name: str, snapshot: RegistrySnapshot) -> list[Package]:
    """Return every available version of a package, highest first."""
    raw_entry = snapshot.get(name)
    if raw_entry is None:
        return []
    return parse_registry_entry(name, raw_entry)


def is_installed(package_or_name: str | Package | Requirement, snapshot: RegistrySnapshot) -> bool:
    """Check whether a package is installed.

    A name matches any installed version. A Package or Requirement matches
    when an installed package of that name has the same or a higher version.
    """
    match package_or_name:
        case str() as name:
            return find_installed(name, snapshot) is not None
        case Package() | Requirement():
            installed = find_installed(package_or_name.name, snapshot)
            return installed is not None and compare_versions(installed.version, package_or_name.version) >= 0
        case _:
            raise UnrecognizedFormat(package_or_name, "expected a package name, Package or Requirement")


def unsatisfied_requirements(package: Package, snapshot: RegistrySnapshot) -> list[Requirement]:
    """Return the requirements of package that the installed snapshot does not meet."""
    return [req for req in package.requirements if not is_installed(req, snapshot)]


def merge_snapshots(*snapshots: RegistrySnapshot) -> dict[str, list[Any]]:
    """Combine snapshots (e.g. several archives) into one with descriptor-list entries."""
    merged: dict[str, list[Any]] = {}
    for snapshot in snapshots:
        for name, raw_entry in snapshot.items():
            merged.setdefault(name, []).extend(_entry_descriptors(name, raw_entry))
    return merged
