"""pkgcompat: package descriptor normalization and upgrade computation."""

import logging

from rich.console import Console
from rich.logging import RichHandler

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
        )
    ],
)
logging.getLogger("httpx").setLevel(logging.WARNING)

from .descriptors import DescriptorShape, as_package, detect_shape, parse_descriptor  # noqa: E402
from .errors import InstallerFailure, PkgCompatError, UnrecognizedFormat  # noqa: E402
from .models import Package, Requirement, UpgradeCandidate  # noqa: E402
from .registry import (  # noqa: E402
    find_available,
    find_installed,
    is_installed,
    list_available,
    list_installed,
    merge_snapshots,
    parse_registry_entry,
    unsatisfied_requirements,
)
from .upgrades import Installer, apply_upgrades, compute_upgrades  # noqa: E402
from .version import compare_versions, parse_version, version_less, version_to_string  # noqa: E402

__all__ = [
    "DescriptorShape",
    "Installer",
    "InstallerFailure",
    "Package",
    "PkgCompatError",
    "Requirement",
    "UnrecognizedFormat",
    "UpgradeCandidate",
    "apply_upgrades",
    "as_package",
    "compare_versions",
    "compute_upgrades",
    "detect_shape",
    "find_available",
    "find_installed",
    "is_installed",
    "list_available",
    "list_installed",
    "merge_snapshots",
    "parse_descriptor",
    "parse_registry_entry",
    "parse_version",
    "unsatisfied_requirements",
    "version_less",
    "version_to_string",
]
