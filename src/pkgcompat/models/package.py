"""Normalized package models."""

from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, computed_field

from pkgcompat.version import compare_versions, version_to_string

VersionVector = Annotated[tuple[NonNegativeInt, ...], Field(min_length=1)]
OptionalStr = str | None


class Requirement(BaseModel):
    """A dependency on another package at a minimum version."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: VersionVector = (0,)

    def __str__(self) -> str:
        return f"{self.name} (>= {version_to_string(self.version)})"


class Package(BaseModel):
    """One version of a package, installed or available from an archive."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: VersionVector
    summary: OptionalStr = None
    requirements: tuple[Requirement, ...] = ()
    install_directory: Path | None = None
    kind: OptionalStr = None
    archive: OptionalStr = None
    extras: dict[str, Any] = Field(default_factory=dict, repr=False)

    def __hash__(self) -> int:
        # extras is a dict, so hash on the identifying fields only
        return hash((self.name, self.version, self.install_directory, self.archive))

    @computed_field
    @property
    def version_str(self) -> str:
        """Dotted version string."""
        return version_to_string(self.version)

    @property
    def is_installed(self) -> bool:
        """True if the package has a local install directory."""
        return self.install_directory is not None

    @property
    def full_name(self) -> str:
        """Name and version joined the way install directories are named."""
        return f"{self.name}-{self.version_str}"

    def satisfies(self, requirement: Requirement) -> bool:
        """Return True if this package meets the requirement."""
        return self.name == requirement.name and compare_versions(self.version, requirement.version) >= 0


class UpgradeCandidate(BaseModel):
    """An installed package paired with a strictly newer available one."""

    model_config = ConfigDict(frozen=True)

    installed: Package
    available: Package

    @property
    def name(self) -> str:
        return self.installed.name

    @property
    def label(self) -> str:
        """Human-readable ``name old -> new`` label."""
        return f"{self.name} {self.installed.version_str} -> {self.available.version_str}"
