"""Upgrade computation and sequential application."""

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from pkgcompat.errors import InstallerFailure
from pkgcompat.models import Package, UpgradeCandidate
from pkgcompat.registry import RegistrySnapshot, find_available, find_installed, list_installed
from pkgcompat.version import version_less

logger = logging.getLogger(__name__)


@runtime_checkable
class Installer(Protocol):
    """Performs installs and deletes on behalf of apply_upgrades."""

    def install(self, package: Package, force: bool) -> object: ...

    def delete(self, package: Package) -> object: ...


def compute_upgrades(
    installed: RegistrySnapshot,
    available: RegistrySnapshot,
    candidates: Iterable[Package | str] | None = None,
) -> list[UpgradeCandidate]:
    """Pair installed packages with strictly newer available versions.

    Args:
        installed: Installed registry snapshot.
        available: Available (archive) registry snapshot.
        candidates: Packages to check, or names resolved against the installed
            snapshot. Defaults to every installed package. Unknown names are
            skipped.

    Returns:
        Upgrade candidates in the order of ``candidates``.
    """
    if candidates is None:
        candidates = list_installed(installed)

    upgrades: list[UpgradeCandidate] = []
    for candidate in candidates:
        if isinstance(candidate, str):
            resolved = find_installed(candidate, installed)
            if resolved is None:
                logger.debug(f"Skipping {candidate!r}: not installed")
                continue
            candidate = resolved

        newest = next(iter(find_available(candidate.name, available)), None)
        if newest is not None and version_less(candidate.version, newest.version):
            upgrades.append(UpgradeCandidate(installed=candidate, available=newest))

    logger.debug(f"Found {len(upgrades)} upgradable package(s)")
    return upgrades


def apply_upgrades(
    upgrades: Sequence[UpgradeCandidate],
    installer: Installer,
    preserve_obsolete: bool = False,
) -> Sequence[UpgradeCandidate]:
    """Install each upgrade, then delete the obsolete version, strictly in order.

    Not transactional: on the first installer error processing stops, nothing
    already done is rolled back, and the remaining upgrades are left untouched.

    Args:
        upgrades: Candidates as returned by compute_upgrades.
        installer: Collaborator performing the install and delete calls.
        preserve_obsolete: Keep the old version installed instead of deleting it.

    Returns:
        The ``upgrades`` sequence, unchanged.

    Raises:
        InstallerFailure: Chained to the installer's own exception.
    """
    completed: list[UpgradeCandidate] = []
    for upgrade in upgrades:
        phase = "install"
        try:
            logger.info(f"Upgrading {upgrade.label}")
            installer.install(upgrade.available, force=True)
            if not preserve_obsolete:
                phase = "delete"
                logger.info(f"Deleting obsolete {upgrade.installed.full_name}")
                installer.delete(upgrade.installed)
        except Exception as e:
            raise InstallerFailure(upgrade, phase, tuple(completed)) from e
        completed.append(upgrade)

    return upgrades
