"""Install directory layout and a filesystem installer."""

import logging
import shutil
from pathlib import Path

from pkgcompat.constants import ARCHIVE_DIR, DESCRIPTOR_FILE, PACKAGE_DIR
from pkgcompat.models import Package
from pkgcompat.sources import scan_install_root, write_package_file

logger = logging.getLogger(__name__)


class PackageDirectory:
    """Root directory holding installed packages as ``<name>-<version>/``."""

    def __init__(self, root: Path | None = None):
        """Initialize the package directory.

        Args:
            root: Install root. Defaults to PACKAGE_DIR.
        """
        self.root = root if root is not None else PACKAGE_DIR

    def install_dir(self, package: Package) -> Path:
        return self.root / package.full_name

    def snapshot(self) -> dict[str, list[dict]]:
        """Installed registry snapshot read from the root."""
        return scan_install_root(self.root)

    def disk_usage(self, package: Package) -> int:
        """Total size in bytes of an installed package's files."""
        if package.install_directory is None or not package.install_directory.is_dir():
            return 0
        return sum(f.stat().st_size for f in package.install_directory.rglob("*") if f.is_file())


class DirectoryInstaller:
    """Installs packages by copying unpacked sources into a PackageDirectory.

    Sources are expected at ``<archive_dir>/<name>-<version>/``; fetching and
    unpacking them is someone else's job.
    """

    def __init__(self, directory: PackageDirectory, archive_dir: Path | None = None):
        self.directory = directory
        self.archive_dir = archive_dir if archive_dir is not None else ARCHIVE_DIR

    def install(self, package: Package, force: bool = False) -> Package:
        """Install a package and return it with its install directory set.

        Raises:
            FileNotFoundError: If the unpacked source is missing.
            FileExistsError: If the target exists and force is False.
        """
        source = self.archive_dir / package.full_name
        if not source.is_dir():
            raise FileNotFoundError(f"No unpacked source for {package.full_name} in {self.archive_dir}")

        target = self.directory.install_dir(package)
        if target.exists():
            if not force:
                raise FileExistsError(f"{target} already exists, will not overwrite.")
            logger.debug(f"Replacing existing install at {target}")
            shutil.rmtree(target)

        self.directory.root.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, target)
        installed = package.model_copy(update={"install_directory": target})
        write_package_file(target / DESCRIPTOR_FILE, installed)
        logger.info(f"Installed {package.full_name} to {target}")
        return installed

    def delete(self, package: Package) -> None:
        """Remove an installed package's directory.

        Raises:
            ValueError: If the package has no install directory.
        """
        if package.install_directory is None:
            raise ValueError(f"{package.full_name} is not installed")
        shutil.rmtree(package.install_directory)
        logger.info(f"Deleted {package.full_name} from {package.install_directory}")
