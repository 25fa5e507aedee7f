from os import getenv
from pathlib import Path

# base directory; subdirectories are created on first write, not at import
DATA_DIR = Path(getenv("PKGCOMPAT_DATA_DIR", "data")).resolve()

# root under which installed packages live as <name>-<version>/ directories
PACKAGE_DIR = Path(getenv("PKGCOMPAT_PACKAGE_DIR", DATA_DIR / "packages")).resolve()

# unpacked package sources, one <name>-<version>/ directory per archive entry
ARCHIVE_DIR = Path(getenv("PKGCOMPAT_ARCHIVE_DIR", DATA_DIR / "archives")).resolve()

# downloaded registry indexes, mirrored by host and path
CACHE_DIR = Path(getenv("PKGCOMPAT_CACHE_DIR", DATA_DIR / "cache")).resolve()

# registry index published at the root of every archive
ARCHIVE_CONTENTS = "archive-contents.json"

# control-style metadata file written into every installed package directory
DESCRIPTOR_FILE = "pkg-info"
