"""Descriptor sources: snapshot files, package info files and install roots."""

import gzip
import json
import logging
import re
import zlib
from pathlib import Path
from typing import Any

import aiofiles
import aiogzip
from debian import deb822

from pkgcompat.constants import DESCRIPTOR_FILE
from pkgcompat.errors import UnrecognizedFormat
from pkgcompat.models import Package
from pkgcompat.version import version_to_string

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# fields read_package_file maps onto descriptor fields rather than extras
_CONTROL_FIELDS = {
    "package", "name", "version", "summary", "description", "requires", "depends", "kind", "archive"
}
_FIELD_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")


def _not_utf8(source: Path, e: UnicodeDecodeError) -> UnrecognizedFormat:
    return UnrecognizedFormat(str(source), f"file is not valid UTF-8 (byte {e.start})")


def _parse_snapshot(text: str, source: Path) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise UnrecognizedFormat(str(source), f"snapshot is not valid JSON ({e.msg})") from e
    if not isinstance(data, dict):
        raise UnrecognizedFormat(str(source), "snapshot must be a JSON object")
    logger.debug(f"Loaded {len(data)} registry entries from {source}")
    return data


def load_snapshot(path: Path) -> dict[str, Any]:
    """Load a registry snapshot from a JSON or gzipped JSON file.

    Args:
        path: The snapshot file. A ``.gz`` suffix is read as gzip, falling back
            to plain text if the file is not actually compressed.

    Returns:
        The snapshot mapping, in file order.

    Raises:
        UnrecognizedFormat: If the file is not UTF-8 encoded or not a JSON object.
    """
    raw = path.read_bytes()
    if path.suffix == ".gz":
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError, zlib.error):
            logger.warning("Falling back to plain-text read for %s", path)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise _not_utf8(path, e) from e
    return _parse_snapshot(text, path)


async def load_snapshot_async(path: Path) -> dict[str, Any]:
    """Asynchronously load a registry snapshot; see load_snapshot."""

    async def _read_text() -> str:
        if path.suffix == ".gz":
            async with aiofiles.open(path, "rb") as f:
                magic = await f.read(len(GZIP_MAGIC))
            if magic == GZIP_MAGIC:
                async with aiogzip.AsyncGzipTextFile(path, encoding="utf-8", errors="strict") as f:
                    return "".join([line async for line in f])
            logger.info("Falling back to plain-text read for %s", path, stacklevel=2)
        async with aiofiles.open(path, encoding="utf-8") as f:
            return await f.read()

    try:
        text = await _read_text()
    except UnicodeDecodeError as e:
        raise _not_utf8(path, e) from e
    return _parse_snapshot(text, path)


def _parse_relations(requires: str) -> list[list[str]]:
    requirements = []
    for alternatives in deb822.PkgRelation.parse_relations(requires):
        # only the first alternative of an "a | b" group is honoured
        relation = alternatives[0]
        version = relation.get("version")
        requirements.append([relation["name"], version[1] if version else "0"])
    return requirements


def _fold(value: str) -> str:
    # continuation lines start with a space; blank lines become " ."
    first, *rest = value.split("\n")
    return "\n".join([first, *(f" {line}" if line.strip() else " ." for line in rest)])


def _unfold(value: str) -> str:
    first, *rest = value.split("\n")
    lines = [first.strip()]
    for line in rest:
        if line.strip() == ".":
            lines.append("")
        else:
            lines.append(line[1:] if line.startswith(" ") else line)
    return "\n".join(lines)


def read_package_file(path: Path) -> dict[str, Any]:
    """Read a control-style package info file into a structured descriptor.

    The file holds RFC 822 fields::

        Package: foo
        Version: 1.2
        Summary: Frobnicate buffers
        Requires: bar (>= 2.0), baz

    Returns:
        A descriptor mapping suitable for parse_descriptor. Missing fields are
        left out so that parsing reports them.

    Raises:
        UnrecognizedFormat: If the file is not UTF-8 encoded.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise _not_utf8(path, e) from e
    paragraph = deb822.Deb822(text.splitlines())
    descriptor: dict[str, Any] = {}
    extras: dict[str, str] = {}

    for key, value in paragraph.items():
        match key.lower():
            case "package" | "name":
                descriptor["name"] = value.strip()
            case "version":
                descriptor["version"] = value.strip()
            case "summary":
                descriptor["summary"] = value.strip()
            case "description":
                descriptor.setdefault("summary", value.strip().splitlines()[0] if value.strip() else None)
            case "requires" | "depends":
                descriptor["requirements"] = _parse_relations(value)
            case "kind":
                descriptor["kind"] = value.strip()
            case "archive":
                descriptor["archive"] = value.strip()
            case other:
                extras[other] = _unfold(value)

    if extras:
        descriptor["extras"] = extras
    return descriptor


def write_package_file(path: Path, package: Package) -> None:
    """Write package metadata in the format read by read_package_file.

    String extras are written as extra fields, multi-line values folded onto
    continuation lines; other values are written as JSON. Extras whose key is
    not a valid field name or clashes with a known field are left out.
    """
    paragraph = deb822.Deb822()
    paragraph["Package"] = package.name
    paragraph["Version"] = package.version_str
    if package.summary:
        paragraph["Summary"] = " ".join(package.summary.split())
    if package.requirements:
        paragraph["Requires"] = ", ".join(
            f"{req.name} (>= {version_to_string(req.version)})" for req in package.requirements
        )
    if package.kind:
        paragraph["Kind"] = package.kind
    if package.archive:
        paragraph["Archive"] = package.archive

    for key, value in package.extras.items():
        if key.lower() in _CONTROL_FIELDS or not _FIELD_NAME.match(key):
            logger.debug(f"Not writing extra field {key!r} of {package.full_name}")
            continue
        paragraph[key.title()] = _fold(value if isinstance(value, str) else json.dumps(value))

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(paragraph.dump(), encoding="utf-8")


def scan_install_root(root: Path) -> dict[str, list[dict[str, Any]]]:
    """Build an installed snapshot from the package directories under root.

    Every ``<root>/<name>-<version>/`` directory holding a package info file
    contributes one descriptor, with ``dir`` set to that directory.
    Directories without one are skipped.
    """
    snapshot: dict[str, list[dict[str, Any]]] = {}
    if not root.is_dir():
        logger.debug(f"Install root {root} does not exist")
        return snapshot

    for pkg_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        info_path = pkg_dir / DESCRIPTOR_FILE
        if not info_path.is_file():
            logger.debug(f"Skipping {pkg_dir}: no {DESCRIPTOR_FILE}")
            continue

        descriptor = read_package_file(info_path)
        descriptor["dir"] = str(pkg_dir)
        name = descriptor.get("name") or pkg_dir.name.rpartition("-")[0]
        if not name:
            raise UnrecognizedFormat(str(info_path), "package info has no package name")
        descriptor["name"] = name
        snapshot.setdefault(name, []).append(descriptor)

    return snapshot
