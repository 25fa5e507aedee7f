import pytest

from pkgcompat.models import Package


class RecordingInstaller:
    """Installer double that records calls and can fail on one package."""

    def __init__(self, fail_on: str | None = None, fail_phase: str = "install"):
        self.fail_on = fail_on
        self.fail_phase = fail_phase
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, phase: str, package: Package):
        if package.name == self.fail_on and phase == self.fail_phase:
            raise RuntimeError(f"{phase} of {package.full_name} failed")

    def install(self, package: Package, force: bool):
        self._maybe_fail("install", package)
        self.calls.append(("install", package.full_name))
        assert force is True

    def delete(self, package: Package):
        self._maybe_fail("delete", package)
        self.calls.append(("delete", package.full_name))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def installer():
    return RecordingInstaller()


@pytest.fixture
def installed_snapshot():
    return {
        "foo": {"name": "foo", "version": [1, 0], "summary": "Foo mode", "dir": "/pkgs/foo-1.0"},
        "bar": [
            {"name": "bar", "version": "1.5", "reqs": [["foo", "1.0"]], "dir": "/pkgs/bar-1.5"},
            {"name": "bar", "version": "2.0", "reqs": [["foo", "1.0"]], "dir": "/pkgs/bar-2.0"},
        ],
        "baz": ["baz", [], "Legacy baz", "0.9", "old commentary"],
    }


@pytest.fixture
def available_snapshot():
    return {
        "foo": [[1, 2, 0], [], "Foo mode", "tar"],
        "bar": [[2, 0], [["foo", [1, 0]]], "Bar helpers", "single"],
        "baz": [
            [[0, 9], [], "Legacy baz", "single"],
            [[1, 1], [["qux", [3]]], "Modern baz", "tar", {"url": "https://example.org/baz"}],
        ],
        "qux": [[3, 0], [], "Qux", "single"],
    }


@pytest.fixture
def make_installer():
    return RecordingInstaller
