"""Tests for the package models."""

from pathlib import Path

from pkgcompat.models import Package, Requirement, UpgradeCandidate


class TestPackage:
    def test_hashable_with_extras(self):
        package = Package(name="foo", version=(1, 0), extras={"commentary": "old", "keywords": ["a"]})
        same = Package(name="foo", version=(1, 0), extras={"commentary": "old", "keywords": ["a"]})
        assert hash(package) == hash(same)
        assert {package, same} == {package}

    def test_distinct_installs_in_a_set(self):
        packages = {
            Package(name="foo", version=(1,), install_directory=Path("/pkgs/foo-1")),
            Package(name="foo", version=(1,)),
            Package(name="foo", version=(2,)),
        }
        assert len(packages) == 3

    def test_upgrade_candidate_is_hashable(self):
        upgrade = UpgradeCandidate(
            installed=Package(name="foo", version=(1,), extras={"homepage": "https://example.org"}),
            available=Package(name="foo", version=(2,)),
        )
        assert upgrade in {upgrade}
        assert upgrade.label == "foo 1 -> 2"

    def test_satisfies(self):
        package = Package(name="foo", version=(1, 2))
        assert package.satisfies(Requirement(name="foo", version=(1, 2, 0)))
        assert not package.satisfies(Requirement(name="foo", version=(1, 3)))
        assert not package.satisfies(Requirement(name="bar"))
