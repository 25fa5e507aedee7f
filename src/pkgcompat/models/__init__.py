"""Expose package models."""

from .package import Package, Requirement, UpgradeCandidate

__all__ = [
    "Package",
    "Requirement",
    "UpgradeCandidate",
]
