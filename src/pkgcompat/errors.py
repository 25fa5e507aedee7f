"""Exceptions raised by pkgcompat."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pkgcompat.models import UpgradeCandidate


def _short_repr(value: Any, limit: int = 120) -> str:
    text = repr(value)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


class PkgCompatError(Exception):
    """Base class for all pkgcompat errors."""


class UnrecognizedFormat(PkgCompatError, ValueError):
    """A raw descriptor, registry entry, version or snapshot matched no known shape.

    Attributes:
        raw: The offending raw value, kept for diagnostics.
        reason: Short description of what did not match.
    """

    def __init__(self, raw: Any, reason: str = "unrecognized format"):
        self.raw = raw
        self.reason = reason
        super().__init__(f"{reason}: {_short_repr(raw)}")


class InstallerFailure(PkgCompatError):
    """The installer failed while applying an upgrade.

    The original installer exception is chained as ``__cause__``. Nothing is
    rolled back: ``completed`` lists the candidates that were fully processed
    before the failure.
    """

    def __init__(
        self,
        candidate: "UpgradeCandidate",
        phase: str,
        completed: tuple["UpgradeCandidate", ...] = (),
    ):
        self.candidate = candidate
        self.phase = phase
        self.completed = completed
        super().__init__(
            f"Failed to {phase} {candidate.label} "
            f"({len(completed)} upgrade(s) completed before the failure)"
        )
