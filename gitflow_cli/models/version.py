"""Version and tag models"""
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class SemVer:
    """Semantic version MAJOR.MINOR.PATCH (no pre-release or build metadata)."""
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def tag(self) -> str:
        """Production tag name for this version."""
        return f"v{self}"


@dataclass(frozen=True)
class RcTag:
    """Release-candidate tag: one version, one positive RC number."""
    version: SemVer
    number: int

    def __post_init__(self):
        if self.number < 1:
            raise ValueError(f"RC number must be a positive integer, got {self.number}")

    def __str__(self) -> str:
        return f"{self.version.tag}-rc.{self.number}"
