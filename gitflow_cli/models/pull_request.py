"""Pull request model"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PullRequestInfo:
    """The parts of a pull request the workflows need."""
    number: int
    title: str
    head: str
    base: str
    url: Optional[str] = None

    def __str__(self) -> str:
        return f"#{self.number} {self.title} ({self.head} -> {self.base})"
