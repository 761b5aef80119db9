from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class MissPolicy(str, Enum):
    # Stop applying the rest of the batch after the first block that cannot be located
    ABORT = "abort"
    # Report the missing block and continue with the next one
    SKIP = "skip"


@dataclass(frozen=True)
class PatchBlock:
    search: str
    replace: str


@dataclass(frozen=True)
class TextRange:
    """Half-open character range [start, end) in a document's text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range: [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


@dataclass
class ApplyReport:
    total: int = 0
    applied: int = 0
    # Indices (in parse order) of blocks whose SEARCH text was not found
    missed: List[int] = field(default_factory=list)
    aborted: bool = False

    @property
    def complete(self) -> bool:
        return self.applied == self.total
