from .models import ApplyReport, MissPolicy, PatchBlock, TextRange
from .parser import (
    ParserState,
    has_open_block,
    parse_diff_blocks,
    transition,
)
from .locator import detect_eol, locate, normalize_eol, to_eol

# PatchApplier lives in editlink.patch.applier; it depends on the editor and
# settings packages, which import the models above.

__all__ = [
    "ApplyReport",
    "MissPolicy",
    "ParserState",
    "PatchBlock",
    "TextRange",
    "detect_eol",
    "has_open_block",
    "locate",
    "normalize_eol",
    "parse_diff_blocks",
    "to_eol",
    "transition",
]
