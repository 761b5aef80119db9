from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Tuple

from .models import PatchBlock


SEARCH_MARK = "------- SEARCH"
SPLIT_MARK = "======="
REPLACE_MARK = "+++++++ REPLACE"

LINE_SPLIT_RE = re.compile(r"\r?\n")


class ParserState(Enum):
    IDLE = auto()
    SEARCH = auto()
    REPLACE = auto()


class Effect(Enum):
    # Start a new block: reset the search accumulator
    OPEN = auto()
    # Switch to the replacement body: reset the replace accumulator
    SPLIT = auto()
    # Emit the accumulated block
    CLOSE = auto()
    # Append the line to the active accumulator
    APPEND = auto()
    # Drop the line
    DISCARD = auto()


def transition(state: ParserState, line: str) -> Tuple[ParserState, Effect]:
    """
    Single step of the block grammar. Fence markers are compared after
    trimming; a marker that is not legal in the current state is content.
    """
    marker = line.strip()
    if marker == SEARCH_MARK:
        return ParserState.SEARCH, Effect.OPEN
    if marker == SPLIT_MARK and state is ParserState.SEARCH:
        return ParserState.REPLACE, Effect.SPLIT
    if marker == REPLACE_MARK and state is ParserState.REPLACE:
        return ParserState.IDLE, Effect.CLOSE
    if state is ParserState.IDLE:
        return state, Effect.DISCARD
    return state, Effect.APPEND


@dataclass
class _Accumulator:
    search: List[str]
    replace: List[str]


def parse_diff_blocks(diff_text: str) -> List[PatchBlock]:
    """
    Parse marker-delimited SEARCH/REPLACE blocks:

    ------- SEARCH
    <search lines>
    =======
    <replace lines>
    +++++++ REPLACE

    Lines outside of blocks are ignored. A block still open at end of input
    is dropped.
    """
    blocks: List[PatchBlock] = []
    acc = _Accumulator(search=[], replace=[])
    state = ParserState.IDLE

    for line in LINE_SPLIT_RE.split(diff_text):
        state, effect = transition(state, line)
        if effect is Effect.OPEN:
            acc.search = []
        elif effect is Effect.SPLIT:
            acc.replace = []
        elif effect is Effect.CLOSE:
            blocks.append(
                PatchBlock(search="\n".join(acc.search), replace="\n".join(acc.replace))
            )
        elif effect is Effect.APPEND:
            target = acc.search if state is ParserState.SEARCH else acc.replace
            target.append(line)

    return blocks


def has_open_block(diff_text: str) -> bool:
    """Return True when the text ends inside an unterminated block."""
    state = ParserState.IDLE
    for line in LINE_SPLIT_RE.split(diff_text):
        state, _ = transition(state, line)
    return state is not ParserState.IDLE
