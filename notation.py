"""
Move notation for a 3x3 cube.

Every move is one of 36 tokens:
- Face turns: F B U D L R
- Slice turns: M (follows L), E (follows D), S (follows F)
- Whole cube rotations: x (follows R), y (follows U), z (follows F)

Each base letter comes clockwise, counter-clockwise (') or 180 degrees (2).
"""

from enum import Enum
from typing import Iterable, List, Optional


FACE_LETTERS = "FBUDLR"
SLICE_LETTERS = "MES"
ROTATION_LETTERS = "xyz"

# quarter turns -> suffix
_SUFFIX = {1: "", 2: "2", 3: "'"}


class Move(str, Enum):
    """A single move. The value is the canonical token."""

    F = "F"
    F_PRIME = "F'"
    F2 = "F2"
    B = "B"
    B_PRIME = "B'"
    B2 = "B2"
    U = "U"
    U_PRIME = "U'"
    U2 = "U2"
    D = "D"
    D_PRIME = "D'"
    D2 = "D2"
    L = "L"
    L_PRIME = "L'"
    L2 = "L2"
    R = "R"
    R_PRIME = "R'"
    R2 = "R2"
    M = "M"
    M_PRIME = "M'"
    M2 = "M2"
    E = "E"
    E_PRIME = "E'"
    E2 = "E2"
    S = "S"
    S_PRIME = "S'"
    S2 = "S2"
    x = "x"
    x_PRIME = "x'"
    x2 = "x2"
    y = "y"
    y_PRIME = "y'"
    y2 = "y2"
    z = "z"
    z_PRIME = "z'"
    z2 = "z2"

    def __str__(self):
        return self.value

    @property
    def axis(self) -> str:
        """The base letter this move turns (face, slice or rotation axis)."""
        return self.value[0]

    @property
    def turns(self) -> int:
        """Number of clockwise quarter turns: 1, 2 or 3."""
        if self.value.endswith("2"):
            return 2
        if self.value.endswith("'"):
            return 3
        return 1

    @property
    def kind(self) -> str:
        if self.axis in FACE_LETTERS:
            return "face"
        if self.axis in SLICE_LETTERS:
            return "slice"
        return "rotation"


FACE_MOVES = [move for move in Move if move.kind == "face"]

_BY_TOKEN = {move.value: move for move in Move}


def parse(token: str) -> Optional[Move]:
    """Return the move for an exact token, or None if it is not one."""
    return _BY_TOKEN.get(token)


def from_turns(axis: str, turns: int) -> Optional[Move]:
    """Build the move for an axis letter and a quarter-turn count (mod 4)."""
    turns %= 4
    if turns == 0:
        return None
    return _BY_TOKEN[axis + _SUFFIX[turns]]


def invert(move: Move) -> Move:
    """Clockwise <-> counter-clockwise. 180 degree moves are their own inverse."""
    return from_turns(move.axis, 4 - move.turns)


def same_axis(first: Move, second: Move) -> bool:
    return first.axis == second.axis


def combine(first: Move, second: Move) -> Optional[Move]:
    """
    Merge two moves on the same axis into one.

    Returns None when the moves cancel out.

    Raises:
        ValueError: if the moves act on different axes
    """
    if not same_axis(first, second):
        raise ValueError(f"Cannot combine {first} and {second}: different axes")
    return from_turns(first.axis, first.turns + second.turns)


def parse_sequence(sequence: str) -> List[Move]:
    """
    Parse a whitespace separated move sequence.

    Unknown tokens are skipped, e.g. "R U foo R'" gives [R, U, R'].
    """
    moves = []
    for token in sequence.split():
        move = parse(token)
        if move is not None:
            moves.append(move)
    return moves


def format_sequence(moves: Iterable[Move]) -> str:
    return " ".join(str(move) for move in moves)


def invert_sequence(moves: Iterable[Move]) -> List[Move]:
    """The sequence that undoes `moves`: reversed, each move inverted."""
    return [invert(move) for move in reversed(list(moves))]


def simplify(moves: Iterable[Move]) -> List[Move]:
    """
    Merge adjacent moves on the same axis.

    Examples:
    - R R -> R2
    - R R' -> (nothing)
    - U R R' U -> U2
    """
    simplified = []
    for move in moves:
        if simplified and same_axis(simplified[-1], move):
            merged = combine(simplified.pop(), move)
            if merged is not None:
                simplified.append(merged)
        else:
            simplified.append(move)
    return simplified


_NAMES = {
    "F": "Front face",
    "B": "Back face",
    "U": "Up (top) face",
    "D": "Down (bottom) face",
    "L": "Left face",
    "R": "Right face",
    "M": "Middle slice (follows L)",
    "E": "Equatorial slice (follows D)",
    "S": "Standing slice (follows F)",
    "x": "Entire cube on the R axis",
    "y": "Entire cube on the U axis",
    "z": "Entire cube on the F axis",
}

_DIRECTIONS = {1: "clockwise", 2: "180 degrees", 3: "counter-clockwise"}


def describe(move: Move) -> str:
    """Human readable description, e.g. "Right face counter-clockwise"."""
    return f"{_NAMES[move.axis]} {_DIRECTIONS[move.turns]}"


# Well known sequences, handy for tests and demos
ALGORITHMS = {
    "sexy": {
        "moves": "R U R' U'",
        "description": "Right hand algorithm - very common",
    },
    "sune": {
        "moves": "R U R' U R U2 R'",
        "description": "Orients corners on last layer",
    },
    "antisune": {
        "moves": "R U2 R' U' R U' R'",
        "description": "Reverse of Sune algorithm",
    },
    "tperm": {
        "moves": "R U R' U' R' F R2 U' R' U' R U R' F'",
        "description": "Swaps two adjacent corners and edges",
    },
    "yperm": {
        "moves": "F R U' R' U' R U R' F' R U R' U' R' F R F'",
        "description": "Diagonal corner swap + edge swap",
    },
}


def algorithm(name: str) -> List[Move]:
    """Moves of a named algorithm from ALGORITHMS."""
    return parse_sequence(ALGORITHMS[name]["moves"])
