"""
3x3 cube state.

The cube is 54 facelets stored in a flat numpy array of color codes,
face by face in U, R, F, D, L, B order. Each face is a 3x3 grid read
row by row:

        U
      L F R B
        D

    0 1 2
    3 4 5
    6 7 8

U is read with B at the top, D with F at the top, and the side faces
with U at the top. This is the same facelet order kociemba uses.

Every move is a fixed permutation of the 54 cells. The tables are
built once at import time from the geometry of the cube: each facelet
has a position (x, y, z) and an outward normal, and a clockwise turn
rotates the facelets of the turning layer -90 degrees about the
outward normal of the face it follows.
"""

import json
import logging
import random
from enum import Enum

import numpy as np

from notation import FACE_MOVES, Move, parse, same_axis


logger = logging.getLogger("cube")


class Color(str, Enum):
    WHITE = "white"
    YELLOW = "yellow"
    RED = "red"
    ORANGE = "orange"
    GREEN = "green"
    BLUE = "blue"

    @property
    def letter(self):
        return self.name[0]


COLORS = list(Color)
COLOR_CODES = {color: code for code, color in enumerate(COLORS)}

FACES = ["U", "R", "F", "D", "L", "B"]
FACE_INDEX = {face: idx for idx, face in enumerate(FACES)}
FACE_NAMES = {
    "U": "up",
    "R": "right",
    "F": "front",
    "D": "down",
    "L": "left",
    "B": "back",
}
SOLVED_COLORS = {
    "U": Color.WHITE,
    "R": Color.RED,
    "F": Color.GREEN,
    "D": Color.YELLOW,
    "L": Color.ORANGE,
    "B": Color.BLUE,
}

NORMALS = {
    "U": (0, 1, 0),
    "D": (0, -1, 0),
    "F": (0, 0, 1),
    "B": (0, 0, -1),
    "R": (1, 0, 0),
    "L": (-1, 0, 0),
}

# (axis the move turns about, layer it turns). The axis is the outward
# normal of the face the move follows; None turns every layer.
MOVE_AXES = {
    "U": (NORMALS["U"], 1),
    "D": (NORMALS["D"], 1),
    "F": (NORMALS["F"], 1),
    "B": (NORMALS["B"], 1),
    "R": (NORMALS["R"], 1),
    "L": (NORMALS["L"], 1),
    "M": (NORMALS["L"], 0),
    "E": (NORMALS["D"], 0),
    "S": (NORMALS["F"], 0),
    "x": (NORMALS["R"], None),
    "y": (NORMALS["U"], None),
    "z": (NORMALS["F"], None),
}


class InvalidStateError(ValueError):
    """Raised when a snapshot cannot be imported as a cube state."""


def _facelet_position(face, row, col):
    """Cubie position (x, y, z) of the facelet at (row, col) on a face."""
    if face == "U":
        return (col - 1, 1, row - 1)
    if face == "D":
        return (col - 1, -1, 1 - row)
    if face == "F":
        return (col - 1, 1 - row, 1)
    if face == "B":
        return (1 - col, 1 - row, -1)
    if face == "L":
        return (-1, 1 - row, col - 1)
    return (1, 1 - row, 1 - col)  # R


def _build_geometry():
    positions = np.zeros((54, 3), dtype=int)
    normals = np.zeros((54, 3), dtype=int)
    for face in FACES:
        for cell in range(9):
            idx = FACE_INDEX[face] * 9 + cell
            positions[idx] = _facelet_position(face, cell // 3, cell % 3)
            normals[idx] = NORMALS[face]
    return positions, normals


POSITIONS, FACELET_NORMALS = _build_geometry()
_LOOKUP = {
    (tuple(POSITIONS[idx]), tuple(FACELET_NORMALS[idx])): idx for idx in range(54)
}


def _quarter_turn_matrix(axis):
    """Rotation matrix for a clockwise quarter turn seen from the tip of axis."""
    a = np.array(axis)
    cross = np.array(
        [
            [0, -a[2], a[1]],
            [a[2], 0, -a[0]],
            [-a[1], a[0], 0],
        ]
    )
    return np.outer(a, a) - cross


def _base_permutation(letter):
    """
    Gather table for one clockwise turn: new_state = old_state[perm].
    """
    axis, layer = MOVE_AXES[letter]
    rotation = _quarter_turn_matrix(axis)
    perm = np.arange(54)
    for idx in range(54):
        if layer is not None and POSITIONS[idx].dot(axis) != layer:
            continue
        target = _LOOKUP[
            (tuple(rotation.dot(POSITIONS[idx])), tuple(rotation.dot(FACELET_NORMALS[idx])))
        ]
        perm[target] = idx
    return perm


def _build_move_table():
    table = {}
    for letter in MOVE_AXES:
        once = _base_permutation(letter)
        perm = np.arange(54)
        for turns in (1, 2, 3):
            perm = perm[once]
            table[parse(letter + {1: "", 2: "2", 3: "'"}[turns])] = perm.copy()
    return table


MOVE_TABLE = _build_move_table()


def _solved_stickers():
    return np.array(
        [COLOR_CODES[SOLVED_COLORS[face]] for face in FACES for _ in range(9)],
        dtype=np.int8,
    )


def validate_state(snapshot):
    """
    Check that a snapshot describes a plausible cube.

    Checks the shape (six named faces of 3x3 known color names), that
    each color appears nine times and that the six centers differ.
    Solvability is not checked.

    Raises:
        InvalidStateError: for any problem with the snapshot
    """
    try:
        counts = {color: 0 for color in COLORS}
        centers = set()
        for face in FACES:
            grid = snapshot[FACE_NAMES[face]]
            if len(grid) != 3 or any(len(row) != 3 for row in grid):
                raise InvalidStateError("invalid state")
            for row in grid:
                for name in row:
                    counts[Color(name)] += 1
            centers.add(Color(grid[1][1]))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidStateError("invalid state") from exc
    if any(count != 9 for count in counts.values()) or len(centers) != 6:
        raise InvalidStateError("invalid state")


class Cube:
    """
    A 3x3 cube. Starts solved unless a snapshot is given.

    Moves mutate the cube in place; clone() gives an independent copy.
    """

    def __init__(self, state=None, rng=None):
        """
        Args:
            state: optional snapshot dict (see get_state) to start from
            rng: random.Random used by scramble(); a fresh one if omitted
        """
        self.stickers = _solved_stickers()
        self.rng = rng if rng is not None else random.Random()
        if state is not None:
            self.set_state(state)

    @classmethod
    def new_solved(cls, rng=None):
        return cls(rng=rng)

    @classmethod
    def from_state(cls, snapshot, rng=None):
        """Build a cube from a snapshot, raising InvalidStateError if malformed."""
        validate_state(snapshot)
        return cls(state=snapshot, rng=rng)

    @classmethod
    def from_json(cls, text, rng=None):
        try:
            snapshot = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidStateError("invalid state") from exc
        return cls.from_state(snapshot, rng=rng)

    def clone(self):
        """Independent copy. The random source is copied at its current state."""
        twin = Cube.__new__(Cube)
        twin.stickers = self.stickers.copy()
        twin.rng = random.Random()
        twin.rng.setstate(self.rng.getstate())
        return twin

    copy = clone

    def __eq__(self, other):
        if not isinstance(other, Cube):
            return NotImplemented
        return np.array_equal(self.stickers, other.stickers)

    def __str__(self):
        """Unfolded net using color letters."""
        letters = [COLORS[code].letter for code in self.stickers]

        def row(face, r):
            start = FACE_INDEX[face] * 9 + r * 3
            return " ".join(letters[start:start + 3])

        result = []
        for r in range(3):
            result.append("      " + row("U", r))
        for r in range(3):
            result.append("  ".join(row(face, r) for face in ("L", "F", "R", "B")))
        for r in range(3):
            result.append("      " + row("D", r))
        return "\n".join(result)

    def __repr__(self):
        return f"Cube({self.to_kociemba_string()!r})"

    # -- facelet access --------------------------------------------------

    def sticker(self, face, row, col):
        """Color of the facelet at (row, col) on a face."""
        return COLORS[self.stickers[FACE_INDEX[face] * 9 + row * 3 + col]]

    def face_colors(self, face):
        """3x3 list of Colors for a face."""
        return [[self.sticker(face, r, c) for c in range(3)] for r in range(3)]

    def center(self, face):
        return self.sticker(face, 1, 1)

    # -- moves -----------------------------------------------------------

    def apply_move(self, move):
        """
        Apply one move. Accepts a Move or its token ("R", "U'", "x2", ...).

        Raises:
            ValueError: for an unknown token
        """
        if not isinstance(move, Move):
            token = move
            move = parse(token)
            if move is None:
                raise ValueError(f"Invalid move notation: {token}")
        self.stickers = self.stickers[MOVE_TABLE[move]]
        return self

    def apply_moves(self, moves):
        for move in moves:
            self.apply_move(move)
        return self

    def apply_algorithm(self, algorithm):
        """
        Apply a sequence of moves from a string notation.

        Examples:
        - "R U R'" applies R, then U, then R'
        - "F2 B2 L' D" applies F2, then B2, then L', then D
        """
        logger.debug("apply_algorithm: %s", algorithm)
        for token in algorithm.split():
            self.apply_move(token)
        return self

    def is_solved(self):
        """True when every face shows a single color."""
        faces = self.stickers.reshape(6, 9)
        return bool((faces == faces[:, :1]).all())

    def scramble(self, num_moves=20, rng=None):
        """
        Apply random face turns, never turning the same face twice in a row.

        Args:
            num_moves: number of moves to apply
            rng: random.Random to draw from (defaults to the cube's own)

        Returns:
            list of the Moves applied, in order
        """
        rng = rng if rng is not None else self.rng
        applied = []
        for _ in range(num_moves):
            move = rng.choice(FACE_MOVES)
            while applied and same_axis(applied[-1], move):
                move = rng.choice(FACE_MOVES)
            self.apply_move(move)
            applied.append(move)
        logger.debug("scramble: %s", " ".join(str(move) for move in applied))
        return applied

    # -- snapshots -------------------------------------------------------

    def get_state(self):
        """Snapshot: {face name: 3x3 list of color names}."""
        return {
            FACE_NAMES[face]: [
                [color.value for color in row] for row in self.face_colors(face)
            ]
            for face in FACES
        }

    def set_state(self, snapshot):
        """Replace every facelet from a snapshot. The snapshot is trusted."""
        stickers = np.empty(54, dtype=np.int8)
        for face in FACES:
            grid = snapshot[FACE_NAMES[face]]
            for r in range(3):
                for c in range(3):
                    stickers[FACE_INDEX[face] * 9 + r * 3 + c] = COLOR_CODES[
                        Color(grid[r][c])
                    ]
        self.stickers = stickers

    def to_json(self):
        return json.dumps(self.get_state())

    def to_kociemba_string(self):
        """
        54 characters in URFDLB order, each facelet named after the face
        whose center has its color.
        """
        face_of_color = {
            self.stickers[FACE_INDEX[face] * 9 + 4]: face for face in FACES
        }
        return "".join(face_of_color[code] for code in self.stickers)
