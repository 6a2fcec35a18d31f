"""
Layer-by-layer solver for a 3x3 cube.

The solver works on its own clone of the cube and runs seven stages in
a fixed order:

1. White Cross              - white center up, white edges around it
2. First Layer              - white corners
3. Second Layer             - flip (x2), middle layer edges
4. Yellow Cross             - orient the last layer edges
5. Position Yellow Cross    - permute the last layer edges
6. Position Yellow Corners  - permute the last layer corners
7. Orient Yellow Corners    - twist the last layer corners, align U

Orientation convention: stages 1-2 keep white on U, stage 3 turns the
cube over with x2 so white is on D and yellow on U for the rest. The
slot tables below only hold under that convention.

Algorithms are written once for the front (or front-right) slot and
re-posed for the other sides by renaming faces the way a y rotation
would (F -> R -> B -> L -> F), so no extra cube rotations are emitted.

Every stage is a bounded loop. Running out of attempts is not an
error: the stage reports itself incomplete and the next one runs.
Whether the cube ends up solved is decided by a single is_solved()
check at the end.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from cube import COLOR_CODES, COLORS, FACE_INDEX, FACES, POSITIONS, Color
from notation import Move, format_sequence, from_turns, parse


logger = logging.getLogger("solver")

STAGES = (
    "White Cross",
    "First Layer",
    "Second Layer",
    "Yellow Cross",
    "Position Yellow Cross",
    "Position Yellow Corners",
    "Orient Yellow Corners",
)

SIDES = ("F", "R", "B", "L")
SLOT_ORDER = "UDFBRL"

EDGES = ("UF", "UR", "UB", "UL", "FR", "BR", "BL", "FL", "DF", "DR", "DB", "DL")
CORNERS = ("UFR", "UBR", "UBL", "UFL", "DFR", "DBR", "DBL", "DFL")

# Middle layer slot between side k and side k + 1
MIDDLE_SLOTS = ("FR", "BR", "BL", "FL")

# Face renaming for one y rotation
_Y_RELABEL = {"F": "R", "R": "B", "B": "L", "L": "F", "U": "U", "D": "D"}


def _build_slots():
    """Slot name -> facelet indices, both ordered U D F B R L."""
    pieces = {}
    for idx in range(54):
        position = tuple(int(v) for v in POSITIONS[idx])
        pieces.setdefault(position, []).append((FACES[idx // 9], idx))
    slots = {}
    for facelets in pieces.values():
        if len(facelets) < 2:
            continue
        facelets.sort(key=lambda item: SLOT_ORDER.index(item[0]))
        slots["".join(face for face, _ in facelets)] = tuple(idx for _, idx in facelets)
    return slots


SLOTS = _build_slots()


def _relabel_face(face, k):
    for _ in range(k % 4):
        face = _Y_RELABEL[face]
    return face


def _slot(name, k=0):
    """Slot `name` as seen from side k, e.g. _slot("UFR", 1) == "UBR"."""
    return "".join(
        sorted((_relabel_face(face, k) for face in name), key=SLOT_ORDER.index)
    )


def _facelet(slot, face):
    """Index of the facelet of `slot` lying on `face`."""
    return SLOTS[slot][slot.index(face)]


def _center(face):
    return FACE_INDEX[face] * 9 + 4


@lru_cache(maxsize=None)
def _relabel(algorithm, k):
    """Moves of a front-relative algorithm re-posed for side k."""
    return tuple(
        parse(_relabel_face(token[0], k) + token[1:]) for token in algorithm.split()
    )


# Slot -> side index, for slots that belong to one side
U_EDGE_SIDE = {_slot("UF", k): k for k in range(4)}
D_EDGE_SIDE = {_slot("DF", k): k for k in range(4)}
U_CORNER_SIDE = {_slot("UFR", k): k for k in range(4)}
D_CORNER_SIDE = {_slot("DFR", k): k for k in range(4)}


# First two layers
CROSS_DROP = "R' D' R"
CROSS_FLIPPED = "D R F' R'"
CORNER_KICK = "R' D' R"
# a twisted corner in its own slot drops straight below it
CORNER_DROP = "R' D R"
CORNER_FRONT = "F D F'"
CORNER_RIGHT = "R' D' R"
CORNER_DOWN = "F D2 F' D' F D F'"
INSERT_RIGHT = "U R U' R' U' F' U F"
INSERT_LEFT = "U' L' U L U F U' F'"
EXTRACT_EDGE = "R U' R' U' F' U F"

# Last layer
YELLOW_CROSS = "F R U R' U' F'"
SWAP_EDGES = "R U R' U R U2 R'"
CYCLE_CORNERS = "U R U' L' U R' U' L"
TWIST_RIGHT = "R' D' R D"
TWIST_FRONT = "D' R' D R"


@dataclass(frozen=True)
class SolutionStep:
    move: Move
    description: Optional[str] = None
    stage: Optional[str] = None

    def to_dict(self):
        step = {"move": self.move.value}
        if self.description is not None:
            step["description"] = self.description
        if self.stage is not None:
            step["stage"] = self.stage
        return step


@dataclass(frozen=True)
class StageReport:
    """Outcome of one stage. completed is False when its loop gave up."""

    stage: str
    completed: bool
    moves: int
    detail: Optional[str] = None


@dataclass(frozen=True)
class SolverResult:
    solved: bool
    steps: Tuple[SolutionStep, ...]
    move_count: int
    error: Optional[str] = None
    stages: Tuple[StageReport, ...] = ()

    @property
    def moves(self) -> List[Move]:
        return [step.move for step in self.steps]

    def to_dict(self):
        result = {
            "solved": self.solved,
            "steps": [step.to_dict() for step in self.steps],
            "moveCount": self.move_count,
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class SolverConfig:
    """Retry budgets for the stage loops."""

    piece_attempts: int = 20
    last_layer_attempts: int = 10
    alignment_scan: int = 4
    twist_repeats: int = 6


def _color_name(code):
    return COLORS[code].value


class LayerByLayerSolver:
    """
    Beginner's method solver.

    The cube given to the constructor is cloned and never modified.
    """

    def __init__(self, cube, config=None):
        self.start = cube.clone()
        self.config = config if config is not None else SolverConfig()
        self.cube = self.start.clone()
        self.steps: List[SolutionStep] = []

    def solve(self) -> SolverResult:
        """
        Run all stages and return the result. Never raises.
        """
        self.cube = self.start.clone()
        self.steps = []
        if self.cube.is_solved():
            logger.info("Cube already solved")
            return SolverResult(solved=True, steps=(), move_count=0)

        reports = []
        try:
            for stage in (
                self.solve_white_cross,
                self.solve_first_layer,
                self.solve_second_layer,
                self.make_yellow_cross,
                self.position_yellow_cross,
                self.position_yellow_corners,
                self.orient_yellow_corners,
            ):
                report = stage()
                reports.append(report)
                if report.completed:
                    logger.debug("%s: %d moves", report.stage, report.moves)
                else:
                    logger.warning(
                        "%s incomplete after %d moves: %s",
                        report.stage,
                        report.moves,
                        report.detail,
                    )
        except Exception as exc:
            logger.exception("Solver failed after %d moves", len(self.steps))
            return SolverResult(
                solved=False,
                steps=tuple(self.steps),
                move_count=len(self.steps),
                error=str(exc) or type(exc).__name__,
                stages=tuple(reports),
            )

        solved = self.cube.is_solved()
        logger.info("Solved=%s in %d moves", solved, len(self.steps))
        logger.debug("Solution: %s", format_sequence(step.move for step in self.steps))
        return SolverResult(
            solved=solved,
            steps=tuple(self.steps),
            move_count=len(self.steps),
            stages=tuple(reports),
        )

    # -- helpers -----------------------------------------------------------

    def _color(self, idx):
        return int(self.cube.stickers[idx])

    def _colors(self, slot):
        return {self._color(idx) for idx in SLOTS[slot]}

    def _face_color(self, face):
        return self._color(_center(face))

    def _find(self, colors, slots):
        """First slot holding the piece with exactly these colors."""
        for slot in slots:
            if self._colors(slot) == colors:
                return slot
        return None

    def _add(self, moves, description, stage):
        for move in moves:
            self.cube.apply_move(move)
            self.steps.append(SolutionStep(move, description, stage))

    def _add_algorithm(self, algorithm, k, description, stage):
        self._add(_relabel(algorithm, k), description, stage)

    def _turn(self, axis, quarter_turns, description, stage):
        """One move for a number of quarter turns; nothing for a multiple of 4."""
        move = from_turns(axis, quarter_turns)
        if move is not None:
            self._add([move], description, stage)

    def _align_top(self, predicate, description, stage):
        """Turn U until predicate(stickers) holds, checking each turn first."""
        probe = self.cube.clone()
        for turns in range(self.config.alignment_scan):
            if predicate(probe.stickers):
                self._turn("U", turns, description, stage)
                return True
            probe.apply_move(Move.U)
        return False

    def _report(self, stage, start, completed, detail=None):
        return StageReport(stage, completed, len(self.steps) - start, detail)

    def _side_colors(self, k):
        """Center colors of side k and the side to its right."""
        return self._face_color(SIDES[k]), self._face_color(SIDES[(k + 1) % 4])

    def _pair_name(self, k):
        front, right = self._side_colors(k)
        return f"{_color_name(front).capitalize()}-{_color_name(right).capitalize()}"

    def _place_cheapest_first(self, place):
        """
        Run place(k) for the four sides, each round picking the side that
        takes the fewest moves from the current state. Every candidate is
        tried on the live cube and rolled back before the winner is played.

        Returns:
            list of the sides place() could not finish
        """
        remaining = list(range(4))
        missing = []
        while remaining:
            trials = []
            for k in remaining:
                mark, saved = len(self.steps), self.cube.clone()
                placed = place(k)
                trials.append((not placed, len(self.steps) - mark, k))
                self.cube = saved
                del self.steps[mark:]
            k = min(trials)[2]
            remaining.remove(k)
            if not place(k):
                missing.append(k)
        return missing

    # -- stage 1 -------------------------------------------------------------

    def solve_white_cross(self):
        stage = STAGES[0]
        start = len(self.steps)
        white = COLOR_CODES[Color.WHITE]

        for face, move in (
            ("D", Move.x2),
            ("F", Move.x),
            ("B", Move.x_PRIME),
            ("L", Move.z),
            ("R", Move.z_PRIME),
        ):
            if self._face_color(face) == white:
                self._add([move], "Orient white face up", stage)
                break

        def describe(k):
            return f"{_color_name(self._face_color(SIDES[k])).capitalize()}-White edge"

        def place(k):
            color = self._face_color(SIDES[k])
            return self._place_cross_edge(k, white, color, describe(k), stage)

        missing = [describe(k) for k in self._place_cheapest_first(place)]
        return self._report(stage, start, not missing, ", ".join(missing) or None)

    def _place_cross_edge(self, k, white, color, description, stage):
        target = _slot("UF", k)
        top, side = SLOTS[target]

        for _ in range(self.config.piece_attempts):
            if self._color(top) == white and self._color(side) == color:
                return True
            slot = self._find({white, color}, EDGES)
            if slot is None:
                return False
            if slot in U_EDGE_SIDE:
                # drop it straight down
                self._add([parse(slot[1] + "2")], description, stage)
            elif slot in D_EDGE_SIDE:
                self._turn("D", k - D_EDGE_SIDE[slot], description, stage)
                if self._color(SLOTS[_slot("DF", k)][0]) == white:
                    self._add_algorithm("F2", k, description, stage)
                else:
                    self._add_algorithm(CROSS_FLIPPED, k, description, stage)
            else:
                self._add_algorithm(
                    CROSS_DROP, MIDDLE_SLOTS.index(slot), description, stage
                )
        return self._color(top) == white and self._color(side) == color

    # -- stage 2 -------------------------------------------------------------

    def solve_first_layer(self):
        stage = STAGES[1]
        start = len(self.steps)
        white = COLOR_CODES[Color.WHITE]

        def place(k):
            front, right = self._side_colors(k)
            return self._place_white_corner(
                k, white, front, right, self._pair_name(k) + "-White corner", stage
            )

        missing = [self._pair_name(k) + "-White corner" for k in self._place_cheapest_first(place)]
        return self._report(stage, start, not missing, ", ".join(missing) or None)

    def _place_white_corner(self, k, white, front_color, right_color, description, stage):
        front, right = SIDES[k], SIDES[(k + 1) % 4]
        target = _slot("UFR", k)
        wanted = ((_facelet(target, "U"), white),
                  (_facelet(target, front), front_color),
                  (_facelet(target, right), right_color))

        def placed():
            return all(self._color(idx) == color for idx, color in wanted)

        for _ in range(self.config.piece_attempts):
            if placed():
                return True
            slot = self._find({white, front_color, right_color}, CORNERS)
            if slot is None:
                return False
            if slot == target:
                self._add_algorithm(CORNER_DROP, k, description, stage)
                continue
            if slot in U_CORNER_SIDE:
                self._add_algorithm(CORNER_KICK, U_CORNER_SIDE[slot], description, stage)
                continue

            self._turn("D", k - D_CORNER_SIDE[slot], description, stage)
            below = _slot("DFR", k)
            if self._color(_facelet(below, front)) == white:
                self._add_algorithm(CORNER_FRONT, k, description, stage)
            elif self._color(_facelet(below, right)) == white:
                self._add_algorithm(CORNER_RIGHT, k, description, stage)
            else:
                self._add_algorithm(CORNER_DOWN, k, description, stage)
        return placed()

    # -- stage 3 -------------------------------------------------------------

    def solve_second_layer(self):
        stage = STAGES[2]
        start = len(self.steps)
        self._add([Move.x2], "Flip cube - yellow on top", stage)

        def place(k):
            front, right = self._side_colors(k)
            return self._place_middle_edge(k, front, right, self._pair_name(k) + " edge", stage)

        missing = [self._pair_name(k) + " edge" for k in self._place_cheapest_first(place)]
        return self._report(stage, start, not missing, ", ".join(missing) or None)

    def _place_middle_edge(self, k, front_color, right_color, description, stage):
        front, right = SIDES[k], SIDES[(k + 1) % 4]
        target = MIDDLE_SLOTS[k]

        def placed():
            return (
                self._color(_facelet(target, front)) == front_color
                and self._color(_facelet(target, right)) == right_color
            )

        for _ in range(self.config.piece_attempts):
            if placed():
                return True
            slot = self._find({front_color, right_color}, EDGES)
            if slot is None or slot in D_EDGE_SIDE:
                return False

            if slot in U_EDGE_SIDE:
                # bring it over the center matching its side color
                side_color = self._color(_facelet(slot, slot[1]))
                j = k if side_color == front_color else (k + 1) % 4
                self._turn("U", U_EDGE_SIDE[slot] - j, "Position edge", stage)
                if j == k:
                    self._add_algorithm(INSERT_RIGHT, k, description, stage)
                else:
                    self._add_algorithm(INSERT_LEFT, j, description, stage)
            else:
                self._add_algorithm(
                    EXTRACT_EDGE, MIDDLE_SLOTS.index(slot), "Extract edge", stage
                )
        return placed()

    # -- stage 4 -------------------------------------------------------------

    @staticmethod
    def _yellow_edges(stickers):
        """Which of the U edges (back, left, right, front) show the U color."""
        yellow = stickers[_center("U")]
        return tuple(stickers[SLOTS[slot][0]] == yellow for slot in ("UB", "UL", "UR", "UF"))

    def yellow_pattern(self, stickers=None):
        """Classify the last layer edges as dot, L, line or cross."""
        if stickers is None:
            stickers = self.cube.stickers
        back, left, right, front = self._yellow_edges(stickers)
        count = sum((back, left, right, front))
        if count == 4:
            return "cross"
        if count == 0:
            return "dot"
        if count == 2:
            if (back and front) or (left and right):
                return "line"
            return "L"
        return "unknown"

    def make_yellow_cross(self):
        stage = STAGES[3]
        start = len(self.steps)

        for _ in range(self.config.last_layer_attempts):
            pattern = self.yellow_pattern()
            if pattern == "cross":
                return self._report(stage, start, True)
            if pattern == "dot":
                self._add_algorithm(YELLOW_CROSS, 0, "Dot to L-shape", stage)
            elif pattern == "L":
                # L pointing back and left
                self._align_top(
                    lambda s: self._yellow_edges(s)[0] and self._yellow_edges(s)[1],
                    "Position L-shape",
                    stage,
                )
                self._add_algorithm(YELLOW_CROSS, 0, "L-shape to line", stage)
            elif pattern == "line":
                self._align_top(
                    lambda s: self._yellow_edges(s)[1] and self._yellow_edges(s)[2],
                    "Position line",
                    stage,
                )
                self._add_algorithm(YELLOW_CROSS, 0, "Line to cross", stage)
            else:
                break
        completed = self.yellow_pattern() == "cross"
        return self._report(stage, start, completed, None if completed else "no cross")

    # -- stage 5 -------------------------------------------------------------

    @staticmethod
    def _edge_matches(stickers):
        """Sides whose U edge matches the side center."""
        return [
            k
            for k, side in enumerate(SIDES)
            if stickers[_facelet("U" + side, side)] == stickers[_center(side)]
        ]

    def position_yellow_cross(self):
        stage = STAGES[4]
        start = len(self.steps)

        for _ in range(self.config.last_layer_attempts):
            probe = self.cube.clone()
            scores = []
            for _turns in range(self.config.alignment_scan):
                scores.append(len(self._edge_matches(probe.stickers)))
                probe.apply_move(Move.U)
            best = max(range(len(scores)), key=lambda turns: scores[turns])
            self._turn("U", best, "Align edges", stage)
            if scores[best] == 4:
                return self._report(stage, start, True)

            wrong = set(range(4)) - set(self._edge_matches(self.cube.stickers))
            # swaps side k with side k - 1; opposite pairs take any side
            k = next((k for k in range(4) if {k, (k + 3) % 4} == wrong), 0)
            self._add_algorithm(SWAP_EDGES, k, "Swap edges", stage)

        completed = len(self._edge_matches(self.cube.stickers)) == 4
        return self._report(stage, start, completed, None if completed else "edges not aligned")

    # -- stage 6 -------------------------------------------------------------

    def _placed_corners(self):
        top = self._face_color("U")
        placed = []
        for k in range(4):
            wanted = {top, self._face_color(SIDES[k]), self._face_color(SIDES[(k + 1) % 4])}
            if self._colors(_slot("UFR", k)) == wanted:
                placed.append(k)
        return placed

    def position_yellow_corners(self):
        stage = STAGES[5]
        start = len(self.steps)

        for _ in range(self.config.last_layer_attempts):
            placed = self._placed_corners()
            if len(placed) == 4:
                return self._report(stage, start, True)
            # cycle the other three around a placed corner
            k = placed[0] if placed else 0
            self._add_algorithm(CYCLE_CORNERS, k, "Cycle corners", stage)

        completed = len(self._placed_corners()) == 4
        return self._report(stage, start, completed, None if completed else "corners not placed")

    # -- stage 7 -------------------------------------------------------------

    def orient_yellow_corners(self):
        stage = STAGES[6]
        start = len(self.steps)
        yellow = self._face_color("U")
        top = _facelet("UFR", "U")
        right = _facelet("UFR", "R")

        completed = True
        for visit in range(4):
            if self._color(top) != yellow:
                algorithm = TWIST_RIGHT if self._color(right) == yellow else TWIST_FRONT
                for _ in range(self.config.twist_repeats):
                    self._add_algorithm(algorithm, 0, "Orient corner", stage)
                    if self._color(top) == yellow:
                        break
                else:
                    completed = False
            if visit < 3:
                self._add([Move.U], "Next corner", stage)

        aligned = self._align_top(
            lambda s: s[_facelet("UF", "F")] == s[_center("F")], "Align cube", stage
        )
        completed = completed and aligned
        return self._report(stage, start, completed, None if completed else "corners not oriented")


def solve(cube, config=None) -> SolverResult:
    """Solve a cube with the layer-by-layer method. The cube is not modified."""
    return LayerByLayerSolver(cube, config).solve()
