import random
import unittest

import kociemba as koc

from cube import Color, Cube, InvalidStateError, validate_state
from notation import ALGORITHMS, Move, invert_sequence, parse_sequence, same_axis


class TestCubeIsSolved(unittest.TestCase):

    def test_new_cube_is_solved(self):
        cube = Cube()
        self.assertTrue(cube.is_solved())
        self.assertTrue(Cube.new_solved().is_solved())

    def test_solved_colors(self):
        cube = Cube()
        self.assertEqual(cube.center("F"), Color.GREEN)
        self.assertEqual(cube.center("B"), Color.BLUE)
        self.assertEqual(cube.center("U"), Color.WHITE)
        self.assertEqual(cube.center("D"), Color.YELLOW)
        self.assertEqual(cube.center("L"), Color.ORANGE)
        self.assertEqual(cube.center("R"), Color.RED)

    def test_single_move_unsolves(self):
        cube = Cube()
        cube.apply_move("R")
        self.assertFalse(cube.is_solved())

    def test_is_solved_with_kociemba(self):
        """Solutions from kociemba must solve our cube too."""
        cube = Cube()
        cube.apply_algorithm("R U R' F' R U R' U' R' F R2 U' R' U'")
        cube.apply_algorithm("R U R' F' R U R' U' R' F R2 U' R' U'")
        self.assertFalse(cube.is_solved())
        solution = koc.solve(cube.to_kociemba_string())
        cube.apply_algorithm(solution)
        self.assertTrue(cube.is_solved())

        # Random scramble
        cube.scramble(20, rng=random.Random(7))
        solution = koc.solve(cube.to_kociemba_string())
        cube.apply_algorithm(solution)
        self.assertTrue(cube.is_solved())

    def test_kociemba_string(self):
        self.assertEqual(
            Cube().to_kociemba_string(),
            "U" * 9 + "R" * 9 + "F" * 9 + "D" * 9 + "L" * 9 + "B" * 9,
        )


class TestMoves(unittest.TestCase):

    def test_f_move(self):
        cube = Cube()
        cube.apply_move(Move.F)
        self.assertEqual(cube.center("F"), Color.GREEN)
        self.assertEqual(cube.face_colors("U")[2], [Color.ORANGE] * 3)
        self.assertEqual([row[0] for row in cube.face_colors("R")], [Color.WHITE] * 3)
        self.assertEqual(cube.face_colors("D")[0], [Color.RED] * 3)
        self.assertEqual([row[2] for row in cube.face_colors("L")], [Color.YELLOW] * 3)

    def test_u_move(self):
        cube = Cube()
        cube.apply_move("U")
        # front row goes to the left
        self.assertEqual(cube.face_colors("L")[0], [Color.GREEN] * 3)
        self.assertEqual(cube.face_colors("F")[0], [Color.RED] * 3)
        self.assertEqual(cube.face_colors("F")[1], [Color.GREEN] * 3)

    def test_quarter_turns_have_order_four(self):
        for letter in "FBUDLRMESxyz":
            cube = Cube()
            for _ in range(4):
                cube.apply_move(letter)
            self.assertTrue(cube.is_solved(), letter)

    def test_half_turns_have_order_two(self):
        for letter in "FBUDLRMESxyz":
            cube = Cube()
            cube.apply_move(letter + "2")
            cube.apply_move(letter + "2")
            self.assertTrue(cube.is_solved(), letter)

    def test_prime_cancels(self):
        for move in Move:
            cube = Cube()
            cube.apply_algorithm("R U F'")
            expected = cube.get_state()
            cube.apply_move(move)
            cube.apply_moves(invert_sequence([move]))
            self.assertEqual(cube.get_state(), expected, move)

    def test_half_turn_is_two_quarters(self):
        for letter in "FBUDLRMESxyz":
            twice = Cube().apply_move(letter).apply_move(letter)
            self.assertEqual(twice, Cube().apply_move(letter + "2"), letter)

    def test_slice_moves(self):
        cube = Cube()
        cube.apply_move("M")
        # M follows L: front middle column goes down
        self.assertEqual([row[1] for row in cube.face_colors("D")], [Color.GREEN] * 3)
        self.assertEqual(cube.center("F"), Color.WHITE)

        cube = Cube()
        cube.apply_move("E")
        # E follows D: front middle row goes right
        self.assertEqual(cube.face_colors("R")[1], [Color.GREEN] * 3)
        self.assertEqual(cube.face_colors("R")[0], [Color.RED] * 3)

        cube = Cube()
        cube.apply_move("S")
        # S follows F: up middle row goes right
        self.assertEqual([row[1] for row in cube.face_colors("R")], [Color.WHITE] * 3)
        self.assertEqual(cube.face_colors("U")[1], [Color.ORANGE] * 3)

    def test_rotations(self):
        cube = Cube().apply_move("x")
        self.assertEqual(cube.center("U"), Color.GREEN)
        self.assertEqual(cube.center("F"), Color.YELLOW)
        self.assertEqual(cube.center("D"), Color.BLUE)
        self.assertEqual(cube.center("B"), Color.WHITE)
        self.assertTrue(cube.is_solved())

        cube = Cube().apply_move("y")
        self.assertEqual(cube.center("F"), Color.RED)
        self.assertEqual(cube.center("L"), Color.GREEN)
        self.assertEqual(cube.center("B"), Color.ORANGE)
        self.assertEqual(cube.center("R"), Color.BLUE)

        cube = Cube().apply_move("z")
        self.assertEqual(cube.center("U"), Color.ORANGE)
        self.assertEqual(cube.center("R"), Color.WHITE)
        self.assertEqual(cube.center("D"), Color.RED)
        self.assertEqual(cube.center("L"), Color.YELLOW)

    def test_sequence_then_inverse(self):
        moves = parse_sequence("R U2 F' M E' S2 x y' z2 L D B'")
        cube = Cube()
        cube.apply_moves(moves)
        cube.apply_moves(invert_sequence(moves))
        self.assertTrue(cube.is_solved())

    def test_f_four_times(self):
        cube = Cube()
        cube.apply_algorithm("F F F F")
        self.assertTrue(cube.is_solved())

    def test_sexy_move_six_times(self):
        cube = Cube()
        # Sexy Move 6 times separately
        for _ in range(6):
            cube.apply_algorithm(ALGORITHMS["sexy"]["moves"])
        self.assertTrue(cube.is_solved())

        # Sexy Move 6 times in one call
        cube.apply_algorithm(" ".join([ALGORITHMS["sexy"]["moves"]] * 6))
        self.assertTrue(cube.is_solved())

    def test_t_perm_twice(self):
        cube = Cube()
        cube.apply_algorithm(ALGORITHMS["tperm"]["moves"])
        self.assertFalse(cube.is_solved())
        cube.apply_algorithm(ALGORITHMS["tperm"]["moves"])
        self.assertTrue(cube.is_solved())

    def test_invalid_move(self):
        cube = Cube()
        with self.assertRaises(ValueError):
            cube.apply_algorithm("R U Q")
        with self.assertRaises(ValueError):
            cube.apply_move("r")


class TestScramble(unittest.TestCase):

    def test_scramble_length_and_state(self):
        cube = Cube(rng=random.Random(1))
        moves = cube.scramble(20)
        self.assertEqual(len(moves), 20)
        self.assertFalse(cube.is_solved())

    def test_no_repeated_axis(self):
        cube = Cube()
        moves = cube.scramble(50, rng=random.Random(2))
        self.assertEqual(len(moves), 50)
        for previous, current in zip(moves, moves[1:]):
            self.assertFalse(same_axis(previous, current))

    def test_only_face_moves(self):
        moves = Cube().scramble(100, rng=random.Random(3))
        self.assertTrue(all(move.kind == "face" for move in moves))

    def test_seeded_scramble_is_reproducible(self):
        first = Cube(rng=random.Random(42))
        second = Cube(rng=random.Random(42))
        self.assertEqual(first.scramble(25), second.scramble(25))
        self.assertEqual(first, second)

    def test_replay_scramble(self):
        cube = Cube()
        moves = cube.scramble(30, rng=random.Random(4))
        replay = Cube().apply_moves(moves)
        self.assertEqual(cube, replay)

    def test_empty_scramble(self):
        cube = Cube()
        self.assertEqual(cube.scramble(0), [])
        self.assertTrue(cube.is_solved())


class TestStateManagement(unittest.TestCase):

    def test_clone_is_independent(self):
        cube = Cube()
        cube.apply_algorithm("R U")
        clone = cube.clone()
        self.assertEqual(clone, cube)
        self.assertIsNot(clone, cube)

        clone.apply_move("F")
        self.assertNotEqual(clone, cube)
        self.assertEqual(cube, Cube().apply_algorithm("R U"))

    def test_clone_copies_random_source(self):
        cube = Cube(rng=random.Random(9))
        clone = cube.clone()
        self.assertIsNot(clone.rng, cube.rng)
        # same state, so the same scramble, without touching each other
        self.assertEqual(clone.scramble(10), cube.scramble(10))

    def test_set_and_get_state(self):
        original = Cube().get_state()
        cube = Cube()
        cube.scramble(10, rng=random.Random(5))
        self.assertFalse(cube.is_solved())
        cube.set_state(original)
        self.assertTrue(cube.is_solved())
        self.assertEqual(cube.get_state(), original)

    def test_json_round_trip(self):
        cube = Cube()
        cube.scramble(15, rng=random.Random(6))
        restored = Cube.from_json(cube.to_json())
        self.assertEqual(restored, cube)
        self.assertEqual(restored.to_json(), cube.to_json())

    def test_state_names(self):
        state = Cube().get_state()
        self.assertEqual(set(state), {"up", "right", "front", "down", "left", "back"})
        self.assertEqual(state["front"][1][1], "green")

    def test_str_net(self):
        lines = str(Cube()).splitlines()
        self.assertEqual(len(lines), 9)
        self.assertEqual(lines[0].split(), ["W", "W", "W"])
        self.assertEqual(lines[3].split(), ["O"] * 3 + ["G"] * 3 + ["R"] * 3 + ["B"] * 3)


class TestValidateState(unittest.TestCase):

    def test_valid_state(self):
        cube = Cube()
        cube.scramble(10, rng=random.Random(8))
        validate_state(cube.get_state())
        self.assertEqual(Cube.from_state(cube.get_state()), cube)

    def test_missing_face(self):
        state = Cube().get_state()
        del state["left"]
        with self.assertRaises(InvalidStateError):
            validate_state(state)

    def test_bad_shape(self):
        state = Cube().get_state()
        state["up"] = state["up"][:2]
        with self.assertRaises(InvalidStateError):
            validate_state(state)

    def test_unknown_color(self):
        state = Cube().get_state()
        state["up"][0][0] = "purple"
        with self.assertRaises(InvalidStateError):
            Cube.from_state(state)

    def test_wrong_color_count(self):
        state = Cube().get_state()
        state["up"][0][0] = "red"
        with self.assertRaises(InvalidStateError) as ctx:
            validate_state(state)
        self.assertEqual(str(ctx.exception), "invalid state")

    def test_bad_json(self):
        with self.assertRaises(InvalidStateError):
            Cube.from_json("{not json")
        with self.assertRaises(ValueError):
            Cube.from_json("[]")


if __name__ == "__main__":
    unittest.main()
