import argparse
import json
import logging
import os
import random

import kociemba as koc

import cube
import solver
from notation import format_sequence


def reference_solution(c):
    """
    Near-optimal solution from kociemba, for comparison.

    Args:
        c: the scrambled cube

    Returns:
        str: the solution, or None if kociemba rejects the state
    """
    try:
        return koc.solve(c.to_kociemba_string())
    except ValueError:
        return None


def generate_record(num_moves, rng, reference=True):
    """
    Scramble a fresh cube, solve it and describe the result.

    Args:
        num_moves: scramble length
        rng: random.Random to draw the scramble from
        reference: also ask kociemba for a reference solution

    Returns:
        dict: one JSON-ready record
    """
    c = cube.Cube(rng=rng)
    scramble = c.scramble(num_moves)
    result = solver.solve(c)

    record = {
        "scramble": format_sequence(scramble),
        "solution": format_sequence(result.moves),
        "move_count": result.move_count,
        "solved": result.solved,
        "state": c.get_state(),
        "level": num_moves,
    }
    if result.error is not None:
        record["error"] = result.error
    if reference:
        ref = reference_solution(c)
        record["reference_solution"] = ref
        record["reference_length"] = len(ref.split()) if ref is not None else None
    return record


def print_summary(records):
    if not records:
        print("No scrambles generated")
        return
    solved = sum(1 for record in records if record["solved"])
    counts = [record["move_count"] for record in records]
    print(f"Solved {solved}/{len(records)} ({100.0 * solved / len(records):.1f}%)")
    print(f"Move count: mean {sum(counts) / len(counts):.1f}, max {max(counts)}")
    lengths = [record["reference_length"] for record in records if record.get("reference_length")]
    if lengths:
        print(f"Reference length: mean {sum(lengths) / len(lengths):.1f}")


def write_records(records, output_file):
    directory = os.path.dirname(output_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(output_file, "w") as f:
        for record in records:
            # one JSON object per line
            f.write(json.dumps(record) + "\n")


def generate_scrambles_for_level(n, target_count, rng, output_file=None, reference=True):
    """Generate, solve and save scrambles of one length"""
    if output_file is None:
        output_file = os.path.join("scrambles", f"{n}movescramble.txt")

    print(f"Generating {target_count} scrambles of {n} moves...")
    print(f"Will save to {output_file}")

    records = []
    for count in range(1, target_count + 1):
        records.append(generate_record(n, rng, reference))
        if count % 100 == 0:
            print(f"Generated {count}/{target_count} scrambles")

    write_records(records, output_file)
    print_summary(records)
    print(f"Results saved to {output_file}")
    return records


def generate_mixed_scrambles(levels_and_counts, rng, output_file=None, reference=True):
    """
    Generate scrambles for several lengths and save them to a single file.
    The records are shuffled with the same random source before writing.

    Args:
        levels_and_counts: list of (level, count) tuples

    Returns:
        list: the records, in the order written
    """
    if output_file is None:
        max_level = max(level for level, _ in levels_and_counts)
        output_file = os.path.join("scrambles", f"{max_level}movescramble.txt")

    print(f"Generating mixed scrambles for levels: {levels_and_counts}")
    print(f"Will save to {output_file}")

    records = []
    for level, target_count in levels_and_counts:
        print(f"\nGenerating {target_count} scrambles for level {level}...")
        for count in range(1, target_count + 1):
            records.append(generate_record(level, rng, reference))
            if count % 100 == 0:
                print(f"Generated {count}/{target_count} scrambles for level {level}")

    print(f"\nRandomizing the order of {len(records)} scrambles...")
    rng.shuffle(records)

    write_records(records, output_file)
    print_summary(records)
    print(f"All {len(records)} scrambles saved to {output_file} in random order")
    return records


def parse_levels(text):
    """'6:25,7:25' -> [(6, 25), (7, 25)]"""
    levels_and_counts = []
    for pair in text.split(","):
        level, count = map(int, pair.split(":"))
        levels_and_counts.append((level, count))
    return levels_and_counts


def build_parser():
    parser = argparse.ArgumentParser(
        description="Scramble cubes, solve them layer by layer and save the results"
    )

    # Create a mutually exclusive group for the two modes
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument("--moves", type=int, help="Scramble length to generate")
    mode_group.add_argument(
        "--mixed", action="store_true", help="Generate several scramble lengths in a single file"
    )

    parser.add_argument("--count", type=int, default=100, help="Number of scrambles (single length mode)")
    parser.add_argument(
        "--levels", type=str, help='Comma-separated list of length:count pairs (e.g., "5:10,20:10")'
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible scrambles")
    parser.add_argument("--output", type=str, default=None, help="Output file (JSON lines)")
    parser.add_argument(
        "--no-reference", action="store_true", help="Skip the kociemba reference solution"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    rng = random.Random(args.seed)
    reference = not args.no_reference

    if args.mixed:
        if not args.levels:
            parser.error("--levels is required when using --mixed")
        try:
            levels_and_counts = parse_levels(args.levels)
        except ValueError as e:
            parser.error(f"Error parsing levels and counts: {e}. Format should be 'level:count,level:count'")
        return generate_mixed_scrambles(levels_and_counts, rng, args.output, reference)

    if args.moves is None or args.moves < 0:
        parser.error("--moves must be a non-negative integer")
    return generate_scrambles_for_level(args.moves, args.count, rng, args.output, reference)


if __name__ == "__main__":
    main()
