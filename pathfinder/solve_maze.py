import argparse
import logging
import sys

from .maze import MalformedMazeError, Maze
from .solver import Solver, log_expansion


def main(argv=None):
    parser = argparse.ArgumentParser(description="Find the cheapest route from the entry through the key to a goal.")
    parser.add_argument("maze_file", help="Text file with one maze row per line ('-' reads stdin)")
    parser.add_argument("--image", type=str, default=None, help="Save a PNG of the solved maze to this path")
    parser.add_argument("--size", type=int, default=256, help="Side length of the saved image (default: 256)")
    parser.add_argument("--verbose", action="store_true", help="Log every node the search expands")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.maze_file == "-":
            maze = Maze.from_text(sys.stdin.read())
        else:
            maze = Maze.from_file(args.maze_file)
    except MalformedMazeError as e:
        print(f"Invalid maze: {e}", file=sys.stderr)
        return 2

    solution = Solver.solve(maze, on_expand=log_expansion if args.verbose else None)
    if solution is None:
        print("No solution")
        return 1

    is_valid, cost = maze.test_solution(solution)
    print(' '.join(solution))
    print(f"valid={is_valid} cost={cost}")

    if args.image:
        maze.save_solved_maze_image(solution, filename=args.image, target_size=(args.size, args.size))
        print(f"Saved {args.image}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
