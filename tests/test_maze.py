import numpy as np
import pytest

from pathfinder.maze import CellKind, MalformedMazeError, Maze, MazeState, Move, SolutionCheck

# Entry (1,1), key (5,1), goal (5,3)
simple_rows = [
    "XXXXXXX",
    "XI...KX",
    "X.....X",
    "X.X.XGX",
    "XXXXXXX",
]

# Two goals, mud between the entry and the key
two_goal_rows = [
    "XXXXXXX",
    "XI.G..X",
    "X.MMMGX",
    "X.XKX.X",
    "XXXXXXX",
]


# 1. Construction
def test_maze_records_special_cells():
    maze = Maze(two_goal_rows)
    assert maze.width == 7 and maze.height == 5
    assert maze.entry == MazeState(1, 1)
    assert maze.key == MazeState(3, 3)
    assert maze.goals == (MazeState(3, 1), MazeState(5, 2)), "goals should keep row-major order"


def test_maze_kinds_and_text_round_trip():
    maze = Maze(two_goal_rows)
    assert maze.kind_at(MazeState(0, 0)) == CellKind.WALL
    assert maze.kind_at(MazeState(2, 2)) == CellKind.MUD
    assert maze.to_rows() == two_goal_rows
    assert str(maze) == "\n".join(two_goal_rows)


def test_maze_grid_is_read_only():
    maze = Maze(simple_rows)
    with pytest.raises(ValueError):
        maze.grid[1, 1] = CellKind.WALL


def test_unknown_character_is_rejected():
    with pytest.raises(MalformedMazeError):
        Maze(["XXX", "XIZ", "XXX"])


def test_missing_entry_is_rejected():
    with pytest.raises(MalformedMazeError):
        Maze(["XXXXXXX", "XXXKGXX", "XXXXXXX"])


def test_empty_maze_is_rejected():
    with pytest.raises(MalformedMazeError):
        Maze([])


def test_second_entry_is_rejected():
    with pytest.raises(MalformedMazeError):
        Maze(["IGIGIGI", "IGIGIGI"])


def test_ragged_rows_are_rejected():
    with pytest.raises(MalformedMazeError):
        Maze(["XXXX", "XI.", "XXXX"])


def test_malformed_maze_error_is_a_value_error():
    assert issubclass(MalformedMazeError, ValueError)


def test_missing_key_and_goal_are_allowed():
    maze = Maze(["XXX", "XIX", "XXX"])
    assert maze.key is None
    assert maze.keys == ()
    assert maze.goals == ()


def test_from_text_skips_blank_lines_and_trailing_space():
    maze = Maze.from_text("\nXXXXXXX  \nXI...KX\nX.....X\nX.X.XGX\nXXXXXXX\n\n")
    assert maze.to_rows() == simple_rows


def test_from_file(tmp_path):
    path = tmp_path / "maze.txt"
    path.write_text("\n".join(simple_rows))
    assert Maze.from_file(str(path)).to_rows() == simple_rows


# 2. Queries
def test_is_goal_and_is_key():
    maze = Maze(simple_rows)
    assert maze.is_goal(MazeState(5, 3))
    assert not maze.is_goal(MazeState(5, 1))
    assert maze.is_key(MazeState(5, 1))
    assert not maze.is_key(MazeState(5, 3))


def test_is_key_is_false_without_a_key():
    maze = Maze(["XXXX", "XIGX", "XXXX"])
    assert not maze.is_key(MazeState(1, 1))
    assert not maze.is_key(MazeState(2, 1))


def test_cost_of_each_kind():
    maze = Maze(two_goal_rows)
    assert maze.cost_of(MazeState(1, 1)) == 1  # entry
    assert maze.cost_of(MazeState(2, 1)) == 1  # open
    assert maze.cost_of(MazeState(3, 1)) == 1  # goal
    assert maze.cost_of(MazeState(3, 3)) == 1  # key
    assert maze.cost_of(MazeState(2, 2)) == 3  # mud


def test_cost_of_wall_raises():
    maze = Maze(simple_rows)
    with pytest.raises(ValueError):
        maze.cost_of(MazeState(0, 0))


def test_legal_moves_order_and_walls():
    maze = Maze(simple_rows)
    moves = maze.legal_moves(MazeState(1, 1))
    assert moves == {Move.DOWN: MazeState(1, 2), Move.RIGHT: MazeState(2, 1)}

    moves = maze.legal_moves(MazeState(3, 2))
    assert list(moves) == [Move.UP, Move.DOWN, Move.LEFT, Move.RIGHT]


def test_legal_moves_stay_in_bounds():
    maze = Maze(["I.", ".."])
    assert maze.legal_moves(MazeState(0, 0)) == {Move.DOWN: MazeState(0, 1), Move.RIGHT: MazeState(1, 0)}
    assert maze.legal_moves(MazeState(1, 1)) == {Move.UP: MazeState(1, 0), Move.LEFT: MazeState(0, 1)}


def test_move_deltas():
    assert Move.UP.delta == (0, -1)
    assert Move.DOWN.delta == (0, 1)
    assert Move.LEFT.delta == (-1, 0)
    assert Move.RIGHT.delta == (1, 0)
    assert MazeState(2, 2).shifted(Move.LEFT) == MazeState(1, 2)
    assert Move("U") is Move.UP and Move.UP == "U"


def test_maze_state_is_hashable_by_value():
    assert {MazeState(1, 2), MazeState(1, 2)} == {MazeState(1, 2)}
    assert MazeState(1, 2) == (1, 2)


def test_closest_goal():
    maze = Maze(two_goal_rows)
    assert maze.closest_goal(MazeState(3, 3)) == MazeState(3, 1)
    assert maze.closest_goal(MazeState(5, 3)) == MazeState(5, 2)


def test_closest_goal_ties_go_to_first_goal():
    maze = Maze(["G.I.G", ".....", "..K.."])
    assert maze.closest_goal(MazeState(2, 2)) == MazeState(0, 0)


def test_closest_goal_without_goals():
    maze = Maze(["XXX", "XIX", "XXX"])
    assert maze.closest_goal(MazeState(1, 1)) is None


# 3. Solution checking
def test_test_solution_valid_route():
    maze = Maze(simple_rows)
    result = maze.test_solution(["R", "R", "R", "R", "D", "D"])
    assert result == SolutionCheck(True, 6)
    is_valid, cost = result
    assert is_valid and cost == 6


def test_test_solution_accepts_moves():
    maze = Maze(simple_rows)
    assert maze.test_solution([Move.RIGHT] * 4 + [Move.DOWN] * 2) == (True, 6)


def test_test_solution_counts_mud():
    maze = Maze(two_goal_rows)
    assert maze.test_solution(list("RRDDUU")) == (True, 10)


def test_test_solution_wall_gives_minus_one():
    maze = Maze(simple_rows)
    assert maze.test_solution(["U"]) == (False, -1)
    assert maze.test_solution(["R", "R", "R", "R", "D", "D", "D"]) == (False, -1), \
        "hitting a wall at the end should still be invalid"


def test_test_solution_off_grid_gives_minus_one():
    maze = Maze(["I.", "KG"])
    assert maze.test_solution(["L"]) == (False, -1)
    assert maze.test_solution(["D", "R", "D"]) == (False, -1)


def test_test_solution_unknown_token_gives_minus_one():
    maze = Maze(simple_rows)
    assert maze.test_solution(["R", "north"]) == (False, -1)


def test_test_solution_goal_without_key():
    maze = Maze(simple_rows)
    result = maze.test_solution(["D", "R", "R", "R", "R", "D"])
    assert result.is_valid is False
    assert result.cost == 6, "a legal walk keeps its cost even when it is not a solution"


def test_test_solution_key_without_goal():
    maze = Maze(simple_rows)
    assert maze.test_solution(list("RRRR")) == (False, 4)


def test_test_solution_empty_walk():
    maze = Maze(simple_rows)
    assert maze.test_solution([]) == (False, 0)


def test_test_solution_with_any_of_several_keys():
    maze = Maze(["IK.", ".KG"])
    assert maze.test_solution(list("DRR")) == (True, 3)


def test_path_cells():
    maze = Maze(simple_rows)
    assert maze.path_cells("RD") == [MazeState(1, 1), MazeState(2, 1), MazeState(2, 2)]
    with pytest.raises(ValueError):
        maze.path_cells("U")


# 4. Output
def test_save_maze_image(tmp_path):
    maze = Maze(simple_rows)
    filename = tmp_path / "maze.png"
    img = maze.save_maze_image(str(filename), target_size=(14, 10))
    assert filename.exists()
    assert img.size == (14, 10)
    pixels = np.array(img)
    assert tuple(pixels[0, 0]) == (0, 0, 0), "walls should be black"


def test_save_solved_maze_image_marks_route():
    maze = Maze(simple_rows)
    img = maze.save_solved_maze_image(list("RRRRDD"), filename=None, target_size=(7, 5))
    pixels = np.array(img)
    assert tuple(pixels[1, 2]) == (255, 0, 0), "route cells should be red"
    assert tuple(pixels[3, 5]) == (0, 0, 255), "last cell should be blue"
    assert tuple(pixels[2, 1]) == (255, 255, 255), "cells off the route keep their colour"
