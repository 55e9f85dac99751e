from enum import Enum, IntEnum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

import numpy as np
from PIL import Image


class MalformedMazeError(ValueError):
    """Raised when a maze description cannot be turned into a Maze."""


class CellKind(IntEnum):
    OPEN = 0
    WALL = 1
    ENTRY = 2
    GOAL = 3
    KEY = 4
    MUD = 5


CHAR_TO_KIND = {
    '.': CellKind.OPEN,
    'X': CellKind.WALL,
    'I': CellKind.ENTRY,
    'G': CellKind.GOAL,
    'K': CellKind.KEY,
    'M': CellKind.MUD,
}
KIND_TO_CHAR = {kind: char for char, kind in CHAR_TO_KIND.items()}

# Cost of arriving at a cell of each kind. Walls are never entered.
CELL_COSTS = {
    CellKind.OPEN: 1,
    CellKind.ENTRY: 1,
    CellKind.GOAL: 1,
    CellKind.KEY: 1,
    CellKind.MUD: 3,
}

# RGB colour per CellKind value, indexed by the grid directly
PALETTE = np.array([
    [255, 255, 255],  # open = white
    [0, 0, 0],        # wall = black
    [255, 128, 0],    # entry = orange
    [0, 255, 0],      # goal = green
    [255, 255, 0],    # key = yellow
    [139, 90, 43],    # mud = brown
], dtype=np.uint8)
PATH_COLOUR = [255, 0, 0]     # route = red
CURRENT_COLOUR = [0, 0, 255]  # last cell of the route = blue


class Move(str, Enum):
    UP = 'U'
    DOWN = 'D'
    LEFT = 'L'
    RIGHT = 'R'

    @property
    def delta(self) -> Tuple[int, int]:
        return MOVE_DELTAS[self]


# Fixed (dcol, drow) table; dict order is the order legal moves are reported in.
MOVE_DELTAS = {
    Move.UP: (0, -1),
    Move.DOWN: (0, 1),
    Move.LEFT: (-1, 0),
    Move.RIGHT: (1, 0),
}


class MazeState(NamedTuple):
    """A cell coordinate, (col, row) with row 0 at the top."""
    col: int
    row: int

    def shifted(self, move: Move) -> 'MazeState':
        dcol, drow = MOVE_DELTAS[move]
        return MazeState(self.col + dcol, self.row + drow)


class SolutionCheck(NamedTuple):
    is_valid: bool
    cost: int


INVALID_SOLUTION = SolutionCheck(False, -1)


class Maze:
    """Immutable grid of CellKind values parsed from rows of characters.

    'X': wall, '.': open, 'I': the entry (exactly one), 'G': goal,
    'K': key, 'M': mud. For example:

        Maze(["XXXXXXX",
              "XI...KX",
              "X.....X",
              "X.X.XGX",
              "XXXXXXX"])
    """

    def __init__(self, rows: Iterable[str]):
        rows = list(rows)
        self.height = len(rows)
        self.width = len(rows[0]) if rows else 0

        grid = np.empty((self.height, self.width), dtype=np.uint8)
        entries: List[MazeState] = []
        goals: List[MazeState] = []
        keys: List[MazeState] = []

        for row, line in enumerate(rows):
            if len(line) != self.width:
                raise MalformedMazeError(
                    f"Row {row} has length {len(line)}, expected {self.width}")
            for col, char in enumerate(line):
                kind = CHAR_TO_KIND.get(char)
                if kind is None:
                    raise MalformedMazeError(
                        f"Unrecognised character {char!r} at column {col}, row {row}")
                grid[row, col] = kind
                if kind == CellKind.ENTRY:
                    entries.append(MazeState(col, row))
                elif kind == CellKind.GOAL:
                    goals.append(MazeState(col, row))
                elif kind == CellKind.KEY:
                    keys.append(MazeState(col, row))

        if not entries:
            raise MalformedMazeError("Maze has no entry cell")
        if len(entries) > 1:
            raise MalformedMazeError(f"Maze has {len(entries)} entry cells, expected exactly one")

        grid.setflags(write=False)
        self.grid = grid
        self.entry = entries[0]
        self.goals: Tuple[MazeState, ...] = tuple(goals)
        self.keys: Tuple[MazeState, ...] = tuple(keys)
        self._goal_set = frozenset(goals)
        self._key_set = frozenset(keys)

    @classmethod
    def from_text(cls, text: str) -> 'Maze':
        """Build a maze from newline separated rows, skipping blank lines."""
        rows = [line.rstrip() for line in text.splitlines()]
        return cls([line for line in rows if line])

    @classmethod
    def from_file(cls, filename: str) -> 'Maze':
        with open(filename, encoding='utf-8') as f:
            return cls.from_text(f.read())

    @property
    def key(self) -> Optional[MazeState]:
        """The (first) key cell, or None if the maze has no key."""
        return self.keys[0] if self.keys else None

    def __repr__(self):
        return (f"Maze(width={self.width}, height={self.height}, entry={tuple(self.entry)}, "
                f"keys={len(self.keys)}, goals={len(self.goals)})")

    def __str__(self):
        return '\n'.join(self.to_rows())

    def to_rows(self) -> List[str]:
        return [''.join(KIND_TO_CHAR[CellKind(v)] for v in line) for line in self.grid]

    # ---------------------------------------------------------------- queries

    def in_bounds(self, state: MazeState) -> bool:
        return 0 <= state.col < self.width and 0 <= state.row < self.height

    def kind_at(self, state: MazeState) -> CellKind:
        return CellKind(self.grid[state.row, state.col])

    def is_goal(self, state: MazeState) -> bool:
        return state in self._goal_set

    def is_key(self, state: MazeState) -> bool:
        return state in self._key_set

    def cost_of(self, state: MazeState) -> int:
        """Cost of arriving at the given cell."""
        kind = self.kind_at(state)
        if kind == CellKind.WALL:
            raise ValueError(f"Asked cost of a wall cell {tuple(state)}")
        return CELL_COSTS[kind]

    def legal_moves(self, state: MazeState) -> Dict[Move, MazeState]:
        """Map each move that stays in bounds and off walls to the cell it reaches.

        Moves are reported in the order Up, Down, Left, Right.
        """
        result = {}
        for move in MOVE_DELTAS:
            new_state = state.shifted(move)
            if self.in_bounds(new_state) and self.grid[new_state.row, new_state.col] != CellKind.WALL:
                result[move] = new_state
        return result

    def closest_goal(self, state: MazeState) -> Optional[MazeState]:
        """Goal with the smallest Manhattan distance from state, first one on ties."""
        return closest_target(state, self.goals)

    # ----------------------------------------------------------- verification

    def _replay(self, actions: Iterable[str]):
        """Yield every cell landed on, or None once the walk goes illegal."""
        state = self.entry
        for action in actions:
            try:
                move = Move(action)
            except ValueError:
                yield None
                return
            state = state.shifted(move)
            if not self.in_bounds(state) or self.kind_at(state) == CellKind.WALL:
                yield None
                return
            yield state

    def test_solution(self, actions: Iterable[str]) -> SolutionCheck:
        """Replay actions from the entry and report (is_valid, cost).

        The walk is a solution when it ends on a goal and touched a key on the
        way. A walk that leaves the grid, hits a wall or uses an unknown token
        gives (False, -1); any other walk reports its accumulated cost.
        """
        state = self.entry
        cost = 0
        has_key = False
        for state in self._replay(actions):
            if state is None:
                return INVALID_SOLUTION
            has_key = has_key or self.is_key(state)
            cost += self.cost_of(state)
        return SolutionCheck(self.is_goal(state) and has_key, cost)

    def path_cells(self, actions: Iterable[str]) -> List[MazeState]:
        """Cells visited by the walk, starting with the entry.

        Raises ValueError if the walk is illegal.
        """
        path = [self.entry]
        for state in self._replay(actions):
            if state is None:
                raise ValueError(f"Illegal move after {len(path) - 1} steps")
            path.append(state)
        return path

    # ----------------------------------------------------------------- output

    def _image_array(self) -> np.ndarray:
        return PALETTE[self.grid]

    def save_maze_image(self, filename='maze.png', target_size=(64, 64)):
        """Save the maze as a PNG image; pass filename=None to only build it."""
        img = Image.fromarray(self._image_array())
        img_resized = img.resize(target_size, Image.NEAREST)
        if filename is not None:
            img_resized.save(filename)
        return img_resized

    def save_solved_maze_image(self, actions, filename='solved_maze.png', target_size=(64, 64)):
        """Save the maze with the route of actions drawn from the entry.

        Route cells are red and the cell the route ends on is blue; the entry
        keeps its own colour.
        """
        img_array = self._image_array()
        path = self.path_cells(actions) if actions is not None else []

        if len(path) > 1:
            for state in path[1:-1]:
                img_array[state.row, state.col] = PATH_COLOUR
            last = path[-1]
            img_array[last.row, last.col] = CURRENT_COLOUR

        img = Image.fromarray(img_array)
        img_resized = img.resize(target_size, Image.NEAREST)
        if filename is not None:
            img_resized.save(filename)
        return img_resized


def manhattan_distance(pos1: MazeState, pos2: MazeState) -> int:
    """Calculate Manhattan distance between two cells."""
    return abs(pos1[0] - pos2[0]) + abs(pos1[1] - pos2[1])


def closest_target(state: MazeState, targets: Iterable[MazeState]) -> Optional[MazeState]:
    best = None
    best_distance = None
    for target in targets:
        distance = manhattan_distance(state, target)
        if best_distance is None or distance < best_distance:
            best, best_distance = target, distance
    return best
