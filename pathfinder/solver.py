import heapq
import logging
from typing import Callable, Collection, List, Optional

from .maze import Maze, MazeState, Move, closest_target, manhattan_distance

logger = logging.getLogger(__name__)


class Solver:
    class Node:
        """One partial path of a search: the cell it reaches, the move that
        reached it and the node it came from (None for the root)."""

        def __init__(self, position, g_cost, h_cost, parent=None, action=None):
            self.position = position
            self.action = action
            self.parent = parent
            self.g_cost = g_cost    # history: cost paid from the search root
            self.h_cost = h_cost    # heuristic: estimate to the nearest target
            self.f_cost = g_cost + h_cost

        def __lt__(self, other):
            return self.f_cost < other.f_cost

        def __repr__(self):
            return f"Node({tuple(self.position)}, g={self.g_cost}, h={self.h_cost})"

    @staticmethod
    def manhattan_distance(pos1, pos2):
        """Calculate Manhattan distance between two points."""
        return manhattan_distance(pos1, pos2)

    @staticmethod
    def closest_target(position, targets):
        """Target nearest to position by Manhattan distance, first one on ties."""
        return closest_target(position, targets)

    @classmethod
    def heuristic(cls, position, targets):
        """Manhattan distance to the closest target.

        Measuring against the closest member keeps the estimate admissible
        when any target in the set ends the search.
        """
        closest = cls.closest_target(position, targets)
        if closest is None:
            raise ValueError("heuristic needs at least one target")
        return cls.manhattan_distance(position, closest)

    @staticmethod
    def _path_to(node) -> List[Move]:
        """Collect the moves from the root down to node."""
        path = []
        while node.parent is not None:
            path.append(node.action)
            node = node.parent
        return path[::-1]

    @classmethod
    def search(cls, maze: Maze, start: MazeState,
               is_target: Callable[[MazeState], bool],
               targets: Collection[MazeState],
               on_expand: Optional[Callable[['Solver.Node'], None]] = None) -> Optional[List[Move]]:
        """A* from start until a cell satisfying is_target is expanded.

        Parameters:
            maze: the maze supplying legal moves and cell costs.
            start: cell the search is rooted at.
            is_target: predicate ending the search.
            targets: cells the heuristic is measured against.
            on_expand: optional callback invoked with every expanded node.

        Returns the list of moves from start to the first target reached, or
        None if no target can be reached.
        """
        if not targets:
            return None

        open_set = []
        closed_set = set()
        heapq.heappush(open_set, cls.Node(start, 0, cls.heuristic(start, targets)))

        while open_set:
            current = heapq.heappop(open_set)
            if current.position in closed_set:
                continue
            closed_set.add(current.position)

            if on_expand is not None:
                on_expand(current)

            if is_target(current.position):
                return cls._path_to(current)

            for move, new_pos in maze.legal_moves(current.position).items():
                if new_pos in closed_set:
                    continue
                new_node = cls.Node(
                    new_pos,
                    current.g_cost + maze.cost_of(new_pos),
                    cls.heuristic(new_pos, targets),
                    parent=current,
                    action=move,
                )
                heapq.heappush(open_set, new_node)

        return None

    @classmethod
    def solve(cls, maze: Maze, on_expand=None) -> Optional[List[Move]]:
        """Solve the maze: entry to a key, then on to the cheapest goal.

        Returns the combined list of moves, or None when the maze has no key,
        no goal, or the key or every goal is out of reach.
        """
        if not maze.keys or not maze.goals:
            return None

        path_to_key = cls.search(maze, maze.entry, maze.is_key, maze.keys, on_expand)
        if path_to_key is None:
            return None

        key = maze.path_cells(path_to_key)[-1]
        path_to_goal = cls.search(maze, key, maze.is_goal, maze.goals, on_expand)
        if path_to_goal is None:
            return None

        return path_to_key + path_to_goal


def log_expansion(node: Solver.Node):
    """Observer for Solver.search that logs each expanded node at DEBUG."""
    logger.debug("expand %s history=%d heuristic=%d", tuple(node.position), node.g_cost, node.h_cost)
