import os
import multiprocessing as mp
from dataclasses import dataclass, replace
from functools import partial
from typing import Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from .maze import CellKind, KIND_TO_CHAR, Maze
from .solver import Solver


@dataclass
class GeneratorConfig:
    width: int = 15
    height: int = 15
    num_goals: int = 2
    mud_ratio: float = 0.15   # share of free open cells turned into mud
    loop_ratio: float = 0.1   # share of interior walls knocked through to create loops
    seed: Optional[int] = None


class MazeGenerator:
    def __init__(self, config: GeneratorConfig = None):
        config = config or GeneratorConfig()
        # Carving works on odd cells, so force odd dimensions
        if config.width % 2 == 0:
            config = replace(config, width=config.width + 1)
        if config.height % 2 == 0:
            config = replace(config, height=config.height + 1)
        if config.width < 3 or config.height < 3:
            raise ValueError(f"Maze must be at least 3x3, got {config.width}x{config.height}")
        if config.num_goals < 1:
            raise ValueError("num_goals must be at least 1")
        self.config = config
        self.rng = np.random.default_rng(config.seed)

    def generate(self) -> Maze:
        """Generate a new random maze with one entry, one key and num_goals goals.

        The open cells of a generated maze are always connected, so every
        generated maze has a solution.
        """
        cfg = self.config
        grid = np.full((cfg.height, cfg.width), CellKind.WALL, dtype=np.uint8)

        start_x = int(self.rng.choice(np.arange(1, cfg.width, 2)))
        start_y = int(self.rng.choice(np.arange(1, cfg.height, 2)))
        self._carve_path(grid, start_x, start_y)
        self._open_loops(grid)

        open_cells = np.argwhere(grid == CellKind.OPEN)  # (row, col) pairs
        needed = 2 + cfg.num_goals
        if len(open_cells) < needed:
            raise ValueError(f"Maze has {len(open_cells)} open cells, need {needed}")

        order = self.rng.permutation(len(open_cells))
        picks = open_cells[order]
        specials = [CellKind.ENTRY, CellKind.KEY] + [CellKind.GOAL] * cfg.num_goals
        for (y, x), kind in zip(picks[:needed], specials):
            grid[y, x] = kind

        for y, x in picks[needed:]:
            if self.rng.random() < cfg.mud_ratio:
                grid[y, x] = CellKind.MUD

        rows = [''.join(KIND_TO_CHAR[CellKind(v)] for v in line) for line in grid]
        return Maze(rows)

    def _carve_path(self, grid, x, y):
        """Carve passages with a depth-first backtracker over the odd cells."""
        height, width = grid.shape
        grid[y, x] = CellKind.OPEN
        stack = [(x, y)]
        directions = [(2, 0), (0, 2), (-2, 0), (0, -2)]

        while stack:
            x, y = stack[-1]
            candidates = []
            for dx, dy in directions:
                new_x, new_y = x + dx, y + dy
                if (0 < new_x < width - 1 and
                        0 < new_y < height - 1 and
                        grid[new_y, new_x] == CellKind.WALL):
                    candidates.append((new_x, new_y))

            if not candidates:
                stack.pop()
                continue

            new_x, new_y = candidates[self.rng.integers(len(candidates))]
            grid[(y + new_y) // 2, (x + new_x) // 2] = CellKind.OPEN
            grid[new_y, new_x] = CellKind.OPEN
            stack.append((new_x, new_y))

    def _open_loops(self, grid):
        """Knock through interior walls that separate two open cells."""
        height, width = grid.shape
        for y in range(1, height - 1):
            for x in range(1, width - 1):
                if grid[y, x] != CellKind.WALL:
                    continue
                horizontal = grid[y, x - 1] == CellKind.OPEN and grid[y, x + 1] == CellKind.OPEN
                vertical = grid[y - 1, x] == CellKind.OPEN and grid[y + 1, x] == CellKind.OPEN
                if (horizontal or vertical) and self.rng.random() < self.config.loop_ratio:
                    grid[y, x] = CellKind.OPEN


class DataGenerator:
    def __init__(self, generator: MazeGenerator, solver: Solver):
        self.generator = generator
        self.solver = solver

    @staticmethod
    def _process_single_maze(iteration, config, solver, output_directory, resolution):
        """Generate and solve one maze - this will run in parallel"""
        # Derive a per-maze seed so workers do not repeat each other
        seed = None if config.seed is None else config.seed + iteration
        maze = MazeGenerator(replace(config, seed=seed)).generate()

        solution = solver.solve(maze)
        is_valid, cost = maze.test_solution(solution) if solution is not None else (False, -1)

        frame = None
        if output_directory is not None:
            frame = f"{output_directory}/maze_{iteration}.png"
            maze.save_solved_maze_image(solution, filename=frame, target_size=resolution)

        return {
            'maze': str(maze),
            'solution': ''.join(solution) if solution is not None else None,
            'cost': cost,
            'valid': is_valid,
            'frame': frame,
        }

    def generate_mazes(self, num_mazes: int = 1, output_directory: str = None,
                       resolution: tuple = (64, 64), num_processes: int = None):
        """Generate and solve mazes, optionally saving an image of each solution.

        Returns a DataFrame with one row per maze.
        """
        if output_directory is not None:
            os.makedirs(output_directory, exist_ok=True)

        # Determine number of processes to use (leave one core free)
        if num_processes is None:
            num_processes = max(1, mp.cpu_count() - 1)

        process_maze = partial(
            self._process_single_maze,
            config=self.generator.config,
            solver=self.solver,
            output_directory=output_directory,
            resolution=resolution,
        )

        if num_processes == 1:
            results = [process_maze(i) for i in tqdm(range(num_mazes), desc="Generating mazes")]
        else:
            with mp.Pool(num_processes) as pool:
                results = list(tqdm(
                    pool.imap(process_maze, range(num_mazes)),
                    total=num_mazes,
                    desc="Generating mazes"
                ))

        return pd.DataFrame(results, columns=['maze', 'solution', 'cost', 'valid', 'frame'])
