from .maze import CellKind, MalformedMazeError, Maze, MazeState, Move, SolutionCheck
from .solver import Solver, log_expansion
from .data_generator import DataGenerator, GeneratorConfig, MazeGenerator

__all__ = [
    'CellKind',
    'DataGenerator',
    'GeneratorConfig',
    'MalformedMazeError',
    'Maze',
    'MazeGenerator',
    'MazeState',
    'Move',
    'SolutionCheck',
    'Solver',
    'log_expansion'
]
