import argparse
import os

from .data_generator import DataGenerator, GeneratorConfig, MazeGenerator
from .solver import Solver


def generate_solved_mazes(config, num_mazes, output_filename, images_directory=None,
                          resolution=(64, 64), num_processes=None):
    generator = MazeGenerator(config)
    dg = DataGenerator(generator, Solver())

    output_dir = os.path.dirname(output_filename)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    df = dg.generate_mazes(num_mazes, output_directory=images_directory,
                           resolution=resolution, num_processes=num_processes)
    df.to_parquet(output_filename)
    return df


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate and solve random key mazes and save them to a parquet file.")
    parser.add_argument("--width", type=int, default=15, help="Width of the mazes (default: 15)")
    parser.add_argument("--height", type=int, default=15, help="Height of the mazes (default: 15)")
    parser.add_argument("--num_mazes", type=int, default=100, help="Number of mazes to generate (default: 100)")
    parser.add_argument("--num_goals", type=int, default=2, help="Goal cells per maze (default: 2)")
    parser.add_argument("--mud_ratio", type=float, default=0.15, help="Share of open cells turned into mud (default: 0.15)")
    parser.add_argument("--loop_ratio", type=float, default=0.1, help="Share of interior walls removed to add loops (default: 0.1)")
    parser.add_argument("--seed", type=int, default=None, help="Base random seed; maze i uses seed + i")
    parser.add_argument("--output_filename", type=str, default="data/mazes/solutions.parquet", help="Output parquet file")
    parser.add_argument("--images_directory", type=str, default=None, help="If set, save a PNG of every solved maze here")
    parser.add_argument("--resolution", type=int, default=64, help="Resolution of saved images (default: 64)")
    parser.add_argument("--num_processes", type=int, default=None, help="Worker processes (default: all cores but one)")

    args = parser.parse_args(argv)

    config = GeneratorConfig(
        width=args.width,
        height=args.height,
        num_goals=args.num_goals,
        mud_ratio=args.mud_ratio,
        loop_ratio=args.loop_ratio,
        seed=args.seed,
    )
    df = generate_solved_mazes(config, args.num_mazes, args.output_filename,
                               images_directory=args.images_directory,
                               resolution=(args.resolution, args.resolution),
                               num_processes=args.num_processes)
    print(f"Saved {len(df)} mazes to {args.output_filename} "
          f"({int(df['valid'].sum())} solved, mean cost {df['cost'].mean():.2f})")


if __name__ == "__main__":
    main()
