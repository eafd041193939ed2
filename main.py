#!/usr/bin/env python3
"""
Snake DQN - Main Entry Point
============================

Trains a Double-DQN agent to play Snake headlessly and exports the learned
network as layers-model JSON files.

Usage:
    # Train with defaults (100000 episodes, 20x20 grid)
    python main.py

    # Short reproducible run
    python main.py --episodes 2000 --seed 42 --print-every 50

    # Custom board and output directory
    python main.py --grid-size 15 --model-dir runs/small

    # Play greedily with an exported model
    python main.py --evaluate models/model_best.json

Exit codes:
    0   success
    1   a model file could not be written or read
    130 interrupted with Ctrl+C
"""

import argparse
import os
import sys
from typing import Optional

import numpy as np

from config import Config
from snake_dqn.ai.agent import Agent
from snake_dqn.ai.export import ModelExportError, load_model
from snake_dqn.ai.trainer import Trainer
from snake_dqn.game.features import FEATURE_SIZE
from snake_dqn.game.snake import SnakeGame
from snake_dqn.utils.logger import LogLevel, configure_from_config, get_log_path, get_logger, log_evaluation

EXIT_OK = 0
EXIT_EXPORT_FAILED = 1
EXIT_INTERRUPTED = 130


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Snake DQN - Train a Double-DQN agent to play Snake",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========
    python main.py --episodes 5000 --seed 1
    python main.py --grid-size 10 --print-every 10
    python main.py --evaluate models/model_final.json

Invalid numeric values fall back to their defaults with a warning.
Press Ctrl+C to stop training early.
        """
    )

    # Numeric options are parsed as strings so bad values can fall back to defaults
    parser.add_argument(
        '--episodes', type=str, default=None,
        help='Number of training episodes (default: 100000)'
    )
    parser.add_argument(
        '--print-every', type=str, default=None,
        help='Log progress every N episodes (default: 100)'
    )
    parser.add_argument(
        '--save-every', type=str, default=None,
        help='Export a checkpoint every N episodes (default: 5000)'
    )
    parser.add_argument(
        '--grid-size', type=str, default=None,
        help='Board side length in cells (default: 20)'
    )
    parser.add_argument(
        '--seed', type=str, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--model-dir', type=str, default=None,
        help='Directory for exported models (default: models)'
    )
    parser.add_argument(
        '--log-level', type=str, default=None,
        help='Console log level: DEBUG, INFO, WARNING, ERROR (default: INFO)'
    )
    parser.add_argument(
        '--no-log-file', action='store_true',
        help='Only log to the console'
    )
    parser.add_argument(
        '--evaluate', type=str, metavar='MODEL_PATH', default=None,
        help='Load an exported model and play greedy episodes instead of training'
    )
    parser.add_argument(
        '--eval-episodes', type=str, default=None,
        help='Episodes to play with --evaluate (default: 10)'
    )

    return parser.parse_args(argv)


def parse_int_option(
    name: str,
    value: Optional[str],
    default: Optional[int],
    minimum: Optional[int] = 1,
    warnings: Optional[list] = None
) -> Optional[int]:
    """
    Convert an option string to an int, falling back to ``default``.

    A value that is not an integer, or is below ``minimum``, is replaced by the
    default and a warning message is appended to ``warnings``.
    """
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        parsed = None
    if parsed is None or (minimum is not None and parsed < minimum):
        if warnings is not None:
            warnings.append(f"Invalid value for --{name}: {value!r}, using default {default}")
        return default
    return parsed


def build_config(args: argparse.Namespace, warnings: list) -> Config:
    """Apply CLI overrides on top of the default configuration."""
    config = Config()

    config.MAX_EPISODES = parse_int_option('episodes', args.episodes, config.MAX_EPISODES, warnings=warnings)
    config.LOG_EVERY = parse_int_option('print-every', args.print_every, config.LOG_EVERY, warnings=warnings)
    config.SAVE_EVERY = parse_int_option('save-every', args.save_every, config.SAVE_EVERY, warnings=warnings)
    config.GRID_SIZE = parse_int_option('grid-size', args.grid_size, config.GRID_SIZE, minimum=5, warnings=warnings)
    config.SEED = parse_int_option('seed', args.seed, config.SEED, minimum=0, warnings=warnings)

    if args.model_dir:
        config.MODEL_DIR = args.model_dir
    if args.log_level:
        try:
            config.LOG_LEVEL = LogLevel.from_name(args.log_level).name
        except ValueError:
            warnings.append(f"Invalid value for --log-level: {args.log_level!r}, using default {config.LOG_LEVEL}")
    if args.no_log_file:
        config.LOG_TO_FILE = False

    return config


def print_startup_banner(config: Config) -> None:
    """Print a welcome banner for the application."""
    print()
    print("=" * 60)
    print("       SNAKE DQN - Double Deep Q-Learning Trainer")
    print("=" * 60)
    print(f"   Grid:     {config.GRID_SIZE}x{config.GRID_SIZE}")
    print(f"   Network:  {config.STATE_SIZE} -> {' -> '.join(map(str, config.HIDDEN_LAYERS))} -> {config.ACTION_SIZE}")
    print(f"   Episodes: {config.MAX_EPISODES:,}")
    print(f"   Models:   {os.path.abspath(config.MODEL_DIR)}")
    print("=" * 60)


def run_evaluation(config: Config, model_path: str, num_episodes: int, rng: np.random.Generator) -> int:
    """Play greedy episodes with an exported model and log the scores."""
    network, epsilon = load_model(model_path)
    if network.input_size != FEATURE_SIZE or network.output_size != config.ACTION_SIZE:
        raise ModelExportError(
            f"{model_path}: network {network.layer_sizes} does not fit "
            f"{FEATURE_SIZE} features and {config.ACTION_SIZE} actions"
        )

    game = SnakeGame(config, rng=rng)
    agent = Agent(config.STATE_SIZE, game.action_size, config, rng=rng, network=network)
    agent.epsilon = epsilon

    trainer = Trainer(game, agent, config)
    log_evaluation(model_path, num_episodes, trainer.evaluate(num_episodes))
    return EXIT_OK


def run_training(config: Config, rng: np.random.Generator) -> int:
    """Train from scratch and export models under MODEL_DIR."""
    logger = get_logger('main')

    game = SnakeGame(config, rng=rng)
    agent = Agent(config.STATE_SIZE, game.action_size, config, rng=rng)
    trainer = Trainer(game, agent, config)

    try:
        trainer.train(config.MAX_EPISODES)
    except KeyboardInterrupt:
        logger.warning(f"Training interrupted by user at episode {trainer.current_episode}")
        return EXIT_INTERRUPTED
    return EXIT_OK


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    warnings: list = []
    config = build_config(args, warnings)
    eval_episodes = parse_int_option('eval-episodes', args.eval_episodes, 10, warnings=warnings)

    configure_from_config(config)
    logger = get_logger('main')
    for message in warnings:
        logger.warning(message)
    if get_log_path() is not None:
        logger.info(f"Logging to {get_log_path()}")

    rng = np.random.default_rng(config.SEED)

    try:
        if args.evaluate:
            return run_evaluation(config, args.evaluate, eval_episodes, rng)

        print_startup_banner(config)
        return run_training(config, rng)
    except ModelExportError as e:
        logger.error(str(e))
        return EXIT_EXPORT_FAILED
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
