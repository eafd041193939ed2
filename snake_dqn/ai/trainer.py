"""
Training Loop
=============

Orchestrates the training process:
    1. Run episodes of the game
    2. Collect experiences
    3. Train the agent
    4. Track metrics
    5. Export models (best rolling average, periodic, final)

This module ties together the game, the feature extractor and the agent.
"""

import os
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

from config import Config
from .agent import Agent
from .export import export_model
from .replay_buffer import Experience
from ..game.features import extract_features
from ..game.snake import SnakeGame
from ..utils.logger import get_logger, log_training_metrics

logger = get_logger(__name__)

FeatureFn = Callable[[SnakeGame], np.ndarray]


@dataclass
class EpisodeStats:
    """Statistics for a single episode."""
    episode: int
    score: int
    length: int
    steps: int
    total_reward: float
    epsilon: float
    learning_rate: float
    avg_loss: float
    duration: float


class TrainingMetrics:
    """
    Tracks training metrics over time.

    Metrics tracked:
        - Episode scores, lengths and total rewards
        - Rolling average score over the last `window` episodes
        - Best single score and best full-window average
    """

    def __init__(self, window: int = 100, history_length: int = 1000):
        """
        Initialize metrics tracker.

        Args:
            window: Episodes in the rolling average
            history_length: Maximum per-episode history to keep
        """
        self.window = window
        self.recent_scores: deque = deque(maxlen=window)
        self.history: deque = deque(maxlen=history_length)
        self.max_score = 0
        self.best_avg = 0.0
        self.episodes = 0

    def add(self, stats: EpisodeStats) -> None:
        """Add episode statistics."""
        self.episodes += 1
        self.history.append(stats)
        self.recent_scores.append(stats.score)
        self.max_score = max(self.max_score, stats.score)

    @property
    def window_full(self) -> bool:
        return len(self.recent_scores) >= self.window

    def average_score(self) -> float:
        """Average score over the rolling window."""
        if not self.recent_scores:
            return 0.0
        return float(np.mean(self.recent_scores))

    def update_best_average(self) -> bool:
        """
        Record a new best rolling average.

        Returns:
            True if the window is full and its average beats the best so far
        """
        avg = self.average_score()
        if self.window_full and avg > self.best_avg:
            self.best_avg = avg
            return True
        return False


class Trainer:
    """
    Manages the training loop for the DQN agent.

    Responsibilities:
        1. Run training episodes
        2. Coordinate game, features and agent
        3. Track metrics and export models

    Example:
        >>> game = SnakeGame(config)
        >>> agent = Agent(config.STATE_SIZE, game.action_size, config)
        >>> trainer = Trainer(game, agent, config)
        >>> trainer.train(num_episodes=1000)
    """

    def __init__(
        self,
        game: SnakeGame,
        agent: Agent,
        config: Optional[Config] = None,
        features: FeatureFn = extract_features
    ):
        """
        Initialize the trainer.

        Args:
            game: Game instance
            agent: DQN agent instance
            config: Configuration object
            features: Function mapping the game to the agent's input vector

        Raises:
            ValueError: If the feature vector length does not match the agent's input
        """
        self.game = game
        self.agent = agent
        self.config = config or Config()
        self.features = features

        feature_size = len(self.features(self.game))
        if feature_size != agent.policy_net.input_size:
            raise ValueError(
                f"Feature vector length {feature_size} does not match "
                f"network input width {agent.policy_net.input_size}"
            )
        if game.action_size != agent.action_size:
            raise ValueError(
                f"Game has {game.action_size} actions but the agent outputs {agent.action_size}"
            )

        self.metrics = TrainingMetrics(window=self.config.AVERAGE_WINDOW)
        self.current_episode = 0
        self.total_steps = 0

    def run_episode(self, training: bool = True) -> EpisodeStats:
        """
        Run a single episode.

        Args:
            training: If False, act greedily and neither store nor learn

        Returns:
            Episode statistics
        """
        start_time = time.time()

        self.game.reset()
        state = self.features(self.game)
        total_reward = 0.0
        steps = 0
        max_steps = self.config.MAX_STEPS_PER_EPISODE

        while True:
            action = self.agent.act(state, training=training)
            reward, done = self.game.step(action)
            next_state = self.features(self.game)

            if training:
                self.agent.remember(Experience(state, action, reward, next_state, done))
                self.agent.step_and_train()

            state = next_state
            total_reward += reward
            steps += 1

            if done or (max_steps and steps >= max_steps):
                break

        if training:
            self.agent.end_episode()
            self.total_steps += steps

        info = self.game.get_info()
        return EpisodeStats(
            episode=self.current_episode,
            score=info['score'],
            length=info['length'],
            steps=steps,
            total_reward=total_reward,
            epsilon=self.agent.epsilon,
            learning_rate=self.agent.learning_rate,
            avg_loss=self.agent.get_average_loss(100),
            duration=time.time() - start_time,
        )

    def _model_path(self, filename: str) -> str:
        return os.path.join(self.config.MODEL_DIR, filename)

    def _export(self, filename: str, **context) -> str:
        return export_model(self.agent.policy_net, self.agent.epsilon, self._model_path(filename), **context)

    def train(
        self,
        num_episodes: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int, EpisodeStats], None]] = None
    ) -> TrainingMetrics:
        """
        Run the training loop.

        Args:
            num_episodes: Number of episodes (default from config)
            progress_callback: Called with (episode, num_episodes, stats) after each episode

        Returns:
            Training metrics

        Raises:
            ModelExportError: If a model export fails
        """
        num_episodes = num_episodes or self.config.MAX_EPISODES
        log_every = max(1, self.config.LOG_EVERY)
        save_every = max(1, self.config.SAVE_EVERY)
        arch = '->'.join(str(s) for s in self.agent.policy_net.layer_sizes)
        algorithm = 'DoubleDQN' if self.config.USE_DOUBLE_DQN else 'DQN'
        if self.config.USE_SOFT_UPDATE:
            sync = f"soft_tau={self.config.TARGET_TAU}"
        else:
            sync = f"hard_sync_every={self.config.TARGET_UPDATE_EPISODES}ep"

        logger.info(
            f"Starting training | grid={self.game.grid_size}x{self.game.grid_size} | "
            f"MLP {arch} | episodes={num_episodes} | {algorithm} {sync}"
        )
        start = time.time()

        for episode in range(1, num_episodes + 1):
            self.current_episode = episode
            stats = self.run_episode()
            self.metrics.add(stats)

            if self.metrics.update_best_average():
                self._export('model_best.json', episode=episode, best_avg=f"{self.metrics.best_avg:.1f}")

            if episode % log_every == 0 or episode == 1:
                log_training_metrics(
                    episode=episode,
                    score=stats.score,
                    epsilon=stats.epsilon,
                    max_score=self.metrics.max_score,
                    avg_score=self.metrics.average_score(),
                    learning_rate=stats.learning_rate,
                    buffer_size=len(self.agent.memory),
                )

            if episode % save_every == 0:
                self._export(f'model_ep{episode}.json', episode=episode, best_avg=f"{self.metrics.best_avg:.1f}")

            if progress_callback:
                progress_callback(episode, num_episodes, stats)

        self._export('model_final.json', episode=num_episodes, best_avg=f"{self.metrics.best_avg:.1f}")

        logger.info(
            f"Training complete | best avg={self.metrics.best_avg:.1f} | max score={self.metrics.max_score} | "
            f"steps={self.total_steps:,} | time={time.time() - start:.0f}s"
        )
        return self.metrics

    def evaluate(self, num_episodes: int = 10) -> Dict[str, float]:
        """
        Evaluate the agent without exploration or learning.

        Args:
            num_episodes: Number of evaluation episodes

        Returns:
            Evaluation statistics
        """
        scores: List[int] = []
        for _ in range(num_episodes):
            stats = self.run_episode(training=False)
            scores.append(stats.score)

        return {
            'mean_score': float(np.mean(scores)),
            'max_score': max(scores),
            'min_score': min(scores),
        }
