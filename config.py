"""
Configuration file for the Snake DQN trainer
============================================

All hyperparameters, game settings, and training options are centralized here.
Modify these values to experiment with different training configurations.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.LEARNING_RATE)
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Game Settings - Grid and reward shaping
    2. Neural Network - Architecture configuration
    3. Training - Learning hyperparameters
    4. Exploration - Epsilon-greedy settings
    5. Target Network - Synchronisation policy
    6. Training Control - Episodes, logging and export cadence
    7. System - Paths, logging and seeding
    """

    # =========================================================================
    # GAME SETTINGS
    # =========================================================================

    # Square grid dimension (N x N cells)
    GRID_SIZE: int = 20

    # Score gained per food eaten (score only, not the reward)
    SCORE_PER_FOOD: int = 10

    # =========================================================================
    # REWARD SHAPING
    # =========================================================================

    REWARD_FOOD: float = 10.0       # Eating food
    REWARD_DEATH: float = -10.0     # Wall, self collision or starvation
    REWARD_CLOSER: float = 1.0      # Head moved strictly closer to food
    REWARD_AWAY: float = -1.0       # Head did not move closer

    # Safety term (flood fill) only kicks in once the snake is longer
    # than this fraction of the grid area
    SAFETY_LENGTH_RATIO: float = 0.15

    # Safety term components
    REWARD_TRAPPED: float = -2.0        # Reachable area < snake length
    REWARD_CRAMPED: float = -0.5        # Reachable area < 1.5 * snake length
    REWARD_TAIL_REACHABLE: float = 0.5  # Head can still reach the tail
    REWARD_TAIL_LOST: float = -1.0      # Tail cut off from the head

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    @property
    def STATE_SIZE(self) -> int:
        """Input layer size, taken from the feature extractor layout."""
        from snake_dqn.game.features import FEATURE_SIZE
        return FEATURE_SIZE

    # Action space: UP, RIGHT, DOWN, LEFT
    ACTION_SIZE: int = 4

    # Hidden layer architecture (ReLU); output layer is linear
    HIDDEN_LAYERS: List[int] = field(default_factory=lambda: [256, 64])

    # =========================================================================
    # TRAINING HYPERPARAMETERS
    # =========================================================================

    # Initial Adam learning rate
    LEARNING_RATE: float = 0.001

    # Multiplicative learning rate decay applied after every training call
    USE_LR_DECAY: bool = True
    LR_DECAY: float = 0.999995
    LR_MIN: float = 0.0001

    # Discount factor (gamma)
    GAMMA: float = 0.99

    # Batch size - Number of experiences to sample per training step
    BATCH_SIZE: int = 64

    # Replay buffer capacity
    MEMORY_SIZE: int = 50_000

    # Train once every N environment steps
    TRAIN_EVERY: int = 4

    # Double DQN: primary network selects, target network evaluates.
    # False falls back to vanilla DQN (target network does both).
    USE_DOUBLE_DQN: bool = True

    # =========================================================================
    # EXPLORATION SETTINGS (Epsilon-Greedy)
    # =========================================================================

    # Starting exploration rate (1.0 = 100% random)
    EPSILON_START: float = 1.0

    # Minimum exploration rate
    EPSILON_END: float = 0.01

    # Decay rate per episode: epsilon *= EPSILON_DECAY
    EPSILON_DECAY: float = 0.998

    # =========================================================================
    # TARGET NETWORK
    # =========================================================================

    # Soft (Polyak) update after every training call:
    # target = TAU * policy + (1 - TAU) * target
    USE_SOFT_UPDATE: bool = True
    TARGET_TAU: float = 0.001

    # Hard copy every N completed episodes (only when USE_SOFT_UPDATE is False)
    TARGET_UPDATE_EPISODES: int = 10

    # =========================================================================
    # TRAINING CONTROL
    # =========================================================================

    # Total episodes to train
    MAX_EPISODES: int = 100_000

    # Maximum steps per episode (0 = unlimited; starvation ends episodes anyway)
    MAX_STEPS_PER_EPISODE: int = 0

    # Log stats every N episodes
    LOG_EVERY: int = 100

    # Export model every N episodes
    SAVE_EVERY: int = 5_000

    # Window for the rolling average used to pick the best model
    AVERAGE_WINDOW: int = 100

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Paths
    MODEL_DIR: str = 'models'
    LOG_DIR: str = 'logs'

    # Logging: 'DEBUG', 'INFO', 'WARNING', 'ERROR'
    LOG_LEVEL: str = 'INFO'
    LOG_TO_FILE: bool = True

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validation and derived calculations."""
        assert self.LEARNING_RATE > 0, "Learning rate must be positive"
        assert 0 < self.LR_MIN <= self.LEARNING_RATE, "LR_MIN must be in (0, LEARNING_RATE]"
        assert 0 < self.GAMMA <= 1, "Gamma must be in (0, 1]"
        assert self.BATCH_SIZE > 0, "Batch size must be positive"
        assert self.MEMORY_SIZE >= self.BATCH_SIZE, "Memory must hold at least one batch"
        assert self.TRAIN_EVERY > 0, "TRAIN_EVERY must be positive"
        assert self.EPSILON_START >= self.EPSILON_END, "Epsilon start must be >= end"
        assert 0 < self.TARGET_TAU <= 1, "TARGET_TAU must be in (0, 1]"
        assert self.TARGET_UPDATE_EPISODES > 0, "TARGET_UPDATE_EPISODES must be positive"
        assert self.GRID_SIZE >= 5, "Grid must be at least 5x5"


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("Snake DQN - Configuration Summary")
    print("=" * 60)
    print(f"\nGrid: {cfg.GRID_SIZE}x{cfg.GRID_SIZE}")
    print(f"\nNeural Network:")
    print(f"   Input size: {cfg.STATE_SIZE}")
    print(f"   Hidden layers: {cfg.HIDDEN_LAYERS}")
    print(f"   Output size: {cfg.ACTION_SIZE}")
    print(f"\nTraining:")
    print(f"   Learning rate: {cfg.LEARNING_RATE} -> {cfg.LR_MIN}")
    print(f"   Batch size: {cfg.BATCH_SIZE}")
    print(f"   Gamma: {cfg.GAMMA}")
    print(f"\nExploration:")
    print(f"   Epsilon: {cfg.EPSILON_START} -> {cfg.EPSILON_END}")
    print(f"   Decay: {cfg.EPSILON_DECAY}")
    print("=" * 60)
