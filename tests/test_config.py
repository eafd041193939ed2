"""
Tests for Config validation.

These tests verify that invalid configurations are caught early
rather than causing cryptic runtime errors during training.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config


class TestConfigDefaults:
    """Test the default training recipe."""

    def test_valid_config_passes(self):
        """Default config should validate without errors."""
        cfg = Config()
        assert cfg is not None

    def test_state_size_matches_feature_layout(self):
        """Network input width comes from the feature extractor."""
        assert Config().STATE_SIZE == 28

    def test_network_shape(self):
        cfg = Config()
        assert cfg.ACTION_SIZE == 4
        assert cfg.HIDDEN_LAYERS == [256, 64]

    def test_training_defaults(self):
        cfg = Config()
        assert cfg.GAMMA == 0.99
        assert cfg.BATCH_SIZE == 64
        assert cfg.MEMORY_SIZE == 50_000
        assert cfg.TRAIN_EVERY == 4
        assert cfg.TARGET_TAU == 0.001
        assert cfg.USE_DOUBLE_DQN

    def test_schedules(self):
        cfg = Config()
        assert (cfg.EPSILON_START, cfg.EPSILON_END, cfg.EPSILON_DECAY) == (1.0, 0.01, 0.998)
        assert (cfg.LEARNING_RATE, cfg.LR_MIN, cfg.LR_DECAY) == (0.001, 0.0001, 0.999995)

    def test_hidden_layers_not_shared(self):
        """Each config gets its own hidden layer list."""
        a, b = Config(), Config()
        a.HIDDEN_LAYERS.append(8)
        assert b.HIDDEN_LAYERS == [256, 64]


class TestConfigValidation:
    """Test Config.__post_init__ validation."""

    def test_invalid_learning_rate_zero(self):
        """LEARNING_RATE=0 should fail validation."""
        with pytest.raises(AssertionError):
            Config(LEARNING_RATE=0)

    def test_lr_min_above_learning_rate(self):
        with pytest.raises(AssertionError):
            Config(LEARNING_RATE=0.001, LR_MIN=0.01)

    def test_invalid_gamma_zero(self):
        with pytest.raises(AssertionError):
            Config(GAMMA=0)

    def test_gamma_above_one(self):
        with pytest.raises(AssertionError):
            Config(GAMMA=1.5)

    def test_memory_smaller_than_batch(self):
        """Buffer must be able to hold one batch."""
        with pytest.raises(AssertionError):
            Config(BATCH_SIZE=64, MEMORY_SIZE=32)

    def test_train_every_zero(self):
        with pytest.raises(AssertionError):
            Config(TRAIN_EVERY=0)

    def test_epsilon_end_above_start(self):
        with pytest.raises(AssertionError):
            Config(EPSILON_START=0.1, EPSILON_END=0.5)

    def test_tau_out_of_range(self):
        with pytest.raises(AssertionError):
            Config(TARGET_TAU=0)
        with pytest.raises(AssertionError):
            Config(TARGET_TAU=1.5)

    def test_grid_too_small(self):
        with pytest.raises(AssertionError):
            Config(GRID_SIZE=3)
