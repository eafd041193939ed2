"""
Tests for the Snake game implementation.

These tests verify:
    - Game initialization
    - Actions and movement (reversal is ignored)
    - Collision detection and starvation
    - Reward system, including the flood-fill safety term
    - Food placement
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from snake_dqn.game.grid import reachable_count
from snake_dqn.game.snake import SnakeGame


@pytest.fixture
def config():
    """Create a test configuration."""
    return Config()


@pytest.fixture
def game(config):
    """Create a game instance."""
    return SnakeGame(config, rng=np.random.default_rng(0))


@pytest.fixture
def small_game():
    """5x5 board: the safety term applies from length 4 (> 0.15 * 25)."""
    return SnakeGame(Config(GRID_SIZE=5), rng=np.random.default_rng(0))


class TestSnakeInitialization:
    """Test game initialization."""

    def test_initial_snake(self, game):
        assert game.snake == [(10, 10), (9, 10), (8, 10)]
        assert game.direction == SnakeGame.RIGHT

    def test_initial_counters(self, game):
        assert game.score == 0
        assert game.steps_without_food == 0
        assert not game.game_over

    def test_food_not_on_snake(self, game):
        for _ in range(50):
            game.reset()
            assert game.food not in game.snake
            assert 0 <= game.food[0] < 20 and 0 <= game.food[1] < 20

    def test_action_size(self, game):
        assert game.action_size == 4

    def test_seeded_games_match(self, config):
        a = SnakeGame(config, rng=np.random.default_rng(11))
        b = SnakeGame(config, rng=np.random.default_rng(11))
        assert a.food == b.food

    def test_reset_restores_start(self, game):
        game.food = (15, 10)
        for _ in range(4):
            game.step(SnakeGame.RIGHT)
        game.reset()
        assert game.snake == [(10, 10), (9, 10), (8, 10)]
        assert game.score == 0


class TestMovement:
    """Test actions and movement."""

    def test_move_right(self, game):
        game.food = (0, 0)
        game.step(SnakeGame.RIGHT)
        assert game.snake == [(11, 10), (10, 10), (9, 10)]

    def test_turn(self, game):
        game.food = (0, 0)
        game.step(SnakeGame.UP)
        assert game.head == (10, 9)
        assert game.direction == SnakeGame.UP

    def test_reversal_ignored(self, game):
        """Reversing keeps the current heading instead of killing the snake."""
        game.food = (0, 0)
        reward, done = game.step(SnakeGame.LEFT)
        assert not done
        assert game.direction == SnakeGame.RIGHT
        assert game.head == (11, 10)

    def test_length_constant_without_food(self, game):
        game.food = (0, 0)
        for _ in range(5):
            game.step(SnakeGame.DOWN)
        assert len(game.snake) == 3

    def test_invalid_action(self, game):
        with pytest.raises(ValueError):
            game.step(4)


class TestRewards:
    """Test the reward system."""

    def test_closer_to_food(self, game):
        """Food at (15, 10), head (10, 10), moving right."""
        game.food = (15, 10)
        reward, done = game.step(SnakeGame.RIGHT)
        assert reward == 1.0
        assert not done
        assert game.head == (11, 10)

    def test_away_from_food(self, game):
        game.food = (15, 10)
        reward, _ = game.step(SnakeGame.UP)
        assert reward == -1.0

    def test_sideways_counts_as_away(self, game):
        """Same distance is not closer."""
        game.food = (10, 15)
        game.snake = [(10, 10), (9, 10), (8, 10)]
        reward, _ = game.step(SnakeGame.RIGHT)  # (11, 10): distance 5 -> 6
        assert reward == -1.0

    def test_eating_food(self, game):
        game.food = (11, 10)
        reward, done = game.step(SnakeGame.RIGHT)
        assert reward == 10.0
        assert not done
        assert game.score == 10
        assert len(game.snake) == 4
        assert game.snake[-1] == (8, 10)
        assert game.food not in game.snake
        assert game.steps_without_food == 0


class TestCollisions:
    """Test collision detection and episode end."""

    def test_wall_collision(self, game):
        game.snake = [(0, 5), (1, 5), (2, 5)]
        game.direction = SnakeGame.LEFT
        reward, done = game.step(SnakeGame.LEFT)
        assert reward == -10.0
        assert done
        assert game.game_over

    def test_self_collision(self, game):
        game.snake = [(5, 5), (6, 5), (6, 6), (5, 6), (4, 6)]
        game.direction = SnakeGame.LEFT
        game.food = (15, 15)
        reward, done = game.step(SnakeGame.DOWN)
        assert (reward, done) == (-10.0, True)

    def test_moving_into_tail_is_collision(self, game):
        """The whole body, tail included, blocks the head."""
        game.snake = [(5, 5), (6, 5), (6, 6), (5, 6)]
        game.direction = SnakeGame.LEFT
        game.food = (15, 15)
        _, done = game.step(SnakeGame.DOWN)
        assert done

    def test_step_after_game_over_is_noop(self, game):
        game.snake = [(0, 5), (1, 5), (2, 5)]
        game.direction = SnakeGame.LEFT
        game.step(SnakeGame.LEFT)
        snake = list(game.snake)

        assert game.step(SnakeGame.UP) == (0.0, True)
        assert game.snake == snake

    def test_collision_leaves_snake_in_place(self, game):
        game.snake = [(0, 5), (1, 5), (2, 5)]
        game.direction = SnakeGame.LEFT
        game.step(SnakeGame.LEFT)
        assert game.snake == [(0, 5), (1, 5), (2, 5)]


class TestStarvation:
    """Test the steps-without-food limit (N * N)."""

    def test_starvation_ends_episode(self, small_game):
        small_game.food = (0, 0)
        small_game.steps_without_food = 25
        reward, done = small_game.step(SnakeGame.RIGHT)
        assert (reward, done) == (-10.0, True)

    def test_limit_is_inclusive(self, small_game):
        small_game.food = (0, 0)
        small_game.steps_without_food = 24
        _, done = small_game.step(SnakeGame.RIGHT)
        assert not done
        assert small_game.steps_without_food == 25

    def test_wandering_snake_starves(self, small_game):
        """Circling without eating ends within N * N + 1 steps."""
        small_game.food = (0, 0)
        small_game.snake = [(2, 2), (1, 2), (1, 3)]
        loop = [SnakeGame.RIGHT, SnakeGame.DOWN, SnakeGame.LEFT, SnakeGame.UP]
        done = False
        steps = 0
        while not done:
            _, done = small_game.step(loop[steps % 4])
            steps += 1
        assert steps == 26


class TestSafetyTerm:
    """Test the flood-fill safety reward."""

    def test_not_applied_to_short_snake(self, game):
        game.food = (15, 10)
        reward, _ = game.step(SnakeGame.RIGHT)
        assert reward == 1.0

    def test_open_board_with_reachable_tail(self, small_game):
        small_game.snake = [(2, 2), (1, 2), (0, 2), (0, 3)]
        small_game.direction = SnakeGame.RIGHT
        small_game.food = (4, 2)
        reward, done = small_game.step(SnakeGame.RIGHT)
        assert not done
        assert reward == pytest.approx(1.0 + 0.5)

    def test_trapped_head(self, small_game):
        """Head boxed into a corner with the tail cut off."""
        small_game.snake = [(0, 0), (1, 0), (1, 1), (0, 1), (0, 2)]
        assert small_game.safety_reward() == pytest.approx(-2.0 - 1.0)

    def test_trapped_but_tail_adjacent(self, small_game):
        """The tail cell counts as free, so a boxed head next to its tail can escape."""
        small_game.snake = [(0, 0), (1, 0), (1, 1), (0, 1)]
        assert small_game.safety_reward() == pytest.approx(-2.0 + 0.5)

    def test_cramped_region(self, small_game):
        """Reachable area between length and 1.5 * length."""
        # Body wall along x = 2 leaves the head a 9-cell pocket on the left
        small_game.snake = [(1, 0), (2, 0), (2, 1), (2, 2), (2, 3), (2, 4), (3, 4), (4, 4)]
        assert reachable_count(small_game.head, set(small_game.snake), 5) == 9
        assert small_game.safety_reward() == pytest.approx(-0.5 - 1.0)


class TestFoodPlacement:
    """Test food spawning."""

    def test_full_board_fallback(self, small_game):
        small_game.snake = [(x, y) for y in range(5) for x in range(5)]
        assert small_game.spawn_food() == (0, 0)

    def test_single_free_cell(self, small_game):
        cells = [(x, y) for y in range(5) for x in range(5)]
        cells.remove((3, 4))
        small_game.snake = cells
        assert small_game.spawn_food() == (3, 4)

    def test_info(self, game):
        info = game.get_info()
        assert info['score'] == 0
        assert info['length'] == 3
        assert not info['won']
