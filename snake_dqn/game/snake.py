"""
Snake Game Implementation
=========================

Headless grid Snake designed for AI training.

Game Rules:
- Control the snake's heading (UP, RIGHT, DOWN, LEFT)
- Eat food to grow longer
- Don't hit walls or yourself
- Don't wander for more than N*N steps without eating

Reward shaping:
- Eating food: large positive reward
- Dying (collision or starvation): large negative reward
- Otherwise +1 for moving strictly closer to food, -1 otherwise
- Once the snake is long enough to trap itself, a flood-fill safety term
  penalizes moves that shrink the reachable area or cut off the tail
"""

import numpy as np
from typing import List, Optional, Tuple

from config import Config
from .grid import Cell, can_reach, in_bounds, manhattan, reachable_count


class SnakeGame:
    """
    Snake game state and transition rule.

    State:
        snake: List of (x, y) cells, head at index 0, tail at the end
        direction: Current heading (UP, RIGHT, DOWN, LEFT)
        food: Food cell
        score: SCORE_PER_FOOD per food eaten
        game_over: True once the episode has ended
        steps_without_food: Steps since the last food (starvation counter)

    Actions:
        0 = UP
        1 = RIGHT
        2 = DOWN
        3 = LEFT
    """

    # Direction constants (also the action indices)
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    ACTIONS = (UP, RIGHT, DOWN, LEFT)

    # Direction vectors (dx, dy); y grows downward
    DIRECTION_VECTORS = {
        UP: (0, -1),
        RIGHT: (1, 0),
        DOWN: (0, 1),
        LEFT: (-1, 0),
    }

    # Opposite directions (can't reverse)
    OPPOSITE = {UP: DOWN, DOWN: UP, LEFT: RIGHT, RIGHT: LEFT}

    # Used when the board is full and no free cell is left
    FALLBACK_FOOD: Cell = (0, 0)

    def __init__(self, config: Optional[Config] = None, rng: Optional[np.random.Generator] = None):
        """
        Initialize the Snake game.

        Args:
            config: Configuration object (uses default if None)
            rng: Random generator for food placement
        """
        self.config = config or Config()
        self.grid_size = self.config.GRID_SIZE
        self.rng = rng if rng is not None else np.random.default_rng(self.config.SEED)

        # Game state
        self.snake: List[Cell] = []
        self.direction = self.RIGHT
        self.food: Cell = (0, 0)
        self.score = 0
        self.game_over = False
        self.steps_without_food = 0

        self._area = self.grid_size * self.grid_size

        self.reset()

    @property
    def action_size(self) -> int:
        """Number of possible actions."""
        return len(self.ACTIONS)

    @property
    def head(self) -> Cell:
        return self.snake[0]

    @property
    def tail(self) -> Cell:
        return self.snake[-1]

    @property
    def area(self) -> int:
        return self._area

    def reset(self) -> None:
        """Reset the game to initial state."""
        self.score = 0
        self.game_over = False
        self.steps_without_food = 0

        # Start snake in center, length 3, facing right
        mid = self.grid_size // 2
        self.snake = [(mid, mid), (mid - 1, mid), (mid - 2, mid)]
        self.direction = self.RIGHT

        self.food = self.spawn_food()

    def spawn_food(self) -> Cell:
        """Pick a uniformly random free cell, or FALLBACK_FOOD if the board is full."""
        occupied = set(self.snake)
        free = [
            (x, y)
            for x in range(self.grid_size)
            for y in range(self.grid_size)
            if (x, y) not in occupied
        ]
        if not free:
            return self.FALLBACK_FOOD
        return free[int(self.rng.integers(len(free)))]

    def step(self, action: int) -> Tuple[float, bool]:
        """
        Execute one game step.

        Args:
            action: Requested heading (0-3); a reversal is ignored

        Returns:
            Tuple of (reward, done)
        """
        if self.game_over:
            return 0.0, True

        if action not in self.DIRECTION_VECTORS:
            raise ValueError(f"Invalid action {action}, expected one of {self.ACTIONS}")

        if action != self.OPPOSITE[self.direction]:
            self.direction = action

        prev_dist = manhattan(self.head, self.food)
        prev_score = self.score

        if not self._advance():
            self.game_over = True
            return self.config.REWARD_DEATH, True

        if self.steps_without_food > self._area:
            self.game_over = True
            return self.config.REWARD_DEATH, True

        if self.score > prev_score:
            reward = self.config.REWARD_FOOD
        else:
            new_dist = manhattan(self.head, self.food)
            reward = self.config.REWARD_CLOSER if new_dist < prev_dist else self.config.REWARD_AWAY

            if len(self.snake) > self.config.SAFETY_LENGTH_RATIO * self._area:
                reward += self.safety_reward()

        return reward, False

    def _advance(self) -> bool:
        """
        Move the snake one cell in the current direction.

        Returns:
            False if the move collided with a wall or the body
        """
        dx, dy = self.DIRECTION_VECTORS[self.direction]
        head_x, head_y = self.head
        new_head = (head_x + dx, head_y + dy)

        if not in_bounds(new_head, self.grid_size) or new_head in self.snake:
            return False

        self.snake.insert(0, new_head)

        if new_head == self.food:
            self.score += self.config.SCORE_PER_FOOD
            self.steps_without_food = 0
            self.food = self.spawn_food()
        else:
            self.snake.pop()
            self.steps_without_food += 1

        return True

    def safety_reward(self) -> float:
        """
        Flood-fill safety term for the current position.

        Combines how much free space the head can still reach with whether
        the head can still reach the tail (the tail cell counts as free since
        it moves away on the next tick).
        """
        length = len(self.snake)
        body = set(self.snake)

        reachable = reachable_count(self.head, body, self.grid_size)
        if reachable < length:
            reward = self.config.REWARD_TRAPPED
        elif reachable < 1.5 * length:
            reward = self.config.REWARD_CRAMPED
        else:
            reward = 0.0

        body_without_tail = body - {self.tail}
        if can_reach(self.head, self.tail, body_without_tail, self.grid_size):
            reward += self.config.REWARD_TAIL_REACHABLE
        else:
            reward += self.config.REWARD_TAIL_LOST

        return reward

    def get_info(self) -> dict:
        """Get additional game information."""
        return {
            'score': self.score,
            'length': len(self.snake),
            'steps_without_food': self.steps_without_food,
            'won': len(self.snake) >= self._area,
        }

    def seed(self, seed: int) -> None:
        """Set random seed for reproducibility."""
        self.rng = np.random.default_rng(seed)
