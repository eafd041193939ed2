"""
Feature extraction: game state -> network input vector.

All directional features are expressed relative to the snake's heading
(straight / right / left), which makes the encoding rotation-invariant.

Layout (FEATURE_SIZE = 28):
    0-2    danger one cell ahead (straight, right, left)
    3-5    danger two cells ahead (straight, right, left)
    6-8    ray distance to the first obstacle / grid size (straight, right, left)
    9-12   heading one-hot (up, right, down, left)
    13-16  food is up / right / down / left of the head
    17-20  distance to each wall / grid size (up, right, down, left)
    21     snake length / grid area
    22     free cells reachable from the head / total free cells
    23-25  free cells reachable from each relative neighbour / total free cells
    26-27  sign of (tail - head) along x and y
"""

import numpy as np
from typing import Tuple

from .grid import flood_fill, is_blocked, ray_distance
from .snake import SnakeGame

FEATURE_SIZE = 28

# (straight, right, left) for each heading
RELATIVE_DIRECTIONS = {
    SnakeGame.UP: (SnakeGame.UP, SnakeGame.RIGHT, SnakeGame.LEFT),
    SnakeGame.RIGHT: (SnakeGame.RIGHT, SnakeGame.DOWN, SnakeGame.UP),
    SnakeGame.DOWN: (SnakeGame.DOWN, SnakeGame.LEFT, SnakeGame.RIGHT),
    SnakeGame.LEFT: (SnakeGame.LEFT, SnakeGame.UP, SnakeGame.DOWN),
}


def relative_directions(direction: int) -> Tuple[int, int, int]:
    """Absolute headings for (straight, right, left) given the current heading."""
    return RELATIVE_DIRECTIONS[direction]


def _sign(value: int) -> float:
    return float((value > 0) - (value < 0))


def extract_features(game: SnakeGame) -> np.ndarray:
    """
    Build the feature vector for the current game state.

    Pure function: reads the game, never modifies it.

    Returns:
        float32 array of length FEATURE_SIZE
    """
    n = game.grid_size
    head_x, head_y = game.head
    tail_x, tail_y = game.tail
    food_x, food_y = game.food

    occupied = set(game.snake)
    deltas = [SnakeGame.DIRECTION_VECTORS[d] for d in relative_directions(game.direction)]

    features = np.zeros(FEATURE_SIZE, dtype=np.float32)

    # Danger one and two cells ahead
    for i, (dx, dy) in enumerate(deltas):
        features[i] = is_blocked((head_x + dx, head_y + dy), occupied, n)
        features[3 + i] = is_blocked((head_x + 2 * dx, head_y + 2 * dy), occupied, n)

    # Ray-cast distance to the first obstacle
    for i, delta in enumerate(deltas):
        features[6 + i] = ray_distance(game.head, delta, occupied, n) / n

    # Absolute heading
    features[9 + game.direction] = 1.0

    # Food quadrants
    features[13] = food_y < head_y
    features[14] = food_x > head_x
    features[15] = food_y > head_y
    features[16] = food_x < head_x

    # Wall distances
    features[17] = head_y / n
    features[18] = (n - 1 - head_x) / n
    features[19] = (n - 1 - head_y) / n
    features[20] = head_x / n

    features[21] = len(game.snake) / game.area

    # Flood fill: global and per relative neighbour
    total_free = game.area - len(game.snake)
    if total_free > 0:
        features[22] = len(flood_fill(game.head, occupied, n)) / total_free
        for i, (dx, dy) in enumerate(deltas):
            neighbour = (head_x + dx, head_y + dy)
            if not is_blocked(neighbour, occupied, n):
                features[23 + i] = len(flood_fill(neighbour, occupied, n)) / total_free

    # Direction toward the tail
    features[26] = _sign(tail_x - head_x)
    features[27] = _sign(tail_y - head_y)

    return features
