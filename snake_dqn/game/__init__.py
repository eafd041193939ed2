"""
Game Module
===========

The Snake simulation the agent learns to play, and the feature extractor
that turns its state into network inputs.

Classes:
    SnakeGame - Grid Snake with shaped rewards

Functions:
    extract_features - Game state -> fixed-length feature vector
"""

from .snake import SnakeGame
from .features import FEATURE_SIZE, extract_features

__all__ = ['SnakeGame', 'FEATURE_SIZE', 'extract_features']
