"""
Snake DQN - Source Package
==========================

This package contains all the components for training an AI to play Snake.

Modules:
    game/   - Snake simulation and feature extraction
    ai/     - Hand-written neural network, replay buffer, agent and training loop
    utils/  - Logging
"""

__version__ = "1.0.0"
