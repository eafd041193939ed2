"""
AI Module
=========

Deep Reinforcement Learning components for playing Snake.

Classes:
    Network      - Dense Q-network with hand-written backprop and Adam
    Agent        - Double-DQN agent with epsilon-greedy exploration
    ReplayBuffer - Experience replay memory
    Trainer      - Training loop orchestration
"""

from .network import Network
from .agent import Agent
from .replay_buffer import Experience, ReplayBuffer
from .trainer import Trainer

__all__ = ['Network', 'Agent', 'Experience', 'ReplayBuffer', 'Trainer']
