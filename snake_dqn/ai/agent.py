"""
DQN Agent
=========

The AI agent that learns to play Snake using Double Deep Q-Learning.

Key Components:
    1. Policy Network  - Used for action selection, trained every update
    2. Target Network  - Used for stable Q-value estimation
    3. Replay Buffer   - Stores experiences for training
    4. Epsilon-Greedy  - Balances exploration vs exploitation

Training Algorithm (Double DQN):
    1. Observe state s
    2. Choose action a (epsilon-greedy)
    3. Execute action, observe reward r and next state s'
    4. Store (s, a, r, s', done) in replay buffer
    5. Every TRAIN_EVERY steps, sample a mini-batch from the replay buffer
    6. Calculate target: y = r + γ * Q_target(s', argmax_a' Q_policy(s', a'))
    7. Update policy network: minimize (Q(s,a) - y)²
    8. Sync target network with policy network (soft or periodic hard copy)

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
    van Hasselt et al., 2016 - "Deep Reinforcement Learning with Double Q-learning"
"""

import numpy as np
from collections import deque
from typing import Optional

from config import Config
from .network import Network
from .replay_buffer import Experience, ReplayBuffer
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Agent:
    """
    DQN Agent for reinforcement learning.

    The agent maintains two networks:
        - policy_net: Updated every training call
        - target_net: Follows policy_net via soft updates or periodic hard copies

    Action Selection:
        - With probability epsilon: random action (exploration)
        - With probability (1-epsilon): best Q-value action (exploitation)

    Counters:
        steps: Environment steps seen by step_and_train()
        train_steps: Gradient updates performed
        episodes_since_sync: Completed episodes since the last hard target copy

    Example:
        >>> agent = Agent(state_size=28, action_size=4)
        >>> action = agent.act(state)
        >>> agent.remember(Experience(state, action, reward, next_state, done))
        >>> loss = agent.step_and_train()
        >>> agent.end_episode()
    """

    def __init__(
        self,
        state_size: int,
        action_size: int,
        config: Optional[Config] = None,
        rng: Optional[np.random.Generator] = None,
        network: Optional[Network] = None
    ):
        """
        Initialize the DQN agent.

        Args:
            state_size: Dimension of state vector
            action_size: Number of possible actions
            config: Configuration object
            rng: Random generator for exploration, replay sampling and weight init
            network: Pre-trained policy network to start from (e.g. a loaded export);
                     its hidden layers take precedence over HIDDEN_LAYERS

        Raises:
            ValueError: If state_size or action_size disagrees with the configured
                        widths or with the given network
        """
        self.config = config or Config()
        if state_size != self.config.STATE_SIZE:
            raise ValueError(
                f"State size {state_size} does not match configured network input {self.config.STATE_SIZE}"
            )
        if action_size != self.config.ACTION_SIZE:
            raise ValueError(
                f"Action size {action_size} does not match configured network output {self.config.ACTION_SIZE}"
            )

        self.state_size = state_size
        self.action_size = action_size
        self.rng = rng if rng is not None else np.random.default_rng(self.config.SEED)

        # Networks
        if network is None:
            layer_sizes = [state_size] + list(self.config.HIDDEN_LAYERS) + [action_size]
            network = Network(layer_sizes, rng=self.rng)
        elif network.input_size != state_size or network.output_size != action_size:
            raise ValueError(
                f"Network {network.layer_sizes} does not map {state_size} inputs to {action_size} actions"
            )
        self.policy_net = network
        self.target_net = self.policy_net.clone_weights()

        # Replay buffer
        self.memory = ReplayBuffer(
            self.config.MEMORY_SIZE, state_size=state_size, rng=self.rng, action_size=action_size
        )

        # Exploration and learning rate schedules
        self.epsilon = self.config.EPSILON_START
        self.learning_rate = self.config.LEARNING_RATE

        self.steps = 0
        self.train_steps = 0
        self.episodes_since_sync = 0

        # Training metrics (bounded to prevent memory growth during long training)
        self.losses: deque = deque(maxlen=10000)

        # Track whether last action was exploration (for accurate metrics)
        self._last_action_explored: bool = False

    def act(self, state: np.ndarray, training: bool = True) -> int:
        """
        Select an action using the epsilon-greedy policy.

        Epsilon is only read here; it changes in end_episode().

        Args:
            state: Current feature vector
            training: If True, use exploration; if False, use greedy

        Returns:
            Selected action index
        """
        if training and self.rng.random() < self.epsilon:
            self._last_action_explored = True
            return int(self.rng.integers(self.action_size))

        self._last_action_explored = False
        return self.act_greedy(state)

    def act_greedy(self, state: np.ndarray) -> int:
        """Action with the highest Q-value (lowest index on ties)."""
        return int(np.argmax(self.policy_net.forward(state)))

    def get_q_values(self, state: np.ndarray) -> np.ndarray:
        """
        Get Q-values for all actions.

        Args:
            state: Current feature vector

        Returns:
            Array of Q-values for each action
        """
        return self.policy_net.forward(state)

    def remember(self, experience: Experience) -> None:
        """Store experience in replay buffer."""
        self.memory.push(experience)

    def step_and_train(self) -> Optional[float]:
        """
        Count one environment step and train every TRAIN_EVERY steps.

        Training is skipped until the buffer holds a full batch.

        Returns:
            Loss value if training occurred, None otherwise
        """
        self.steps += 1
        if self.steps % self.config.TRAIN_EVERY != 0:
            return None
        if not self.memory.is_ready(self.config.BATCH_SIZE):
            return None
        return self.train()

    def train(self) -> Optional[float]:
        """
        Perform one training update on a sampled batch.

        Returns:
            Loss value, or None if the buffer holds less than one batch
        """
        batch_size = self.config.BATCH_SIZE
        if not self.memory.is_ready(batch_size):
            return None

        states, actions, rewards, next_states, dones = self.memory.sample(batch_size)

        targets = self._build_targets(states, actions, rewards, next_states, dones)
        loss = self.policy_net.train_batch(states, targets, self.learning_rate)
        self.train_steps += 1
        self.losses.append(loss)

        if self.config.USE_SOFT_UPDATE:
            self.policy_net.soft_update_into(self.target_net, self.config.TARGET_TAU)

        if self.config.USE_LR_DECAY and self.learning_rate > self.config.LR_MIN:
            self.learning_rate = max(self.config.LR_MIN, self.learning_rate * self.config.LR_DECAY)

        return loss

    def _build_targets(
        self,
        states: np.ndarray,
        actions: np.ndarray,
        rewards: np.ndarray,
        next_states: np.ndarray,
        dones: np.ndarray
    ) -> np.ndarray:
        """
        Training targets for a batch: the policy network's own predictions
        with only the taken-action column replaced by the TD target.

        The untouched columns have zero error, so the dense squared-error
        loss only trains Q(s, a) for the action actually taken.
        """
        targets = self.policy_net.predict_batch(states).copy()

        td_targets = rewards + self.config.GAMMA * self._next_state_values(next_states)
        td_targets = np.where(dones, rewards, td_targets)

        targets[np.arange(len(actions)), actions] = td_targets
        return targets

    def _next_state_values(self, next_states: np.ndarray) -> np.ndarray:
        """Bootstrap values for next states (Double DQN or vanilla DQN)."""
        target_q = self.target_net.predict_batch(next_states)
        if self.config.USE_DOUBLE_DQN:
            # Policy network selects, target network evaluates
            best_actions = np.argmax(self.policy_net.predict_batch(next_states), axis=1)
            return target_q[np.arange(len(best_actions)), best_actions]
        return target_q.max(axis=1)

    def update_target_network(self) -> None:
        """Hard update: Copy policy network weights to target network."""
        self.policy_net.copy_weights_into(self.target_net)
        logger.debug(f"Target network synced (train_steps={self.train_steps})")

    def end_episode(self) -> None:
        """Episode bookkeeping: decay epsilon and run periodic hard target sync."""
        self.decay_epsilon()

        if not self.config.USE_SOFT_UPDATE:
            self.episodes_since_sync += 1
            if self.episodes_since_sync >= self.config.TARGET_UPDATE_EPISODES:
                self.update_target_network()
                self.episodes_since_sync = 0

    def decay_epsilon(self) -> None:
        """Decay exploration rate toward EPSILON_END."""
        self.epsilon = max(
            self.config.EPSILON_END,
            self.epsilon * self.config.EPSILON_DECAY
        )

    def get_average_loss(self, n: int = 100) -> float:
        """Get average loss over last n training steps."""
        if not self.losses:
            return 0.0
        recent = list(self.losses)[-n:]
        return float(np.mean(recent))

