"""
Experience Replay Buffer
========================

A memory buffer that stores experiences for training the DQN.

Why Experience Replay?
    1. Breaks correlation between consecutive experiences
       (Neural networks learn poorly from correlated data)

    2. Improves sample efficiency
       (Each experience can be used for multiple training steps)

    3. Stabilizes training
       (Random sampling provides more diverse gradients)

How it works:
    1. Agent plays game, stores (state, action, reward, next_state, done) tuples
    2. During training, we sample random batches from the buffer
    3. Old experiences are discarded when buffer is full (FIFO)

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple


@dataclass(frozen=True)
class Experience:
    """A single transition. Immutable once created."""
    state: np.ndarray
    action: int
    reward: float
    next_state: np.ndarray
    done: bool


class ReplayBuffer:
    """
    Fixed-size FIFO buffer of experiences with contiguous numpy storage.

    Optimizations:
        - Contiguous numpy arrays for all data (cache-friendly)
        - Vectorized batch extraction via numpy fancy indexing (no Python loops)
        - Circular buffer: when full, the oldest entry is overwritten first
        - Lazy initialization to support unknown state_size at creation

    Example:
        >>> buffer = ReplayBuffer(capacity=10000)
        >>> buffer.push(Experience(state, action, reward, next_state, done))
        >>> states, actions, rewards, next_states, dones = buffer.sample(64)
    """

    def __init__(
        self,
        capacity: int,
        state_size: int = 0,
        rng: Optional[np.random.Generator] = None,
        action_size: Optional[int] = None
    ):
        """
        Initialize the replay buffer.

        Storage is allocated on the first push, so a buffer that never
        receives an experience (e.g. during evaluation) costs nothing.

        Args:
            capacity: Maximum number of experiences to store
            state_size: Size of state vector (auto-detected on first push if 0)
            rng: Random generator used for sampling
            action_size: If given, actions outside [0, action_size) are rejected
        """
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")

        self.capacity = capacity
        self.action_size = action_size
        self.rng = rng if rng is not None else np.random.default_rng()
        self._state_size = state_size
        self._size = 0  # Current number of experiences stored
        self._position = 0  # Next write position (also the oldest entry once full)
        self._initialized = False

    def _init_arrays(self, state_size: int) -> None:
        """Initialize contiguous storage arrays."""
        self._state_size = state_size
        self.states = np.empty((self.capacity, state_size), dtype=np.float32)
        self.actions = np.empty(self.capacity, dtype=np.int64)
        self.rewards = np.empty(self.capacity, dtype=np.float32)
        self.next_states = np.empty((self.capacity, state_size), dtype=np.float32)
        self.dones = np.empty(self.capacity, dtype=np.bool_)
        self._initialized = True

    def _validate(self, experience: Experience) -> None:
        expected = self._state_size or len(experience.state)
        if len(experience.state) != expected or len(experience.next_state) != expected:
            raise ValueError(
                f"Experience state size {len(experience.state)}/{len(experience.next_state)} "
                f"does not match buffer state size {expected}"
            )
        if self.action_size is not None and not 0 <= experience.action < self.action_size:
            raise ValueError(
                f"Action {experience.action} out of range for {self.action_size} actions"
            )

    def push(self, experience: Experience) -> None:
        """
        Add an experience to the buffer, evicting the oldest one when full.

        The experience is validated before anything is written. The state
        vectors are copied, so the caller may reuse its arrays.

        Raises:
            ValueError: On a state width mismatch or an out-of-range action
        """
        self._validate(experience)

        if not self._initialized:
            self._init_arrays(len(experience.state))

        np.copyto(self.states[self._position], experience.state)
        self.actions[self._position] = experience.action
        self.rewards[self._position] = experience.reward
        np.copyto(self.next_states[self._position], experience.next_state)
        self.dones[self._position] = experience.done

        self._position = (self._position + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def sample_indices(self, batch_size: int) -> np.ndarray:
        """
        Draw batch_size storage indices uniformly, with replacement.

        Raises:
            RuntimeError: If the buffer is empty
        """
        if self._size == 0:
            raise RuntimeError("Cannot sample from an empty buffer. Call push() first.")
        return self.rng.integers(0, self._size, size=batch_size)

    def sample(self, batch_size: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Sample a random batch of experiences using vectorized numpy indexing.

        Returns:
            Tuple of numpy arrays: (states, actions, rewards, next_states, dones)
            All arrays are copies to prevent modification of buffer data.
        """
        indices = self.sample_indices(batch_size)
        return (
            self.states[indices],
            self.actions[indices],
            self.rewards[indices],
            self.next_states[indices],
            self.dones[indices],
        )

    def _storage_index(self, i: int) -> int:
        """Map insertion order (0 = oldest) to a storage slot."""
        if self._size < self.capacity:
            return i
        return (self._position + i) % self.capacity

    def __getitem__(self, i: int) -> Experience:
        """Experience by insertion order, oldest first."""
        if i < 0:
            i += self._size
        if not 0 <= i < self._size:
            raise IndexError(f"Index {i} out of range for buffer of size {self._size}")
        slot = self._storage_index(i)
        return Experience(
            state=self.states[slot].copy(),
            action=int(self.actions[slot]),
            reward=float(self.rewards[slot]),
            next_state=self.next_states[slot].copy(),
            done=bool(self.dones[slot]),
        )

    def __iter__(self) -> Iterator[Experience]:
        for i in range(self._size):
            yield self[i]

    def __len__(self) -> int:
        """Return current buffer size."""
        return self._size

    def is_ready(self, batch_size: int) -> bool:
        """Check if buffer has enough experiences for sampling."""
        return self._size >= batch_size

    def clear(self) -> None:
        """Clear all experiences from the buffer."""
        self._size = 0
        self._position = 0
