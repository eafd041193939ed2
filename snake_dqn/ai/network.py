"""
Deep Q-Network (DQN) Architecture
=================================

A small fully-connected network with hand-written backpropagation and Adam.

Theory:
    Q-Learning aims to learn Q(s, a) = expected future reward
    We use a neural network to approximate this function

    Input:  Feature vector describing the snake's surroundings
    Output: Q-value for each possible action

Training minimises the squared error between predicted and target Q-values.
No autograd is involved: every layer caches its pre-activations during the
forward pass and the gradients are derived explicitly, layer by layer, from
the output back to the input.

Layout:
    weights[i, j] connects input unit i to output unit j, so a layer maps
    x[batch, in] -> x @ W[in, out] + b[out]. This is also the kernel layout
    of the exported layers model.
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple


# Adam hyperparameters
ADAM_BETA1 = 0.9
ADAM_BETA2 = 0.999
ADAM_EPSILON = 1e-8


class DenseLayer:
    """
    Fully-connected layer with its own Adam moment estimates.

    Attributes:
        weights: Weight matrix, shape (in_size, out_size)
        biases: Bias vector, shape (out_size,)
        relu: True for ReLU activation, False for identity (linear)
        m_w, v_w, m_b, v_b: Adam first/second moments for weights and biases
    """

    def __init__(
        self,
        in_size: int,
        out_size: int,
        relu: bool,
        rng: Optional[np.random.Generator] = None
    ):
        self.in_size = in_size
        self.out_size = out_size
        self.relu = relu

        # Xavier/Glorot uniform initialization, zero biases
        if rng is None:
            rng = np.random.default_rng()
        limit = np.sqrt(6.0 / (in_size + out_size))
        self.weights = rng.uniform(-limit, limit, size=(in_size, out_size)).astype(np.float32)
        self.biases = np.zeros(out_size, dtype=np.float32)

        self.reset_optimizer_state()

    @property
    def activation(self) -> str:
        return 'relu' if self.relu else 'linear'

    def reset_optimizer_state(self) -> None:
        """Zero the Adam moment estimates."""
        self.m_w = np.zeros_like(self.weights)
        self.v_w = np.zeros_like(self.weights)
        self.m_b = np.zeros_like(self.biases)
        self.v_b = np.zeros_like(self.biases)

    def forward(self, x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Run the layer on a batch.

        Returns:
            Tuple of (z, a): pre-activation and post-activation,
            both of shape (batch, out_size)
        """
        z = x @ self.weights + self.biases
        a = np.maximum(z, 0.0) if self.relu else z
        return z, a

    def adam_update(self, grad_w: np.ndarray, grad_b: np.ndarray, learning_rate: float, t: int) -> None:
        """Apply one Adam step using bias-correction exponent t."""
        bc1 = 1.0 - ADAM_BETA1 ** t
        bc2 = 1.0 - ADAM_BETA2 ** t

        for param, grad, m, v in (
            (self.weights, grad_w, self.m_w, self.v_w),
            (self.biases, grad_b, self.m_b, self.v_b),
        ):
            m *= ADAM_BETA1
            m += (1.0 - ADAM_BETA1) * grad
            v *= ADAM_BETA2
            v += (1.0 - ADAM_BETA2) * grad * grad
            m_hat = m / bc1
            v_hat = v / bc2
            param -= (learning_rate * m_hat / (np.sqrt(v_hat) + ADAM_EPSILON)).astype(np.float32)

    @classmethod
    def from_arrays(cls, weights: np.ndarray, biases: np.ndarray, relu: bool) -> 'DenseLayer':
        """Build a layer around copies of existing parameters, with fresh optimizer state."""
        weights = np.array(weights, dtype=np.float32)
        biases = np.array(biases, dtype=np.float32)
        if weights.ndim != 2 or biases.shape != (weights.shape[1],):
            raise ValueError(f"Incompatible layer shapes: weights {weights.shape}, biases {biases.shape}")

        layer = cls.__new__(cls)
        layer.in_size, layer.out_size = weights.shape
        layer.relu = relu
        layer.weights = weights
        layer.biases = biases
        layer.reset_optimizer_state()
        return layer

    def copy(self) -> 'DenseLayer':
        """Copy weights and biases into a new layer with fresh optimizer state."""
        return DenseLayer.from_arrays(self.weights, self.biases, self.relu)


class Network:
    """
    Feed-forward Q-network: hidden layers use ReLU, the output layer is linear.

    A single Adam step counter ``t`` is shared by every layer and advances
    exactly once per ``train_batch`` call.

    Example:
        >>> net = Network([28, 256, 64, 4])
        >>> q_values = net.forward(np.zeros(28, dtype=np.float32))  # shape (4,)
        >>> loss = net.train_batch(states, targets, learning_rate=0.001)
    """

    def __init__(self, layer_sizes: Sequence[int], rng: Optional[np.random.Generator] = None):
        """
        Initialize the network.

        Args:
            layer_sizes: Unit counts from input to output, e.g. [28, 256, 64, 4]
            rng: Random generator used for weight initialization
        """
        if len(layer_sizes) < 2:
            raise ValueError(f"Network needs at least an input and an output size, got {list(layer_sizes)}")
        if any(size <= 0 for size in layer_sizes):
            raise ValueError(f"Layer sizes must be positive, got {list(layer_sizes)}")

        self.layers: List[DenseLayer] = []
        last = len(layer_sizes) - 2
        for i in range(len(layer_sizes) - 1):
            self.layers.append(DenseLayer(layer_sizes[i], layer_sizes[i + 1], relu=(i < last), rng=rng))

        # Adam time step, shared by all layers
        self.t = 0

    @classmethod
    def from_layers(cls, layers: Sequence[DenseLayer]) -> 'Network':
        """Wrap existing layers (t starts at 0). Adjacent widths must agree."""
        if not layers:
            raise ValueError("Network needs at least one layer")
        for prev, nxt in zip(layers, layers[1:]):
            if prev.out_size != nxt.in_size:
                raise ValueError(f"Layer output {prev.out_size} does not feed layer input {nxt.in_size}")

        network = cls.__new__(cls)
        network.layers = list(layers)
        network.t = 0
        return network

    @property
    def input_size(self) -> int:
        return self.layers[0].in_size

    @property
    def output_size(self) -> int:
        return self.layers[-1].out_size

    @property
    def layer_sizes(self) -> List[int]:
        return [self.input_size] + [layer.out_size for layer in self.layers]

    def _check_inputs(self, inputs: np.ndarray) -> np.ndarray:
        x = np.asarray(inputs, dtype=np.float32)
        if x.ndim != 2 or x.shape[1] != self.input_size:
            raise ValueError(
                f"Expected input of shape (batch, {self.input_size}), got {x.shape}"
            )
        return x

    def forward(self, x: np.ndarray) -> np.ndarray:
        """
        Single-sample inference.

        Args:
            x: Feature vector of length input_size

        Returns:
            Q-values, shape (output_size,)
        """
        x = np.asarray(x, dtype=np.float32)
        if x.ndim != 1:
            raise ValueError(f"forward() takes a single vector, got shape {x.shape}")
        return self.predict_batch(x.reshape(1, -1))[0]

    def predict_batch(self, inputs: np.ndarray) -> np.ndarray:
        """
        Batched inference.

        Args:
            inputs: Array of shape (batch, input_size)

        Returns:
            Array of shape (batch, output_size)
        """
        a = self._check_inputs(inputs)
        for layer in self.layers:
            _, a = layer.forward(a)
        return a

    def train_batch(self, inputs: np.ndarray, targets: np.ndarray, learning_rate: float) -> float:
        """
        One gradient step toward ``targets`` with squared-error loss.

        Args:
            inputs: Array of shape (batch, input_size)
            targets: Array of shape (batch, output_size), one row per input row
            learning_rate: Adam step size

        Returns:
            Mean loss over the batch (before the update)
        """
        loss, grads = self.gradients(inputs, targets)

        self.t += 1
        for layer, (grad_w, grad_b) in zip(self.layers, grads):
            layer.adam_update(grad_w, grad_b, learning_rate, self.t)

        return loss

    def gradients(
        self,
        inputs: np.ndarray,
        targets: np.ndarray
    ) -> Tuple[float, List[Tuple[np.ndarray, np.ndarray]]]:
        """
        Loss and per-layer gradients without touching any parameters.

        The reported loss is summed over output units and averaged over the
        batch. The gradients are those of that loss divided by output_size,
        i.e. the output error is (prediction - target) * 2 / output_size.

        Returns:
            Tuple of (loss, [(grad_w, grad_b) for each layer, input to output])
        """
        x = self._check_inputs(inputs)
        y = np.asarray(targets, dtype=np.float32)
        if y.shape != (x.shape[0], self.output_size):
            raise ValueError(
                f"Targets shape {y.shape} does not match inputs "
                f"({x.shape[0]} rows, {self.output_size} outputs)"
            )

        batch_size = x.shape[0]

        # Forward pass, caching z and a for every layer
        activations = [x]
        pre_activations = []
        for layer in self.layers:
            z, a = layer.forward(activations[-1])
            pre_activations.append(z)
            activations.append(a)

        error = activations[-1] - y
        loss = float(np.mean(np.sum(error * error, axis=1)))

        # Backward pass; the output layer is linear so dL/dz = dL/da
        dz = error * (2.0 / self.output_size)
        grads = []
        for i in range(len(self.layers) - 1, -1, -1):
            layer = self.layers[i]
            grad_w = activations[i].T @ dz / batch_size
            grad_b = dz.sum(axis=0) / batch_size
            grads.append((grad_w, grad_b))

            if i > 0:
                delta = dz @ layer.weights.T
                # ReLU derivative of the previous layer
                delta[pre_activations[i - 1] <= 0.0] = 0.0
                dz = delta
        grads.reverse()

        return loss, grads

    def clone_weights(self) -> 'Network':
        """
        Create a copy with identical weights, zeroed Adam moments and t = 0.

        The copy shares no arrays with this network.
        """
        return Network.from_layers([layer.copy() for layer in self.layers])

    def _check_same_structure(self, target: 'Network') -> None:
        if target.layer_sizes != self.layer_sizes:
            raise ValueError(
                f"Target network shape {target.layer_sizes} does not match {self.layer_sizes}"
            )

    def soft_update_into(self, target: 'Network', tau: float) -> None:
        """
        Polyak update: target = tau * self + (1 - tau) * target.

        tau = 1 is a hard copy.
        """
        if not 0.0 < tau <= 1.0:
            raise ValueError(f"tau must be in (0, 1], got {tau}")
        self._check_same_structure(target)

        for src, dst in zip(self.layers, target.layers):
            dst.weights *= (1.0 - tau)
            dst.weights += tau * src.weights
            dst.biases *= (1.0 - tau)
            dst.biases += tau * src.biases

    def copy_weights_into(self, target: 'Network') -> None:
        """Hard update: copy weights and biases into target (optimizer state untouched)."""
        self._check_same_structure(target)
        for src, dst in zip(self.layers, target.layers):
            np.copyto(dst.weights, src.weights)
            np.copyto(dst.biases, src.biases)

    def num_parameters(self) -> int:
        return sum(layer.weights.size + layer.biases.size for layer in self.layers)

    def __repr__(self) -> str:
        arch = ' -> '.join(str(size) for size in self.layer_sizes)
        return f"Network({arch}, t={self.t})"
