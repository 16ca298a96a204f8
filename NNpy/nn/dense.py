from typing import Dict, Optional, Sequence

import numpy as np

from ..core import DenseForwardCache, DenseUpdateBundle, Function, Tensor, UpdateBundle
from ..core.tensor import matrix_multiply
from ..utils import random_tensor
from .layer import Layer

# Initial parameters are drawn uniformly from [-bound, bound).
WEIGHT_INIT_BOUND = 0.1
BIAS_INIT_BOUND = 0.01


class DenseLayer(Layer):
    """
    A fully connected layer: a = f(W x + b).

    In the derivations below ``x`` is the input column, ``z = W x + b`` the
    weighted output, ``a = f(z)`` the activation and ``C`` the cost. For weight
    ``w_ij`` the chain rule gives

        dC/dw_ij = dC/da_j * da_j/dz_j * dz_j/dw_ij

    The gradient methods compute ``dC/da_j * da_j/dz_j``; the update steps
    multiply in ``dz_j/dw_ij`` (the input) and ``dz_j/db_j`` (one).

    Args:
        input_count: Size of each input sample
        neuron_count: Size of each output sample
        activation: Single-input activation function
        rng: Generator used to initialize the parameters
    """

    def __init__(
        self,
        input_count: int,
        neuron_count: int,
        activation: Function,
        rng: Optional[np.random.Generator] = None,
    ):
        if input_count < 1:
            raise ValueError(f"Invalid input count: {input_count}")
        if activation.input_count != 1:
            raise ValueError("Activation functions must take exactly one input")

        rng = rng if rng is not None else np.random.default_rng()
        super().__init__(
            neuron_count, random_tensor((neuron_count, input_count), WEIGHT_INIT_BOUND, rng)
        )

        self.input_count = input_count
        self.activation = activation
        self.biases = random_tensor((neuron_count, 1), BIAS_INIT_BOUND, rng)

    def calculate_output(self, input: Tensor) -> DenseForwardCache:
        """Computes f(W x + b), keeping x and W x + b for the backward pass."""
        weighted_output = matrix_multiply(self.weights, input) + self.biases
        output = DenseForwardCache(final_output=self.activation.evaluate_tensor(weighted_output))

        output.add(DenseForwardCache.INPUT, input)
        output.add(DenseForwardCache.WEIGHTED_OUTPUT, weighted_output)
        return output

    def calculate_gradient(
        self, ahead_layer: Layer, output: DenseForwardCache, ahead_gradient: Tensor
    ) -> Tensor:
        # da_j/dz_j = f'(z)
        weighted_output = output.find(DenseForwardCache.WEIGHTED_OUTPUT)
        activation_derivative = self.activation.derivative_tensor(0, weighted_output)

        # The ahead layer's error, carried back through its weights.
        backpropagated = matrix_multiply(ahead_layer.weights.transpose(), ahead_gradient)
        return activation_derivative.hadamard(backpropagated)

    def calculate_terminal_gradient(
        self, expected: Tensor, output: DenseForwardCache, cost_function: Function
    ) -> Tensor:
        # dC/da_j = C'(t, a) by the actual output
        expected = expected.as_vector_like(output.final_output)
        cost_derivative = cost_function.derivative_tensor(1, expected, output.final_output)

        weighted_output = output.find(DenseForwardCache.WEIGHTED_OUTPUT)
        activation_derivative = self.activation.derivative_tensor(0, weighted_output)

        return cost_derivative.hadamard(activation_derivative)

    def calculate_update_steps(self, gradient: Tensor, output: DenseForwardCache) -> DenseUpdateBundle:
        results = DenseUpdateBundle()

        # dz_j/dw_ij is the input, so the weight step is the outer product g x^T.
        input = output.find(DenseForwardCache.INPUT)
        results.add(DenseUpdateBundle.WEIGHTS_UPDATE, matrix_multiply(gradient, input.transpose()))

        # dz_j/db_j is one.
        results.add(DenseUpdateBundle.BIASES_UPDATE, gradient)

        results.add(DenseUpdateBundle.WEIGHTS, self.weights.copy())
        results.add(DenseUpdateBundle.BIASES, self.biases.copy())
        return results

    def apply_update_steps(self, learning_rate: float, update_steps: Sequence[UpdateBundle]) -> None:
        """
        Averages the batch's steps and applies one gradient descent update.

        Args:
            learning_rate: Step size
            update_steps: One bundle per sample of the batch
        """
        total_samples = len(update_steps)
        if total_samples == 0:
            raise ValueError("Cannot apply an empty batch of update steps")

        update_step = np.float32(learning_rate) / np.float32(total_samples)

        weight_step = Tensor.zeros_like(self.weights)
        bias_step = Tensor.zeros_like(self.biases)
        for bundle in update_steps:
            weight_step = weight_step + bundle.find(DenseUpdateBundle.WEIGHTS_UPDATE)
            bias_step = bias_step + bundle.find(DenseUpdateBundle.BIASES_UPDATE)

        self.weights.data -= weight_step.scale(update_step).data
        self.biases.data -= bias_step.scale(update_step).data

    def supply_history_gradients(self, gradients: Dict[str, Tensor]) -> None:
        gradients[f"Weights_{self.layer_index}"] = Tensor.zeros_like(self.weights)
        gradients[f"Biases_{self.layer_index}"] = Tensor.zeros_like(self.biases)

    def parameter_count(self) -> int:
        return self.weights.length + self.biases.length

    def extra_repr(self) -> str:
        activation = self.activation.name or "custom"
        return (
            f"input_count={self.input_count}, neuron_count={self.neuron_count}, "
            f"activation={activation}"
        )
