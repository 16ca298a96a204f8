from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence

from ..core import ForwardCache, Function, Tensor, UpdateBundle


class Layer(ABC):
    """
    Base class for all network layers.

    A layer evaluates one sample at a time and returns a ``ForwardCache`` holding
    whatever its own backward computations will need. Backpropagation is written
    out by hand per layer type: the gradient methods compute
    ``dC/da_j * da_j/dz_j`` for this layer, and the update-step methods turn that
    gradient into per-sample parameter contributions.

    Attributes:
        layer_index: Position in the owning network, assigned once on insertion
        neuron_count: Number of neurons (outputs) of the layer
        weights: The layer's weight tensor
    """

    def __init__(self, neuron_count: int, weights: Tensor):
        if neuron_count < 1:
            raise ValueError(f"Invalid neuron count: {neuron_count}")

        self.layer_index: Optional[int] = None
        self.neuron_count = neuron_count
        self.weights = weights

    @abstractmethod
    def calculate_output(self, input: Tensor) -> ForwardCache:
        """
        Evaluates the layer for one sample.

        Args:
            input: The input to provide to the layer

        Returns:
            The layer's output plus the intermediates its backward pass needs
        """
        raise NotImplementedError

    @abstractmethod
    def calculate_gradient(
        self, ahead_layer: "Layer", output: ForwardCache, ahead_gradient: Tensor
    ) -> Tensor:
        """
        Computes this layer's gradient when it is not the last layer.

        Args:
            ahead_layer: The layer immediately after this one in the network
            output: This layer's forward cache for the current sample
            ahead_gradient: The gradient already computed for ``ahead_layer``
        """
        raise NotImplementedError

    @abstractmethod
    def calculate_terminal_gradient(
        self, expected: Tensor, output: ForwardCache, cost_function: Function
    ) -> Tensor:
        """
        Computes this layer's gradient when it is the last layer of the network.

        Args:
            expected: The expected output for the current sample
            output: This layer's forward cache for the current sample
            cost_function: Two-input cost taking ``(expected, actual)``
        """
        raise NotImplementedError

    @abstractmethod
    def calculate_update_steps(self, gradient: Tensor, output: ForwardCache) -> UpdateBundle:
        """Turns one sample's gradient into that sample's parameter contributions."""
        raise NotImplementedError

    @abstractmethod
    def apply_update_steps(self, learning_rate: float, update_steps: Sequence[UpdateBundle]) -> None:
        """
        Applies one batch of update bundles to the layer's parameters.

        This is the only place a layer's parameters change. It must run once per
        batch, after every sample of the batch produced its bundle.
        """
        raise NotImplementedError

    @abstractmethod
    def supply_history_gradients(self, gradients: Dict[str, Tensor]) -> None:
        """Reserves zero-filled gradient history slots for this layer's parameters."""
        raise NotImplementedError

    def parameter_count(self) -> int:
        return self.weights.length

    def extra_repr(self) -> str:
        return f"neuron_count={self.neuron_count}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.extra_repr()})"
