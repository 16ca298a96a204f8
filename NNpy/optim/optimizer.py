from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

from ..core import ArityMismatchError, Function, Tensor
from ..data import Datapoint
from ..nn import NeuralNetwork


class NeuralNetworkOptimizer(ABC):
    """
    Base class for all training procedures.

    An optimizer pairs a dataset with a cost function and trains networks
    against them.

    Args:
        cost_function: Two-input cost taking ``(expected, actual)``
        data: Ordered, indexable collection of datapoints
    """

    def __init__(self, cost_function: Function, data: Sequence[Datapoint]) -> None:
        if cost_function.input_count != 2:
            raise ArityMismatchError(
                f"Cost functions take (expected, actual), got {cost_function.input_count} input(s)"
            )

        self.cost_function = cost_function
        self.data = data
        self.previous_gradients: Dict[str, Tensor] = {}

    def reserve_history(self, network: NeuralNetwork) -> Dict[str, Tensor]:
        """
        Allocates zero-filled gradient history for every parameter of a network.

        Optimizers that carry state between epochs, such as momentum, read and
        write these slots, keyed by parameter name and layer index.
        """
        self.previous_gradients = {}
        for layer in network:
            layer.supply_history_gradients(self.previous_gradients)
        return self.previous_gradients

    def sample_cost(self, expected: Tensor, actual: Tensor) -> float:
        """
        Sums the cost function over every element of one sample's output.

        A vector ``expected`` is matched to ``actual`` by element order, the same
        way the output layer's gradient reads it.
        """
        expected = expected.as_vector_like(actual)
        return float(
            sum(
                self.cost_function.evaluate(float(t), float(y))
                for t, y in zip(expected.data, actual.data)
            )
        )

    def calculate_cost(self, network: NeuralNetwork) -> float:
        """Total cost of a network over the whole dataset."""
        return sum(
            self.sample_cost(point.expected, network.calculate_output(point.input))
            for point in self.data
        )

    @abstractmethod
    def train(self, network: NeuralNetwork, epochs: int) -> List[float]:
        """
        Trains a network for the given number of epochs.

        Returns:
            The total dataset cost observed during each epoch
        """
        raise NotImplementedError
