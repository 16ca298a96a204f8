import logging
from typing import List, Optional, Sequence

from ..core import Function, Tensor, UpdateBundle
from ..data import Datapoint
from ..nn import NeuralNetwork
from .optimizer import NeuralNetworkOptimizer

logger = logging.getLogger(__name__)


class GradientDescentOptimizer(NeuralNetworkOptimizer):
    """
    Plain full-batch gradient descent.

    Every epoch evaluates all datapoints, in order, with the parameters the
    epoch started with, then applies one averaged update per layer. This gives
    reliable steps but is generally too slow for practical training.

    Args:
        learning_rate: Step size (must be non-negative)
        cost_function: Two-input cost taking ``(expected, actual)``
        data: Ordered, indexable collection of datapoints
    """

    def __init__(
        self, learning_rate: float, cost_function: Function, data: Sequence[Datapoint]
    ) -> None:
        if learning_rate < 0.0:
            raise ValueError(f"Invalid learning rate: {learning_rate}")

        super().__init__(cost_function, data)
        self.learning_rate = learning_rate

    def train(self, network: NeuralNetwork, epochs: int) -> List[float]:
        """
        Trains a network across all datapoints for each epoch.

        For each sample the network is run forward keeping every layer's
        cache, then gradients and update steps are computed from the last
        layer to the first, since each hidden layer consumes the gradient of
        the layer ahead of it. Parameters only change once every sample of the
        epoch has been processed.

        Args:
            network: The neural network to train
            epochs: The amount of training cycles to perform

        Returns:
            The total dataset cost of each epoch, measured on that epoch's
            forward passes
        """
        if epochs < 0:
            raise ValueError(f"Invalid epoch count: {epochs}")

        data_size = len(self.data)
        if data_size == 0:
            raise ValueError("Cannot train on an empty dataset")

        layer_count = network.layer_count
        if layer_count == 0:
            raise RuntimeError("Cannot train a network with no layers")

        history: List[float] = []
        for epoch in range(epochs):
            update_steps: List[List[UpdateBundle]] = [[] for _ in range(layer_count)]
            epoch_cost = 0.0

            for point in self.data:
                outputs = network.calculate_individual_layer_outputs(point.input)
                epoch_cost += self.sample_cost(point.expected, outputs[-1].final_output)

                ahead_gradient: Optional[Tensor] = None
                for k in range(layer_count - 1, -1, -1):
                    layer = network[k]
                    if k == layer_count - 1:
                        gradient = layer.calculate_terminal_gradient(
                            point.expected, outputs[k], self.cost_function
                        )
                    else:
                        gradient = layer.calculate_gradient(network[k + 1], outputs[k], ahead_gradient)

                    update_steps[k].append(layer.calculate_update_steps(gradient, outputs[k]))
                    ahead_gradient = gradient

            for k in range(layer_count):
                network[k].apply_update_steps(self.learning_rate, update_steps[k])

            history.append(epoch_cost)
            logger.debug("Epoch %d/%d: cost %.6f", epoch + 1, epochs, epoch_cost)

        if history:
            logger.info(
                "Trained %d epoch(s) over %d sample(s): cost %.6f -> %.6f",
                epochs,
                data_size,
                history[0],
                history[-1],
            )
        return history
