from pathlib import Path
from typing import Iterator, List, Mapping, Optional, Union

from ..core import ForwardCache, Function, ShapeMismatchError, Tensor
from .dense import DenseLayer
from .layer import Layer


class NeuralNetwork:
    """
    An ordered, append-only stack of layers.

    Each layer receives the next zero-based index when it is added and keeps it
    for the lifetime of the network. Layers belong to exactly one network.
    """

    def __init__(self, *layers: Layer):
        self._layers: List[Layer] = []
        for layer in layers:
            self.add(layer)

    def add(self, layer: Layer) -> None:
        """
        Adds a new layer at the end of the network.

        Raises:
            ValueError: If the layer already belongs to a network
            ShapeMismatchError: If a dense layer's input count differs from the
                previous layer's neuron count
        """
        if not isinstance(layer, Layer):
            raise TypeError(f"Expected Layer instance, got {type(layer)}")
        if layer.layer_index is not None:
            raise ValueError(f"Layer already belongs to a network at index {layer.layer_index}")

        if self._layers and isinstance(layer, DenseLayer):
            previous = self._layers[-1]
            if layer.input_count != previous.neuron_count:
                raise ShapeMismatchError(
                    f"Layer expects {layer.input_count} input(s) but the previous layer "
                    f"has {previous.neuron_count} neuron(s)"
                )

        layer.layer_index = len(self._layers)
        self._layers.append(layer)

    def __getitem__(self, index: int) -> Layer:
        return self._layers[index]

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    @property
    def last_layer(self) -> Layer:
        if not self._layers:
            raise RuntimeError("The network has no layers")
        return self._layers[-1]

    @property
    def output_count(self) -> int:
        """Neuron count of the last layer, i.e. the input count a newly added layer needs."""
        return self.last_layer.neuron_count

    def calculate_output(self, input: Tensor) -> Tensor:
        """
        Passes an input forward through every layer and returns the final output.

        Intermediate caches are discarded, which makes this the method for inference.
        """
        if not self._layers:
            raise RuntimeError("Cannot evaluate a network with no layers")

        output = input
        for layer in self._layers:
            output = layer.calculate_output(output).final_output
        return output

    def calculate_individual_layer_outputs(self, input: Tensor) -> List[ForwardCache]:
        """
        Passes an input forward through every layer, keeping each layer's cache.

        Training needs these: each layer's backward pass reads its own cached
        intermediates for the sample.
        """
        if not self._layers:
            raise RuntimeError("Cannot evaluate a network with no layers")

        outputs: List[ForwardCache] = []
        output = input
        for layer in self._layers:
            cache = layer.calculate_output(output)
            outputs.append(cache)
            output = cache.final_output
        return outputs

    def save(self, path: Union[str, Path]) -> None:
        """Saves the network to a file."""
        from ..core.serialization import NetworkSaver

        NetworkSaver.save(self, path)

    @classmethod
    def load(
        cls, path: Union[str, Path], custom_functions: Optional[Mapping[str, Function]] = None
    ) -> "NeuralNetwork":
        """Loads a network saved with ``save``."""
        from ..core.serialization import NetworkSaver

        return NetworkSaver.load(path, custom_functions)

    def __repr__(self) -> str:
        lines = [f"  ({layer.layer_index}): {layer!r}" for layer in self._layers]
        if not lines:
            return "NeuralNetwork()"
        return "NeuralNetwork(\n" + "\n".join(lines) + "\n)"
