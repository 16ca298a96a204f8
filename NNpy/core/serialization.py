# NNpy/core/serialization.py

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

import numpy as np

from .function import Function
from .tensor import Tensor

if TYPE_CHECKING:
    from ..nn import Layer, NeuralNetwork

logger = logging.getLogger(__name__)

FORMAT_NAME = "NNpy-network"
FORMAT_VERSION = 1

HEADER_KEY = "header"


class NetworkSaver:
    """
    Saves and loads whole networks.

    A saved network is a numpy ``.npz`` archive with:
    - ``header``: JSON holding the format name and version plus one descriptor
      per layer, in network order (type, index, sizes, activation name and the
      shape of every tensor)
    - ``layer_<index>_<tensor>``: the raw float32 buffer of each tensor

    Loading rebuilds the layers in order, so indices, shapes and tensor bytes
    are identical to the saved network. Activations are restored by name, from
    ``custom_functions`` first and then the built-in registry.
    """

    @staticmethod
    def _tensor_key(index: int, name: str) -> str:
        return f"layer_{index}_{name}"

    @staticmethod
    def _layer_tensors(layer: "Layer") -> Dict[str, Tensor]:
        from ..nn import DenseLayer

        if isinstance(layer, DenseLayer):
            return {"weights": layer.weights, "biases": layer.biases}
        raise TypeError(f"Cannot serialize layer of type {type(layer).__name__}")

    @staticmethod
    def describe(network: "NeuralNetwork") -> Dict[str, Any]:
        """Builds the header describing a network's layers."""
        from ..nn import DenseLayer

        layers: List[Dict[str, Any]] = []
        for layer in network:
            if not isinstance(layer, DenseLayer):
                raise TypeError(f"Cannot serialize layer of type {type(layer).__name__}")
            if not layer.activation.name:
                raise ValueError(
                    f"Layer {layer.layer_index} uses an unnamed activation; "
                    "give the Function a name to save it"
                )

            layers.append(
                {
                    "type": type(layer).__name__,
                    "index": layer.layer_index,
                    "input_count": layer.input_count,
                    "neuron_count": layer.neuron_count,
                    "activation": layer.activation.name,
                    "tensors": {
                        name: list(tensor.shape)
                        for name, tensor in NetworkSaver._layer_tensors(layer).items()
                    },
                }
            )

        return {"format": FORMAT_NAME, "version": FORMAT_VERSION, "layers": layers}

    @staticmethod
    def save(network: "NeuralNetwork", path: Union[str, Path]) -> None:
        """
        Save a network to ``path``.

        Args:
            network: The network to save
            path: Destination file, written as-is (no suffix is added)
        """
        path = Path(path)
        header = NetworkSaver.describe(network)

        arrays: Dict[str, np.ndarray] = {HEADER_KEY: np.array(json.dumps(header))}
        for layer in network:
            for name, tensor in NetworkSaver._layer_tensors(layer).items():
                arrays[NetworkSaver._tensor_key(layer.layer_index, name)] = tensor.data

        with open(path, "wb") as f:
            np.savez(f, **arrays)

        logger.info("Saved network with %d layer(s) to %s", len(network), path)

    @staticmethod
    def load(
        path: Union[str, Path], custom_functions: Optional[Mapping[str, Function]] = None
    ) -> "NeuralNetwork":
        """
        Load a network saved with ``save``.

        Args:
            path: Path to the saved network
            custom_functions: Activations by name, for functions that are not built in

        Raises:
            ValueError: If the file is not a saved network, has an unsupported
                version, or its contents are inconsistent
        """
        from ..nn import NeuralNetwork

        path = Path(path)
        with np.load(path, allow_pickle=False) as archive:
            if HEADER_KEY not in archive.files:
                raise ValueError(f"{path} is not a saved network: missing header")

            header = json.loads(str(archive[HEADER_KEY]))
            if not isinstance(header, dict):
                raise ValueError(f"{path} is not a saved network: header is not an object")
            if header.get("format") != FORMAT_NAME:
                raise ValueError(f"{path} is not a saved network: format {header.get('format')!r}")
            if header.get("version") != FORMAT_VERSION:
                raise ValueError(
                    f"Unsupported network format version {header.get('version')!r}, "
                    f"expected {FORMAT_VERSION}"
                )

            network = NeuralNetwork()
            try:
                for position, descriptor in enumerate(header["layers"]):
                    network.add(
                        NetworkSaver._load_layer(archive, path, position, descriptor, custom_functions)
                    )
            except (KeyError, TypeError) as exc:
                raise ValueError(f"{path} has a malformed header: missing or invalid {exc}") from exc

        logger.info("Loaded network with %d layer(s) from %s", len(network), path)
        return network

    @staticmethod
    def _load_layer(
        archive: Any,
        path: Path,
        position: int,
        descriptor: Dict[str, Any],
        custom_functions: Optional[Mapping[str, Function]],
    ) -> "Layer":
        from ..nn import DenseLayer, get_function

        if descriptor["index"] != position:
            raise ValueError(f"Layer descriptor {position} has index {descriptor['index']}")
        if descriptor["type"] != DenseLayer.__name__:
            raise ValueError(f"Unknown layer type: {descriptor['type']}")

        layer = DenseLayer(
            descriptor["input_count"],
            descriptor["neuron_count"],
            get_function(descriptor["activation"], custom_functions),
        )

        tensors = {}
        for name, shape in descriptor["tensors"].items():
            key = NetworkSaver._tensor_key(position, name)
            if key not in archive.files:
                raise ValueError(f"{path} is missing tensor {key}")
            buffer = archive[key]
            if buffer.dtype != np.float32:
                raise ValueError(f"Tensor {key} has dtype {buffer.dtype}, expected float32")
            tensors[name] = Tensor._from_buffer(shape, buffer.copy())

        if tensors["weights"].shape != layer.weights.shape:
            raise ValueError(f"Weights of layer {position} have shape {tensors['weights'].shape}")
        if tensors["biases"].shape != layer.biases.shape:
            raise ValueError(f"Biases of layer {position} have shape {tensors['biases'].shape}")

        layer.weights = tensors["weights"]
        layer.biases = tensors["biases"]
        return layer
