from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from .errors import MissingEntryError
from .tensor import Tensor


@dataclass
class _NamedTensors:
    """String-keyed tensor storage shared by forward caches and update bundles."""

    _entries: Dict[str, Tensor] = field(default_factory=dict)

    def add(self, name: str, value: Tensor) -> None:
        """
        Stores a tensor under the given name, replacing any previous entry.

        Args:
            name: Identifier for the value
            value: The tensor to store
        """
        self._entries[name] = value

    def find(self, name: str) -> Tensor:
        """
        Retrieves a stored tensor.

        Raises:
            MissingEntryError: If nothing was stored under ``name``
        """
        value = self._entries.get(name)
        if value is None:
            raise MissingEntryError(name)
        return value

    def try_find(self, name: str) -> Tuple[bool, Optional[Tensor]]:
        """Retrieves a stored tensor without raising, as a ``(found, value)`` pair."""
        value = self._entries.get(name)
        return value is not None, value

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ForwardCache(_NamedTensors):
    """
    The result of one layer evaluating one sample.

    Holds the layer's output plus the intermediate tensors that the same
    layer's gradient and update-step computations need for that sample.

    Attributes:
        final_output: The tensor passed on to the next layer
    """

    final_output: Optional[Tensor] = None


@dataclass
class UpdateBundle(_NamedTensors):
    """Per-sample parameter contributions of one layer, summed across a batch when applied."""


class DenseForwardCache(ForwardCache):
    """Forward cache of a dense layer."""

    INPUT = "Input"
    WEIGHTED_OUTPUT = "WeightedOutput"

    @property
    def input(self) -> Tensor:
        return self.find(self.INPUT)

    @property
    def weighted_output(self) -> Tensor:
        return self.find(self.WEIGHTED_OUTPUT)


class DenseUpdateBundle(UpdateBundle):
    """Update bundle of a dense layer."""

    WEIGHTS_UPDATE = "WeightsUpdate"
    BIASES_UPDATE = "BiasesUpdate"
    WEIGHTS = "Weights"
    BIASES = "Biases"

    @property
    def weights_update(self) -> Tensor:
        return self.find(self.WEIGHTS_UPDATE)

    @property
    def biases_update(self) -> Tensor:
        return self.find(self.BIASES_UPDATE)

    @property
    def weights(self) -> Tensor:
        """Snapshot of the layer's weights when the bundle was produced."""
        return self.find(self.WEIGHTS)

    @property
    def biases(self) -> Tensor:
        """Snapshot of the layer's biases when the bundle was produced."""
        return self.find(self.BIASES)
