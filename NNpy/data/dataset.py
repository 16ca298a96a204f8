# dataset.py
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sized

from NNpy.core.tensor import Tensor


@dataclass
class Datapoint:
    """
    A single learning sample.

    Attributes:
        input: The tensor provided to a network
        expected: The output the network should produce for ``input``
    """

    input: Tensor
    expected: Tensor

    @classmethod
    def from_scalars(cls, input: float, expected: float) -> "Datapoint":
        return cls(Tensor.scalar(input), Tensor.scalar(expected))


class Dataset(Sized):
    """
    An ordered collection of datapoints used as the basis for training.

    Args:
        datapoints: Initial datapoints, kept in the given order
    """

    def __init__(self, datapoints: Optional[Iterable[Datapoint]] = None):
        self.datapoints: List[Datapoint] = list(datapoints or [])

    def add(self, point: Datapoint) -> None:
        self.datapoints.append(point)

    @property
    def size(self) -> int:
        return len(self.datapoints)

    def __getitem__(self, index: int) -> Datapoint:
        return self.datapoints[index]

    def __len__(self) -> int:
        return len(self.datapoints)

    def __iter__(self) -> Iterator[Datapoint]:
        return iter(self.datapoints)
