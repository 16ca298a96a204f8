from typing import Optional, Sequence

import numpy as np

from ..core import Tensor


def random_direction(rng: Optional[np.random.Generator], maximum: float) -> float:
    """
    Draws a float uniformly from ``[-maximum, maximum)``.

    Args:
        rng: Generator to draw from; numpy's default generator when None
        maximum: The largest absolute value to return
    """
    rng = rng if rng is not None else np.random.default_rng()
    return float(rng.uniform(-maximum, maximum))


def random_tensor(
    shape: Sequence[int], maximum: float, rng: Optional[np.random.Generator] = None
) -> Tensor:
    """Creates a tensor whose elements are drawn uniformly from ``[-maximum, maximum)``."""
    rng = rng if rng is not None else np.random.default_rng()
    tensor = Tensor(tuple(shape))
    tensor.data[:] = rng.uniform(-maximum, maximum, tensor.length)
    return tensor
