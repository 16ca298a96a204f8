import numpy as np
import pytest

from NNpy.core import Tensor


def _assert_tensor_close(actual: Tensor, expected: Tensor, delta: float = 1e-4) -> None:
    assert actual.length == expected.length
    assert np.all(np.abs(actual.data - expected.data) < delta), (
        f"{actual!r} differs from {expected!r} by more than {delta}"
    )


@pytest.fixture
def assert_tensor_close():
    """Approximate tensor comparison, for results that are not bit-exact."""
    return _assert_tensor_close


@pytest.fixture
def rng():
    """Deterministic generator for parameter initialization."""
    return np.random.default_rng(1234)
