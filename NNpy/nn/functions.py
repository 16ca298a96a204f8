"""
Standard activation and cost functions for NNpy.

Every function here carries an analytic derivative, so training does not pay
for central-difference estimates. Cost functions take ``(expected, actual)``;
the output layer differentiates them by term 1, the actual output.

Named functions are also registered so a saved network can be rebuilt with the
same activations.
"""

import math
from typing import Dict, Mapping, Optional

from ..core import Function

DEFAULT_LEAKY_SLOPE = 0.01
LEAKY_RELU_PREFIX = "leaky_relu_"


def relu_value(x: float, negative_factor: float) -> float:
    """max(a * x, x): the identity for positive inputs, scaled by ``negative_factor`` otherwise."""
    return max(negative_factor * x, x)


def _sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def linear() -> Function:
    """f(x) = x"""
    return Function(lambda x: x, lambda term, x: 1.0, name="linear")


def tanh() -> Function:
    """f(x) = tanh(x), f'(x) = 1 - tanh(x)^2"""
    return Function(math.tanh, lambda term, x: 1.0 - math.tanh(x) ** 2, name="tanh")


def sigmoid() -> Function:
    """f(x) = 1 / (1 + e^-x), f'(x) = f(x)(1 - f(x))"""

    def derivative(term: int, x: float) -> float:
        s = _sigmoid(x)
        return s * (1.0 - s)

    return Function(_sigmoid, derivative, name="sigmoid")


def relu(negative_factor: float = 0.0, name: Optional[str] = None) -> Function:
    """
    Rectified linear unit with an optional negative slope.

    Args:
        negative_factor: Slope used for negative inputs. Typically 0 or slightly above.
        name: Registry name; defaults to ``relu``, ``leaky_relu`` for the 0.01 slope,
            and ``leaky_relu_<slope>`` otherwise so the slope survives saving.
    """
    negative_factor = float(negative_factor)
    if name is None:
        if negative_factor == 0.0:
            name = "relu"
        elif negative_factor == DEFAULT_LEAKY_SLOPE:
            name = "leaky_relu"
        else:
            name = f"{LEAKY_RELU_PREFIX}{negative_factor!r}"

    return Function(
        lambda x: relu_value(x, negative_factor),
        lambda term, x: 1.0 if x > 0 else negative_factor,
        name=name,
    )


def squared_error() -> Function:
    """C(t, y) = (y - t)^2 / 2 for an expected value t and actual output y."""

    def derivative(term: int, expected: float, actual: float) -> float:
        if term == 0:
            return expected - actual
        return actual - expected

    return Function(
        lambda expected, actual: 0.5 * (actual - expected) ** 2,
        derivative,
        input_count=2,
        name="squared_error",
    )


_REGISTRY: Dict[str, Function] = {
    function.name: function
    for function in (
        linear(),
        tanh(),
        sigmoid(),
        relu(),
        relu(DEFAULT_LEAKY_SLOPE),
        squared_error(),
    )
}


def get_function(name: str, custom_functions: Optional[Mapping[str, Function]] = None) -> Function:
    """
    Looks up a function by name, preferring ``custom_functions`` over the built-ins.

    Names of the form ``leaky_relu_<slope>`` rebuild a leaky ReLU with that slope.

    Raises:
        ValueError: If no function is known under ``name``
    """
    if custom_functions and name in custom_functions:
        return custom_functions[name]
    if name in _REGISTRY:
        return _REGISTRY[name]
    if name.startswith(LEAKY_RELU_PREFIX):
        try:
            negative_factor = float(name[len(LEAKY_RELU_PREFIX):])
        except ValueError:
            raise ValueError(f"Unknown function: {name}") from None
        return relu(negative_factor)
    raise ValueError(f"Unknown function: {name}")


def register_function(function: Function) -> None:
    """Makes a named function available to ``get_function``."""
    if not function.name:
        raise ValueError("Only named functions can be registered")
    _REGISTRY[function.name] = function
