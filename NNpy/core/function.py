from typing import Callable, Optional, Union

import numpy as np

from .errors import ArityMismatchError, ShapeMismatchError
from .tensor import Tensor

ScalarFunction = Callable[..., float]
ScalarDerivative = Callable[..., float]


class Function:
    """
    A scalar function of one to three inputs with a derivative.

    The function can be evaluated on plain numbers or, for single-input
    functions, elementwise over a tensor. Derivatives come from the supplied
    ``fx_prime(term, *inputs)`` when one is given, otherwise they are estimated
    with the central difference method

        (f(x + h) - f(x - h)) / 2h

    where only the input at ``term`` is nudged and the others are held fixed.

    Args:
        fx: The scalar function
        fx_prime: Optional analytic derivative taking the term index first
        input_count: Number of inputs ``fx`` expects (1, 2 or 3)
        name: Optional identifier, used to look the function up when a network
            is loaded from disk
    """

    # The cube root of float32 machine epsilon (2^-23), optimal for central differences.
    HALF_DERIVATIVE_OFFSET = np.float32(0.00034526)

    # 1 / (2 * HALF_DERIVATIVE_OFFSET)
    INVERSE_DERIVATIVE_OFFSET = np.float32(1448.1546)

    def __init__(
        self,
        fx: ScalarFunction,
        fx_prime: Optional[ScalarDerivative] = None,
        input_count: int = 1,
        name: Optional[str] = None,
    ):
        if input_count not in (1, 2, 3):
            raise ValueError(f"Invalid input count: {input_count}")

        self.fx = fx
        self.fx_prime = fx_prime
        self.input_count = input_count
        self.name = name

    @property
    def has_manual_derivative(self) -> bool:
        return self.fx_prime is not None

    def _check_arity(self, count: int) -> None:
        if count != self.input_count:
            raise ArityMismatchError(
                f"Function{f' {self.name!r}' if self.name else ''} expects "
                f"{self.input_count} input(s), got {count}"
            )

    def _check_term(self, term: int) -> None:
        if not 0 <= term < self.input_count:
            raise IndexError(
                f"Term {term} is out of range for a function of {self.input_count} input(s)"
            )

    def evaluate(self, *inputs: float) -> float:
        """Evaluates the function at the given input(s)."""
        self._check_arity(len(inputs))
        return self.fx(*inputs)

    def evaluate_tensor(self, tensor: Tensor) -> Tensor:
        """
        Applies a single-input function to every element of a tensor.

        Raises:
            ArityMismatchError: If the function takes more than one input
        """
        self._check_arity(1)
        result = Tensor(tensor.shape)
        for i, value in enumerate(tensor.data):
            result.data[i] = self.fx(value)
        return result

    def derivative(self, term: int, *inputs: float) -> float:
        """
        Evaluates the partial derivative with respect to the input at ``term``.

        Args:
            term: Index of the input to differentiate by
            *inputs: The point at which to differentiate
        """
        self._check_arity(len(inputs))
        self._check_term(term)

        if self.fx_prime is not None:
            return self.fx_prime(term, *inputs)

        right = [np.float32(value) for value in inputs]
        left = list(right)
        right[term] = right[term] + self.HALF_DERIVATIVE_OFFSET
        left[term] = left[term] - self.HALF_DERIVATIVE_OFFSET

        difference = np.float32(self.fx(*right)) - np.float32(self.fx(*left))
        return float(difference * self.INVERSE_DERIVATIVE_OFFSET)

    def derivative_tensor(self, term: int, *tensors: Tensor) -> Tensor:
        """
        Evaluates the partial derivative elementwise across equally shaped tensors.

        For every flat index the co-located values of each tensor form the
        input list, in the order the tensors are given.

        Raises:
            ArityMismatchError: If the tensor count differs from the input count
            ShapeMismatchError: If the tensors do not share one shape
        """
        self._check_arity(len(tensors))
        self._check_term(term)

        shape = tensors[0].shape
        for tensor in tensors[1:]:
            if tensor.shape != shape:
                raise ShapeMismatchError(
                    f"Derivative inputs must share one shape, got {shape} and {tensor.shape}"
                )

        result = Tensor(shape)
        columns = [tensor.data for tensor in tensors]
        for i in range(result.length):
            result.data[i] = self.derivative(term, *(column[i] for column in columns))
        return result

    def __call__(self, *inputs: Union[Tensor, float]) -> Union[Tensor, float]:
        if len(inputs) == 1 and isinstance(inputs[0], Tensor):
            return self.evaluate_tensor(inputs[0])
        return self.evaluate(*inputs)

    def __repr__(self) -> str:
        return f"Function(name={self.name!r}, input_count={self.input_count})"
