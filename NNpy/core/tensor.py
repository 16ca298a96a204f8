import logging
import operator
from numbers import Number
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .errors import ShapeMismatchError
from .kernel import gemm, memory_compare

logger = logging.getLogger(__name__)

Index = Union[int, Tuple[int, ...]]


class Tensor:
    """
    A flattened, strided multidimensional array of 32-bit floats.

    Values live in a flat numpy buffer of ``length = prod(shape)`` elements.
    Coordinates are flattened with a stride table where ``strides[0] = 1`` and
    ``strides[i] = strides[i - 1] * shape[i - 1]``, so the first dimension
    varies fastest. A rank-2 tensor is therefore a column-major matrix with
    ``shape[0]`` rows and ``shape[1]`` columns, which is the layout the GEMM
    kernel consumes directly.

    Tensors are mutable and carry no aliasing protection: writes through
    ``__setitem__`` or to ``data`` are seen by every holder of the tensor.

    Attributes:
        data: Flat float32 buffer holding the tensor's values
        shape: Size of every dimension
        strides: Per-dimension multipliers used to flatten coordinates
    """

    def __init__(self, *sizes: Union[int, Sequence[int]]):
        if len(sizes) == 1 and isinstance(sizes[0], (tuple, list)):
            sizes = tuple(sizes[0])

        self._set_layout(sizes)
        self.data: NDArray[np.float32] = np.zeros(self.length, dtype=np.float32)

    def _set_layout(self, sizes: Iterable[Any]) -> None:
        shape = []
        for size in sizes:
            if isinstance(size, (bool, float)) or not isinstance(size, (int, np.integer)):
                raise TypeError(f"Dimension sizes must be integers, got {type(size).__name__}")
            if size < 0:
                raise ValueError(f"Invalid dimension size: {size}")
            shape.append(int(size))

        strides = []
        length = 1
        for size in shape:
            strides.append(length)
            length *= size

        self._shape: Tuple[int, ...] = tuple(shape)
        self._strides: Tuple[int, ...] = tuple(strides)
        self._length = length

    @classmethod
    def _from_buffer(cls, shape: Sequence[int], buffer: NDArray[Any]) -> "Tensor":
        """Wraps an existing flat buffer without copying it."""
        tensor = cls.__new__(cls)
        tensor._set_layout(shape)
        buffer = np.asarray(buffer, dtype=np.float32).reshape(-1)
        if buffer.size != tensor._length:
            raise ShapeMismatchError(
                f"Buffer of {buffer.size} elements does not fit shape {tensor._shape}"
            )
        tensor.data = buffer
        return tensor

    @classmethod
    def scalar(cls, value: float) -> "Tensor":
        """Creates a 1x1 tensor holding a single value."""
        return cls._from_buffer((1, 1), np.array([value], dtype=np.float32))

    @classmethod
    def from_row(cls, values: Sequence[float]) -> "Tensor":
        """Creates a 1xN tensor from a flat sequence."""
        buffer = np.array(values, dtype=np.float32).reshape(-1)
        return cls._from_buffer((1, buffer.size), buffer)

    @classmethod
    def from_column(cls, values: Sequence[float]) -> "Tensor":
        """Creates an Nx1 column tensor from a flat sequence."""
        buffer = np.array(values, dtype=np.float32).reshape(-1)
        return cls._from_buffer((buffer.size, 1), buffer)

    @classmethod
    def from_grid(cls, rows: Sequence[Sequence[float]]) -> "Tensor":
        """Creates a matrix from a 2-D literal, so that ``rows[i][j]`` lands at ``[i, j]``."""
        array = np.array(rows, dtype=np.float32)
        if array.ndim != 2:
            raise ShapeMismatchError(f"Expected a 2-D grid, got {array.ndim} dimension(s)")
        return cls.from_numpy(array)

    @classmethod
    def from_numpy(cls, array: NDArray[Any]) -> "Tensor":
        """Creates a Tensor from a numpy array of any rank."""
        array = np.asarray(array, dtype=np.float32)
        return cls._from_buffer(array.shape, array.ravel(order="F").copy())

    @classmethod
    def zeros_like(cls, other: "Tensor") -> "Tensor":
        return cls(other.shape)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def strides(self) -> Tuple[int, ...]:
        return self._strides

    @property
    def rank(self) -> int:
        """The amount of dimensions the tensor has."""
        return len(self._shape)

    @property
    def length(self) -> int:
        """The overall element count, i.e. the product of all dimension sizes."""
        return self._length

    def dimension_size(self, dimension: int) -> int:
        return self._shape[dimension]

    def numpy(self) -> NDArray[np.float32]:
        """Returns the values as a shaped numpy view of the underlying buffer."""
        return self.data.reshape(self._shape, order="F")

    def copy(self) -> "Tensor":
        """Creates a deep copy of the tensor."""
        return Tensor._from_buffer(self._shape, self.data.copy())

    def fill(self, value: float) -> None:
        self.data.fill(value)

    def sum(self) -> float:
        return float(self.data.sum())

    # Indexing

    def _offset(self, index: Index) -> int:
        indices = index if isinstance(index, tuple) else (index,)
        if len(indices) > self.rank:
            raise IndexError(
                f"Too many indices for tensor of rank {self.rank}: got {len(indices)}"
            )

        offset = 0
        for dimension, position in enumerate(indices):
            position = operator.index(position)
            if not 0 <= position < self._shape[dimension]:
                raise IndexError(
                    f"Index {position} is out of bounds for dimension {dimension} "
                    f"with size {self._shape[dimension]}"
                )
            offset += position * self._strides[dimension]
        return offset

    def __getitem__(self, index: Index) -> float:
        return float(self.data[self._offset(index)])

    def __setitem__(self, index: Index, value: float) -> None:
        self.data[self._offset(index)] = value

    # Elementwise arithmetic

    def _check_same_shape(self, other: "Tensor", operation: str) -> None:
        if self._shape != other._shape:
            raise ShapeMismatchError(
                f"Cannot {operation} tensors of shapes {self._shape} and {other._shape}"
            )

    def __add__(self, other: Union["Tensor", float]) -> "Tensor":
        if isinstance(other, Tensor):
            self._check_same_shape(other, "add")
            return Tensor._from_buffer(self._shape, self.data + other.data)
        if isinstance(other, Number):
            return Tensor._from_buffer(self._shape, self.data + np.float32(other))
        return NotImplemented

    def __radd__(self, other: float) -> "Tensor":
        return self.__add__(other)

    def __neg__(self) -> "Tensor":
        return Tensor._from_buffer(self._shape, -self.data)

    def __sub__(self, other: Union["Tensor", float]) -> "Tensor":
        if isinstance(other, Tensor):
            self._check_same_shape(other, "subtract")
            return Tensor._from_buffer(self._shape, self.data - other.data)
        if isinstance(other, Number):
            return self + (-other)
        return NotImplemented

    def __rsub__(self, other: float) -> "Tensor":
        if isinstance(other, Number):
            return (-self) + other
        return NotImplemented

    def hadamard(self, other: "Tensor") -> "Tensor":
        """Elementwise product of two equally shaped tensors."""
        self._check_same_shape(other, "take the Hadamard product of")
        return Tensor._from_buffer(self._shape, self.data * other.data)

    def scale(self, factor: float) -> "Tensor":
        """Returns every element multiplied by a constant."""
        return Tensor._from_buffer(self._shape, self.data * np.float32(factor))

    def __mul__(self, other: Union["Tensor", float]) -> "Tensor":
        """
        Generalized multiplication.

        With a number this scales every element. With another tensor this is
        NOT the Hadamard product: single-element operands multiply as scalars,
        operands of rank <= 2 are matrix-multiplied, and anything else falls
        through to a single-element zero tensor.
        """
        if isinstance(other, Number):
            return self.scale(other)
        if not isinstance(other, Tensor):
            return NotImplemented

        if self._length == 1 and other._length == 1:
            return Tensor.scalar(self.data[0] * other.data[0])

        if self.rank <= 2 and other.rank <= 2:
            return matrix_multiply(self, other)

        # Higher ranks have no defined product here; the zero result is kept
        # for compatibility but almost certainly hides a caller bug.
        logger.warning(
            "Generalized multiply of shapes %s and %s is undefined; returning a zero tensor",
            self._shape,
            other._shape,
        )
        return Tensor(1)

    def __rmul__(self, other: float) -> "Tensor":
        if isinstance(other, Number):
            return self.scale(other)
        return NotImplemented

    def __truediv__(self, other: float) -> "Tensor":
        if isinstance(other, Number):
            return Tensor._from_buffer(self._shape, self.data / np.float32(other))
        return NotImplemented

    def __matmul__(self, other: "Tensor") -> "Tensor":
        if not isinstance(other, Tensor):
            return NotImplemented
        return matrix_multiply(self, other)

    # Matrix helpers

    def _matrix_dimensions(self) -> Tuple[int, int]:
        if self.rank == 0:
            return 1, 1
        if self.rank == 1:
            return self._shape[0], 1
        if self.rank == 2:
            return self._shape[0], self._shape[1]
        raise ShapeMismatchError(f"Expected a tensor of rank <= 2, got shape {self._shape}")

    def transpose(self) -> "Tensor":
        """
        Returns the matrix transpose of a rank <= 2 tensor.

        A rank-1 tensor is treated as a column and becomes a 1xN row. A tensor
        holding a single element is returned as-is, without a copy.
        """
        rows, cols = self._matrix_dimensions()
        if self._length == 1:
            return self

        matrix = self.data.reshape((rows, cols), order="F")
        return Tensor._from_buffer((cols, rows), matrix.T.ravel(order="F"))

    def t(self) -> "Tensor":
        """Returns the transpose of the tensor."""
        return self.transpose()

    @property
    def is_vector(self) -> bool:
        """True for rank <= 1 tensors and for matrices with a single row or column."""
        return self.rank <= 1 or (self.rank == 2 and 1 in self._shape)

    def as_vector_like(self, other: "Tensor") -> "Tensor":
        """
        Returns this tensor laid out in the shape of ``other``.

        Rank-1 tensors, rows and columns of one length share the same flat
        buffer, so a vector can stand in for any other vector of its length.
        The result shares data with ``self``.

        Raises:
            ShapeMismatchError: If the shapes differ and the two are not vectors
                of the same length
        """
        if self._shape == other._shape:
            return self
        if self._length != other._length or not (self.is_vector and other.is_vector):
            raise ShapeMismatchError(
                f"Cannot use a tensor of shape {self._shape} where shape {other._shape} is expected"
            )
        return Tensor._from_buffer(other._shape, self.data)

    # Comparison

    def __eq__(self, other: Any) -> bool:
        """Exact equality: equal lengths and byte-identical buffers."""
        if not isinstance(other, Tensor):
            return NotImplemented
        if other._length != self._length:
            return False
        return memory_compare(self.data, other.data, self.data.itemsize * self._length) == 0

    __hash__ = None  # type: ignore[assignment]

    def allclose(self, other: "Tensor", tolerance: float = 1e-5) -> bool:
        """Approximate equality: equal lengths and every element within ``tolerance``."""
        if other._length != self._length:
            return False
        return bool(np.all(np.abs(self.data - other.data) < tolerance))

    def __repr__(self) -> str:
        return f"Tensor({self.numpy().tolist()}, shape={self._shape})"

    def __str__(self) -> str:
        return np.array2string(self.numpy())


def matrix_multiply(a: Tensor, b: Tensor, out: Optional[Tensor] = None) -> Tensor:
    """
    Multiplies two matrices with a single GEMM call.

    Rank-1 operands are treated as Nx1 columns. The result has shape
    ``(rows(a), cols(b))``.

    Args:
        a: Left operand of rank <= 2
        b: Right operand of rank <= 2
        out: Optional tensor of the result shape to write into

    Raises:
        ShapeMismatchError: If the inner dimensions differ or an operand has rank > 2
    """
    rows_a, cols_a = a._matrix_dimensions()
    rows_b, cols_b = b._matrix_dimensions()
    if cols_a != rows_b:
        raise ShapeMismatchError(
            f"Cannot multiply matrices of shapes {(rows_a, cols_a)} and {(rows_b, cols_b)}"
        )

    if out is None:
        out = Tensor(rows_a, cols_b)
    elif out.shape != (rows_a, cols_b):
        raise ShapeMismatchError(f"Output shape {out.shape} should be {(rows_a, cols_b)}")

    gemm(
        False,
        False,
        rows_a,
        cols_b,
        cols_a,
        1.0,
        a.data,
        max(1, rows_a),
        b.data,
        max(1, rows_b),
        0.0,
        out.data,
        max(1, rows_a),
    )
    return out
