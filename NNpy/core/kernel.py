"""
Numeric kernel boundary for NNpy.

Tensors keep their values in flat, column-major ``float32`` buffers. This module
is the only place where those buffers are handed to compiled code:

- ``gemm`` follows the BLAS ``sgemm`` contract
  ``C = alpha * op(A) @ op(B) + beta * C`` over flat buffers with explicit
  leading dimensions, and is carried out by numpy's BLAS-dispatched matmul.
- ``memory_compare`` follows ``memcmp`` semantics over the raw bytes of two
  buffers and backs exact tensor equality.
- ``initialize_kernel`` sets the BLAS thread count once per process from an
  explicit ``KernelConfig``.
"""

import ctypes
import importlib
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Thread-count entry points exported by the BLAS builds numpy ships with.
_THREAD_SYMBOLS = (
    "scipy_openblas_set_num_threads64_",
    "scipy_openblas_set_num_threads",
    "openblas_set_num_threads64_",
    "openblas_set_num_threads",
    "MKL_Set_Num_Threads",
)

_MULTIARRAY_MODULES = ("numpy._core._multiarray_umath", "numpy.core._multiarray_umath")


@dataclass(frozen=True)
class KernelConfig:
    """
    Process-wide settings for the numeric kernel.

    Args:
        threads: Number of threads the BLAS library may use for a single GEMM.
            Defaults to the host's processor count.
    """

    threads: int = field(default_factory=lambda: os.cpu_count() or 1)

    def __post_init__(self) -> None:
        if self.threads < 1:
            raise ValueError(f"Invalid thread count: {self.threads}")


_active_config: Optional[KernelConfig] = None


@lru_cache(maxsize=1)
def _load_blas_thread_setter() -> Optional[Any]:
    """
    Locate the BLAS thread-count setter linked into numpy.

    Symbol lookup on the multiarray extension also searches the libraries it
    depends on, which is where numpy's bundled BLAS lives.
    """
    for module_name in _MULTIARRAY_MODULES:
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            continue

        try:
            library = ctypes.CDLL(module.__file__)
        except OSError as exc:
            logger.debug("Could not open %s: %s", module.__file__, exc)
            continue

        for symbol in _THREAD_SYMBOLS:
            setter = getattr(library, symbol, None)
            if setter is not None:
                setter.argtypes = [ctypes.c_int]
                setter.restype = None
                logger.debug("Using BLAS thread setter %s", symbol)
                return setter

    return None


def initialize_kernel(config: Optional[KernelConfig] = None) -> KernelConfig:
    """
    Configure the numeric kernel for this process.

    Args:
        config: Kernel settings. A default ``KernelConfig`` is used when omitted.

    Returns:
        The configuration now in effect.
    """
    global _active_config

    config = config or KernelConfig()
    setter = _load_blas_thread_setter()
    if setter is None:
        logger.warning(
            "No BLAS thread-count entry point found; GEMM keeps its default threading"
        )
    else:
        setter(config.threads)
        logger.info("Numeric kernel configured with %d thread(s)", config.threads)

    _active_config = config
    return config


def kernel_thread_count() -> Optional[int]:
    """Returns the configured thread count, or None before initialization."""
    return _active_config.threads if _active_config is not None else None


def _column_major_view(
    buffer: NDArray[np.float32], rows: int, cols: int, leading: int
) -> NDArray[np.float32]:
    """View ``rows x cols`` of a flat column-major buffer with leading dimension ``leading``."""
    if leading < max(1, rows):
        raise ValueError(f"Leading dimension {leading} is smaller than row count {rows}")

    if rows == 0 or cols == 0:
        return np.zeros((rows, cols), dtype=buffer.dtype)

    needed = leading * cols
    if buffer.size < needed:
        raise ValueError(f"Buffer of {buffer.size} elements is too small, needs {needed}")

    return buffer[:needed].reshape((cols, leading)).T[:rows, :]


def gemm(
    trans_a: bool,
    trans_b: bool,
    m: int,
    n: int,
    k: int,
    alpha: float,
    a: NDArray[np.float32],
    lda: int,
    b: NDArray[np.float32],
    ldb: int,
    beta: float,
    c: NDArray[np.float32],
    ldc: int,
) -> None:
    """
    General matrix multiply over flat column-major buffers, writing into ``c``.

    Computes ``C = alpha * op(A) @ op(B) + beta * C`` where ``op(A)`` is
    ``m x k``, ``op(B)`` is ``k x n`` and ``C`` is ``m x n``. When ``beta`` is
    zero the prior contents of ``C`` are ignored.

    Args:
        trans_a: Whether A is stored as ``k x m`` and used transposed
        trans_b: Whether B is stored as ``n x k`` and used transposed
        m, n, k: Matrix dimensions
        alpha: Scale applied to the product
        a, b: Flat input buffers
        lda, ldb: Leading dimensions of the stored A and B
        beta: Scale applied to the existing C
        c: Flat output buffer
        ldc: Leading dimension of C
    """
    if m == 0 or n == 0:
        return

    if trans_a:
        op_a = _column_major_view(a, k, m, lda).T
    else:
        op_a = _column_major_view(a, m, k, lda)

    if trans_b:
        op_b = _column_major_view(b, n, k, ldb).T
    else:
        op_b = _column_major_view(b, k, n, ldb)

    out = _column_major_view(c, m, n, ldc)
    product = np.matmul(op_a, op_b)
    if alpha != 1.0:
        product *= np.float32(alpha)

    if beta == 0.0:
        out[...] = product
    else:
        out *= np.float32(beta)
        out += product


def memory_compare(a: NDArray[Any], b: NDArray[Any], byte_count: int) -> int:
    """
    Compare the first ``byte_count`` bytes of two contiguous buffers.

    Returns:
        0 if the bytes are identical, otherwise the signed difference of the
        first differing byte pair (as ``memcmp`` does).
    """
    left = np.ascontiguousarray(a).view(np.uint8)
    right = np.ascontiguousarray(b).view(np.uint8)
    if left.size < byte_count or right.size < byte_count:
        raise ValueError(f"Cannot compare {byte_count} bytes of shorter buffers")

    left = left[:byte_count]
    right = right[:byte_count]
    differing = np.flatnonzero(left != right)
    if differing.size == 0:
        return 0

    first = differing[0]
    return int(left[first]) - int(right[first])
