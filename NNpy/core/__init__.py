"""
Core functionality for NNpy.

This module contains the tensor engine, scalar functions and the caches that
carry values between a layer's forward and backward passes.
"""

from .context import DenseForwardCache, DenseUpdateBundle, ForwardCache, UpdateBundle
from .errors import ArityMismatchError, MissingEntryError, ShapeMismatchError
from .function import Function
from .kernel import KernelConfig, initialize_kernel, kernel_thread_count
from .tensor import Tensor, matrix_multiply

__all__ = [
    "Tensor",
    "matrix_multiply",
    "Function",
    "ForwardCache",
    "UpdateBundle",
    "DenseForwardCache",
    "DenseUpdateBundle",
    "ShapeMismatchError",
    "ArityMismatchError",
    "MissingEntryError",
    "KernelConfig",
    "initialize_kernel",
    "kernel_thread_count",
]
