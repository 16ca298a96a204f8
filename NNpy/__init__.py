"""
NNpy: A Minimal Neural Network Training Engine

This library provides a strided float32 tensor with BLAS-backed matrix
multiplication, scalar functions with analytic or numerical derivatives,
dense layers with hand-written backpropagation and a full-batch gradient
descent trainer.
"""

from .core import Function, KernelConfig, Tensor, initialize_kernel
from .data import Datapoint, Dataset
from .nn import DenseLayer, Layer, NeuralNetwork
from .optim import GradientDescentOptimizer

__version__ = "0.1.0"

__all__ = [
    "Tensor",
    "Function",
    "KernelConfig",
    "initialize_kernel",
    "Datapoint",
    "Dataset",
    "Layer",
    "DenseLayer",
    "NeuralNetwork",
    "GradientDescentOptimizer",
]
