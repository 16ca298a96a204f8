"""
Neural network module for NNpy.

This module contains the layers, the network container and the standard
activation and cost functions.
"""

from .dense import DenseLayer
from .functions import (
    get_function,
    linear,
    register_function,
    relu,
    relu_value,
    sigmoid,
    squared_error,
    tanh,
)
from .layer import Layer
from .network import NeuralNetwork

__all__ = [
    "Layer",
    "DenseLayer",
    "NeuralNetwork",
    # Functions
    "linear",
    "tanh",
    "sigmoid",
    "relu",
    "relu_value",
    "squared_error",
    "get_function",
    "register_function",
]
