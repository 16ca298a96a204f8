"""
Optimization algorithms for NNpy.

This module implements the training procedures for neural networks.
"""

from .gradient_descent import GradientDescentOptimizer
from .optimizer import NeuralNetworkOptimizer

__all__ = ["NeuralNetworkOptimizer", "GradientDescentOptimizer"]
