"""
Utils module for NNpy.
"""

from .utils import random_direction, random_tensor

__all__ = ["random_direction", "random_tensor"]
