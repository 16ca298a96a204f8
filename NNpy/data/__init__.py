"""
NNpy.data
"""

from .dataset import Datapoint, Dataset

__all__ = [
    "Datapoint",
    "Dataset",
]
