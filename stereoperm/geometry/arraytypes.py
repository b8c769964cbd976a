'''Typehints for numpy arrays of coordinates and pairwise quantities'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import Literal, TypeVar

import numpy as np
from numbers import Number


Numeric = TypeVar('Numeric', bound=Number) # typehint a number-like generic type

Shape = tuple # the shape field of a numpy array; NOT to be confused with the idealized coordination shapes in geometry.shapes
N = TypeVar('N', bound=int) # typehint the size of a given dimension
M = TypeVar('M', bound=int) # typehint the size of a given dimension

## DEV: this type of hard-coding is the best we can do with the current Python type system
Vector3  = np.ndarray[Shape[Literal[3]], Numeric]
ArrayNx3 = np.ndarray[Shape[N, Literal[3]], Numeric]
Array4x4 = np.ndarray[Shape[Literal[4], Literal[4]], Numeric]


def as_coordinate_array(coordinates, dims : int=3) -> np.ndarray[Shape[N, ...], float]:
    '''Interpret a sequence of points as a 2D float array with one row per point'''
    array = np.asarray(coordinates, dtype=float)
    if array.ndim != 2 or array.shape[-1] != dims:
        raise ValueError(f'Expected an Nx{dims} array of coordinates, received array of shape {array.shape} instead')

    return array
