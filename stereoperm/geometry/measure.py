'''For determining the sizes (measures) of geometric objects: lengths, angles and (signed) volumes'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import Any, Optional, Union
import numpy as np

from .arraytypes import Shape, N, Numeric, Vector3, Array4x4


# lengths and directions
def normalize(
        vector : np.ndarray[Shape[Any], Numeric],
        order  : Optional[Union[int, float, str]]=None,
    ) -> None:
    '''Normalize a vector or array of vectors in-place'''
    norms = np.atleast_1d( # ensure shape is broadcastable, even for scalars
        np.linalg.norm(vector, ord=order, axis=-1, keepdims=True)
    )
    vector /= norms # N.B.: deliberately let numpy complain about division by zero

def normalized(
        vector : np.ndarray[Shape[N, ...], Numeric],
        order  : Optional[Union[int, float, str]]=None,
    ) -> np.ndarray[Shape[N, ...], Numeric]:
    '''Return a normalized copy of a vector or array of vectors;
    The array supplied to "vector" is unchanged'''
    new_vector = np.array(vector, dtype=float) # copy, promoting integer inputs
    normalize(new_vector, order=order)

    return new_vector

def vector_angle(vector_1 : Vector3, vector_2 : Vector3) -> float:
    '''Angle (in radians) between two nonzero vectors'''
    cosine = np.dot(vector_1, vector_2) / (np.linalg.norm(vector_1) * np.linalg.norm(vector_2))
    return float(np.arccos(np.clip(cosine, -1.0, 1.0)))


# triangles
def law_of_cosines(side_a : float, side_b : float, angle : float) -> float:
    '''Length of the side of a triangle opposite to the angle enclosed by sides a and b'''
    return float(np.sqrt(max(side_a**2 + side_b**2 - 2*side_a*side_b*np.cos(angle), 0.0)))

def inverse_law_of_cosines(opposite : float, adjacent_1 : float, adjacent_2 : float) -> float:
    '''
    Angle (in radians) enclosed by two sides of a triangle, given the side opposite to it

    Cosines falling outside of [-1, 1] due to floating-point error are clipped
    '''
    cosine = (adjacent_1**2 + adjacent_2**2 - opposite**2) / (2 * adjacent_1 * adjacent_2)
    return float(np.arccos(np.clip(cosine, -1.0, 1.0)))


# volumes
def adjusted_signed_volume(
        point_1 : Vector3,
        point_2 : Vector3,
        point_3 : Vector3,
        point_4 : Vector3,
    ) -> float:
    '''
    Six times the signed volume of the tetrahedron spanned by four points,
    taken as (p1 - p4) . ((p2 - p4) x (p3 - p4))

    Sign encodes the handedness of the points, which is all that's needed to distinguish enantiomers
    '''
    return float(np.dot(point_1 - point_4, np.cross(point_2 - point_4, point_3 - point_4)))

def cayley_menger_determinant(squared_distances : Array4x4) -> float:
    '''
    Determinant of the bordered (5x5) Cayley-Menger matrix of a tetrahedron,
    given the 4x4 matrix of squared distances between its vertices
    '''
    squared_distances = np.asarray(squared_distances, dtype=float)
    if squared_distances.shape != (4, 4):
        raise ValueError(f'Expected 4x4 matrix of squared distances, received array of shape {squared_distances.shape}')

    bordered = np.ones((5, 5), dtype=float)
    bordered[0, 0] = 0.0
    bordered[1:, 1:] = squared_distances
    np.fill_diagonal(bordered, 0.0)

    return float(np.linalg.det(bordered))

def adjusted_volume_from_squared_distances(squared_distances : Array4x4) -> float:
    '''
    Six times the (unsigned) volume of a tetrahedron, given squared distances between its vertices

    Since 288 V^2 is the Cayley-Menger determinant, 6V = sqrt(det / 8);
    negative determinants (distance sets which can't be realized in 3D) are clamped to zero volume
    '''
    return float(np.sqrt(max(cayley_menger_determinant(squared_distances), 0.0) / 8))
