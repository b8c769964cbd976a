'''
Geometry of cyclic polygons, i.e. planar polygons whose vertices all lie on a common circle

For a given set of edge lengths in a given sequence, the cyclic polygon is the unique convex polygon
of maximal area, which makes it a reasonable model for the (planar) ring closed by a bridging ligand
'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Callable, Sequence

import numpy as np
from scipy.optimize import root_scalar

from .measure import inverse_law_of_cosines
from ..sutils.iteration import cyclic_pairs


MAX_ITERATIONS : int = 1000
RADIUS_EPSILON : float = 1E-10 # guarantees half the longest edge is a strict lower bound on the circumradius


class CircumradiusConvergenceError(ArithmeticError):
    '''Raised when the numerical search for the circumradius of a cyclic polygon fails to terminate'''
    pass


def _validated_edges(edges : Sequence[float]) -> np.ndarray:
    '''Check that a sequence of edge lengths can meaningfully describe a polygon'''
    edges = np.asarray(edges, dtype=float)
    if edges.ndim != 1 or edges.size < 3:
        raise ValueError(f'A polygon requires at least 3 edges, received {edges.size}')
    if np.any(edges <= 0.0):
        raise ValueError(f'Polygon edge lengths must be strictly positive, received {edges.tolist()}')

    return edges

def exists(edges : Sequence[float]) -> bool:
    '''Whether a polygon can be closed from the given edges, i.e. whether the longest edge is shorter than all others combined'''
    edges = _validated_edges(edges)
    longest = edges.max()

    return bool(longest < edges.sum() - longest)


# circumradius determination
def regular_circumradius(num_edges : int, edge_length : float) -> float:
    '''Circumradius of a regular polygon with the given number of edges all of the given length'''
    return 0.5 * edge_length / np.sin(np.pi / num_edges)

def _central_angle_deviation(edges : np.ndarray) -> Callable[[float], float]:
    '''Deviation from a full turn of the central angles subtended by all edges, as a function of the circumradius'''
    def deviation(radius : float) -> float:
        return 2*np.arcsin(np.clip(edges / (2*radius), -1.0, 1.0)).sum() - 2*np.pi
    return deviation

def _noncentral_angle_deviation(edges : np.ndarray) -> Callable[[float], float]:
    '''
    Deviation of the central angle subtended by the longest edge from that subtended by all other edges
    Zero when the circumcenter lies outside of the polygon, beyond its longest edge
    '''
    i_longest = int(edges.argmax())
    longest, others = edges[i_longest], np.delete(edges, i_longest)
    def deviation(radius : float) -> float:
        return np.arcsin(min(longest / (2*radius), 1.0)) - np.arcsin(np.clip(others / (2*radius), -1.0, 1.0)).sum()
    return deviation

def _bracketed_root(function : Callable[[float], float], lower : float, upper : float) -> float:
    '''Locate the root of a function known to change sign over an interval'''
    solution = root_scalar(function, bracket=(lower, upper), method='brentq', maxiter=MAX_ITERATIONS)
    if not solution.converged:
        raise CircumradiusConvergenceError(
            f'Circumradius search failed to converge within {MAX_ITERATIONS} iterations ({solution.flag})'
        )
    return float(solution.root)

def circumcenter_inside(edges : Sequence[float]) -> bool:
    '''Whether the center of the circumscribed circle lies within the polygon (or on its longest edge)'''
    edges = _validated_edges(edges)
    half_longest = edges.max() / 2 + RADIUS_EPSILON

    return bool(_central_angle_deviation(edges)(half_longest) >= 0.0)

def circumradius(edges : Sequence[float]) -> float:
    '''
    Radius of the circle circumscribing the cyclic polygon with the given edge lengths

    Found by a bounded root search, since no closed-form solution exists beyond quadrilaterals
    Raises CircumradiusConvergenceError if the search fails to terminate, which signals an internal fault
    '''
    edges = _validated_edges(edges)
    if not exists(edges):
        raise ValueError(f'No polygon can be closed from edges {edges.tolist()}')

    num_edges = edges.size
    min_radius = edges.max() / 2 + RADIUS_EPSILON
    if circumcenter_inside(edges):
        deviation = _central_angle_deviation(edges)
        lower = max(regular_circumradius(num_edges, edges.min()), min_radius)
        upper = max(regular_circumradius(num_edges, edges.max()), min_radius)
        if np.isclose(lower, upper):
            return float(upper) # (near-)regular polygon

        # N.B.: guards against rounding pushing either bound marginally past the root
        if deviation(lower) <= 0.0:
            return float(lower)
        if deviation(upper) >= 0.0:
            return float(upper)
        return _bracketed_root(deviation, lower, upper)

    deviation = _noncentral_angle_deviation(edges)
    upper = 2 * min_radius
    for _ in range(MAX_ITERATIONS):
        if deviation(upper) < 0.0:
            break
        upper *= 2
    else:
        raise CircumradiusConvergenceError(f'Could not bracket circumradius for polygon with edges {edges.tolist()}')
    LOGGER.debug(f'Circumcenter of polygon with edges {edges.tolist()} lies outside polygon')

    return _bracketed_root(deviation, min_radius, upper)


# internal angles
def _triangle_angles(edges : np.ndarray) -> np.ndarray:
    a, b, c = edges
    return np.array([
        inverse_law_of_cosines(c, a, b), # between edges 0 and 1
        inverse_law_of_cosines(a, b, c), # between edges 1 and 2
        inverse_law_of_cosines(b, a, c), # between edges 2 and 0
    ])

def _quadrilateral_angles(edges : np.ndarray) -> np.ndarray:
    angles = []
    for i in range(4):
        a, b = edges[i], edges[(i + 1) % 4]       # edges adjacent to the vertex
        c, d = edges[(i + 2) % 4], edges[(i + 3) % 4] # edges opposite to the vertex
        cosine = (a**2 + b**2 - c**2 - d**2) / (2 * (a*b + c*d))
        angles.append(np.arccos(np.clip(cosine, -1.0, 1.0)))

    return np.array(angles)

def _general_angles(edges : np.ndarray) -> np.ndarray:
    radius = circumradius(edges)
    i_longest = int(edges.argmax())
    noncentral = not circumcenter_inside(edges)

    angles = []
    for i, (a, b) in enumerate(cyclic_pairs(edges)):
        base_angle_a = np.arccos(np.clip(a / (2*radius), -1.0, 1.0))
        base_angle_b = np.arccos(np.clip(b / (2*radius), -1.0, 1.0))
        if noncentral and i == i_longest: # vertex between the longest edge and the one after it
            angles.append(base_angle_b - base_angle_a)
        elif noncentral and (i + 1) % edges.size == i_longest: # vertex between the longest edge and the one before it
            angles.append(base_angle_a - base_angle_b)
        else:
            angles.append(base_angle_a + base_angle_b)

    return np.array(angles)

def internal_angles(edges : Sequence[float]) -> np.ndarray[float]:
    '''
    Internal angles (in radians) of the cyclic polygon with the given edge lengths;
    the k-th angle is the one enclosed between edge k and edge k+1 (wrapping around)
    '''
    edges = _validated_edges(edges)
    if not exists(edges):
        raise ValueError(f'No polygon can be closed from edges {edges.tolist()}')

    if edges.size == 3:
        return _triangle_angles(edges)
    elif edges.size == 4:
        return _quadrilateral_angles(edges)
    return _general_angles(edges)
