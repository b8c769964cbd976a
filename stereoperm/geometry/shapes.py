'''
Catalog of idealized shapes which sites can adopt around a central atom,
alongside their rotational symmetries, chirality-defining tetrahedra and
the index mappings which carry one shape into another upon gaining or losing a vertex
'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

import warnings
from dataclasses import dataclass
from functools import cached_property, lru_cache
from itertools import permutations
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

from .arraytypes import ArrayNx3, as_coordinate_array
from .measure import normalized, adjusted_signed_volume


VertexIndex = int
Tetrahedron = tuple[Optional[VertexIndex], ...] # 4 vertex indices, where None designates the central atom
IndexMapping = tuple[VertexIndex, ...]

SYMMETRY_TOLERANCE : float = 1E-6
DISTORTION_TOLERANCE : float = 1E-6
TRANSITION_CACHE_SIZE : int = 256 # ample for every pairing of cataloged shapes and vacated vertices


@dataclass(frozen=True)
class ShapeTransitionGroup:
    '''
    The set of best vertex index mappings between two shapes differing in size by one,
    along with the (shared) distortions incurred by each of those mappings

    For additions, mapping[i] is the vertex of the larger shape which vertex i of the smaller shape moves to,
    with the final entry giving the vertex of the larger shape which the new site occupies
    For removals, mapping[i] is the vertex of the larger shape whose occupant moves to vertex i of the smaller shape
    '''
    index_mappings : tuple[IndexMapping, ...]
    angular_distortion : float
    chiral_distortion : float


class Shape:
    '''
    An idealized polyhedron-like arrangement of vertices around a central atom at the origin

    Each vertex is a unit vector; the center is referred to as None wherever vertices are expected
    '''
    def __init__(
            self,
            name : str,
            coordinates : Sequence[Sequence[float]],
            tetrahedra : Iterable[Tetrahedron]=tuple(),
        ) -> None:
        self.name = name
        self._coordinates = normalized(as_coordinate_array(coordinates))
        self._coordinates.setflags(write=False)
        self.tetrahedra : tuple[Tetrahedron, ...] = tuple(self._oriented(tetrahedron) for tetrahedron in tetrahedra)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.name!r})'

    def __str__(self) -> str:
        return self.name

    def __eq__(self, other : object) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    @property
    def size(self) -> int:
        '''Number of vertices (i.e. sites) of the shape'''
        return self._coordinates.shape[0]

    @property
    def coordinates(self) -> ArrayNx3:
        return self._coordinates

    def position(self, vertex : Optional[VertexIndex]) -> np.ndarray:
        '''Coordinates of a vertex, with None referring to the central atom at the origin'''
        if vertex is None:
            return np.zeros(3, dtype=float)
        return self._coordinates[vertex]

    # angles
    @cached_property
    def angle_matrix(self) -> np.ndarray:
        '''Symmetric matrix of angles (in radians) between all pairs of vertices'''
        angles = np.arccos(np.clip(self._coordinates @ self._coordinates.T, -1.0, 1.0))
        np.fill_diagonal(angles, 0.0)
        angles.setflags(write=False)

        return angles

    def angle(self, vertex_1 : VertexIndex, vertex_2 : VertexIndex) -> float:
        '''Angle (in radians) subtended at the center by two vertices'''
        return float(self.angle_matrix[vertex_1, vertex_2])

    # chirality
    def signed_volume(self, tetrahedron : Tetrahedron) -> float:
        '''Adjusted (6x) signed volume of a tetrahedron of vertices of this shape'''
        return adjusted_signed_volume(*(self.position(vertex) for vertex in tetrahedron))

    def _oriented(self, tetrahedron : Tetrahedron) -> Tetrahedron:
        '''Reorder a tetrahedron so that its signed volume is positive'''
        if len(tetrahedron) != 4:
            raise ValueError(f'Tetrahedra must comprise exactly 4 vertices, not {len(tetrahedron)}')

        volume = self.signed_volume(tetrahedron)
        if np.isclose(volume, 0.0, atol=SYMMETRY_TOLERANCE):
            raise ValueError(f'Tetrahedron {tetrahedron} of shape "{self.name}" is degenerate (coplanar)')
        if volume < 0.0:
            first, second, *rest = tetrahedron
            return (second, first, *rest)
        return tuple(tetrahedron)

    # symmetry
    @cached_property
    def rotations(self) -> tuple[IndexMapping, ...]:
        '''
        All vertex permutations which are realizable by a proper rotation of the shape,
        where permutation[i] is the vertex which vertex i is carried onto (includes the identity)
        '''
        gram = self._coordinates @ self._coordinates.T
        rotations = []
        for permutation in permutations(range(self.size)):
            indices = list(permutation)
            if not np.allclose(gram[np.ix_(indices, indices)], gram, atol=SYMMETRY_TOLERANCE):
                continue # not even an isometry, no need to look any further

            with warnings.catch_warnings(): # NOTE: alignments of linear and planar point sets are (harmlessly) not unique
                warnings.simplefilter('ignore', category=UserWarning)
                _, rssd = Rotation.align_vectors(self._coordinates[indices], self._coordinates)
            if rssd < SYMMETRY_TOLERANCE: # excludes reflections, which can't be undone by a proper rotation
                rotations.append(permutation)

        return tuple(rotations)

    # transitions between shapes
    def transitions_to(self, other : 'Shape', removed_vertex : Optional[VertexIndex]=None) -> ShapeTransitionGroup:
        '''
        Best index mappings from this shape onto a shape with one more or one fewer vertex
        When shrinking, the vertex being vacated must be given
        '''
        return _transition_group(self, other, removed_vertex)


def _mapped(tetrahedron : Tetrahedron, mapping : IndexMapping) -> Tetrahedron:
    return tuple(None if vertex is None else mapping[vertex] for vertex in tetrahedron)

def _addition_candidates(source : Shape, target : Shape) -> Iterable[tuple[IndexMapping, float, float]]:
    upper = np.triu_indices(source.size, k=1)
    for mapping in permutations(range(target.size)):
        images = list(mapping[:source.size])
        angular = np.abs(source.angle_matrix - target.angle_matrix[np.ix_(images, images)])[upper].sum()
        chiral = sum(
            abs(source.signed_volume(tetrahedron) - target.signed_volume(_mapped(tetrahedron, mapping)))
                for tetrahedron in source.tetrahedra
        )
        canonical = min(
            tuple(rotation[vertex] for vertex in mapping)
                for rotation in target.rotations
        )
        yield canonical, float(angular), float(chiral)

def _removal_candidates(source : Shape, target : Shape, removed_vertex : VertexIndex) -> Iterable[tuple[IndexMapping, float, float]]:
    upper = np.triu_indices(target.size, k=1)
    remaining = [vertex for vertex in range(source.size) if vertex != removed_vertex]
    for mapping in permutations(remaining):
        origins = list(mapping)
        angular = np.abs(target.angle_matrix - source.angle_matrix[np.ix_(origins, origins)])[upper].sum()
        chiral = sum(
            abs(target.signed_volume(tetrahedron) - source.signed_volume(_mapped(tetrahedron, mapping)))
                for tetrahedron in target.tetrahedra
        )
        canonical = min(
            tuple(mapping[rotation[vertex]] for vertex in range(target.size))
                for rotation in target.rotations
        )
        yield canonical, float(angular), float(chiral)

@lru_cache(maxsize=TRANSITION_CACHE_SIZE)
def _transition_group(source : Shape, target : Shape, removed_vertex : Optional[VertexIndex]) -> ShapeTransitionGroup:
    '''Determine (and cache) the minimally-distorting index mappings between a pair of shapes'''
    if target.size == source.size + 1:
        candidates = list(_addition_candidates(source, target))
    elif target.size == source.size - 1:
        if removed_vertex is None or not (0 <= removed_vertex < source.size):
            raise ValueError(f'Shrinking shape "{source.name}" requires a valid vertex to remove, not {removed_vertex}')
        candidates = list(_removal_candidates(source, target, removed_vertex))
    else:
        raise ValueError(f'Cannot transition between shapes "{source.name}" (size {source.size}) and "{target.name}" (size {target.size})')

    min_angular = min(angular for _, angular, _ in candidates)
    candidates = [candidate for candidate in candidates if candidate[1] <= min_angular + DISTORTION_TOLERANCE]
    min_chiral = min(chiral for _, _, chiral in candidates)
    best_mappings = sorted(set(
        mapping
            for mapping, _, chiral in candidates
                if chiral <= min_chiral + DISTORTION_TOLERANCE
    ))
    LOGGER.debug(
        f'Found {len(best_mappings)} best mapping(s) from "{source.name}" to "{target.name}" '\
        f'(angular distortion {min_angular:.4f}, chiral distortion {min_chiral:.4f})'
    )

    return ShapeTransitionGroup(
        index_mappings=tuple(best_mappings),
        angular_distortion=min_angular,
        chiral_distortion=min_chiral,
    )


# coordinate generators
def _ring(num_points : int, z : float=0.0, radius : float=1.0, offset : float=0.0) -> list[tuple[float, float, float]]:
    '''Points evenly spaced around a circle parallel to the xy-plane'''
    return [
        (radius*np.cos(offset + 2*np.pi*i/num_points), radius*np.sin(offset + 2*np.pi*i/num_points), z)
            for i in range(num_points)
    ]

_TETRAHEDRAL_BASE = _ring(3, z=-1/3, radius=np.sqrt(8/9))
BENT_ANGLE : float = np.radians(107.0)

LINEAR = Shape('linear', [(1, 0, 0), (-1, 0, 0)])
BENT = Shape('bent', [(1, 0, 0), (np.cos(BENT_ANGLE), np.sin(BENT_ANGLE), 0)])
TRIGONAL_PLANAR = Shape('trigonal planar', _ring(3))
TRIGONAL_PYRAMIDAL = Shape('trigonal pyramidal', _TETRAHEDRAL_BASE, tetrahedra=[(0, 1, 2, None)])
T_SHAPED = Shape('T-shaped', [(1, 0, 0), (0, 1, 0), (-1, 0, 0)])
TETRAHEDRAL = Shape('tetrahedral', [(0, 0, 1), *_TETRAHEDRAL_BASE], tetrahedra=[(0, 1, 2, 3)])
SQUARE_PLANAR = Shape('square planar', _ring(4))
SEESAW = Shape(
    'seesaw',
    [(0, 0, 1), *_ring(3)[:2], (0, 0, -1)],
    tetrahedra=[(0, 1, 2, None), (1, 2, 3, None)],
)
TRIGONAL_BIPYRAMIDAL = Shape(
    'trigonal bipyramidal',
    [*_ring(3), (0, 0, 1), (0, 0, -1)], # equatorial vertices first, then axial
    tetrahedra=[(0, 1, 2, 3), (0, 1, 2, 4)],
)
SQUARE_PYRAMIDAL = Shape(
    'square pyramidal',
    [*_ring(4), (0, 0, 1)],
    tetrahedra=[(0, 1, 4, None), (1, 2, 4, None), (2, 3, 4, None), (3, 0, 4, None)],
)
OCTAHEDRAL = Shape(
    'octahedral',
    [*_ring(4), (0, 0, 1), (0, 0, -1)],
    tetrahedra=[
        (0, 1, 4, None), (1, 2, 4, None), (2, 3, 4, None), (3, 0, 4, None),
        (0, 1, 5, None), (1, 2, 5, None), (2, 3, 5, None), (3, 0, 5, None),
    ],
)
TRIGONAL_PRISMATIC = Shape(
    'trigonal prismatic',
    [*_ring(3, z=1.0), *_ring(3, z=-1.0)], # upper triangle first, then lower
    tetrahedra=[(0, 1, 2, None), (3, 4, 5, None), (0, 1, 5, None)],
)
PENTAGONAL_BIPYRAMIDAL = Shape(
    'pentagonal bipyramidal',
    [*_ring(5), (0, 0, 1), (0, 0, -1)],
    tetrahedra=[(0, 1, 5, None), (1, 2, 5, None), (2, 3, 5, None), (3, 4, 5, None), (4, 0, 5, None)],
)

SHAPES : dict[str, Shape] = {
    shape.name : shape
        for shape in (
            LINEAR,
            BENT,
            TRIGONAL_PLANAR,
            TRIGONAL_PYRAMIDAL,
            T_SHAPED,
            TETRAHEDRAL,
            SQUARE_PLANAR,
            SEESAW,
            TRIGONAL_BIPYRAMIDAL,
            SQUARE_PYRAMIDAL,
            OCTAHEDRAL,
            TRIGONAL_PRISMATIC,
            PENTAGONAL_BIPYRAMIDAL,
        )
}

def shape_by_name(name : str) -> Shape:
    try:
        return SHAPES[name]
    except KeyError:
        raise KeyError(f'No shape named "{name}" in catalog; choose from {list(SHAPES.keys())}')

def shapes_of_size(size : int) -> tuple[Shape, ...]:
    '''All cataloged shapes with the given number of vertices, in catalog order'''
    return tuple(shape for shape in SHAPES.values() if shape.size == size)

def up(shape : Shape) -> Shape:
    '''The shape with one more vertex which the given shape can be most faithfully embedded into'''
    candidates = shapes_of_size(shape.size + 1)
    if not candidates:
        raise ValueError(f'No cataloged shape is larger than "{shape.name}" by one vertex')

    def distortions(candidate : Shape) -> tuple[float, float]:
        group = shape.transitions_to(candidate)
        return round(group.angular_distortion, 6), round(group.chiral_distortion, 6)
    return min(candidates, key=distortions)

def down(shape : Shape, removed_vertex : VertexIndex) -> Shape:
    '''The shape with one fewer vertex which is most faithfully retained when vacating the given vertex'''
    candidates = shapes_of_size(shape.size - 1)
    if not candidates:
        raise ValueError(f'No cataloged shape is smaller than "{shape.name}" by one vertex')

    def distortions(candidate : Shape) -> tuple[float, float]:
        group = shape.transitions_to(candidate, removed_vertex=removed_vertex)
        return round(group.angular_distortion, 6), round(group.chiral_distortion, 6)
    return min(candidates, key=distortions)
