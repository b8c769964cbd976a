'''Unit tests for the catalog of idealized shapes and the transitions between them'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import pytest

import numpy as np

from stereoperm.geometry.shapes import (
    Shape,
    SHAPES,
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
    TRANSITION_CACHE_SIZE,
    _transition_group,
    shape_by_name,
    shapes_of_size,
    up,
    down,
)


@pytest.mark.parametrize(
    'shape,expected_num_rotations',
    [
        (LINEAR, 2),
        (BENT, 2),
        (TRIGONAL_PLANAR, 6),
        (TRIGONAL_PYRAMIDAL, 3),
        (T_SHAPED, 2),
        (TETRAHEDRAL, 12),
        (SQUARE_PLANAR, 8),
        (SEESAW, 2),
        (TRIGONAL_BIPYRAMIDAL, 6),
        (SQUARE_PYRAMIDAL, 4),
        (OCTAHEDRAL, 24),
        (TRIGONAL_PRISMATIC, 6),
        (PENTAGONAL_BIPYRAMIDAL, 10),
    ]
)
def test_rotation_group_order(shape : Shape, expected_num_rotations : int) -> None:
    '''Test that the number of proper rotations matches the point group of each shape'''
    assert len(shape.rotations) == expected_num_rotations

@pytest.mark.parametrize('shape', SHAPES.values())
def test_rotations_form_group(shape : Shape) -> None:
    '''Test that rotations contain the identity and are closed under composition'''
    rotations = set(shape.rotations)
    assert tuple(range(shape.size)) in rotations
    for rotation_1 in rotations:
        for rotation_2 in rotations:
            assert tuple(rotation_2[rotation_1[i]] for i in range(shape.size)) in rotations

@pytest.mark.parametrize('shape', SHAPES.values())
def test_rotations_preserve_angles(shape : Shape) -> None:
    '''Test that every rotation is an isometry of the shape's vertices'''
    for rotation in shape.rotations:
        assert np.allclose(shape.angle_matrix[np.ix_(rotation, rotation)], shape.angle_matrix)

@pytest.mark.parametrize('shape', SHAPES.values())
def test_tetrahedra_positive(shape : Shape) -> None:
    '''Test that all chirality-defining tetrahedra are oriented to positive volume'''
    for tetrahedron in shape.tetrahedra:
        assert shape.signed_volume(tetrahedron) > 0.0

@pytest.mark.parametrize(
    'shape,vertex_1,vertex_2,expected_angle',
    [
        (LINEAR, 0, 1, np.pi),
        (OCTAHEDRAL, 0, 1, np.pi/2),
        (OCTAHEDRAL, 0, 2, np.pi),
        (OCTAHEDRAL, 4, 5, np.pi),
        (SQUARE_PLANAR, 1, 3, np.pi),
        (TETRAHEDRAL, 0, 3, np.arccos(-1/3)),
        (TRIGONAL_BIPYRAMIDAL, 0, 1, 2*np.pi/3),
        (TRIGONAL_BIPYRAMIDAL, 0, 3, np.pi/2),
        (BENT, 0, 1, np.radians(107.0)),
    ]
)
def test_angles(shape : Shape, vertex_1 : int, vertex_2 : int, expected_angle : float) -> None:
    '''Test idealized angles between vertices, and their symmetry'''
    assert np.isclose(shape.angle(vertex_1, vertex_2), expected_angle)
    assert np.isclose(shape.angle(vertex_2, vertex_1), expected_angle)
    assert shape.angle(vertex_1, vertex_1) == 0.0

def test_catalog_lookup() -> None:
    '''Test retrieval of shapes by name and by size'''
    assert shape_by_name('octahedral') is OCTAHEDRAL
    assert set(shapes_of_size(6)) == {OCTAHEDRAL, TRIGONAL_PRISMATIC}
    with pytest.raises(KeyError):
        _ = shape_by_name('icosahedral')

def test_square_pyramid_embeds_into_octahedron() -> None:
    '''Test that a square pyramid gains a vertex to become an octahedron with a single, undistorted mapping'''
    transition = SQUARE_PYRAMIDAL.transitions_to(OCTAHEDRAL)
    assert len(transition.index_mappings) == 1
    assert np.isclose(transition.angular_distortion, 0.0, atol=1E-8)
    assert np.isclose(transition.chiral_distortion, 0.0, atol=1E-8)

    mapping = transition.index_mappings[0]
    assert sorted(mapping) == list(range(OCTAHEDRAL.size))
    assert np.isclose(OCTAHEDRAL.angle(mapping[4], mapping[5]), np.pi) # new site lands opposite the apex

@pytest.mark.parametrize('removed_vertex', range(6))
def test_octahedron_shrinks_to_square_pyramid(removed_vertex : int) -> None:
    '''Test that vacating any vertex of an octahedron leaves a square pyramid, reached by a single mapping'''
    transition = OCTAHEDRAL.transitions_to(SQUARE_PYRAMIDAL, removed_vertex=removed_vertex)
    assert len(transition.index_mappings) == 1
    assert np.isclose(transition.angular_distortion, 0.0, atol=1E-8)
    assert removed_vertex not in transition.index_mappings[0]
    assert down(OCTAHEDRAL, removed_vertex) == SQUARE_PYRAMIDAL

def test_up() -> None:
    '''Test choice of the most faithful larger shape'''
    assert up(SQUARE_PYRAMIDAL) == OCTAHEDRAL
    assert up(TRIGONAL_PYRAMIDAL) == TETRAHEDRAL
    assert up(SQUARE_PLANAR) == SQUARE_PYRAMIDAL

def test_down_tetrahedral() -> None:
    '''Test that a tetrahedron losing any vertex becomes a trigonal pyramid'''
    for removed_vertex in range(TETRAHEDRAL.size):
        assert down(TETRAHEDRAL, removed_vertex) == TRIGONAL_PYRAMIDAL

def test_invalid_transitions() -> None:
    '''Test that transitions which don't change size by exactly one, or which omit the vacated vertex, are refused'''
    with pytest.raises(ValueError):
        _ = TETRAHEDRAL.transitions_to(OCTAHEDRAL)
    with pytest.raises(ValueError):
        _ = OCTAHEDRAL.transitions_to(SQUARE_PYRAMIDAL)
    with pytest.raises(ValueError):
        _ = up(PENTAGONAL_BIPYRAMIDAL)

def test_transitions_cached() -> None:
    '''Test that transitions are computed once per pairing of shapes, in a cache of bounded size'''
    assert TETRAHEDRAL.transitions_to(TRIGONAL_BIPYRAMIDAL) is TETRAHEDRAL.transitions_to(TRIGONAL_BIPYRAMIDAL)
    assert _transition_group.cache_info().maxsize == TRANSITION_CACHE_SIZE
