'''Unit tests for screening stereopermutations by whether they can be realized in space'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import pytest

import numpy as np

from stereoperm.chemistry.spatial import ValueBounds
from stereoperm.geometry.shapes import OCTAHEDRAL, SQUARE_PLANAR
from stereoperm.stereo.ranking import Link, RankingInformation
from stereoperm.stereo.canonicalize import CanonicalSites
from stereoperm.stereo.stereopermutation import enumerate_stereopermutations
from stereoperm.stereo.vertex_maps import site_to_vertex_map
from stereoperm.stereo.feasibility import bridge_is_feasible, feasible_stereopermutations


# five-membered chelate ring, e.g. ethylenediamine; center-to-donor bonds of 2.0, all others 1.5
CHELATE_EDGES = [2.0, 1.5, 1.5, 1.5, 2.0]
CHELATE_MINIMA = [2.0, 2.0, 2.0, 2.0]

def test_cis_chelate_feasible() -> None:
    '''Test that a two-carbon bridge comfortably spans adjacent octahedral vertices'''
    assert bridge_is_feasible(CHELATE_EDGES, np.pi/2, CHELATE_MINIMA)

def test_trans_chelate_infeasible() -> None:
    '''Test that a two-carbon bridge spanning opposite vertices would drag its carbons into the center'''
    assert not bridge_is_feasible(CHELATE_EDGES, np.pi, CHELATE_MINIMA)

def test_bridge_too_short() -> None:
    '''Test that a bridge shorter than the distance it must span cannot close a polygon'''
    assert not bridge_is_feasible([2.0, 0.5, 0.5, 0.5, 2.0], np.pi, CHELATE_MINIMA)

def test_degenerate_bite_angle() -> None:
    '''Test that a zero bite angle between equal bonds (closing edge of zero length) is refused rather than raising'''
    assert not bridge_is_feasible(CHELATE_EDGES, 0.0, CHELATE_MINIMA)

def test_long_bridges_span_trans() -> None:
    '''Test that a sufficiently long bridge can span opposite vertices'''
    num_bridge_atoms = 10
    edges = [2.0, *[1.5]*(num_bridge_atoms - 1), 2.0]
    assert bridge_is_feasible(edges, np.pi, [2.0]*num_bridge_atoms)


@pytest.fixture
def chelate_ranking() -> RankingInformation:
    '''Octahedral center (atom 0) bearing four monodentate ligands and one ethylenediamine (atoms 5-8)'''
    return RankingInformation(
        sites=[[1], [2], [3], [4], [5], [8]],
        site_ranking=[[0, 1, 2, 3], [4, 5]],
        links=[Link((4, 5), cycle=(0, 5, 6, 7, 8, 0))],
    )

def test_trans_chelate_screened_out(chelate_ranking : RankingInformation, spatial_model) -> None:
    '''Test that of the cis and trans placements of a chelate, only the cis one survives screening'''
    canonical = CanonicalSites.from_ranking(chelate_ranking)
    stereopermutations = enumerate_stereopermutations(OCTAHEDRAL, canonical.characters, canonical.links)
    site_geometries = [spatial_model.site_geometry(0, site) for site in chelate_ranking.sites]
    feasible = feasible_stereopermutations(stereopermutations, canonical, chelate_ranking, site_geometries, OCTAHEDRAL, spatial_model)

    assert len(stereopermutations) == 2
    assert len(feasible) == 1

    site_to_vertex = site_to_vertex_map(stereopermutations[feasible[0]], canonical)
    assert np.isclose(OCTAHEDRAL.angle(site_to_vertex[4], site_to_vertex[5]), np.pi/2)
    assert feasible.index_of_permutation(feasible[0]) == 0
    assert feasible.index_of_permutation(1 - feasible[0]) is None

def test_screening_skipped_without_haptics_or_links(spatial_model) -> None:
    '''Test that all stereopermutations are deemed feasible when there is nothing to screen for'''
    ranking = RankingInformation(sites=[[1], [2], [3], [4]], site_ranking=[[0, 1], [2], [3]])
    canonical = CanonicalSites.from_ranking(ranking)
    stereopermutations = enumerate_stereopermutations(SQUARE_PLANAR, canonical.characters)
    site_geometries = [spatial_model.site_geometry(0, site) for site in ranking.sites]
    feasible = feasible_stereopermutations(stereopermutations, canonical, ranking, site_geometries, SQUARE_PLANAR, spatial_model)

    assert tuple(feasible) == (0, 1)

def test_cone_collisions_monotonic(spatial_model_type) -> None:
    '''Test that widening the cones of haptic sites can only ever remove stereopermutations from the feasible set'''
    ranking = RankingInformation(
        sites=[[1, 2], [3, 4], [5], [6], [7], [8]], # two eta-2 sites
        site_ranking=[[0, 1], [2, 3, 4, 5]],
    )
    canonical = CanonicalSites.from_ranking(ranking)
    stereopermutations = enumerate_stereopermutations(OCTAHEDRAL, canonical.characters)

    feasible_sets = []
    for cone_angle in (0.3, 1.0, 1.7):
        spatial_model = spatial_model_type(haptic_cone_angle=ValueBounds(cone_angle, cone_angle + 0.05))
        site_geometries = [spatial_model.site_geometry(0, site) for site in ranking.sites]
        feasible = feasible_stereopermutations(stereopermutations, canonical, ranking, site_geometries, OCTAHEDRAL, spatial_model)
        feasible_sets.append(set(feasible))

    assert [len(feasible_set) for feasible_set in feasible_sets] == [2, 1, 0] # cis and trans, then trans only, then neither
    assert feasible_sets[0] >= feasible_sets[1] >= feasible_sets[2]
