'''
Screening of stereopermutations for arrangements which could actually be realized in space,
namely those whose haptic sites don't overlap and whose bridges can span the angles they're placed across
'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Iterator, Optional, Sequence

from dataclasses import dataclass
from functools import cached_property

from .canonicalize import CanonicalSites
from .ranking import Link, RankingInformation
from .stereopermutation import Stereopermutation, Stereopermutations
from .vertex_maps import SiteToVertexMap, site_to_vertex_map
from ..chemistry.spatial import SiteGeometry, SpatialModel
from ..geometry.shapes import Shape
from ..geometry.measure import law_of_cosines, inverse_law_of_cosines
from ..geometry import cyclic_polygons
from ..sutils.iteration import sliding_window, unordered_pairs


MIN_CYCLE_SEQUENCE_LENGTH : int = 5 # (center, a1, a2, a3, center); 3-membered rings are always deemed feasible


@dataclass(frozen=True)
class FeasibleStereopermutations:
    '''Subset of stereopermutations which passed feasibility screening, indexed by their position in the full list'''
    indices : tuple[int, ...]

    def __len__(self) -> int:
        return len(self.indices)

    def __getitem__(self, assignment : int) -> int:
        return self.indices[assignment]

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices)

    @cached_property
    def _assignments_by_index(self) -> dict[int, int]:
        return {permutation_idx : assignment for assignment, permutation_idx in enumerate(self.indices)}

    def index_of_permutation(self, permutation_idx : int) -> Optional[int]:
        '''Assignment (i.e. position among feasible stereopermutations) of a stereopermutation, or None if it is infeasible'''
        return self._assignments_by_index.get(permutation_idx)


def cones_collide(
        site_to_vertex : SiteToVertexMap,
        site_geometries : Sequence[SiteGeometry],
        shape : Shape,
    ) -> bool:
    '''Whether any two sites sweep out cones which overlap, even at their narrowest'''
    for site_1, site_2 in unordered_pairs(range(len(site_geometries))):
        cone_1, cone_2 = site_geometries[site_1].cone_angle, site_geometries[site_2].cone_angle
        if (cone_1 is None) or (cone_2 is None):
            continue

        angle = shape.angle(site_to_vertex[site_1], site_to_vertex[site_2])
        if angle - cone_1.lower - cone_2.lower < 0.0:
            return True
    return False

def bridge_is_feasible(
        cycle_edge_lengths : Sequence[float],
        bite_angle : float,
        minimum_center_distances : Sequence[float],
    ) -> bool:
    '''
    Whether a bridge of atoms can close a ring around the central atom while spanning a given angle

    The two bonds to the center (first and last edges of the cycle) are merged into a single
    edge opposite the bite angle, leaving a cyclic polygon made up of that edge and the bridge's bonds;
    the bridge is infeasible if no such polygon exists or if, once the polygon is laid out, any
    bridge atom not bonded to the center sits at or within bonding distance of it

    Parameters
    ----------
    cycle_edge_lengths : Sequence[float]
        Bond lengths along the closed cycle (center, a1, ..., an, center), i.e. n+1 lengths
    bite_angle : float
        Angle (in radians) subtended at the center by the two atoms bonded to it
    minimum_center_distances : Sequence[float]
        Shortest permissible center distance for each of the n bridge atoms a1, ..., an

    Returns
    -------
    feasible : bool
        Whether the bridge can be realized at the given bite angle
    '''
    num_bridge_atoms = len(cycle_edge_lengths) - 1
    if len(minimum_center_distances) != num_bridge_atoms:
        raise ValueError(f'Expected {num_bridge_atoms} minimum distances for a cycle of {len(cycle_edge_lengths)} edges')

    to_first, *bridge_bonds, to_last = cycle_edge_lengths
    closing_edge = law_of_cosines(to_first, to_last, bite_angle)
    polygon_edges = [closing_edge, *bridge_bonds]
    if min(polygon_edges) <= 0.0 or not cyclic_polygons.exists(polygon_edges):
        return False
    internal_angles = cyclic_polygons.internal_angles(polygon_edges)

    # N.B.: the center lies beyond the closing edge, so angles at a1 towards the center add to the polygon's internal angle there
    exterior_angle = inverse_law_of_cosines(to_last, to_first, closing_edge) # at a1, in the triangle (center, a1, an)
    prev_distance, distance = to_first, law_of_cosines(to_first, bridge_bonds[0], internal_angles[0] + exterior_angle)
    for k in range(1, num_bridge_atoms - 1): # distance is that between the center and bridge atom a_(k+1)
        if distance <= minimum_center_distances[k]:
            return False
        if k == num_bridge_atoms - 2:
            break

        # angle at a_(k+1) between the bond back along the bridge and the line to the center
        back_angle = inverse_law_of_cosines(prev_distance, bridge_bonds[k - 1], distance)
        bend = abs(internal_angles[k] - back_angle)
        prev_distance, distance = distance, law_of_cosines(distance, bridge_bonds[k], bend)

    return True


def link_is_feasible(
        link : Link,
        site_to_vertex : SiteToVertexMap,
        site_geometries : Sequence[SiteGeometry],
        shape : Shape,
        spatial_model : SpatialModel,
    ) -> bool:
    '''Whether the bridge of a link can span the sites it joins at the vertices they occupy'''
    if len(link.cycle) < MIN_CYCLE_SEQUENCE_LENGTH:
        return True

    site_1, site_2 = link.sites
    cone_1, cone_2 = site_geometries[site_1].cone_angle, site_geometries[site_2].cone_angle
    if (cone_1 is None) or (cone_2 is None):
        return True

    angle = shape.angle(site_to_vertex[site_1], site_to_vertex[site_2])
    bite_angle = max(0.0, angle - cone_1.upper - cone_2.upper)
    center = link.cycle[0]
    edge_lengths = [spatial_model.bond_distance(atom_1, atom_2) for atom_1, atom_2 in sliding_window(link.cycle, 2)]
    minimum_distances = [spatial_model.minimum_bond_distance(center, atom) for atom in link.cycle[1:-1]]

    return bridge_is_feasible(edge_lengths, bite_angle, minimum_distances)

def is_feasible(
        stereopermutation : Stereopermutation,
        canonical_sites : CanonicalSites,
        ranking : RankingInformation,
        site_geometries : Sequence[SiteGeometry],
        shape : Shape,
        spatial_model : SpatialModel,
    ) -> bool:
    '''Whether a single stereopermutation passes both the cone collision test and all bridge tests'''
    site_to_vertex = site_to_vertex_map(stereopermutation, canonical_sites)
    if cones_collide(site_to_vertex, site_geometries, shape):
        return False

    return all(
        link_is_feasible(link, site_to_vertex, site_geometries, shape, spatial_model)
            for link in ranking.links
    )

def feasible_stereopermutations(
        stereopermutations : Stereopermutations,
        canonical_sites : CanonicalSites,
        ranking : RankingInformation,
        site_geometries : Sequence[SiteGeometry],
        shape : Shape,
        spatial_model : SpatialModel,
    ) -> FeasibleStereopermutations:
    '''Screen all stereopermutations, keeping the indices of those which can be realized in space'''
    if not (ranking.has_haptic_sites or ranking.links):
        return FeasibleStereopermutations(indices=tuple(range(len(stereopermutations))))

    indices = tuple(
        i for i, stereopermutation in enumerate(stereopermutations)
            if is_feasible(stereopermutation, canonical_sites, ranking, site_geometries, shape, spatial_model)
    )
    LOGGER.debug(f'{len(indices)} of {len(stereopermutations)} stereopermutation(s) on "{shape.name}" are feasible')

    return FeasibleStereopermutations(indices=indices)
