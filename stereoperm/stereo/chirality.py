'''Translation of tetrahedra of sites into bounds on signed volumes, for use as chirality constraints in embedding'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import Callable, Optional, Sequence

from dataclasses import dataclass

import numpy as np

from .ranking import AtomIndex, SiteIndex
from ..chemistry.spatial import ValueBounds
from ..geometry.measure import adjusted_volume_from_squared_distances
from ..sutils.iteration import unordered_pairs


MinimalChiralityConstraint = tuple[Optional[SiteIndex], ...] # 4 site indices, where None designates the central atom


@dataclass(frozen=True)
class ChiralityConstraint:
    '''
    Bounds on the adjusted (6x) signed volume spanned by four groups of atoms

    Each group is either the atoms of a site or the central atom alone;
    the volume is evaluated on the centroids of the groups
    '''
    sites : MinimalChiralityConstraint
    atoms : tuple[tuple[AtomIndex, ...], ...]
    lower : float
    upper : float


def _pairwise_distance_bounds(
        tetrahedron : MinimalChiralityConstraint,
        site_distances : Sequence[ValueBounds],
        angle : Callable[[SiteIndex, SiteIndex], float],
    ) -> tuple[np.ndarray, np.ndarray]:
    '''Matrices of lower and upper bounds on the squared distances between all members of a tetrahedron'''
    lower, upper = np.zeros((4, 4)), np.zeros((4, 4))
    for i, j in unordered_pairs(range(4)):
        site_i, site_j = tetrahedron[i], tetrahedron[j]
        if (site_i is None) and (site_j is None):
            raise ValueError(f'Tetrahedron {tetrahedron} contains the central atom more than once')

        if site_i is None or site_j is None: # distance between the center and a site
            bounds = site_distances[site_j if site_i is None else site_i]
            lower[i, j], upper[i, j] = bounds.lower**2, bounds.upper**2
        else: # 1-3 distance between two sites, via the law of cosines
            cosine = np.cos(angle(site_i, site_j))
            bounds_i, bounds_j = site_distances[site_i], site_distances[site_j]
            lower[i, j] = bounds_i.lower**2 + bounds_j.lower**2 - 2*bounds_i.lower*bounds_j.lower*cosine
            upper[i, j] = bounds_i.upper**2 + bounds_j.upper**2 - 2*bounds_i.upper*bounds_j.upper*cosine

    return lower + lower.T, upper + upper.T

def chirality_constraint(
        tetrahedron : MinimalChiralityConstraint,
        site_distances : Sequence[ValueBounds],
        angle : Callable[[SiteIndex, SiteIndex], float],
        site_atoms : Sequence[Sequence[AtomIndex]],
        center : AtomIndex,
    ) -> ChiralityConstraint:
    '''
    Bound the volume of a tetrahedron of sites from the bounds on their distances to the center and the idealized angles between them

    Volumes are derived from the Cayley-Menger determinants of all-lower and all-upper squared distances;
    being unsigned, the smaller of the two forms the lower bound
    '''
    lower_squared, upper_squared = _pairwise_distance_bounds(tetrahedron, site_distances, angle)
    volumes = (
        adjusted_volume_from_squared_distances(lower_squared),
        adjusted_volume_from_squared_distances(upper_squared),
    )

    return ChiralityConstraint(
        sites=tuple(tetrahedron),
        atoms=tuple(
            (center,) if site is None else tuple(site_atoms[site])
                for site in tetrahedron
        ),
        lower=min(volumes),
        upper=max(volumes),
    )
