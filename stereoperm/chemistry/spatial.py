'''Models of the distances and angular extents of sites around a central atom'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Hashable, Optional, Protocol, Sequence, runtime_checkable
from dataclasses import dataclass

import numpy as np
import networkx as nx

from ..geometry.cyclic_polygons import circumradius, exists
from ..options import BOND_RELATIVE_VARIANCE


@dataclass(frozen=True)
class ValueBounds:
    '''Closed interval of plausible values for some quantity'''
    lower : float
    upper : float

    def __post_init__(self) -> None:
        if self.lower > self.upper:
            raise ValueError(f'Lower bound {self.lower} exceeds upper bound {self.upper}')

    @classmethod
    def around(cls, value : float, relative_variance : float=BOND_RELATIVE_VARIANCE) -> 'ValueBounds':
        '''Bounds symmetric about a value, spread by a fraction of that value'''
        return cls(lower=value * (1 - relative_variance), upper=value * (1 + relative_variance))

    @property
    def midpoint(self) -> float:
        return (self.lower + self.upper) / 2

    def __contains__(self, value : float) -> bool:
        return self.lower <= value <= self.upper


@dataclass(frozen=True)
class SiteGeometry:
    '''
    Distance bounds from the central atom to a site (to the centroid of its atoms, for haptic sites)
    and bounds on the cone half-angle the site sweeps out as seen from the center

    A cone angle of None indicates that the extent of the site could not be modelled
    '''
    distance : ValueBounds
    cone_angle : Optional[ValueBounds] = ValueBounds(0.0, 0.0)


@runtime_checkable
class SpatialModel(Protocol):
    '''Source of the bond lengths and site geometries needed to screen stereopermutations for feasibility'''
    def bond_distance(self, atom_1 : int, atom_2 : int) -> float:
        '''Equilibrium distance between two bonded atoms'''
        ...

    def minimum_bond_distance(self, atom_1 : int, atom_2 : int) -> float:
        '''Shortest distance at which two atoms may be considered bonded; nonbonded atoms must stay farther apart'''
        ...

    def site_geometry(self, center : int, site_atoms : Sequence[int]) -> SiteGeometry:
        ...


def _site_radius(site_graph : nx.Graph) -> Optional[float]:
    '''
    Radius of the circle swept out by the atoms of a haptic site, from its bond lengths

    Rings are treated as cyclic polygons and open chains as straight rods; other topologies can't be modelled
    '''
    if not nx.is_connected(site_graph):
        return None

    degrees = [degree for _, degree in site_graph.degree]
    if (site_graph.number_of_nodes() >= 3) and all(degree == 2 for degree in degrees):
        edges = [site_graph.edges[edge]['length'] for edge in nx.find_cycle(site_graph)]
        if not exists(edges):
            return None
        return circumradius(edges)

    if nx.is_tree(site_graph) and max(degrees) <= 2:
        return sum(length for _, _, length in site_graph.edges(data='length')) / 2
    return None

def haptic_site_geometry(
        site_graph : nx.Graph,
        center_distances : dict[Hashable, float],
        relative_variance : float=BOND_RELATIVE_VARIANCE,
    ) -> SiteGeometry:
    '''
    Model the distance to and cone angle of a site, given the bonds within the site and each of its atoms' bond length to the center

    Parameters
    ----------
    site_graph : nx.Graph
        Graph of the atoms within a site, whose edges carry their bond length under the "length" attribute
    center_distances : dict[Hashable, float]
        Bond length between the central atom and each atom of the site
    relative_variance : float, default BOND_RELATIVE_VARIANCE
        Fractional slack applied to all lengths

    Returns
    -------
    site_geometry : SiteGeometry
        The distance from the center to the site's centroid and the cone half-angle spanned by the site
    '''
    if site_graph.number_of_nodes() == 0:
        raise ValueError('Cannot model the geometry of a site with no atoms')

    mean_distance = float(np.mean([center_distances[atom] for atom in site_graph.nodes]))
    if site_graph.number_of_nodes() == 1:
        return SiteGeometry(distance=ValueBounds.around(mean_distance, relative_variance))

    radius = _site_radius(site_graph)
    if (radius is None) or (radius >= mean_distance):
        LOGGER.debug(f'Could not model cone angle of haptic site comprising atoms {sorted(site_graph.nodes)}')
        return SiteGeometry(distance=ValueBounds.around(mean_distance, relative_variance), cone_angle=None)

    height = np.sqrt(mean_distance**2 - radius**2) # center to centroid of the site's atoms
    lower, upper = 1 - relative_variance, 1 + relative_variance

    return SiteGeometry(
        distance=ValueBounds.around(height, relative_variance),
        cone_angle=ValueBounds(
            lower=float(np.arctan2(radius * lower, height * upper)),
            upper=float(np.arctan2(radius * upper, height * lower)),
        ),
    )
