'''
Bookkeeping of the stereopermutation adopted by the sites around a single central atom,
and of how that choice is carried along as the molecular graph around the atom changes
'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Iterable, Optional, Sequence

from dataclasses import dataclass

import numpy as np

from .ranking import (
    AtomIndex,
    RankingInformation,
    SiteIndex,
    StereopermutationError,
)
from .canonicalize import CanonicalSites
from .stereopermutation import Stereopermutations, stereopermutations_of
from .feasibility import FeasibleStereopermutations, feasible_stereopermutations
from .vertex_maps import (
    SiteToVertexMap,
    site_to_vertex_map,
    vertex_to_site_map,
    stereopermutation_from_site_to_vertex_map,
)
from .chirality import ChiralityConstraint, MinimalChiralityConstraint, chirality_constraint

from ..chemistry.spatial import SiteGeometry, SpatialModel, ValueBounds
from ..geometry.shapes import Shape, ShapeTransitionGroup, IndexMapping, shapes_of_size
from ..geometry.measure import adjusted_signed_volume, law_of_cosines, vector_angle
from ..options import (
    ChiralStatePreservation,
    DEFAULT_CHIRAL_STATE_PRESERVATION,
    EFFORTLESS_DISTORTION_THRESHOLD,
    ANGLE_ABSOLUTE_VARIANCE,
    REMOVE_TRANS_SPANNING_LINKS,
)
from ..sutils.iteration import unordered_pairs


FIT_TOLERANCE : float = 1E-8


class UnassignedStereopermutatorError(StereopermutationError):
    '''Raised when querying the spatial arrangement of a stereopermutator whose chiral state is indeterminate'''
    pass


@dataclass(frozen=True)
class PermutationState:
    '''Everything derived from a ranking, shape and spatial model which doesn't depend on the current assignment'''
    canonical_sites : CanonicalSites
    site_geometries : tuple[SiteGeometry, ...]
    stereopermutations : Stereopermutations
    feasible : FeasibleStereopermutations

    @classmethod
    def build(
            cls,
            ranking : RankingInformation,
            center : AtomIndex,
            shape : Shape,
            spatial_model : SpatialModel,
            remove_trans_spanning_links : bool=REMOVE_TRANS_SPANNING_LINKS,
        ) -> 'PermutationState':
        if ranking.num_sites != shape.size:
            raise ValueError(f'Cannot place {ranking.num_sites} sites onto shape "{shape.name}" with {shape.size} vertices')

        canonical_sites = CanonicalSites.from_ranking(ranking)
        site_geometries = tuple(spatial_model.site_geometry(center, site) for site in ranking.sites)
        stereopermutations = stereopermutations_of(shape, canonical_sites, remove_trans_spanning_links=remove_trans_spanning_links)

        return cls(
            canonical_sites=canonical_sites,
            site_geometries=site_geometries,
            stereopermutations=stereopermutations,
            feasible=feasible_stereopermutations(
                stereopermutations,
                canonical_sites,
                ranking,
                site_geometries,
                shape,
                spatial_model,
            ),
        )


def select_index_mapping(
        transition : ShapeTransitionGroup,
        preservation : ChiralStatePreservation=DEFAULT_CHIRAL_STATE_PRESERVATION,
        rng : Optional[np.random.Generator]=None,
    ) -> Optional[IndexMapping]:
    '''Choose which of the best index mappings of a shape transition (if any) to carry chiral state through'''
    mappings = transition.index_mappings
    if (preservation == ChiralStatePreservation.NONE) or not mappings:
        return None

    if preservation == ChiralStatePreservation.EFFORTLESS_AND_UNIQUE:
        if (len(mappings) == 1) and (transition.angular_distortion <= EFFORTLESS_DISTORTION_THRESHOLD):
            return mappings[0]
        return None
    elif preservation == ChiralStatePreservation.UNIQUE:
        return mappings[0] if (len(mappings) == 1) else None
    elif preservation == ChiralStatePreservation.RANDOM_FROM_MULTIPLE_BEST:
        if rng is None:
            rng = np.random.default_rng()
        return mappings[int(rng.integers(len(mappings)))]

    raise ValueError(f'Unsupported chiral state preservation policy {preservation}')

def map_sites_by_content(
        old_sites : Sequence[Sequence[AtomIndex]],
        new_sites : Sequence[Sequence[AtomIndex]],
        added_atom : Optional[AtomIndex]=None,
        removed_atom : Optional[AtomIndex]=None,
    ) -> Optional[dict[SiteIndex, SiteIndex]]:
    '''
    Match old sites to new sites which contain the same atoms, up to a single added or removed atom

    Old sites left empty by the removal are omitted; returns None if any other old site has no counterpart
    '''
    new_sites_by_content = {}
    for new_site_idx, site in enumerate(new_sites):
        content = frozenset(site) - {added_atom}
        if content:
            new_sites_by_content[content] = new_site_idx

    site_mapping = {}
    for old_site_idx, site in enumerate(old_sites):
        content = frozenset(site) - {removed_atom}
        if not content:
            continue
        if content not in new_sites_by_content:
            return None
        site_mapping[old_site_idx] = new_sites_by_content[content]

    return site_mapping


class AtomStereopermutator:
    '''
    Tracks which of the feasible stereopermutations the sites around a central atom adopt

    The assignment is an index into the feasible stereopermutations, or None if the chiral state is indeterminate;
    all derived data are recomputed whenever the ranking or shape change, and the assignment is only carried
    over when a consistent arrangement can be found in the new set of stereopermutations
    '''
    def __init__(
            self,
            shape : Shape,
            center : int,
            ranking : RankingInformation,
            spatial_model : SpatialModel,
            remove_trans_spanning_links : bool=REMOVE_TRANS_SPANNING_LINKS,
        ) -> None:
        self._shape = shape
        self._center = center
        self._ranking = ranking
        self._spatial_model = spatial_model
        self.remove_trans_spanning_links = remove_trans_spanning_links

        self._state = self._build_state(ranking, shape)
        self._assignment : Optional[int] = None
        self._site_to_vertex : Optional[SiteToVertexMap] = None

    def _build_state(self, ranking : RankingInformation, shape : Shape) -> PermutationState:
        return PermutationState.build(
            ranking,
            self._center,
            shape,
            self._spatial_model,
            remove_trans_spanning_links=self.remove_trans_spanning_links,
        )

    # Representation
    def info(self) -> str:
        '''Human-readable summary of the central atom, its shape, its sites and its chiral state'''
        assignment = 'u' if (self._assignment is None) else str(self._assignment)
        return f'CN {self._center} ({self._shape.name}, {self._state.canonical_sites}): '\
            f'{assignment}/{self.num_assignments} ({self.num_stereopermutations})'

    def rank_info(self) -> str:
        '''Compact description of the chiral state, suitable for ranking other atoms around this one'''
        index = 'u' if (self._assignment is None) else str(self.index_of_permutation)
        return f'CN-{self._shape.name}-{self.num_stereopermutations}-{index}'

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.info()})'

    def __eq__(self, other : object) -> bool:
        if not isinstance(other, AtomStereopermutator):
            return NotImplemented
        return (
            (self._shape == other._shape)
            and (self._center == other._center)
            and (self.num_stereopermutations == other.num_stereopermutations)
            and (self._assignment == other._assignment)
        )

    def _order_key(self) -> tuple:
        return (
            self._center,
            self._shape.name,
            self.num_stereopermutations,
            -1 if (self._assignment is None) else self._assignment,
        )

    def __lt__(self, other : 'AtomStereopermutator') -> bool:
        if not isinstance(other, AtomStereopermutator):
            return NotImplemented
        return self._order_key() < other._order_key()

    # Properties
    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def center(self) -> int:
        return self._center

    @property
    def ranking(self) -> RankingInformation:
        return self._ranking

    @property
    def spatial_model(self) -> SpatialModel:
        return self._spatial_model

    @property
    def canonical_sites(self) -> CanonicalSites:
        return self._state.canonical_sites

    @property
    def site_geometries(self) -> tuple[SiteGeometry, ...]:
        return self._state.site_geometries

    @property
    def stereopermutations(self) -> Stereopermutations:
        return self._state.stereopermutations

    @property
    def feasible(self) -> FeasibleStereopermutations:
        return self._state.feasible

    @property
    def assigned(self) -> Optional[int]:
        '''Index of the adopted stereopermutation among the feasible ones, or None if indeterminate'''
        return self._assignment

    @property
    def index_of_permutation(self) -> Optional[int]:
        '''Index of the adopted stereopermutation among ALL stereopermutations, or None if indeterminate'''
        if self._assignment is None:
            return None
        return self._state.feasible[self._assignment]

    @property
    def num_assignments(self) -> int:
        return len(self._state.feasible)

    @property
    def num_stereopermutations(self) -> int:
        return len(self._state.stereopermutations)

    @property
    def site_to_vertex_map(self) -> SiteToVertexMap:
        if self._site_to_vertex is None:
            raise UnassignedStereopermutatorError(f'Stereopermutator on atom {self._center} is unassigned; sites have no set positions')
        return self._site_to_vertex

    @property
    def involved_atoms(self) -> tuple[AtomIndex, ...]:
        return (self._center, *self._ranking.atoms())

    # Assignment
    def assign(self, assignment : Optional[int]) -> None:
        '''Adopt one of the feasible stereopermutations, or mark the chiral state as indeterminate with None'''
        if assignment is None:
            self._assignment = None
            self._site_to_vertex = None
            return

        assignment = int(assignment)
        if not (0 <= assignment < self.num_assignments):
            raise IndexError(f'Assignment {assignment} out of range for {self.num_assignments} feasible stereopermutation(s)')

        stereopermutation = self._state.stereopermutations[self._state.feasible[assignment]]
        self._assignment = assignment
        self._site_to_vertex = site_to_vertex_map(stereopermutation, self._state.canonical_sites)

    def assign_random(self, rng : Optional[np.random.Generator]=None) -> None:
        '''Adopt a feasible stereopermutation at random, weighted by how often each arises from random placement of sites'''
        if rng is None:
            rng = np.random.default_rng()

        if self.num_assignments == 0:
            LOGGER.debug(f'No feasible stereopermutations to choose from on atom {self._center}')
            self.assign(None)
            return

        weights = np.array([self._state.stereopermutations.weights[i] for i in self._state.feasible], dtype=float)
        self.assign(rng.choice(self.num_assignments, p=weights / weights.sum()))

    def _commit(
            self,
            ranking : RankingInformation,
            shape : Shape,
            state : PermutationState,
            assignment : Optional[int],
        ) -> None:
        '''Replace all state at once, then adopt the given assignment'''
        if (self._assignment is not None) and (assignment is None):
            LOGGER.debug(f'Chiral state of atom {self._center} could not be preserved and is now indeterminate')

        self._ranking = ranking
        self._shape = shape
        self._state = state
        self.assign(assignment)

    def _continued_assignment(self, state : PermutationState, site_to_vertex : Sequence[int]) -> Optional[int]:
        '''Assignment in a new state which places sites onto the given vertices (up to rotation), if it is feasible'''
        trial = stereopermutation_from_site_to_vertex_map(site_to_vertex, state.canonical_sites)
        permutation_idx = state.stereopermutations.index_of(trial)
        if permutation_idx is None:
            return None
        return state.feasible.index_of_permutation(permutation_idx)

    # Graph changes
    def set_shape(self, shape : Shape) -> None:
        '''Change the shape the sites are arranged in; the chiral state is lost'''
        if shape == self._shape:
            return
        self._commit(self._ranking, shape, self._build_state(self._ranking, shape), None)

    def _vertices_after_addition(
            self,
            new_atom : AtomIndex,
            new_ranking : RankingInformation,
            new_shape : Shape,
            preservation : ChiralStatePreservation,
            rng : Optional[np.random.Generator],
        ) -> Optional[SiteToVertexMap]:
        site_mapping = map_sites_by_content(self._ranking.sites, new_ranking.sites, added_atom=new_atom)
        if site_mapping is None:
            return None

        vertices = [None] * new_shape.size
        if new_shape.size == self._shape.size: # atom was added to an existing (now haptic) site
            if len(site_mapping) != new_ranking.num_sites:
                return None
            for old_site, new_site in site_mapping.items():
                vertices[new_site] = self._site_to_vertex[old_site]
            return tuple(vertices)

        if new_shape.size != self._shape.size + 1:
            return None

        added_sites = set(range(new_ranking.num_sites)) - set(site_mapping.values())
        if len(added_sites) != 1:
            return None
        mapping = select_index_mapping(self._shape.transitions_to(new_shape), preservation, rng)
        if mapping is None:
            return None

        for old_site, new_site in site_mapping.items():
            vertices[new_site] = mapping[self._site_to_vertex[old_site]]
        vertices[added_sites.pop()] = mapping[self._shape.size]

        return tuple(vertices)

    def add_substituent(
            self,
            new_atom : AtomIndex,
            new_ranking : RankingInformation,
            new_shape : Shape,
            preservation : ChiralStatePreservation=DEFAULT_CHIRAL_STATE_PRESERVATION,
            rng : Optional[np.random.Generator]=None,
        ) -> None:
        '''
        Account for a new atom bonded to the center, either as a new site or as part of an existing haptic site

        Parameters
        ----------
        new_atom : AtomIndex
            The atom which was added
        new_ranking : RankingInformation
            Ranking of the sites around the center after the addition
        new_shape : Shape
            Shape adopted by the sites after the addition
        preservation : ChiralStatePreservation, default DEFAULT_CHIRAL_STATE_PRESERVATION
            Policy governing whether chiral state is carried through a change in shape size
        rng : np.random.Generator, optional
            Source of randomness, only consumed by the RANDOM_FROM_MULTIPLE_BEST policy
        '''
        new_state = self._build_state(new_ranking, new_shape)
        new_assignment = None
        if (self._assignment is not None) and (self.num_stereopermutations > 1):
            vertices = self._vertices_after_addition(new_atom, new_ranking, new_shape, preservation, rng)
            if vertices is not None:
                new_assignment = self._continued_assignment(new_state, vertices)
        LOGGER.debug(f'Added atom {new_atom} to atom {self._center}; shape "{self._shape.name}" -> "{new_shape.name}"')

        self._commit(new_ranking, new_shape, new_state, new_assignment)

    def _vertices_after_removal(
            self,
            which : AtomIndex,
            new_ranking : RankingInformation,
            new_shape : Shape,
            preservation : ChiralStatePreservation,
            rng : Optional[np.random.Generator],
        ) -> Optional[SiteToVertexMap]:
        site_mapping = map_sites_by_content(self._ranking.sites, new_ranking.sites, removed_atom=which)
        if (site_mapping is None) or (len(site_mapping) != new_ranking.num_sites):
            return None

        vertices = [None] * new_shape.size
        if new_shape.size == self._shape.size: # atom was removed from a haptic site which still remains
            for old_site, new_site in site_mapping.items():
                vertices[new_site] = self._site_to_vertex[old_site]
            return tuple(vertices)

        if new_shape.size != self._shape.size - 1:
            return None

        removed_sites = [site for site in range(self._ranking.num_sites) if site not in site_mapping]
        if len(removed_sites) != 1:
            return None
        removed_vertex = self._site_to_vertex[removed_sites[0]]
        mapping = select_index_mapping(
            self._shape.transitions_to(new_shape, removed_vertex=removed_vertex),
            preservation,
            rng,
        )
        if mapping is None:
            return None

        old_site_at_vertex = vertex_to_site_map(self._site_to_vertex)
        for new_vertex, old_vertex in enumerate(mapping):
            vertices[site_mapping[old_site_at_vertex[old_vertex]]] = new_vertex

        return tuple(vertices)

    def remove_substituent(
            self,
            which : AtomIndex,
            new_ranking : RankingInformation,
            new_shape : Shape,
            preservation : ChiralStatePreservation=DEFAULT_CHIRAL_STATE_PRESERVATION,
            rng : Optional[np.random.Generator]=None,
        ) -> None:
        '''
        Account for an atom no longer bonded to the center; "which" may be IndexPlaceholder.REMOVED
        if the removal of the atom from the graph has already been propagated
        '''
        new_state = self._build_state(new_ranking, new_shape)
        new_assignment = None
        if (self._assignment is not None) and (self.num_stereopermutations > 1):
            vertices = self._vertices_after_removal(which, new_ranking, new_shape, preservation, rng)
            if vertices is not None:
                new_assignment = self._continued_assignment(new_state, vertices)
        LOGGER.debug(f'Removed atom {which!r} from atom {self._center}; shape "{self._shape.name}" -> "{new_shape.name}"')

        self._commit(new_ranking, new_shape, new_state, new_assignment)

    def propagate_ranking_change(self, new_ranking : RankingInformation) -> None:
        '''
        Account for a change in the relative priorities of the sites (or in their links)

        Chiral state is only carried over if the sites and links are unchanged in number
        and the new ranking distinguishes no more stereopermutations than the old one did
        '''
        if new_ranking == self._ranking:
            return

        new_state = self._build_state(new_ranking, self._shape)
        new_assignment = None
        if (
            (self._assignment is not None)
            and (self.num_stereopermutations > 1)
            and (new_ranking.num_sites == self._ranking.num_sites)
            and (new_ranking.linked_site_pairs == self._ranking.linked_site_pairs)
            and (len(new_state.stereopermutations) <= self.num_stereopermutations)
        ):
            new_assignment = self._continued_assignment(new_state, self._site_to_vertex)

        self._commit(new_ranking, self._shape, new_state, new_assignment)

    def propagate_index_removal(self, removed : int) -> None:
        '''Relabel all stored atom indices to account for the removal of an atom (other than the center) from the graph'''
        if removed == self._center:
            raise ValueError(f'Cannot propagate removal of central atom {removed} onto its own stereopermutator')

        self._ranking = self._ranking.with_index_removed(removed)
        if self._center > removed:
            self._center -= 1

    # Spatial modelling
    def angle(self, site_1 : SiteIndex, site_2 : SiteIndex) -> float:
        '''Idealized angle (in radians) between two sites, as placed by the current assignment'''
        site_to_vertex = self.site_to_vertex_map
        return self._shape.angle(site_to_vertex[site_1], site_to_vertex[site_2])

    def site_angle_bounds(self, site_1 : SiteIndex, site_2 : SiteIndex, variance : float=ANGLE_ABSOLUTE_VARIANCE) -> ValueBounds:
        '''Bounds on the angle between two sites, widened by the extent of their cones and an absolute variance'''
        cone_1 = self._state.site_geometries[site_1].cone_angle
        cone_2 = self._state.site_geometries[site_2].cone_angle
        if (cone_1 is None) or (cone_2 is None):
            return ValueBounds(0.0, np.pi)

        angle = self.angle(site_1, site_2)
        spread = cone_1.upper + cone_2.upper + variance
        return ValueBounds(
            lower=max(0.0, angle - spread),
            upper=min(np.pi, angle + spread),
        )

    def site_atom_distance_bounds(self, site : SiteIndex) -> ValueBounds:
        '''
        Bounds on the distance between the center and any one atom of a site

        Atoms of haptic sites are taken to lie on the rim of the site's cone, whose height is the distance to the site;
        sites whose cone could not be modelled fall back to the distance to the site itself
        '''
        geometry = self._state.site_geometries[site]
        if geometry.cone_angle is None:
            return geometry.distance

        hypotenuses = (
            geometry.distance.lower / np.cos(geometry.cone_angle.upper),
            geometry.distance.upper / np.cos(geometry.cone_angle.lower),
        )
        return ValueBounds(lower=float(min(hypotenuses)), upper=float(max(hypotenuses)))

    def intra_site_angle_bounds(self, site : SiteIndex) -> ValueBounds:
        '''Bounds on the angle subtended at the center by any two atoms of the same site'''
        cone = self._state.site_geometries[site].cone_angle
        if cone is None:
            return ValueBounds(0.0, np.pi)
        return ValueBounds(0.0, min(np.pi, 2 * cone.upper))

    def minimal_chirality_constraints(self, enforce : bool=False) -> list[MinimalChiralityConstraint]:
        '''
        The shape's tetrahedra reexpressed in terms of the sites occupying their vertices (None standing for the center)

        Empty if unassigned, or if there is only one stereopermutation and the constraints are not explicitly enforced
        '''
        if self._assignment is None:
            return []
        if (not enforce) and (self.num_stereopermutations <= 1):
            return []

        site_at_vertex = vertex_to_site_map(self._site_to_vertex)
        return [
            tuple(None if (vertex is None) else site_at_vertex[vertex] for vertex in tetrahedron)
                for tetrahedron in self._shape.tetrahedra
        ]

    def chirality_constraints(self, enforce : bool=False) -> list[ChiralityConstraint]:
        '''Signed volume bounds for each minimal chirality constraint'''
        site_distances = [geometry.distance for geometry in self._state.site_geometries]
        return [
            chirality_constraint(tetrahedron, site_distances, self.angle, self._ranking.sites, self._center)
                for tetrahedron in self.minimal_chirality_constraints(enforce=enforce)
        ]

    # Fitting
    def _fit_penalty(self, site_positions : np.ndarray, center_position : np.ndarray) -> float:
        '''Deviation of actual positions from those implied by the current shape and assignment'''
        site_vectors = site_positions - center_position
        penalty = 0.0
        for site_1, site_2 in unordered_pairs(range(self._ranking.num_sites)):
            ideal_angle = self.angle(site_1, site_2)
            penalty += abs(vector_angle(site_vectors[site_1], site_vectors[site_2]) - ideal_angle)

            ideal_distance = law_of_cosines(
                np.linalg.norm(site_vectors[site_1]),
                np.linalg.norm(site_vectors[site_2]),
                ideal_angle,
            )
            penalty += abs(np.linalg.norm(site_positions[site_1] - site_positions[site_2]) - ideal_distance)

        for tetrahedron in self.minimal_chirality_constraints(enforce=True):
            points = [center_position if (site is None) else site_positions[site] for site in tetrahedron]
            if adjusted_signed_volume(*points) < 0.0:
                penalty += 1.0

        return penalty

    def fit(
            self,
            positions : np.ndarray,
            candidate_shapes : Optional[Iterable[Shape]]=None,
            excluded_shapes : Iterable[Shape]=tuple(),
        ) -> None:
        '''
        Adopt the shape and assignment which best reproduce the given atom positions

        Positions are indexed by atom index; haptic sites are placed at the centroid of their atoms.
        If several assignments fit equally well, the shape is kept but the chiral state is left indeterminate.
        If no candidate shape admits any feasible assignment, the prior state is restored.
        '''
        positions = np.asarray(positions, dtype=float)
        site_positions = np.array([positions[list(site)].mean(axis=0) for site in self._ranking.sites])
        center_position = positions[self._center]

        if candidate_shapes is None:
            candidate_shapes = shapes_of_size(self._shape.size)
        excluded_shapes = set(excluded_shapes)
        candidate_shapes = [
            shape for shape in candidate_shapes
                if (shape.size == self._shape.size) and (shape not in excluded_shapes)
        ]

        prior_shape, prior_state, prior_assignment = self._shape, self._state, self._assignment
        best_shape, best_state, best_assignment = None, None, None
        best_penalty, multiplicity = np.inf, 1
        for shape in candidate_shapes:
            self._shape, self._state = shape, self._build_state(self._ranking, shape)
            for assignment in range(self.num_assignments):
                self.assign(assignment)
                penalty = self._fit_penalty(site_positions, center_position)
                if penalty < best_penalty - FIT_TOLERANCE:
                    best_shape, best_state, best_assignment = shape, self._state, assignment
                    best_penalty, multiplicity = penalty, 1
                elif abs(penalty - best_penalty) <= FIT_TOLERANCE:
                    multiplicity += 1

        if best_shape is None:
            LOGGER.warning(f'No candidate shape could be fit around atom {self._center}; retaining prior state')
            self._shape, self._state = prior_shape, prior_state
            self.assign(prior_assignment)
            return

        self._shape, self._state = best_shape, best_state
        if multiplicity > 1:
            LOGGER.debug(f'{multiplicity} assignments fit atom {self._center} equally well; chiral state is indeterminate')
            self.assign(None)
        else:
            self.assign(best_assignment)
