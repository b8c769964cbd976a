'''Ranked substituent sites around a central atom, and the links (bridges) connecting pairs of them'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Iterable, Optional, TypeAlias, Union

from dataclasses import dataclass, field
from enum import Enum


# Custom Exceptions
class StereopermutationError(Exception):
    '''Base class for errors arising from the modelling of stereopermutations'''
    pass

class MalformedRankingError(StereopermutationError, ValueError):
    '''Raised when sites, their priority classes and links don't describe a consistent ranking'''
    pass


# Atom index bookkeeping
class IndexPlaceholder(Enum):
    '''Stand-in for atom indices which no longer refer to an atom in the molecular graph'''
    REMOVED = 'removed'

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}.{self.name}'

AtomIndex : TypeAlias = Union[int, IndexPlaceholder]
SiteIndex : TypeAlias = int

def shifted_index(index : AtomIndex, removed : int) -> AtomIndex:
    '''Relabel an atom index to account for the removal of another atom from the graph'''
    if index is IndexPlaceholder.REMOVED:
        return index
    if index == removed:
        return IndexPlaceholder.REMOVED
    if index > removed:
        return index - 1
    return index


@dataclass(frozen=True)
class Link:
    '''
    A pair of sites joined by a path through the molecular graph which avoids the central atom

    The sites are stored in ascending order; the cycle is the closed sequence of atoms
    (center, a1, ..., an, center) traversing the bridge, with a1 in one site and an in the other
    '''
    sites : tuple[SiteIndex, SiteIndex]
    cycle : tuple[AtomIndex, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.sites) != 2:
            raise MalformedRankingError(f'Links must join exactly 2 sites, not {len(self.sites)}')
        first, second = self.sites
        if first == second:
            raise MalformedRankingError(f'Cannot link site {first} to itself')
        object.__setattr__(self, 'sites', (min(first, second), max(first, second)))
        object.__setattr__(self, 'cycle', tuple(self.cycle))

    @property
    def ring_size(self) -> int:
        '''Number of atoms in the ring closed by the bridge and the central atom'''
        return max(len(self.cycle) - 1, 0)

    def with_index_removed(self, removed : int) -> 'Link':
        return Link(sites=self.sites, cycle=tuple(shifted_index(atom, removed) for atom in self.cycle))


@dataclass
class RankingInformation:
    '''
    Description of the sites around a central atom, as supplied by an external ranking procedure

    Parameters
    ----------
    sites : list[list[AtomIndex]]
        The atoms constituting each site; sites with more than one atom are haptic
    site_ranking : list[list[SiteIndex]]
        Priority classes of site indices, ordered from highest to lowest priority;
        sites within the same class are indistinguishable
    links : list[Link]
        Bridges between pairs of sites, if any
    '''
    sites : list[list[AtomIndex]]
    site_ranking : list[list[SiteIndex]]
    links : list[Link] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.sites = [list(site) for site in self.sites]
        self.site_ranking = [list(priority_class) for priority_class in self.site_ranking]
        self.links = sorted(self.links, key=lambda link : link.sites)
        self.validate()

    def validate(self) -> None:
        '''Check that every site appears in exactly one priority class, and that links refer to real sites'''
        for i, site in enumerate(self.sites):
            if not site:
                raise MalformedRankingError(f'Site {i} contains no atoms')

        ranked_sites = [site_idx for priority_class in self.site_ranking for site_idx in priority_class]
        if any(not priority_class for priority_class in self.site_ranking):
            raise MalformedRankingError('Priority classes may not be empty')
        if sorted(ranked_sites) != list(range(self.num_sites)):
            raise MalformedRankingError(
                f'Priority classes {self.site_ranking} must contain each of the {self.num_sites} site indices exactly once'
            )

        linked_pairs = [link.sites for link in self.links]
        if len(set(linked_pairs)) != len(linked_pairs):
            raise MalformedRankingError(f'Duplicate links between sites: {linked_pairs}')
        for first, second in linked_pairs:
            if second >= self.num_sites:
                raise MalformedRankingError(f'Link between sites {first} and {second} refers to nonexistent site')

    @property
    def num_sites(self) -> int:
        return len(self.sites)

    @property
    def has_haptic_sites(self) -> bool:
        return any(len(site) > 1 for site in self.sites)

    @property
    def linked_site_pairs(self) -> frozenset[tuple[SiteIndex, SiteIndex]]:
        return frozenset(link.sites for link in self.links)

    def site_index_of_atom(self, atom : AtomIndex) -> Optional[SiteIndex]:
        '''Index of the site containing an atom, or None if the atom belongs to no site'''
        for site_idx, site in enumerate(self.sites):
            if atom in site:
                return site_idx
        return None

    def priority_class_of_site(self, site : SiteIndex) -> int:
        for class_idx, priority_class in enumerate(self.site_ranking):
            if site in priority_class:
                return class_idx
        raise IndexError(f'Site {site} is not ranked')

    def atoms(self) -> Iterable[AtomIndex]:
        for site in self.sites:
            yield from site

    def with_index_removed(self, removed : int) -> 'RankingInformation':
        '''Copy of this ranking with all atom indices relabeled to account for the removal of an atom from the graph'''
        return RankingInformation(
            sites=[[shifted_index(atom, removed) for atom in site] for site in self.sites],
            site_ranking=[list(priority_class) for priority_class in self.site_ranking],
            links=[link.with_index_removed(removed) for link in self.links],
        )
