'''
Enumeration of the rotationally-distinct ways of placing characters
(and links between them) onto the vertices of an idealized shape
'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Generator, Iterable, Iterator, Optional, Sequence

from dataclasses import dataclass
from functools import cached_property, lru_cache
from itertools import permutations

import numpy as np

from .canonicalize import CanonicalSites, CanonicalLink
from ..geometry.shapes import Shape, VertexIndex
from ..options import REMOVE_TRANS_SPANNING_LINKS


VertexLink = tuple[VertexIndex, VertexIndex]
STEREOPERMUTATION_CACHE_SIZE : int = 1024

@dataclass(frozen=True)
class Stereopermutation:
    '''
    Characters placed onto the vertices of a shape (characters[v] is the character at vertex v),
    together with the pairs of vertices whose occupants are linked
    '''
    characters : tuple[str, ...]
    links : frozenset[VertexLink] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'characters', tuple(self.characters))
        object.__setattr__(self, 'links', frozenset(tuple(sorted(link)) for link in self.links))

    def __str__(self) -> str:
        characters = ''.join(self.characters)
        if not self.links:
            return characters
        return f'{characters}, ' + ', '.join(f'{first}-{second}' for first, second in sorted(self.links))

    @property
    def size(self) -> int:
        return len(self.characters)

    @property
    def sort_key(self) -> tuple[tuple[str, ...], tuple[VertexLink, ...]]:
        '''Total order over stereopermutations of the same characters, used to pick orbit representatives'''
        return self.characters, tuple(sorted(self.links))

    def permuted(self, permutation : Sequence[VertexIndex]) -> 'Stereopermutation':
        '''Stereopermutation obtained by moving the occupant of each vertex v onto vertex permutation[v]'''
        characters = [None] * self.size
        for vertex, character in enumerate(self.characters):
            characters[permutation[vertex]] = character

        return Stereopermutation(
            characters=tuple(characters),
            links=frozenset(
                tuple(sorted((permutation[first], permutation[second])))
                    for first, second in self.links
            ),
        )

    def rotations(self, shape : Shape) -> set['Stereopermutation']:
        '''All stereopermutations reachable by rotating this one on the given shape (itself included)'''
        return {self.permuted(rotation) for rotation in shape.rotations}

    def canonical_form(self, shape : Shape) -> 'Stereopermutation':
        '''Minimal member of the rotational orbit of this stereopermutation'''
        return min(self.rotations(shape), key=lambda stereoperm : stereoperm.sort_key)

    def is_rotationally_superimposable(self, other : 'Stereopermutation', shape : Shape) -> bool:
        return other in self.rotations(shape)


@dataclass(frozen=True)
class Stereopermutations:
    '''Rotationally-unique stereopermutations of a shape, each alongside the size of its rotational orbit'''
    shape : Shape
    stereopermutations : tuple[Stereopermutation, ...]
    weights : tuple[int, ...]

    def __len__(self) -> int:
        return len(self.stereopermutations)

    def __getitem__(self, index : int) -> Stereopermutation:
        return self.stereopermutations[index]

    def __iter__(self) -> Iterator[Stereopermutation]:
        return iter(self.stereopermutations)

    @cached_property
    def _index_by_representative(self) -> dict[Stereopermutation, int]:
        return {stereoperm : i for i, stereoperm in enumerate(self.stereopermutations)}

    def index_of(self, stereopermutation : Stereopermutation) -> Optional[int]:
        '''Index of the stereopermutation which the given one is rotationally superimposable onto, if any'''
        return self._index_by_representative.get(stereopermutation.canonical_form(self.shape))


def links_span_trans(shape : Shape, links : Iterable[VertexLink]) -> bool:
    '''Whether any link joins a pair of (near-)diametrically opposed vertices'''
    return any(np.isclose(shape.angle(first, second), np.pi) for first, second in links)

def raw_arrangements(
        shape : Shape,
        characters : Sequence[str],
        links : Iterable[CanonicalLink]=frozenset(),
    ) -> Generator[Stereopermutation, None, None]:
    '''
    Every distinct placement of the slots' characters and links onto the shape's vertices,
    NOT reduced by rotational symmetry; restartable, since a fresh generator is made per call
    '''
    if len(characters) != shape.size:
        raise ValueError(f'Cannot place {len(characters)} characters onto shape "{shape.name}" with {shape.size} vertices')

    initial = Stereopermutation(characters=tuple(characters), links=frozenset(links))
    seen : set[Stereopermutation] = set()
    for permutation in permutations(range(shape.size)):
        arrangement = initial.permuted(permutation)
        if arrangement not in seen:
            seen.add(arrangement)
            yield arrangement

def enumerate_stereopermutations(
        shape : Shape,
        characters : Sequence[str],
        links : Iterable[CanonicalLink]=frozenset(),
        remove_trans_spanning_links : bool=REMOVE_TRANS_SPANNING_LINKS,
    ) -> Stereopermutations:
    '''
    Partition all placements of characters and links onto a shape into orbits under the shape's rotations

    Each orbit is represented by its minimal member; orbits are weighted by their size
    (i.e. how often that stereopermutation would arise from a random placement)
    and are returned sorted by representative, which makes the output deterministic
    '''
    orbit_sizes : dict[Stereopermutation, int] = {}
    for arrangement in raw_arrangements(shape, characters, links):
        if remove_trans_spanning_links and links_span_trans(shape, arrangement.links):
            continue # rotations preserve angles, so entire orbits are discarded together
        representative = arrangement.canonical_form(shape)
        orbit_sizes[representative] = orbit_sizes.get(representative, 0) + 1

    representatives = sorted(orbit_sizes, key=lambda stereoperm : stereoperm.sort_key)
    LOGGER.debug(f'Enumerated {len(representatives)} stereopermutation(s) of {"".join(characters)} on shape "{shape.name}"')

    return Stereopermutations(
        shape=shape,
        stereopermutations=tuple(representatives),
        weights=tuple(orbit_sizes[representative] for representative in representatives),
    )

@lru_cache(maxsize=STEREOPERMUTATION_CACHE_SIZE)
def _cached_stereopermutations(
        shape : Shape,
        characters : tuple[str, ...],
        links : frozenset[CanonicalLink],
        remove_trans_spanning_links : bool,
    ) -> Stereopermutations:
    return enumerate_stereopermutations(shape, characters, links, remove_trans_spanning_links=remove_trans_spanning_links)

def stereopermutations_of(
        shape : Shape,
        canonical_sites : CanonicalSites,
        remove_trans_spanning_links : bool=REMOVE_TRANS_SPANNING_LINKS,
    ) -> Stereopermutations:
    '''Stereopermutations of canonicalized sites on a shape, shared between all rankings with the same canonical form'''
    characters, links = canonical_sites.canonical_form()
    return _cached_stereopermutations(shape, characters, links, remove_trans_spanning_links)
