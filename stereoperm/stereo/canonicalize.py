'''
Reduction of ranked sites to a canonical symbolic alphabet, in which
sites of equal priority share a character and larger priority classes come first
'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import Hashable, Iterable, Protocol, Sequence, runtime_checkable

from collections import Counter
from dataclasses import dataclass
from functools import cached_property
from string import ascii_uppercase

from .ranking import RankingInformation, SiteIndex


SlotIndex = int # position of a site in the flattened canonical class ordering
CanonicalLink = tuple[SlotIndex, SlotIndex]


@runtime_checkable
class Canonicalizable(Protocol):
    '''Object with a notion of a canonical representative of instances which are equivalent in some sense'''
    def canonical_form(self) -> Hashable:
        ...


def lex_order_multiset(elements : Iterable[Hashable]) -> tuple[tuple[Hashable, int], ...]:
    '''
    Generate a lexicographically-ordered presentation of a multiset of elements

    Returns as a tuple of (element, count) pairs, e.g. 'BABA' -> (('A', 2), ('B', 2))
    '''
    return tuple(sorted(Counter(elements).items()))

def canonical_classes(site_ranking : Sequence[Sequence[SiteIndex]]) -> tuple[tuple[SiteIndex, ...], ...]:
    '''
    Reorder priority classes by descending size

    N.B.: the sort is stable, so classes of equal size retain their relative priority order
    '''
    return tuple(
        tuple(priority_class)
            for priority_class in sorted(site_ranking, key=len, reverse=True)
    )

def symbolic_characters(classes : Sequence[Sequence[SiteIndex]]) -> tuple[str, ...]:
    '''One character per slot of the flattened classes, with the n-th class taking the n-th letter of the alphabet'''
    if len(classes) > len(ascii_uppercase):
        raise ValueError(f'Cannot represent {len(classes)} priority classes with single characters')

    return tuple(
        ascii_uppercase[class_idx]
            for class_idx, priority_class in enumerate(classes)
                for _ in priority_class
    )


@dataclass(frozen=True)
class CanonicalSites:
    '''Sites of a ranking reexpressed as characters on slots, with links between slots rather than sites'''
    classes : tuple[tuple[SiteIndex, ...], ...]
    characters : tuple[str, ...]
    links : frozenset[CanonicalLink]

    @classmethod
    def from_ranking(cls, ranking : RankingInformation) -> 'CanonicalSites':
        classes = canonical_classes(ranking.site_ranking)
        slot_of_site = {
            site : slot
                for slot, site in enumerate(site for priority_class in classes for site in priority_class)
        }

        return cls(
            classes=classes,
            characters=symbolic_characters(classes),
            links=frozenset(
                tuple(sorted((slot_of_site[first], slot_of_site[second])))
                    for first, second in ranking.linked_site_pairs
            ),
        )

    def __str__(self) -> str:
        characters = ''.join(self.characters)
        if not self.links:
            return characters

        link_symbols = ', '.join(
            f'{self.characters[first]}-{self.characters[second]}'
                for first, second in sorted(self.links)
        )
        return f'{characters}, {link_symbols}'

    @property
    def size(self) -> int:
        return len(self.characters)

    def canonical_form(self) -> tuple[tuple[str, ...], frozenset[CanonicalLink]]:
        '''The part of the canonical sites which stereopermutations depend upon; rankings differing only in site labels share this'''
        return self.characters, self.links

    @cached_property
    def sites_by_slot(self) -> tuple[SiteIndex, ...]:
        '''Site index occupying each canonical slot'''
        return tuple(site for priority_class in self.classes for site in priority_class)

    @cached_property
    def slots_by_site(self) -> dict[SiteIndex, SlotIndex]:
        return {site : slot for slot, site in enumerate(self.sites_by_slot)}

    def character_of_site(self, site : SiteIndex) -> str:
        return self.characters[self.slots_by_site[site]]

    def site_links(self) -> frozenset[tuple[SiteIndex, SiteIndex]]:
        '''Links expressed back in terms of site indices'''
        return frozenset(
            tuple(sorted((self.sites_by_slot[first], self.sites_by_slot[second])))
                for first, second in self.links
        )

    def composition(self) -> tuple[tuple[str, int], ...]:
        '''Multiset of characters, e.g. (('A', 2), ('B', 1), ('C', 1)) for AABC'''
        return lex_order_multiset(self.characters)
