'''Translation between stereopermutations (characters on vertices) and concrete placements of sites onto vertices'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import Optional, Sequence

from .canonicalize import CanonicalSites, SlotIndex
from .ranking import SiteIndex
from .stereopermutation import Stereopermutation
from ..geometry.shapes import VertexIndex


SiteToVertexMap = tuple[VertexIndex, ...] # entry s is the vertex occupied by site s


def _slot_placements(stereopermutation : Stereopermutation, canonical_sites : CanonicalSites) -> list[VertexIndex]:
    '''
    Assign each canonical slot a vertex bearing the same character, such that linked slots land on linked vertices

    Linked slots are placed first (by backtracking, in slot order, trying vertices in ascending order);
    all remaining slots then fill the free vertices of their character in ascending order
    '''
    if stereopermutation.size != canonical_sites.size:
        raise ValueError(f'Stereopermutation of size {stereopermutation.size} cannot place {canonical_sites.size} sites')

    characters = canonical_sites.characters
    placements : list[Optional[VertexIndex]] = [None] * canonical_sites.size
    occupied : set[VertexIndex] = set()
    linked_slots = sorted({slot for link in canonical_sites.links for slot in link})
    partners : dict[SlotIndex, list[SlotIndex]] = {slot : [] for slot in linked_slots}
    for first, second in canonical_sites.links:
        partners[first].append(second)
        partners[second].append(first)

    def consistent(slot : SlotIndex, vertex : VertexIndex) -> bool:
        if stereopermutation.characters[vertex] != characters[slot] or vertex in occupied:
            return False
        return all(
            tuple(sorted((vertex, placements[partner]))) in stereopermutation.links
                for partner in partners[slot]
                    if placements[partner] is not None
        )

    def place_linked(depth : int) -> bool:
        if depth == len(linked_slots):
            return True

        slot = linked_slots[depth]
        for vertex in range(stereopermutation.size):
            if consistent(slot, vertex):
                placements[slot] = vertex
                occupied.add(vertex)
                if place_linked(depth + 1):
                    return True
                placements[slot] = None
                occupied.remove(vertex)
        return False

    if not place_linked(0):
        raise ValueError(f'Links of sites "{canonical_sites}" cannot be placed onto stereopermutation "{stereopermutation}"')

    for slot, character in enumerate(characters):
        if placements[slot] is not None:
            continue
        vertex = next(
            vertex
                for vertex, vertex_character in enumerate(stereopermutation.characters)
                    if (vertex_character == character) and (vertex not in occupied)
        )
        placements[slot] = vertex
        occupied.add(vertex)

    return placements

def site_to_vertex_map(stereopermutation : Stereopermutation, canonical_sites : CanonicalSites) -> SiteToVertexMap:
    '''Deterministic placement of each site onto a vertex, consistent with a stereopermutation'''
    placements = _slot_placements(stereopermutation, canonical_sites)
    vertices = [None] * canonical_sites.size
    for slot, vertex in enumerate(placements):
        vertices[canonical_sites.sites_by_slot[slot]] = vertex

    return tuple(vertices)

def vertex_to_site_map(site_to_vertex : Sequence[VertexIndex]) -> tuple[SiteIndex, ...]:
    '''Invert a site-to-vertex map'''
    sites = [None] * len(site_to_vertex)
    for site, vertex in enumerate(site_to_vertex):
        sites[vertex] = site

    return tuple(sites)

def stereopermutation_from_site_to_vertex_map(
        site_to_vertex : Sequence[VertexIndex],
        canonical_sites : CanonicalSites,
    ) -> Stereopermutation:
    '''Reconstruct the stereopermutation realized by placing sites onto the given vertices'''
    if len(site_to_vertex) != canonical_sites.size:
        raise ValueError(f'Site-to-vertex map of size {len(site_to_vertex)} does not match {canonical_sites.size} sites')

    characters = [None] * canonical_sites.size
    for site, vertex in enumerate(site_to_vertex):
        characters[vertex] = canonical_sites.character_of_site(site)

    return Stereopermutation(
        characters=tuple(characters),
        links=frozenset(
            tuple(sorted((site_to_vertex[first], site_to_vertex[second])))
                for first, second in canonical_sites.site_links()
        ),
    )
