'''Unit tests for reduction of rankings to canonical characters'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import pytest

from stereoperm.stereo.ranking import Link, RankingInformation
from stereoperm.stereo.canonicalize import (
    Canonicalizable,
    CanonicalSites,
    canonical_classes,
    symbolic_characters,
)


def single_atom_ranking(site_ranking : list[list[int]], links : list[Link]=None) -> RankingInformation:
    num_sites = sum(len(priority_class) for priority_class in site_ranking)
    return RankingInformation(
        sites=[[site + 1] for site in range(num_sites)],
        site_ranking=site_ranking,
        links=links or [],
    )

def test_canonical_class_order() -> None:
    '''Test that larger classes come first, with ties kept in priority order'''
    classes = canonical_classes([[0, 4], [2], [3, 5], [1]])

    assert classes == ((0, 4), (3, 5), (2,), (1,))
    assert symbolic_characters(classes) == ('A', 'A', 'B', 'B', 'C', 'D')

@pytest.mark.parametrize(
    'site_ranking_1,site_ranking_2',
    [
        ([[1], [0, 2]], [[0, 2], [1]]),
        ([[3], [0, 1], [2]], [[0, 1], [3], [2]]),
        ([[0, 1, 2], [3, 4], [5]], [[5], [3, 4], [0, 1, 2]]),
    ]
)
def test_characters_independent_of_class_order(site_ranking_1 : list, site_ranking_2 : list) -> None:
    '''Test that rankings with set-equal but differently ordered classes of distinct sizes produce identical characters'''
    canonical_1 = CanonicalSites.from_ranking(single_atom_ranking(site_ranking_1))
    canonical_2 = CanonicalSites.from_ranking(single_atom_ranking(site_ranking_2))

    assert canonical_1.characters == canonical_2.characters

def test_canonical_links() -> None:
    '''Test that links are reexpressed between canonical slots'''
    ranking = single_atom_ranking([[2], [0, 1], [3]], links=[Link((0, 2))])
    canonical = CanonicalSites.from_ranking(ranking)

    assert canonical.sites_by_slot == (0, 1, 2, 3)
    assert canonical.characters == ('A', 'A', 'B', 'C')
    assert canonical.links == frozenset({(0, 2)})
    assert canonical.site_links() == frozenset({(0, 2)})
    assert str(canonical) == 'AABC, A-B'

def test_site_characters() -> None:
    '''Test lookup of the character assigned to each site'''
    canonical = CanonicalSites.from_ranking(single_atom_ranking([[0, 4], [2], [3, 5], [1]]))

    assert [canonical.character_of_site(site) for site in range(6)] == ['A', 'D', 'C', 'B', 'A', 'B']
    assert canonical.composition() == (('A', 2), ('B', 2), ('C', 1), ('D', 1))
    assert isinstance(canonical, Canonicalizable)
