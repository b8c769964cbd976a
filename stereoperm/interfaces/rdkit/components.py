'''
Utilities for extracting the sites, links and priorities around
a central atom from RDKit Mols, and recasting them as rankings
'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import (
    Callable,
    Hashable,
    Iterable,
    Optional,
    Sequence,
    Type,
    TypeVar,
)
from itertools import product as cartesian

import numpy as np
import networkx as nx
GraphLike = TypeVar('GraphLike', bound=nx.Graph)

from rdkit.Chem.rdchem import Atom, Mol
from rdkit.Chem.rdmolfiles import CanonicalRankAtoms
from rdkit.Chem.rdmolops import FastFindRings

from ...chemistry.core import is_main_group_element
from ...geometry.arraytypes import Shape, N
from ...stereo.ranking import Link, RankingInformation
from ...sutils.iteration import unordered_pairs


# Graph and position extraction
def chemical_graph_from_rdkit(
    rdmol : Mol,
    label_method : Callable[[Atom], Hashable]=lambda atom : atom.GetIdx(),
    graph_type : Type[GraphLike]=nx.Graph,
) -> GraphLike:
    '''
    Create a graph from an RDKit Mol whose vertices are atoms (bearing their atomic number)
    and whose edges are bonds (bearing their RDKit BondType)

    Parameters
    ----------
    rdmol : Chem.Mol
        The RDKit Mol object to convert.
    label_method : Callable[[Chem.Atom], Hashable], default lambda atom : atom.GetIdx()
        Method to uniquely label each atom as a vertex in the graph
        Default to choosing the atom's index
    graph_type : Type[nx.Graph], default nx.Graph
        The networkx graph class to instantiate
    '''
    graph = graph_type()
    for atom in rdmol.GetAtoms():
        graph.add_node(label_method(atom), atomic_num=atom.GetAtomicNum())
    for bond in rdmol.GetBonds():
        graph.add_edge(
            label_method(bond.GetBeginAtom()),
            label_method(bond.GetEndAtom()),
            bondtype=bond.GetBondType(),
        )

    return graph

def atom_positions_from_rdkit(
    rdmol : Mol,
    conformer_idx : Optional[int]=None,
) -> Optional[np.ndarray[Shape[N, 3], float]]:
    '''
    Boilerplate for fetching all atom positions (if conformer it set) from an RDKit Mol, indexed by atom index

    Returns None if no conformer index is provided
    '''
    if conformer_idx is None:
        return None

    conformer = rdmol.GetConformer(conformer_idx) # DEVNOTE: will raise Exception if bad ID is provided; no need to check locally
    return np.array(conformer.GetPositions(), dtype=float)


# Sites and links
def sites_from_rdkit(rdmol : Mol, center : int) -> list[list[int]]:
    '''
    Group the atoms bonded to a central atom into sites

    Around transition metals, lanthanides and actinides, bonded atoms which are also bonded to one another
    (e.g. the carbons of an eta-2 alkene) constitute a single haptic site; around main group elements,
    every bonded atom is its own site and small rings (e.g. epoxides) are instead expressed as links.
    Sites are returned sorted by their lowest atom index
    '''
    graph = chemical_graph_from_rdkit(rdmol)
    if is_main_group_element(graph.nodes[center]['atomic_num']):
        return sorted([neighbor] for neighbor in graph.neighbors(center))

    neighbors = graph.subgraph(graph.neighbors(center))
    return sorted(sorted(component) for component in nx.connected_components(neighbors))

def links_from_rdkit(rdmol : Mol, center : int, sites : Sequence[Sequence[int]]) -> list[Link]:
    '''
    Find the bridges connecting pairs of sites by a path which avoids the central atom and all other sites

    The shortest such path is chosen for each pair; the cycle it closes through the center is recorded on the link
    '''
    graph = chemical_graph_from_rdkit(rdmol)
    links = []
    for site_idx_1, site_idx_2 in unordered_pairs(range(len(sites))):
        excluded = {center}.union(
            atom
                for site_idx, site in enumerate(sites)
                    if site_idx not in (site_idx_1, site_idx_2)
                        for atom in site
        )
        bridge_graph = graph.subgraph(node for node in graph.nodes if node not in excluded)

        shortest_path = None
        for source, target in cartesian(sites[site_idx_1], sites[site_idx_2]):
            try:
                path = nx.shortest_path(bridge_graph, source, target)
            except nx.NetworkXNoPath:
                continue
            if (shortest_path is None) or (len(path) < len(shortest_path)):
                shortest_path = path

        if shortest_path is not None:
            LOGGER.debug(f'Sites {site_idx_1} and {site_idx_2} around atom {center} are bridged via atoms {shortest_path}')
            links.append(Link(sites=(site_idx_1, site_idx_2), cycle=(center, *shortest_path, center)))

    return links


# Ranking
def _symmetry_classes(rdmol : Mol) -> list[int]:
    '''Graph-symmetry class of each atom; symmetry-equivalent atoms share a class, higher classes rank higher'''
    rdmol = Mol(rdmol) # work on a copy, so as not to perceive rings on the caller's Mol
    rdmol.UpdatePropertyCache(strict=False)
    FastFindRings(rdmol)

    return list(CanonicalRankAtoms(rdmol, breakTies=False))

def ranking_from_rdkit(
    rdmol : Mol,
    center : int,
    site_ranking : Optional[Iterable[Iterable[int]]]=None,
) -> RankingInformation:
    '''
    Assemble the sites, links and priorities around a central atom of an RDKit Mol

    Parameters
    ----------
    rdmol : Chem.Mol
        The molecule containing the central atom
    center : int
        Index of the central atom
    site_ranking : Iterable[Iterable[int]], optional
        Priority classes of site indices (highest first), e.g. as determined by CIP rules
        If not provided, sites are instead grouped by graph symmetry (constitutionally-equivalent sites share a class),
        which distinguishes the same sites as a full ranking would but does NOT order them by CIP priority

    Returns
    -------
    ranking : RankingInformation
        The sites, priority classes and links around the central atom
    '''
    sites = sites_from_rdkit(rdmol, center)
    if site_ranking is None:
        classes = _symmetry_classes(rdmol)
        site_keys = [tuple(sorted((classes[atom] for atom in site), reverse=True)) for site in sites]
        site_ranking = [
            [site_idx for site_idx, site_key in enumerate(site_keys) if site_key == key]
                for key in sorted(set(site_keys), reverse=True)
        ]

    return RankingInformation(
        sites=sites,
        site_ranking=site_ranking,
        links=links_from_rdkit(rdmol, center, sites),
    )
