'''Unit tests for extracting sites, links and rankings around atoms of RDKit Mols'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import pytest

import numpy as np
from rdkit import Chem
from rdkit.Chem import AllChem
from rdkit.Chem.rdchem import BondType

from stereoperm.chemistry.core import bond_distance
from stereoperm.geometry.shapes import OCTAHEDRAL, TETRAHEDRAL
from stereoperm.stereo.ranking import Link
from stereoperm.stereo.permutator import AtomStereopermutator
from stereoperm.interfaces.rdkit import (
    RDKitSpatialModel,
    atom_positions_from_rdkit,
    chemical_graph_from_rdkit,
    links_from_rdkit,
    ranking_from_rdkit,
    sites_from_rdkit,
)


@pytest.fixture
def chelate_complex() -> Chem.Mol:
    '''Cobalt bearing four fluorides and one ethylenediamine'''
    return Chem.MolFromSmiles('[Co]1(F)(F)(F)(F)NCCN1', sanitize=False)

@pytest.fixture
def alkene_complex() -> Chem.Mol:
    '''Iron bearing three fluorides and an eta-2 ethylene'''
    return Chem.MolFromSmiles('C1=C[Fe]1(F)(F)F', sanitize=False)

@pytest.fixture
def cyclopropane() -> Chem.Mol:
    '''1-chloro-1-fluorocyclopropane'''
    return Chem.MolFromSmiles('FC1(Cl)CC1')

@pytest.fixture
def epoxide() -> Chem.Mol:
    '''2-fluoro-2-methyloxirane'''
    return Chem.MolFromSmiles('C[C@]1(F)CO1')


def test_chemical_graph(chelate_complex : Chem.Mol) -> None:
    graph = chemical_graph_from_rdkit(chelate_complex)
    assert graph.number_of_nodes() == 9
    assert graph.number_of_edges() == 9
    assert graph.nodes[0]['atomic_num'] == 27
    assert graph.edges[6, 7]['bondtype'] == Chem.BondType.SINGLE

def test_monodentate_sites(chelate_complex : Chem.Mol) -> None:
    '''Test that non-adjacent neighbors each form their own site'''
    assert sites_from_rdkit(chelate_complex, 0) == [[1], [2], [3], [4], [5], [8]]

def test_haptic_sites(alkene_complex : Chem.Mol) -> None:
    '''Test that bonded neighbors are merged into a single haptic site'''
    assert sites_from_rdkit(alkene_complex, 2) == [[0, 1], [3], [4], [5]]

def test_chelate_link(chelate_complex : Chem.Mol) -> None:
    '''Test that the bridge between the two amine sites is found and closed through the center'''
    sites = sites_from_rdkit(chelate_complex, 0)
    assert links_from_rdkit(chelate_complex, 0, sites) == [Link((4, 5), cycle=(0, 5, 6, 7, 8, 0))]

def test_haptic_site_unlinked(alkene_complex : Chem.Mol) -> None:
    '''Test that the ring closed by a haptic site through the center does not count as a link'''
    sites = sites_from_rdkit(alkene_complex, 2)
    assert links_from_rdkit(alkene_complex, 2, sites) == []

def test_main_group_ring_sites(cyclopropane : Chem.Mol) -> None:
    '''Test that bonded neighbors of a main group atom remain separate sites, joined by a link instead'''
    sites = sites_from_rdkit(cyclopropane, 1)
    assert sites == [[0], [2], [3], [4]]
    assert links_from_rdkit(cyclopropane, 1, sites) == [Link((2, 3), cycle=(1, 3, 4, 1))]

def test_epoxide_stereopermutations(epoxide : Chem.Mol) -> None:
    '''Test that the ring carbon of an epoxide is a regular tetrahedral stereocenter'''
    ranking = ranking_from_rdkit(epoxide, 1)
    assert ranking.sites == [[0], [2], [3], [4]]
    assert ranking.links == [Link((2, 3), cycle=(1, 3, 4, 1))]

    permutator = AtomStereopermutator(TETRAHEDRAL, 1, ranking, RDKitSpatialModel(epoxide))
    assert permutator.num_stereopermutations == 2
    assert permutator.num_assignments == 2

def test_symmetry_ranking(chelate_complex : Chem.Mol) -> None:
    '''Test that constitutionally-equivalent sites fall into the same priority class'''
    ranking = ranking_from_rdkit(chelate_complex, 0)
    assert sorted(sorted(priority_class) for priority_class in ranking.site_ranking) == [[0, 1, 2, 3], [4, 5]]

def test_explicit_ranking(chelate_complex : Chem.Mol) -> None:
    '''Test that a supplied site ranking takes precedence over graph symmetry'''
    ranking = ranking_from_rdkit(chelate_complex, 0, site_ranking=[[4, 5], [0], [1, 2, 3]])
    assert ranking.site_ranking == [[4, 5], [0], [1, 2, 3]]


# Spatial modelling
def test_spatial_model_bonds(chelate_complex : Chem.Mol) -> None:
    '''Test that only bonded atoms have a bond distance, but any pair has a minimum distance'''
    spatial_model = RDKitSpatialModel(chelate_complex)
    assert spatial_model.bond_distance(6, 7) > 0.0
    assert spatial_model.minimum_bond_distance(0, 6) < spatial_model.bond_distance(0, 5) + spatial_model.bond_distance(5, 6)

    with pytest.raises(ValueError):
        spatial_model.bond_distance(0, 6)

def test_minimum_bond_distance(chelate_complex : Chem.Mol) -> None:
    '''Test that unbonded atoms may approach no closer than a single bond between their elements'''
    spatial_model = RDKitSpatialModel(chelate_complex, relative_variance=0.1)
    assert spatial_model.minimum_bond_distance(0, 6) == bond_distance(27, 6, BondType.SINGLE)

def test_alkene_cone(alkene_complex : Chem.Mol) -> None:
    '''Test that the eta-2 site sweeps out a cone while single-atom sites do not'''
    spatial_model = RDKitSpatialModel(alkene_complex)
    haptic_geometry = spatial_model.site_geometry(2, [0, 1])
    assert haptic_geometry.cone_angle is not None
    assert 0.0 < haptic_geometry.cone_angle.lower <= haptic_geometry.cone_angle.upper < np.pi/2
    assert haptic_geometry.distance.upper < spatial_model.bond_distance(2, 0)

    assert spatial_model.site_geometry(2, [3]).cone_angle.upper == 0.0

def test_chelate_feasibility(chelate_complex : Chem.Mol) -> None:
    '''Test that realistic ethylenediamine bond lengths rule out its trans placement'''
    ranking = ranking_from_rdkit(chelate_complex, 0)
    permutator = AtomStereopermutator(OCTAHEDRAL, 0, ranking, RDKitSpatialModel(chelate_complex))

    assert permutator.num_stereopermutations == 2
    assert permutator.num_assignments == 1


# Conformers
def test_no_conformer(chelate_complex : Chem.Mol) -> None:
    assert atom_positions_from_rdkit(chelate_complex) is None

@pytest.mark.parametrize('smiles', ['[C@H](F)(Cl)Br', '[C@@H](F)(Cl)Br'])
def test_fit_to_conformer(smiles : str) -> None:
    '''Test that fitting to an embedded conformer recovers a tetrahedral, assigned center'''
    rdmol = Chem.AddHs(Chem.MolFromSmiles(smiles))
    conformer_idx = AllChem.EmbedMolecule(rdmol, randomSeed=1234)
    positions = atom_positions_from_rdkit(rdmol, conformer_idx)
    assert positions.shape == (rdmol.GetNumAtoms(), 3)

    permutator = AtomStereopermutator(TETRAHEDRAL, 0, ranking_from_rdkit(rdmol, 0), RDKitSpatialModel(rdmol))
    permutator.fit(positions)
    assert permutator.shape == TETRAHEDRAL
    assert permutator.assigned is not None

def test_enantiomers_fit_differently() -> None:
    '''Test that mirror-image conformers are assigned opposite stereopermutations'''
    assignments = []
    for smiles in ('[C@H](F)(Cl)Br', '[C@@H](F)(Cl)Br'):
        rdmol = Chem.AddHs(Chem.MolFromSmiles(smiles))
        conformer_idx = AllChem.EmbedMolecule(rdmol, randomSeed=1234)

        ranking = ranking_from_rdkit(rdmol, 0, site_ranking=[[0], [1], [2], [3]])
        permutator = AtomStereopermutator(TETRAHEDRAL, 0, ranking, RDKitSpatialModel(rdmol))
        permutator.fit(atom_positions_from_rdkit(rdmol, conformer_idx))
        assignments.append(permutator.assigned)

    assert sorted(assignments) == [0, 1]
