'''Spatial model of bond lengths and site geometries backed by the elements and bond types of an RDKit Mol'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import Sequence

import networkx as nx
from rdkit.Chem.rdchem import BondType, Mol

from ...chemistry.core import bond_distance
from ...chemistry.spatial import SiteGeometry, haptic_site_geometry
from ...options import BOND_RELATIVE_VARIANCE
from ...sutils.iteration import unordered_pairs


class RDKitSpatialModel:
    '''
    Estimates distances between atoms of an RDKit Mol from their covalent radii and bond orders

    Satisfies the SpatialModel protocol; atom indices are those of the Mol it was initialized with
    '''
    def __init__(self, rdmol : Mol, relative_variance : float=BOND_RELATIVE_VARIANCE) -> None:
        self.rdmol = rdmol
        self.relative_variance = relative_variance

    def _atomic_num(self, atom_idx : int) -> int:
        return self.rdmol.GetAtomWithIdx(atom_idx).GetAtomicNum()

    def bond_distance(self, atom_1 : int, atom_2 : int) -> float:
        bond = self.rdmol.GetBondBetweenAtoms(atom_1, atom_2)
        if bond is None:
            raise ValueError(f'Atoms {atom_1} and {atom_2} are not bonded')
        return bond_distance(self._atomic_num(atom_1), self._atomic_num(atom_2), bond.GetBondType())

    def minimum_bond_distance(self, atom_1 : int, atom_2 : int) -> float:
        '''Single bond length between the two atoms' elements; any closer and the atoms would be bonded'''
        return bond_distance(self._atomic_num(atom_1), self._atomic_num(atom_2), BondType.SINGLE)

    def site_geometry(self, center : int, site_atoms : Sequence[int]) -> SiteGeometry:
        site_graph = nx.Graph()
        site_graph.add_nodes_from(site_atoms)
        for atom_1, atom_2 in unordered_pairs(site_atoms):
            if self.rdmol.GetBondBetweenAtoms(atom_1, atom_2) is not None:
                site_graph.add_edge(atom_1, atom_2, length=self.bond_distance(atom_1, atom_2))

        return haptic_site_geometry(
            site_graph,
            center_distances={atom : self.bond_distance(center, atom) for atom in site_atoms},
            relative_variance=self.relative_variance,
        )
