'''Interfaces between RDKit Mol objects and the sites, rankings and spatial models around their atoms'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'


from .components import (
    chemical_graph_from_rdkit,
    atom_positions_from_rdkit,
    sites_from_rdkit,
    links_from_rdkit,
    ranking_from_rdkit,
)
from .spatial import RDKitSpatialModel

# CORE CHEMISTRY UTILS WHICH ARE RDKIT-SPECIFIC
from ...chemistry.core import suppress_rdkit_logs
