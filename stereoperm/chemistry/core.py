'''Reference for fundamental chemical quantities, namely bond orders, covalent radii and bond lengths'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Generator, Literal, Optional
from contextlib import contextmanager

import numpy as np

from rdkit.Chem.rdmolfiles import MolFromSmiles
from rdkit.Chem.rdchem import BondType, GetPeriodicTable
from rdkit.RDLogger import DisableLog, EnableLog, _levels as RDLoggerNames
RDKitPeriodicTable = GetPeriodicTable()


UFF_BOND_ORDER_CORRECTION : float = 0.1332 # lambda parameter of the Universal Force Field's bond order correction


@contextmanager
def suppress_rdkit_logs(spec : Literal[*RDLoggerNames]='rdApp.error') -> Generator[None, None, None]:
    '''Temporarily suppress C++ based RDKit log output (useful in conjunction with handling Exceptions thrown by RDKit)'''
    if spec not in RDLoggerNames:
        raise ValueError(f'Logging target must be one of {RDLoggerNames}')

    DisableLog(spec)
    try:
        yield None # execute "with" block code here
    finally:
        EnableLog(spec)

def _compile_bond_order_reference() -> dict[BondType, float]:
    '''
    Generate reference table of BondType to corresponding electronic bond order
    (e.g. aromatic = 1.5, double = 2, etc.), consistent with RDKit's definition
    '''
    dummy = MolFromSmiles('*-*')
    bond = dummy.GetBondWithIdx(0) # DEV: can't directly initialize Bond from Python, so using this hacky approach to setup instead

    bond_orders_by_bond_type : dict[BondType, float] = dict()
    for bondtype in BondType.names.values():
        bond.SetBondType(bondtype)
        with suppress_rdkit_logs('rdApp.error'):
            try:
                bond_orders_by_bond_type[bondtype] = bond.GetBondTypeAsDouble()
            except RuntimeError:
                LOGGER.debug(f'RDKit BondType {bondtype!s} does not have a double-valued bond order defined')

    return bond_orders_by_bond_type
BOND_ORDER : dict[BondType, float] = _compile_bond_order_reference()


def bond_order(bondtype : Optional[BondType]) -> float:
    '''
    Electronic bond order of an RDKit bond type, for the purposes of estimating bond lengths

    Types without a meaningful positive order (e.g. zero-order, dative or unspecified bonds) are treated as single bonds
    '''
    order = BOND_ORDER.get(bondtype, 0.0) if (bondtype is not None) else 0.0
    if order <= 0.0:
        LOGGER.warning(f'Bond type {bondtype!s} has no positive bond order; treating as a single bond for length estimation')
        return 1.0
    return order

def covalent_radius(atomic_num : int) -> float:
    '''Covalent radius (in Angstrom) of an element, as tabulated by RDKit'''
    return RDKitPeriodicTable.GetRcovalent(atomic_num)

def bond_distance(atomic_num_1 : int, atomic_num_2 : int, bondtype : Optional[BondType]=BondType.SINGLE) -> float:
    '''
    Estimated equilibrium length (in Angstrom) of a bond between two elements

    Sum of covalent radii, shortened by the Universal Force Field's logarithmic bond order correction
    '''
    radius_sum = covalent_radius(atomic_num_1) + covalent_radius(atomic_num_2)
    return radius_sum - UFF_BOND_ORDER_CORRECTION * radius_sum * np.log(bond_order(bondtype))


# Element classification
NON_MAIN_GROUP_ATOMIC_NUMS : frozenset[int] = frozenset(
    atomic_num
        for first, last in (
            (21, 30),   # 3d transition metals
            (39, 48),   # 4d transition metals
            (57, 80),   # lanthanides and 5d transition metals
            (89, 112),  # actinides and 6d transition metals
        )
            for atomic_num in range(first, last + 1)
)

def is_main_group_element(atomic_num : int) -> bool:
    '''Whether an element lies in the s- or p-block of the periodic table'''
    return atomic_num not in NON_MAIN_GROUP_ATOMIC_NUMS
