'''Tunable defaults and policies governing how stereopermutators model space and carry chiral state'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from enum import Enum

import numpy as np


class ChiralStatePreservation(Enum):
    '''
    Policy for carrying a chiral state over when the number of sites around a central atom changes

    NONE : never attempt to preserve chiral state; any change of shape size unassigns
    EFFORTLESS_AND_UNIQUE : preserve only if exactly one best index mapping exists AND it barely distorts the shape
    UNIQUE : preserve whenever exactly one best index mapping exists, regardless of distortion
    RANDOM_FROM_MULTIPLE_BEST : pick uniformly at random among several equally-good index mappings
    '''
    NONE = 0
    EFFORTLESS_AND_UNIQUE = 1
    UNIQUE = 2
    RANDOM_FROM_MULTIPLE_BEST = 3

DEFAULT_CHIRAL_STATE_PRESERVATION : ChiralStatePreservation = ChiralStatePreservation.EFFORTLESS_AND_UNIQUE
EFFORTLESS_DISTORTION_THRESHOLD : float = 0.2 # upper bound on angular distortion (radians, summed) deemed "effortless"

# spatial modelling
BOND_RELATIVE_VARIANCE : float = 0.01 # fractional slack applied to bond and site distances
ANGLE_ABSOLUTE_VARIANCE : float = np.pi / 36 # 5 degrees of slack on idealized site-site angles
REMOVE_TRANS_SPANNING_LINKS : bool = False # whether enumeration discards links bridging (near-)linear vertex pairs
