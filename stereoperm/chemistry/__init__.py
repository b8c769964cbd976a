'''Chemical reference data and models of the space occupied by the sites around an atom'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from .core import *
from .spatial import (
    ValueBounds,
    SiteGeometry,
    SpatialModel,
    haptic_site_geometry,
)
