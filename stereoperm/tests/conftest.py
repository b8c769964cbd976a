'''Shared fixtures for stereopermutation tests'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import Optional, Sequence

import pytest

from stereoperm.chemistry.spatial import SiteGeometry, ValueBounds


class UniformSpatialModel:
    '''Spatial model in which all bonds to the center share one length, all other bonds another, and all haptic sites one cone'''
    def __init__(
            self,
            center : int=0,
            center_distance : float=2.0,
            bond_length : float=1.5,
            haptic_cone_angle : Optional[ValueBounds]=None,
        ) -> None:
        self.center = center
        self.center_distance = center_distance
        self.bond_length = bond_length
        self.haptic_cone_angle = haptic_cone_angle

    def bond_distance(self, atom_1 : int, atom_2 : int) -> float:
        if self.center in (atom_1, atom_2):
            return self.center_distance
        return self.bond_length

    def minimum_bond_distance(self, atom_1 : int, atom_2 : int) -> float:
        return self.center_distance

    def site_geometry(self, center : int, site_atoms : Sequence[int]) -> SiteGeometry:
        distance = ValueBounds.around(self.center_distance, 0.01)
        if len(site_atoms) > 1:
            return SiteGeometry(distance=distance, cone_angle=self.haptic_cone_angle)
        return SiteGeometry(distance=distance)


@pytest.fixture
def spatial_model() -> UniformSpatialModel:
    return UniformSpatialModel()

@pytest.fixture
def spatial_model_type() -> type[UniformSpatialModel]:
    return UniformSpatialModel
