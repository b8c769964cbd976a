'''Collection of the stereopermutators of a molecule, keyed by the index of their central atom'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

import logging
LOGGER = logging.getLogger(__name__)

from typing import Iterator, Optional, Protocol, runtime_checkable
from collections import UserDict

from .ranking import AtomIndex


@runtime_checkable
class Stereopermutator(Protocol):
    '''Anything which tracks a chiral state centered on a single atom'''
    @property
    def center(self) -> int:
        ...

    @property
    def assigned(self) -> Optional[int]:
        ...

    @property
    def num_assignments(self) -> int:
        ...

    @property
    def involved_atoms(self) -> tuple[AtomIndex, ...]:
        ...

    def info(self) -> str:
        ...

    def propagate_index_removal(self, removed : int) -> None:
        ...


class StereopermutatorRegistry(UserDict):
    '''
    Arena of stereopermutators, at most one per central atom

    Stereopermutators reference atoms only by index, so the registry is responsible for
    relabeling all of them (and their keys) whenever an atom is removed from the graph
    '''
    def __setitem__(self, center : int, stereopermutator : Stereopermutator) -> None:
        if stereopermutator.center != center:
            raise KeyError(f'Stereopermutator centered on atom {stereopermutator.center} cannot be registered under atom {center}')
        super().__setitem__(center, stereopermutator)

    def add(self, stereopermutator : Stereopermutator) -> None:
        '''Register a stereopermutator under its central atom, replacing any already present there'''
        if stereopermutator.center in self.data:
            LOGGER.debug(f'Replacing existing stereopermutator on atom {stereopermutator.center}')
        self[stereopermutator.center] = stereopermutator

    def try_get(self, center : int) -> Optional[Stereopermutator]:
        return self.data.get(center, None)

    def involving(self, atom : AtomIndex) -> Iterator[Stereopermutator]:
        '''All stereopermutators which the given atom takes part in, either as center or as a site constituent'''
        for stereopermutator in self.data.values():
            if atom in stereopermutator.involved_atoms:
                yield stereopermutator

    @property
    def unassigned(self) -> list[Stereopermutator]:
        return [stereopermutator for stereopermutator in self.data.values() if stereopermutator.assigned is None]

    @property
    def has_unassigned(self) -> bool:
        return any(
            (stereopermutator.assigned is None) and (stereopermutator.num_assignments > 1)
                for stereopermutator in self.data.values()
        )

    def propagate_index_removal(self, removed : int) -> None:
        '''Discard the stereopermutator centered on a removed atom, then relabel all others'''
        if self.data.pop(removed, None) is not None:
            LOGGER.debug(f'Discarded stereopermutator on removed atom {removed}')

        relabeled = {}
        for stereopermutator in self.data.values():
            stereopermutator.propagate_index_removal(removed)
            relabeled[stereopermutator.center] = stereopermutator
        self.data = relabeled

    def info(self) -> str:
        return '\n'.join(self.data[center].info() for center in sorted(self.data))
