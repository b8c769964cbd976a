"""Enumeration, feasibility screening and state propagation of stereopermutations around idealized atom-centered shapes"""

from ._version import __version__

TOOLKIT_NAME : str = 'The Stereopermutation Toolkit (StereoPerm)'
