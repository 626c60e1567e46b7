from .atom import Atom
from .pbc import UnitCell
from .structure import Structure, Bond, ImageAtom, normalizeBondPair
from .symmetry import SymmOp
from .periodic_table import *
