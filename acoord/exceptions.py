# -*- coding:utf-8 -*-
"""Errors and warnings raised while reading, editing and writing structures"""


class StructuralParseError(ValueError):
    """A section the format requires (atom count, lattice block, marker line) is missing"""


class MalformedLineWarning(UserWarning):
    """A single data line failed validation and was skipped"""


class UnknownElementError(ValueError):
    """Token does not resolve to a periodic-table symbol"""


class DegenerateGeometryError(ValueError):
    """Cell parameters or lattice vectors give a non-positive volume"""


class UnsupportedExportError(IOError):
    """The format has no writer for the requested operation"""


class UnsupportedFormatError(IOError):
    """No codec is registered for the extension or format id"""


class PreconditionError(ValueError):
    """The structure lacks data the operation needs, e.g. CIF export without a cell"""
