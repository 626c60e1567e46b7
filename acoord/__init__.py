# -*- coding:utf-8 -*-
import logging

__version__ = '0.3.0'

logger = logging.getLogger('acoord')
logger.addHandler(logging.NullHandler())

from ._config import config  # noqa: E402
from .exceptions import (  # noqa: E402
    StructuralParseError,
    MalformedLineWarning,
    UnknownElementError,
    DegenerateGeometryError,
    UnsupportedExportError,
    UnsupportedFormatError,
    PreconditionError,
)
from .models import Atom, UnitCell, Structure, Bond, ImageAtom  # noqa: E402
from .io import (  # noqa: E402
    FileFormat,
    resolveFormat,
    supportedFormats,
    loadStructures,
    saveStructure,
    saveStructures,
)
