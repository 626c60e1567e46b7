# -*- coding:utf-8 -*-
import re
import warnings
import numpy as np
from jinja2 import Template
from .._config import config
from ..exceptions import StructuralParseError, MalformedLineWarning
from ..models.periodic_table import parseElement

_re_xyz_block = re.compile(r"^\*\s*xyz\b", re.IGNORECASE)


def parser(string):
    lines = string.splitlines()
    start = None
    for n, line in enumerate(lines):
        if _re_xyz_block.match(line.strip()):
            start = n
            break
    if start is None:
        raise StructuralParseError('ORCA: missing "* xyz" block')
    atom_symbols = []
    coords = []
    for line in lines[start + 1:]:
        line = line.split("#")[0].strip()
        if not line:
            continue
        if line.startswith("*"):
            break
        parts = line.split()
        symbol = parseElement(parts[0])
        try:
            xyz = [float(x) for x in parts[1:4]]
        except ValueError:
            xyz = []
        if symbol is None or len(xyz) != 3:
            warnings.warn("ORCA: skip line {!r}".format(line), MalformedLineWarning)
            continue
        atom_symbols.append(symbol)
        coords.append(xyz)
    return {"title": "",
            "atom_symbols": atom_symbols,
            "coords": np.array(coords, dtype=float).reshape((-1, 3))}


def writer(info_dict):
    template = Template(ORCA_TEMPLATE)
    return template.render(
        method=config.EXPORT["orca_method"],
        maxcore=config.EXPORT["orca_maxcore"],
        nprocs=config.EXPORT["orca_nprocs"],
        atom_symbols=info_dict["atom_symbols"],
        coords=[tuple(x) for x in info_dict["coords"]],
        zip=zip,
    )


ORCA_TEMPLATE = """! {{ method }}
%maxcore     {{ maxcore }}
%pal nprocs   {{ nprocs }} end
* xyz 0 1
{%- for symbol, coord in zip(atom_symbols, coords) %}
{{ symbol }}  {{ "%.10f  %.10f  %.10f" % coord }}
{%- endfor %}
*
"""
