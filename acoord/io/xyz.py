# -*- coding:utf-8 -*-
import re
import warnings
import numpy as np
from jinja2 import Template
from .. import logger as root_logger
from ..exceptions import StructuralParseError, MalformedLineWarning
from ..models.periodic_table import parseElement, Element
logger = root_logger.getChild('io.xyz')

_re_lattice = re.compile(r'Lattice\s*=\s*"([^"]+)"', re.IGNORECASE)
_re_properties = re.compile(r'Properties\s*=\s*["\']?([^\s"\']+)', re.IGNORECASE)
_re_keyvalue = re.compile(r'[\w-]+\s*=\s*(?:"[^"]*"|\'[^\']*\'|\S+)')


def _symbol(token):
    if token.isdigit():
        try:
            return Element(int(token)).symbol
        except ValueError:
            return None
    return parseElement(token)


def _parse_lattice(comment):
    m = _re_lattice.search(comment)
    if m is None:
        return None
    try:
        values = [float(x) for x in m.group(1).split()]
    except ValueError:
        values = []
    if len(values) != 9:
        warnings.warn('XYZ: ignore Lattice with {} values'.format(len(values)), MalformedLineWarning)
        return None
    return np.array(values).reshape((3, 3))


def _parse_properties(comment):
    """extxyz Properties=name:type:count:... -> (species column, pos column)"""
    m = _re_properties.search(comment)
    if m is None:
        return 0, 1
    parts = m.group(1).split(':')
    species = pos = None
    cursor = 0
    for name, _, count in zip(parts[0::3], parts[1::3], parts[2::3]):
        try:
            count = int(count)
        except ValueError:
            continue
        name = name.lower()
        if name in ('species', 'element'):
            species = cursor
        elif name == 'pos':
            pos = cursor
        cursor += count
    if species is None or pos is None:
        return 0, 1
    return species, pos


def _title(comment):
    return " ".join(_re_keyvalue.sub("", comment).split())


def trajectory_parser(string):
    lines = string.splitlines()
    frames = []
    i = 0
    while i < len(lines):
        while i < len(lines) and not lines[i].strip():
            i += 1
        if i >= len(lines):
            break
        try:
            natom = int(lines[i].strip())
        except ValueError:
            natom = -1
        if natom < 0:
            if len(frames) == 0:
                raise StructuralParseError('XYZ: first line must be the atom count, got {!r}'.format(lines[i]))
            warnings.warn('XYZ: stop at line {}: {!r}'.format(i + 1, lines[i]), MalformedLineWarning)
            break
        if i + 1 >= len(lines):
            break
        comment = lines[i + 1].strip()
        species_col, pos_col = _parse_properties(comment)
        atom_symbols = []
        coords = []
        start = i + 2
        for n in range(start, min(len(lines), start + natom)):
            lsp = lines[n].split()
            try:
                symbol = _symbol(lsp[species_col])
                xyz = [float(x) for x in lsp[pos_col: pos_col + 3]]
            except (IndexError, ValueError):
                symbol, xyz = None, []
            if symbol is None or len(xyz) != 3 or not np.all(np.isfinite(xyz)):
                warnings.warn('XYZ: skip line {}: {!r}'.format(n + 1, lines[n]), MalformedLineWarning)
                continue
            atom_symbols.append(symbol)
            coords.append(xyz)
        info_dict = {"title": _title(comment),
                     "atom_symbols": atom_symbols,
                     "coords": np.array(coords, dtype=float).reshape((-1, 3))}
        lattice = _parse_lattice(comment)
        if lattice is not None:
            info_dict["lattice"] = lattice
        frames.append(info_dict)
        i = start + natom
    if len(frames) == 0:
        raise StructuralParseError('XYZ: no frame found')
    logger.debug('{} frames'.format(len(frames)))
    return frames


def parser(string):
    return trajectory_parser(string)[-1]


def writer(info_dict):
    comment = info_dict.get('title') or 'Structure'
    if info_dict.get('lattice') is not None:
        lattice = " ".join("%.10f" % x for x in np.ravel(info_dict['lattice']))
        comment = '{} Lattice="{}" Properties=species:S:1:pos:R:3 pbc="T T T"'.format(comment, lattice)
    template = Template(XYZ_TEMPLATE)
    return template.render(
        natom=len(info_dict['atom_symbols']),
        comment=comment,
        atom_symbols=info_dict['atom_symbols'],
        coords=[tuple(x) for x in info_dict['coords']],
        zip=zip,
    )


def trajectory_writer(info_dicts):
    return "".join(writer(info_dict) for info_dict in info_dicts)


XYZ_TEMPLATE = """{{ natom }}
{{ comment }}
{% for symbol, coord in zip(atom_symbols, coords) %}\
{{ "%-2s" % symbol }}  {{ "%.10f  %.10f  %.10f" % coord }}
{% endfor %}
"""
