# -*- coding:utf-8 -*-
import warnings
import numpy as np
from jinja2 import Template
from ..exceptions import StructuralParseError, MalformedLineWarning
from ..models.periodic_table import parseElement


def _float(text):
    try:
        return float(text)
    except ValueError:
        return float("nan")


def _element(line):
    """element 列 77-78; 没有时按原子名规则: 第 13 列为空或数字时元素为第 14 列单字母, 否则为 13-14 列"""
    symbol = parseElement(line[76:78].strip())
    if symbol is not None:
        return symbol
    name = line[12:16].ljust(4)
    if name[0] == " " or name[0].isdigit():
        return parseElement(name[1])
    return parseElement(name[:2]) or parseElement(name[0])


def parser(string):
    title = []
    latt6 = None
    atom_symbols = []
    coords = []
    for line in string.splitlines():
        if line.startswith("TITLE"):
            title.append(line[10:].strip())
        elif line.startswith("CRYST1"):
            values = [_float(line[s:e]) for s, e in ((6, 15), (15, 24), (24, 33), (33, 40), (40, 47), (47, 54))]
            if np.all(np.isfinite(values)):
                latt6 = values
            else:
                warnings.warn("PDB: skip line {!r}".format(line), MalformedLineWarning)
        elif line.startswith(("ATOM", "HETATM")):
            xyz = [_float(line[30:38]), _float(line[38:46]), _float(line[46:54])]
            symbol = _element(line)
            if symbol is None or not np.all(np.isfinite(xyz)):
                warnings.warn("PDB: skip line {!r}".format(line), MalformedLineWarning)
                continue
            atom_symbols.append(symbol)
            coords.append(xyz)
        elif line.startswith("ENDMDL"):
            # 只读第一个 MODEL
            break
    if len(atom_symbols) == 0:
        raise StructuralParseError("PDB: no ATOM or HETATM records")
    return {"title": " ".join(title),
            "atom_symbols": atom_symbols,
            "coords": np.array(coords, dtype=float),
            "latt6": latt6}


def writer(info_dict):
    atom_symbols = info_dict["atom_symbols"]
    template = Template(PDB_TEMPLATE)
    return template.render(
        title=info_dict.get("title"),
        latt6=None if info_dict.get("latt6") is None else tuple(info_dict["latt6"]),
        atoms=[(n + 1, s if len(s) > 1 else " " + s, s) + tuple(xyz)
               for n, (s, xyz) in enumerate(zip(atom_symbols, info_dict["coords"]))],
    )


PDB_TEMPLATE = """{%- if title %}TITLE     {{ title }}
{% endif -%}
{%- if latt6 %}{{ "CRYST1%9.3f%9.3f%9.3f%7.2f%7.2f%7.2f P 1" % latt6 }}
{% endif -%}
{%- for atom in atoms %}{{ "ATOM  %5d %-4s MOL  %4d    %8.3f%8.3f%8.3f%6.2f%6.2f          %2s" % (atom[0], atom[1], 1, atom[3], atom[4], atom[5], 1.0, 0.0, atom[2]) }}
{% endfor -%}
END
"""
