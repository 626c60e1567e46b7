# -*- coding:utf-8 -*-
"""Gaussian input (gjf/com)"""
import re
import warnings
import numpy as np
from jinja2 import Template
from ..exceptions import StructuralParseError, MalformedLineWarning
from ..models.periodic_table import parseElement, labelToSymbol, Element

_re_charge_mult = re.compile(r"^\s*-?\d+\s+-?\d+\b")


def _symbol(token):
    # `C`, `C1`, `C(Fragment=1)`, `6`
    token = token.split("(")[0]
    if token.isdigit():
        try:
            return Element(int(token)).symbol
        except ValueError:
            return None
    return parseElement(token) or labelToSymbol(token)


def _floats(tokens):
    try:
        values = [float(x) for x in tokens]
    except ValueError:
        return None
    return values if np.all(np.isfinite(values)) else None


def parser(string):
    lines = string.splitlines()
    i = 0
    # Link 0 和 route 部分, 到第一个空行
    while i < len(lines) and lines[i].strip():
        i += 1
    while i < len(lines) and not lines[i].strip():
        i += 1
    title = lines[i].strip() if i < len(lines) else ""
    i += 1
    while i < len(lines) and not lines[i].strip():
        i += 1
    if i >= len(lines) or not _re_charge_mult.match(lines[i]):
        raise StructuralParseError("GJF: missing charge / multiplicity line")
    i += 1

    atom_symbols = []
    coords = []
    fixed = []
    vectors = []
    while i < len(lines) and lines[i].strip():
        parts = lines[i].replace(",", " ").split()
        i += 1
        if parts[0].upper() == "TV":
            row = _floats(parts[1:4])
            if row is None or len(row) != 3:
                warnings.warn("GJF: skip line {!r}".format(lines[i - 1]), MalformedLineWarning)
            else:
                vectors.append(row)
            continue
        symbol = _symbol(parts[0])
        # `C  -1  x y z`, 第二列为冻结标记
        flag = parts[1] if len(parts) >= 5 and parts[1] in ("0", "-1") else None
        row = _floats(parts[2:5] if flag else parts[1:4])
        if symbol is None or row is None or len(row) != 3:
            warnings.warn("GJF: skip line {!r}".format(lines[i - 1]), MalformedLineWarning)
            continue
        atom_symbols.append(symbol)
        coords.append(row)
        fixed.append(flag == "-1")

    info_dict = {"title": title,
                 "atom_symbols": atom_symbols,
                 "coords": np.array(coords, dtype=float).reshape((-1, 3)),
                 "fixed": fixed}
    if len(vectors) == 3:
        info_dict["lattice"] = np.array(vectors)
    elif vectors:
        warnings.warn("GJF: ignore {} TV lines, need 3".format(len(vectors)), MalformedLineWarning)
    return info_dict


def writer(info_dict):
    fixed = info_dict.get("fixed") or []
    lattice = info_dict.get("lattice")
    template = Template(GJF_TEMPLATE)
    return template.render(
        title=(info_dict.get("title") or "").strip() or "Gaussian input",
        atom_symbols=info_dict["atom_symbols"],
        coords=[tuple(x) for x in info_dict["coords"]],
        fixed=fixed if any(fixed) else None,
        lattice=None if lattice is None else [tuple(x) for x in lattice],
        zip=zip,
    )


GJF_TEMPLATE = """#P

{{ title }}

0 1
{%- for symbol, coord in zip(atom_symbols, coords) %}
{{ symbol }}{% if fixed %}  {{ "-1" if fixed[loop.index0] else "0" }}{% endif %}  {{ "%.10f  %.10f  %.10f" % coord }}
{%- endfor %}
{%- if lattice %}
{%- for row in lattice %}
TV  {{ "%.10f  %.10f  %.10f" % row }}
{%- endfor %}
{%- endif %}


"""
