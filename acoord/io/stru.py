# -*- coding:utf-8 -*-
"""ABACUS STRU"""
import warnings
import numpy as np
from jinja2 import Template
from ..exceptions import StructuralParseError, MalformedLineWarning
from ..models.periodic_table import parseElement, labelToSymbol, getAtomicMass
from ..utils import Units
from .vasp import group_species

BOHR = Units.bohr_abacus

SECTIONS = ("ATOMIC_SPECIES", "NUMERICAL_ORBITAL", "LATTICE_CONSTANT",
            "LATTICE_VECTORS", "LATTICE_PARAMETERS", "ATOMIC_POSITIONS")

CENTER_OFFSETS = {
    "center_xyz": (0.5, 0.5, 0.5),
    "center_xy": (0.5, 0.5, 0.0),
    "center_xz": (0.5, 0.0, 0.5),
    "center_yz": (0.0, 0.5, 0.5),
}


def _clean(line):
    return line.split("//")[0].split("#")[0].strip()


def _move_flags(parts):
    """`x y z 0 0 1` 或者 `x y z m 0 0 1 mag 1.0`"""
    if len(parts) >= 3 and parts[0].lower() != "m" and all(p in ("0", "1") for p in parts[:3]):
        return parts[:3]
    lower = [p.lower() for p in parts]
    if "m" in lower:
        flags = parts[lower.index("m") + 1: lower.index("m") + 4]
        if len(flags) == 3 and all(p in ("0", "1") for p in flags):
            return flags
    return None


def _center_offset(mode, lattice):
    if lattice is None:
        return np.zeros(3)
    for key, frac in CENTER_OFFSETS.items():
        if key in mode:
            return np.dot(frac, lattice)
    return np.zeros(3)


def _to_angstrom(xyz, mode, lattice, latconst):
    if mode.startswith("direct"):
        if lattice is None:
            raise StructuralParseError("STRU: Direct positions need LATTICE_CONSTANT and LATTICE_VECTORS")
        return np.dot(xyz, lattice)
    if mode.startswith("cartesian_au"):
        return xyz * BOHR
    if mode.startswith("cartesian_angstrom"):
        return xyz + _center_offset(mode, lattice)
    if mode.startswith("cartesian"):
        return xyz * (latconst * BOHR if latconst else 1.0)
    raise StructuralParseError("STRU: unknown ATOMIC_POSITIONS mode {!r}".format(mode))


def parser(string):
    lines = [_clean(line) for line in string.splitlines()]
    lines = [line for line in lines if line]
    latconst = None
    vectors = None
    atom_symbols = []
    coords = []
    fixed = []
    found_positions = False
    i = 0
    while i < len(lines):
        section = lines[i].upper()
        i += 1
        if section == "LATTICE_CONSTANT":
            if i < len(lines):
                try:
                    latconst = float(lines[i].split()[0])
                except ValueError:
                    warnings.warn("STRU: bad LATTICE_CONSTANT {!r}".format(lines[i]), MalformedLineWarning)
                i += 1
        elif section == "LATTICE_VECTORS":
            rows = []
            for line in lines[i: i + 3]:
                try:
                    rows.append([float(x) for x in line.split()[:3]])
                except ValueError:
                    break
            if len(rows) == 3 and all(len(r) == 3 for r in rows):
                vectors = np.array(rows)
            else:
                warnings.warn("STRU: incomplete LATTICE_VECTORS", MalformedLineWarning)
            i += len(rows)
        elif section == "ATOMIC_POSITIONS":
            found_positions = True
            if i >= len(lines):
                break
            mode = lines[i].lower()
            i += 1
            lattice = None
            if vectors is not None and latconst:
                lattice = vectors * latconst * BOHR
            # 每种元素: 元素行, 磁矩行, 数量行, 坐标行
            while i < len(lines) and lines[i].upper() not in SECTIONS:
                label = lines[i].split()[0]
                symbol = parseElement(label) or labelToSymbol(label)
                i += 2
                if symbol is None or i >= len(lines):
                    warnings.warn("STRU: skip species {!r}".format(label), MalformedLineWarning)
                    continue
                try:
                    count = int(lines[i].split()[0])
                except ValueError:
                    warnings.warn("STRU: bad atom count {!r}".format(lines[i]), MalformedLineWarning)
                    i += 1
                    continue
                i += 1
                for line in lines[i: i + count]:
                    parts = line.split()
                    try:
                        xyz = np.array([float(x) for x in parts[:3]])
                    except ValueError:
                        xyz = np.zeros(0)
                    if len(xyz) != 3:
                        warnings.warn("STRU: skip line {!r}".format(line), MalformedLineWarning)
                        continue
                    flags = _move_flags(parts[3:])
                    atom_symbols.append(symbol)
                    coords.append(_to_angstrom(xyz, mode, lattice, latconst))
                    fixed.append(flags is not None and all(f == "0" for f in flags))
                i += count
    if not found_positions:
        raise StructuralParseError("STRU: missing ATOMIC_POSITIONS")
    info_dict = {"title": "",
                 "atom_symbols": atom_symbols,
                 "coords": np.array(coords, dtype=float).reshape((-1, 3)),
                 "fixed": fixed}
    if vectors is not None and latconst:
        info_dict["lattice"] = vectors * latconst * BOHR
    return info_dict


def writer(info_dict):
    symbol_list, count_list, order = group_species(list(info_dict["atom_symbols"]))
    lattice = info_dict.get("lattice")
    positions = info_dict["coords"] if lattice is None else info_dict["frac_coords"]
    fixed = info_dict.get("fixed") or [False] * len(order)
    groups = []
    start = 0
    for symbol, count in zip(symbol_list, count_list):
        index = order[start: start + count]
        groups.append((symbol, count, [(tuple(positions[i]), fixed[i]) for i in index]))
        start += count
    template = Template(STRU_TEMPLATE)
    return template.render(
        species=[(s, getAtomicMass(s)) for s in symbol_list],
        latconst=1 / BOHR,
        lattice=None if lattice is None else [tuple(row) for row in lattice],
        groups=groups,
    )


STRU_TEMPLATE = """ATOMIC_SPECIES
{%- for symbol, mass in species %}
{{ symbol }}  {{ "%.3f" % mass }}  {{ symbol }}.upf
{%- endfor %}

LATTICE_CONSTANT
{{ "%.6f" % latconst }}
{%- if lattice %}

LATTICE_VECTORS
{%- for row in lattice %}
{{ "%.12f  %.12f  %.12f" % row }}
{%- endfor %}
{%- endif %}

ATOMIC_POSITIONS
{{ "Direct" if lattice else "Cartesian_angstrom" }}
{%- for symbol, count, atoms in groups %}

{{ symbol }}
0.0
{{ count }}
{%- for coord, fx in atoms %}
{{ "%.12f  %.12f  %.12f" % coord }}  {{ "0 0 0" if fx else "1 1 1" }}
{%- endfor %}
{%- endfor %}
"""
