# -*- coding:utf-8 -*-
"""Quantum ESPRESSO pw.x input (namelists + cards) and output log"""
import re
import warnings
import numpy as np
from jinja2 import Template
from .. import logger as root_logger
from .._config import config
from ..exceptions import StructuralParseError, MalformedLineWarning, PreconditionError
from ..models.periodic_table import labelToSymbol, getAtomicMass
from ..utils import Units, str2float
logger = root_logger.getChild('io.qe')

BOHR = Units.bohr

_number = r"([+-]?\d*\.?\d+(?:[eEdD][+-]?\d+)?)"
_re_celldm = re.compile(r"celldm\s*\(\s*1\s*\)\s*=\s*" + _number, re.IGNORECASE)
_re_alat_header = re.compile(r"alat\s*=\s*" + _number, re.IGNORECASE)
_re_alat_log = re.compile(r"lattice parameter \(alat\)\s*=\s*" + _number, re.IGNORECASE)
_re_A = re.compile(r"(?:^|,)\s*A\s*=\s*" + _number)
_re_nat = re.compile(r"\bnat\s*=\s*(\d+)", re.IGNORECASE)
_re_nat_log = re.compile(r"number of atoms/cell\s*=\s*(\d+)", re.IGNORECASE)
_re_prefix = re.compile(r"\bprefix\s*=\s*['\"]?([^'\",\s]+)", re.IGNORECASE)
_re_cell_card = re.compile(r"^CELL_PARAMETERS\b", re.IGNORECASE)
_re_positions_card = re.compile(r"^ATOMIC_POSITIONS\b", re.IGNORECASE)
_re_tau = re.compile(r"^\s*\d+\s+(\S+)\s+tau\(\s*\d+\)\s*=\s*\(\s*(\S+)\s+(\S+)\s+(\S+)\s*\)", re.IGNORECASE)
_re_output = re.compile(r"Program PWSCF|number of atoms/cell|crystal axes:|End final coordinates", re.IGNORECASE)
_re_namelist = re.compile(r"^\s*&(?:CONTROL|SYSTEM|ELECTRONS|IONS|CELL)\b", re.IGNORECASE)


def looks_like_output(lines):
    return any(_re_output.search(line) for line in lines)


def looks_like_input(lines):
    if any(_re_namelist.match(line) for line in lines):
        return True
    has_species = any(re.match(r"^\s*ATOMIC_SPECIES\b", line, re.IGNORECASE) for line in lines)
    has_positions = any(re.match(r"^\s*ATOMIC_POSITIONS\b", line, re.IGNORECASE) for line in lines)
    return has_species and has_positions


def _positive(text):
    value = str2float(text)
    return value if np.isfinite(value) and value > 0 else None


def line_alat(line):
    """一行中的 alat (angstrom): celldm(1), `lattice parameter (alat)` 或 `alat=`, 单位 bohr"""
    for pattern in (_re_celldm, _re_alat_log, _re_alat_header):
        m = pattern.search(line)
        if m:
            value = _positive(m.group(1))
            if value is not None:
                return value * BOHR
    return None


def extract_alat(lines):
    for line in lines:
        alat = line_alat(line)
        if alat is not None:
            return alat
        m = _re_A.search(line.split("!")[0])
        if m:
            value = _positive(m.group(1))
            if value is not None:
                return value
    return None


def extract_nat(lines):
    for pattern in (_re_nat, _re_nat_log):
        for line in lines:
            m = pattern.search(line)
            if m:
                return int(m.group(1))
    return None


def extract_prefix(lines):
    for line in lines:
        m = _re_prefix.search(line.split("!")[0])
        if m:
            return m.group(1)
    return None


def cell_unit(header):
    lower = header.lower()
    for unit in ("bohr", "angstrom", "alat"):
        if unit in lower:
            return unit
    return "bohr"


def position_unit(header):
    lower = header.lower()
    for unit in ("crystal", "bohr", "alat"):
        if unit in lower:
            return unit
    return "angstrom"


def _unit_factor(unit, alat):
    if unit == "angstrom":
        return 1.0
    if unit == "bohr":
        return BOHR
    return alat


def read_cell(lines, ipos, alat):
    """CELL_PARAMETERS 卡片, 返回 (晶格矢量或 None, 标题中的 alat, 下一行)"""
    header = lines[ipos]
    header_alat = None
    m = _re_alat_header.search(header)
    if m:
        value = _positive(m.group(1))
        header_alat = None if value is None else value * BOHR
    factor = _unit_factor(cell_unit(header), header_alat or alat)
    if factor is None:
        factor = BOHR
    vectors = []
    ipos += 1
    while ipos < len(lines) and len(vectors) < 3:
        line = lines[ipos].strip()
        if not line:
            ipos += 1
            continue
        row = [str2float(x) for x in line.split()[:3]]
        if len(row) < 3 or not np.all(np.isfinite(row)):
            break
        vectors.append(row)
        ipos += 1
    if len(vectors) != 3:
        warnings.warn("QE: incomplete CELL_PARAMETERS {!r}".format(header.strip()), MalformedLineWarning)
        return None, header_alat, ipos
    return np.array(vectors) * factor, header_alat, ipos


def _position_line(line):
    if line.startswith(("#", "!")):
        return None
    parts = line.split()
    if len(parts) < 4:
        return None
    symbol = labelToSymbol(parts[0])
    xyz = [str2float(x) for x in parts[1:4]]
    if symbol is None or not np.all(np.isfinite(xyz)):
        return None
    fixed = False
    flags = parts[4:7]
    if len(flags) == 3 and all(f in ("0", "1") for f in flags):
        fixed = all(f == "0" for f in flags)
    return symbol, xyz, fixed


def read_positions(lines, ipos, nat):
    """ATOMIC_POSITIONS 卡片的原始数值, 遇到空行或者非原子行结束"""
    atoms = []
    while ipos < len(lines):
        line = lines[ipos].strip()
        if not line or line.startswith(("#", "!")):
            ipos += 1
            if atoms and not line:
                break
            continue
        parsed = _position_line(line)
        if parsed is None:
            # 下一个卡片
            if atoms or line.split()[0].isupper():
                break
            ipos += 1
            continue
        atoms.append(parsed)
        ipos += 1
        if nat and len(atoms) >= nat:
            break
    return atoms, ipos


def read_tau(lines, ipos, nat):
    """pw.x 输出中 `positions (alat units)` 之后的 tau 表"""
    atoms = []
    while ipos < len(lines):
        m = _re_tau.match(lines[ipos])
        ipos += 1
        if m is None:
            if atoms:
                break
            continue
        symbol = labelToSymbol(m.group(1))
        xyz = [str2float(x) for x in m.groups()[1:]]
        if symbol is None or not np.all(np.isfinite(xyz)):
            warnings.warn("QE: skip line {!r}".format(lines[ipos - 1]), MalformedLineWarning)
            continue
        atoms.append((symbol, xyz, False))
        if nat and len(atoms) >= nat:
            break
    return atoms, ipos


def read_crystal_axes(lines, ipos, alat):
    """`crystal axes: (cart. coord. in units of alat)` 之后的三行, 取每行最后三个数"""
    if alat is None or ipos + 3 >= len(lines):
        return None
    vectors = []
    for line in lines[ipos + 1: ipos + 4]:
        values = [str2float(x) for x in re.findall(r"[+-]?\d*\.?\d+(?:[eEdD][+-]?\d+)?", line)]
        if len(values) < 3:
            return None
        vectors.append(values[-3:])
    return np.array(vectors) * alat


def _frame(title, unit, atoms, cell, alat):
    raw = np.array([xyz for _, xyz, _ in atoms], dtype=float)
    info_dict = {"title": title,
                 "atom_symbols": [s for s, _, _ in atoms],
                 "fixed": [fx for _, _, fx in atoms]}
    if cell is not None:
        info_dict["lattice"] = np.array(cell)
    if unit == "crystal":
        if cell is None:
            return None
        info_dict["frac_coords"] = raw
    else:
        factor = _unit_factor(unit, alat)
        if factor is None:
            return None
        info_dict["coords"] = raw * factor
    return info_dict


def parse_input(lines):
    nat = extract_nat(lines)
    alat = extract_alat(lines)
    title = extract_prefix(lines) or ""
    cell = None
    block = None
    ipos = 0
    while ipos < len(lines):
        line = lines[ipos].strip()
        if _re_cell_card.match(line):
            vectors, _, ipos = read_cell(lines, ipos, alat)
            if vectors is not None:
                cell = vectors
            continue
        if _re_positions_card.match(line):
            atoms, ipos = read_positions(lines, ipos + 1, nat)
            if atoms:
                block = (position_unit(line), atoms)
            continue
        ipos += 1
    if block is None:
        raise StructuralParseError("QE input: missing ATOMIC_POSITIONS")
    info_dict = _frame(title, block[0], block[1], cell, alat)
    if info_dict is None:
        raise StructuralParseError("QE input: ATOMIC_POSITIONS {} needs {}".format(
            block[0], "CELL_PARAMETERS" if block[0] == "crystal" else "celldm(1) or A"))
    return info_dict


def parse_output(lines):
    nat = extract_nat(lines)
    alat = extract_alat(lines)
    title = extract_prefix(lines) or ""
    cell = None
    frames = []
    ipos = 0
    while ipos < len(lines):
        line = lines[ipos].strip()
        new_alat = line_alat(line)
        if new_alat is not None and not _re_cell_card.match(line):
            alat = new_alat
        if "crystal axes:" in line.lower():
            vectors = read_crystal_axes(lines, ipos, alat)
            if vectors is not None:
                cell = vectors
            ipos += 1
            continue
        if _re_cell_card.match(line):
            vectors, header_alat, ipos = read_cell(lines, ipos, alat)
            if vectors is not None:
                cell = vectors
            if header_alat is not None:
                alat = header_alat
            continue
        if _re_positions_card.match(line):
            unit = position_unit(line)
            atoms, ipos = read_positions(lines, ipos + 1, nat)
        elif "positions (alat units)" in line.lower():
            unit = "alat"
            atoms, ipos = read_tau(lines, ipos + 1, nat)
        else:
            ipos += 1
            continue
        if not atoms:
            continue
        frame = _frame(title, unit, atoms, cell, alat)
        if frame is None:
            warnings.warn("QE: skip {} positions without cell or alat".format(unit), MalformedLineWarning)
            continue
        frames.append(frame)
    if len(frames) == 0:
        raise StructuralParseError("QE output: no atomic positions found")
    return frames


def trajectory_parser(string):
    lines = string.splitlines()
    if looks_like_output(lines):
        frames = parse_output(lines)
    elif looks_like_input(lines):
        frames = [parse_input(lines)]
    else:
        frames = parse_output(lines)
    logger.debug("{} frames".format(len(frames)))
    return frames


def parser(string):
    return trajectory_parser(string)[-1]


def writer(info_dict):
    """pw.x scf 输入文件, 坐标和晶格为 angstrom"""
    atom_symbols = list(info_dict["atom_symbols"])
    if len(atom_symbols) == 0:
        raise PreconditionError("QE export requires atoms")
    species = []
    for s in atom_symbols:
        if s not in species:
            species.append(s)
    lattice = info_dict.get("lattice")
    if lattice is None:
        lattice = np.eye(3) * config.EXPORT["qe_box"]
    fixed = info_dict.get("fixed") or [False] * len(atom_symbols)
    template = Template(QE_TEMPLATE)
    return template.render(
        prefix="_".join((info_dict.get("title") or "structure").split()) or "structure",
        natom=len(atom_symbols),
        ecutwfc=config.EXPORT["qe_ecutwfc"],
        conv_thr=config.EXPORT["qe_conv_thr"],
        lattice=[tuple(row) for row in lattice],
        species=[(s, getAtomicMass(s)) for s in species],
        atom_symbols=atom_symbols,
        coords=[tuple(x) for x in info_dict["coords"]],
        fixed=fixed,
        any_fixed=any(fixed),
        zip=zip,
    )


QE_TEMPLATE = """&CONTROL
  calculation = 'scf'
  prefix = '{{ prefix }}'
/
&SYSTEM
  ibrav = 0
  nat = {{ natom }}
  ntyp = {{ species | length }}
  ecutwfc = {{ ecutwfc }}
/
&ELECTRONS
  conv_thr = {{ conv_thr }}
/
CELL_PARAMETERS angstrom
{%- for row in lattice %}
{{ "%.10f  %.10f  %.10f" % row }}
{%- endfor %}
ATOMIC_SPECIES
{%- for symbol, mass in species %}
{{ symbol }}  {{ "%.6f" % mass }}  {{ symbol }}.UPF
{%- endfor %}
ATOMIC_POSITIONS angstrom
{%- for symbol, coord, fx in zip(atom_symbols, coords, fixed) %}
{{ symbol }}  {{ "%.10f  %.10f  %.10f" % coord }}{% if any_fixed %}  {{ "0 0 0" if fx else "1 1 1" }}{% endif %}
{%- endfor %}
K_POINTS gamma
"""
