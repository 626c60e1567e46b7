# -*- coding:utf-8 -*-
import re
import numpy as np
from .. import logger as root_logger
from ..exceptions import StructuralParseError, UnsupportedExportError
from ..models.periodic_table import parseElement
from ..utils import str2float
logger = root_logger.getChild('io.outcar')

_re_vrhfin = re.compile(r"VRHFIN\s*=\s*([A-Za-z]{1,2})", re.IGNORECASE)
_re_potential = re.compile(r"TITEL|POTCAR:", re.IGNORECASE)
_re_ions_per_type = re.compile(r"ions\s+per\s+type\s*=\s*(.+)$", re.IGNORECASE)
_re_dashes = re.compile(r"^\s*-[-\s]*$")


def _potential_symbol(line):
    """`POTCAR:    PAW_PBE Fe_pv 02Aug2007` -> Fe, 取最后一个能识别的元素"""
    symbol = None
    for token in re.sub(r"[:=]", " ", line).split():
        parsed = parseElement(token.split("_")[0].split(".")[0])
        if parsed is not None:
            symbol = parsed
    return symbol


def parse_species(lines):
    species = []
    for line in lines:
        m = _re_vrhfin.search(line)
        if m:
            symbol = parseElement(m.group(1))
        elif _re_potential.search(line):
            symbol = _potential_symbol(line)
        else:
            continue
        if symbol is not None and symbol not in species:
            species.append(symbol)
    return species


def parse_counts(lines):
    for line in lines:
        m = _re_ions_per_type.search(line)
        if m is None:
            continue
        counts = []
        for token in m.group(1).split():
            try:
                counts.append(int(token))
            except ValueError:
                continue
        if counts:
            return counts
    return []


def _read_vectors(lines, ipos):
    vectors = []
    for line in lines[ipos: ipos + 3]:
        row = [str2float(x) for x in line.split()[:3]]
        if len(row) != 3 or not np.all(np.isfinite(row)):
            return None
        vectors.append(row)
    if len(vectors) != 3:
        return None
    return np.array(vectors)


def _read_positions(lines, ipos):
    """POSITION ... TOTAL-FORCE 块: 跳过第一条虚线, 读到下一条虚线"""
    while ipos < len(lines) and not _re_dashes.match(lines[ipos]):
        ipos += 1
    ipos += 1
    positions = []
    while ipos < len(lines):
        line = lines[ipos].strip()
        ipos += 1
        if not line:
            continue
        if _re_dashes.match(line):
            break
        row = [str2float(x) for x in line.split()[:3]]
        if len(row) != 3 or not np.all(np.isfinite(row)):
            break
        positions.append(row)
    return positions, ipos


def trajectory_parser(string):
    lines = string.splitlines()
    species = parse_species(lines)
    counts = parse_counts(lines)
    symbols = [species[n] if n < len(species) else "X" for n, c in enumerate(counts) for _ in range(c)]
    lattice = None
    frames = []
    ipos = 0
    while ipos < len(lines):
        line = lines[ipos].lower()
        if "direct lattice vectors" in line:
            vectors = _read_vectors(lines, ipos + 1)
            if vectors is not None:
                lattice = vectors
                ipos += 4
                continue
        elif "position" in line and "total-force" in line:
            positions, ipos = _read_positions(lines, ipos + 1)
            if positions:
                frame = {"title": "OUTCAR frame {}".format(len(frames) + 1),
                         "atom_symbols": [symbols[n] if n < len(symbols) else "X" for n in range(len(positions))],
                         "coords": np.array(positions)}
                if lattice is not None:
                    frame["lattice"] = lattice.copy()
                frames.append(frame)
            continue
        ipos += 1
    if len(frames) == 0:
        raise StructuralParseError("OUTCAR: no POSITION / TOTAL-FORCE block")
    logger.debug("{} frames, species {}".format(len(frames), species))
    return frames


def parser(string):
    return trajectory_parser(string)[-1]


def writer(info_dict):
    raise UnsupportedExportError("OUTCAR export is not supported")
