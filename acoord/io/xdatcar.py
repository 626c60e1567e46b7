# -*- coding:utf-8 -*-
import re
import warnings
import numpy as np
from jinja2 import Template
from .. import logger as root_logger
from ..exceptions import StructuralParseError, MalformedLineWarning, PreconditionError, DegenerateGeometryError
from .vasp import parse_header, group_species
logger = root_logger.getChild('io.xdatcar')

_re_configuration = re.compile(r"^direct\s+configuration\s*=", re.IGNORECASE)
_re_dashes = re.compile(r"^-{3,}")


def _try_parse_header(lines, ipos):
    try:
        return parse_header(lines, ipos)
    except (StructuralParseError, DegenerateGeometryError):
        return None, ipos


def _read_block(lines, ipos, natom):
    """读取一帧的分数坐标, 遇到下一个 configuration 行或者虚线时停止"""
    rows = []
    while ipos < len(lines) and len(rows) < natom:
        line = lines[ipos].strip()
        if _re_configuration.match(line) or _re_dashes.match(line):
            break
        try:
            rows.append([float(x) for x in line.split()[:3]])
        except ValueError:
            rows.append(None)
        ipos += 1
    return rows, ipos


def trajectory_parser(string):
    lines = [l for l in string.splitlines() if l.strip()]
    header, ipos = parse_header(lines)
    frames = []
    while ipos < len(lines):
        line = lines[ipos].strip()
        if _re_configuration.match(line):
            natom = len(header["atom_symbols"])
            rows, ipos = _read_block(lines, ipos + 1, natom)
            good = [r for r in rows if r is not None and len(r) == 3]
            if len(good) != natom:
                warnings.warn("XDATCAR: skip {!r}, {} of {} positions".format(line, len(good), natom),
                              MalformedLineWarning)
                continue
            frames.append({"title": header["title"],
                           "atom_symbols": list(header["atom_symbols"]),
                           "lattice": header["lattice"].copy(),
                           "frac_coords": np.array(good, dtype=float)})
            continue
        new_header, new_ipos = _try_parse_header(lines, ipos)
        if new_header is not None:
            # 变胞轨迹每一帧前重复头部
            header, ipos = new_header, new_ipos
        else:
            if len(line.split()) != 1:
                warnings.warn("XDATCAR: skip line {!r}".format(line), MalformedLineWarning)
            ipos += 1
    if len(frames) == 0:
        raise StructuralParseError("XDATCAR: no 'Direct configuration=' frame")
    logger.debug("{} frames".format(len(frames)))
    return frames


def parser(string):
    return trajectory_parser(string)[-1]


def trajectory_writer(info_dicts):
    info_dicts = list(info_dicts)
    if len(info_dicts) == 0:
        raise PreconditionError("XDATCAR export requires at least one frame")
    first = info_dicts[0]
    if first.get("lattice") is None:
        raise PreconditionError("XDATCAR export requires a unit cell")
    if len(first["atom_symbols"]) == 0:
        raise PreconditionError("XDATCAR export requires atoms")
    symbol_list, count_list, order = group_species(list(first["atom_symbols"]))
    frames = []
    for n, info_dict in enumerate(info_dicts):
        if list(info_dict["atom_symbols"]) != list(first["atom_symbols"]):
            raise PreconditionError("XDATCAR frame {} changes the atom count or order".format(n + 1))
        if info_dict.get("frac_coords") is None:
            raise PreconditionError("XDATCAR frame {} has no unit cell".format(n + 1))
        frames.append([tuple(info_dict["frac_coords"][i]) for i in order])
    template = Template(XDATCAR_TEMPLATE)
    return template.render(
        title=first.get("title") or " ".join(symbol_list),
        lattice=[tuple(row) for row in first["lattice"]],
        symbol_list=symbol_list,
        count_list=count_list,
        frames=frames,
        enumerate=enumerate,
    )


def writer(info_dict):
    return trajectory_writer([info_dict])


XDATCAR_TEMPLATE = """{{ title }}
1.0
{%- for row in lattice %}
  {{ "%.10f  %.10f  %.10f" % row }}
{%- endfor %}
  {{ symbol_list | join("  ") }}
  {{ count_list | join("  ") }}
{%- for n, frame in enumerate(frames) %}
Direct configuration={{ "%6d" % (n + 1) }}
{%- for coord in frame %}
  {{ "%.8f  %.8f  %.8f" % coord }}
{%- endfor %}
{%- endfor %}
"""
