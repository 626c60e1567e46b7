# -*- coding:utf-8 -*-
import re
import warnings
import numpy as np
from jinja2 import Template
from ..exceptions import StructuralParseError, MalformedLineWarning, PreconditionError, DegenerateGeometryError
from ..models.periodic_table import parseElement, labelToSymbol
from ..utils import det3, str2float


def _strip_comment(line):
    return re.split(r"[!#]", line, maxsplit=1)[0].strip()


def _floats(tokens):
    values = [str2float(x) for x in tokens]
    if len(values) == 0 or not np.all(np.isfinite(values)):
        return None
    return values


def _parse_scale(line):
    """缩放因子: 一个正值, 一个负值 (体积), 或者三个正值 (按轴缩放)"""
    values = _floats(_strip_comment(line).split())
    if values is None or len(values) not in (1, 3):
        raise StructuralParseError("POSCAR: bad scaling factor line {!r}".format(line))
    if len(values) == 1 and values[0] == 0:
        raise StructuralParseError("POSCAR: scaling factor is zero")
    if len(values) == 3 and min(values) <= 0:
        raise StructuralParseError("POSCAR: per-axis scaling factors must be positive {}".format(values))
    return values


def _species_symbol(token):
    # `Fe_pv`, `Fe/1a2b3c` 等 POTCAR 标签
    token = token.split("/")[0].split("_")[0]
    return parseElement(token) or labelToSymbol(token)


def species_from_title(title, count):
    """从标题中猜测元素: `[A-Z][a-z]?` 中能识别的元素, 去重, 最多 count 个"""
    symbols = []
    for m in re.findall(r"[A-Z][a-z]?", title):
        symbol = parseElement(m)
        if symbol is not None and symbol not in symbols:
            symbols.append(symbol)
        if len(symbols) == count:
            break
    return symbols


def parse_header(lines, ipos=0):
    """POSCAR / XDATCAR 头部

    Line 1 标题, line 2 缩放因子, line 3-5 晶格矢量, 之后是可选的元素行和数量行
    (可以跨多行). 返回头部字典和数量行之后的行号.
    """
    if len(lines) < ipos + 6:
        raise StructuralParseError("POSCAR: header needs at least 6 lines")
    title = lines[ipos].strip()
    scale = _parse_scale(lines[ipos + 1])
    lattice = []
    for line in lines[ipos + 2: ipos + 5]:
        row = _floats(_strip_comment(line).split()[:3])
        if row is None or len(row) != 3:
            raise StructuralParseError("POSCAR: bad lattice vector line {!r}".format(line))
        lattice.append(row)
    lattice = np.array(lattice, dtype=float)

    if len(scale) == 3:
        coord_scale = np.array(scale)
        lattice = lattice * coord_scale
    elif scale[0] < 0:
        # 负值为晶胞体积
        volume = abs(det3(lattice))
        if volume < 1e-12:
            raise DegenerateGeometryError("POSCAR: lattice vectors have no volume")
        coord_scale = np.full(3, np.cbrt(-scale[0] / volume))
        lattice = lattice * coord_scale[0]
    else:
        coord_scale = np.full(3, scale[0])
        lattice = lattice * scale[0]

    ipos += 5
    atom_types = []
    atom_qty = []
    while ipos < len(lines):
        lsp = _strip_comment(lines[ipos]).split()
        if len(atom_qty) == 0 and lsp and all(x[0].isalpha() for x in lsp):
            atom_types += lsp
        elif lsp and all(x.isdigit() for x in lsp):
            atom_qty += [int(x) for x in lsp]
        else:
            break
        ipos += 1
    if len(atom_qty) == 0:
        raise StructuralParseError("POSCAR: no atom count line")

    symbols = [_species_symbol(t) for t in atom_types]
    if len(symbols) != len(atom_qty) or None in symbols:
        symbols = species_from_title(title, len(atom_qty))
    symbols += ["X"] * (len(atom_qty) - len(symbols))
    header = {
        "title": title,
        "lattice": lattice,
        "coord_scale": coord_scale,
        "species": symbols,
        "counts": atom_qty,
        "atom_symbols": [s for s, n in zip(symbols, atom_qty) for _ in range(n)],
    }
    return header, ipos


def _is_coord_line(line):
    row = _floats(_strip_comment(line).split()[:3])
    return row is not None and len(row) == 3


def parser(string):
    lines = [l for l in string.splitlines() if l.strip()]
    header, ipos = parse_header(lines)

    sdynamics = False
    if ipos < len(lines) and lines[ipos].strip()[:1] in "sS":
        sdynamics = True
        ipos += 1
    cart = False
    if ipos < len(lines) and not _is_coord_line(lines[ipos]):
        cart = lines[ipos].strip()[:1] in "cCkK"
        ipos += 1

    atom_symbols = []
    coords = []
    fixed = []
    for n, symbol in enumerate(header["atom_symbols"]):
        if ipos + n >= len(lines):
            warnings.warn("POSCAR: {} positions missing".format(len(header["atom_symbols"]) - n),
                          MalformedLineWarning)
            break
        lsp = _strip_comment(lines[ipos + n]).split()
        row = _floats(lsp[:3])
        if row is None or len(row) != 3:
            warnings.warn("POSCAR: skip line {!r}".format(lines[ipos + n]), MalformedLineWarning)
            continue
        atom_symbols.append(symbol)
        coords.append(row)
        flags = lsp[3:6]
        fixed.append(sdynamics and len(flags) == 3 and all(f.upper().startswith("F") for f in flags))
    if len(atom_symbols) == 0:
        raise StructuralParseError("POSCAR: no atom positions")

    coords = np.array(coords, dtype=float)
    info_dict = {"title": header["title"],
                 "atom_symbols": atom_symbols,
                 "lattice": header["lattice"],
                 "fixed": fixed}
    if cart:
        info_dict["coords"] = coords * header["coord_scale"]
    else:
        info_dict["frac_coords"] = coords
    return info_dict


def group_species(atom_symbols):
    """按首次出现的顺序分组, 返回 (元素列表, 数量列表, 原子顺序)"""
    symbol_list = []
    for s in atom_symbols:
        if s not in symbol_list:
            symbol_list.append(s)
    order = sorted(range(len(atom_symbols)), key=lambda i: symbol_list.index(atom_symbols[i]))
    count_list = [atom_symbols.count(s) for s in symbol_list]
    return symbol_list, count_list, order


def writer(info_dict):
    if info_dict.get("lattice") is None:
        raise PreconditionError("POSCAR export requires a unit cell")
    symbol_list, count_list, order = group_species(list(info_dict["atom_symbols"]))
    fixed = info_dict.get("fixed") or [False] * len(order)
    template = Template(POSCAR_TEMPLATE)
    return template.render(
        title=info_dict.get("title") or "Created by acoord",
        lattice=[tuple(row) for row in info_dict["lattice"]],
        symbol_list=symbol_list,
        count_list=count_list,
        selective_dynamics=any(fixed),
        frac_coords=[tuple(info_dict["frac_coords"][i]) for i in order],
        fixed=[fixed[i] for i in order],
        zip=zip,
    )


POSCAR_TEMPLATE = """{{ title }}
1.0
{%- for row in lattice %}
  {{ "%.10f  %.10f  %.10f" % row }}
{%- endfor %}
  {{ symbol_list | join("  ") }}
  {{ count_list | join("  ") }}
{%- if selective_dynamics %}
Selective dynamics
{%- endif %}
Direct
{%- for coord, fx in zip(frac_coords, fixed) %}
  {{ "%.10f  %.10f  %.10f" % coord }}{% if selective_dynamics %}  {{ "F F F" if fx else "T T T" }}{% endif %}
{%- endfor %}
"""
