# -*- coding:utf-8 -*-
import re
import warnings
from collections import OrderedDict, deque
import numpy as np
from jinja2 import Template
from .. import logger as root_logger
from .._config import config
from ..exceptions import StructuralParseError, MalformedLineWarning, PreconditionError
from ..models.periodic_table import labelToSymbol
from ..models.symmetry import SymmOp, expand_asymmetric_unit
from ..utils import latt62Matrix, inv3
logger = root_logger.getChild('io.cif')

CELL_KEYS = ["_cell_length_a", "_cell_length_b", "_cell_length_c",
             "_cell_angle_alpha", "_cell_angle_beta", "_cell_angle_gamma"]

SYMMOP_KEYS = ["_symmetry_equiv_pos_as_xyz",
               "_space_group_symop_operation_xyz",
               "_space_group_symop.operation_xyz"]


def _str2float(text):
    """字符串转换为符点型, 去掉不确定度 `1.234(5)`; `.` 和 `?` 为 NaN"""
    text = text.strip().strip("'\"")
    try:
        return float(re.sub(r"\(\d*\)$", "", text))
    except ValueError:
        return float("nan")


def _remove_non_ascii(s):
    return "".join(i for i in s if ord(i) < 128)


class CifBlock:
    """
    CIF 数据块, 所有数据存在 data 字典中 (键名小写).
    loop 中的数据为列表, loops 记录每个 loop 包含的键.
    只读取文件中的第一个数据块.
    """

    def __init__(self, data, loops, header):
        self.loops = loops
        self.data = data
        self.header = header

    def __getitem__(self, key):
        return self.data[key]

    def get(self, key, default=None):
        return self.data.get(key, default)

    @classmethod
    def _process_string(cls, string):
        # 去掉注释, 空行和非 ascii 字符
        string = re.sub(r"(\s|^)#.*$", "", string, flags=re.MULTILINE)
        string = re.sub(r"^\s*\n", "", string, flags=re.MULTILINE)
        string = _remove_non_ascii(string)
        # 换行基本没有意义, 拆成 token 流, 分号之间的多行文本合并为一个 token
        q = deque()
        multiline = False
        ml = []
        # 按空格拆分, 引号内除外
        p = re.compile(r"""(data_.*|(?:[^'"\s][\S]*))|'(.*?)'(?!\S)|"(.*?)"(?!\S)""")
        for l in string.splitlines():
            if multiline:
                if l.startswith(";"):
                    multiline = False
                    q.append(("", "", " ".join(x for x in ml if x)))
                    ml = []
                    l = l[1:].strip()
                else:
                    ml.append(l.strip())
                    continue
            if l.startswith(";"):
                multiline = True
                ml.append(l[1:].strip())
            else:
                for s in p.findall(l):
                    q.append(s)
        return q

    @classmethod
    def from_string(cls, string):
        q = cls._process_string(string)
        header = ""
        if q and q[0][0].lower().startswith("data_"):
            header = q.popleft()[0][5:].strip().strip("'\"")
        data = OrderedDict()
        loops = []
        while q:
            s = q.popleft()
            key = s[0].lower()
            if key == "_eof" or key.startswith("data_"):
                break
            if key.startswith("_"):
                if q and not q[0][0].lower().startswith(("_", "loop_", "data_")):
                    data[key] = "".join(q.popleft())
                else:
                    data[key] = ""
            elif key.startswith("loop_"):
                columns = []
                items = []
                while q and q[0][0].startswith("_"):
                    columns.append(q.popleft()[0].lower())
                    data[columns[-1]] = []
                while q:
                    head = q[0][0].lower()
                    if head.startswith(("loop_", "_", "data_")):
                        break
                    items.append("".join(q.popleft()))
                if not columns:
                    continue
                if len(items) % len(columns):
                    warnings.warn("CIF: drop {} trailing values of loop {}".format(
                        len(items) % len(columns), columns[0]), MalformedLineWarning)
                n = len(items) // len(columns)
                loops.append(columns)
                for k, v in zip(columns * n, items[:n * len(columns)]):
                    data[k].append(v.strip())
            elif "".join(s).strip() != "":
                warnings.warn("CIF: possible issue at: {}".format("".join(s).strip()), MalformedLineWarning)
        return cls(data, loops, header)


def _read_cell(block):
    values = [block.get(key) for key in CELL_KEYS]
    if any(v is None or isinstance(v, list) for v in values[:3]):
        return None
    latt6 = [_str2float(v) for v in values[:3]]
    for v in values[3:]:
        angle = float("nan") if v is None or isinstance(v, list) else _str2float(v)
        latt6.append(angle if np.isfinite(angle) else 90.0)
    if not np.all(np.isfinite(latt6)):
        warnings.warn("CIF: ignore cell {}".format(values), MalformedLineWarning)
        return None
    return latt6


def _read_symmops(block):
    symmops = []
    for key in SYMMOP_KEYS:
        value = block.get(key)
        if not value:
            continue
        for xyz_string in ([value] if isinstance(value, str) else value):
            try:
                symmops.append(SymmOp.from_xyz_string(xyz_string))
            except ValueError:
                warnings.warn("CIF: skip symmetry operation {!r}".format(xyz_string), MalformedLineWarning)
        break
    # 去掉重复的操作, 保持顺序
    return list(OrderedDict.fromkeys(symmops))


def _atom_loop(block):
    for columns in block.loops:
        if "_atom_site_fract_x" in columns or "_atom_site_cartn_x" in columns:
            return columns
    raise StructuralParseError("CIF: no _atom_site loop with coordinates")


def parser(string):
    block = CifBlock.from_string(string)
    latt6 = _read_cell(block)
    columns = _atom_loop(block)
    frac = "_atom_site_fract_x" in columns
    prefix = "_atom_site_fract_" if frac else "_atom_site_cartn_"
    xyz_keys = [prefix + c for c in "xyz"]
    if not all(k in columns for k in xyz_keys):
        raise StructuralParseError("CIF: incomplete coordinate columns {}".format(xyz_keys))
    if frac and latt6 is None:
        raise PreconditionError("CIF: fractional coordinates without cell parameters")

    symbol_source = block.get("_atom_site_type_symbol") or block.get("_atom_site_label")
    if not isinstance(symbol_source, list):
        raise StructuralParseError("CIF: no _atom_site_type_symbol or _atom_site_label column")
    atom_symbols = []
    coords = []
    for n, (label, *xyz) in enumerate(zip(symbol_source, *[block[k] for k in xyz_keys])):
        symbol = labelToSymbol(label)
        xyz = [_str2float(x) for x in xyz]
        if symbol is None or not np.all(np.isfinite(xyz)):
            warnings.warn("CIF: skip atom row {}: {} {}".format(n + 1, label, xyz), MalformedLineWarning)
            continue
        atom_symbols.append(symbol)
        coords.append(xyz)
    coords = np.array(coords, dtype=float).reshape((-1, 3))

    info_dict = {"title": block.header, "atom_symbols": atom_symbols, "latt6": latt6}
    symmops = _read_symmops(block)
    if len(symmops) > 1:
        if latt6 is None:
            warnings.warn("CIF: symmetry operations ignored without a cell", MalformedLineWarning)
        else:
            matrix = latt62Matrix(latt6)
            if not frac:
                coords = np.dot(coords, inv3(matrix))
                frac = True
            atom_symbols, coords = expand_asymmetric_unit(
                atom_symbols, coords, symmops, matrix, config.SYMMETRY['dedup_tolerance'])
            info_dict["atom_symbols"] = atom_symbols
    info_dict["frac_coords" if frac else "coords"] = coords
    logger.debug("{} atoms, {} symmetry operations".format(len(atom_symbols), len(symmops)))
    return info_dict


def writer(info_dict):
    """P1 晶胞, 分数坐标"""
    if info_dict.get("latt6") is None:
        raise PreconditionError("CIF export requires a unit cell")
    template = Template(CIF_TEMPLATE)
    atom_symbols = info_dict["atom_symbols"]
    title = "_".join((info_dict.get("title") or "structure").split())
    return template.render(
        title=title,
        latt6=info_dict["latt6"],
        labels=["{}{}".format(s, i + 1) for i, s in enumerate(atom_symbols)],
        atom_symbols=atom_symbols,
        frac_coords=[tuple(x) for x in info_dict["frac_coords"]],
        zip=zip,
    )


CIF_TEMPLATE = """data_{{ title }}

_cell_length_a    {{ "%.6f" % latt6[0] }}
_cell_length_b    {{ "%.6f" % latt6[1] }}
_cell_length_c    {{ "%.6f" % latt6[2] }}
_cell_angle_alpha {{ "%.6f" % latt6[3] }}
_cell_angle_beta  {{ "%.6f" % latt6[4] }}
_cell_angle_gamma {{ "%.6f" % latt6[5] }}

_space_group_name_H-M_alt    'P 1'
_space_group_IT_number       1

loop_
_space_group_symop_operation_xyz
'x, y, z'

loop_
_atom_site_label
_atom_site_type_symbol
_atom_site_fract_x
_atom_site_fract_y
_atom_site_fract_z
{%- for label, atom_symbol, coord in zip(labels, atom_symbols, frac_coords) %}
{{ label }}  {{ atom_symbol }}  {{ "%.10f  %.10f  %.10f" % coord }}
{%- endfor %}
"""
