# -*- coding:utf-8 -*-
from __future__ import annotations
from typing import Optional, Tuple, List
from collections import namedtuple
import itertools
import numpy as np
import networkx as nx
from .. import logger as root_logger
from .._config import config
from ..exceptions import PreconditionError
from ..analysis.find_bonds import find_empiric_bonds, find_empiric_bonds_pbc
from ..utils import inv3
from .atom import Atom
from .pbc import UnitCell
from .periodic_table import requireElement, getCovalentRadius, getAtomicMass

logger = root_logger.getChild('Structure')

Bond = namedtuple('Bond', ['atom_id1', 'atom_id2', 'distance', 'manual', 'image'],
                  defaults=(False, (0, 0, 0)))

ImageAtom = namedtuple('ImageAtom', ['id', 'atom_id', 'element', 'position', 'image', 'primary'])


def normalizeBondPair(atom_id1: str, atom_id2: str) -> Tuple[str, str]:
    return (atom_id1, atom_id2) if atom_id1 < atom_id2 else (atom_id2, atom_id1)


class Structure():
    """分子或晶体结构

    构建对象：
    st = Structure('water')
    st.addAtom(Atom('O', 0, 0, 0))
    st.newAtom('H', 0.96, 0, 0)

    Attributes:
        name: 标题
        atoms: 原子列表, 顺序即输入顺序
        unit_cell: 晶胞 (UnitCell) 或 None
        is_crystal: 是否为晶体
        supercell: 超胞倍数 (nx, ny, nz)
        manual_bonds: 手动添加的键, {(id1, id2)}, id1 < id2
        suppressed_bonds: 手动删除的自动键, {(id1, id2)}, id1 < id2
    """
    def __init__(self, name='Untitled', atoms=None, unit_cell: Optional[UnitCell] = None, is_crystal=None):
        self.name = name
        self.atoms = []
        self.unit_cell = unit_cell
        self.is_crystal = (unit_cell is not None) if is_crystal is None else bool(is_crystal)
        self.supercell = (1, 1, 1)
        self.manual_bonds = set()
        self.suppressed_bonds = set()
        for atom in atoms or []:
            self.addAtom(atom)

    def __repr__(self):
        s = ["<Structure {!r} @ {}>".format(self.name, hex(id(self))),
             "{} atoms: {}".format(self.natom, self.formula)]
        if self.unit_cell is not None:
            s.append(repr(self.unit_cell))
        return "\n".join(s)

    def __len__(self):
        return len(self.atoms)

    def __iter__(self):
        return iter(self.atoms)

    @property
    def natom(self) -> int:
        return len(self.atoms)

    @property
    def atom_symbols(self) -> List[str]:
        return [at.element for at in self.atoms]

    @property
    def atom_ids(self) -> List[str]:
        return [at.id for at in self.atoms]

    @property
    def formula(self) -> str:
        counts = {}
        for symbol in self.atom_symbols:
            counts[symbol] = counts.get(symbol, 0) + 1
        return "".join(k if v == 1 else "{}{}".format(k, v) for k, v in counts.items())

    @property
    def coords(self) -> np.ndarray:
        """笛卡尔坐标 (n * 3), 副本"""
        return np.array([at.position for at in self.atoms], dtype=float).reshape((-1, 3))

    @coords.setter
    def coords(self, value):
        value = np.asarray(value, dtype=float).reshape((-1, 3))
        if value.shape[0] != len(self.atoms):
            raise ValueError("expected {} coordinates, got {}".format(len(self.atoms), value.shape[0]))
        for at, xyz in zip(self.atoms, value):
            at.setPosition(*xyz)

    @property
    def frac_coords(self) -> np.ndarray:
        if self.unit_cell is None:
            raise PreconditionError("fractional coordinates need a unit cell")
        return self.unit_cell.getFractionalCoords(self.coords)

    @frac_coords.setter
    def frac_coords(self, value):
        if self.unit_cell is None:
            raise PreconditionError("fractional coordinates need a unit cell")
        self.coords = self.unit_cell.getCartesianCoords(value)

    # ---------------- 编辑 ----------------
    def addAtom(self, atom: Atom) -> Atom:
        if self.getAtom(atom.id) is not None:
            raise ValueError("duplicated atom id: {}".format(atom.id))
        self.atoms.append(atom)
        return atom

    def newAtom(self, element, x=0.0, y=0.0, z=0.0, fixed=False) -> Atom:
        """添加新原子, 元素符号不合法时抛出 UnknownElementError"""
        return self.addAtom(Atom(requireElement(element), x, y, z, fixed=fixed))

    def removeAtom(self, atom_id: str) -> None:
        self.atoms = [at for at in self.atoms if at.id != atom_id]
        self.manual_bonds = {p for p in self.manual_bonds if atom_id not in p}
        self.suppressed_bonds = {p for p in self.suppressed_bonds if atom_id not in p}

    def getAtom(self, atom_id: str) -> Optional[Atom]:
        for at in self.atoms:
            if at.id == atom_id:
                return at
        return None

    def _requireAtom(self, atom_id: str) -> Atom:
        atom = self.getAtom(atom_id)
        if atom is None:
            raise KeyError("no atom with id {!r}".format(atom_id))
        return atom

    def setElement(self, atom_id: str, element: str) -> None:
        self._requireAtom(atom_id).element = requireElement(element)

    def translate(self, dx, dy, dz) -> None:
        shift = np.array([dx, dy, dz], dtype=float)
        for at in self.atoms:
            at.position = at.position + shift

    def getCenterOfMass(self) -> np.ndarray:
        if len(self.atoms) == 0:
            return np.zeros(3)
        mass = np.array([getAtomicMass(at.element) for at in self.atoms])
        return np.dot(mass, self.coords) / mass.sum()

    def centerAtOrigin(self) -> None:
        self.translate(*(-self.getCenterOfMass()))

    def setUnitCell(self, unit_cell: Optional[UnitCell], fix_frac=False) -> None:
        """重建晶胞

        默认保持笛卡尔坐标
        fix_frac: 保持分数坐标
        """
        if fix_frac and self.unit_cell is not None and unit_cell is not None:
            fcoords = self.frac_coords
            self.unit_cell = unit_cell
            self.frac_coords = fcoords
        else:
            self.unit_cell = unit_cell
        self.is_crystal = unit_cell is not None

    # ---------------- 成键 ----------------
    def addManualBond(self, atom_id1: str, atom_id2: str) -> None:
        if atom_id1 == atom_id2:
            raise ValueError("an atom cannot bond to itself: {}".format(atom_id1))
        self._requireAtom(atom_id1)
        self._requireAtom(atom_id2)
        pair = normalizeBondPair(atom_id1, atom_id2)
        self.suppressed_bonds.discard(pair)
        self.manual_bonds.add(pair)

    def removeBond(self, atom_id1: str, atom_id2: str) -> None:
        pair = normalizeBondPair(atom_id1, atom_id2)
        manual_only = pair in self.manual_bonds and not self._isAutoBond(*pair)
        self.manual_bonds.discard(pair)
        if not manual_only:
            self.suppressed_bonds.add(pair)

    def hasManualBond(self, atom_id1: str, atom_id2: str) -> bool:
        return normalizeBondPair(atom_id1, atom_id2) in self.manual_bonds

    def isBondSuppressed(self, atom_id1: str, atom_id2: str) -> bool:
        return normalizeBondPair(atom_id1, atom_id2) in self.suppressed_bonds

    def recalculateBonds(self) -> None:
        """清除手动修改, 回到纯距离判断"""
        self.manual_bonds.clear()
        self.suppressed_bonds.clear()

    @staticmethod
    def _bondLength(atom1: Atom, atom2: Atom, tolerance=None) -> float:
        tolerance = config.BONDING['tolerance'] if tolerance is None else tolerance
        return (getCovalentRadius(atom1.element) + getCovalentRadius(atom2.element)) * tolerance

    def _isAutoBond(self, atom_id1, atom_id2, tolerance=None) -> bool:
        atom1, atom2 = self.getAtom(atom_id1), self.getAtom(atom_id2)
        if atom1 is None or atom2 is None:
            return False
        return atom1.distanceTo(atom2) < self._bondLength(atom1, atom2, tolerance)

    def _covalentRadius(self) -> np.ndarray:
        return np.array([getCovalentRadius(at.element) for at in self.atoms], dtype=float)

    def getBonds(self, tolerance=None) -> List[Bond]:
        """所有键, 每个原子对只出现一次

        Auto bonds (distance < (r_i + r_j) * tolerance, not suppressed) come
        first in atom order, followed by manual bonds not found by distance.
        """
        tolerance = config.BONDING['tolerance'] if tolerance is None else tolerance
        bonds = []
        seen = set()
        for i, j, dist in find_empiric_bonds(self.coords, self._covalentRadius(), tolerance):
            atom1, atom2 = self.atoms[i], self.atoms[j]
            pair = normalizeBondPair(atom1.id, atom2.id)
            if pair in self.suppressed_bonds or pair in seen:
                continue
            seen.add(pair)
            bonds.append(Bond(atom1.id, atom2.id, dist, False))
        bonds.extend(self._manualOnlyBonds(seen))
        return bonds

    def _manualOnlyBonds(self, seen) -> List[Bond]:
        index = {at.id: n for n, at in enumerate(self.atoms)}
        pairs = [p for p in self.manual_bonds if p not in seen and p[0] in index and p[1] in index]
        # 按原子顺序输出
        pairs.sort(key=lambda p: sorted((index[p[0]], index[p[1]])))
        bonds = []
        for a, b in pairs:
            atom1, atom2 = self.atoms[index[a]], self.atoms[index[b]]
            if index[a] > index[b]:
                atom1, atom2 = atom2, atom1
            bonds.append(Bond(atom1.id, atom2.id, atom1.distanceTo(atom2), True))
        return bonds

    def getPeriodicBonds(self, tolerance=None) -> List[Bond]:
        """包含周期性镜像的键

        image is the lattice offset applied to the second atom. Home cell
        contacts honour the manual/suppressed overrides.
        """
        if self.unit_cell is None:
            raise PreconditionError("periodic bonds need a unit cell")
        tolerance = config.BONDING['tolerance'] if tolerance is None else tolerance
        bonds = []
        seen = set()
        found = find_empiric_bonds_pbc(self.coords, self._covalentRadius(),
                                       self.unit_cell.matrix, tolerance)
        for i, j, offset, dist in found:
            atom1, atom2 = self.atoms[i], self.atoms[j]
            if offset == (0, 0, 0):
                pair = normalizeBondPair(atom1.id, atom2.id)
                if pair in self.suppressed_bonds:
                    continue
                seen.add(pair)
                bonds.append(Bond(atom1.id, atom2.id, dist, False, offset))
            else:
                bonds.append(Bond(atom1.id, atom2.id, dist, False, offset))
        bonds.extend(self._manualOnlyBonds(seen))
        return bonds

    def getBondGraph(self, tolerance=None) -> nx.Graph:
        """原子连接图, 节点为原子 id"""
        G = nx.Graph()
        for at in self.atoms:
            G.add_node(at.id, element=at.element)
        for bond in self.getBonds(tolerance):
            G.add_edge(bond.atom_id1, bond.atom_id2, distance=bond.distance, manual=bond.manual)
        return G

    def getConnectedGroups(self, tolerance=None) -> List[List[str]]:
        """按键连接划分的分子片段, 片段内按原子顺序"""
        order = {at.id: n for n, at in enumerate(self.atoms)}
        groups = [sorted(g, key=order.get) for g in nx.connected_components(self.getBondGraph(tolerance))]
        groups.sort(key=lambda g: order[g[0]])
        return groups

    # ---------------- 超胞 ----------------
    def setSupercell(self, na=1, nb=1, nc=1) -> None:
        supercell = (na, nb, nc)
        for n in supercell:
            if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
                raise ValueError("supercell multipliers must be integers >= 1, got {}".format(supercell))
        self.supercell = tuple(int(n) for n in supercell)

    def _imageOffsets(self, na, nb, nc):
        return itertools.product(range(na), range(nb), range(nc))

    def getSupercellImages(self) -> List[ImageAtom]:
        """超胞中的所有原子副本

        The (0, 0, 0) copy keeps the atom id and is primary, other copies
        are named `<id>::<i>-<j>-<k>`.
        """
        na, nb, nc = self.supercell
        if self.unit_cell is None:
            if (na, nb, nc) != (1, 1, 1):
                raise PreconditionError("supercell images need a unit cell")
            matrix = np.zeros((3, 3))
        else:
            matrix = self.unit_cell.matrix
        images = []
        for offset in self._imageOffsets(na, nb, nc):
            primary = offset == (0, 0, 0)
            shift = np.dot(offset, matrix)
            for at in self.atoms:
                image_id = at.id if primary else "{}::{}-{}-{}".format(at.id, *offset)
                images.append(ImageAtom(image_id, at.id, at.element, at.position + shift, offset, primary))
        return images

    def generateSupercell(self, na=1, nb=1, nc=1) -> Structure:
        """生成新的超胞结构, 所有原子为新原子"""
        if self.unit_cell is None:
            raise PreconditionError("supercell generation needs a unit cell")
        struct = Structure("{}_supercell".format(self.name), unit_cell=self.unit_cell.scaled(na, nb, nc))
        matrix = self.unit_cell.matrix
        for offset in self._imageOffsets(na, nb, nc):
            shift = np.dot(offset, matrix)
            for at in self.atoms:
                struct.addAtom(Atom(at.element, *(at.position + shift), fixed=at.fixed))
        logger.debug("supercell {}x{}x{}: {} atoms".format(na, nb, nc, struct.natom))
        return struct

    # ---------------- 复制/转换 ----------------
    def copy(self) -> Structure:
        """深拷贝, 原子 id 不变"""
        struct = Structure(self.name, [at.copy() for at in self.atoms],
                           unit_cell=None if self.unit_cell is None else self.unit_cell.copy(),
                           is_crystal=self.is_crystal)
        struct.supercell = tuple(self.supercell)
        struct.manual_bonds = set(self.manual_bonds)
        struct.suppressed_bonds = set(self.suppressed_bonds)
        return struct

    def toDict(self) -> dict:
        """writer 使用的信息字典"""
        unit_cell = self.unit_cell
        return {
            "title": self.name,
            "atom_symbols": self.atom_symbols,
            "coords": self.coords,
            "frac_coords": None if unit_cell is None else unit_cell.getFractionalCoords(self.coords),
            "lattice": None if unit_cell is None else unit_cell.getLatticeVectors(),
            "latt6": None if unit_cell is None else unit_cell.parameters,
            "fixed": [at.fixed for at in self.atoms],
        }

    @classmethod
    def fromDict(cls, info_dict: dict) -> Structure:
        """从 parser 输出的字典构造

        Keys: title, atom_symbols, coords | frac_coords, lattice | latt6, fixed.
        A lattice matrix that is not in the canonical orientation is rotated
        into it, keeping the fractional coordinates.
        """
        symbols = list(info_dict.get("atom_symbols") or [])
        lattice = info_dict.get("lattice")
        latt6 = info_dict.get("latt6")
        unit_cell = None
        if latt6 is not None:
            unit_cell = UnitCell(*latt6)
        elif lattice is not None:
            lattice = np.asarray(lattice, dtype=float)
            unit_cell = UnitCell.fromLatticeVectors(lattice)

        coords = info_dict.get("coords")
        frac_coords = info_dict.get("frac_coords")
        if frac_coords is not None and len(symbols) > 0:
            if unit_cell is None:
                raise PreconditionError("fractional coordinates without a unit cell")
            coords = unit_cell.getCartesianCoords(frac_coords)
        elif coords is not None and len(symbols) > 0:
            coords = np.asarray(coords, dtype=float).reshape((-1, 3))
            if lattice is not None and not np.allclose(lattice, unit_cell.matrix, atol=1e-8):
                coords = unit_cell.getCartesianCoords(np.dot(coords, inv3(lattice)))
        else:
            coords = np.zeros((0, 3))

        if len(coords) != len(symbols):
            raise ValueError("{} symbols but {} coordinates".format(len(symbols), len(coords)))
        fixed = info_dict.get("fixed")
        if fixed is None:
            fixed = [False] * len(symbols)
        struct = cls(info_dict.get("title") or "", unit_cell=unit_cell)
        for symbol, xyz, fx in zip(symbols, coords, fixed):
            struct.atoms.append(Atom(symbol, *xyz, fixed=fx))
        return struct

    @classmethod
    def fromString(cls, string: str, fmt='xyz') -> Structure:
        from ..io.dispatcher import getCodec
        return getCodec(fmt).parse(string)

    def toString(self, fmt='xyz') -> str:
        from ..io.dispatcher import getCodec
        return getCodec(fmt).serialize(self)
