# -*- coding:utf-8 -*-
import itertools
import numpy as np
from .periodic_table import getCovalentRadius, getAtomicMass

_atom_counter = itertools.count(1)


def new_atom_id() -> str:
    return 'atom_{}'.format(next(_atom_counter))


class Atom():
    """单个原子

    element: 元素符号
    position: 笛卡尔坐标 (Angstrom)
    fixed: 结构优化时是否固定
    id: 结构内唯一的标识
    """
    def __init__(self, element: str, x=0.0, y=0.0, z=0.0, fixed=False, atom_id=None):
        self.element = element
        self.position = np.array([x, y, z], dtype=float)
        self.fixed = bool(fixed)
        self.id = new_atom_id() if atom_id is None else str(atom_id)

    def __repr__(self):
        return "<Atom {} {} ({:.4f}, {:.4f}, {:.4f}){}>".format(
            self.id, self.element, *self.position, " fixed" if self.fixed else "")

    @property
    def x(self) -> float:
        return float(self.position[0])

    @x.setter
    def x(self, value):
        self.position[0] = value

    @property
    def y(self) -> float:
        return float(self.position[1])

    @y.setter
    def y(self, value):
        self.position[1] = value

    @property
    def z(self) -> float:
        return float(self.position[2])

    @z.setter
    def z(self, value):
        self.position[2] = value

    @property
    def covalent_radius(self) -> float:
        return getCovalentRadius(self.element)

    @property
    def atomic_mass(self) -> float:
        return getAtomicMass(self.element)

    def setPosition(self, x, y, z):
        self.position = np.array([x, y, z], dtype=float)

    def distanceTo(self, other) -> float:
        return float(np.linalg.norm(self.position - other.position))

    def copy(self, atom_id=None):
        """复制原子, 默认保留 id"""
        return Atom(self.element, *self.position, fixed=self.fixed,
                    atom_id=self.id if atom_id is None else atom_id)

    def toDict(self) -> dict:
        return {
            'id': self.id,
            'element': self.element,
            'position': self.position.tolist(),
            'fixed': self.fixed,
        }
