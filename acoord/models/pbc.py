# -*- coding:utf-8 -*-
from __future__ import annotations
from typing import Sequence
import numpy as np
from numpy import ndarray
from ..exceptions import DegenerateGeometryError
from ..utils import latt62Matrix, matrix2Latt6, inv3


class UnitCell():
    """周期性晶胞, 不可变

    由六个参数 (a, b, c, alpha, beta, gamma) 确定, 晶格矢量按固定取向生成:
    a 沿 +x, b 在 xy 平面内, c 补全右手基.

    构建对象:
        UnitCell(5.43, 5.43, 5.43, 90, 90, 90)
        UnitCell.fromLatticeVectors([[4, 0, 0], [0, 4, 0], [0, 0, 4]])
    """
    def __init__(self, a=1.0, b=1.0, c=1.0, alpha=90.0, beta=90.0, gamma=90.0):
        parameters = tuple(float(x) for x in (a, b, c, alpha, beta, gamma))
        if not np.all(np.isfinite(parameters)):
            raise DegenerateGeometryError("lattice error: non-finite parameters {}".format(parameters))
        if min(parameters[:3]) <= 0:
            raise DegenerateGeometryError("lattice error: lengths must be positive {}".format(parameters[:3]))
        if not all(0 < x < 180 for x in parameters[3:]):
            raise DegenerateGeometryError("lattice error: angles must be in (0, 180) {}".format(parameters[3:]))
        matrix = latt62Matrix(parameters)
        matrix.setflags(write=False)
        self._parameters = parameters
        self._matrix = matrix

    def __repr__(self):
        return "<UnitCell a={:.4f} b={:.4f} c={:.4f} alpha={:.2f} beta={:.2f} gamma={:.2f}>".format(
            *self._parameters)

    def __eq__(self, other):
        if isinstance(other, UnitCell):
            return np.allclose(self._parameters, other._parameters, rtol=0, atol=1e-10)
        return NotImplemented

    def __hash__(self):
        return hash(tuple(round(x, 8) for x in self._parameters))

    @property
    def a(self) -> float:
        return self._parameters[0]

    @property
    def b(self) -> float:
        return self._parameters[1]

    @property
    def c(self) -> float:
        return self._parameters[2]

    @property
    def alpha(self) -> float:
        return self._parameters[3]

    @property
    def beta(self) -> float:
        return self._parameters[4]

    @property
    def gamma(self) -> float:
        return self._parameters[5]

    @property
    def parameters(self) -> tuple:
        return self._parameters

    @property
    def matrix(self) -> ndarray:
        """行向量为晶格矢量, 只读"""
        return self._matrix

    def getLatticeVectors(self) -> ndarray:
        return self._matrix.copy()

    def getVolume(self) -> float:
        cos_a, cos_b, cos_c = np.cos(np.deg2rad(self._parameters[3:]))
        v_ = 1 - cos_a**2 - cos_b**2 - cos_c**2 + 2 * cos_a * cos_b * cos_c
        return float(self.a * self.b * self.c * np.sqrt(v_))

    @property
    def volume(self) -> float:
        return self.getVolume()

    def cartesianToFractional(self, x, y, z) -> ndarray:
        return np.dot(np.array([x, y, z], dtype=float), inv3(self._matrix))

    def fractionalToCartesian(self, fx, fy, fz) -> ndarray:
        return np.dot(np.array([fx, fy, fz], dtype=float), self._matrix)

    def getFractionalCoords(self, cart_coords) -> ndarray:
        return np.dot(np.asarray(cart_coords, dtype=float).reshape((-1, 3)), inv3(self._matrix))

    def getCartesianCoords(self, frac_coords) -> ndarray:
        return np.dot(np.asarray(frac_coords, dtype=float).reshape((-1, 3)), self._matrix)

    def scaled(self, nx=1, ny=1, nz=1) -> UnitCell:
        """超胞晶胞"""
        return UnitCell(self.a * nx, self.b * ny, self.c * nz, self.alpha, self.beta, self.gamma)

    def copy(self) -> UnitCell:
        return UnitCell(*self._parameters)

    def toDict(self) -> dict:
        return dict(zip(('a', 'b', 'c', 'alpha', 'beta', 'gamma'), self._parameters))

    @classmethod
    def fromLatticeVectors(cls, matrix: Sequence) -> UnitCell:
        matrix = np.asarray(matrix, dtype=float)
        if matrix.shape != (3, 3):
            raise ValueError("Lattice matrix must be 3x3, got {}".format(matrix.shape))
        return cls(*matrix2Latt6(matrix))
