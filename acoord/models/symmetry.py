# -*- coding:utf-8 -*-
from __future__ import annotations
from typing import Sequence, Tuple, List
import re
from fractions import Fraction
import numpy as np
from numpy import ndarray
from .. import logger as root_logger
logger = root_logger.getChild('symmetry')


class SymmOp():
    def __init__(self, affine_transformation_matrix: ndarray):
        """
        对称操作对象, 接受 4x4 对称操作矩阵, 作用于分数坐标.

        使用 from_xyz_string 构造函数, 从 '-x+1/2, y, -z' 形式的字符串构造

        Args:
            affine_transformation_matrix (4x4 array)
        """
        affine_transformation_matrix = np.array(affine_transformation_matrix, dtype=float)
        if affine_transformation_matrix.shape != (4, 4):
            raise ValueError("Affine Matrix must be a 4x4 numpy array!")
        self.affine_matrix = affine_transformation_matrix
        self.affine_matrix.setflags(write=False)

    @classmethod
    def from_rotation_and_translation(cls, rot, trans):
        rotation_matrix = np.array(rot, dtype=float)
        translation_vec = np.array(trans, dtype=float)
        if rotation_matrix.shape != (3, 3):
            raise ValueError("Rotation Matrix must be a 3x3 numpy array.")
        if translation_vec.shape != (3,):
            raise ValueError("Translation vector must be a rank 1 numpy array with 3 elements.")
        affine_matrix = np.eye(4)
        affine_matrix[:3, :3] = rotation_matrix
        affine_matrix[:3, 3] = translation_vec
        return cls(affine_matrix)

    def __eq__(self, other):
        if isinstance(other, SymmOp):
            return self.sign == other.sign
        return NotImplemented

    def __hash__(self):
        return hash(self.sign)

    def __repr__(self):
        return "<SymmOp {}>".format(self.as_xyz_string())

    @property
    def rotation_matrix(self) -> ndarray:
        """3x3 旋转矩阵"""
        return self.affine_matrix[:3, :3]

    @property
    def translation_vector(self) -> ndarray:
        """1x3 平移向量"""
        return self.affine_matrix[:3, 3]

    @property
    def sign(self) -> bytes:
        """操作签名, 平移精度为 1/12, 用于比较和哈希"""
        sign = self.rotation_matrix.round().astype('int8').tobytes()
        sign += ((self.translation_vector * 12).round() % 12).astype('int8').tobytes()
        return sign

    def is_identity(self) -> bool:
        return np.allclose(self.affine_matrix, np.eye(4))

    def operate_multi(self, points):
        """
        Apply the operation on a list of points.
        Args:
            points: List of fractional coordinates
        Returns:
            Numpy array of coordinates after operation
        """
        points = np.array(points, dtype=float)
        affine_points = np.concatenate([points, np.ones(points.shape[:-1] + (1,))], axis=-1)
        return np.inner(affine_points, self.affine_matrix)[..., :-1]

    def as_xyz_string(self, components=("x", "y", "z"), delim=", ") -> str:
        """
        Returns a string of the form 'x, y, z', '-x, -y, z', '-y+1/2, x+1/2, z+1/2'
        """
        parts = []
        for rot, t in zip(self.rotation_matrix, self.translation_vector):
            s = []
            for r, dim in zip(rot, components):
                if r != 0:
                    f = self._fraction(r)
                    f = f.replace("/", dim + "/") if "/" in f else f + dim
                    f = re.sub(r"^(-?)1" + dim, r"\1" + dim, f)
                    s.append(f)
            if t != 0:
                s.append(self._fraction(t))
            s = "+".join(s) if s else "0"
            parts.append(s.replace("+-", "-"))
        return delim.join(parts)

    @classmethod
    def from_xyz_string(cls, xyz_string: str) -> SymmOp:
        """
        Args:
            xyz_string: string of the form 'x, y, z', '-x, -y, z', '-y+1/2, x+1/2, z+1/2'

        Returns:
            SymmOp
        """
        rot_matrix = np.zeros((3, 3))
        trans = np.zeros(3)
        toks = xyz_string.strip().strip("'\"").replace(" ", "").lower().split(",")
        if len(toks) != 3:
            raise ValueError("symmetry operation needs 3 components: {!r}".format(xyz_string))
        re_rot = re.compile(r"([+-]?)([\d\.]*)/?([\d\.]*)([x-z])")
        re_trans = re.compile(r"([+-]?)([\d\.]+)/?([\d\.]*)(?![x-z\d\./])")
        for i, tok in enumerate(toks):
            if not tok:
                raise ValueError("empty component in symmetry operation {!r}".format(xyz_string))
            # 旋转部分
            for m in re_rot.finditer(tok):
                factor = -1.0 if m.group(1) == "-" else 1.0
                if m.group(2) != "":
                    factor *= float(m.group(2)) / float(m.group(3)) if m.group(3) != "" else float(m.group(2))
                j = ord(m.group(4)) - 120
                rot_matrix[i, j] = factor
            # 平移部分
            for m in re_trans.finditer(tok):
                factor = -1 if m.group(1) == "-" else 1
                num = float(m.group(2)) / float(m.group(3)) if m.group(3) != "" else float(m.group(2))
                trans[i] += num * factor
        return cls.from_rotation_and_translation(rot_matrix, trans)

    @staticmethod
    def _fraction(number):
        return str(Fraction(number).limit_denominator(12))


def expand_asymmetric_unit(
        atom_symbols: Sequence[str],
        frac_coords: ndarray,
        symmops: Sequence[SymmOp],
        matrix: ndarray = None,
        tolerance: float = 1e-6,
    ) -> Tuple[List[str], ndarray]:
    """对称操作展开非对称单元

    Every atom is transformed by every operation, wrapped into [0, 1) and
    kept unless an atom of the same element already sits at the same
    position, compared on a grid of `tolerance` (angstrom when `matrix`
    is given, fractional units otherwise).

    Returns:
        symbols, fractional coordinates (n * 3)
    """
    frac_coords = np.asarray(frac_coords, dtype=float).reshape((-1, 3))
    new_symbols = []
    new_coords = []
    seen = set()
    for op in symmops:
        images = op.operate_multi(frac_coords)
        images -= np.floor(images)
        # floor 的舍入误差会留下 1.0
        images[images >= 1.0] -= 1.0
        keys = images if matrix is None else np.dot(images, matrix)
        keys = np.round(keys / tolerance).astype(np.int64)
        for symbol, coord, key in zip(atom_symbols, images, keys):
            key = (symbol,) + tuple(key.tolist())
            if key in seen:
                continue
            seen.add(key)
            new_symbols.append(symbol)
            new_coords.append(coord)
    logger.debug('expanded {} atoms with {} operations to {}'.format(
        len(frac_coords), len(symmops), len(new_symbols)))
    return new_symbols, np.array(new_coords, dtype=float).reshape((-1, 3))
