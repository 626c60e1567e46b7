# -*- coding:utf-8 -*-
import re
import numpy as np
from .exceptions import DegenerateGeometryError


class Units:
    """
    距离基准 (Angstrom), values are the length of one unit in angstrom
    """
    # CODATA 2018, used by Quantum ESPRESSO
    bohr = 0.529177210903
    # CODATA 2010, used by ABACUS
    bohr_abacus = 0.52917721092


def latt62Matrix(latt6):
    """Lattice parameters (a, b, c, alpha, beta, gamma) to row vectors

    a along +x, b in the xy plane.
    """
    a, b, c = latt6[:3]
    A = np.deg2rad(latt6[3])
    B = np.deg2rad(latt6[4])
    C = np.deg2rad(latt6[5])
    cos_A = np.cos(A)
    cos_B = np.cos(B)
    cos_C = np.cos(C)
    sin_C = np.sin(C)
    if abs(sin_C) < 1e-12:
        raise DegenerateGeometryError("lattice error: gamma gives sin(gamma) = 0")
    c_x = c * cos_B
    c_y = c * (cos_A - cos_B * cos_C) / sin_C
    radicand = c * c - c_x * c_x - c_y * c_y
    if radicand <= 1e-12 * c * c:
        raise DegenerateGeometryError(
            "lattice error: angles {:.4f} {:.4f} {:.4f} give no volume".format(*latt6[3:]))
    return np.array([[a, 0., 0.],
                     [b * cos_C, b * sin_C, 0.],
                     [c_x, c_y, np.sqrt(radicand)]], dtype=np.float64)


def matrix2Latt6(matrix):
    matrix = np.asarray(matrix, dtype=float)
    a = np.linalg.norm(matrix[0])
    b = np.linalg.norm(matrix[1])
    c = np.linalg.norm(matrix[2])
    if min(a, b, c) < 1e-12:
        raise DegenerateGeometryError("lattice error: zero length lattice vector")
    n_mat = matrix / np.array([[a, b, c]]).T
    A = np.rad2deg(np.arccos(np.clip(np.dot(n_mat[1], n_mat[2]), -1, 1)))
    B = np.rad2deg(np.arccos(np.clip(np.dot(n_mat[0], n_mat[2]), -1, 1)))
    C = np.rad2deg(np.arccos(np.clip(np.dot(n_mat[0], n_mat[1]), -1, 1)))
    return float(a), float(b), float(c), float(A), float(B), float(C)


def det3(m):
    return (m[0][0] * (m[1][1] * m[2][2] - m[1][2] * m[2][1])
            - m[0][1] * (m[1][0] * m[2][2] - m[1][2] * m[2][0])
            + m[0][2] * (m[1][0] * m[2][1] - m[1][1] * m[2][0]))


def inv3(m):
    """Inverse of a 3x3 matrix by cofactor expansion"""
    m = np.asarray(m, dtype=float)
    det = det3(m)
    if abs(det) < 1e-12:
        raise DegenerateGeometryError("singular lattice matrix, det = {:g}".format(det))
    cof = np.array([
        [m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1],
         m[1, 2] * m[2, 0] - m[1, 0] * m[2, 2],
         m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0]],
        [m[0, 2] * m[2, 1] - m[0, 1] * m[2, 2],
         m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0],
         m[0, 1] * m[2, 0] - m[0, 0] * m[2, 1]],
        [m[0, 1] * m[1, 2] - m[0, 2] * m[1, 1],
         m[0, 2] * m[1, 0] - m[0, 0] * m[1, 2],
         m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0]],
    ])
    # adjugate = transposed cofactor matrix
    return cof.T / det


def str2float(text):
    """Fortran style number: `1.0d-3`, `1/2`; NaN when not a number"""
    text = text.strip()
    if '/' in text:
        num, _, den = text.partition('/')
        num, den = str2float(num), str2float(den)
        if abs(den) > 1e-12:
            return num / den
        return float('nan')
    try:
        return float(re.sub(r'[dD]', 'e', text))
    except ValueError:
        return float('nan')
