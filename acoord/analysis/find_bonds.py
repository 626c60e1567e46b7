# -*- coding: utf-8 -*-
import itertools
import numpy as np


def detectDistance(coords0, coords1, radius0, radius1):
    """
    Args:
        coords0: (float[n * 3]) 原子坐标0
        coords1: (float[m * 3]) 原子坐标1
        radius0: (float[n]) 原子坐标0中, 原子的半径
        radius1: (float[m]) 原子坐标1中, 原子的半径

    Return:
        col (int[a * 2]) 距离小于半径和的原子对, 按 (i, j) 排序
        dist (float[a]) 原子对距离
    """
    coords0 = np.asarray(coords0, dtype=float).reshape((-1, 3))
    coords1 = np.asarray(coords1, dtype=float).reshape((-1, 3))
    limit = np.asarray(radius0, dtype=float).reshape((-1, 1)) + np.asarray(radius1, dtype=float)
    dist = np.sqrt(np.sum((coords0[:, None, :] - coords1[None, :, :]) ** 2, axis=-1))
    col = np.vstack(np.where(dist < limit)).T
    return col, dist[col[:, 0], col[:, 1]]


def find_empiric_bonds(coords, atoms_covalent_radius, detect_cut=1.1):
    """经验找键, bond if d < (r_i + r_j) * detect_cut

    Returns:
        list of (i, j, distance) with i < j
    """
    radius = np.asarray(atoms_covalent_radius, dtype=float) * detect_cut
    col, dist = detectDistance(coords, coords, radius, radius)
    mask = col[:, 0] < col[:, 1]
    return [(int(i), int(j), float(d)) for (i, j), d in zip(col[mask], dist[mask])]


def is_half_space(offset):
    """(ox, oy, oz) 是否在正半空间内, 每个周期性接触只保留一个代表"""
    ox, oy, oz = offset
    return ox > 0 or (ox == 0 and oy > 0) or (ox == 0 and oy == 0 and oz > 0)


IMAGE_OFFSETS = tuple(itertools.product((-1, 0, 1), repeat=3))


def find_empiric_bonds_pbc(coords, atoms_covalent_radius, matrix, detect_cut=1.1):
    """包含周期性镜像的经验找键

    Pairs are tested against the home cell and the 26 neighbouring images.
    The zero offset keeps j > i, other offsets are kept only in the half
    space of `is_half_space`, for every i and j.

    Returns:
        list of (i, j, (ox, oy, oz), distance) sorted by i, j, offset
    """
    coords = np.asarray(coords, dtype=float).reshape((-1, 3))
    matrix = np.asarray(matrix, dtype=float)
    radius = np.asarray(atoms_covalent_radius, dtype=float) * detect_cut
    found = []
    for n, offset in enumerate(IMAGE_OFFSETS):
        zero = offset == (0, 0, 0)
        if not zero and not is_half_space(offset):
            continue
        shift = np.dot(offset, matrix)
        col, dist = detectDistance(coords, coords + shift, radius, radius)
        for (i, j), d in zip(col, dist):
            if zero and j <= i:
                continue
            found.append((int(i), int(j), n, offset, float(d)))
    found.sort(key=lambda x: x[:3])
    return [(i, j, offset, d) for i, j, _, offset, d in found]
