# -*- coding:utf-8 -*-
"""PDB, Gaussian, ORCA and ABACUS STRU"""
import numpy as np
import pytest
from acoord import (Structure, UnitCell, config,
                    StructuralParseError, MalformedLineWarning)
from acoord.io import pdb, gjf, orca, stru


# ---------------- PDB ----------------
def pdb_atom(n, name, x, y, z, element, record="ATOM  "):
    return record + "%5d %-4s MOL  %4d    %8.3f%8.3f%8.3f%6.2f%6.2f          %2s" % (
        n, name, 1, x, y, z, 1.0, 0.0, element)


def test_pdb_parse():
    string = "\n".join([
        "TITLE     small test",
        "CRYST1%9.3f%9.3f%9.3f%7.2f%7.2f%7.2f P 1" % (10, 11, 12, 90, 90, 90),
        pdb_atom(1, " CA ", 1.0, 2.0, 3.0, "C"),
        pdb_atom(2, "CA  ", 4.0, 5.0, 6.0, "CA", record="HETATM"),
        "HETATM%5d %-4s %3s  %4d    %8.3f%8.3f%8.3f" % (3, " O", "HOH", 1, 7.0, 8.0, 9.0),
        "ENDMDL",
        pdb_atom(4, " N  ", 0.0, 0.0, 0.0, "N"),
        "END",
    ])
    info = pdb.parser(string)
    assert info['title'] == 'small test'
    assert info['latt6'] == [10, 11, 12, 90, 90, 90]
    assert info['atom_symbols'] == ['C', 'Ca', 'O']
    assert np.allclose(info['coords'][2], [7, 8, 9])


def test_pdb_element_from_atom_name():
    string = "\n".join([
        "ATOM      1  CA  ALA A   1      11.104   6.134  -6.504",
        "ATOM      2  HG  SER A   2      12.000   7.000  -5.000",
        "HETATM    3 FE   HEM A   3       1.000   2.000   3.000",
        "ATOM      4 1HB  ALA A   1      10.000   6.000  -6.000",
        "END",
    ])
    info = pdb.parser(string)
    assert info["atom_symbols"] == ["C", "H", "Fe", "H"]
    assert np.allclose(info["coords"][0], [11.104, 6.134, -6.504])


def test_pdb_no_atoms():
    with pytest.raises(StructuralParseError):
        pdb.parser("TITLE     nothing\nEND\n")


def test_pdb_roundtrip():
    st = Structure('peptide', unit_cell=UnitCell(10, 11, 12, 90, 100, 90))
    st.newAtom('C', 1.2345, -2.5, 3.0)
    st.newAtom('Cl', -10.0, 20.125, 0.001)
    text = st.toString('pdb')
    lines = text.splitlines()
    assert lines[0] == 'TITLE     peptide'
    assert lines[1].startswith('CRYST1   10.000   11.000   12.000  90.00 100.00  90.00')
    assert lines[2][76:78] == ' C'
    assert lines[3][76:78] == 'Cl'
    assert lines[-1] == 'END'
    back = Structure.fromString(text, 'pdb')
    assert back.name == 'peptide'
    assert back.atom_symbols == ['C', 'Cl']
    assert np.allclose(back.coords, st.coords, atol=1e-3)
    assert back.unit_cell.beta == pytest.approx(100)


# ---------------- Gaussian ----------------
GJF = """%chk=test.chk
#P B3LYP/6-31G(d) opt

water test

0 1
O  -1  0.0 0.0 0.0
H  0  0.9572 0.0 0.0
H  0  -0.2399872 0.9266272 0.0
TV 5.0 0.0 0.0
TV 0.0 5.0 0.0
TV 0.0 0.0 5.0

"""


def test_gjf_parse():
    st = Structure.fromString(GJF, 'gjf')
    assert st.name == 'water test'
    assert st.atom_symbols == ['O', 'H', 'H']
    assert [at.fixed for at in st.atoms] == [True, False, False]
    assert st.unit_cell == UnitCell(5, 5, 5)


def test_gjf_partial_tv():
    string = GJF.replace("TV 0.0 0.0 5.0\n", "")
    with pytest.warns(MalformedLineWarning):
        info = gjf.parser(string)
    assert 'lattice' not in info


def test_gjf_missing_charge():
    with pytest.raises(StructuralParseError):
        gjf.parser("#P\n\ntitle\n\nO 0.0 0.0 0.0\n")


def test_gjf_roundtrip(water):
    water.atoms[2].fixed = True
    text = water.toString('gjf')
    assert text.startswith('#P\n\nwater\n\n0 1\n')
    assert "H  -1  " in text
    back = Structure.fromString(text, 'gjf')
    assert back.atom_symbols == water.atom_symbols
    assert np.allclose(back.coords, water.coords, atol=1e-9)
    assert back.atoms[2].fixed and not back.atoms[1].fixed


# ---------------- ORCA ----------------
ORCA = """! B3LYP def2-SVP
%pal nprocs 4 end
* xyz 0 1
O 0.0 0.0 0.0
H 0.9572 0.0 0.0  # comment
*
"""


def test_orca_parse():
    info = orca.parser(ORCA)
    assert info['atom_symbols'] == ['O', 'H']
    assert np.allclose(info['coords'][1], [0.9572, 0, 0])


def test_orca_missing_block():
    with pytest.raises(StructuralParseError):
        orca.parser("! B3LYP\nO 0 0 0\n")


def test_orca_writer(water):
    text = water.toString('orca')
    lines = text.splitlines()
    assert lines[:4] == ['! B3LYP D3 def2-SVP', '%maxcore     8192', '%pal nprocs   8 end', '* xyz 0 1']
    assert lines[-1] == '*'
    back = Structure.fromString(text, 'orca')
    assert np.allclose(back.coords, water.coords, atol=1e-9)


def test_orca_writer_config(water):
    config.update({'EXPORT': {'orca_method': 'PBE0 def2-TZVP', 'orca_nprocs': 16}})
    text = water.toString('orca')
    assert text.startswith('! PBE0 def2-TZVP\n')
    assert '%pal nprocs   16 end' in text


# ---------------- ABACUS STRU ----------------
STRU = """ATOMIC_SPECIES
Si 28.085 Si.upf

NUMERICAL_ORBITAL
Si_gga_8au_100Ry_2s2p1d.orb

LATTICE_CONSTANT
10.2 // bohr

LATTICE_VECTORS
0.0 0.5 0.5
0.5 0.0 0.5
0.5 0.5 0.0

ATOMIC_POSITIONS
{mode}

Si
0.0
2
{rows}
"""

BOHR = stru.BOHR


def test_stru_direct():
    string = STRU.format(mode="Direct", rows="0.00 0.00 0.00 0 0 0\n0.25 0.25 0.25 m 1 1 1")
    info = stru.parser(string)
    assert info['atom_symbols'] == ['Si', 'Si']
    assert info['fixed'] == [True, False]
    assert np.allclose(info['coords'][1], np.full(3, 0.25 * 10.2 * BOHR))
    st = Structure.fromDict(info)
    assert np.allclose(st.frac_coords[1], [0.25, 0.25, 0.25])


def test_stru_cartesian_au():
    string = STRU.format(mode="Cartesian_au", rows="1.0 0.0 0.0\n0.0 2.0 0.0")
    info = stru.parser(string)
    assert np.allclose(info['coords'], [[BOHR, 0, 0], [0, 2 * BOHR, 0]])


def test_stru_cartesian_uses_lattice_constant():
    string = STRU.format(mode="Cartesian", rows="0.5 0.0 0.0\n0.0 0.25 0.0")
    info = stru.parser(string)
    assert np.allclose(info["coords"], [[0.5 * 10.2 * BOHR, 0, 0], [0, 0.25 * 10.2 * BOHR, 0]])


def test_stru_center_offset():
    string = STRU.format(mode="Cartesian_angstrom_center_xyz", rows="0.0 0.0 0.0\n1.0 1.0 1.0")
    info = stru.parser(string)
    center = 0.5 * 10.2 * BOHR
    assert np.allclose(info['coords'][0], [center] * 3)


def test_stru_direct_needs_lattice():
    string = "ATOMIC_POSITIONS\nDirect\nSi\n0.0\n1\n0 0 0\n"
    with pytest.raises(StructuralParseError):
        stru.parser(string)


def test_stru_missing_positions():
    with pytest.raises(StructuralParseError):
        stru.parser(STRU.split("ATOMIC_POSITIONS")[0])


def test_stru_roundtrip_with_cell():
    st = Structure('', unit_cell=UnitCell(4, 5, 6))
    st.newAtom('O', 0.5, 0.5, 0.5)
    st.newAtom('Si', 1.0, 2.0, 3.0, fixed=True)
    st.newAtom('O', 3.0, 4.0, 5.0)
    text = st.toString('stru')
    assert 'LATTICE_VECTORS' in text
    assert '\nDirect\n' in text
    back = Structure.fromString(text, 'stru')
    assert back.atom_symbols == ['O', 'O', 'Si']
    assert [at.fixed for at in back.atoms] == [False, False, True]
    assert np.allclose(back.coords, st.coords[[0, 2, 1]], atol=1e-5)
    assert back.unit_cell.c == pytest.approx(6.0, abs=1e-5)


def test_stru_roundtrip_molecule(water):
    text = water.toString('stru')
    assert 'LATTICE_VECTORS' not in text
    assert '\nCartesian_angstrom\n' in text
    back = Structure.fromString(text, 'stru')
    assert back.unit_cell is None
    assert np.allclose(back.coords, water.coords, atol=1e-9)
