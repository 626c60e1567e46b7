# -*- coding:utf-8 -*-
import numpy as np
import pytest
from acoord import Structure, UnitCell, StructuralParseError, PreconditionError
from acoord.io import vasp

SI_POSCAR = """Si diamond
5.43
1.0 0.0 0.0
0.0 1.0 0.0
0.0 0.0 1.0
Si
2
Direct
0.0 0.0 0.0
0.25 0.25 0.25
"""


def poscar(scale, body, species="C", counts="1", mode="Direct", title="test"):
    return "\n".join([title, scale, "1 0 0", "0 1 0", "0 0 1", species, counts, mode, body]) + "\n"


def test_parse_si():
    st = Structure.fromString(SI_POSCAR, 'poscar')
    assert st.name == 'Si diamond'
    assert st.atom_symbols == ['Si', 'Si']
    assert st.unit_cell.a == pytest.approx(5.43)
    assert np.allclose(st.coords[1], [1.3575, 1.3575, 1.3575])


def test_negative_scale_is_volume():
    info = vasp.parser(poscar("-8", "0.5 0.5 0.5"))
    assert np.allclose(info['lattice'], np.eye(3) * 2)
    st = Structure.fromDict(info)
    assert np.allclose(st.coords, [[1, 1, 1]])


def test_three_scales():
    info = vasp.parser(poscar("2 3 4", "0.5 0.5 0.5"))
    assert np.allclose(info['lattice'], np.diag([2, 3, 4]))


@pytest.mark.parametrize("scale", ["0", "1 2", "1 -1 1", "abc"])
def test_bad_scale(scale):
    with pytest.raises(StructuralParseError):
        vasp.parser(poscar(scale, "0 0 0"))


def test_species_from_title():
    string = """Fe2 O3 generated
1.0
5 0 0
0 5 0
0 0 5
2 3
Direct
0.0 0.0 0.0
0.5 0.5 0.5
0.1 0.1 0.1
0.2 0.2 0.2
0.3 0.3 0.3
"""
    info = vasp.parser(string)
    assert info['atom_symbols'] == ['Fe', 'Fe', 'O', 'O', 'O']


def test_unknown_species_padded():
    string = "generated\n1.0\n5 0 0\n0 5 0\n0 0 5\n1\nDirect\n0 0 0\n"
    assert vasp.parser(string)['atom_symbols'] == ['X']


def test_selective_dynamics():
    body = "0.0 0.0 0.0 F F F\n0.5 0.5 0.5 T F T"
    string = poscar("4.0", body, counts="2", mode="Selective dynamics\nDirect")
    info = vasp.parser(string)
    assert info['fixed'] == [True, False]
    st = Structure.fromDict(info)
    assert st.atoms[0].fixed and not st.atoms[1].fixed


def test_cartesian_uses_scale():
    info = vasp.parser(poscar("2.0", "0.5 0.5 0.5", mode="Cartesian"))
    assert 'frac_coords' not in info
    assert np.allclose(info['coords'], [[1, 1, 1]])


def test_potcar_label_species():
    info = vasp.parser(poscar("3.0", "0 0 0", species="Fe_pv"))
    assert info['atom_symbols'] == ['Fe']


def test_no_positions():
    with pytest.raises(StructuralParseError):
        vasp.parser(poscar("3.0", "", mode="Direct\nnot a row"))


def test_group_species():
    symbols, counts, order = vasp.group_species(['Si', 'O', 'Si'])
    assert symbols == ['Si', 'O']
    assert counts == [2, 1]
    assert order == [0, 2, 1]


def test_roundtrip_with_fixed_atom():
    st = Structure('quartz', unit_cell=UnitCell(4, 5, 6))
    st.newAtom('Si', 0.4, 0.5, 0.6)
    st.newAtom('O', 1.0, 1.0, 1.0)
    st.newAtom('Si', 2.0, 2.0, 2.0, fixed=True)
    text = st.toString('poscar')
    lines = text.splitlines()
    assert lines[0] == 'quartz'
    assert lines[5].split() == ['Si', 'O']
    assert lines[6].split() == ['2', '1']
    assert lines[7] == 'Selective dynamics'
    assert lines[8] == 'Direct'
    assert lines[10].endswith('F F F')
    back = Structure.fromString(text, 'poscar')
    assert back.atom_symbols == ['Si', 'Si', 'O']
    assert [at.fixed for at in back.atoms] == [False, True, False]
    assert np.allclose(back.coords, st.coords[[0, 2, 1]], atol=1e-8)


def test_writer_requires_cell(water):
    with pytest.raises(PreconditionError):
        water.toString('poscar')
