# -*- coding:utf-8 -*-
import numpy as np
import pytest
from acoord import (Structure, UnitCell, loadStructures, saveStructures,
                    StructuralParseError, PreconditionError, MalformedLineWarning)
from acoord.io import xdatcar

HEADER = """Si
1.0
3.0 0.0 0.0
0.0 3.0 0.0
0.0 0.0 3.0
Si
1
"""

XDATCAR = HEADER + """Direct configuration=     1
0.1 0.2 0.3
Direct configuration=     2
0.3 0.2 0.3
"""


def test_two_frames():
    frames = xdatcar.trajectory_parser(XDATCAR)
    assert len(frames) == 2
    assert np.allclose(frames[0]['frac_coords'], [[0.1, 0.2, 0.3]])
    st = Structure.fromDict(xdatcar.parser(XDATCAR))
    assert st.coords[0][0] == pytest.approx(0.9)


def test_variable_cell():
    string = XDATCAR.replace("Direct configuration=     2",
                             HEADER.replace("3.0", "4.0") + "Direct configuration=     2")
    structures = loadStructures("XDATCAR", content=string)
    assert len(structures) == 2
    assert structures[0].unit_cell.a == pytest.approx(3.0)
    assert structures[1].unit_cell.a == pytest.approx(4.0)
    assert structures[1].coords[0][0] == pytest.approx(1.2)


def test_short_frame_is_skipped():
    string = HEADER.replace("Si\n1\n", "Si\n2\n") + """Direct configuration=     1
0.1 0.1 0.1
Direct configuration=     2
0.1 0.1 0.1
0.2 0.2 0.2
"""
    with pytest.warns(MalformedLineWarning):
        frames = xdatcar.trajectory_parser(string)
    assert len(frames) == 1
    assert np.allclose(frames[0]['frac_coords'][1], [0.2, 0.2, 0.2])


def test_no_frames():
    with pytest.raises(StructuralParseError):
        xdatcar.trajectory_parser(HEADER)


def make_frames():
    st = Structure('', unit_cell=UnitCell(3, 3, 3))
    st.newAtom('O', 0.3, 0.3, 0.3)
    st.newAtom('Si', 0.6, 0.6, 0.6)
    st.newAtom('O', 0.9, 0.9, 0.9)
    moved = st.copy()
    moved.translate(0.3, 0, 0)
    return [st, moved]


def test_writer_roundtrip():
    frames = make_frames()
    text = saveStructures(frames, 'xdatcar')
    lines = text.splitlines()
    assert lines[0] == 'O Si'
    assert lines[5].split() == ['O', 'Si']
    assert lines[6].split() == ['2', '1']
    assert 'Direct configuration=     1' in text
    assert 'Direct configuration=     2' in text
    back = loadStructures("XDATCAR", content=text)
    assert len(back) == 2
    assert back[1].atom_symbols == ['O', 'O', 'Si']
    assert np.allclose(back[1].coords, frames[1].coords[[0, 2, 1]], atol=1e-7)


def test_writer_rejects_inconsistent_frames():
    frames = make_frames()
    frames[1].removeAtom(frames[1].atom_ids[0])
    with pytest.raises(PreconditionError):
        saveStructures(frames, 'xdatcar')
    with pytest.raises(PreconditionError):
        xdatcar.trajectory_writer([])


def test_writer_requires_cell(water):
    with pytest.raises(PreconditionError):
        water.toString('xdatcar')
