# -*- coding:utf-8 -*-
import numpy as np
import pytest
from acoord import (Atom, Structure, UnitCell, config,
                    PreconditionError, UnknownElementError)


def pairs(bonds):
    return {frozenset((b.atom_id1, b.atom_id2)) for b in bonds}


def test_water_bonds(water):
    o, h1, h2 = water.atom_ids
    bonds = water.getBonds()
    assert pairs(bonds) == {frozenset((o, h1)), frozenset((o, h2))}
    assert not any(b.manual for b in bonds)
    assert bonds[0].distance == pytest.approx(0.9572)


def test_bonds_do_not_depend_on_atom_order(water):
    reverse = Structure('retaw', [at.copy() for at in reversed(water.atoms)])
    assert pairs(reverse.getBonds()) == pairs(water.getBonds())


def test_bond_tolerance(water):
    assert water.getBonds(tolerance=0.5) == []
    config.update({'BONDING': {'tolerance': 0.5}})
    assert water.getBonds() == []


def test_remove_then_recalculate(water):
    o, h1, h2 = water.atom_ids
    water.removeBond(h1, o)
    assert water.isBondSuppressed(o, h1)
    assert pairs(water.getBonds()) == {frozenset((o, h2))}
    water.recalculateBonds()
    assert pairs(water.getBonds()) == {frozenset((o, h1)), frozenset((o, h2))}


def test_manual_bond_survives_moving(water):
    o, h1, h2 = water.atom_ids
    water.addManualBond(h2, h1)
    assert water.hasManualBond(h1, h2)
    water.getAtom(h2).setPosition(10, 10, 10)
    bonds = water.getBonds()
    assert frozenset((h1, h2)) in pairs(bonds)
    manual = [b for b in bonds if b.manual]
    assert len(manual) == 1
    assert (manual[0].atom_id1, manual[0].atom_id2) == (h1, h2)
    assert frozenset((o, h2)) not in pairs(bonds)


def test_manual_bond_restores_suppressed(water):
    o, h1, _ = water.atom_ids
    water.removeBond(o, h1)
    water.addManualBond(o, h1)
    assert not water.isBondSuppressed(o, h1)
    bonds = [b for b in water.getBonds() if frozenset((b.atom_id1, b.atom_id2)) == frozenset((o, h1))]
    assert len(bonds) == 1


def test_remove_manual_only_bond(water):
    _, h1, h2 = water.atom_ids
    water.addManualBond(h1, h2)
    water.removeBond(h1, h2)
    assert not water.hasManualBond(h1, h2)
    assert not water.isBondSuppressed(h1, h2)
    assert frozenset((h1, h2)) not in pairs(water.getBonds())


def test_manual_bond_errors(water):
    o = water.atom_ids[0]
    with pytest.raises(ValueError):
        water.addManualBond(o, o)
    with pytest.raises(KeyError):
        water.addManualBond(o, 'missing')


def test_edit_atoms(water):
    with pytest.raises(UnknownElementError):
        water.newAtom('Qq', 0, 0, 0)
    o, h1, h2 = water.atom_ids
    water.addManualBond(h1, h2)
    water.removeAtom(h2)
    assert water.natom == 2
    assert water.manual_bonds == set()
    water.setElement(h1, 'f')
    assert water.atom_symbols == ['O', 'F']
    with pytest.raises(ValueError):
        water.addAtom(water.atoms[0].copy())


def test_formula_and_groups(water):
    he = water.newAtom('He', 10, 10, 10)
    assert water.formula == 'OH2He'
    groups = water.getConnectedGroups()
    assert groups == [water.atom_ids[:3], [he.id]]
    graph = water.getBondGraph()
    assert graph.number_of_edges() == 2
    assert graph.nodes[he.id]['element'] == 'He'


def test_center_of_mass():
    st = Structure('h2')
    st.newAtom('H', 0, 0, 0)
    st.newAtom('H', 2, 0, 0)
    assert np.allclose(st.getCenterOfMass(), [1, 0, 0])
    st.centerAtOrigin()
    assert np.allclose(st.coords, [[-1, 0, 0], [1, 0, 0]])
    st.translate(1, 2, 3)
    assert np.allclose(st.atoms[0].position, [0, 2, 3])


def test_copy_keeps_ids(water):
    o, h1, h2 = water.atom_ids
    water.addManualBond(h1, h2)
    dup = water.copy()
    assert dup.atom_ids == water.atom_ids
    assert dup.manual_bonds == water.manual_bonds
    dup.atoms[0].setPosition(1, 1, 1)
    dup.manual_bonds.clear()
    assert water.atoms[0].x == 0
    assert water.hasManualBond(h1, h2)


def test_frac_coords_need_cell(water):
    with pytest.raises(PreconditionError):
        water.frac_coords
    with pytest.raises(PreconditionError):
        water.getPeriodicBonds()


def test_set_unit_cell():
    st = Structure('c', unit_cell=UnitCell(2, 2, 2))
    st.newAtom('C', 1, 1, 1)
    assert st.is_crystal
    st.setUnitCell(UnitCell(4, 4, 4), fix_frac=True)
    assert np.allclose(st.coords, [[2, 2, 2]])
    st.setUnitCell(UnitCell(8, 8, 8))
    assert np.allclose(st.coords, [[2, 2, 2]])
    assert np.allclose(st.frac_coords, [[0.25, 0.25, 0.25]])
    st.setUnitCell(None)
    assert not st.is_crystal


def nacl_chain():
    st = Structure('NaCl', unit_cell=UnitCell(5.6, 10, 10))
    na = st.newAtom('Na', 0, 0, 0)
    cl = st.newAtom('Cl', 2.8, 0, 0)
    return st, na.id, cl.id


def test_periodic_bonds_half_space():
    st, na, cl = nacl_chain()
    bonds = st.getPeriodicBonds()
    contacts = {(b.atom_id1, b.atom_id2, b.image) for b in bonds}
    assert contacts == {(na, cl, (0, 0, 0)), (cl, na, (1, 0, 0))}
    for a, b, image in contacts:
        assert (b, a, tuple(-x for x in image)) not in contacts
    assert all(b.distance == pytest.approx(2.8) for b in bonds)


def test_periodic_self_image():
    st = Structure('chain', unit_cell=UnitCell(1.5, 10, 10))
    c = st.newAtom('C', 0, 0, 0)
    bonds = st.getPeriodicBonds()
    assert [(b.atom_id1, b.atom_id2, b.image) for b in bonds] == [(c.id, c.id, (1, 0, 0))]


def test_periodic_bonds_honour_suppression():
    st, na, cl = nacl_chain()
    st.removeBond(na, cl)
    contacts = {(b.atom_id1, b.atom_id2, b.image) for b in st.getPeriodicBonds()}
    assert contacts == {(cl, na, (1, 0, 0))}


def test_supercell_images():
    st = Structure('chain', unit_cell=UnitCell(1.5, 10, 10))
    c = st.newAtom('C', 0, 0, 0)
    st.setSupercell(2, 1, 1)
    images = st.getSupercellImages()
    assert len(images) == 2
    assert images[0].id == c.id and images[0].primary
    assert images[1].id == '{}::1-0-0'.format(c.id)
    assert not images[1].primary
    assert images[1].atom_id == c.id
    assert np.allclose(images[1].position, [1.5, 0, 0])


@pytest.mark.parametrize("supercell", [(0, 1, 1), (1, 1.5, 1), (True, 1, 1)])
def test_supercell_validation(supercell):
    st = Structure('x', unit_cell=UnitCell(2, 2, 2))
    with pytest.raises(ValueError):
        st.setSupercell(*supercell)


def test_supercell_needs_cell(water):
    water.setSupercell(2, 1, 1)
    with pytest.raises(PreconditionError):
        water.getSupercellImages()
    water.setSupercell(1, 1, 1)
    assert len(water.getSupercellImages()) == 3


def test_generate_supercell():
    st, _, _ = nacl_chain()
    big = st.generateSupercell(2, 1, 1)
    assert big.natom == 4
    assert big.unit_cell.a == pytest.approx(11.2)
    assert not set(big.atom_ids) & set(st.atom_ids)


def test_from_dict_reorients_lattice():
    st = Structure.fromDict({
        "title": "rotated",
        "atom_symbols": ["C"],
        "coords": [[0, 2, 0]],
        "lattice": [[0, 4, 0], [-4, 0, 0], [0, 0, 4]],
    })
    assert np.allclose(st.coords, [[2, 0, 0]])
    assert np.allclose(st.frac_coords, [[0.5, 0, 0]])


def test_to_dict(water):
    water.atoms[0].fixed = True
    info = water.toDict()
    assert info["title"] == "water"
    assert info["lattice"] is None and info["frac_coords"] is None
    assert info["fixed"] == [True, False, False]
    back = Structure.fromDict(info)
    assert back.atom_symbols == water.atom_symbols
    assert np.allclose(back.coords, water.coords)
    assert back.atoms[0].fixed


def test_atom_basics():
    at = Atom('O', 1, 2, 3)
    at.x = 4
    assert at.toDict()['position'] == [4, 2, 3]
    assert at.covalent_radius == pytest.approx(0.66)
    assert at.copy().id == at.id
    assert at.copy(atom_id='other').id == 'other'
    assert Atom('O').id != Atom('O').id


def test_element_table():
    from acoord.models.periodic_table import Element, parseElement, labelToSymbol, getCovalentRadius
    assert Element(8).symbol == 'O'
    assert Element('C').number == 6
    assert Element('H').van_der_waals_radius == pytest.approx(1.2)
    assert parseElement('FE') == 'Fe'
    assert parseElement('Qq') is None
    assert labelToSymbol('Fe1') == 'Fe'
    assert labelToSymbol('O2a') == 'O'
    assert getCovalentRadius('Qq') == pytest.approx(1.5)
