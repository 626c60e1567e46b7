# -*- coding:utf-8 -*-
import pytest
from acoord import config, Structure


@pytest.fixture(autouse=True)
def reset_config():
    config.reset()
    yield
    config.reset()


@pytest.fixture
def water():
    st = Structure('water')
    st.newAtom('O', 0.0, 0.0, 0.0)
    st.newAtom('H', 0.9572, 0.0, 0.0)
    st.newAtom('H', -0.2399872, 0.9266272, 0.0)
    return st
