# -*- coding:utf-8 -*-
from enum import Enum
from .._config import config
from ..data import PERIODIC_TABLE, PERIODIC_INDEX
from ..exceptions import UnknownElementError

__all__ = ["ElementBase", "Element", "PERIODIC_TABLE", "PERIODIC_INDEX",
           "parseElement", "labelToSymbol", "requireElement", "getCovalentRadius", "getAtomicMass"]


class ElementBase():
    def __init__(self, *args):
        self._data = {}

    @property
    def data(self) -> dict:
        return dict(self._data)

    @property
    def Z(self) -> int:
        return int(self._data["Atomic no"])

    @property
    def number(self) -> int:
        return int(self._data["Atomic no"])

    @property
    def symbol(self) -> str:
        return str(self._data["symbol"])

    @property
    def atomic_mass(self) -> float:
        return float(self._data.get("Atomic mass", "nan"))

    @property
    def covalent_radius(self) -> float:
        return float(self._data.get("Covalent radius", "nan"))

    @property
    def van_der_waals_radius(self) -> float:
        return float(self._data.get("Van der waals radius", "nan"))


class ElementEnum(ElementBase, Enum):
    """元素类, 使用枚举类型

    调用方法:
        >>> Element("C")
        <Element.C: 'C'>

        >>> Element(8)
        <Element.O: 'O'>
    """
    def __init__(self, *args):
        super().__init__(*args)
        self._data = PERIODIC_TABLE[self._value_]

    @classmethod
    def _missing_(cls, value):
        if value in PERIODIC_INDEX:
            return cls(PERIODIC_INDEX[value])


Element = ElementEnum('Element', {k: k for k in PERIODIC_TABLE})


def parseElement(token):
    """Exact symbol first, then title case (`FE` -> `Fe`); None when unknown"""
    token = (token or '').strip()
    if token in PERIODIC_TABLE:
        return token
    title = token[:1].upper() + token[1:].lower()
    if title in PERIODIC_TABLE:
        return title
    return None


def labelToSymbol(label):
    """Element from a site label such as `Fe1`, `O2a` or `CA`

    The leading letters are tried as a two letter symbol, then one letter.
    """
    letters = ''
    for ch in (label or '').strip():
        if not ch.isalpha():
            if letters:
                break
            continue
        letters += ch
    if not letters:
        return None
    return parseElement(letters[:2]) or parseElement(letters[0])


def requireElement(token):
    symbol = parseElement(token)
    if symbol is None:
        raise UnknownElementError("unknown element: {!r}".format(token))
    return symbol


def getCovalentRadius(symbol, default=None):
    """Covalent radius (angstrom); unknown symbols fall back to the configured default"""
    symbol = parseElement(symbol)
    if symbol is None:
        return config.BONDING['default_radius'] if default is None else default
    return Element(symbol).covalent_radius


def getAtomicMass(symbol, default=1.0):
    symbol = parseElement(symbol)
    if symbol is None:
        return default
    return Element(symbol).atomic_mass
