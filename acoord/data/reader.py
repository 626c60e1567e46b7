# -*- coding:utf-8 -*-
import json
from types import MappingProxyType


def read_periodic_table(fp):
    """Load the element table

    The file is a list of rows, the first row holds the column names.
    Returns read-only mappings symbol -> properties and atomic number -> symbol.
    """
    with open(fp, encoding="utf-8") as f:
        data = json.load(f)
    cols, lines = data[0], data[1:]
    table = {}
    for l in lines:
        table[l[0]] = MappingProxyType(dict(zip(cols, l)))
    table_index = {d['Atomic no']: k for k, d in table.items()}
    return MappingProxyType(table), MappingProxyType(table_index)
