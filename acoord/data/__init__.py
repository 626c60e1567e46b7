# -*- coding:utf-8 -*-
from pathlib import Path
from .reader import read_periodic_table

__all__ = ["PERIODIC_TABLE", "PERIODIC_INDEX"]

current_path = Path(__file__).parent

PERIODIC_TABLE, PERIODIC_INDEX = read_periodic_table(current_path / "periodic_table.json")
