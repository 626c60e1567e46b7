from .find_bonds import find_empiric_bonds, find_empiric_bonds_pbc
