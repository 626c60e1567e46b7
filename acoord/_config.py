# -*- coding:utf-8 -*-
import copy
import yaml
from . import logger as root_logger
logger = root_logger.getChild('Config')


_default_BONDING = {
    'tolerance': 1.1,
    'default_radius': 1.5,
}

_default_SYMMETRY = {
    'dedup_tolerance': 1e-6,
}

_default_EXPORT = {
    'qe_box': 20.0,
    'qe_ecutwfc': 50,
    'qe_conv_thr': '1.0d-8',
    'orca_method': 'B3LYP D3 def2-SVP',
    'orca_maxcore': 8192,
    'orca_nprocs': 8,
}


class Config():
    """Tunable defaults shared by bond detection, CIF expansion and writers

    Values may be overridden from a yaml file:

        BONDING:
          tolerance: 1.2
        SYMMETRY:
          dedup_tolerance: 1.0e-4
    """
    _save_keys = ["BONDING", "SYMMETRY", "EXPORT"]

    def __init__(self):
        self.reset()

    def __getitem__(self, key):
        return self.__getattribute__(key)

    def reset(self):
        self.BONDING = copy.deepcopy(_default_BONDING)
        self.SYMMETRY = copy.deepcopy(_default_SYMMETRY)
        self.EXPORT = copy.deepcopy(_default_EXPORT)

    def update(self, config: dict):
        for k, v in config.items():
            if k not in self._save_keys:
                raise KeyError('unknown config section: {}'.format(k))
            self[k].update(v or {})

    def loads(self, string):
        config = yaml.safe_load(string) or {}
        if not isinstance(config, dict):
            raise ValueError('config must be a mapping, got {}'.format(type(config).__name__))
        self.update(config)

    def dumps(self) -> str:
        return yaml.safe_dump({k: self[k] for k in self._save_keys})

    def load(self, path):
        with open(path, encoding='utf-8') as f:
            self.loads(f.read())
        logger.info('config file: {}'.format(path))

    def save(self, path):
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.dumps())


config = Config()  # noqa
