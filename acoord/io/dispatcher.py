# -*- coding:utf-8 -*-
import os
import re
import importlib
from enum import Enum
from .. import logger as root_logger
from ..exceptions import UnsupportedExportError, UnsupportedFormatError
logger = root_logger.getChild('io')


class FileFormat(Enum):
    XYZ = 'xyz'
    CIF = 'cif'
    POSCAR = 'poscar'
    XDATCAR = 'xdatcar'
    OUTCAR = 'outcar'
    QE = 'qe'
    PDB = 'pdb'
    GJF = 'gjf'
    ORCA = 'orca'
    STRU = 'stru'


format_name_dict = {
    'xyz': FileFormat.XYZ,
    'extxyz': FileFormat.XYZ,
    'cif': FileFormat.CIF,
    'vasp': FileFormat.POSCAR,
    'poscar': FileFormat.POSCAR,
    'contcar': FileFormat.POSCAR,
    'xdatcar': FileFormat.XDATCAR,
    'outcar': FileFormat.OUTCAR,
    'in': FileFormat.QE,
    'pwi': FileFormat.QE,
    'pwo': FileFormat.QE,
    'qe': FileFormat.QE,
    'pdb': FileFormat.PDB,
    'gjf': FileFormat.GJF,
    'com': FileFormat.GJF,
    'inp': FileFormat.ORCA,
    'orca': FileFormat.ORCA,
    'stru': FileFormat.STRU,
}


_re_conventional_name = re.compile(r"^(poscar|contcar|xdatcar|outcar|stru)(?:[_\-.]|$)")


class FormatCodec():
    """单帧读写, 包装 io 模块的 parser / writer"""
    def __init__(self, fmt: FileFormat, module_name: str):
        self.format = fmt
        self.module_name = module_name

    def __repr__(self):
        return "<{} {}>".format(type(self).__name__, self.format.value)

    @property
    def module(self):
        return importlib.import_module(".." + self.module_name, __name__)

    def parse(self, string):
        from ..models import Structure
        return Structure.fromDict(self.module.parser(string))

    def serialize(self, structure) -> str:
        return self.module.writer(structure.toDict())


class TrajectoryReader(FormatCodec):
    """可以读取多帧"""
    def parseTrajectory(self, string):
        from ..models import Structure
        return [Structure.fromDict(d) for d in self.module.trajectory_parser(string)]


class TrajectoryCodec(TrajectoryReader):
    """可以读写多帧"""
    def serializeTrajectory(self, structures) -> str:
        return self.module.trajectory_writer([s.toDict() for s in structures])


_CODECS = {
    FileFormat.XYZ: TrajectoryCodec(FileFormat.XYZ, 'xyz'),
    FileFormat.CIF: FormatCodec(FileFormat.CIF, 'cif'),
    FileFormat.POSCAR: FormatCodec(FileFormat.POSCAR, 'vasp'),
    FileFormat.XDATCAR: TrajectoryCodec(FileFormat.XDATCAR, 'xdatcar'),
    FileFormat.OUTCAR: TrajectoryReader(FileFormat.OUTCAR, 'outcar'),
    FileFormat.QE: TrajectoryReader(FileFormat.QE, 'qe'),
    FileFormat.PDB: FormatCodec(FileFormat.PDB, 'pdb'),
    FileFormat.GJF: FormatCodec(FileFormat.GJF, 'gjf'),
    FileFormat.ORCA: FormatCodec(FileFormat.ORCA, 'orca'),
    FileFormat.STRU: FormatCodec(FileFormat.STRU, 'stru'),
}
if set(_CODECS) != set(FileFormat):
    raise RuntimeError("codec table must cover every FileFormat")


def resolveFormat(path_or_id, fallback='xyz') -> FileFormat:
    """文件名, 扩展名或者格式名 -> FileFormat

    `POSCAR`, `CONTCAR`, `XDATCAR`, `OUTCAR`, `STRU` 等无扩展名的文件按文件名识别.
    无法识别时使用 fallback, fallback 为 None 时抛出 UnsupportedFormatError.
    """
    if isinstance(path_or_id, FileFormat):
        return path_or_id
    name = os.path.basename(str(path_or_id)).strip().lower()
    stem, _, ext = name.rpartition(".")
    for key in (ext, name, stem):
        if key in format_name_dict:
            return format_name_dict[key]
        try:
            return FileFormat(key)
        except ValueError:
            pass
    # `POSCAR_relaxed`, `XDATCAR-1`
    m = _re_conventional_name.match(name)
    if m:
        return format_name_dict[m.group(1)]
    if fallback is None:
        raise UnsupportedFormatError('no support for this file: {}'.format(path_or_id))
    return resolveFormat(fallback, fallback=None)


def getCodec(fmt) -> FormatCodec:
    return _CODECS[resolveFormat(fmt, fallback=None)]


def supportedFormats():
    return [fmt.value for fmt in FileFormat]


def _stem(path):
    name = os.path.basename(str(path))
    return name.rpartition(".")[0] or name


def loadStructures(path, content=None):
    """读取文件中的全部结构, 多帧格式返回每一帧

    Args:
        path: 文件路径, 用于识别格式和默认名称
        content: 文件内容, 不为 None 时不读取文件
    """
    codec = _CODECS[resolveFormat(path)]
    if content is None:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    if isinstance(codec, TrajectoryReader):
        structures = codec.parseTrajectory(content)
    else:
        structures = [codec.parse(content)]
    for struct in structures:
        if not struct.name:
            struct.name = _stem(path)
    logger.info('{}: {} structures as {}'.format(path, len(structures), codec.format.value))
    return structures


def saveStructure(structure, fmt) -> str:
    codec = getCodec(fmt)
    logger.info('{!r} as {}'.format(structure.name, codec.format.value))
    return codec.serialize(structure)


def saveStructures(structures, fmt) -> str:
    codec = getCodec(fmt)
    if not isinstance(codec, TrajectoryCodec):
        raise UnsupportedExportError('{} has no trajectory writer'.format(codec.format.value))
    structures = list(structures)
    logger.info('{} frames as {}'.format(len(structures), codec.format.value))
    return codec.serializeTrajectory(structures)
