from .dispatcher import (FileFormat, FormatCodec, TrajectoryReader, TrajectoryCodec,
                         resolveFormat, getCodec, supportedFormats,
                         loadStructures, saveStructure, saveStructures)
