"""
SOFA Reader Package

Variable access and convention validation for AES69 (SOFA) files:
flat row-major buffers with their shapes, coordinate systems and units,
generic and per-convention validity checks, and the FreeFieldDirectivityTF
convention.
"""

from .config import ReaderConfig, VersionPolicy
from .conventions import ConventionValidator, parse_version
from .directivity import FreeFieldDirectivityTF
from .exceptions import (
    SOFAError, OpenError, NotFoundError, ShapeMismatchError,
    ConventionMismatchError, ValidationError, StorageReadError
)
from .file import SOFAFile
from .indexing import array_index, array2d_index, array3d_index, iter_indices
from .storage import NetCDFStorage, MemoryStorage, MemoryVariable
from .utils import (
    Coordinates, Units, Layout, VariableDescriptor, PositionalVariable,
    GoverningDimensions, DimensionMismatch
)

__version__ = '0.1.0'
