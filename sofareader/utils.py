"""
General Utility Definitions

This module contains the type definitions, enumerations and data classes
used across the SOFA reader: coordinate system and unit tags, variable
descriptors, positional variables and the governing dimensions of a
convention.

See Also:
    - indexing: For the row-major offset arithmetic
    - config: For the AES69 names and constants
"""

import numpy as np
from enum import Enum, auto
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .indexing import Shape, array_index, shape_size
from .exceptions import ValidationError

# Type aliases for improved readability
FlatBuffer = np.ndarray  # 1-D float64, row-major
VersionPair = Tuple[int, int]  # (major, minor)


class Coordinates(Enum):
    """
    Coordinate system tag attached to every positional variable.

    Purely descriptive: the tag never changes the array layout.

    Attributes:
        CARTESIAN: x, y, z in metres
        SPHERICAL: azimuth, elevation in degrees and radius in metres
        SPHERICAL_HARMONICS: spherical harmonic coefficients
    """
    CARTESIAN = 'cartesian'
    SPHERICAL = 'spherical'
    SPHERICAL_HARMONICS = 'spherical harmonics'

    @classmethod
    def from_string(cls, value: str) -> 'Coordinates':
        """
        Parse the value of a ``<variable>:Type`` attribute.

        Raises:
            ValidationError: If the value names no known coordinate system
        """
        normalized = ' '.join(str(value).strip().lower().split())
        for member in cls:
            if member.value == normalized:
                return member
        raise ValidationError(f"Unknown coordinate system: {value!r}")


# Common spellings found in files in the wild
_UNIT_ALIASES = {
    'meter': 'metre',
    'meters': 'metre',
    'metres': 'metre',
    'degrees': 'degree',
    'hz': 'hertz',
    'seconds': 'second',
    's': 'second',
    'cubic meter': 'cubic metre',
    'cubic meters': 'cubic metre',
    'cubic metres': 'cubic metre',
}


class Units(Enum):
    """
    Physical unit tag attached to positional and frequency variables.

    Spherical positions carry one unit per component, spelled as a
    comma-separated list in the file.
    """
    METRE = 'metre'
    CUBIC_METRE = 'cubic metre'
    DEGREE = 'degree'
    SECOND = 'second'
    HERTZ = 'hertz'
    KELVIN = 'kelvin'
    SPHERICAL = 'degree, degree, metre'

    @classmethod
    def from_string(cls, value: str) -> 'Units':
        """
        Parse the value of a ``<variable>:Units`` attribute.

        Case, spacing around commas and the usual plural or American
        spellings are normalized before matching.

        Raises:
            ValidationError: If the value names no known unit
        """
        parts = []
        for part in str(value).split(','):
            part = ' '.join(part.strip().lower().split())
            parts.append(_UNIT_ALIASES.get(part, part))
        normalized = ', '.join(parts)
        for member in cls:
            if member.value == normalized:
                return member
        raise ValidationError(f"Unknown units: {value!r}")


_EXPECTED_UNITS = {
    Coordinates.CARTESIAN: Units.METRE,
    Coordinates.SPHERICAL: Units.SPHERICAL,
}


def units_match(coordinates: Coordinates, units: Units) -> bool:
    """
    Check that a positional variable's units fit its coordinate system.

    Coordinate systems without a fixed unit (spherical harmonics) accept
    any unit.
    """
    expected = _EXPECTED_UNITS.get(coordinates)
    return expected is None or expected == units


class Layout(Enum):
    """
    Rank of a positional variable, discovered from its shape at runtime.

    Attributes:
        SIMPLE: (entity, coordinate), one triplet per entity
        PER_SUB_ENTITY: (entity, coordinate, sub-entity), one triplet per
            entity and measurement
    """
    SIMPLE = auto()
    PER_SUB_ENTITY = auto()

    @classmethod
    def from_shape(cls, shape: Shape) -> 'Layout':
        if len(shape) == 2:
            return cls.SIMPLE
        if len(shape) == 3:
            return cls.PER_SUB_ENTITY
        raise ValidationError(f"Positional variables have 2 or 3 dimensions, got shape {shape}")


@dataclass(frozen=True)
class VariableDescriptor:
    """
    Read-only metadata of a variable.

    Attributes:
        name: Variable name in the file
        shape: Declared dimension sizes, in declaration order
        dimension_names: Declared dimension names, same order as shape
        coordinates: Coordinate system, only for positional variables
        units: Physical unit, when the variable declares one
    """
    name: str
    shape: Shape
    dimension_names: Tuple[str, ...] = ()
    coordinates: Optional[Coordinates] = None
    units: Optional[Units] = None

    @property
    def size(self) -> int:
        return shape_size(self.shape)

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def is_positional(self) -> bool:
        return self.coordinates is not None

    @property
    def layout(self) -> Layout:
        return Layout.from_shape(self.shape)

    def index(self, *coords: int) -> int:
        """Offset of a logical coordinate in this variable's flat buffer."""
        return array_index(coords, self.shape)

    def dimension_size(self, dimension: str) -> int:
        """Size of the axis declared with the given dimension name."""
        return self.shape[self.dimension_names.index(dimension)]


@dataclass(frozen=True)
class PositionalVariable:
    """A positional variable's descriptor together with a copy of its values."""
    descriptor: VariableDescriptor
    values: FlatBuffer

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def coordinates(self) -> Coordinates:
        return self.descriptor.coordinates

    @property
    def units(self) -> Units:
        return self.descriptor.units

    @property
    def shape(self) -> Shape:
        return self.descriptor.shape

    @property
    def layout(self) -> Layout:
        return self.descriptor.layout

    def value_at(self, *coords: int) -> float:
        return float(self.values[self.descriptor.index(*coords)])

    def as_array(self) -> np.ndarray:
        """Values reshaped to the declared shape (a copy)."""
        return self.values.reshape(self.shape).copy()


@dataclass(frozen=True)
class GoverningDimensions:
    """
    Sizes that every variable of a convention must agree on.

    Attributes:
        R: Number of receivers
        E: Number of emitters
        M: Number of measurements
        N: Number of data samples (frequency bins for TF data)
    """
    R: int
    E: int
    M: int
    N: int

    def as_dict(self) -> Dict[str, int]:
        return {'R': self.R, 'E': self.E, 'M': self.M, 'N': self.N}


@dataclass(frozen=True)
class DimensionMismatch:
    """
    One variable disagreeing with the size of a named dimension.

    Attributes:
        dimension: Dimension name, e.g. 'R'
        variable: Name of the offending variable
        expected: Size established by ``reference``
        actual: Size reported by ``variable``
        reference: Variable (or the file's dimension table) that set the
            expected size
    """
    dimension: str
    variable: str
    expected: int
    actual: int
    reference: str

    def __str__(self) -> str:
        return (f"{self.variable}: dimension {self.dimension} has size {self.actual}, "
                f"expected {self.expected} (from {self.reference})")
