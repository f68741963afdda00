"""
Unit tests for the data model: coordinate and unit tags, descriptors,
positional variables and the reader configuration.
"""

import pytest
import numpy as np
from sofareader.config import ReaderConfig, VersionPolicy
from sofareader.exceptions import ValidationError
from sofareader.utils import (
    Coordinates, Units, Layout, VariableDescriptor, PositionalVariable,
    DimensionMismatch, GoverningDimensions, units_match
)


class TestCoordinates:

    def test_parse(self):
        assert Coordinates.from_string('cartesian') == Coordinates.CARTESIAN
        assert Coordinates.from_string(' Spherical ') == Coordinates.SPHERICAL
        assert Coordinates.from_string('spherical  harmonics') == Coordinates.SPHERICAL_HARMONICS

    def test_unknown(self):
        with pytest.raises(ValidationError):
            Coordinates.from_string('polar')


class TestUnits:

    def test_parse_spellings(self):
        """American and plural spellings map to the AES69 names."""
        assert Units.from_string('metre') == Units.METRE
        assert Units.from_string('meter') == Units.METRE
        assert Units.from_string('Meters') == Units.METRE
        assert Units.from_string('hertz') == Units.HERTZ

    def test_parse_spherical(self):
        assert Units.from_string('degree, degree, metre') == Units.SPHERICAL
        assert Units.from_string('degree,degree,meter') == Units.SPHERICAL
        assert Units.from_string('degrees, degrees, meters') == Units.SPHERICAL

    def test_unknown(self):
        with pytest.raises(ValidationError):
            Units.from_string('furlong')

    def test_units_match(self):
        assert units_match(Coordinates.CARTESIAN, Units.METRE)
        assert units_match(Coordinates.SPHERICAL, Units.SPHERICAL)
        assert not units_match(Coordinates.CARTESIAN, Units.SPHERICAL)
        assert not units_match(Coordinates.SPHERICAL, Units.METRE)


class TestDescriptors:

    def test_layout_from_rank(self):
        assert Layout.from_shape((2, 3)) == Layout.SIMPLE
        assert Layout.from_shape((2, 3, 5)) == Layout.PER_SUB_ENTITY
        with pytest.raises(ValidationError):
            Layout.from_shape((6,))

    def test_descriptor_index(self):
        descriptor = VariableDescriptor('EmitterPosition', (2, 3), ('E', 'C'),
                                        Coordinates.CARTESIAN, Units.METRE)
        assert descriptor.size == 6
        assert descriptor.rank == 2
        assert descriptor.is_positional
        assert descriptor.index(1, 2) == 5
        assert descriptor.dimension_size('E') == 2

    def test_non_positional_descriptor(self):
        descriptor = VariableDescriptor('Data.Real', (3, 2, 4), ('M', 'R', 'N'))
        assert not descriptor.is_positional
        assert descriptor.units is None
        assert descriptor.index(2, 1, 3) == 23

    def test_positional_variable(self):
        descriptor = VariableDescriptor('ReceiverPosition', (2, 3), ('R', 'C'),
                                        Coordinates.CARTESIAN, Units.METRE)
        variable = PositionalVariable(descriptor, np.arange(6, dtype=float))
        assert variable.value_at(1, 0) == 3.0
        assert variable.layout == Layout.SIMPLE
        array = variable.as_array()
        assert array.shape == (2, 3)
        array[0, 0] = 99.0
        assert variable.values[0] == 0.0

    def test_mismatch_message(self):
        mismatch = DimensionMismatch('R', 'Data.Real', 2, 3, 'ReceiverPosition')
        text = str(mismatch)
        assert 'Data.Real' in text and 'ReceiverPosition' in text
        assert '3' in text and '2' in text

    def test_governing_dimensions(self):
        dims = GoverningDimensions(R=2, E=1, M=3, N=4)
        assert dims.as_dict() == {'R': 2, 'E': 1, 'M': 3, 'N': 4}


class TestReaderConfig:

    def test_defaults(self):
        config = ReaderConfig()
        assert config.version_policy == VersionPolicy.EXACT
        assert config.check_units

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            ReaderConfig(padding=-1)
        with pytest.raises(ValueError):
            ReaderConfig(precision=0)

    def test_save_and_load(self, tmp_path):
        config = ReaderConfig(version_policy=VersionPolicy.SAME_MAJOR, check_units=False, precision=3)
        path = str(tmp_path / 'config.json')
        config.save(path)
        assert ReaderConfig.load(path) == config
