"""
Unit tests for the storage backends.
"""

import pytest
import netCDF4
import numpy as np
from sofareader.exceptions import OpenError, NotFoundError, ShapeMismatchError
from sofareader.storage import StorageBackend, NetCDFStorage, MemoryStorage, MemoryVariable


class TestStorageBackend:

    def test_is_abstract(self):
        with pytest.raises(TypeError):
            StorageBackend()

    def test_partial_backend_is_abstract(self):
        class AttributesOnly(StorageBackend):
            def global_attribute_names(self):
                return []

        with pytest.raises(TypeError):
            AttributesOnly()


class TestMemoryStorage:

    def test_queries(self, directivity_storage):
        storage = directivity_storage
        assert storage.get_global_attribute('SOFAConventions') == 'FreeFieldDirectivityTF'
        assert storage.get_variable_shape('Data.Real') == (3, 2, 4)
        assert storage.get_variable_dimension_names('Data.Real') == ('M', 'R', 'N')
        assert storage.get_variable_attribute('ReceiverPosition', 'Type') == 'cartesian'
        assert storage.dimensions()['M'] == 3
        assert storage.has_variable('N')

    def test_missing_names(self, directivity_storage):
        with pytest.raises(NotFoundError):
            directivity_storage.get_global_attribute('Nope')
        with pytest.raises(NotFoundError):
            directivity_storage.get_variable_shape('Nope')
        with pytest.raises(NotFoundError):
            directivity_storage.get_variable_attribute('N', 'Type')

    def test_read_returns_copy(self, directivity_storage):
        values = directivity_storage.read_variable('Data.Real')
        values[0] = 1000.0
        assert directivity_storage.read_variable('Data.Real')[0] == 0.0

    def test_dimension_name_count_checked(self):
        with pytest.raises(ValueError):
            MemoryVariable(np.zeros((2, 3)), ('R',))

    def test_context_manager(self):
        with MemoryStorage() as storage:
            pass
        assert storage.closed


class TestNetCDFStorage:

    def test_queries(self, sofa_path):
        with NetCDFStorage.open(sofa_path) as storage:
            assert storage.path == sofa_path
            assert storage.get_global_attribute('DataType') == 'TF'
            assert storage.get_variable_shape('EmitterPosition') == (2, 3)
            assert storage.get_variable_dimension_names('ReceiverPosition') == ('R', 'C')
            assert storage.get_variable_attribute('N', 'Units') == 'hertz'
            assert storage.dimensions() == {'I': 1, 'C': 3, 'M': 3, 'R': 2, 'E': 2, 'N': 4}
            assert 'Data.Imag' in storage.variable_names()

    def test_read_variable(self, sofa_path):
        with NetCDFStorage.open(sofa_path) as storage:
            values = storage.read_variable('Data.Real')
        # Buffers outlive the handle
        assert values.dtype == np.float64
        np.testing.assert_array_equal(values, np.arange(24, dtype=float))

    def test_missing_names(self, sofa_path):
        with NetCDFStorage.open(sofa_path) as storage:
            with pytest.raises(NotFoundError):
                storage.read_variable('Data.IR')
            with pytest.raises(NotFoundError):
                storage.get_global_attribute('Nope')
            with pytest.raises(NotFoundError):
                storage.get_variable_attribute('Data.Real', 'Units')

    def test_char_variable_rejected(self, sofa_path):
        """Char variables such as SourceName(I, S) have no float view."""
        with netCDF4.Dataset(sofa_path, 'a') as dataset:
            dataset.createDimension('S', 4)
            source_name = dataset.createVariable('SourceName', 'S1', ('I', 'S'))
            source_name[0, :] = netCDF4.stringtoarr('abcd', 4)

        with NetCDFStorage.open(sofa_path) as storage:
            assert storage.get_variable_shape('SourceName') == (1, 4)
            with pytest.raises(ShapeMismatchError):
                storage.read_variable('SourceName')
            # Numeric variables still read
            assert storage.read_variable('N').size == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(OpenError):
            NetCDFStorage.open(str(tmp_path / 'missing.sofa'))

    def test_write_mode_rejected(self, sofa_path):
        with pytest.raises(OpenError):
            NetCDFStorage.open(sofa_path, 'w')

    def test_not_a_netcdf_file(self, tmp_path):
        path = tmp_path / 'text.sofa'
        path.write_text('not a SOFA file')
        with pytest.raises(OpenError):
            NetCDFStorage.open(str(path))
