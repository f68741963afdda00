"""
Pytest configuration file for sofareader tests.
"""

import pytest
import numpy as np
import netCDF4

from sofareader.storage import MemoryStorage, MemoryVariable


def _global_attributes():
    return {
        'Conventions': 'SOFA',
        'Version': '2.1',
        'SOFAConventions': 'FreeFieldDirectivityTF',
        'SOFAConventionsVersion': '1.0',
        'APIName': 'sofareader',
        'APIVersion': '0.1.0',
        'AuthorContact': 'test@example.com',
        'Organization': 'Test Lab',
        'License': 'CC BY 4.0',
        'DataType': 'TF',
        'RoomType': 'free field',
        'DateCreated': '2024-01-01 00:00:00',
        'DateModified': '2024-01-01 00:00:00',
        'Title': 'Test directivity',
    }


def _cartesian(values, dimensions):
    return MemoryVariable(values, dimensions, {'Type': 'cartesian', 'Units': 'metre'})


def build_directivity_storage(M=3, R=2, E=2, N=4):
    """A valid FreeFieldDirectivityTF file held in memory."""
    size = M * R * N
    variables = {
        'ListenerPosition': _cartesian(np.zeros((1, 3)), ('I', 'C')),
        'ListenerUp': _cartesian([[0.0, 0.0, 1.0]], ('I', 'C')),
        'ListenerView': _cartesian([[1.0, 0.0, 0.0]], ('I', 'C')),
        'ReceiverPosition': _cartesian(np.arange(R * 3, dtype=float).reshape(R, 3), ('R', 'C')),
        'SourcePosition': MemoryVariable([[0.0, 0.0, 1.5]], ('I', 'C'),
                                         {'Type': 'spherical', 'Units': 'degree, degree, metre'}),
        'EmitterPosition': _cartesian(np.arange(E * 3, dtype=float).reshape(E, 3) / 10.0, ('E', 'C')),
        'N': MemoryVariable(np.arange(N, 0, -1) * 100.0, ('N',),
                            {'LongName': 'frequency', 'Units': 'hertz'}),
        'Data.Real': MemoryVariable(np.arange(size, dtype=float).reshape(M, R, N), ('M', 'R', 'N')),
        'Data.Imag': MemoryVariable(-np.arange(size, dtype=float).reshape(M, R, N), ('M', 'R', 'N')),
    }
    dimensions = {'I': 1, 'C': 3, 'M': M, 'R': R, 'E': E, 'N': N}
    return MemoryStorage(_global_attributes(), dimensions, variables, path='memory.sofa')


def write_netcdf(path, storage):
    """Write a MemoryStorage to disk as a netCDF-4 file."""
    with netCDF4.Dataset(str(path), 'w', format='NETCDF4') as dataset:
        for name, size in storage.dimensions().items():
            dataset.createDimension(name, size)
        for name, variable in storage.variables.items():
            nc_variable = dataset.createVariable(name, 'f8', variable.dimensions)
            nc_variable[...] = variable.values
            for attribute, value in variable.attributes.items():
                nc_variable.setncattr(attribute, value)
        for name, value in storage.attributes.items():
            dataset.setncattr(name, value)
    return str(path)


@pytest.fixture
def make_storage():
    """Factory for valid in-memory directivity files of any size."""
    return build_directivity_storage


@pytest.fixture
def directivity_storage():
    """Valid directivity file with M=3, R=2, E=2, N=4."""
    return build_directivity_storage()


@pytest.fixture
def sofa_path(tmp_path):
    """Path to a valid FreeFieldDirectivityTF file on disk."""
    return write_netcdf(tmp_path / 'directivity.sofa', build_directivity_storage())


@pytest.fixture
def write_sofa(tmp_path):
    """Write a (possibly modified) MemoryStorage to a file and return its path."""
    def _write(storage, name='custom.sofa'):
        return write_netcdf(tmp_path / name, storage)
    return _write
