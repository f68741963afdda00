"""
Storage Backends

This module contains the storage collaborators the file models read from.
A backend answers questions about global attributes, dimensions, variable
shapes and variable attributes by name, and reads a variable's values into
an independently owned flat buffer.

Two backends are provided:
    - NetCDFStorage: AES69 files on disk, read through netCDF4
    - MemoryStorage: files assembled in memory from plain dictionaries

Missing names raise NotFoundError; failures of the underlying library
while reading raise StorageReadError.
"""

import os
import logging
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Any, Optional

import netCDF4

from .config import DEFAULT_MODE, SUPPORTED_MODES
from .exceptions import OpenError, NotFoundError, ShapeMismatchError, StorageReadError
from .utils import FlatBuffer

# Set up logging
logger = logging.getLogger(__name__)


def _attribute_to_string(value: Any) -> str:
    """Render a raw attribute value the way it reads in the file."""
    if isinstance(value, bytes):
        return value.decode('utf-8')
    if isinstance(value, np.ndarray):
        if value.size == 1:
            return str(value.item())
        return ' '.join(str(v) for v in value.ravel().tolist())
    if isinstance(value, np.generic):
        return str(value.item())
    return str(value)


class StorageBackend(ABC):
    """
    Interface of the storage collaborator.

    Implementations must return copies from `read_variable` so that no
    buffer handed to a caller depends on the handle staying open.
    """

    path: Optional[str] = None

    @abstractmethod
    def global_attribute_names(self) -> List[str]:
        pass

    @abstractmethod
    def get_global_attribute(self, name: str) -> str:
        pass

    @abstractmethod
    def dimensions(self) -> Dict[str, int]:
        pass

    @abstractmethod
    def variable_names(self) -> List[str]:
        pass

    @abstractmethod
    def get_variable_shape(self, name: str) -> Tuple[int, ...]:
        pass

    @abstractmethod
    def get_variable_dimension_names(self, name: str) -> Tuple[str, ...]:
        pass

    @abstractmethod
    def variable_attribute_names(self, name: str) -> List[str]:
        pass

    @abstractmethod
    def get_variable_attribute(self, name: str, attribute: str) -> str:
        pass

    @abstractmethod
    def read_variable(self, name: str) -> FlatBuffer:
        pass

    def close(self) -> None:
        pass

    def has_variable(self, name: str) -> bool:
        return name in self.variable_names()

    def has_global_attribute(self, name: str) -> bool:
        return name in self.global_attribute_names()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False


class NetCDFStorage(StorageBackend):
    """Storage backend reading AES69 (netCDF-4/HDF5) files with netCDF4."""

    def __init__(self, dataset: 'netCDF4.Dataset', path: Optional[str] = None):
        """
        Wrap an already opened dataset.

        Args:
            dataset: Open netCDF4 dataset
            path: Path the dataset was opened from, for messages
        """
        self._dataset = dataset
        self.path = path
        # Raw values, no masked arrays for fill values
        self._dataset.set_auto_mask(False)

    @classmethod
    def open(cls, path: str, mode: str = DEFAULT_MODE) -> 'NetCDFStorage':
        """
        Open a file.

        Args:
            path: Path to the SOFA file
            mode: One of SUPPORTED_MODES

        Returns:
            Storage backend owning the file handle

        Raises:
            OpenError: If the mode is not supported or the file cannot be
                opened as a netCDF-4 file
        """
        if mode not in SUPPORTED_MODES:
            raise OpenError(f"Unsupported file mode {mode!r}. Use one of: {SUPPORTED_MODES}")

        if not os.path.exists(path):
            raise OpenError(f"SOFA file not found: {path}")

        try:
            dataset = netCDF4.Dataset(path, mode)
        except (OSError, RuntimeError) as e:
            raise OpenError(f"Could not open {path}: {e}") from e

        logger.debug(f"Opened {path} (mode {mode!r})")
        return cls(dataset, path=str(path))

    def _variable(self, name: str) -> 'netCDF4.Variable':
        try:
            return self._dataset.variables[name]
        except KeyError:
            raise NotFoundError(f"Variable not found: {name}") from None

    def global_attribute_names(self) -> List[str]:
        return list(self._dataset.ncattrs())

    def get_global_attribute(self, name: str) -> str:
        if name not in self._dataset.ncattrs():
            raise NotFoundError(f"Global attribute not found: {name}")
        try:
            return _attribute_to_string(self._dataset.getncattr(name))
        except (OSError, RuntimeError) as e:
            raise StorageReadError(f"Could not read global attribute {name}: {e}") from e

    def dimensions(self) -> Dict[str, int]:
        return {name: len(dim) for name, dim in self._dataset.dimensions.items()}

    def variable_names(self) -> List[str]:
        return list(self._dataset.variables.keys())

    def get_variable_shape(self, name: str) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._variable(name).shape)

    def get_variable_dimension_names(self, name: str) -> Tuple[str, ...]:
        return tuple(self._variable(name).dimensions)

    def variable_attribute_names(self, name: str) -> List[str]:
        return list(self._variable(name).ncattrs())

    def get_variable_attribute(self, name: str, attribute: str) -> str:
        variable = self._variable(name)
        if attribute not in variable.ncattrs():
            raise NotFoundError(f"Attribute not found: {name}:{attribute}")
        try:
            return _attribute_to_string(variable.getncattr(attribute))
        except (OSError, RuntimeError) as e:
            raise StorageReadError(f"Could not read attribute {name}:{attribute}: {e}") from e

    def read_variable(self, name: str) -> FlatBuffer:
        variable = self._variable(name)
        # Char and string variables (e.g. SourceName) have no float view
        if np.dtype(variable.dtype).kind not in 'biuf':
            raise ShapeMismatchError(f"{name} is not numeric (type {variable.dtype})")
        try:
            values = variable[...]
        except (OSError, RuntimeError, IndexError) as e:
            raise StorageReadError(f"Could not read variable {name}: {e}") from e
        return np.array(values, dtype=np.float64).ravel()

    def close(self) -> None:
        if self._dataset is not None and self._dataset.isopen():
            self._dataset.close()
            logger.debug(f"Closed {self.path}")


@dataclass
class MemoryVariable:
    """
    A variable held in memory.

    The declared dimension names are kept independently of the value shape,
    so a MemoryStorage can describe files whose variables disagree on the
    size of a shared dimension.
    """
    values: np.ndarray
    dimensions: Tuple[str, ...] = ()
    attributes: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=np.float64)
        self.dimensions = tuple(self.dimensions)
        if self.dimensions and len(self.dimensions) != self.values.ndim:
            raise ValueError(f"{len(self.dimensions)} dimension names given for a "
                             f"{self.values.ndim}-dimensional array")


class MemoryStorage(StorageBackend):
    """Storage backend over in-memory attributes, dimensions and variables."""

    def __init__(self,
                 attributes: Optional[Dict[str, str]] = None,
                 dimensions: Optional[Dict[str, int]] = None,
                 variables: Optional[Dict[str, MemoryVariable]] = None,
                 path: Optional[str] = None):
        self.attributes = dict(attributes or {})
        self._dimensions = dict(dimensions or {})
        self.variables = dict(variables or {})
        self.path = path
        self.closed = False

    def _variable(self, name: str) -> MemoryVariable:
        try:
            return self.variables[name]
        except KeyError:
            raise NotFoundError(f"Variable not found: {name}") from None

    def global_attribute_names(self) -> List[str]:
        return list(self.attributes.keys())

    def get_global_attribute(self, name: str) -> str:
        if name not in self.attributes:
            raise NotFoundError(f"Global attribute not found: {name}")
        return _attribute_to_string(self.attributes[name])

    def dimensions(self) -> Dict[str, int]:
        return dict(self._dimensions)

    def variable_names(self) -> List[str]:
        return list(self.variables.keys())

    def get_variable_shape(self, name: str) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._variable(name).values.shape)

    def get_variable_dimension_names(self, name: str) -> Tuple[str, ...]:
        return self._variable(name).dimensions

    def variable_attribute_names(self, name: str) -> List[str]:
        return list(self._variable(name).attributes.keys())

    def get_variable_attribute(self, name: str, attribute: str) -> str:
        attributes = self._variable(name).attributes
        if attribute not in attributes:
            raise NotFoundError(f"Attribute not found: {name}:{attribute}")
        return _attribute_to_string(attributes[attribute])

    def read_variable(self, name: str) -> FlatBuffer:
        return self._variable(name).values.ravel().copy()

    def close(self) -> None:
        self.closed = True
