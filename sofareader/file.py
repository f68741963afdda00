"""
Generic SOFA File Model

This module provides SOFAFile, the convention-independent view of an
AES69 (SOFA) file: global attributes, dimensions, variable shapes, and
positional variables with their coordinate system and units.

Every buffer returned here is an independent flat copy in row-major
order; use `indexing` (or VariableDescriptor.index) to address it.

References:
    https://www.sofaconventions.org/
    https://www.aes.org/publications/standards/search.cfm?docID=99
"""

import logging
import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

from .config import (
    ReaderConfig, default_config, DEFAULT_MODE,
    ATTR_CONVENTIONS, ATTR_SOFA_CONVENTIONS, ATTR_SOFA_CONVENTIONS_VERSION,
    ATTR_DATA_TYPE, ATTR_ROOM_TYPE, SOFA_CONVENTIONS_VALUE,
    REQUIRED_GLOBAL_ATTRIBUTES, REQUIRED_DIMENSIONS, FIXED_DIMENSION_SIZES,
    REQUIRED_POSITIONAL_VARIABLES, LISTENER_VIEW, LISTENER_UP,
    TYPE_ATTRIBUTE, UNITS_ATTRIBUTE, DIM_C,
)
from .conventions import ensure_consistent_dimensions
from .exceptions import (
    NotFoundError, ShapeMismatchError, ValidationError, INVALID_FILE_ERRORS
)
from .indexing import Shape, shape_size
from .storage import StorageBackend, NetCDFStorage
from .utils import (
    Coordinates, Units, Layout, VariableDescriptor, PositionalVariable,
    FlatBuffer, units_match
)

# Set up logging
logger = logging.getLogger(__name__)


class SOFAFile:
    """
    Read-only model of any file of the SOFA family.

    Construct it with `SOFAFile.open(path)` or around an existing storage
    backend. The model owns the backend and closes it in `close()`; use it
    as a context manager to release the handle on every exit path.

    Call `is_valid()` before relying on the other accessors: a file that
    lacks the generic structure answers False rather than raising.
    """

    def __init__(self, storage: StorageBackend, config: Optional[ReaderConfig] = None):
        """
        Initialize a file model.

        Args:
            storage: Storage backend to read from
            config: Reader configuration, defaults to `default_config`
        """
        self._storage = storage
        self.config = config if config is not None else default_config

    @classmethod
    def open(cls, path: str, mode: str = DEFAULT_MODE,
             config: Optional[ReaderConfig] = None) -> 'SOFAFile':
        """
        Open a SOFA file.

        Only establishes the storage handle; no convention is checked.

        Args:
            path: Path to the SOFA file
            mode: File mode, see config.SUPPORTED_MODES
            config: Reader configuration

        Returns:
            File model owning the handle

        Raises:
            OpenError: If the path cannot be opened with the given mode
        """
        storage = NetCDFStorage.open(path, mode)
        try:
            return cls(storage, config)
        except Exception:
            storage.close()
            raise

    @property
    def path(self) -> Optional[str]:
        return self._storage.path

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    def close(self) -> None:
        self._storage.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"

    # ---------------------------------------------------------------------------------
    # Attributes and dimensions
    # ---------------------------------------------------------------------------------

    def get_attribute_as_string(self, name: str) -> str:
        """
        Value of a global attribute.

        Raises:
            NotFoundError: If the file has no such attribute
        """
        return self._storage.get_global_attribute(name)

    def get_variable_attribute_as_string(self, variable: str, attribute: str) -> str:
        """Value of an attribute attached to a variable ("<variable>:<attribute>")."""
        return self._storage.get_variable_attribute(variable, attribute)

    def get_variable_attribute_names(self, variable: str) -> List[str]:
        return self._storage.variable_attribute_names(variable)

    def has_attribute(self, name: str) -> bool:
        return self._storage.has_global_attribute(name)

    def get_global_attributes(self) -> Dict[str, str]:
        """All global attributes, in file order."""
        return {name: self._storage.get_global_attribute(name)
                for name in self._storage.global_attribute_names()}

    def get_dimensions(self) -> Dict[str, int]:
        """The file's dimension table (name -> size)."""
        return self._storage.dimensions()

    def get_dimension(self, name: str) -> int:
        dimensions = self._storage.dimensions()
        if name not in dimensions:
            raise NotFoundError(f"Dimension not found: {name}")
        return dimensions[name]

    def get_convention_name(self) -> str:
        return self.get_attribute_as_string(ATTR_SOFA_CONVENTIONS)

    def get_convention_version(self) -> str:
        return self.get_attribute_as_string(ATTR_SOFA_CONVENTIONS_VERSION)

    def get_data_type(self) -> str:
        return self.get_attribute_as_string(ATTR_DATA_TYPE)

    def get_room_type(self) -> str:
        return self.get_attribute_as_string(ATTR_ROOM_TYPE)

    def is_frequency_response(self) -> bool:
        """Whether DataType declares transfer functions (TF, TF-E, ...)."""
        return self.has_attribute(ATTR_DATA_TYPE) and self.get_data_type().startswith('TF')

    def is_impulse_response(self) -> bool:
        return self.has_attribute(ATTR_DATA_TYPE) and self.get_data_type() == 'FIR'

    # ---------------------------------------------------------------------------------
    # Variables
    # ---------------------------------------------------------------------------------

    def get_variable_names(self) -> List[str]:
        return self._storage.variable_names()

    def has_variable(self, name: str) -> bool:
        return self._storage.has_variable(name)

    def get_variable_shape(self, name: str) -> Shape:
        """
        Declared dimension sizes of a variable, in declaration order.

        Raises:
            NotFoundError: If the file has no such variable
        """
        return self._storage.get_variable_shape(name)

    def get_variable_dimension_names(self, name: str) -> Tuple[str, ...]:
        return self._storage.get_variable_dimension_names(name)

    def _optional_variable_attribute(self, name: str, attribute: str) -> Optional[str]:
        if attribute not in self.get_variable_attribute_names(name):
            return None
        return self._storage.get_variable_attribute(name, attribute)

    def get_variable_descriptor(self, name: str) -> VariableDescriptor:
        """
        Metadata of a variable.

        The coordinate system and units are filled in when the variable
        declares ``Type`` and ``Units`` attributes.

        Raises:
            NotFoundError: If the file has no such variable
            ValidationError: If a declared Type or Units value is unknown
        """
        coordinates = self._optional_variable_attribute(name, TYPE_ATTRIBUTE)
        units = self._optional_variable_attribute(name, UNITS_ATTRIBUTE)
        return VariableDescriptor(
            name=name,
            shape=self.get_variable_shape(name),
            dimension_names=self.get_variable_dimension_names(name),
            coordinates=None if coordinates is None else Coordinates.from_string(coordinates),
            units=None if units is None else Units.from_string(units),
        )

    def get_variable_values(self, name: str, out: Optional[np.ndarray] = None,
                            shape: Optional[Sequence[int]] = None) -> FlatBuffer:
        """
        Read a variable as a flat row-major buffer.

        Args:
            name: Variable name
            out: Optional 1-D floating-point buffer to fill; its size must
                equal the product of the variable's shape
            shape: Optional shape the caller sized its buffer from; must
                equal the declared shape

        Returns:
            `out` once filled, otherwise a new independent array

        Raises:
            NotFoundError: If the file has no such variable
            ShapeMismatchError: If `shape` or `out` does not match the
                variable, or the variable is not numeric. Nothing is
                written to `out` in that case.
        """
        declared = self.get_variable_shape(name)
        if shape is not None and tuple(int(d) for d in shape) != declared:
            raise ShapeMismatchError(f"{name} has shape {declared}, caller expected {tuple(shape)}")

        size = shape_size(declared)
        if out is not None and (out.ndim != 1 or out.size != size):
            raise ShapeMismatchError(
                f"Buffer of shape {out.shape} cannot hold {name}, which needs {size} values")
        if out is not None and not np.issubdtype(out.dtype, np.floating):
            raise ShapeMismatchError(f"Buffer of type {out.dtype} cannot hold the float values of {name}")

        values = self._storage.read_variable(name)
        if values.size != size:
            raise ShapeMismatchError(f"{name} returned {values.size} values for shape {declared}")

        if out is None:
            return values
        out[:] = values
        return out

    # ---------------------------------------------------------------------------------
    # Positional variables
    # ---------------------------------------------------------------------------------

    def get_positional_variable(self, name: str) -> Tuple[Coordinates, Units]:
        """
        Coordinate system and units of a positional variable.

        Args:
            name: e.g. 'ListenerPosition', 'ReceiverPosition', 'EmitterPosition'

        Returns:
            (coordinates, units) read from ``<name>:Type`` and ``<name>:Units``

        Raises:
            NotFoundError: If the variable or one of the two attributes is missing
            ValidationError: If an attribute value is not recognized
        """
        coordinates = self._storage.get_variable_attribute(name, TYPE_ATTRIBUTE)
        units = self._storage.get_variable_attribute(name, UNITS_ATTRIBUTE)
        return Coordinates.from_string(coordinates), Units.from_string(units)

    def get_positional_data(self, name: str, out: Optional[np.ndarray] = None,
                            shape: Optional[Sequence[int]] = None) -> FlatBuffer:
        """
        Values of a positional variable, flattened.

        The rank (2 or 3) is whatever the file declares; obtain it from
        `get_variable_shape` before sizing `out`.
        """
        self.get_positional_variable(name)
        return self.get_variable_values(name, out=out, shape=shape)

    def get_positional(self, name: str) -> PositionalVariable:
        """Descriptor and values of a positional variable in one call."""
        coordinates, units = self.get_positional_variable(name)
        descriptor = VariableDescriptor(
            name=name,
            shape=self.get_variable_shape(name),
            dimension_names=self.get_variable_dimension_names(name),
            coordinates=coordinates,
            units=units,
        )
        return PositionalVariable(descriptor, self.get_variable_values(name))

    # ---------------------------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------------------------

    def _check_global_attributes(self) -> None:
        missing = [name for name in REQUIRED_GLOBAL_ATTRIBUTES if not self.has_attribute(name)]
        if missing:
            raise ValidationError(f"Missing global attributes: {', '.join(missing)}")

        conventions = self.get_attribute_as_string(ATTR_CONVENTIONS)
        if conventions != SOFA_CONVENTIONS_VALUE:
            raise ValidationError(f"Conventions is {conventions!r}, expected {SOFA_CONVENTIONS_VALUE!r}")

    def _check_dimensions(self) -> None:
        dimensions = self.get_dimensions()
        missing = [name for name in REQUIRED_DIMENSIONS if name not in dimensions]
        if missing:
            raise ValidationError(f"Missing dimensions: {', '.join(missing)}")

        for name, size in FIXED_DIMENSION_SIZES.items():
            if dimensions[name] != size:
                raise ValidationError(f"Dimension {name} has size {dimensions[name]}, expected {size}")

    def _check_positional_variable(self, name: str) -> None:
        if not self.has_variable(name):
            raise ValidationError(f"Missing positional variable: {name}")

        coordinates, units = self.get_positional_variable(name)
        shape = self.get_variable_shape(name)
        Layout.from_shape(shape)

        # The coordinate triplet is axis 1 in both layouts
        names = self.get_variable_dimension_names(name)
        if shape[1] != FIXED_DIMENSION_SIZES[DIM_C] or (names and names[1] != DIM_C):
            raise ValidationError(f"{name} has no coordinate axis C of size 3: "
                                  f"shape {shape}, dimensions {names}")

        if self.config.check_units and not units_match(coordinates, units):
            raise ValidationError(f"{name} units {units.value!r} do not fit "
                                  f"{coordinates.value} coordinates")

    def validate(self) -> None:
        """
        Check the structure every SOFA file must have.

        Raises:
            ValidationError, NotFoundError: Describing the first problem found
        """
        self._check_global_attributes()
        self._check_dimensions()

        for name in REQUIRED_POSITIONAL_VARIABLES:
            self._check_positional_variable(name)

        if self.has_variable(LISTENER_VIEW):
            if not self.has_variable(LISTENER_UP):
                raise ValidationError(f"{LISTENER_VIEW} requires {LISTENER_UP}")
            self._check_positional_variable(LISTENER_VIEW)
        if self.has_variable(LISTENER_UP):
            self._check_positional_variable(LISTENER_UP)

        ensure_consistent_dimensions(self, REQUIRED_DIMENSIONS)

    def is_valid(self) -> bool:
        """
        Whether the file has the generic SOFA structure.

        Returns False rather than raising for a malformed file. Read
        failures of the storage backend still propagate.
        """
        try:
            self.validate()
        except INVALID_FILE_ERRORS as e:
            logger.info(f"{self.path} is not a valid SOFA file: {e}")
            return False
        return True
