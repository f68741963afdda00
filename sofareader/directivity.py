"""
FreeFieldDirectivityTF Convention

This module specializes the generic file model for the
FreeFieldDirectivityTF convention, which stores the directivity of a
source as complex transfer functions:

    N           frequency values in hertz, shape [N]
    Data.Real   real parts, shape [M][R][N]
    Data.Imag   imaginary parts, shape [M][R][N]

The governing dimensions R (receivers), E (emitters), M (measurements)
and N (frequency samples) are derived once per file from anchor
variables and every other variable must agree with them.
"""

import logging
import threading
import numpy as np
from typing import Dict, Optional, Tuple

from .config import (
    ReaderConfig, RECEIVER_POSITION, EMITTER_POSITION, UNITS_ATTRIBUTE,
    DIM_M, DIM_R, DIM_E, DIM_N,
)
from .conventions import ConventionValidator, Anchors, format_version
from .exceptions import ValidationError, INVALID_FILE_ERRORS
from .file import SOFAFile
from .indexing import array3d_index
from .storage import StorageBackend
from .utils import GoverningDimensions, VariableDescriptor, Units, FlatBuffer

# Set up logging
logger = logging.getLogger(__name__)


class FreeFieldDirectivityTF(SOFAFile):
    """File model for the FreeFieldDirectivityTF convention."""

    CONVENTION_NAME = 'FreeFieldDirectivityTF'
    CONVENTION_VERSION = (1, 0)
    DATA_TYPE = 'TF'

    FREQUENCY_VARIABLE = 'N'
    DATA_REAL = 'Data.Real'
    DATA_IMAG = 'Data.Imag'

    GOVERNING_DIMENSIONS = (DIM_R, DIM_E, DIM_M, DIM_N)

    ANCHORS: Anchors = {
        DIM_R: (RECEIVER_POSITION, 0),
        DIM_E: (EMITTER_POSITION, 0),
        DIM_M: (DATA_REAL, 0),
        DIM_N: (FREQUENCY_VARIABLE, 0),
    }

    REQUIRED_VARIABLES: Dict[str, Tuple[str, ...]] = {
        FREQUENCY_VARIABLE: (DIM_N,),
        DATA_REAL: (DIM_M, DIM_R, DIM_N),
        DATA_IMAG: (DIM_M, DIM_R, DIM_N),
    }

    def __init__(self, storage: StorageBackend, config: Optional[ReaderConfig] = None):
        super().__init__(storage, config)
        self.validator = ConventionValidator(self.CONVENTION_NAME, self.CONVENTION_VERSION,
                                             self.config.version_policy)
        self._governing: Optional[GoverningDimensions] = None
        self._governing_lock = threading.Lock()

    @classmethod
    def expected_convention_version(cls) -> str:
        """Version of the convention this model reads, e.g. "1.0"."""
        return format_version(cls.CONVENTION_VERSION)

    # ---------------------------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------------------------

    def _check_data_type(self) -> None:
        data_type = self.get_data_type()
        if data_type != self.DATA_TYPE:
            raise ValidationError(f"DataType is {data_type!r}, expected {self.DATA_TYPE!r}")

    def _check_required_variables(self) -> None:
        for name, dimensions in self.REQUIRED_VARIABLES.items():
            if not self.has_variable(name):
                raise ValidationError(f"Missing required variable: {name}")

            shape = self.get_variable_shape(name)
            names = self.get_variable_dimension_names(name)
            if len(shape) != len(dimensions) or (names and tuple(names) != dimensions):
                raise ValidationError(f"{name} must have dimensions {dimensions}, "
                                      f"got {names or shape}")

        if self.config.check_units:
            descriptor = self.get_frequency_descriptor()
            if descriptor.units is not None and descriptor.units != Units.HERTZ:
                raise ValidationError(f"{self.FREQUENCY_VARIABLE}:{UNITS_ATTRIBUTE} is "
                                      f"{descriptor.units.value!r}, expected 'hertz'")

    def validate(self) -> None:
        """
        Check generic structure, convention identity and convention structure.

        Raises:
            ConventionMismatchError: If the file claims another convention
                or an unsupported version
            ValidationError: If required variables are missing or the
                variables disagree on R, E, M or N
        """
        super().validate()
        self.validator.ensure(self)
        self._check_data_type()
        self._check_required_variables()
        self.validator.ensure_dimensions(self, self.GOVERNING_DIMENSIONS, self.ANCHORS)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except INVALID_FILE_ERRORS as e:
            logger.info(f"{self.path} is not a valid {self.CONVENTION_NAME} file: {e}")
            return False
        return True

    # ---------------------------------------------------------------------------------
    # Governing dimensions
    # ---------------------------------------------------------------------------------

    def get_governing_dimensions(self) -> GoverningDimensions:
        """
        R, E, M and N, read from the anchor variables on first use.

        The values are cached after the first successful derivation; a
        failed derivation raises and is retried on the next call.

        Raises:
            NotFoundError: If an anchor variable is missing
        """
        if self._governing is None:
            with self._governing_lock:
                if self._governing is None:
                    sizes = {dim: self.get_variable_shape(variable)[axis]
                             for dim, (variable, axis) in self.ANCHORS.items()}
                    self._governing = GoverningDimensions(**sizes)
                    logger.debug(f"{self.path}: governing dimensions {self._governing.as_dict()}")
        return self._governing

    def get_num_receivers(self) -> int:
        return self.get_governing_dimensions().R

    def get_num_emitters(self) -> int:
        return self.get_governing_dimensions().E

    def get_num_measurements(self) -> int:
        return self.get_governing_dimensions().M

    def get_num_data_samples(self) -> int:
        return self.get_governing_dimensions().N

    # ---------------------------------------------------------------------------------
    # Data
    # ---------------------------------------------------------------------------------

    def _data_shape(self) -> Tuple[int, int, int]:
        dims = self.get_governing_dimensions()
        return dims.M, dims.R, dims.N

    def data_index(self, measurement: int, receiver: int, sample: int) -> int:
        """Offset of [measurement][receiver][sample] in Data.Real / Data.Imag."""
        return array3d_index(measurement, receiver, sample, *self._data_shape())

    def get_frequency_descriptor(self) -> VariableDescriptor:
        return self.get_variable_descriptor(self.FREQUENCY_VARIABLE)

    def get_frequency_values(self, out: Optional[np.ndarray] = None) -> FlatBuffer:
        """
        Frequency of every data sample, length N.

        The convention does not require the values to be sorted and none
        of the accessors assume they are.
        """
        return self.get_variable_values(self.FREQUENCY_VARIABLE, out=out,
                                        shape=(self.get_num_data_samples(),))

    def get_data_real(self, out: Optional[np.ndarray] = None) -> FlatBuffer:
        """
        Real parts of the transfer functions, length M*R*N.

        Element [m][r][n] sits at `data_index(m, r, n)`.

        Raises:
            ShapeMismatchError: If Data.Real is not [M][R][N] or `out`
                cannot hold M*R*N values
        """
        return self.get_variable_values(self.DATA_REAL, out=out, shape=self._data_shape())

    def get_data_imag(self, out: Optional[np.ndarray] = None) -> FlatBuffer:
        """Imaginary parts of the transfer functions, laid out as `get_data_real`."""
        return self.get_variable_values(self.DATA_IMAG, out=out, shape=self._data_shape())

    def get_data_complex(self) -> np.ndarray:
        """Complex transfer functions as a new array of shape (M, R, N)."""
        shape = self._data_shape()
        real = self.get_data_real().reshape(shape)
        imag = self.get_data_imag().reshape(shape)
        return real + 1j * imag
