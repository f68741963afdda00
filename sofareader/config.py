"""
Configuration Management Module

This module provides centralized configuration for the SOFA reader,
including the AES69 names and constants the validators depend on,
default settings, and configuration utilities.
"""

from typing import Dict, Any
from dataclasses import dataclass
from enum import Enum


# =====================================================================================
# Constants
# =====================================================================================

# Global attributes
ATTR_CONVENTIONS = 'Conventions'
ATTR_VERSION = 'Version'
ATTR_SOFA_CONVENTIONS = 'SOFAConventions'
ATTR_SOFA_CONVENTIONS_VERSION = 'SOFAConventionsVersion'
ATTR_DATA_TYPE = 'DataType'
ATTR_ROOM_TYPE = 'RoomType'

SOFA_CONVENTIONS_VALUE = 'SOFA'

REQUIRED_GLOBAL_ATTRIBUTES = (
    ATTR_CONVENTIONS,
    ATTR_VERSION,
    ATTR_SOFA_CONVENTIONS,
    ATTR_SOFA_CONVENTIONS_VERSION,
    'APIName',
    'APIVersion',
    'AuthorContact',
    'Organization',
    'License',
    ATTR_DATA_TYPE,
    ATTR_ROOM_TYPE,
    'DateCreated',
    'DateModified',
    'Title',
)

# Dimensions
DIM_I = 'I'  # singleton
DIM_C = 'C'  # coordinate triplet
DIM_M = 'M'  # measurements
DIM_R = 'R'  # receivers
DIM_E = 'E'  # emitters
DIM_N = 'N'  # data samples
DIM_S = 'S'  # longest string

REQUIRED_DIMENSIONS = (DIM_I, DIM_C, DIM_M, DIM_R, DIM_E, DIM_N)
FIXED_DIMENSION_SIZES = {DIM_I: 1, DIM_C: 3}

# Positional variables and the attributes attached to them
LISTENER_POSITION = 'ListenerPosition'
LISTENER_VIEW = 'ListenerView'
LISTENER_UP = 'ListenerUp'
SOURCE_POSITION = 'SourcePosition'
RECEIVER_POSITION = 'ReceiverPosition'
EMITTER_POSITION = 'EmitterPosition'

REQUIRED_POSITIONAL_VARIABLES = (
    LISTENER_POSITION,
    RECEIVER_POSITION,
    SOURCE_POSITION,
    EMITTER_POSITION,
)
OPTIONAL_POSITIONAL_VARIABLES = (LISTENER_VIEW, LISTENER_UP)

TYPE_ATTRIBUTE = 'Type'
UNITS_ATTRIBUTE = 'Units'
LONG_NAME_ATTRIBUTE = 'LongName'

# File modes accepted by the storage layer. 'w' would truncate the file.
DEFAULT_MODE = 'r'
SUPPORTED_MODES = ['r', 'r+', 'a']

# Display settings
DEFAULT_PADDING = 30
DEFAULT_PRECISION = 6


# =====================================================================================
# Configuration Classes
# =====================================================================================

class VersionPolicy(Enum):
    """How a file's convention version is compared to the expected one."""
    EXACT = 'exact'            # (major, minor) must be identical
    SAME_MAJOR = 'same_major'  # any minor revision of the expected major


@dataclass
class ReaderConfig:
    """Configuration for opening and validating SOFA files"""

    # Validation settings
    version_policy: VersionPolicy = VersionPolicy.EXACT
    check_units: bool = True

    # Display settings
    padding: int = DEFAULT_PADDING
    precision: int = DEFAULT_PRECISION

    def __post_init__(self):
        """Validate configuration after initialization"""
        if isinstance(self.version_policy, str):
            self.version_policy = VersionPolicy(self.version_policy)

        if self.padding < 0:
            raise ValueError("Padding must be non-negative")

        if self.precision < 1:
            raise ValueError("Precision must be at least 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization"""
        return {
            'version_policy': self.version_policy.value,
            'check_units': self.check_units,
            'padding': self.padding,
            'precision': self.precision,
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ReaderConfig':
        """Create configuration from dictionary"""
        return cls(**config_dict)

    def save(self, file_path: str) -> None:
        """Save configuration to file"""
        import json
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, file_path: str) -> 'ReaderConfig':
        """Load configuration from file"""
        import json
        with open(file_path, 'r') as f:
            return cls.from_dict(json.load(f))


# Create a default configuration
default_config = ReaderConfig()
