"""
Convention Validation

This module decides whether a file claims a given SOFA convention and
whether its variables agree on the sizes of the dimensions that
convention depends on.

Both checks are centralized here so that every convention-specific file
model compares names, versions and dimension sizes the same way. Not
matching a convention is an expected outcome: `check` answers False,
while `ensure` raises for callers that want the reason.
"""

import re
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .config import (
    ATTR_SOFA_CONVENTIONS, ATTR_SOFA_CONVENTIONS_VERSION, VersionPolicy
)
from .exceptions import (
    ConventionMismatchError, NotFoundError, ValidationError, INVALID_FILE_ERRORS
)
from .utils import DimensionMismatch, VersionPair

# Set up logging
logger = logging.getLogger(__name__)

# Reference name used when a size comes from the file's dimension table
DIMENSION_TABLE = '<dimensions>'

_VERSION_PATTERN = re.compile(r'^\s*(\d+)\.(\d+)\s*$')

# Dimension name -> (variable, axis) whose size defines that dimension
Anchors = Dict[str, Tuple[str, int]]


def parse_version(version: str) -> VersionPair:
    """
    Parse a "major.minor" version attribute.

    Args:
        version: Attribute value, e.g. "1.0"

    Returns:
        (major, minor) pair

    Raises:
        ConventionMismatchError: If the value is not of the form "major.minor"

    Examples:
        >>> parse_version("1.0")
        (1, 0)
    """
    match = _VERSION_PATTERN.match(str(version))
    if match is None:
        raise ConventionMismatchError(f"Unrecognized convention version: {version!r}")
    return int(match.group(1)), int(match.group(2))


def format_version(version: VersionPair) -> str:
    return f"{version[0]}.{version[1]}"


def find_dimension_mismatches(model, dimensions: Sequence[str],
                              anchors: Optional[Anchors] = None) -> List[DimensionMismatch]:
    """
    Find variables that disagree on the size of a named dimension.

    The expected size of a dimension comes from its anchor variable when
    one is given, otherwise from the file's dimension table, otherwise from
    the first variable that references it.

    Args:
        model: File model exposing the variable and dimension queries
        dimensions: Dimension names to check
        anchors: Optional variable/axis defining each dimension

    Returns:
        One record per offending variable and dimension, empty if consistent
    """
    anchors = anchors or {}
    declared = model.get_dimensions()
    expected: Dict[str, Tuple[int, str]] = {}
    mismatches = []

    for dim in dimensions:
        if dim in anchors:
            variable, axis = anchors[dim]
            size = model.get_variable_shape(variable)[axis]
            expected[dim] = (size, variable)
            if dim in declared and declared[dim] != size:
                mismatches.append(DimensionMismatch(dim, DIMENSION_TABLE, size, declared[dim], variable))
        elif dim in declared:
            expected[dim] = (declared[dim], DIMENSION_TABLE)

    for variable in model.get_variable_names():
        names = model.get_variable_dimension_names(variable)
        shape = model.get_variable_shape(variable)
        for dim, size in zip(names, shape):
            if dim not in dimensions:
                continue
            if dim not in expected:
                expected[dim] = (size, variable)
                continue
            expected_size, reference = expected[dim]
            if size != expected_size:
                mismatches.append(DimensionMismatch(dim, variable, expected_size, size, reference))

    return mismatches


def ensure_consistent_dimensions(model, dimensions: Sequence[str],
                                 anchors: Optional[Anchors] = None) -> None:
    """
    Raise if any variable disagrees on the size of a named dimension.

    Raises:
        ValidationError: Enumerating every offending variable, with its
            expected and actual size
    """
    mismatches = find_dimension_mismatches(model, dimensions, anchors)
    if mismatches:
        details = '; '.join(str(m) for m in mismatches)
        raise ValidationError(f"Inconsistent dimensions: {details}", mismatches)


class ConventionValidator:
    """
    Identity and structure checks for one named, versioned convention.

    Attributes:
        name: Expected value of the SOFAConventions attribute
        version: Expected (major, minor) of SOFAConventionsVersion
        policy: How the file's version is compared to the expected one
    """

    def __init__(self, name: str, version: VersionPair,
                 policy: VersionPolicy = VersionPolicy.EXACT):
        self.name = name
        self.version = tuple(version)
        self.policy = policy

    def __repr__(self) -> str:
        return f"ConventionValidator({self.name!r}, {format_version(self.version)!r}, {self.policy.value})"

    def accepts_version(self, version: VersionPair) -> bool:
        """The one place a file's convention version is compared."""
        if self.policy == VersionPolicy.SAME_MAJOR:
            return version[0] == self.version[0]
        return tuple(version) == self.version

    def ensure(self, model) -> None:
        """
        Raise unless the file claims this convention and an accepted version.

        Args:
            model: File model exposing get_attribute_as_string

        Raises:
            ConventionMismatchError: On a missing or different name or version
        """
        try:
            name = model.get_attribute_as_string(ATTR_SOFA_CONVENTIONS)
            version_string = model.get_attribute_as_string(ATTR_SOFA_CONVENTIONS_VERSION)
        except NotFoundError as e:
            raise ConventionMismatchError(f"File declares no convention: {e}") from e

        if name != self.name:
            raise ConventionMismatchError(f"Convention is {name!r}, expected {self.name!r}")

        version = parse_version(version_string)
        if not self.accepts_version(version):
            raise ConventionMismatchError(
                f"{self.name} version {format_version(version)} is not supported, "
                f"expected {format_version(self.version)}")

    def check(self, model) -> bool:
        """Whether the file claims this convention; never raises for a mismatch."""
        try:
            self.ensure(model)
        except ConventionMismatchError as e:
            logger.info(f"Not a {self.name} file: {e}")
            return False
        return True

    def check_dimensions(self, model, dimensions: Sequence[str],
                         anchors: Optional[Anchors] = None) -> bool:
        try:
            ensure_consistent_dimensions(model, dimensions, anchors)
        except INVALID_FILE_ERRORS as e:
            logger.info(f"{self.name} structure check failed: {e}")
            return False
        return True

    def ensure_dimensions(self, model, dimensions: Sequence[str],
                          anchors: Optional[Anchors] = None) -> None:
        ensure_consistent_dimensions(model, dimensions, anchors)
