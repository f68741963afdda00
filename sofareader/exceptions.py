"""
Custom Exceptions Module

This module defines the exception hierarchy for the SOFA reader,
providing specific error types for the ways a file can fail to be
opened, read or accepted.
"""

from typing import List, Optional


class SOFAError(Exception):
    """Base exception class for all SOFA reader errors."""
    pass


class OpenError(SOFAError):
    """The storage handle could not be opened for the given path and mode."""
    pass


class NotFoundError(SOFAError):
    """A global attribute, dimension, variable or variable attribute is missing."""
    pass


class ShapeMismatchError(SOFAError):
    """Buffer capacity or declared shape does not match the variable."""
    pass


class ConventionMismatchError(SOFAError):
    """The file does not claim the expected convention name or version."""
    pass


class ValidationError(SOFAError):
    """
    Required structure is absent or inconsistent across variables.

    When raised for a dimension inconsistency, ``mismatches`` holds one
    DimensionMismatch record per offending variable.
    """

    def __init__(self, message: str, mismatches: Optional[List] = None):
        super().__init__(message)
        self.mismatches = list(mismatches) if mismatches else []


class StorageReadError(SOFAError):
    """Unrecoverable failure while reading from the storage collaborator."""
    pass


# Errors that mean "this file is not of the kind I need" rather than
# "something went wrong"; validity checks answer False for these.
INVALID_FILE_ERRORS = (
    NotFoundError,
    ShapeMismatchError,
    ConventionMismatchError,
    ValidationError,
)
