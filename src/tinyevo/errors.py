"""
tinyevo Errors Module

This module defines the exceptions raised by the package. Every exception
derives from ValueError, so callers that already guard against bad arguments
keep working, and from TinyEvoError, so package errors can be caught as a group.

Classes:
    TinyEvoError:      Base class for all package errors
    InvalidDimensions: Genome constructed with a non-positive number of inputs or outputs
    DimensionMismatch: Forward evaluation received the wrong number of inputs
    InvalidConfig:     Simulation configuration violates its preconditions
    CodecError:        Persisted genome data is malformed
"""

class TinyEvoError(ValueError):
    """Base class for all tinyevo errors."""

class InvalidDimensions(TinyEvoError):
    """Raised when a genome is constructed with invalid input/output counts."""

class DimensionMismatch(TinyEvoError):
    """Raised when the input vector length differs from the number of input neurons."""

class InvalidConfig(TinyEvoError):
    """Raised when the simulation configuration is not usable."""

class CodecError(TinyEvoError):
    """Raised when a genome cannot be encoded or decoded."""
