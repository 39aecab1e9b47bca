"""
Error taxonomy for the thermal alerting core.

Nothing raised here is fatal to the process: the engine degrades a single
rule or a single frame, never the whole pipeline.

Classes:
    ThermosentryError: Base class for all package errors.
    ConfigurationError: Invalid configuration or unknown identifiers.
    EvaluationError: A detector could not evaluate a rule for a frame.
    DataError: A frame does not match its declared shape or bounds.
"""

from typing import Optional


class ThermosentryError(Exception):
    """Base class for all thermosentry errors."""


class ConfigurationError(ThermosentryError):
    """
    Raised when a configuration change is invalid.

    The object being configured is left unchanged.
    """


class EvaluationError(ThermosentryError):
    """
    Raised when a rule cannot be evaluated against a frame.

    Attributes:
        rule_id: Identifier of the rule that failed, if known.
    """

    def __init__(self, message: str, rule_id: Optional[str] = None):
        self.rule_id = rule_id
        super().__init__(message)


class DataError(ThermosentryError):
    """
    Raised when frame data is inconsistent.

    Attributes:
        frame_number: Frame that carried the bad data.
        expected: Expected number of values.
        actual: Actual number of values.
    """

    def __init__(
        self,
        message: str,
        frame_number: Optional[int] = None,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        self.frame_number = frame_number
        self.expected = expected
        self.actual = actual
        super().__init__(message)
