"""
Custom exceptions for the ODS export pipeline.

This module defines a hierarchy of exceptions to provide more
precise error handling and debugging across the pipeline.
"""

from typing import Optional


class PipelineBaseError(Exception):
    """
    Base exception for all pipeline-related errors.

    All custom exceptions in the pipeline should inherit from this class.
    """

    pass


class ConfigurationError(PipelineBaseError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Configuration values are invalid
    - The output location cannot be prepared
    """

    pass


class FetchError(PipelineBaseError):
    """
    Raised when a request to the indicator API fails.

    Covers HTTP status failures, transport failures and response bodies
    that are not valid JSON. The fetch functions convert it to an empty
    sentinel value before it reaches the transformation step.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ExportError(PipelineBaseError):
    """
    Raised when the overall export sequence fails.

    Wraps whatever escaped the fetch, transform or spreadsheet steps.
    """

    pass
