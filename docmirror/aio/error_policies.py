"""
Error handling policies for docmirror.

This module provides the Policy pattern used by the sequential execution
driver: a policy decides whether a failed step stops the whole sequence
or is recorded so the remaining steps still run.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List

logger = logging.getLogger(__name__)


class ErrorPolicy(ABC):
    """
    Base class for error handling policies.

    Subclasses implement different strategies for handling errors
    raised by one step of a sequence.
    """

    @abstractmethod
    async def handle(self, error: Exception, operation: str, subject: Any = None) -> Any:
        """
        Handle an error raised by a step.

        Args:
            error: The exception that was raised
            operation: Label of the step that failed (e.g. 'write_document')
            subject: The address or path the step was working on

        Returns:
            A value recorded as the step's result, or re-raises the
            exception to stop the sequence.
        """
        pass


class FailFastPolicy(ErrorPolicy):
    """
    Policy that immediately re-raises any error, stopping the sequence.

    This is the default behavior and the one used by backups: a backup is
    either complete or truncated at the first failure, never silently
    missing a node in the middle.
    """

    async def handle(self, error: Exception, operation: str, subject: Any = None) -> Any:
        """Re-raise the error immediately."""
        raise error


class ContinueOnErrorsPolicy(ErrorPolicy):
    """
    Policy that records errors and continues with the next step.

    Used by restores: every queued write is attempted and the failures
    are available afterwards for reporting.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, log a warning for every error
        """
        self.errors: List[dict] = []
        self.verbose = verbose

    async def handle(self, error: Exception, operation: str, subject: Any = None) -> Any:
        """Record the error and let the sequence continue.

        Returns:
            None, recorded as the failed step's result
        """
        self.errors.append({
            'subject': subject,
            'operation': operation,
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error),
        })
        if self.verbose:
            logger.warning("Error in %s for '%s': %s", operation, subject, error)
        return None

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        by_type = {}
        for record in self.errors:
            by_type[record['error_type']] = by_type.get(record['error_type'], 0) + 1
        return {
            'total_errors': len(self.errors),
            'by_type': by_type,
            'errors': self.errors,
        }


def create_policy(strict: bool = True, verbose: bool = True) -> ErrorPolicy:
    """
    Convenience function to pick a policy.

    Args:
        strict: If True, use FailFastPolicy; if False, use ContinueOnErrorsPolicy
        verbose: If True, log warnings for errors (only applies when strict=False)
    """
    if strict:
        return FailFastPolicy()
    return ContinueOnErrorsPolicy(verbose=verbose)
