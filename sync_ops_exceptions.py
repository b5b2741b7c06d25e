"""
Sulu Sync Operations Exceptions

This module defines the package-wide base exceptions for the Sulu_Sync
package to provide clear error handling and reporting.
"""

class SyncOpsError(Exception):
    """Base exception for all Sulu_Sync errors"""
    pass


class ConfigurationError(SyncOpsError):
    """Raised when configuration is invalid or missing"""
    pass


class OperationTimeoutError(SyncOpsError):
    """Raised when an operation times out"""
    pass
