"""
Sync Operations Utilities

Exports utility classes for progress reporting, installation path
resolution and step-boundary cancellation.
"""

from .progress import (
    ProgressSink,
    NullProgressSink,
    RecordingProgressSink,
    LoggingProgressSink,
    TqdmProgressSink,
    StepCounter,
    TransferTracker,
    StepsPlanned,
    StepStarted,
    StepAdvanced,
    StepsFinished,
    SizeKnown,
    Progress,
    Completed,
    Redirected
)
from .paths import InstallationPaths
from .cancellation import CancellationToken

__all__ = [
    'ProgressSink',
    'NullProgressSink',
    'RecordingProgressSink',
    'LoggingProgressSink',
    'TqdmProgressSink',
    'StepCounter',
    'TransferTracker',
    'StepsPlanned',
    'StepStarted',
    'StepAdvanced',
    'StepsFinished',
    'SizeKnown',
    'Progress',
    'Completed',
    'Redirected',
    'InstallationPaths',
    'CancellationToken'
]
