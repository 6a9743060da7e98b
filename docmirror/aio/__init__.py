"""Asynchronous implementation of docmirror.

This package contains the async walkers, the sequential execution driver
and the database/filesystem adapters. All I/O is non-blocking, but every
operation is awaited in sequence; nothing runs concurrently.
"""

# Core abstractions
from .core import (
    AsyncMirrorNode,
    DatabaseRootNode,
    CollectionNode,
    DocumentNode,
    AsyncDatabaseAdapter,
)

# Adapters
from .adapters import (
    AsyncFileSystemNode,
    AsyncFileSystemAdapter,
    FirestoreAdapter,
)

# Sequential execution and error policies
from .error_policies import (
    ErrorPolicy,
    FailFastPolicy,
    ContinueOnErrorsPolicy,
    create_policy,
)
from .sequential import (
    Operation,
    Outcome,
    SequenceReport,
    run_sequential,
)

# Walkers
from .backup import BackupWalker, BackupReport
from .restore import RestoreWalker, RestoreReport, RestoreItem, RestoreFailure

# High-level API
from .api import (
    backup_database,
    restore_database,
    run_mirror,
)

__all__ = [
    # Core abstractions
    'AsyncMirrorNode',
    'DatabaseRootNode',
    'CollectionNode',
    'DocumentNode',
    'AsyncDatabaseAdapter',
    # Adapters
    'AsyncFileSystemNode',
    'AsyncFileSystemAdapter',
    'FirestoreAdapter',
    # Error policies
    'ErrorPolicy',
    'FailFastPolicy',
    'ContinueOnErrorsPolicy',
    'create_policy',
    # Sequential execution
    'Operation',
    'Outcome',
    'SequenceReport',
    'run_sequential',
    # Walkers
    'BackupWalker',
    'BackupReport',
    'RestoreWalker',
    'RestoreReport',
    'RestoreItem',
    'RestoreFailure',
    # High-level API
    'backup_database',
    'restore_database',
    'run_mirror',
]
