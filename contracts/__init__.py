"""Contracts shared by the export pipeline.

The contracts package defines:
- the run configuration and per-step result types
- the error taxonomy
- Protocol definitions for dependency injection (session, Azure SDK clients)

Main exports:
- RunConfig, ExportJob, ExportOutcome, RunState, StepResult, RunResult, ROW_CAP
- GraphSession, SessionContext
- PostureExportError and its subclasses
"""

from contracts import errors
from contracts import export_contracts
from contracts import interfaces

# Explicit re-exports to satisfy ruff F401
__all__ = [
    "ROW_CAP",
    "AuthenticationError",
    "ExportIOError",
    "ExportJob",
    "ExportOutcome",
    "GraphSession",
    "PostureExportError",
    "PrerequisiteError",
    "QueryError",
    "RunConfig",
    "RunResult",
    "RunState",
    "SerializationError",
    "SessionContext",
    "StepResult",
    "SubscriptionBindingError",
]

# Re-export for convenience
ROW_CAP = export_contracts.ROW_CAP
ExportJob = export_contracts.ExportJob
ExportOutcome = export_contracts.ExportOutcome
RunConfig = export_contracts.RunConfig
RunResult = export_contracts.RunResult
RunState = export_contracts.RunState
StepResult = export_contracts.StepResult

GraphSession = interfaces.GraphSession
SessionContext = interfaces.SessionContext

PostureExportError = errors.PostureExportError
PrerequisiteError = errors.PrerequisiteError
AuthenticationError = errors.AuthenticationError
SubscriptionBindingError = errors.SubscriptionBindingError
ExportIOError = errors.ExportIOError
QueryError = errors.QueryError
SerializationError = errors.SerializationError
