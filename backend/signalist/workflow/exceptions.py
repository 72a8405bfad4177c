"""Workflow Exception Hierarchy

Exception Classes:
- WorkflowError: Base exception (retryable=False)
- ConfigurationError: Invalid or incomplete configuration (fatal)
- MissingCredentialError: Required secret absent from the environment (fatal)
- StepFailure: A durable step failed after its retry policy was exhausted
- RunAbortedError: A non-isolated step failed, ending the whole run

Retry Logic:
- The step executor retries any exception whose ``retryable`` attribute is
  not explicitly False (service errors set it per status code)
- Non-retryable errors fail fast on the first attempt
"""


class WorkflowError(Exception):
    """Base exception for workflow execution errors."""

    retryable: bool = False


class ConfigurationError(WorkflowError):
    """Configuration is invalid or incomplete."""

    pass


class MissingCredentialError(ConfigurationError):
    """A required credential is not configured."""

    def __init__(self, variable: str):
        super().__init__(f"Missing {variable} in environment")
        self.variable = variable


class StepFailure(WorkflowError):
    """A named durable step failed."""

    def __init__(self, name: str, cause: str, error_type: str | None = None):
        super().__init__(f"Step '{name}' failed: {cause}")
        self.name = name
        self.cause = cause
        self.error_type = error_type


class RunAbortedError(WorkflowError):
    """A run-level step failed and the run cannot continue."""

    def __init__(self, run_id: str, stage: str, cause: Exception):
        super().__init__(f"Run {run_id} aborted at '{stage}': {cause}")
        self.run_id = run_id
        self.stage = stage
        self.cause = cause
