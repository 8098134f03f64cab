"""
Pipeline Errors
===============

Internal failure signals. None of these escape ``QueryOrchestrator.handle_query``;
each is converted into a structured result at the layer that owns it.
"""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    code = "PIPELINE_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class TranslationFailure(PipelineError):
    """The translation service was unreachable or returned unparsable output."""

    code = "TRANSLATION_FAILURE"


class LLMServiceError(TranslationFailure):
    """Raised by LLM providers when a call cannot be completed."""

    code = "LLM_SERVICE_ERROR"


class ConfirmationMismatch(PipelineError):
    """A confirmation reply could not be tied to a prior translation."""

    code = "CONFIRMATION_MISMATCH"


class ExecutionFailure(PipelineError):
    """The data engine rejected a statement."""

    code = "EXECUTION_FAILURE"


class RetryExhausted(ExecutionFailure):
    """Execution kept failing after every allowed correction."""

    code = "RETRY_EXHAUSTED"


class StatementRejected(ExecutionFailure):
    """A statement was refused before reaching the data engine."""

    code = "STATEMENT_REJECTED"
