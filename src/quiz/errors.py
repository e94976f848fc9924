"""
Quiz engine exceptions.

These are raised inside the engine and turned into structured results at the
``QuizEngine`` boundary; callers of the boundary never see them.
"""


class QuizEngineError(Exception):
    """Base class for quiz engine failures."""

    code = "quiz_engine_error"

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path


class TemplateIntegrityError(QuizEngineError):
    """The template cannot be graded reliably (bad correct-answer reference, no options...)."""

    code = "template_integrity"


class QuizConfigurationError(QuizEngineError):
    """A template setting is out of its valid range."""

    code = "configuration"


class AttemptStateError(QuizEngineError):
    """An operation does not fit the attempt's lifecycle stage."""

    code = "attempt_state"
