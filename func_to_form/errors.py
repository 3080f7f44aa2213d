from __future__ import annotations

from typing import Any, Optional


class F2FError(Exception):
    """Base class for every error raised by the form engine."""


class ValidationError(F2FError):
    """Malformed or out-of-range text in a single field.

    Recoverable: the engine shows the message next to the field and keeps
    reading the other fields.
    """


class DefinitionError(F2FError):
    """A form was declared wrongly (duplicate names, nested groups, ...)."""


class StructuralError(F2FError):
    """Misuse of the engine API, e.g. an unknown lane or an unregistered form."""


class ComputationError(F2FError):
    """The user computation raised.

    ``outcome`` is the submission outcome at the time of failure, so callers
    can still apply the URL update and render the output stream.
    """

    def __init__(self, form_name: str, cause: BaseException, outcome: Optional[Any] = None):
        super().__init__(f"{form_name}: {type(cause).__name__}: {cause}")
        self.form_name = form_name
        self.cause = cause
        self.outcome = outcome
