"""Shared domain exception classes for the surveys service.

These are raised by store and session code and caught by controllers
to map to appropriate HTTP responses.
"""


class FetchFailure(Exception):
    """Raised when the survey store cannot deliver a survey or its responses.

    ``message`` is already human readable: it comes from the backend's error
    payload when there is one, else from the transport error.
    """

    def __init__(self, message: str = "", status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SurveyNotFoundError(FetchFailure):
    def __init__(self, survey_id: str = "", message: str | None = None):
        self.survey_id = survey_id
        super().__init__(message or f"Survey not found: {survey_id}", status_code=404)


class NotSurveyOwnerError(Exception):
    """Raised when someone other than the survey's creator asks for its results."""


class ResultsNotLoadedError(Exception):
    """Raised when exporting from a session that holds no survey."""
