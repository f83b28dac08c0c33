"""Exception hierarchy for formdoc."""


class FormDocError(Exception):
    """Base exception for all formdoc errors."""


class MissingTemplateError(FormDocError):
    """Raised when no field definitions can be resolved for a template."""


class RenderBackendInitError(FormDocError):
    """Raised when the PDF backend or its fonts cannot be initialized."""


class RenderError(FormDocError):
    """Raised when the backend fails while producing document bytes."""
