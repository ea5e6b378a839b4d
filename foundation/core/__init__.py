from foundation.config import settings, get_settings
from foundation.core.exceptions import (
    AppException,
    BadRequestError,
    UnauthorizedError,
    NotFoundError,
    ConflictError,
    ConfigurationMissingError,
    NoSupportedLocaleError,
    TemplateManagerSetupError,
    TemplateNotFoundError,
    TemplateEvaluationError,
)
from foundation.core.flash import Flash, Severity
from foundation.core.lazy import Lazy

__all__ = [
    "settings",
    "get_settings",
    "AppException",
    "BadRequestError",
    "UnauthorizedError",
    "NotFoundError",
    "ConflictError",
    "ConfigurationMissingError",
    "NoSupportedLocaleError",
    "TemplateManagerSetupError",
    "TemplateNotFoundError",
    "TemplateEvaluationError",
    "Flash",
    "Severity",
    "Lazy",
]
