from .errors import (
    FitTrackError, AuthenticationError, PayloadValidationError, ConfigurationError,
    UpstreamQuotaError, UpstreamBillingError, UpstreamGenericError, PersistenceError,
    NotFoundError, ConflictError, CORS_HEADERS, register_exception_handlers
)
from .progress import summarize_progress, summarize_dashboard

__all__ = [
    'FitTrackError',
    'AuthenticationError',
    'PayloadValidationError',
    'ConfigurationError',
    'UpstreamQuotaError',
    'UpstreamBillingError',
    'UpstreamGenericError',
    'PersistenceError',
    'NotFoundError',
    'ConflictError',
    'CORS_HEADERS',
    'register_exception_handlers',
    'summarize_progress',
    'summarize_dashboard',
]
