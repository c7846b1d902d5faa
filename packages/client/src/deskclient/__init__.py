# This project was developed with assistance from AI tools.
"""Async client for the Visa Desk REST API."""

from .config import ClientSettings
from .controller import ActionState, CaseWorkflowController, GuardError, Notifier
from .edits import FieldEdit, FieldEditTracker
from .errors import (
    ApiError,
    ApiValidationError,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitedError,
    ServerError,
    flatten_detail,
)
from .http import ApiClient
from .polling import StatusPoller
from .services import DeskClient
from .session import JsonFileTokenStore, MemoryTokenStore, SessionContext, TokenStore

__version__ = "0.1.0"

__all__ = [
    "ActionState",
    "ApiClient",
    "ApiError",
    "ApiValidationError",
    "AuthenticationError",
    "CaseWorkflowController",
    "ClientSettings",
    "DeskClient",
    "FieldEdit",
    "FieldEditTracker",
    "GuardError",
    "JsonFileTokenStore",
    "MemoryTokenStore",
    "NetworkError",
    "NotFoundError",
    "Notifier",
    "PermissionDeniedError",
    "RateLimitedError",
    "ServerError",
    "SessionContext",
    "StatusPoller",
    "TokenStore",
    "flatten_detail",
]
