"""Core module - config, database, exceptions, results."""

from itinerary_worker.core.config import get_settings, Settings
from itinerary_worker.core.database import Database
from itinerary_worker.core.exceptions import (
    AppException,
    NotFoundException,
    BadRequestException,
    ServiceUnavailableException,
)
from itinerary_worker.core.result import Err, ErrorKind, Ok, Result

__all__ = [
    "get_settings",
    "Settings",
    "Database",
    "AppException",
    "NotFoundException",
    "BadRequestException",
    "ServiceUnavailableException",
    "Err",
    "ErrorKind",
    "Ok",
    "Result",
]
