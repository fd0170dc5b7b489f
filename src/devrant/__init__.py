"""
devrant: devRant client library with tolerant decoding and managed sessions.
"""

from .client import DevRantClient
from .config import ClientConfig
from .json_value import JSONValue
from .session import SessionManager
from .types import Credentials, ErrorKind, Failure, Success, VoteState

__all__ = [
    "ClientConfig",
    "Credentials",
    "DevRantClient",
    "ErrorKind",
    "Failure",
    "JSONValue",
    "SessionManager",
    "Success",
    "VoteState",
]
__version__ = "0.1.0"
