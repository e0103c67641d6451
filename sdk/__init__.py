"""Telegram Bot API SDK — transport pipeline, update poller and models.

The :class:`BotClient` class sends every Bot API call through one
request/response pipeline; :class:`UpdatePoller` turns ``getUpdates`` into a
stream of updates with offset tracking and reconnect backoff.

Usage::

    from sdk import BotClient, UpdatePoller, TransportError
    from sdk.models import Message, Update
    from sdk.params import InputFile
"""

from sdk.client import BotClient
from sdk.exceptions import (
    DecodeError,
    InvalidRequest,
    InvalidStatusCode,
    NoDataReceived,
    ServerError,
    TransportError,
)
from sdk.params import InputFile
from sdk.poller import UpdatePoller, default_reconnect_delay
from sdk.wait import wait

__all__ = [
    "BotClient",
    "UpdatePoller",
    "default_reconnect_delay",
    "wait",
    "InputFile",
    "TransportError",
    "InvalidRequest",
    "NoDataReceived",
    "DecodeError",
    "InvalidStatusCode",
    "ServerError",
]
