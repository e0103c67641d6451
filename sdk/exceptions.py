"""Exception hierarchy for the pollbot Telegram SDK.

Every failure of a Bot API call is one of the :class:`TransportError`
subclasses below; ``requests`` and pydantic errors never leak past
:meth:`sdk.client.BotClient.call`.
"""

import json
from typing import Any, Dict, Optional


class TransportError(Exception):
    """Base class for failures of a single Bot API call."""


class InvalidRequest(TransportError):
    """The parameter set could not be encoded into a request body."""


class NoDataReceived(TransportError):
    """No HTTP response arrived, or the response body was empty."""


class DecodeError(TransportError):
    """The response body is not a valid response envelope.

    Attributes:
        raw_body: The undecoded response body.
    """

    def __init__(self, raw_body: bytes, reason: str | None = None) -> None:
        self.raw_body = raw_body
        super().__init__(f"Could not decode response: {reason or 'invalid envelope'}")


class InvalidStatusCode(TransportError):
    """The server answered with an HTTP status other than 200.

    This takes precedence over the envelope's ``ok`` flag.

    Attributes:
        status_code: HTTP status code returned by the API.
        description: Envelope ``description``, when present.
        error_code: Envelope ``error_code``, when present.
        raw_body: Raw response body.
    """

    def __init__(
        self,
        status_code: int,
        description: Optional[str] = None,
        error_code: Optional[int] = None,
        raw_body: bytes = b"",
    ) -> None:
        self.status_code = status_code
        self.description = description
        self.error_code = error_code
        self.raw_body = raw_body
        super().__init__(f"API error {status_code}: {description or 'Unknown error'}")


class ServerError(TransportError):
    """HTTP 200 with ``ok == false`` in the envelope.

    Attributes:
        raw_body: Raw response body.
    """

    def __init__(self, raw_body: bytes) -> None:
        self.raw_body = raw_body
        super().__init__(f"Server error {self.error_code}: {self.description or 'Unknown error'}")

    def _body(self) -> Dict[str, Any]:
        try:
            body = json.loads(self.raw_body or b"{}")
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @property
    def description(self) -> Optional[str]:
        return self._body().get("description")

    @property
    def error_code(self) -> Optional[int]:
        return self._body().get("error_code")
