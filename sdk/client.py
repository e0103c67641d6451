"""BotClient -- transport pipeline for the Telegram Bot API.

Every Bot API method goes through :meth:`BotClient.call`: parameters are
encoded (form-url-encoded, or multipart when an :class:`~sdk.params.InputFile`
is present), POSTed to ``{url}/bot{token}/{endpoint}`` over a shared
``requests`` session, and the response envelope is classified into a result
or one of the :mod:`sdk.exceptions` errors.

Three calling conventions are offered on top of it:

- :meth:`BotClient.call` raises on failure;
- :meth:`BotClient.request_sync` returns ``None`` and records ``last_error``;
- :meth:`BotClient.request_async` runs on a worker pool and delivers the
  completion onto a caller-supplied asyncio loop.

A handful of endpoint wrappers (``get_me``, ``send_message``, ...) are thin
call-sites of the pipeline; there is no retry logic at this layer.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote

import requests
from pydantic import TypeAdapter, ValidationError

from core.logger import BotLogger, install_redaction, redact, register_secret
from sdk import params as wire
from sdk.exceptions import (
    DecodeError,
    InvalidStatusCode,
    NoDataReceived,
    ServerError,
    TransportError,
)
from sdk.models import Envelope, Message, Update, User
from sdk.params import InputFile, ParameterSet
from sdk.wait import wait as _blocking_wait

Completion = Callable[[Any, Optional[TransportError]], None]


class BotClient:
    """Client-side service layer for the Telegram Bot API.

    The HTTP session and the worker pool are shared by all calls; the client
    holds no per-call state apart from :attr:`last_error`.
    """

    DEFAULT_URL: str = "https://api.telegram.org"
    _DEFAULT_TIMEOUT: int = 10

    def __init__(
        self,
        token: str,
        url: str = DEFAULT_URL,
        timeout: int = _DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
        max_workers: int = 4,
    ) -> None:
        """Create a new client.

        Args:
            token: Bot token obtained from BotFather.
            url: Bot API server URL, without the ``/bot<token>`` part.
            timeout: Default request timeout in seconds.
            session: ``requests`` session to reuse; a new one by default.
            logger: Sink for per-call log lines.  The token is redacted from
                every record it emits.
            max_workers: Size of the pool running :meth:`request_async`.
        """
        self.token = token
        self._url = url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="bot-transport")

        register_secret(token)
        register_secret(quote(token, safe=""))
        self.logger = install_redaction(logger or BotLogger.get_logger())

        #: Per-endpoint parameters merged under every call's own parameters.
        self.default_parameters: Dict[str, Dict[str, Any]] = {}
        #: Error of the most recent failed :meth:`request_sync` call.
        self.last_error: Optional[TransportError] = None
        self.user: Optional[User] = None

    # ------------------------------------------------------------------
    #  Lifecycle and identity
    # ------------------------------------------------------------------

    def connect(self) -> Optional[User]:
        """Fetch and cache the bot's own identity via ``getMe``.

        Returns the :class:`User`, or ``None`` with :attr:`last_error` set.
        """
        user = self.get_me()
        if user is not None:
            self.user = user
            self.logger.info("Connected", extra={"api_endpoint": "getMe", "bot_username": user.username})
        return user

    @property
    def username(self) -> str:
        """The bot's username; requires a successful :meth:`connect`."""
        if self.user is None or not self.user.username:
            raise RuntimeError("Bot identity unknown: call connect() first")
        return self.user.username

    def wait(self, seconds: float, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Block for *seconds* without starving completions queued on *loop*."""
        _blocking_wait(seconds, loop)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._session.close()

    def __enter__(self) -> "BotClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    #  Transport pipeline
    # ------------------------------------------------------------------

    def _endpoint_url(self, endpoint: str) -> str:
        return f"{self._url}/bot{quote(self.token, safe='')}/{quote(endpoint, safe='')}"

    def call(
        self,
        endpoint: str,
        *parameter_sets: Optional[ParameterSet],
        result_type: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """POST *endpoint* and return the envelope's ``result``.

        Parameter sets are merged left to right on top of
        ``default_parameters[endpoint]``; ``None`` values are omitted.

        Raises:
            InvalidRequest: The parameters could not be encoded.
            NoDataReceived: No response, or an empty 200 response.
            DecodeError: The body is not an envelope, or ``result`` does not
                match *result_type*.
            InvalidStatusCode: HTTP status other than 200.
            ServerError: HTTP 200 with ``ok == false``.
        """
        merged = wire.merge(self.default_parameters.get(endpoint), *parameter_sets)
        body, content_type = wire.encode(merged)
        self.logger.debug(
            "endpoint: %s, data: %s", endpoint, wire.describe(merged),
            extra={"api_endpoint": endpoint, "content_type": content_type.split(";")[0]},
        )

        try:
            response = self._session.post(
                self._endpoint_url(endpoint),
                data=body,
                headers={"Content-Type": content_type},
                timeout=timeout or self._timeout,
            )
        except requests.RequestException as exc:
            raise NoDataReceived(f"{endpoint}: {redact(str(exc))}") from None

        raw = response.content or b""
        status = response.status_code
        if not raw:
            if status != 200:
                raise InvalidStatusCode(status, raw_body=raw)
            raise NoDataReceived(f"{endpoint}: empty response body")

        try:
            envelope = Envelope.model_validate_json(raw)
        except ValidationError as exc:
            raise DecodeError(raw, str(exc)) from exc

        if status != 200:
            raise InvalidStatusCode(status, envelope.description, envelope.error_code, raw)
        if not envelope.ok:
            raise ServerError(raw)

        if result_type is None:
            return envelope.result
        try:
            return TypeAdapter(result_type).validate_python(envelope.result)
        except ValidationError as exc:
            raise DecodeError(raw, str(exc)) from exc

    def request_sync(
        self,
        endpoint: str,
        *parameter_sets: Optional[ParameterSet],
        result_type: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Blocking call; returns ``None`` on failure and sets :attr:`last_error`."""
        try:
            result = self.call(endpoint, *parameter_sets, result_type=result_type, timeout=timeout)
        except TransportError as exc:
            self.last_error = exc
            self.logger.warning(
                "%s failed: %s", endpoint, exc,
                extra={"api_endpoint": endpoint, "error_type": type(exc).__name__},
            )
            return None
        self.last_error = None
        return result

    def request_async(
        self,
        endpoint: str,
        *parameter_sets: Optional[ParameterSet],
        result_type: Any = None,
        timeout: Optional[float] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        completion: Optional[Completion] = None,
    ) -> Future:
        """Run :meth:`call` on the worker pool.

        The returned future resolves to the result or raises the transport
        error.  If *completion* is given it is invoked as
        ``completion(result, error)`` on *loop*, never on the calling or the
        worker thread.  Errors other than :class:`TransportError` reach the
        completion wrapped in a plain :class:`TransportError`.

        Raises:
            ValueError: If *completion* is given without *loop*.
        """
        if completion is not None and loop is None:
            raise ValueError("request_async() needs a loop to deliver the completion on")

        future = self._executor.submit(
            self.call, endpoint, *parameter_sets, result_type=result_type, timeout=timeout,
        )
        if completion is not None:
            def _deliver(done: Future) -> None:
                error = done.exception()
                if error is not None and not isinstance(error, TransportError):
                    self.logger.error("%s raised unexpectedly", endpoint, exc_info=error)
                    wrapped = TransportError(f"{endpoint}: {type(error).__name__}: {redact(str(error))}")
                    wrapped.__cause__ = error
                    error = wrapped
                result = None if error is not None else done.result()
                loop.call_soon_threadsafe(completion, result, error)

            future.add_done_callback(_deliver)
        return future

    # ------------------------------------------------------------------
    #  Endpoint wrappers
    # ------------------------------------------------------------------

    def get_me(self) -> Optional[User]:
        """A simple method for testing your bot's auth token."""
        return self.request_sync("getMe", result_type=User)

    def get_updates(
        self,
        offset: Optional[int] = None,
        limit: Optional[int] = 100,
        timeout: Optional[int] = 0,
        allowed_updates: Optional[List[str]] = None,
    ) -> List[Update]:
        """Receive incoming updates using long polling.

        Unlike the other wrappers this raises on failure; the retry policy
        belongs to :class:`~sdk.poller.UpdatePoller`.
        """
        payload = {
            "offset": offset,
            "limit": limit,
            "timeout": timeout,
            "allowed_updates": allowed_updates,
        }
        return self.call(
            "getUpdates", payload,
            result_type=List[Update],
            timeout=(timeout or 0) + self._timeout,
        )

    @staticmethod
    def _send_message_params(
        chat_id: Union[int, str],
        text: str,
        parse_mode: Optional[str],
        disable_notification: Optional[bool],
        reply_to_message_id: Optional[int],
        reply_markup: Optional[Any],
    ) -> Dict[str, Any]:
        return {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_notification": disable_notification,
            "reply_to_message_id": reply_to_message_id,
            "reply_markup": reply_markup,
        }

    def send_message(
        self,
        chat_id: Union[int, str],
        text: str,
        parse_mode: Optional[str] = None,
        disable_notification: Optional[bool] = None,
        reply_to_message_id: Optional[int] = None,
        reply_markup: Optional[Any] = None,
        extra: Optional[ParameterSet] = None,
    ) -> Optional[Message]:
        """Send a text message.  Blocking; ``None`` on error (see :attr:`last_error`)."""
        return self.request_sync(
            "sendMessage",
            extra,
            self._send_message_params(chat_id, text, parse_mode, disable_notification, reply_to_message_id, reply_markup),
            result_type=Message,
        )

    def send_message_async(
        self,
        chat_id: Union[int, str],
        text: str,
        parse_mode: Optional[str] = None,
        disable_notification: Optional[bool] = None,
        reply_to_message_id: Optional[int] = None,
        reply_markup: Optional[Any] = None,
        extra: Optional[ParameterSet] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        completion: Optional[Completion] = None,
    ) -> Future:
        """Asynchronous version of :meth:`send_message`."""
        return self.request_async(
            "sendMessage",
            extra,
            self._send_message_params(chat_id, text, parse_mode, disable_notification, reply_to_message_id, reply_markup),
            result_type=Message,
            loop=loop,
            completion=completion,
        )

    def send_photo(
        self,
        chat_id: Union[int, str],
        photo: Union[InputFile, str],
        caption: Optional[str] = None,
        disable_notification: Optional[bool] = None,
        reply_to_message_id: Optional[int] = None,
        reply_markup: Optional[Any] = None,
        extra: Optional[ParameterSet] = None,
    ) -> Optional[Message]:
        """Send a photo by upload (:class:`InputFile`), ``file_id`` or URL."""
        return self.request_sync(
            "sendPhoto",
            extra,
            {
                "chat_id": chat_id,
                "photo": photo,
                "caption": caption,
                "disable_notification": disable_notification,
                "reply_to_message_id": reply_to_message_id,
                "reply_markup": reply_markup,
            },
            result_type=Message,
        )

    def send_photo_async(
        self,
        chat_id: Union[int, str],
        photo: Union[InputFile, str],
        caption: Optional[str] = None,
        extra: Optional[ParameterSet] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        completion: Optional[Completion] = None,
    ) -> Future:
        """Asynchronous version of :meth:`send_photo`."""
        return self.request_async(
            "sendPhoto",
            extra,
            {"chat_id": chat_id, "photo": photo, "caption": caption},
            result_type=Message,
            loop=loop,
            completion=completion,
        )

    def send_document(
        self,
        chat_id: Union[int, str],
        document: Union[InputFile, str],
        caption: Optional[str] = None,
        disable_notification: Optional[bool] = None,
        reply_to_message_id: Optional[int] = None,
        extra: Optional[ParameterSet] = None,
    ) -> Optional[Message]:
        """Send a general file by upload, ``file_id`` or URL."""
        return self.request_sync(
            "sendDocument",
            extra,
            {
                "chat_id": chat_id,
                "document": document,
                "caption": caption,
                "disable_notification": disable_notification,
                "reply_to_message_id": reply_to_message_id,
            },
            result_type=Message,
        )
