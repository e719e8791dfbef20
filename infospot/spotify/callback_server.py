"""
One-shot loopback receiver for the OAuth redirect.

A tiny Flask app served by werkzeug on ``127.0.0.1:<port>`` captures the
``code`` parameter of exactly one redirected browser request and hands it
to the waiting caller through a one-shot queue. The socket is closed on
every exit path: success, failure, timeout and cancellation.
"""

import logging
import queue
import socket
import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from flask import Flask, request
from markupsafe import escape
from werkzeug.serving import make_server

from .credentials import DEFAULT_CALLBACK_PORT
from .exceptions import (
    AuthorizationCancelledError,
    AuthorizationDeniedError,
    CallbackTimeoutError,
    RedirectParseError,
    SpotifyAuthError,
)

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"
DEFAULT_CALLBACK_TIMEOUT = 300  # seconds

SUCCESS_PAGE = (
    "<html><body><h1>Authentication successful!</h1>"
    "<p>You can close this window and return to the app.</p>"
    "<script>window.close();</script></body></html>"
)

FAILURE_PAGE = (
    "<html><body><h1>Authentication failed</h1>"
    "<p>{message}</p>"
    "<p>You can close this window and try again from the app.</p>"
    "</body></html>"
)


@dataclass(frozen=True)
class CallbackResult:
    """Authorization code (and echoed state) captured from the redirect."""

    code: str
    state: Optional[str] = None


CallbackOutcome = Union[CallbackResult, SpotifyAuthError]


def parse_redirect_args(args: Mapping[str, Any]) -> CallbackResult:
    """
    Interpret the query parameters of the redirect request.

    Raises:
        AuthorizationDeniedError: If Spotify sent an ``error`` parameter.
        RedirectParseError: If there is no ``code`` parameter.
    """
    error = args.get("error")
    if error:
        description = args.get("error_description")
        message = f"Spotify denied authorization: {error}"
        if description:
            message += f" ({description})"
        raise AuthorizationDeniedError(
            message, error=error, description=description
        )

    code = args.get("code")
    if not code:
        raise RedirectParseError(
            "Redirect did not include an authorization code"
        )
    return CallbackResult(code=code, state=args.get("state"))


def create_callback_app(deliver: Callable[[CallbackOutcome], None]) -> Flask:
    """
    Build the Flask app that answers the redirect.

    Any GET path is accepted; the outcome (a CallbackResult or the
    auth error describing why there is none) is passed to ``deliver``.
    """
    app = Flask(__name__)

    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def callback(path):
        logger.debug(f"Callback received on /{path}")
        try:
            result = parse_redirect_args(request.args)
        except SpotifyAuthError as e:
            logger.error(f"OAuth redirect rejected: {e}")
            deliver(e)
            return (
                FAILURE_PAGE.format(message=escape(str(e))),
                400,
                {"Content-Type": "text/html; charset=utf-8"},
            )

        deliver(result)
        return SUCCESS_PAGE, 200, {"Content-Type": "text/html; charset=utf-8"}

    return app


class LoopbackCallbackServer:
    """
    Single-use local HTTP receiver for the OAuth redirect.

    Binding happens in ``start()`` so the listener is ready before the
    browser is launched. ``await_one_redirect()`` serves on a dedicated
    thread and blocks the caller until one request has been answered,
    the timeout elapses, or ``cancel_event`` is set. The server cannot
    be reused afterwards.

    Example:
        with LoopbackCallbackServer(port=8888) as server:
            webbrowser.open(auth_url)
            result = server.await_one_redirect(timeout=300)
    """

    # Accept timeout between cancellation checks
    POLL_INTERVAL = 0.25

    def __init__(self, port: int = DEFAULT_CALLBACK_PORT, host: str = LOOPBACK_HOST):
        self._host = host
        self._requested_port = port
        self._server = None
        self._thread: Optional[threading.Thread] = None
        self._results: "queue.Queue[CallbackOutcome]" = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._used = False

    @property
    def port(self) -> int:
        """Bound port (differs from the requested one when that was 0)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self._requested_port

    @property
    def is_listening(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        """
        Bind the listening socket.

        Raises:
            SpotifyAuthError: If the port cannot be bound.
        """
        if self._server is not None:
            return
        if self._used:
            raise SpotifyAuthError("Callback server has already been used")

        try:
            sock = socket.create_server((self._host, self._requested_port))
        except OSError as e:
            logger.error(
                f"Could not bind {self._host}:{self._requested_port}: {e}"
            )
            raise SpotifyAuthError(
                f"Could not listen on {self._host}:{self._requested_port} "
                f"for the OAuth redirect: {e}"
            )

        try:
            app = create_callback_app(self._deliver)
            # werkzeug duplicates the descriptor, so ours is closed below
            self._server = make_server(
                self._host, self._requested_port, app, fd=sock.fileno()
            )
        finally:
            sock.close()

        self._server.timeout = self.POLL_INTERVAL
        logger.info(f"Callback server listening on http://{self._host}:{self.port}")

    def await_one_redirect(
        self,
        timeout: float = DEFAULT_CALLBACK_TIMEOUT,
        cancel_event: Optional[threading.Event] = None,
    ) -> CallbackResult:
        """
        Wait for the browser redirect and return its authorization code.

        Args:
            timeout: Seconds to wait before giving up.
            cancel_event: Optional event the caller sets to abort the wait.

        Returns:
            CallbackResult with the code and echoed state.

        Raises:
            CallbackTimeoutError: If nothing arrived within ``timeout``.
            AuthorizationCancelledError: If ``cancel_event`` was set.
            AuthorizationDeniedError: If the redirect carried ``error``.
            RedirectParseError: If the redirect carried no ``code``.
        """
        self.start()
        self._used = True
        cancel_event = cancel_event or threading.Event()

        self._thread = threading.Thread(
            target=self._serve,
            args=(cancel_event,),
            name="infospot-oauth-callback",
            daemon=True,
        )
        self._thread.start()

        try:
            try:
                outcome = self._results.get(timeout=timeout)
            except queue.Empty:
                logger.error(f"No OAuth redirect received within {timeout}s")
                raise CallbackTimeoutError(
                    f"Timed out after {timeout} seconds waiting for the "
                    "Spotify login to complete"
                )
        finally:
            self.close()

        if isinstance(outcome, SpotifyAuthError):
            raise outcome
        logger.debug("Authorization code captured from redirect")
        return outcome

    def close(self) -> None:
        """Stop serving and release the socket. Safe to call repeatedly."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.POLL_INTERVAL * 8)
        if self._server is not None:
            self._server.server_close()
            self._server = None
            logger.debug("Callback server closed")

    def _serve(self, cancel_event: threading.Event) -> None:
        server = self._server
        while not self._stop.is_set():
            if cancel_event.is_set():
                logger.info("OAuth callback wait cancelled")
                self._deliver(AuthorizationCancelledError("Login was cancelled"))
                return
            server.handle_request()
            if not self._results.empty():
                return

    def _deliver(self, outcome: CallbackOutcome) -> None:
        try:
            self._results.put_nowait(outcome)
        except queue.Full:
            logger.warning("Ignoring extra request to the callback server")

    def __enter__(self) -> "LoopbackCallbackServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def run_loopback_listener(
    port: int = DEFAULT_CALLBACK_PORT,
    timeout: float = DEFAULT_CALLBACK_TIMEOUT,
    cancel_event: Optional[threading.Event] = None,
) -> CallbackResult:
    """
    Listen on ``127.0.0.1:<port>`` for one redirect and return its code.

    The socket is bound, serves a single request and is closed again
    whatever the outcome. Raises the same errors as
    ``LoopbackCallbackServer.await_one_redirect``.
    """
    server = LoopbackCallbackServer(port)
    return server.await_one_redirect(timeout=timeout, cancel_event=cancel_event)
