"""
Tests for the loopback OAuth redirect receiver.

Redirect parsing is tested directly and through the Flask test client;
the server itself is exercised over a real socket on an ephemeral port.
"""

import socket
import threading

import pytest
import requests

from infospot.spotify.callback_server import (
    CallbackResult,
    LoopbackCallbackServer,
    create_callback_app,
    parse_redirect_args,
    run_loopback_listener,
)
from infospot.spotify.exceptions import (
    AuthorizationCancelledError,
    AuthorizationDeniedError,
    CallbackTimeoutError,
    RedirectParseError,
    SpotifyAuthError,
)


def _send_later(url, delay=0.1):
    """Issue a GET from another thread once the waiter is blocked."""
    responses = []

    def fire():
        responses.append(requests.get(url, timeout=5))

    timer = threading.Timer(delay, fire)
    timer.start()
    return timer, responses


@pytest.fixture
def server():
    """A started server on an ephemeral port, always closed afterwards."""
    srv = LoopbackCallbackServer(port=0)
    srv.start()
    yield srv
    srv.close()


# =============================================================================
# Redirect Parsing
# =============================================================================

class TestParseRedirectArgs:
    """Tests for parse_redirect_args."""

    def test_code_and_state(self):
        result = parse_redirect_args({'code': 'abc', 'state': 'xyz'})
        assert result == CallbackResult(code='abc', state='xyz')

    def test_missing_code(self):
        with pytest.raises(RedirectParseError):
            parse_redirect_args({'state': 'xyz'})

    def test_empty_code(self):
        with pytest.raises(RedirectParseError):
            parse_redirect_args({'code': ''})

    def test_error_parameter(self):
        """An error parameter wins over a code and is reported as denial."""
        with pytest.raises(AuthorizationDeniedError) as exc_info:
            parse_redirect_args({
                'error': 'access_denied',
                'error_description': 'User said no',
                'code': 'abc',
            })
        assert exc_info.value.error == 'access_denied'
        assert exc_info.value.description == 'User said no'


class TestCallbackApp:
    """Tests for the Flask app answering the redirect."""

    def test_success_page(self):
        delivered = []
        client = create_callback_app(delivered.append).test_client()

        response = client.get('/callback?code=abc&state=s1')

        assert response.status_code == 200
        assert response.mimetype == 'text/html'
        assert b'Authentication successful' in response.data
        assert delivered == [CallbackResult(code='abc', state='s1')]

    def test_any_path_is_accepted(self):
        delivered = []
        client = create_callback_app(delivered.append).test_client()

        assert client.get('/?code=root').status_code == 200
        assert client.get('/some/other/path?code=deep').status_code == 200
        assert [r.code for r in delivered] == ['root', 'deep']

    def test_failure_page_escapes_message(self):
        delivered = []
        client = create_callback_app(delivered.append).test_client()

        response = client.get('/callback?error=<script>')

        assert response.status_code == 400
        assert b'<script>' not in response.data
        assert b'&lt;script&gt;' in response.data
        assert isinstance(delivered[0], AuthorizationDeniedError)

    def test_no_code_delivers_parse_error(self):
        delivered = []
        client = create_callback_app(delivered.append).test_client()

        response = client.get('/callback')

        assert response.status_code == 400
        assert isinstance(delivered[0], RedirectParseError)


# =============================================================================
# Real Socket
# =============================================================================

class TestLoopbackCallbackServer:
    """Tests for LoopbackCallbackServer over a real socket."""

    def test_captures_code(self, server):
        timer, responses = _send_later(
            f'http://127.0.0.1:{server.port}/callback?code=abc&state=xyz'
        )

        result = server.await_one_redirect(timeout=5)
        timer.join()

        assert result.code == 'abc'
        assert result.state == 'xyz'
        assert responses[0].status_code == 200
        assert 'Authentication successful' in responses[0].text

    def test_socket_closed_after_success(self, server):
        port = server.port
        timer, _ = _send_later(f'http://127.0.0.1:{port}/callback?code=abc')

        server.await_one_redirect(timeout=5)
        timer.join()

        assert server.is_listening is False
        with pytest.raises(requests.ConnectionError):
            requests.get(f'http://127.0.0.1:{port}/callback?code=again', timeout=2)

    def test_redirect_without_code(self, server):
        timer, responses = _send_later(f'http://127.0.0.1:{server.port}/callback')

        with pytest.raises(RedirectParseError):
            server.await_one_redirect(timeout=5)
        timer.join()

        assert responses[0].status_code == 400

    def test_denied(self, server):
        timer, _ = _send_later(
            f'http://127.0.0.1:{server.port}/callback?error=access_denied'
        )

        with pytest.raises(AuthorizationDeniedError):
            server.await_one_redirect(timeout=5)
        timer.join()

    def test_timeout_closes_socket(self, server):
        with pytest.raises(CallbackTimeoutError):
            server.await_one_redirect(timeout=0.5)

        assert server.is_listening is False

    def test_cancel(self, server):
        cancel = threading.Event()
        threading.Timer(0.1, cancel.set).start()

        with pytest.raises(AuthorizationCancelledError):
            server.await_one_redirect(timeout=5, cancel_event=cancel)

        assert server.is_listening is False

    def test_single_use(self, server):
        with pytest.raises(CallbackTimeoutError):
            server.await_one_redirect(timeout=0.3)

        with pytest.raises(SpotifyAuthError):
            server.start()

    def test_port_in_use(self):
        """Binding an occupied port should raise, not exit the process."""
        blocker = socket.create_server(('127.0.0.1', 0))
        try:
            port = blocker.getsockname()[1]
            srv = LoopbackCallbackServer(port=port)
            with pytest.raises(SpotifyAuthError):
                srv.start()
            assert srv.is_listening is False
        finally:
            blocker.close()

    def test_context_manager_closes(self):
        with LoopbackCallbackServer(port=0) as srv:
            assert srv.is_listening is True
            assert srv.port != 0
        assert srv.is_listening is False


class TestRunLoopbackListener:
    """Tests for the one-call listener."""

    def _free_port(self):
        with socket.create_server(('127.0.0.1', 0)) as sock:
            return sock.getsockname()[1]

    def test_returns_code(self):
        port = self._free_port()
        timer, responses = _send_later(
            f'http://127.0.0.1:{port}/callback?code=abc123&state=s1', delay=0.3
        )

        result = run_loopback_listener(port, timeout=5)
        timer.join()

        assert result.code == 'abc123'
        assert responses[0].status_code == 200

    def test_port_is_free_again_after_timeout(self):
        port = self._free_port()

        with pytest.raises(CallbackTimeoutError):
            run_loopback_listener(port, timeout=0.3)

        socket.create_server(('127.0.0.1', port)).close()
