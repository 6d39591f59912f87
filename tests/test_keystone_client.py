"""Tests for the Keystone identity client.

Tests cover:
- URL normalization
- Request bodies per auth method (password, password + TOTP, application credential)
- Request URLs, including the catalog asymmetry of the scoped-by-id request
- Response handling (201 + header, missing header, rejections, transport errors)

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from os_creds.credentials.record import Credentials
from os_creds.exceptions import AuthenticationFailure, ProtocolError, TransportError
from os_creds.keystone.client import IdentityClient, build_url, normalize_auth_url

AUTH_URL = "https://keystone.example.com:5000/v3"
BASE = "https://keystone.example.com:5000"


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def password_record() -> Credentials:
    """Password credential in the Default domain."""
    return Credentials(
        auth_url=AUTH_URL,
        username="alice",
        password="s3cret",
        user_domain_name="Default",
    )


@pytest.fixture
def app_cred_record() -> Credentials:
    """Application credential that also carries (ignored) password fields."""
    return Credentials(
        auth_url=AUTH_URL,
        username="alice",
        password="s3cret",
        user_domain_name="Default",
        project_name="ignored",
        application_credential_id="ac-123",
        application_credential_secret="ac-secret",
    )


@pytest.fixture
def mock_client() -> MagicMock:
    return MagicMock(spec=httpx.Client)


def created(token: str = "tok123", body: dict | None = None) -> httpx.Response:
    """201 response with a subject token header and an optional JSON body."""
    headers = {"X-Subject-Token": token} if token else {}
    if body is None:
        return httpx.Response(201, headers=headers)
    return httpx.Response(201, headers=headers, json=body)


def sent_payload(mock_client: MagicMock) -> dict:
    return mock_client.post.call_args.kwargs["json"]


def sent_url(mock_client: MagicMock) -> str:
    return mock_client.post.call_args.args[0]


# ============================================================================
# Tests: URL normalization
# ============================================================================


class TestUrlNormalization:
    """Tests for normalize_auth_url and build_url."""

    @pytest.mark.parametrize(
        "auth_url",
        [
            "https://keystone.example.com:5000",
            "https://keystone.example.com:5000/",
            "https://keystone.example.com:5000/v3",
            "https://keystone.example.com:5000/v3/",
        ],
        ids=["bare", "slash", "v3", "v3_slash"],
    )
    def test_all_variants_yield_same_url(self, auth_url: str):
        """Given any trailing "/", "/v3" or "/v3/", the request URL is identical."""
        # Act
        url = build_url(auth_url, "/v3/auth/tokens")

        # Assert
        assert url == f"{BASE}/v3/auth/tokens"

    def test_normalization_is_idempotent(self):
        """Normalizing twice gives the same result as once."""
        # Act
        once = normalize_auth_url(AUTH_URL + "/")
        twice = normalize_auth_url(once)

        # Assert
        assert once == twice == BASE

    def test_other_path_segments_are_kept(self):
        """Only a trailing /v3 is removed, not other path components."""
        assert normalize_auth_url("https://cloud.example.com/identity/v3") == "https://cloud.example.com/identity"


# ============================================================================
# Tests: Request bodies
# ============================================================================


class TestRequestBodies:
    """Tests for the JSON bodies sent per auth method."""

    def test_unscoped_password_body(self, mock_client: MagicMock, password_record: Credentials):
        """Unscoped request sends the password method and no scope."""
        # Arrange
        mock_client.post.return_value = created()
        client = IdentityClient(mock_client)

        # Act
        client.request_unscoped_token(password_record)

        # Assert
        assert sent_payload(mock_client) == {
            "auth": {
                "identity": {
                    "methods": ["password"],
                    "password": {
                        "user": {
                            "name": "alice",
                            "domain": {"name": "Default"},
                            "password": "s3cret",
                        }
                    },
                }
            }
        }

    def test_totp_code_adds_totp_method(self, mock_client: MagicMock, password_record: Credentials):
        """Given a TOTP code, methods become password+totp with a passcode block."""
        # Arrange
        mock_client.post.return_value = created()
        client = IdentityClient(mock_client)
        record = password_record.model_copy(update={"totp_code": "123456"})

        # Act
        client.request_unscoped_token(record)

        # Assert
        identity = sent_payload(mock_client)["auth"]["identity"]
        assert identity["methods"] == ["password", "totp"]
        assert identity["totp"] == {
            "user": {"name": "alice", "domain": {"name": "Default"}, "passcode": "123456"}
        }

    def test_domain_id_preferred_over_name(self, mock_client: MagicMock, password_record: Credentials):
        """Given both domain id and name, only the id is sent."""
        # Arrange
        mock_client.post.return_value = created()
        client = IdentityClient(mock_client)
        record = password_record.model_copy(update={"user_domain_id": "dom-1"})

        # Act
        client.request_unscoped_token(record)

        # Assert
        user = sent_payload(mock_client)["auth"]["identity"]["password"]["user"]
        assert user["domain"] == {"id": "dom-1"}

    def test_scoped_by_id_body(self, mock_client: MagicMock, password_record: Credentials):
        """Scoped-by-id request adds scope.project.id."""
        # Arrange
        mock_client.post.return_value = created()
        client = IdentityClient(mock_client)

        # Act
        client.request_scoped_token(password_record, "p1")

        # Assert
        assert sent_payload(mock_client)["auth"]["scope"] == {"project": {"id": "p1"}}

    def test_scoped_by_name_uses_identity_domain(self, mock_client: MagicMock, password_record: Credentials):
        """Scoped-by-name request names the project in the user's domain."""
        # Arrange
        mock_client.post.return_value = created(body={"token": {"project": {"id": "abc", "name": "dev"}}})
        client = IdentityClient(mock_client)
        record = password_record.model_copy(update={"user_domain_id": "dom-1"})

        # Act
        client.request_scoped_token_by_name(record, "dev")

        # Assert
        assert sent_payload(mock_client)["auth"]["scope"] == {
            "project": {"name": "dev", "domain": {"id": "dom-1"}}
        }

    def test_application_credential_body(self, mock_client: MagicMock, app_cred_record: Credentials):
        """Application credential request carries no user, domain or scope."""
        # Arrange
        mock_client.post.return_value = created(body={"token": {"project": {"id": "p9", "name": "bound"}}})
        client = IdentityClient(mock_client)

        # Act
        client.request_application_credential_token(app_cred_record)

        # Assert
        assert sent_payload(mock_client) == {
            "auth": {
                "identity": {
                    "methods": ["application_credential"],
                    "application_credential": {"id": "ac-123", "secret": "ac-secret"},
                }
            }
        }


# ============================================================================
# Tests: Request URLs
# ============================================================================


class TestRequestUrls:
    """Tests for which endpoint each request variant posts to."""

    def test_unscoped_suppresses_catalog(self, mock_client: MagicMock, password_record: Credentials):
        mock_client.post.return_value = created()

        IdentityClient(mock_client).request_unscoped_token(password_record)

        assert sent_url(mock_client) == f"{BASE}/v3/auth/tokens?nocatalog"

    def test_scoped_by_id_keeps_catalog(self, mock_client: MagicMock, password_record: Credentials):
        """Known quirk: the by-id request does not add ?nocatalog, unlike the others."""
        mock_client.post.return_value = created()

        IdentityClient(mock_client).request_scoped_token(password_record, "p1")

        assert sent_url(mock_client) == f"{BASE}/v3/auth/tokens"

    def test_scoped_by_name_suppresses_catalog(self, mock_client: MagicMock, password_record: Credentials):
        mock_client.post.return_value = created(body={"token": {"project": {"id": "abc", "name": "dev"}}})

        IdentityClient(mock_client).request_scoped_token_by_name(password_record, "dev")

        assert sent_url(mock_client) == f"{BASE}/v3/auth/tokens?nocatalog"

    def test_application_credential_keeps_catalog(self, mock_client: MagicMock, app_cred_record: Credentials):
        mock_client.post.return_value = created(body={"token": {"project": {"id": "p9", "name": "bound"}}})

        IdentityClient(mock_client).request_application_credential_token(app_cred_record)

        assert sent_url(mock_client) == f"{BASE}/v3/auth/tokens"


# ============================================================================
# Tests: Response handling
# ============================================================================


class TestResponseHandling:
    """Tests for turning responses into tokens or errors."""

    def test_token_comes_from_header(self, mock_client: MagicMock, password_record: Credentials):
        """Given 201 with X-Subject-Token, that header is the token."""
        # Arrange
        mock_client.post.return_value = created("tok123", body={"token": {"id": "not-this"}})

        # Act
        result = IdentityClient(mock_client).request_unscoped_token(password_record)

        # Assert
        assert result.subject_token == "tok123"

    def test_scoped_by_name_returns_granted_project(self, mock_client: MagicMock, password_record: Credentials):
        """Given a body with the resolved project, it is returned as the granted project."""
        # Arrange
        mock_client.post.return_value = created("tok123", body={"token": {"project": {"id": "abc", "name": "dev"}}})

        # Act
        result = IdentityClient(mock_client).request_scoped_token_by_name(password_record, "DEV")

        # Assert
        assert result.project is not None
        assert (result.project.id, result.project.name) == ("abc", "dev")

    def test_full_body_is_parsed(self, mock_client: MagicMock, app_cred_record: Credentials):
        """Expiry, user, roles and catalog are exposed from the body."""
        # Arrange
        body = {
            "token": {
                "expires_at": "2030-01-01T00:00:00.000000Z",
                "project": {"id": "p9", "name": "bound"},
                "user": {"id": "u1", "name": "alice", "domain": {"id": "default", "name": "Default"}},
                "roles": [{"id": "r1", "name": "member"}],
                "catalog": [
                    {
                        "type": "compute",
                        "id": "svc1",
                        "name": "nova",
                        "endpoints": [
                            {"id": "e1", "interface": "public", "region": "RegionOne", "url": "https://nova"}
                        ],
                    }
                ],
            }
        }
        mock_client.post.return_value = created(body=body)

        # Act
        result = IdentityClient(mock_client).request_application_credential_token(app_cred_record)

        # Assert
        assert result.expires_at == "2030-01-01T00:00:00.000000Z"
        assert result.body is not None
        assert result.body.token.user is not None
        assert result.body.token.user.domain.name == "Default"
        assert [role.name for role in result.body.token.roles] == ["member"]
        assert result.body.token.catalog[0].endpoints[0].region == "RegionOne"

    def test_missing_header_is_protocol_error(self, mock_client: MagicMock, password_record: Credentials):
        """Given 201 without X-Subject-Token, raises ProtocolError (not an auth failure)."""
        # Arrange
        mock_client.post.return_value = created(token="")

        # Act & Assert
        with pytest.raises(ProtocolError, match="X-Subject-Token"):
            IdentityClient(mock_client).request_unscoped_token(password_record)

    @pytest.mark.parametrize("status_code", [200, 400, 401, 403, 500])
    def test_non_201_is_authentication_failure(
        self, mock_client: MagicMock, password_record: Credentials, status_code: int
    ):
        """Given any status other than 201, raises AuthenticationFailure with status and body."""
        # Arrange
        mock_client.post.return_value = httpx.Response(
            status_code, headers={"X-Subject-Token": "tok"}, text='{"error": "nope"}'
        )

        # Act
        with pytest.raises(AuthenticationFailure) as exc_info:
            IdentityClient(mock_client).request_scoped_token(password_record, "p1")

        # Assert
        assert exc_info.value.status_code == status_code
        assert exc_info.value.body == '{"error": "nope"}'
        assert str(status_code) in str(exc_info.value)

    def test_connection_failure_is_transport_error(self, mock_client: MagicMock, password_record: Credentials):
        """Given a connection error, raises TransportError and does not retry."""
        # Arrange
        mock_client.post.side_effect = httpx.ConnectError("Connection refused")

        # Act & Assert
        with pytest.raises(TransportError, match="Connection refused"):
            IdentityClient(mock_client).request_unscoped_token(password_record)
        assert mock_client.post.call_count == 1

    def test_timeout_is_transport_error(self, mock_client: MagicMock, password_record: Credentials):
        mock_client.post.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(TransportError):
            IdentityClient(mock_client).request_scoped_token(password_record, "p1")

    @pytest.mark.parametrize(
        "method_name",
        ["request_scoped_token_by_name", "request_application_credential_token"],
    )
    def test_malformed_body_is_protocol_error_when_body_required(
        self, mock_client: MagicMock, app_cred_record: Credentials, method_name: str
    ):
        """Requests that need the body raise ProtocolError on invalid JSON."""
        # Arrange
        mock_client.post.return_value = httpx.Response(201, headers={"X-Subject-Token": "tok"}, text="not json")
        client = IdentityClient(mock_client)
        args = (app_cred_record, "dev") if method_name == "request_scoped_token_by_name" else (app_cred_record,)

        # Act & Assert
        with pytest.raises(ProtocolError, match="parse"):
            getattr(client, method_name)(*args)

    def test_malformed_body_tolerated_for_unscoped(self, mock_client: MagicMock, password_record: Credentials):
        """The unscoped request only needs the header; a bad body is not an error."""
        # Arrange
        mock_client.post.return_value = httpx.Response(201, headers={"X-Subject-Token": "tok"}, text="not json")

        # Act
        result = IdentityClient(mock_client).request_unscoped_token(password_record)

        # Assert
        assert result.subject_token == "tok"
        assert result.body is None
        assert result.expires_at is None


# ============================================================================
# Tests: Client lifecycle
# ============================================================================


class TestClientLifecycle:
    """Tests for HTTP client ownership."""

    def test_injected_client_is_not_closed(self, mock_client: MagicMock):
        """Given an injected client, close() leaves it open for its owner."""
        with IdentityClient(mock_client):
            pass

        mock_client.close.assert_not_called()

    def test_owned_client_is_closed(self):
        """Given no client, the one created is closed on exit."""
        with IdentityClient(timeout=5) as client:
            http_client = client.http_client

        assert http_client.is_closed
