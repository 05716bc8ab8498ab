try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.clients.meli_auth import OAuthStateEncoder
from app.core.errors import (
    MarketplaceHTTPError,
    OAuthTokenExchangeError,
    OAuthTokenNotFoundError,
)
from app.main import app
from app.models.oauth import TokenState
from app.schemas.orders import MarketplaceUser

pytestmark = pytest.mark.anyio("asyncio")


class DummyOAuthClient:
    def __init__(self) -> None:
        self.states: list[str] = []

    def build_authorization_url(self, state: str) -> str:
        self.states.append(state)
        return f"https://auth.example.com/authorization?response_type=code&state={state}"


class DummyTokenService:
    def __init__(self) -> None:
        self.codes: list[str] = []
        self.fail = False

    async def exchange_authorization_code(self, code: str) -> TokenState:
        self.codes.append(code)
        if self.fail:
            raise OAuthTokenExchangeError(status_code=400, reason="Bad Request", body="invalid_grant")
        return TokenState(access_token="a", refresh_token="r", user_id=123456, expires_at=10)


class DummyMarketplace:
    def __init__(self) -> None:
        self.error: Exception | None = None

    async def get_me(self) -> MarketplaceUser:
        if self.error is not None:
            raise self.error
        return MarketplaceUser(id=1001, nickname="LOJA")


class RecordingPipeline:
    def __init__(self) -> None:
        self.payloads: list[object] = []

    async def dispatch(self, payload: object) -> None:
        self.payloads.append(payload)


@pytest.fixture()
def overrides():
    from app import dependencies

    state_encoder = OAuthStateEncoder("route-secret", ttl_seconds=900)
    oauth_client = DummyOAuthClient()
    token_service = DummyTokenService()
    marketplace = DummyMarketplace()
    pipeline = RecordingPipeline()

    app.dependency_overrides.update(
        {
            dependencies.get_oauth_state_encoder: lambda: state_encoder,
            dependencies.get_meli_oauth_client: lambda: oauth_client,
            dependencies.get_token_service: lambda: token_service,
            dependencies.get_marketplace_client: lambda: marketplace,
            dependencies.get_fulfillment_pipeline: lambda: pipeline,
        }
    )

    yield {
        "state_encoder": state_encoder,
        "oauth_client": oauth_client,
        "token_service": token_service,
        "marketplace": marketplace,
        "pipeline": pipeline,
    }

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    )


async def test_liveness(overrides):
    async with _client() as client:
        response = await client.get("/")

    assert response.status_code == 200
    assert response.text.startswith("OK")


async def test_auth_redirects_with_signed_state(overrides):
    async with _client() as client:
        response = await client.get("/meli/auth")

    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    assert location.netloc == "auth.example.com"
    state = parse_qs(location.query)["state"][0]
    assert overrides["state_encoder"].verify(state)["nonce"]


async def test_callback_exchanges_code(overrides):
    async with _client() as client:
        state = overrides["state_encoder"].issue()
        response = await client.get("/meli/callback", params={"code": "TG-code", "state": state})

    assert response.status_code == 200
    assert "123456" in response.text
    assert overrides["token_service"].codes == ["TG-code"]


async def test_callback_without_state_is_accepted(overrides):
    async with _client() as client:
        response = await client.get("/meli/callback", params={"code": "TG-code"})

    assert response.status_code == 200


async def test_callback_missing_code_is_bad_request(overrides):
    async with _client() as client:
        response = await client.get("/meli/callback")

    assert response.status_code == 400
    assert overrides["token_service"].codes == []


async def test_callback_with_forged_state_is_bad_request(overrides):
    forged = OAuthStateEncoder("someone-else").issue()
    async with _client() as client:
        response = await client.get("/meli/callback", params={"code": "TG-code", "state": forged})

    assert response.status_code == 400
    assert overrides["token_service"].codes == []


async def test_callback_exchange_failure_is_server_error(overrides):
    overrides["token_service"].fail = True
    async with _client() as client:
        response = await client.get("/meli/callback", params={"code": "bad"})

    assert response.status_code == 500
    assert "invalid_grant" in response.json()["detail"]


async def test_webhook_acknowledges_and_dispatches(overrides):
    body = {"topic": "orders_v2", "resource": "/orders/999", "user_id": 1001}
    async with _client() as client:
        response = await client.post("/meli/webhook", json=body)

    assert response.status_code == 200
    assert response.json() == {"status": "received"}
    assert overrides["pipeline"].payloads == [body]


async def test_webhook_with_invalid_json_is_still_acknowledged(overrides):
    async with _client() as client:
        response = await client.post(
            "/meli/webhook",
            content=b"not json",
            headers={"content-type": "application/json"},
        )

    assert response.status_code == 200
    assert overrides["pipeline"].payloads == [None]


async def test_me_returns_account_summary(overrides):
    async with _client() as client:
        response = await client.get("/meli/me")

    assert response.status_code == 200
    assert response.json() == {"id": 1001, "nickname": "LOJA"}


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (OAuthTokenNotFoundError("authorize first"), 401),
        (MarketplaceHTTPError(status_code=503, reason="Service Unavailable", body=""), 502),
    ],
)
async def test_me_maps_errors(overrides, error, status):
    overrides["marketplace"].error = error
    async with _client() as client:
        response = await client.get("/meli/me")

    assert response.status_code == status


def _point_attachment_map(monkeypatch, tmp_path, content: str):
    map_path = tmp_path / "pdf-map.json"
    map_path.write_text(content, encoding="utf-8")
    monkeypatch.setenv("ATTACHMENT_MAP_PATH", str(map_path))
    monkeypatch.setenv("ATTACHMENTS_DIR", str(tmp_path / "pdfs"))
    monkeypatch.setenv("MELI_TOKEN_FILE", str(tmp_path / "tokens.json"))
    return map_path


async def test_startup_rejects_malformed_attachment_map(
    monkeypatch, tmp_path, fresh_dependencies
):
    _point_attachment_map(monkeypatch, tmp_path, '["not", "a", "dict"]')

    with pytest.raises(ValueError):
        async with app.router.lifespan_context(app):
            pass


async def test_webhook_uses_pipeline_built_at_startup(
    monkeypatch, tmp_path, fresh_dependencies
):
    map_path = _point_attachment_map(monkeypatch, tmp_path, '{"MLB1": "a.pdf"}')

    async with app.router.lifespan_context(app):
        # Later edits to the map do not affect the running process.
        map_path.write_text("{broken", encoding="utf-8")
        async with _client() as client:
            response = await client.post(
                "/meli/webhook", json={"topic": "questions", "resource": "/questions/1"}
            )

    assert response.status_code == 200
    assert response.json() == {"status": "received"}
