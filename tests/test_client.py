import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from rize_mcp.client import RizeClient, RizeAPIError


def _mock_response(status_code=200, payload=None, text="{}"):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


def test_client_requires_api_key():
    """Client raises ValueError if the API key is missing."""
    with pytest.raises(ValueError, match="RIZE_API_KEY"):
        RizeClient(api_key="")


def test_client_sends_bearer_header():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        RizeClient(api_key="secret")
        headers = MockClient.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer secret"
        assert headers["User-Agent"].startswith("RizeMCPServer/")


@pytest.mark.asyncio
async def test_get_current_user_returns_node():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        instance.post = AsyncMock(return_value=_mock_response(
            payload={"data": {"currentUser": {"email": "me@example.com", "name": "Me"}}}
        ))
        client = RizeClient(api_key="secret")
        user = await client.get_current_user()

        assert user == {"email": "me@example.com", "name": "Me"}
        body = instance.post.call_args.kwargs["json"]
        assert "currentUser" in body["query"]


@pytest.mark.asyncio
async def test_http_error_raises_api_error():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        instance.post = AsyncMock(return_value=_mock_response(status_code=401, text="Unauthorized"))
        client = RizeClient(api_key="wrong")
        with pytest.raises(RizeAPIError) as excinfo:
            await client.get_current_user()
        assert excinfo.value.status_code == 401
        assert excinfo.value.detail == "Unauthorized"


@pytest.mark.asyncio
async def test_graphql_errors_raise_api_error():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        instance.post = AsyncMock(return_value=_mock_response(
            payload={"errors": [{"message": "Field 'nope' doesn't exist"}], "data": None}
        ))
        client = RizeClient(api_key="secret")
        with pytest.raises(RizeAPIError, match="doesn't exist"):
            await client.get_summaries("2025-09-01", "2025-09-02")


@pytest.mark.asyncio
async def test_get_summaries_tolerates_missing_fields():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        instance.post = AsyncMock(return_value=_mock_response(payload={"data": {"summaries": None}}))
        client = RizeClient(api_key="secret")
        assert await client.get_summaries("2025-09-01", "2025-09-02") == []

        variables = instance.post.call_args.kwargs["json"]["variables"]
        assert variables == {"startDate": "2025-09-01", "endDate": "2025-09-02", "bucketSize": "day"}


@pytest.mark.asyncio
async def test_create_project_wraps_args():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        instance.post = AsyncMock(return_value=_mock_response(
            payload={"data": {"createProject": {"project": {"id": "p9", "name": "Thesis"}}}}
        ))
        client = RizeClient(api_key="secret")
        project = await client.create_project("Thesis")

        assert project == {"id": "p9", "name": "Thesis"}
        variables = instance.post.call_args.kwargs["json"]["variables"]
        assert variables == {"input": {"args": {"name": "Thesis"}}}


@pytest.mark.asyncio
async def test_close_closes_http_client():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        instance.aclose = AsyncMock()
        client = RizeClient(api_key="secret")
        await client.close()
        instance.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_null_current_user_returns_empty_dict():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        instance.post = AsyncMock(return_value=_mock_response(payload={"data": {"currentUser": None}}))
        client = RizeClient(api_key="secret")
        assert await client.get_current_user() == {}


@pytest.mark.asyncio
async def test_non_json_body_raises_api_error():
    with patch("rize_mcp.client.httpx.AsyncClient") as MockClient:
        instance = MockClient.return_value
        response = _mock_response(text="<html>Bad gateway</html>")
        response.json.side_effect = ValueError("Expecting value")
        instance.post = AsyncMock(return_value=response)
        client = RizeClient(api_key="secret")
        with pytest.raises(RizeAPIError, match="Invalid JSON response") as excinfo:
            await client.get_current_user()
        assert excinfo.value.status_code == 200
