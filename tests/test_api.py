import pytest
from httpx import AsyncClient

from helpers import (
    TOP3_QUERY,
    AlwaysToolClient,
    FailingModelClient,
    ScriptedModelClient,
    answer_from_rows,
    query_use,
    text_response,
    tool_response,
)


@pytest.mark.asyncio
async def test_root(api_client: AsyncClient):
    response = await api_client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


@pytest.mark.asyncio
async def test_chat_returns_final_content(api_client: AsyncClient, make_orchestrator, use_orchestrator):
    """POST input, get the model's final blocks back"""
    use_orchestrator(make_orchestrator(
        ScriptedModelClient(tool_response(query_use(TOP3_QUERY)), answer_from_rows)
    ))

    response = await api_client.post("/api/chat", json={"input": "List the top 3 teams by wins"})

    assert response.status_code == 200
    content = response.json()["content"]
    assert content[0]["type"] == "text"
    for name in ("Collingwood", "Carlton", "Essendon"):
        assert name in content[0]["text"]


@pytest.mark.asyncio
async def test_other_methods_not_allowed(api_client: AsyncClient, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(ScriptedModelClient()))

    for method in ("GET", "PUT", "DELETE"):
        response = await api_client.request(method, "/api/chat")
        assert response.status_code == 405
        assert "error" in response.json()


@pytest.mark.asyncio
async def test_inference_failure_is_502(api_client: AsyncClient, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(FailingModelClient()))

    response = await api_client.post("/api/chat", json={"input": "hello"})

    assert response.status_code == 502
    assert "rate limited" in response.json()["error"]


@pytest.mark.asyncio
async def test_tool_limit_is_error(api_client: AsyncClient, make_orchestrator, use_orchestrator):
    use_orchestrator(make_orchestrator(AlwaysToolClient(), max_tool_rounds=2))

    response = await api_client.post("/api/chat", json={"input": "keep going"})

    assert response.status_code == 500
    assert "Tool-use limit exceeded" in response.json()["error"]


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"input": 7}, {"question": "hi"}, {"input": "   "}])
async def test_bad_request_body(api_client: AsyncClient, make_orchestrator, use_orchestrator, body):
    use_orchestrator(make_orchestrator(ScriptedModelClient(text_response("unused"))))

    response = await api_client.post("/api/chat", json=body)

    assert response.status_code == 400
    assert "error" in response.json()


class _BrokenOrchestrator:

    async def run(self, user_input):
        raise ValueError("bad rows from driver")


@pytest.mark.asyncio
async def test_internal_value_error_is_not_a_bad_request(api_client: AsyncClient, use_orchestrator):
    """Only a blank input is the caller's fault"""
    use_orchestrator(_BrokenOrchestrator())

    with pytest.raises(ValueError, match="bad rows from driver"):
        await api_client.post("/api/chat", json={"input": "hello"})
