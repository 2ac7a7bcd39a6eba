from __future__ import annotations

import io
import json
from urllib import request
from urllib.error import HTTPError, URLError

import pytest

from askshell.errors import ApiError, EmptyResponseError, NetworkError
from askshell.llm.client import DEFAULT_MODEL, LLMClient, is_comment, parse_response_lines


class FakeResponse:
    def __init__(self, payload: object) -> None:
        if isinstance(payload, bytes):
            self.body = payload
        else:
            self.body = json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self.body

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *_exc: object) -> None:
        return None


def _chat(content: str) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_parse_response_lines_drops_blanks_and_fences() -> None:
    content = "```bash\n  ls -la  \n\n```\n# explain\necho done ```\ngit status\n"

    assert parse_response_lines(content) == ["ls -la", "# explain", "git status"]


def test_is_comment() -> None:
    assert is_comment("# note") is True
    assert is_comment("echo '#'") is False


def test_messages_include_context_only_when_present() -> None:
    client = LLMClient(api_key=None)

    without_context = client.build_messages("list files")
    with_context = client.build_messages("list files", "Previous commands...")

    assert [message["role"] for message in without_context] == ["user"]
    assert [message["role"] for message in with_context] == ["system", "user"]
    assert with_context[0]["content"] == "Previous commands..."
    assert "**User request:** list files" in with_context[1]["content"]
    assert "{query}" not in with_context[1]["content"]


def test_payload_passes_model_through() -> None:
    assert LLMClient(api_key=None)._build_payload("x", None)["model"] == DEFAULT_MODEL
    assert LLMClient(api_key=None, model="custom/model")._build_payload("x", None)["model"] == (
        "custom/model"
    )


def test_complete_posts_json_with_bearer_token(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req: request.Request, timeout: float | None = None) -> FakeResponse:
        captured["url"] = req.full_url
        captured["auth"] = req.get_header("Authorization")
        captured["body"] = json.loads(req.data)
        captured["timeout"] = timeout
        return FakeResponse(_chat("  ls -la\n"))

    monkeypatch.setattr(request, "urlopen", fake_urlopen)
    client = LLMClient(api_key="secret", api_url="https://example.invalid/chat")

    content = client.complete("show files", "ctx")

    assert content == "ls -la"
    assert captured["url"] == "https://example.invalid/chat"
    assert captured["auth"] == "Bearer secret"
    assert captured["timeout"] is None
    body = captured["body"]
    assert isinstance(body, dict)
    assert body["messages"][0] == {"role": "system", "content": "ctx"}


def test_propose_returns_lines(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        request,
        "urlopen",
        lambda _req, timeout=None: FakeResponse(
            _chat("lsof -i :5234\nkill $(lsof -t -i :5234)")
        ),
    )

    lines = LLMClient(api_key="k").propose("kill port 5234")

    assert lines == ["lsof -i :5234", "kill $(lsof -t -i :5234)"]


def test_propose_rejects_blank_content(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(request, "urlopen", lambda _req, timeout=None: FakeResponse(_chat("\n\n")))

    with pytest.raises(EmptyResponseError, match="No response returned"):
        LLMClient(api_key="k").propose("anything")


@pytest.mark.parametrize("payload", [{"choices": []}, {"error": "x"}, [], {"choices": [{}]}])
def test_missing_content_raises_empty_response(
    monkeypatch: pytest.MonkeyPatch, payload: object
) -> None:
    monkeypatch.setattr(request, "urlopen", lambda _req, timeout=None: FakeResponse(payload))

    with pytest.raises(EmptyResponseError, match="No command returned"):
        LLMClient(api_key="k").complete("anything")


def test_http_error_becomes_api_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req: request.Request, timeout: float | None = None) -> FakeResponse:
        raise HTTPError(
            req.full_url, 401, "Unauthorized", hdrs=None, fp=io.BytesIO(b'{"error":"bad key"}')
        )

    monkeypatch.setattr(request, "urlopen", fake_urlopen)

    with pytest.raises(ApiError) as excinfo:
        LLMClient(api_key="k").complete("anything")

    assert excinfo.value.status == 401
    assert excinfo.value.body == '{"error":"bad key"}'
    assert str(excinfo.value) == 'API error 401: {"error":"bad key"}'


def test_transport_error_becomes_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(_req: request.Request, timeout: float | None = None) -> FakeResponse:
        raise URLError("name resolution failed")

    monkeypatch.setattr(request, "urlopen", fake_urlopen)

    with pytest.raises(NetworkError, match="name resolution failed"):
        LLMClient(api_key="k").complete("anything")


def test_invalid_json_becomes_empty_response(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(request, "urlopen", lambda _req, timeout=None: FakeResponse(b"not json"))

    with pytest.raises(EmptyResponseError, match="parsing error"):
        LLMClient(api_key="k").complete("anything")
