"""Thin chat-completions client that turns a request into shell command lines."""

from __future__ import annotations

import json
import logging
from urllib import request
from urllib.error import HTTPError, URLError

from askshell.errors import ApiError, EmptyResponseError, NetworkError

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "meta-llama/llama-3.3-70b-instruct"
COMMENT_MARKER = "#"
CODE_FENCE = "```"

PROMPT_TEMPLATE = """
You are a command-line assistant specialized in MacOS Zsh scripting, helping users both with commands and general assistance.

**Instructions:**
- Analyze if the user is requesting an action/command or making a statement/asking a question
- For ACTION REQUESTS: Generate the appropriate terminal commands
  - Return **only the command**, unless explicitly asked to explain
  - Use **safe practices** (avoid dangerous commands like `rm -rf /`)
  - If multiple commands are needed, return them in sequence
  - Explanations go **before** commands, prefixed with `# `
- For STATEMENTS/QUESTIONS: Respond conversationally
  - Prefix your entire response with `# ` to indicate it's not a command
  - Be helpful, concise, and friendly
  - If discussing the tool itself, acknowledge its capabilities
- Assume the user is using **MacOS** **Zsh** unless they specify otherwise
- Do not use any code blocks (```) in your response

**Examples:**
User: How do I kill a process running on port 5234?
Response:
  lsof -i :5234
  kill $(lsof -t -i :5234)

User: this is a great tool
Response:
  # Thank you! I'm glad you're finding it helpful. Feel free to ask me to run any commands or questions you have.

User: what did we just do?
Response:
  # We just [explain the previous actions based on context]. Is there anything else you'd like to do?

**User request:** {query}
"""

LOGGER = logging.getLogger(__name__)


def parse_response_lines(content: str) -> list[str]:
    """Split model text into trimmed lines, dropping blanks and code fences."""
    lines: list[str] = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith(CODE_FENCE) or line.endswith(CODE_FENCE):
            continue
        lines.append(line)
    return lines


def is_comment(line: str) -> bool:
    return line.startswith(COMMENT_MARKER)


class LLMClient:
    """Small HTTP client for command-oriented model calls."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        api_url: str = OPENROUTER_URL,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.timeout = timeout

    def propose(self, prompt: str, context: str | None = None) -> list[str]:
        """Return the model's answer as comment and command lines."""
        lines = parse_response_lines(self.complete(prompt, context))
        if not lines:
            raise EmptyResponseError("No response returned from the model.")
        return lines

    def complete(self, prompt: str, context: str | None = None) -> str:
        payload = self._build_payload(prompt, context)
        body = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        LOGGER.debug(
            "llm_request_prepared",
            extra={
                "api_url": self.api_url,
                "model": self.model,
                "payload_bytes": len(body),
                "has_context": bool(context),
            },
        )

        req = request.Request(self.api_url, data=body, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:  # noqa: S310
                raw_response = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            body_text = self._read_error_body(exc)
            LOGGER.error(
                "llm_request_http_error",
                extra={
                    "api_url": self.api_url,
                    "model": self.model,
                    "http_status": exc.code,
                    "reason": exc.reason,
                },
            )
            raise ApiError(exc.code, body_text) from exc
        except URLError as exc:
            LOGGER.error(
                "llm_request_transport_error",
                extra={"api_url": self.api_url, "model": self.model, "reason": str(exc.reason)},
            )
            raise NetworkError(f"Network error: {exc.reason}") from exc
        except OSError as exc:
            LOGGER.error(
                "llm_request_transport_error",
                extra={"api_url": self.api_url, "model": self.model, "reason": str(exc)},
            )
            raise NetworkError(f"Network error: {exc}") from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.error(
                "llm_response_parse_error",
                extra={"api_url": self.api_url, "model": self.model, "error": str(exc)},
            )
            raise EmptyResponseError(f"Model response parsing error: {exc}") from exc

        content = self._extract_content(raw_response)
        if content is None:
            raise EmptyResponseError("No command returned from the model.")
        return content.strip()

    def build_messages(self, prompt: str, context: str | None = None) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if context:
            messages.append({"role": "system", "content": context})
        messages.append({"role": "user", "content": PROMPT_TEMPLATE.replace("{query}", prompt)})
        return messages

    def _build_payload(self, prompt: str, context: str | None) -> dict[str, object]:
        return {
            "model": self.model,
            "messages": self.build_messages(prompt, context),
        }

    @staticmethod
    def _extract_content(payload: object) -> str | None:
        if not isinstance(payload, dict):
            return None
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        first = choices[0]
        if not isinstance(first, dict):
            return None
        message = first.get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        return content if isinstance(content, str) else None

    @staticmethod
    def _read_error_body(exc: HTTPError) -> str:
        if exc.fp is None:
            return ""
        try:
            raw = exc.read()
        except OSError:
            return ""
        return raw.decode("utf-8", errors="replace").strip() if raw else ""
