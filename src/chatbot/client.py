"""
HTTP client for the ask-ai endpoint, used by chat sessions.
"""

import os

import httpx
from dotenv import load_dotenv

load_dotenv()

DEFAULT_TIMEOUT_SECONDS = 30.0


class AskAIError(Exception):
    """Raised when the ask-ai endpoint fails or returns an unexpected body."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AskAIClient:
    """
    Sends one question to ask-ai and returns the answer text.

    Usage:
        client = AskAIClient(access_token=session_token)
        answer = client.ask("Qual o horário da piscina?", user_name="Ana")
    """

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        base_url = base_url or os.getenv("ASK_AI_URL", "http://localhost:8000")
        headers = {"Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def ask(self, query: str, user_name: str) -> str:
        """
        Ask a question.

        Raises:
            AskAIError: On transport errors, non-2xx responses, or a body without `answer`
        """
        try:
            response = self._client.post("/ask-ai", json={"query": query, "userName": user_name})
        except httpx.HTTPError as e:
            raise AskAIError(f"{type(e).__name__}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            raise AskAIError(message or f"HTTP {response.status_code}", response.status_code)

        answer = body.get("answer") if isinstance(body, dict) else None
        if not isinstance(answer, str):
            raise AskAIError("Resposta sem campo 'answer'", response.status_code)
        return answer

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AskAIClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
