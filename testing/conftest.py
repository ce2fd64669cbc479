import json
from types import SimpleNamespace
from typing import Any, Callable

import pytest

from viralbites.config import Settings


def make_response(text: str | None, chunks: list[tuple[str, str | None]] | None = None) -> SimpleNamespace:
    """Shape-compatible stand-in for a google-genai GenerateContentResponse."""
    grounding_chunks = [
        SimpleNamespace(web=SimpleNamespace(uri=uri, title=title))
        for uri, title in (chunks or [])
    ]
    return SimpleNamespace(
        text=text,
        candidates=[
            SimpleNamespace(
                grounding_metadata=SimpleNamespace(grounding_chunks=grounding_chunks),
            )
        ],
    )


def json_response(payload: Any, chunks: list[tuple[str, str | None]] | None = None) -> SimpleNamespace:
    return make_response(json.dumps(payload), chunks)


class FakeGeminiClient:
    """Records prompts and answers them with a responder function."""

    def __init__(self, responder: Callable[[str, str], Any]) -> None:
        self.responder = responder
        self.calls: list[tuple[str, str]] = []

    async def generate(self, model: str, prompt: str, config: Any = None) -> Any:
        self.calls.append((model, prompt))
        result = self.responder(model, prompt)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def settings() -> Settings:
    return Settings(gemini_api_key="test-key", _env_file=None)
