"""
Thin wrapper over LiteLLM used by the outline and chapter writers.

Both writers send one system and one user message and only care about the text
that comes back, plus whether the model stopped because it ran out of tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, MutableMapping, Sequence

from litellm import completion

from .errors import CompletionResponseError

ChatMessage = Mapping[str, Any]


@dataclass
class ChatResult:
    """
    Text of a chat completion, stripped of surrounding whitespace.

    ``finish_reason`` is ``"length"`` when the model hit ``max_tokens``; a chapter
    cut off that way is still usable, but callers may want to log it.
    """

    text: str
    raw: Any
    model: str | None = None
    finish_reason: str | None = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "length"


CompletionCallable = Callable[..., ChatResult]


def prompt_messages(system: str, user: str) -> list[dict[str, str]]:
    """The two-message conversation every book prompt is sent as."""
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def _lookup(container: Any, key: str) -> Any:
    # LiteLLM responses allow item access; plain dicts are used in tests.
    try:
        return container[key]
    except (KeyError, TypeError):
        return getattr(container, key, None)


def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    timeout: float | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Send ``messages`` to ``model`` and return the reply.

    Options left as ``None`` are not forwarded, so LiteLLM and the provider keep
    their own defaults. Raises :class:`CompletionResponseError` when the reply
    has no first choice with a message.
    """
    payload: MutableMapping[str, Any] = {
        "model": model,
        "messages": list(messages),
    }
    optional = {
        "temperature": temperature,
        "max_tokens": max_tokens,
        "api_key": api_key,
        "timeout": timeout,
    }
    payload.update({key: value for key, value in optional.items() if value is not None})
    payload.update(extra_kwargs)

    response = completion(**payload)

    try:
        choice = response["choices"][0]
        content = choice["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise CompletionResponseError(f"Model {model!r} returned no message.") from exc

    return ChatResult(
        text=str(content or "").strip(),
        raw=response,
        model=_lookup(response, "model") or model,
        finish_reason=_lookup(choice, "finish_reason"),
    )
