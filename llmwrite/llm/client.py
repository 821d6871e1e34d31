"""HTTP client for OpenAI-compatible text completion backends."""

from __future__ import annotations

import json
from dataclasses import dataclass
from http.client import HTTPException
from typing import Any, Callable, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, build_opener

from ..config import DEFAULT_MODEL, Configuration
from ..errors import BackendUnavailableError, EmptyCompletionError, EmptyPromptError
from ..logging import get_logger
from ..models import CompletionOverrides, CompletionRequest, PromptRequest

REQUEST_TIMEOUT = 30.0


@dataclass
class BackendCall:
    """A single HTTP exchange with the completion backend."""

    method: str
    url: str
    headers: Dict[str, str]
    payload: Optional[Dict[str, Any]]
    timeout: float


def urlopen_anonymous(request: Request, timeout: float):
    """Open ``request`` without urllib's default ``User-agent`` header."""
    opener = build_opener()
    opener.addheaders = []
    return opener.open(request, timeout=timeout)


class CompletionClient:
    """Shapes, sends and validates completion and model-listing requests."""

    DEFAULT_MODEL = DEFAULT_MODEL

    def __init__(
        self,
        *,
        transport: Callable[[BackendCall], Dict[str, Any]] | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._transport = transport or self._http_transport
        self.timeout = timeout
        self.logger = get_logger("llm.client")

    def build_request(
        self,
        config: Configuration,
        prompt_request: PromptRequest,
        overrides: CompletionOverrides | None = None,
    ) -> CompletionRequest:
        overrides = overrides or CompletionOverrides()
        if overrides.max_tokens is not None:
            self.logger.debug("Ignoring caller max_tokens=%s", overrides.max_tokens)
        model = overrides.model or config.model or self.DEFAULT_MODEL
        temperature = overrides.temperature if overrides.temperature is not None else config.temperature
        top_p = overrides.top_p if overrides.top_p is not None else config.top_p
        return CompletionRequest(
            model=model,
            prompt=prompt_request.prompt_text,
            temperature=temperature,
            top_p=top_p,
        )

    def complete(
        self,
        config: Configuration,
        prompt_request: PromptRequest,
        overrides: CompletionOverrides | None = None,
    ) -> str:
        """Request a completion and return its text with surrounding whitespace trimmed."""
        if not prompt_request.prompt_text:
            raise EmptyPromptError()
        request = self.build_request(config, prompt_request, overrides)
        self.logger.info(
            "Requesting completion from %s (%d prompt chars)", request.model, len(request.prompt)
        )
        response = self._send(config, "POST", "/completions", request.to_payload())
        text = self._extract_text(response).strip()
        if not text:
            raise EmptyCompletionError()
        return text

    def list_models(self, config: Configuration) -> List[str]:
        response = self._send(config, "GET", "/models", None)
        data = response.get("data")
        if not isinstance(data, list):
            raise BackendUnavailableError("Model listing response is missing 'data'")
        identifiers = {
            entry["id"]
            for entry in data
            if isinstance(entry, dict) and isinstance(entry.get("id"), str) and entry["id"]
        }
        return sorted(identifiers)

    def _send(
        self,
        config: Configuration,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        call = BackendCall(
            method=method,
            url=f"{config.base_url.rstrip('/')}{path}",
            headers=self._build_headers(config, has_body=payload is not None),
            payload=payload,
            timeout=self.timeout,
        )
        return self._transport(call)

    @staticmethod
    def _build_headers(config: Configuration, *, has_body: bool) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        if config.organization_id:
            headers["OpenAI-Organization"] = config.organization_id
        return headers

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    @staticmethod
    def _http_transport(call: BackendCall) -> Dict[str, Any]:
        data = json.dumps(call.payload).encode("utf-8") if call.payload is not None else None
        try:
            http_request = Request(call.url, data=data, headers=call.headers, method=call.method)
            with urlopen_anonymous(http_request, timeout=call.timeout) as response:
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise BackendUnavailableError(
                f"Completion backend failed with status {exc.code}: {message}"
            ) from exc
        except URLError as exc:
            raise BackendUnavailableError(f"Completion backend unreachable: {exc.reason}") from exc
        except TimeoutError as exc:
            raise BackendUnavailableError(
                f"Completion backend timed out after {call.timeout:g}s"
            ) from exc
        except (HTTPException, OSError) as exc:
            raise BackendUnavailableError(f"Completion backend connection failed: {exc!r}") from exc
        except ValueError as exc:
            # urllib rejects URLs without a usable scheme or host here.
            raise BackendUnavailableError(f"Invalid backend URL {call.url!r}: {exc}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BackendUnavailableError("Completion backend returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise BackendUnavailableError("Completion backend returned an unexpected payload")
        return payload


__all__ = ["REQUEST_TIMEOUT", "BackendCall", "CompletionClient", "urlopen_anonymous"]
