# brewnote_backend/app/services/suggestions/remote.py
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from brewnote_backend.app.errors import RemoteSuggestionFailure
from brewnote_backend.app.schemas import Suggestion
from brewnote_backend.app.utils.logs import get_logger

log = get_logger("remote")

# Purpose:
# Thin client for an OpenAI-compatible chat-completions endpoint. Every way the
# call can go wrong ends up as RemoteSuggestionFailure; deciding what to do
# about it is the orchestrator's job.

BASE_REQUIRED_KEYS = ("method", "grindSize", "ratio", "brewTime", "waterTempC", "explanation")

SYSTEM_PROMPT = (
    "You are a coffee brewing expert. Provide precise brewing recommendations "
    "based on taste feedback and brewing history."
)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]+?)\s*```")


def required_keys(method: str) -> List[str]:
    keys = list(BASE_REQUIRED_KEYS)
    if method == "espresso":
        keys.append("pressureBar")
    return keys


def build_prompt(history: Sequence[Dict[str, Any]], method: str, bean_name: Optional[str]) -> str:
    keys = ", ".join(required_keys(method))
    bean = f" for the bean '{bean_name}'" if bean_name else ""
    time_unit = "seconds" if method in ("espresso", "pourover") else "minutes"
    return (
        f"Based on the user's previous {method} brews{bean}: {json.dumps(list(history), ensure_ascii=False)}, "
        f"recommend the next brew's grind size (a descriptor such as 'medium-fine'), ratio (e.g. '15:1'), "
        f"brew time in {time_unit} and water temperature in Celsius. Briefly explain the adjustment in simple "
        f"language. Return only JSON with keys: {keys}. The method key must be '{method}'."
    )


# What it does:
# Pull the JSON object out of a model reply (bare or inside a ``` fence) and
# validate it into a Suggestion for `method`.
def parse_remote_suggestion(text: str, method: str) -> Suggestion:
    if text is None:
        text = ""
    if not isinstance(text, str):
        raise RemoteSuggestionFailure(f"remote reply content is {type(text).__name__}, not text")
    match = _FENCE.search(text)
    payload = match.group(1) if match else text.strip()
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise RemoteSuggestionFailure(f"remote reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise RemoteSuggestionFailure("remote reply is not a JSON object")

    missing = [k for k in required_keys(method) if data.get(k) in (None, "")]
    if missing:
        raise RemoteSuggestionFailure(f"remote reply missing keys: {', '.join(missing)}")
    if str(data["method"]).strip().lower() != method:
        raise RemoteSuggestionFailure(f"remote reply is for {data['method']!r}, expected {method!r}")

    if method != "espresso":
        # pressure only applies to espresso
        data = {k: v for k, v in data.items() if k not in ("pressureBar", "pressure_bar")}
    try:
        return Suggestion.model_validate({**data, "method": method, "source": "remote"})
    except ValidationError as e:
        raise RemoteSuggestionFailure(f"remote reply has invalid values: {e.errors()[0].get('msg')}") from e


class RemoteSuggestionClient:
    """
    One POST per suggestion. `transport` is for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self._transport = transport

    def _payload(self, history, method: str, bean_name: Optional[str]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(history, method, bean_name)},
            ],
            "max_tokens": 200,
            "temperature": 0.3,
        }

    async def fetch_remote_suggestion(
        self,
        history: Sequence[Dict[str, Any]],
        method: str,
        bean_name: Optional[str] = None,
    ) -> Suggestion:
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            payload = self._payload(history, method, bean_name)
        except (TypeError, ValueError) as e:
            raise RemoteSuggestionFailure(f"could not build remote prompt: {e}") from e
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                resp = await client.post(url, json=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RemoteSuggestionFailure(f"remote request failed: {e}") from e

        if resp.status_code // 100 != 2:
            raise RemoteSuggestionFailure(f"remote returned HTTP {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RemoteSuggestionFailure(f"unexpected remote envelope: {e}") from e
        if not isinstance(content, str):
            raise RemoteSuggestionFailure(f"remote reply content is {type(content).__name__}, not text")

        suggestion = parse_remote_suggestion(content, method)
        log.info("[remote] suggestion for %s via %s", method, self.model)
        return suggestion


__all__ = [
    "RemoteSuggestionClient",
    "parse_remote_suggestion",
    "required_keys",
    "build_prompt",
    "BASE_REQUIRED_KEYS",
]
