"""Prompt-in, text-or-JSON-out access to the configured AI provider."""

import json
from typing import Any

from docstudy.generation.client_base import BaseGenerationClient
from docstudy.generation.exceptions import GenerationError, GenerationParseError
from docstudy.logging.logger import Log


class GenerativeText:
    """Sends a single prompt to the AI provider and returns text or a JSON object."""

    def __init__(
        self,
        *,
        client: BaseGenerationClient,
        model: str,
        temperature: float = 0.2,
        system_prompt: str = "",
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._system_prompt = system_prompt

    def generate_text(self, prompt: str) -> str:
        """Return the raw text answer for a prompt."""
        raw = self._call_ai(prompt, json_mode=False)
        Log.debug(f"AI raw text response:\n{raw}")
        return raw.strip()

    def generate_json(self, prompt: str) -> dict[str, Any]:
        """Return the answer parsed as a JSON object.

        Raises:
            GenerationParseError: if no JSON object can be recovered.
        """
        raw = self._call_ai(prompt, json_mode=True)
        Log.debug(f"AI raw JSON response:\n{raw}")
        return parse_json_object(raw)

    def _call_ai(self, prompt: str, *, json_mode: bool) -> str:
        response = self._client.create_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_mode=json_mode,
        )
        if not isinstance(response, str):
            raise GenerationError("AI response must be text")
        return response


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse an AI answer as a JSON object.

    Markdown code fences are stripped first. If the whole answer is not valid
    JSON, the first balanced `{...}` substring is tried before giving up.
    """
    cleaned = _strip_code_fence(raw.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        candidate = first_balanced_object(cleaned)
        if candidate is None:
            raise GenerationParseError(f"Invalid JSON response: {exc}") from exc
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as inner:
            raise GenerationParseError(f"Invalid JSON response: {inner}") from inner

    if not isinstance(parsed, dict):
        raise GenerationParseError("JSON response must be an object")
    return parsed


def first_balanced_object(text: str) -> str | None:
    """Return the first `{...}` substring whose braces balance, or None.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    return None


def _strip_code_fence(cleaned: str) -> str:
    if not cleaned.startswith("```"):
        return cleaned
    lines = cleaned.splitlines()
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines)
