# -*- coding: utf-8 -*-
"""Assessment — strict decoding of model output into typed results."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import AssessmentFailure, ParseError

M = TypeVar("M", bound=BaseModel)

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", flags=re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _FENCE_OPEN_RE.sub("", cleaned)
    return _FENCE_CLOSE_RE.sub("", cleaned)


def _remove_trailing_commas(text: str) -> str:
    """Remove trailing commas before ``}``/``]`` while preserving string literals."""
    out: list[str] = []
    in_str = False
    escaped = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_str:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "\"":
                in_str = False
            i += 1
            continue

        if ch == "\"":
            in_str = True
        elif ch == ",":
            j = i + 1
            while j < len(text) and text[j] in " \t\r\n":
                j += 1
            if j < len(text) and text[j] in "}]":
                i += 1
                continue

        out.append(ch)
        i += 1
    return "".join(out)


def iter_json_object_candidates(text: str) -> list[str]:
    """Extract balanced {...} candidates from arbitrary text.

    Models sometimes wrap JSON with prose; braces inside string literals are ignored.
    """
    cleaned = _strip_fences(text)
    candidates: list[str] = []
    in_str = False
    escaped = False
    depth = 0
    start_idx: int | None = None

    for i, ch in enumerate(cleaned):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "\"":
                in_str = False
            continue

        if ch == "\"":
            in_str = True
        elif ch == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start_idx is not None:
                candidates.append(cleaned[start_idx : i + 1])
                start_idx = None

    return candidates


def _split_string_literals(text: str) -> list[tuple[bool, str]]:
    """Split into (is_string_literal, segment) pairs, keeping the quotes with the literal."""
    segments: list[tuple[bool, str]] = []
    buf: list[str] = []
    in_str = False
    escaped = False
    for ch in text:
        if in_str:
            buf.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "\"":
                segments.append((True, "".join(buf)))
                buf = []
                in_str = False
            continue
        if ch == "\"":
            if buf:
                segments.append((False, "".join(buf)))
            buf = [ch]
            in_str = True
            continue
        buf.append(ch)
    if buf:
        segments.append((in_str, "".join(buf)))
    return segments


def _replace_non_finite(text: str) -> str:
    out: list[str] = []
    for is_literal, segment in _split_string_literals(text):
        if not is_literal:
            segment = re.sub(r"\bNaN\b", "null", segment, flags=re.IGNORECASE)
            segment = re.sub(r"-?\bInfinity\b", "null", segment, flags=re.IGNORECASE)
        out.append(segment)
    return "".join(out)


def _sanitize_json_like(text: str) -> str:
    cleaned = text
    cleaned = cleaned.replace("“", "\"").replace("”", "\"").replace("‘", "'").replace("’", "'")
    cleaned = _remove_trailing_commas(cleaned)
    return _replace_non_finite(cleaned)


def parse_json_object(content: str) -> Dict[str, Any]:
    """Return the first JSON object found in ``content`` or raise ParseError."""
    if not content or not content.strip():
        raise ParseError("Model returned an empty response")

    last_error: Exception | None = None
    for candidate in iter_json_object_candidates(content):
        for attempt in (candidate, _sanitize_json_like(candidate)):
            try:
                parsed = json.loads(attempt)
            except ValueError as exc:
                last_error = exc
                continue
            if isinstance(parsed, dict):
                return parsed

    if last_error is None:
        raise ParseError("Model output does not contain a JSON object")
    raise ParseError(f"Failed to parse model JSON: {last_error}") from last_error


def decode_model(content: str, model: Type[M]) -> M:
    """Parse and schema-validate model output; fails closed with ParseError."""
    parsed = parse_json_object(content)
    try:
        return model.model_validate(parsed)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()[:5]
        )
        raise ParseError(f"Model JSON does not match {model.__name__}: {errors}") from exc


def extract_message_text(data: object) -> str:
    """Pull assistant text out of an OpenAI-compatible chat completion."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list):
        return ""
    out: list[str] = []
    for choice in choices:
        if not isinstance(choice, dict):
            continue
        msg = choice.get("message")
        if isinstance(msg, dict):
            content = msg.get("content")
            if isinstance(content, str) and content:
                out.append(content)
            elif isinstance(content, list):
                # Multimodal models may answer with a list of content parts.
                for part in content:
                    if isinstance(part, dict) and isinstance(part.get("text"), str):
                        out.append(part["text"])
        maybe_text = choice.get("text")
        if isinstance(maybe_text, str) and maybe_text:
            out.append(maybe_text)
    return "".join(out).strip()


def extract_error_message(data: object) -> str | None:
    """Extract a human-readable provider error from a response body, if any."""
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        message = err.get("message")
        code = err.get("code") or err.get("type")
        if isinstance(message, str) and message.strip():
            return f"{code}: {message.strip()}" if code else message.strip()
    if isinstance(err, str) and err.strip():
        return err.strip()
    return None


def raise_for_provider_error(data: object) -> None:
    message = extract_error_message(data)
    if message:
        raise AssessmentFailure(f"AI provider error: {message}")
