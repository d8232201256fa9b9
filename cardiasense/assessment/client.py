# -*- coding: utf-8 -*-
"""Assessment — AI collaborator client (OpenAI-compatible chat completions).

Four independent request/response calls share this client: risk assessment,
grounded literature search, symptom NLP and diagnostic image analysis. There
is no retry; timeouts come from configuration.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..config import Settings, settings
from ..errors import AssessmentFailure, ParseError
from .models import (
    ImageKind,
    PatientData,
    RiskAssessment,
    SearchResult,
    SearchSource,
    SymptomAnalysis,
    classify_risk,
)
from .parsing import decode_model, extract_error_message, extract_message_text, raise_for_provider_error
from .prompts import JSON_SYSTEM_PROMPT, image_prompt, research_prompt, risk_prompt, symptom_prompt

logger = logging.getLogger(__name__)

NO_RESEARCH_FINDINGS = "No research findings found."
IMAGE_ANALYSIS_FAILED = "Analysis failed."


@dataclass(frozen=True)
class AISettings:
    base_url: str
    api_key: Optional[str]
    model: str
    vision_model: str
    timeout: float
    temperature: float
    max_tokens: int
    enable_search: bool
    max_image_bytes: int

    @property
    def chat_url(self) -> str:
        base = self.base_url.rstrip("/")
        if base.endswith("/chat/completions"):
            return base
        return f"{base}/chat/completions"


def resolve_ai_settings(cfg: Settings = settings) -> AISettings:
    return AISettings(
        base_url=cfg.ai_base_url,
        api_key=cfg.ai_api_key,
        model=cfg.ai_model,
        vision_model=cfg.ai_vision_model,
        timeout=cfg.ai_timeout,
        temperature=cfg.ai_temperature,
        max_tokens=cfg.ai_max_tokens,
        enable_search=cfg.ai_enable_search,
        max_image_bytes=cfg.max_image_bytes,
    )


_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def decode_image(image_base64: str, max_bytes: int) -> Tuple[str, bytes]:
    """Accept raw base64 or a ``data:`` URL; return (mime, bytes)."""
    raw = (image_base64 or "").strip()
    mime = "image/png"
    match = _DATA_URL_RE.match(raw)
    if match:
        mime = match.group("mime")
        raw = match.group("data").strip()
    if not mime.startswith("image/"):
        raise ValueError(f"Unsupported image type: {mime}")
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 image: {exc}") from exc
    if not data:
        raise ValueError("Image is empty")
    if len(data) > max_bytes:
        raise ValueError(f"Image too large: {len(data)} bytes > {max_bytes}")
    return mime, data


def _data_url(mime: str, image_bytes: bytes) -> str:
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime};base64,{b64}"


def reconcile_risk_level(assessment: RiskAssessment) -> RiskAssessment:
    expected = classify_risk(assessment.risk_score)
    if assessment.risk_level != expected:
        logger.warning(
            "model risk level %s disagrees with score %.1f; using %s",
            assessment.risk_level.value,
            assessment.risk_score,
            expected.value,
        )
        return assessment.model_copy(update={"risk_level": expected})
    return assessment


def extract_search_sources(data: object) -> List[SearchSource]:
    """Collect grounding sources from DashScope ``search_info`` or OpenAI url citations."""
    if not isinstance(data, dict):
        return []

    raw: List[Dict[str, Any]] = []
    info = data.get("search_info")
    if isinstance(info, dict) and isinstance(info.get("search_results"), list):
        raw.extend(item for item in info["search_results"] if isinstance(item, dict))

    for choice in data.get("choices") or []:
        msg = choice.get("message") if isinstance(choice, dict) else None
        if not isinstance(msg, dict):
            continue
        for ann in msg.get("annotations") or []:
            if isinstance(ann, dict) and ann.get("type") == "url_citation":
                citation = ann.get("url_citation")
                raw.append(citation if isinstance(citation, dict) else ann)

    sources: List[SearchSource] = []
    seen: set[str] = set()
    for item in raw:
        title = item.get("title") or item.get("site_name")
        uri = item.get("url") or item.get("uri")
        source = SearchSource(
            title=title.strip() if isinstance(title, str) and title.strip() else "Medical Source",
            uri=uri.strip() if isinstance(uri, str) and uri.strip() else "#",
        )
        if source.uri != "#" and source.uri in seen:
            continue
        seen.add(source.uri)
        sources.append(source)
    return sources


class RiskAssessmentClient:
    def __init__(
        self,
        ai: AISettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.ai = ai or resolve_ai_settings()
        self._transport = transport

    async def _chat(
        self,
        messages: List[Dict[str, Any]],
        *,
        model: str | None = None,
        json_mode: bool = False,
        extra: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        if not self.ai.api_key:
            raise AssessmentFailure("CARDIA_AI_API_KEY not set")

        payload: Dict[str, Any] = {
            "model": model or self.ai.model,
            "messages": messages,
            "temperature": self.ai.temperature,
            "max_tokens": self.ai.max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        if extra:
            payload.update(extra)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.ai.api_key}",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.ai.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.post(self.ai.chat_url, json=payload, headers=headers)
        except httpx.InvalidURL as exc:
            raise AssessmentFailure(f"AI API URL is invalid: {exc}") from exc
        except httpx.HTTPError as exc:
            raise AssessmentFailure(f"AI API unreachable: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400:
            detail = extract_error_message(data) or (resp.text or "").strip()[:200]
            raise AssessmentFailure(f"AI API error ({resp.status_code}): {detail}")
        if not isinstance(data, dict):
            snippet = (resp.text or "").replace("\n", " ").strip()[:200]
            raise ParseError(f"AI API returned non-JSON response: {snippet}")
        raise_for_provider_error(data)
        return data

    async def assess(self, data: PatientData) -> RiskAssessment:
        """Run one risk assessment; raises ParseError on malformed output."""
        response = await self._chat(
            [
                {"role": "system", "content": JSON_SYSTEM_PROMPT},
                {"role": "user", "content": risk_prompt(data)},
            ],
            json_mode=True,
        )
        assessment = decode_model(extract_message_text(response), RiskAssessment)
        return reconcile_risk_level(assessment)

    async def search_clinical_research(self, query: str) -> SearchResult:
        extra: Dict[str, Any] | None = None
        if self.ai.enable_search:
            extra = {"enable_search": True, "search_options": {"enable_source": True}}
        response = await self._chat(
            [{"role": "user", "content": research_prompt(query)}],
            extra=extra,
        )
        answer = extract_message_text(response) or NO_RESEARCH_FINDINGS
        return SearchResult(answer=answer, sources=extract_search_sources(response))

    async def analyze_symptoms_nlp(self, text: str) -> SymptomAnalysis:
        response = await self._chat(
            [
                {"role": "system", "content": JSON_SYSTEM_PROMPT},
                {"role": "user", "content": symptom_prompt(text)},
            ],
            json_mode=True,
        )
        return decode_model(extract_message_text(response), SymptomAnalysis)

    async def analyze_diagnostic_image(self, image_base64: str, kind: ImageKind) -> str:
        """Free-text findings for an ECG or chest X-ray image.

        Raises ValueError for an unusable image before anything is sent.
        """
        mime, image_bytes = decode_image(image_base64, self.ai.max_image_bytes)
        response = await self._chat(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": _data_url(mime, image_bytes)}},
                        {"type": "text", "text": image_prompt(kind)},
                    ],
                }
            ],
            model=self.ai.vision_model,
        )
        return extract_message_text(response) or IMAGE_ANALYSIS_FAILED
