"""OpenAI chat completion client used for grading and feedback."""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Protocol

import httpx

from teachassist.ai.prompts import ChatPrompt
from teachassist.settings import settings

logger = logging.getLogger(__name__)

_RETRYABLE_STATUSES = {429, 503, 504}


@dataclass
class Completion:
    text: str
    model: str


@dataclass
class OpenAIRequestError(Exception):
    status_code: int | None
    body: str
    message: str

    def __str__(self) -> str:
        return self.message


class GradingModel(Protocol):
    def complete(self, prompt: ChatPrompt, temperature: float, request_id: str) -> Completion:
        """Send a chat prompt and return the model's text."""


class OpenAIGradingModel:
    def __init__(
        self,
        model: str | None = None,
        timeout_seconds: float | None = None,
        max_tokens: int | None = None,
        retry_backoffs_seconds: tuple[float, ...] = (1.0, 2.0),
    ) -> None:
        api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is not set")

        from openai import OpenAI

        self._model = model or settings.openai_model
        self._max_tokens = max_tokens or settings.openai_max_tokens
        self._client = OpenAI(api_key=api_key, timeout=timeout_seconds or settings.openai_timeout_seconds)
        self._retry_backoffs_seconds = retry_backoffs_seconds

    def complete(self, prompt: ChatPrompt, temperature: float, request_id: str) -> Completion:
        attempts = len(self._retry_backoffs_seconds) + 1
        for attempt in range(attempts):
            try:
                response = self._client.chat.completions.create(
                    model=self._model,
                    messages=[
                        {"role": "system", "content": prompt.system},
                        {"role": "user", "content": prompt.user},
                    ],
                    temperature=temperature,
                    max_tokens=self._max_tokens,
                )
                return Completion(text=response.choices[0].message.content or "", model=self._model)
            except Exception as exc:
                status_code = getattr(exc, "status_code", None)
                timed_out = isinstance(exc, (httpx.TimeoutException, TimeoutError))
                if timed_out:
                    status_code = 504
                response_obj = getattr(exc, "response", None)
                body_text = ""
                if response_obj is not None:
                    body_text = getattr(response_obj, "text", "") or ""
                if not body_text:
                    body_text = str(exc)

                error = OpenAIRequestError(status_code=status_code, body=body_text, message=f"OpenAI request failed: {exc}")
                if (timed_out or status_code in _RETRYABLE_STATUSES) and attempt < attempts - 1:
                    logger.warning(
                        "ai/grade openai retry",
                        extra={
                            "request_id": request_id,
                            "stage": "openai_retry",
                            "model": self._model,
                            "attempt": attempt + 1,
                            "status_code": status_code,
                        },
                    )
                    time.sleep(self._retry_backoffs_seconds[attempt])
                    continue
                raise error from exc

        raise OpenAIRequestError(status_code=None, body="Unknown OpenAI error", message="OpenAI request failed")


_TOTAL_POINTS_LINE = re.compile(r"^TOTAL POINTS:\s*(\d+\.?\d*)", re.MULTILINE)
_RUBRIC_LINE = re.compile(r"^- (.+?) \((\d+\.?\d*) points\):", re.MULTILINE)


class MockGradingModel:
    """Deterministic offline stand-in, enabled with ``OPENAI_MOCK=1``."""

    model = "mock"

    def complete(self, prompt: ChatPrompt, temperature: float, request_id: str) -> Completion:
        _ = (temperature, request_id)
        total_match = _TOTAL_POINTS_LINE.search(prompt.user)
        if not total_match:
            return Completion(
                text="You showed a clear grasp of the material. Next time, support each claim with a concrete example.",
                model=self.model,
            )

        total = float(total_match.group(1))
        paragraphs = [f"Grade: {total * 0.8:g} out of {total:g}"]
        for name, weight in _RUBRIC_LINE.findall(prompt.user):
            paragraphs.append(f"{name}: {float(weight) * 0.8:g} points. The {name.lower()} work is solid but could go deeper.")
        paragraphs.append("Overall this is a competent submission with room to grow.")
        return Completion(text="\n\n".join(paragraphs), model=self.model)


def get_grading_model() -> GradingModel:
    if os.getenv("OPENAI_MOCK", "").strip() == "1":
        return MockGradingModel()
    return OpenAIGradingModel()
