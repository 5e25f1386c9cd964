from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from .errors import ApiError, InvalidRequestError, MalformedResponseError
from .models import ParsedSyllabus
from .schemas import SyllabusPayload

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-haiku-4-5-20251001"
ANTHROPIC_VERSION = "2023-06-01"
COURSE_CODE_SENTINEL = "N/A"

SYSTEM_PROMPT = f"""You are a helpful assistant that extracts assignment information from college syllabi.

Your job is to:
1. Find the course name and course code
2. Find ALL assignments, exams, quizzes, and projects with their due dates
3. Return the data as JSON

Rules:
- Only include items that have a specific date
- For assignment type, use one of: exam, quiz, homework, project
- Format dates as YYYY-MM-DD
- If you can't find a course code, use "{COURSE_CODE_SENTINEL}"

Return ONLY valid JSON in this exact format, no other text:
{{
  "course_name": "string",
  "course_code": "string",
  "assignments": [
    {{
      "title": "string",
      "date": "YYYY-MM-DD",
      "type": "exam|quiz|homework|project"
    }}
  ]
}}"""

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)


def build_user_message(text: str, year: int) -> str:
    return (
        f"Today's date is {year}. Please extract the course information and assignments from this syllabus.\n\n"
        f'IMPORTANT: Ignore any years mentioned in the syllabus text (like "Fall 2023" or "Spring 2024").\n'
        f"Assume ALL dates are for year {year}, since users scan current syllabi for their active courses.\n\n"
        f"Syllabus text:\n{text}"
    )


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    match = _FENCE_RE.search(cleaned)
    if match:
        return match.group(1).strip()
    return cleaned


def decode_syllabus(response_text: str) -> ParsedSyllabus:
    cleaned = strip_code_fences(response_text)
    try:
        payload = SyllabusPayload.model_validate_json(cleaned)
    except ValidationError as exc:
        raise MalformedResponseError("Could not parse the response. Please try again.") from exc
    return payload.to_parsed()


class SyllabusParsingService:
    """
    Sends OCR text to the language-model messages endpoint and decodes the
    structured syllabus it returns.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], date] = date.today,
    ):
        self.api_key = (api_key or "").strip()
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.transport = transport
        self.today = today

    def build_request_body(self, text: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": SYSTEM_PROMPT,
            "messages": [
                {"role": "user", "content": build_user_message(text, self.today().year)},
            ],
        }

    async def parse(self, text: str) -> ParsedSyllabus:
        if not text or not text.strip():
            raise InvalidRequestError("Cannot parse an empty syllabus")
        if not self.api_key:
            raise InvalidRequestError("Parsing API key is missing")

        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        body = self.build_request_body(text)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, headers=headers, json=body)
        except httpx.TimeoutException as exc:
            raise ApiError(f"Request timed out after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"Network error: {exc}") from exc

        if response.status_code != 200:
            raise ApiError(self._error_message(response), status_code=response.status_code)

        try:
            data = response.json()
            response_text = data["content"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("Invalid response from server") from exc
        if not isinstance(response_text, str):
            raise MalformedResponseError("Invalid response from server")

        syllabus = decode_syllabus(response_text)
        logger.info(
            "Parsed syllabus %s (%s) with %d assignment(s)",
            syllabus.course_name,
            syllabus.course_code,
            len(syllabus.assignments),
        )
        return syllabus

    def _error_message(self, response: httpx.Response) -> str:
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = None
        if isinstance(message, str) and message:
            return message
        return f"HTTP {response.status_code}"
