"""
AI advisory bridge for leak reports
Asks Google Gemini for a severity / summary / status suggestion
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from geofuite.core.constants import MIN_COMMENT_LENGTH
from geofuite.crowdsource.report_model import AIAnalysis, LeakStatus, Severity

logger = logging.getLogger(__name__)


def comments_are_analyzable(comments: Optional[str]) -> bool:
    """Check that comments are long enough to be worth sending."""
    return bool(comments) and len(comments) >= MIN_COMMENT_LENGTH


class AdvisoryPayload(BaseModel):
    """Schema the model response must satisfy."""
    model_config = ConfigDict(extra="ignore")

    severity: Severity
    summary: str
    recommendedStatus: LeakStatus

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Severity:
        severity = Severity.parse(value)
        if severity is None:
            raise ValueError(f"unknown severity {value!r}")
        return severity

    @field_validator("recommendedStatus", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> LeakStatus:
        status = LeakStatus.parse(value)
        if status is None:
            raise ValueError(f"unknown status {value!r}")
        return status

    @field_validator("summary")
    @classmethod
    def _strip_summary(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("empty summary")
        return value


@dataclass
class AIAnalysisResult:
    """Validated advisory suggestion."""
    severity: Severity
    summary: str
    recommended_status: LeakStatus

    def to_analysis(self) -> AIAnalysis:
        """Reduce to the part kept on the report."""
        return AIAnalysis(severity=self.severity.value, summary=self.summary)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "severity": self.severity.value,
            "summary": self.summary,
            "recommendedStatus": self.recommended_status.value,
        }


class AdvisoryBridge:
    """
    Gemini client producing leak advisories.

    Returns None whenever no usable suggestion is available: missing API
    key, network failure, HTTP error, empty or malformed response. Never
    raises.
    """

    API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-2.5-flash"

    RESPONSE_SCHEMA = {
        "type": "OBJECT",
        "properties": {
            "severity": {"type": "STRING", "enum": [s.value for s in Severity]},
            "summary": {"type": "STRING"},
            "recommendedStatus": {"type": "STRING", "enum": [s.value for s in LeakStatus]},
        },
        "required": ["severity", "summary", "recommendedStatus"],
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize advisory bridge.

        Args:
            api_key: Gemini API key (None disables the bridge)
            model: Gemini model name
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.api_key = (api_key or "").strip() or None
        self.model = model
        self.timeout = timeout
        self._transport = transport

        if self.enabled:
            logger.info(f"Advisory bridge initialized: {self.model}")
        else:
            logger.warning("Advisory bridge disabled: no Gemini API key configured")

    @property
    def enabled(self) -> bool:
        return self.api_key is not None

    @property
    def endpoint(self) -> str:
        return f"{self.API_BASE_URL}/models/{self.model}:generateContent"

    def build_prompt(self, description: str, address: str) -> str:
        """Build the French analysis prompt."""
        return (
            "Analyse ce rapport de fuite d'eau/gaz.\n"
            f"Adresse: {address}\n"
            f"Description: {description}\n\n"
            "Détermine la sévérité (Faible, Moyenne, Élevée, Critique), "
            "génère un résumé technique court, et suggère un statut "
            "(Nouveau, En cours, Résolu, Urgent)."
        )

    def build_request(self, description: str, address: str) -> Dict[str, Any]:
        """Build the generateContent request body."""
        return {
            "contents": [
                {"parts": [{"text": self.build_prompt(description, address)}]}
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": self.RESPONSE_SCHEMA,
            },
        }

    async def analyze(self, description: str, address: str) -> Optional[AIAnalysisResult]:
        """
        Request an advisory for a leak description.

        Args:
            description: Free-text comments
            address: Report address

        Returns:
            AIAnalysisResult, or None if no suggestion is available
        """
        if not self.enabled:
            return None

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    json=self.build_request(description, address),
                    headers={"x-goog-api-key": self.api_key},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Gemini request failed: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Gemini returned a non-JSON body: {e}")
            return None

        text = self._extract_text(body)
        if not text:
            logger.warning("Gemini returned an empty response")
            return None

        return self.parse_response_text(text)

    @staticmethod
    def _extract_text(body: Any) -> Optional[str]:
        """Pull the generated text out of a generateContent response."""
        try:
            parts = body["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        except (KeyError, IndexError, TypeError):
            return None
        return text.strip() or None

    @staticmethod
    def parse_response_text(text: str) -> Optional[AIAnalysisResult]:
        """
        Validate the generated JSON against the advisory schema.

        Unknown severity or status values are rejected.
        """
        try:
            payload = AdvisoryPayload.model_validate_json(text)
        except ValidationError as e:
            logger.warning(f"Gemini response rejected: {e.error_count()} schema error(s)")
            return None

        return AIAnalysisResult(
            severity=payload.severity,
            summary=payload.summary,
            recommended_status=payload.recommendedStatus,
        )


async def analyze_leak_description(
    description: str,
    address: str,
    api_key: Optional[str] = None
) -> Optional[AIAnalysisResult]:
    """
    Convenience function to request an advisory.

    Args:
        description: Free-text comments
        address: Report address
        api_key: Gemini API key (defaults to settings)

    Returns:
        AIAnalysisResult or None
    """
    from geofuite.core.config import settings

    bridge = AdvisoryBridge(
        api_key=api_key if api_key is not None else settings.gemini_api_key,
        model=settings.gemini_model,
        timeout=settings.ai_timeout_seconds,
    )
    return await bridge.analyze(description, address)
