"""
AI Gateway Service
Prompt templates and a time-bounded OpenAI chat completion call for the
CRM assistant features: notes summaries, closing probability estimates and
sales advice. Failures are surfaced immediately, never retried.
"""

import asyncio
import re
from typing import Any

import openai
from openai import AsyncOpenAI

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.errors import GatewayError

logger = get_logger(__name__)

SUMMARY_NOTES_LIMIT = 6000
PREDICT_DESCRIPTION_LIMIT = 4000
ADVICE_NOTES_LIMIT = 4000
ADVICE_CONTEXT_LIMIT = 2000

SUMMARY_SYSTEM_PROMPT = (
    "Eres un asistente para CRM. Resume de forma clara y concisa (3-5 oraciones) el siguiente "
    "historial de interacciones para contexto de ventas. Responde en español con tono profesional."
)

PREDICT_SYSTEM_PROMPT = (
    "Eres un analista de ventas. Estima la probabilidad de cierre (0-100%) basándote en la "
    "descripción y señales.\nDevuelve solo un número entero entre 0 y 100."
)

ADVICE_SYSTEM_PROMPT = (
    "Eres un asesor comercial experto. Analiza el perfil y notas de un cliente y propone próximos "
    "pasos accionables (3-7 bullets), riesgos y tono recomendado. Responde en español, conciso."
)

_PERCENT_PATTERN = re.compile(r"\d{1,3}")


def parse_probability(content: str) -> int:
    """First 1-3 digit integer in the reply, clamped to 0..100 (0 when absent)."""
    match = _PERCENT_PATTERN.search(content or "")
    if not match:
        return 0
    return min(100, max(0, int(match.group(0))))


class AIGatewayService:
    """
    Thin collaborator around the OpenAI chat completions API.

    The client is created on first use so the application can start (and
    serve every non-AI endpoint) without an API key.
    """

    def __init__(self, client: AsyncOpenAI | None = None):
        self.client = client
        self.timeout = settings.AI_TIMEOUT_SECONDS
        self.model = settings.OPENAI_MODEL

    def _get_client(self) -> AsyncOpenAI:
        if self.client is None:
            if not settings.OPENAI_API_KEY:
                raise GatewayError(
                    "AI provider not configured", details="OPENAI_API_KEY not set"
                )
            self.client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=self.timeout,
                max_retries=0,
            )
            logger.info("OpenAI client initialized", model=self.model, timeout=self.timeout)
        return self.client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.4,
        max_tokens: int = 256,
    ) -> str:
        """Run one chat completion and return the stripped text of the first choice."""
        client = self._get_client()

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=self.timeout,
            )
        except (TimeoutError, asyncio.TimeoutError, openai.APITimeoutError) as e:
            logger.error("OpenAI call timed out", model=self.model, timeout=self.timeout)
            raise GatewayError("AI provider timed out", details=str(e) or "timeout") from e
        except openai.APIError as e:
            logger.error(
                "OpenAI API error",
                model=self.model,
                error=str(e),
                status_code=getattr(e, "status_code", None),
            )
            raise GatewayError("AI provider request failed", details=str(e)) from e

        content = ""
        if response.choices and response.choices[0].message.content:
            content = response.choices[0].message.content.strip()

        logger.info(
            "OpenAI API call successful",
            model=self.model,
            response_length=len(content),
            usage_tokens=response.usage.total_tokens if response.usage else 0,
        )
        return content

    async def summarize(self, notes: str) -> str:
        notes = str(notes or "")[:SUMMARY_NOTES_LIMIT]
        user_prompt = f"Notas del historial:\n{notes}"
        try:
            return await self.complete(
                SUMMARY_SYSTEM_PROMPT, user_prompt, temperature=0.4, max_tokens=220
            )
        except GatewayError as e:
            raise GatewayError("AI summarize failed", details=e.details) from e

    async def predict_probability(self, description: str, value: float) -> int:
        description = str(description or "")[:PREDICT_DESCRIPTION_LIMIT]
        amount = int(value) if float(value).is_integer() else value
        user_prompt = (
            f"Descripcion: {description}\nValor: {amount}\n"
            "Pregunta: Analiza esta oportunidad y devuelve SOLO el porcentaje estimado (0-100)."
        )
        try:
            content = await self.complete(
                PREDICT_SYSTEM_PROMPT, user_prompt, temperature=0.2, max_tokens=10
            )
        except GatewayError as e:
            raise GatewayError("AI prediction failed", details=e.details) from e
        return parse_probability(content or "0")

    async def advise(self, contact: dict[str, Any], opportunity_description: str) -> str:
        contact = contact or {}
        name = contact.get("name") or "cliente"
        notes = str(contact.get("notes") or "")[:ADVICE_NOTES_LIMIT]
        extra = str(opportunity_description or "")[:ADVICE_CONTEXT_LIMIT]
        user_prompt = (
            f"Cliente: {name}\n"
            f"Empresa: {contact.get('company') or ''}\n"
            f"Estado: {contact.get('status') or ''}\n"
            f"Notas:\n{notes}\n"
            f"Contexto adicional:\n{extra}"
        )
        try:
            return await self.complete(
                ADVICE_SYSTEM_PROMPT, user_prompt, temperature=0.4, max_tokens=400
            )
        except GatewayError as e:
            raise GatewayError("AI advise failed", details=e.details) from e

    def health_check(self) -> dict[str, Any]:
        """Configuration summary; does not call the provider."""
        configured = settings.ai_configured() or self.client is not None
        health_data = {
            "healthy": configured,
            "service": "ai_gateway",
            "client_initialized": self.client is not None,
            "configuration": {
                "model": self.model,
                "timeout_seconds": self.timeout,
                "max_retries": 0,
            },
        }
        if not configured:
            health_data["error"] = "OPENAI_API_KEY not set"
        return health_data


# Singleton instance for application use
ai_gateway = AIGatewayService()


def get_ai_gateway() -> AIGatewayService:
    """FastAPI dependency returning the application AI gateway."""
    return ai_gateway
