import json
import logging
import re
from typing import Any, Dict, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors

from app.core.config import settings

logger = logging.getLogger(__name__)

OLLAMA_TIMEOUT = 120.0

class AIService:
    """
    Produces the raw comparison analysis payload for two plan snapshots.

    Nothing returned here is trusted: the payload only reaches a comparison
    record through ComparisonService.attach_analysis, which validates it.
    Returns None whenever no provider is configured or the provider fails.
    """

    @staticmethod
    def build_comparison_prompt(plan_a: Dict[str, Any], plan_b: Dict[str, Any], comparison_type: str) -> str:
        return f"""
        You are an expert financial advisor comparing two versions of a client's {comparison_type} financial plan.

        PLAN A:
        {json.dumps(plan_a, indent=2, default=str)}

        PLAN B:
        {json.dumps(plan_b, indent=2, default=str)}

        INSTRUCTIONS:
        1. Compare the plans on net worth, EMI burden (emiRatio), savings rate and monthly surplus.
        2. Recommend one plan, or say both are suitable, or that neither is.
        3. Return a single JSON object that strictly follows this schema:
           {{
             "executiveSummary": "Two or three sentences.",
             "recommendation": {{
                "suggestedPlan": "planA" | "planB" | "both_suitable" | "neither_suitable",
                "confidenceScore": <number between 0 and 1>,
                "reasoning": "string"
             }},
             "keyDifferences": [{{"aspect": "string", "planAValue": <any>, "planBValue": <any>, "significance": "high" | "medium" | "low"}}],
             "planAStrengths": ["string"],
             "planAWeaknesses": ["string"],
             "planBStrengths": ["string"],
             "planBWeaknesses": ["string"],
             "riskComparison": {{
                "planARiskScore": <number between 0 and 1>,
                "planBRiskScore": <number between 0 and 1>,
                "riskFactors": ["string"]
             }},
             "implementationConsiderations": ["string"]
           }}
        4. Do not output markdown code blocks. Output RAW JSON only.
        """

    @staticmethod
    def parse_response_text(text: str) -> Optional[Dict[str, Any]]:
        # Strip <think>...</think> (reasoning models) and markdown fences
        text = re.sub(r'<think>.*?</think>', '', text or "", flags=re.DOTALL)
        text = text.replace('```json', '').replace('```', '').strip()
        if not text:
            logger.warning("AI provider returned empty text after stripping.")
            return None

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"AI provider returned non-JSON text: {e}")
            return None

        if isinstance(parsed, dict):
            # Some models wrap the object, e.g. {"analysis": {...}}
            inner = parsed.get("analysis")
            return inner if isinstance(inner, dict) else parsed

        logger.warning(f"AI provider returned unexpected type: {type(parsed)}")
        return None

    @staticmethod
    async def generate_comparison_analysis(
        plan_a: Dict[str, Any],
        plan_b: Dict[str, Any],
        comparison_type: str = "cash_flow",
    ) -> Optional[Dict[str, Any]]:
        if not settings.AI_PROVIDER:
            logger.info("AI_PROVIDER not set. Skipping comparison analysis.")
            return None

        provider = settings.AI_PROVIDER.lower()
        prompt = AIService.build_comparison_prompt(plan_a, plan_b, comparison_type)

        try:
            if provider == "ollama":
                logger.info(f"Using AI Provider: Ollama ({settings.OLLAMA_MODEL})")
                text = await AIService._generate_ollama(prompt)
            elif provider == "google":
                if not settings.GEMINI_API_KEY:
                    logger.info("GEMINI_API_KEY not found. Skipping comparison analysis.")
                    return None
                logger.info(f"Using AI Provider: Google ({settings.GEMINI_MODEL})")
                text = await AIService._generate_google(settings.GEMINI_API_KEY, prompt)
            else:
                logger.warning(f"Unknown AI_PROVIDER '{provider}'. Skipping AI.")
                return None
        except (httpx.HTTPError, genai_errors.APIError, ValueError) as e:
            logger.error(f"Error generating comparison analysis: {e}")
            return None

        return AIService.parse_response_text(text)

    @staticmethod
    async def _generate_google(api_key: str, prompt: str) -> str:
        client = genai.Client(api_key=api_key)
        response = await client.aio.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=prompt
        )
        return response.text or ""

    @staticmethod
    async def _generate_ollama(prompt: str) -> str:
        payload = {
            "model": settings.OLLAMA_MODEL,
            "prompt": prompt,
            "stream": False,
            "format": "json"
        }
        async with httpx.AsyncClient(timeout=OLLAMA_TIMEOUT) as client:
            response = await client.post(f"{settings.OLLAMA_BASE_URL}/api/generate", json=payload)
            if response.status_code == 404:
                logger.error(f"Make sure model '{settings.OLLAMA_MODEL}' is pulled: `ollama pull {settings.OLLAMA_MODEL}`")
            response.raise_for_status()
            body = response.json()
            if not isinstance(body, dict):
                raise ValueError(f"unexpected Ollama response body: {type(body).__name__}")
            return body.get("response", "")
