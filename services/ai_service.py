import json
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from core.config import Settings
from core.exceptions import AIServiceError
from models.damage_report import RepairPriority
from schemas.ai import AIAnalysisResult

log = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = """You are an expert heavy-duty vehicle mechanic AI.
Analyze the provided image and the user's description.
1. Identify visible damage.
2. Assess the severity and assign a priority (LOW, MEDIUM, HIGH, CRITICAL).
3. Suggest specific repair actions or parts needed.
If the image is unclear or not relevant, rely on the description but note the ambiguity.
Return valid JSON with these keys:
- "damageSummary": short description of the damage
- "estimatedPriority": one of "LOW", "MEDIUM", "HIGH", "CRITICAL"
- "suggestedActions": array of short repair actions or parts
No markdown."""

SUMMARY_SYSTEM_PROMPT = "You are a fleet maintenance planner. Be concise and practical."


def _strip_fences(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.partition("\n")[2].rsplit("```", 1)[0]
    return cleaned


def parse_analysis(raw: str) -> AIAnalysisResult:
    """Turn the model's JSON reply into a result, filling gaps with safe defaults."""
    try:
        data = json.loads(_strip_fences(raw or "{}"))
    except json.JSONDecodeError as exc:
        raise AIServiceError(details={"reason": f"unparseable reply: {exc}"})
    if not isinstance(data, dict):
        data = {}

    try:
        priority = RepairPriority(str(data.get("estimatedPriority", "")).upper())
    except ValueError:
        priority = RepairPriority.MEDIUM

    actions = data.get("suggestedActions")
    if not isinstance(actions, list) or not actions:
        actions = ["Inspect physically"]

    return AIAnalysisResult(
        damage_summary=data.get("damageSummary") or "Analysis complete.",
        estimated_priority=priority,
        suggested_actions=[str(action) for action in actions],
    )


class DamageAnalysisService:
    """Best-effort text generation; nothing in report persistence waits on it."""

    def __init__(self, client: Optional[OpenAI] = None, model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "DamageAnalysisService":
        client = None
        if settings.openai_api_key:
            client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        return cls(client=client, model=settings.openai_model)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def _chat(self, messages: list, max_tokens: int, json_mode: bool = False) -> str:
        kwargs = {"response_format": {"type": "json_object"}} if json_mode else {}
        resp = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=0.4,
            **kwargs,
        )
        return resp.choices[0].message.content or ""

    def analyze_damage(self, image_base64: str, description: str, unit_context: str) -> AIAnalysisResult:
        if not self.configured:
            raise AIServiceError("AI analysis is not configured (OPENAI_API_KEY missing).")

        user_content = [
            {"type": "text", "text": f'Unit: {unit_context}\nDescription: "{description}"'},
            {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"}},
        ]
        try:
            raw = self._chat(
                [
                    {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                    {"role": "user", "content": user_content},
                ],
                max_tokens=600,
                json_mode=True,
            )
        except OpenAIError as exc:
            log.error("Damage analysis failed: %s", exc)
            raise AIServiceError(details={"reason": str(exc)})
        return parse_analysis(raw)

    def summarize_reports(self, reports: list[str]) -> str:
        if not reports:
            return "No reports to summarize."
        if not self.configured:
            return "Error generating summary."

        prompt = "Summarize the following damage reports into a concise maintenance plan:\n" + "\n".join(reports)
        try:
            text = self._chat(
                [
                    {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=800,
            )
        except OpenAIError as exc:
            log.error("Report summary failed: %s", exc)
            return "Error generating summary."
        return text or "Could not generate summary."
