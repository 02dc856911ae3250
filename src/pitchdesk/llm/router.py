from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError as SchemaError

from pitchdesk.config import Settings, get_settings
from pitchdesk.errors import ExternalServiceFailure
from pitchdesk.llm.prompts import (
    FOLLOW_UP_PROMPT,
    FOLLOW_UP_SYSTEM,
    HUMAN_WRITING_RULES,
    JOB_ANALYSIS_MIMIC_BLOCK,
    JOB_ANALYSIS_PROMPT,
    JOB_ANALYSIS_SYSTEM,
    PROFILE_EXTRACTION_PROMPT,
    PROFILE_EXTRACTION_SYSTEM,
    REGENERATE_PROPOSAL_PROMPT,
    REGENERATE_PROPOSAL_SYSTEM,
    REGENERATE_SAMPLES_MIMIC,
    REGENERATE_SAMPLES_REFERENCE,
    TONE_DESCRIPTIONS,
)
from pitchdesk.llm.providers import LLMProvider, ProviderPool
from pitchdesk.types import AnalysisResult, ExtractedProfile, JobInput, Message, SavedJob

logger = logging.getLogger(__name__)


class LLMRouter:
    """Builds the four generation requests and routes them to a provider."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.pool = ProviderPool(self.settings)

    def extract_profile_details(self, bio_text: str) -> ExtractedProfile:
        data = self._call_json(
            task="extract",
            system=PROFILE_EXTRACTION_SYSTEM,
            prompt=PROFILE_EXTRACTION_PROMPT.format(bio_text=bio_text),
            model=self.settings.openai_model_fast,
        )
        try:
            return ExtractedProfile.model_validate(data)
        except SchemaError as exc:
            raise ExternalServiceFailure("profile extraction", "malformed response") from exc

    def analyze_job_posting(self, job_input: JobInput) -> AnalysisResult:
        tone = job_input.preferred_tone or "professional"
        profile = job_input.active_profile
        mimic_block = ""
        if tone == "like_myself":
            mimic_block = JOB_ANALYSIS_MIMIC_BLOCK.format(samples=job_input.previous_proposals or "N/A")

        system = JOB_ANALYSIS_SYSTEM.format(
            tone_description=TONE_DESCRIPTIONS[tone],
            mimic_block=mimic_block,
            writing_rules=HUMAN_WRITING_RULES,
            headline=(profile.profile_headline if profile else None) or "N/A",
            bio=(profile.upwork_profile_text if profile else None) or "N/A",
            skills=", ".join(profile.your_profile_skills) if profile and profile.your_profile_skills else "N/A",
        )
        prompt = JOB_ANALYSIS_PROMPT.format(
            request_json=job_input.model_dump_json(exclude_none=True),
        )
        data = self._call_json(
            task="analysis",
            system=system,
            prompt=prompt,
            model=self.settings.openai_model_analysis,
        )
        try:
            return AnalysisResult.model_validate(data)
        except SchemaError as exc:
            raise ExternalServiceFailure("job analysis", "malformed response") from exc

    def regenerate_proposal(
        self,
        job: SavedJob,
        tone: str,
        bio: str | None = None,
        samples: str | None = None,
    ) -> str:
        if tone not in TONE_DESCRIPTIONS:
            raise ValueError(f"unsupported tone '{tone}'")

        if tone == "like_myself":
            samples_block = REGENERATE_SAMPLES_MIMIC.format(
                samples=samples or "No samples provided, use a professional human tone."
            )
        else:
            samples_block = REGENERATE_SAMPLES_REFERENCE.format(samples=samples or "N/A")

        system = REGENERATE_PROPOSAL_SYSTEM.format(
            tone=tone,
            tone_description=TONE_DESCRIPTIONS[tone],
            writing_rules=HUMAN_WRITING_RULES,
            bio=bio or "Pro Freelancer",
            samples_block=samples_block,
        )
        prompt = REGENERATE_PROPOSAL_PROMPT.format(
            job_title=job.job_title,
            job_excerpt=job.raw_text[: self.settings.proposal_job_excerpt_chars],
        )
        text = self._call_text(
            task="writer",
            system=system,
            prompt=prompt,
            model=self.settings.openai_model_fast,
        )
        return strip_bold(text)

    def suggest_follow_up(self, job: SavedJob) -> str:
        prompt = FOLLOW_UP_PROMPT.format(
            job_title=job.job_title,
            conversation=render_conversation(job.messages),
        )
        text = self._call_text(
            task="coach",
            system=FOLLOW_UP_SYSTEM,
            prompt=prompt,
            model=self.settings.openai_model_fast,
        )
        return strip_bold(text)

    def _provider_for(self, task: str) -> tuple[LLMProvider, LLMProvider]:
        provider_name = {
            "analysis": self.settings.llm_router_analysis_provider,
            "extract": self.settings.llm_router_extract_provider,
            "writer": self.settings.llm_router_writer_provider,
            "coach": self.settings.llm_router_coach_provider,
        }.get(task, self.settings.llm_router_default)

        fallback = "openai" if provider_name == "local" else "local"
        return self.pool.get(provider_name), self.pool.get(fallback)

    def _model_for(self, provider: LLMProvider, model: str) -> str:
        if provider.config.name == "local":
            return self.settings.local_llm_model
        return model

    def _enabled(self, provider: LLMProvider) -> bool:
        if provider.config.name == "openai":
            return bool(self.settings.openai_api_key)
        if provider.config.name == "local":
            return self.settings.local_llm_enabled
        return True

    def _call_json(self, *, task: str, system: str, prompt: str, model: str) -> dict[str, Any]:
        for provider in self._provider_for(task):
            if not self._enabled(provider):
                continue
            try:
                data = provider.complete_json(
                    model=self._model_for(provider, model), prompt=prompt, system=system
                )
            except Exception as exc:
                logger.warning("LLM JSON call failed provider=%s task=%s error=%s", provider.config.name, task, exc)
                continue
            if data:
                return data
            logger.warning("LLM JSON call returned no object provider=%s task=%s", provider.config.name, task)
        raise ExternalServiceFailure(task, "no provider returned a JSON object")

    def _call_text(self, *, task: str, system: str, prompt: str, model: str) -> str:
        for provider in self._provider_for(task):
            if not self._enabled(provider):
                continue
            try:
                text = provider.complete_text(
                    model=self._model_for(provider, model), prompt=prompt, system=system
                ).content
            except Exception as exc:
                logger.warning("LLM text call failed provider=%s task=%s error=%s", provider.config.name, task, exc)
                continue
            if text.strip():
                return text.strip()
            logger.warning("LLM text call returned empty text provider=%s task=%s", provider.config.name, task)
        raise ExternalServiceFailure(task, "no provider returned text")


def render_conversation(messages: list[Message]) -> str:
    lines = []
    for message in messages:
        speaker = "Client" if message.role == "client" else "Me"
        lines.append(f"{speaker}: {message.text}")
    return "\n".join(lines)


def strip_bold(text: str) -> str:
    return text.replace("**", "").strip()


def describe_request(job_input: JobInput) -> str:
    """Compact one-line summary of an analysis request, for log lines."""
    payload = {
        "profile": job_input.active_profile.label if job_input.active_profile else None,
        "tone": job_input.preferred_tone,
        "links": len(job_input.portfolio_links),
        "chars": len(job_input.raw_text),
    }
    return json.dumps(payload, ensure_ascii=True)
