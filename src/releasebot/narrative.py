"""Narrative release-note sections generated from the changelog bullets."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import openai

from .config import DEFAULT_MODEL

if TYPE_CHECKING:
    from openai import OpenAI

logger = logging.getLogger(__name__)

NARRATIVE_SECTIONS = (
    "Major features",
    "Risks",
    "Impacts",
    "Disabled feature flags",
    "Known issues",
    "Out of scope",
    "Other notes",
)

SYSTEM_PROMPT = "You write concise, product-facing release notes in Markdown only."


def fallback_narrative() -> str:
    """Every section with a single "None" bullet."""
    return "\n\n".join(f"## {name}:\n- None" for name in NARRATIVE_SECTIONS)


def build_prompt(changelog: str) -> str:
    section_lines = "\n".join(f"- ## {name}:" for name in NARRATIVE_SECTIONS)
    return (
        "We have this list of changes (as Markdown bullets):\n\n"
        f"{changelog}\n\n"
        'Create the following sections, each concise and plain (no emojis), even if "None":\n'
        f"{section_lines}\n\n"
        "Rules:\n"
        "- Keep bullets short (~120 chars).\n"
        '- If unsure, use "None".\n'
        "- Do not invent specifics not implied by titles."
    )


class NarrativeGenerator:
    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self._client = client or openai.OpenAI(api_key=api_key)

    def generate(self, changelog: str) -> str:
        completion = self._client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(changelog)},
            ],
        )
        if not completion.choices:
            return ""
        content = completion.choices[0].message.content
        return (content or "").strip()


def generate_narrative(
    changelog: str,
    *,
    api_key: str,
    enabled: bool = True,
    model: str = DEFAULT_MODEL,
    client: OpenAI | None = None,
) -> str:
    """Return AI-written sections, or the static skeleton when disabled or failing."""
    if not enabled or not api_key:
        return fallback_narrative()
    try:
        text = NarrativeGenerator(api_key, model=model, client=client).generate(changelog)
    except openai.OpenAIError as exc:
        logger.warning("Narrative generation failed, using empty sections: %s", exc)
        return fallback_narrative()
    if not text:
        logger.warning("Narrative generation returned no content, using empty sections")
        return fallback_narrative()
    return text


__all__ = [
    "NARRATIVE_SECTIONS",
    "NarrativeGenerator",
    "build_prompt",
    "fallback_narrative",
    "generate_narrative",
]
