from __future__ import annotations

import json
import os
import random
from pathlib import Path
from typing import Any

import yaml

from briefs.errors import BriefGenerationError
from briefs.models import GeneratedBrief


SUPPORTED_LANGUAGES = ("fr", "en")

BRIEF_PROMPTS = {
    "fr": (
        "Tu es un directeur créatif qui génère des briefs professionnels pour des projets de design.\n"
        "Crée un brief fictif mais réaliste pour une entreprise qui a besoin de services créatifs.\n"
        "Utilise du markdown léger (**gras**) pour les éléments importants, sans listes à puces.\n"
        "Réponds strictement en JSON, en français:\n"
        "{\n"
        '  "companyName": "Nom de l\'entreprise (inventé, créatif)",\n'
        '  "companyDescription": "Ce que fait l\'entreprise, ce qui la distingue, son audience et l\'ambiance voulue (3-4 phrases)",\n'
        '  "jobDescription": "Le type de création demandée, le style, les couleurs et les préférences du client (3-4 phrases)",\n'
        '  "deadline": "Nombre de jours (entre 2 et 10 jours)"\n'
        "}\n"
        "Varie les secteurs et les types de projets."
    ),
    "en": (
        "You are a creative director writing professional briefs for design projects.\n"
        "Create a fictional but realistic brief for a company that needs creative work.\n"
        "Use light markdown (**bold**) for key elements, no bullet lists.\n"
        "Answer strictly in JSON, in English:\n"
        "{\n"
        '  "companyName": "Invented, creative company name",\n'
        '  "companyDescription": "What the company does, what sets it apart, its audience and the mood it wants (3-4 sentences)",\n'
        '  "jobDescription": "The deliverable, the style, the brand colors and client preferences (3-4 sentences)",\n'
        '  "deadline": "Number of days (between 2 and 10 days)"\n'
        "}\n"
        "Vary industries and project types."
    ),
}

USER_PROMPTS = {
    "fr": "Génère un nouveau brief créatif.",
    "en": "Generate a new creative brief.",
}


def normalize_language(language: str | None) -> str:
    lang = (language or "").strip().lower()
    return lang if lang in SUPPORTED_LANGUAGES else "fr"


def _brief_from_payload(payload: Any) -> GeneratedBrief:
    if not isinstance(payload, dict):
        raise BriefGenerationError("Generator payload must be a JSON object")
    fields = {}
    for key in ("companyName", "companyDescription", "jobDescription", "deadline"):
        value = str(payload.get(key) or "").strip()
        if not value:
            raise BriefGenerationError(f"Generator payload is missing '{key}'")
        fields[key] = value
    return GeneratedBrief(
        company_name=fields["companyName"],
        company_description=fields["companyDescription"],
        job_description=fields["jobDescription"],
        deadline_label=fields["deadline"],
    )


def load_fallback_briefs(path: str | Path) -> dict[str, list[GeneratedBrief]]:
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"Fallback brief file not found: {p}")
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise RuntimeError("Fallback brief file must contain a top-level mapping")
    out: dict[str, list[GeneratedBrief]] = {}
    for lang in SUPPORTED_LANGUAGES:
        entries = raw.get(lang) if isinstance(raw.get(lang), list) else []
        out[lang] = [_brief_from_payload(e) for e in entries if isinstance(e, dict)]
    return out


class BriefGenerator:
    def __init__(
        self,
        *,
        client,
        openai_model: str,
        fallback_briefs: dict[str, list[GeneratedBrief]] | None = None,
        offline_fallback: bool = False,
        temperature: float = 0.9,
    ) -> None:
        self.client = client
        self.openai_model = openai_model
        self.fallback_briefs = fallback_briefs or {}
        self.offline_fallback = bool(offline_fallback)
        self.temperature = float(temperature)

    def _fallback(self, language: str) -> GeneratedBrief:
        pool = self.fallback_briefs.get(language) or self.fallback_briefs.get("fr") or []
        if not pool:
            raise BriefGenerationError("No fallback briefs available")
        return random.choice(pool)

    def generate(self, language: str = "fr") -> GeneratedBrief:
        lang = normalize_language(language)
        if self.client is None:
            if self.offline_fallback:
                print(f"[Generator] no OpenAI client; using fallback brief (lang={lang})")
                return self._fallback(lang)
            raise BriefGenerationError("OpenAI client not initialized")

        try:
            resp = self.client.chat.completions.create(
                model=self.openai_model,
                messages=[
                    {"role": "system", "content": BRIEF_PROMPTS[lang]},
                    {"role": "user", "content": USER_PROMPTS[lang]},
                ],
                response_format={"type": "json_object"},
                temperature=self.temperature,
                max_tokens=500,
            )
            text = (resp.choices[0].message.content or "").strip()
        except Exception as e:
            raise BriefGenerationError(f"OpenAI request failed: {e}") from e

        if not text:
            raise BriefGenerationError("No response from OpenAI")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise BriefGenerationError(f"OpenAI returned invalid JSON: {e}") from e
        brief = _brief_from_payload(payload)
        print(f"[Generator] brief generated company={brief.company_name!r} lang={lang}")
        return brief


def default_fallback_briefs_path() -> str:
    # This resolves to repo-root/config when running from source checkout.
    here = Path(__file__).resolve().parents[1]
    return os.path.join(here, "config", "fallback_briefs.yml")
