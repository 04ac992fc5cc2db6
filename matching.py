"""Resume-to-job match scoring through an OpenAI chat model."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
FALLBACK_SCORE = 70

SYSTEM_PROMPT = (
    "You are an expert HR assistant that analyzes resumes against job descriptions. "
    "Provide a match percentage (0-100) and a brief explanation of the match."
)

USER_PROMPT = """Analyze this resume against the job description and provide a match percentage (0-100) and brief explanation. Format your response as JSON with "score" (number) and "explanation" (string) fields.

RESUME:
{resume}

JOB DESCRIPTION:
{job}
"""

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)
_SCORE = re.compile(r"score[\"\s:]+(\d+)", re.IGNORECASE)


class MatchError(Exception):
    pass


@dataclass
class MatchResult:
    score: int
    explanation: str


def _clamp(score) -> int:
    try:
        value = int(round(float(score)))
    except (TypeError, ValueError):
        return FALLBACK_SCORE
    return max(0, min(100, value))


def parse_match_reply(text: str) -> MatchResult:
    """Read ``{score, explanation}`` out of a model reply that may not be strict JSON."""
    text = (text or "").strip()
    block = _JSON_BLOCK.search(text)
    if not block:
        return MatchResult(score=FALLBACK_SCORE, explanation=text)

    try:
        data = json.loads(block.group(0))
    except ValueError:
        data = None

    if isinstance(data, dict):
        return MatchResult(
            score=_clamp(data.get("score", FALLBACK_SCORE)),
            explanation=str(data.get("explanation") or "Analysis complete"),
        )

    score = _SCORE.search(text)
    explanation = _JSON_BLOCK.sub("", text).strip()
    return MatchResult(
        score=_clamp(score.group(1)) if score else FALLBACK_SCORE,
        explanation=explanation or "Analysis complete",
    )


class ResumeMatcher:
    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, client=None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise MatchError("Resume matching is not configured (OPENAI_API_KEY)")
            from openai import OpenAI

            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def match(self, resume_text: str, job_details: str) -> MatchResult:
        if not resume_text or not job_details:
            raise MatchError("Resume text and job details are required")

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": USER_PROMPT.format(resume=resume_text, job=job_details)},
                ],
                temperature=0.7,
            )
        except MatchError:
            raise
        except Exception as exc:
            logger.exception("Resume matching call failed")
            raise MatchError("Failed to process resume matching") from exc

        reply = completion.choices[0].message.content or ""
        result = parse_match_reply(reply)
        logger.info("Resume match scored %d", result.score)
        return result
