"""ICP lead scoring: weighted dimensions with a fit gate."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from llm.base_client import BaseLLMClient
from protocol.codec import tolerant_loads
from schemas.scoring import (
    DimensionAssessment,
    DimensionScore,
    LeadInput,
    LeadScore,
    ScoreBreakdown,
)
from utils.exceptions import ParseFailure

logger = logging.getLogger(__name__)

# Weights sum to 100
DIMENSION_WEIGHTS: Dict[str, int] = {
    "fit": 35,
    "budget": 20,
    "need": 20,
    "urgency": 15,
    "engagement": 10,
}
FIT_GATE_EXPONENT = 1.5
STRONG_RATIO = 0.7
WEAK_RATIO = 0.3
DEFAULT_REASON = "Moderate match across all dimensions."
NO_INFORMATION = "No relevant information stated."


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a person would: 0.5 always goes up."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def fit_gate(fit_sub_score: float) -> float:
    """Super-linear multiplier that suppresses the total when fit is weak."""
    ratio = max(0.0, min(fit_sub_score, 100.0)) / 100.0
    return ratio ** FIT_GATE_EXPONENT


def build_reason(breakdown: ScoreBreakdown) -> str:
    """Summarize strong (>= 70% of max) and weak (<= 30%) dimensions."""
    strong = [name for name, dim in breakdown.items() if dim.ratio >= STRONG_RATIO]
    weak = [name for name, dim in breakdown.items() if dim.ratio <= WEAK_RATIO]

    clauses = []
    if strong:
        clauses.append(f"Strong: {', '.join(strong)}.")
    if weak:
        clauses.append(f"Weak: {', '.join(weak)}.")
    return " ".join(clauses) if clauses else DEFAULT_REASON


def compose_lead_score(
    session_user_id: str,
    assessments: Dict[str, DimensionAssessment]
) -> LeadScore:
    """
    Combine dimension sub-scores into a gated 0-100 lead score.

    Each dimension contributes ``round(sub/100 * weight, 1)`` points; the
    sum is multiplied by ``(fit/100) ** 1.5`` and rounded. A missing
    dimension counts as 0.

    Args:
        session_user_id: Lead identifier
        assessments: Sub-score (0-100) and detail per dimension name

    Returns:
        LeadScore with reason and breakdown
    """
    dimensions = {}
    for name, weight in DIMENSION_WEIGHTS.items():
        assessment = assessments.get(name) or DimensionAssessment(detail=NO_INFORMATION)
        dimensions[name] = DimensionScore(
            points=round_half_up(assessment.score / 100.0 * weight, 1),
            max=weight,
            detail=assessment.detail
        )
    breakdown = ScoreBreakdown(**dimensions)

    raw_total = round_half_up(sum(dim.points for _, dim in breakdown.items()), 1)
    fit_score = (assessments.get("fit") or DimensionAssessment()).score
    score = int(round_half_up(raw_total * fit_gate(fit_score)))

    return LeadScore(
        session_user_id=session_user_id,
        score=max(0, min(score, 100)),
        reason=build_reason(breakdown),
        breakdown=breakdown
    )


class ICPScorer:
    """
    Scores leads against a free-text Ideal Customer Profile.

    One generation call per lead returns five 0-100 sub-scores:
    - fit: thematic overlap between the ICP's world and the lead's
    - budget: spending capacity relative to what the ICP implies
    - need: an explicit problem or desire the ICP's offering addresses
    - urgency: buying-intent language versus passive curiosity
    - engagement: specificity of what the lead disclosed
    """

    SYSTEM_PROMPT = """You score sales leads against an Ideal Customer Profile (ICP).

Score each dimension from 0 to 100 and justify it in one sentence:
- fit: how closely the lead's stated world overlaps the world the ICP implies.
  Judge the theme and domain, not literal keyword matches.
- budget: how well the lead's stated spending capacity matches what the ICP implies.
- need: whether the lead states a problem or desire the ICP's offering would address.
- urgency: explicit intent to buy or act soon, as opposed to passive curiosity.
- engagement: how specific and detailed the lead's disclosures are.

Rules:
- Use only what the lead explicitly stated. Do not infer or estimate.
- A dimension with no relevant information scores 0.

## Response Format
Respond with valid JSON only:
{
  "fit": {"score": 0-100, "detail": "one sentence"},
  "budget": {"score": 0-100, "detail": "one sentence"},
  "need": {"score": 0-100, "detail": "one sentence"},
  "urgency": {"score": 0-100, "detail": "one sentence"},
  "engagement": {"score": 0-100, "detail": "one sentence"}
}"""

    def __init__(self, llm_client: BaseLLMClient):
        """
        Initialize scorer.

        Args:
            llm_client: Text-generation client for dimension assessment
        """
        self.llm_client = llm_client

    def assess(self, icp_description: str, lead_insight: str) -> Dict[str, DimensionAssessment]:
        """
        Ask the model for per-dimension sub-scores.

        Returns all-zero assessments when the lead has no insight text or
        the model output cannot be parsed.
        """
        if not lead_insight.strip():
            return self._empty_assessment(NO_INFORMATION)

        prompt = f"""## Ideal Customer Profile
{icp_description}

## What The Lead Stated
{lead_insight}

Score this lead and respond with JSON."""

        try:
            content = self.llm_client.generate(
                prompt,
                length=600,
                system=self.SYSTEM_PROMPT,
                temperature=0.1
            )
            parsed = tolerant_loads(content)
            if not isinstance(parsed, dict):
                raise ParseFailure("Dimension scores must be a JSON object")
            return {
                name: self._parse_dimension(parsed.get(name))
                for name in DIMENSION_WEIGHTS
            }

        except ParseFailure as e:
            logger.error(f"Failed to parse ICP dimension scores: {e}")
            return self._empty_assessment("Could not assess this lead.")

        except Exception as e:
            logger.error(f"ICP scoring error: {e}")
            return self._empty_assessment("Could not assess this lead.")

    def score(self, icp_description: str, lead: LeadInput) -> LeadScore:
        """Score one lead."""
        assessments = self.assess(icp_description, lead.insight)
        result = compose_lead_score(lead.session_user_id, assessments)
        logger.info(f"ICP score for {lead.session_user_id}: {result.score} ({result.reason})")
        return result

    def score_batch(self, icp_description: str, leads: List[LeadInput]) -> List[LeadScore]:
        """Score every lead, highest score first."""
        scores = [self.score(icp_description, lead) for lead in leads]
        return sorted(scores, key=lambda s: s.score, reverse=True)

    @staticmethod
    def _parse_dimension(value: Optional[object]) -> DimensionAssessment:
        if isinstance(value, (int, float)):
            return DimensionAssessment(score=_clamp(value), detail="")
        if not isinstance(value, dict):
            return DimensionAssessment(detail=NO_INFORMATION)

        raw = value.get("score", 0)
        try:
            sub_score = _clamp(float(raw))
        except (TypeError, ValueError):
            sub_score = 0.0
        detail = value.get("detail") or value.get("reason") or ""
        return DimensionAssessment(score=sub_score, detail=str(detail))

    @staticmethod
    def _empty_assessment(detail: str) -> Dict[str, DimensionAssessment]:
        return {name: DimensionAssessment(detail=detail) for name in DIMENSION_WEIGHTS}


def _clamp(value: float) -> float:
    return max(0.0, min(float(value), 100.0))
