"""Structured output schema for classifier responses."""

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..storage.models import Bucket, Para
from .base import Classified, ClassificationFailed, ClassificationResult

CODE_FENCE = re.compile(r"^```(?:json)?\s*\n(.*?)\n?```$", re.DOTALL)


class ParaAssignment(BaseModel):
    """Bucket assignment. Only the bucket is required."""

    model_config = ConfigDict(extra="ignore")

    bucket: Bucket
    name: Optional[str] = None
    reason: Optional[str] = None


class ClassificationResponse(BaseModel):
    """Structured output expected from the model."""

    model_config = ConfigDict(extra="ignore")

    summary: str = Field(..., description="One-sentence summary of the key insight")
    tags: List[str] = Field(..., description="Relevant tags for the link")
    subcategory: Optional[str] = Field(
        ..., description="Emoji-prefixed grouping label, or null"
    )
    para: ParaAssignment


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block, if present."""
    text = text.strip()
    match = CODE_FENCE.match(text)
    return match.group(1).strip() if match else text


def decode_classification(text: str) -> ClassificationResult:
    """Decode raw model output into Classified or ClassificationFailed."""
    try:
        response = ClassificationResponse.model_validate_json(strip_code_fence(text))
    except ValidationError as e:
        # Invalid JSON lands here too, as a json_invalid error
        return ClassificationFailed(
            reason=f"Malformed classifier output: {e.error_count()} error(s)"
        )

    subcategory = (response.subcategory or "").strip() or None
    tags = [tag.strip() for tag in response.tags if tag.strip()]
    return Classified(
        summary=response.summary.strip(),
        tags=tags,
        subcategory=subcategory,
        para=Para(
            bucket=response.para.bucket,
            name=response.para.name,
            reason=response.para.reason,
        ),
    )
