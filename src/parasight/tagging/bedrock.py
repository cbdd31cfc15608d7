"""Link classification using Claude via AWS Bedrock."""

import asyncio
import json
import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig

from ..storage.models import LinkRecord
from .base import (
    FALLBACK_GROUP_NAME,
    BaseClassifier,
    ClassificationFailed,
    ClassificationResult,
    ClassifierNotConfigured,
)
from .schema import decode_classification

logger = logging.getLogger(__name__)

CLASSIFICATION_PROMPT = """You are a PARA classification system for web links. PARA stands for Projects, Areas, Resources, and Archive.

Given a link with its title and context, classify it into exactly ONE bucket:

**Project**: Time-bounded outcome with specific steps and a clear end goal. Examples:
- "Tutorial: Build a React App in 30 Days" -> Project, subcategory "🚀 Learning React"
- "Workshop registration: AI Bootcamp 2025" -> Project, subcategory "🎓 AI Bootcamp"

**Area**: Ongoing responsibility or sphere of activity with no end date. Examples:
- "Best practices for team management" -> Area, subcategory "👥 Management"
- "Health and wellness resources" -> Area, subcategory "❤️ Health"

**Resource**: Reference material, learning content, or inspiration. Examples:
- GitHub repos and tools -> Resource, subcategory "🛠️ Tools"
- Research papers -> Resource, subcategory "🤖 AI Research"
- Articles and blog posts -> Resource, subcategory "📖 Learning"

**Archive**: No future value, completed, or no longer relevant.

Give the subcategory an emoji prefix so related items group together.

Return ONLY valid JSON, no other text, in this exact format:
{
  "summary": "One high-signal sentence (8-16 words) stating the core insight; never mention 'abstract', 'arXiv', or paper ids",
  "tags": ["tag1", "tag2"],
  "subcategory": "emoji + category name, or null",
  "para": {
    "bucket": "Project|Area|Resource|Archive",
    "name": "short label or null",
    "reason": "1-2 sentence explanation or null"
  }
}"""

GROUP_NAME_PROMPT = """Given these two related links, generate a short (2-4 word) group name with a relevant emoji prefix that describes what they have in common:

Link 1: {title_a}
{description_a}

Link 2: {title_b}
{description_b}

Return ONLY the group name with emoji, nothing else. Examples: "🤖 AI Tools", "⚡ Productivity Apps", "❤️ Health Resources\""""


def _link_label(link: LinkRecord) -> str:
    return link.title or (link.para.name if link.para else None) or "Untitled"


class BedrockClassifier(BaseClassifier):
    """Classify links and name groups with Claude via AWS Bedrock."""

    def __init__(
        self,
        model_id: str,
        region: str = "us-east-1",
        max_tokens: int = 512,
        timeout_seconds: int = 20,
        client: Any = None,
    ):
        self.model_id = model_id
        self.region = region
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self._client: Any = client

    @property
    def client(self) -> Any:
        """Lazy initialization of Bedrock client."""
        if self._client is None:
            if not self.model_id:
                raise ClassifierNotConfigured("No Bedrock model id configured")

            session = boto3.Session(region_name=self.region)
            if session.get_credentials() is None:
                raise ClassifierNotConfigured("No AWS credentials available for Bedrock")

            # One attempt per call: the pipeline treats a timeout as failure
            self._client = session.client(
                "bedrock-runtime",
                config=BotoConfig(
                    connect_timeout=5,
                    read_timeout=self.timeout_seconds,
                    retries={"total_max_attempts": 1, "mode": "standard"},
                ),
            )
        return self._client

    @property
    def model_name(self) -> str:
        return self.model_id

    async def classify(
        self,
        url: str,
        title: str | None,
        description: str | None,
        note: str | None = None,
    ) -> ClassificationResult:
        """Classify a link into a bucket with tags and a subcategory."""
        prompt = self._build_prompt(url, title, description, note)

        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, self._invoke_model, prompt, 0.3)
        except ClassifierNotConfigured as e:
            logger.warning(f"Classifier not configured, skipping {url}: {e}")
            return ClassificationFailed(reason=str(e), unconfigured=True)
        except Exception as e:
            logger.error(f"Classification failed for {url}: {e}")
            return ClassificationFailed(reason=str(e))

        result = decode_classification(response)
        if isinstance(result, ClassificationFailed):
            logger.error(f"Classification failed for {url}: {result.reason}")
            logger.debug(f"Response was: {response}")
        return result

    async def name_group(self, link_a: LinkRecord, link_b: LinkRecord) -> str:
        """Ask the model for a short emoji-prefixed label for two links."""
        prompt = GROUP_NAME_PROMPT.format(
            title_a=_link_label(link_a),
            description_a=f"Description: {link_a.description}" if link_a.description else "",
            title_b=_link_label(link_b),
            description_b=f"Description: {link_b.description}" if link_b.description else "",
        )

        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, self._invoke_model, prompt, 0.3, 100)
        except Exception as e:
            logger.error(f"Group naming failed: {e}")
            return FALLBACK_GROUP_NAME

        group_name = response.replace('"', "").replace("'", "").strip()
        group_name = group_name.splitlines()[0].strip() if group_name else ""
        if not group_name:
            return FALLBACK_GROUP_NAME

        logger.info(f"Generated group name: {group_name!r}")
        return group_name

    def _build_prompt(
        self, url: str, title: str | None, description: str | None, note: str | None
    ) -> str:
        """Build the classification prompt for a link."""
        lines = [
            CLASSIFICATION_PROMPT,
            "",
            "Link to classify:",
            f"URL: {url}",
            f"Title: {title or 'No title'}",
            f"Description: {description or 'No description'}",
        ]
        if note:
            lines.append(f"User's note: {note}")
        return "\n".join(lines)

    def _invoke_model(
        self, prompt: str, temperature: float, max_tokens: int | None = None
    ) -> str:
        """Invoke the Bedrock model synchronously."""
        body = json.dumps(
            {
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": max_tokens or self.max_tokens,
                "temperature": temperature,
                "messages": [{"role": "user", "content": prompt}],
            }
        )

        response = self.client.invoke_model(
            modelId=self.model_id,
            body=body,
            contentType="application/json",
            accept="application/json",
        )

        response_body = json.loads(response["body"].read())
        return response_body["content"][0]["text"].strip()
