"""Configuration management."""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env file from current working directory
load_dotenv()

DEFAULT_BEDROCK_MODEL = "anthropic.claude-3-5-haiku-20241022-v1:0"


@dataclass
class Config:
    """Application configuration."""

    database_path: Path = Path("./parasight.db")
    bedrock_model: str = DEFAULT_BEDROCK_MODEL
    bedrock_region: str = "us-east-1"
    rate_limit_per_second: float = 2.0
    fetch_timeout_seconds: int = 15
    arxiv_timeout_seconds: int = 12
    embed_timeout_seconds: int = 10
    redirect_timeout_seconds: int = 5
    max_redirects: int = 5
    llm_timeout_seconds: int = 20
    max_content_length: int = 1_000_000
    share_note: str = "Shared from iPhone"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        A missing file is treated as empty. Environment variables take
        precedence over YAML values:
        - DATABASE_PATH: Path to SQLite database file
        - BEDROCK_MODEL: Bedrock model id used for classification
        - AWS_REGION: Bedrock region
        """
        path = Path(path)
        data: dict = {}
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

        database_path = os.environ.get("DATABASE_PATH") or data.get(
            "database_path", "./parasight.db"
        )
        bedrock_model = os.environ.get("BEDROCK_MODEL") or data.get(
            "bedrock_model", DEFAULT_BEDROCK_MODEL
        )
        bedrock_region = os.environ.get("AWS_REGION") or data.get(
            "bedrock_region", "us-east-1"
        )

        return cls(
            database_path=Path(database_path).expanduser(),
            bedrock_model=bedrock_model,
            bedrock_region=bedrock_region,
            rate_limit_per_second=data.get("rate_limit_per_second", 2.0),
            fetch_timeout_seconds=data.get("fetch_timeout_seconds", 15),
            arxiv_timeout_seconds=data.get("arxiv_timeout_seconds", 12),
            embed_timeout_seconds=data.get("embed_timeout_seconds", 10),
            redirect_timeout_seconds=data.get("redirect_timeout_seconds", 5),
            max_redirects=data.get("max_redirects", 5),
            llm_timeout_seconds=data.get("llm_timeout_seconds", 20),
            max_content_length=data.get("max_content_length", 1_000_000),
            share_note=data.get("share_note", "Shared from iPhone"),
        )
