"""Configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

from lead_signal_ai.errors import ConfigurationError

# Load .env: try package dir then project root
_base = Path(__file__).resolve().parent
for _env_path in (_base / ".env", _base.parent / ".env"):
    if load_dotenv(_env_path):
        break
load_dotenv()  # also allow process env

# API keys – never hardcode
PERPLEXITY_API_KEY: str = os.getenv("PERPLEXITY_API_KEY", "")
SERPAPI_KEY: str = os.getenv("SERPAPI_KEY", "")
HUNTER_API_KEY: str = os.getenv("HUNTER_API_KEY", "")

# LLM provider (OpenAI-compatible chat completions)
PERPLEXITY_BASE_URL: str = "https://api.perplexity.ai"
# Priority order: the first model that answers wins
PERPLEXITY_MODELS: list = [
    m.strip() for m in os.getenv("PERPLEXITY_MODELS", "sonar,sonar-pro").split(",") if m.strip()
]
LLM_TEMPERATURE: float = 0.2
LLM_TOP_P: float = 0.9
LLM_MAX_TOKENS: int = 1000

# HTTP settings
HTTP_TIMEOUT_SECONDS: float = 30.0

# Result size bounds (inbound "limit")
LIMIT_DEFAULT: int = 200
LIMIT_MIN: int = 10
LIMIT_MAX: int = 500

# Query variations
MAX_QUERY_VARIATIONS: int = 12
JOB_DESCRIPTION_SLICE: int = 300  # chars of the JD embedded in a query
LEADS_PER_QUERY: int = 25

# Concurrency
PROVIDER_CONCURRENCY: int = 4  # Max in-flight provider calls per run

# Two-phase discover/enrich
MAX_COMPANIES: int = 50
ENRICH_THROTTLE_EVERY: int = 5
ENRICH_THROTTLE_SECONDS: float = 1.0
SERP_RESULTS_PER_QUERY: int = 20
HUNTER_CONTACTS_PER_DOMAIN: int = 10

DEFAULT_STRATEGY: str = os.getenv("LEAD_STRATEGY", "llm")

# Credential env var per provider
PROVIDER_CREDENTIALS: dict = {
    "perplexity": "PERPLEXITY_API_KEY",
    "serpapi": "SERPAPI_KEY",
    "hunter": "HUNTER_API_KEY",
}


class PipelineConfig(BaseModel):
    """Explicit configuration handed to the orchestrator for one run."""

    perplexity_api_key: str = ""
    serpapi_key: str = ""
    hunter_api_key: str = ""
    perplexity_models: list[str] = list(PERPLEXITY_MODELS)
    http_timeout: float = HTTP_TIMEOUT_SECONDS
    concurrency: int = PROVIDER_CONCURRENCY
    max_queries: int = MAX_QUERY_VARIATIONS
    max_companies: int = MAX_COMPANIES
    throttle_every: int = ENRICH_THROTTLE_EVERY
    throttle_seconds: float = ENRICH_THROTTLE_SECONDS

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        return cls(
            perplexity_api_key=PERPLEXITY_API_KEY,
            serpapi_key=SERPAPI_KEY,
            hunter_api_key=HUNTER_API_KEY,
        )

    def credential(self, provider: str) -> str:
        return {
            "perplexity": self.perplexity_api_key,
            "serpapi": self.serpapi_key,
            "hunter": self.hunter_api_key,
        }.get(provider, "")

    def require(self, *providers: str) -> None:
        """Raise ConfigurationError listing every provider whose credential is missing."""
        missing = [PROVIDER_CREDENTIALS.get(p, p) for p in providers if not self.credential(p)]
        if missing:
            raise ConfigurationError(f"Missing {', '.join(missing)} secret")
