from pathlib import Path
from typing import Dict, List, Optional
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    project_name: str = "Clinical Evidence Engine"
    log_level: str = "INFO"

    # API contact email used in User-Agent headers for polite API access
    api_contact_email: str = Field(
        default="researcher@example.com",
        description="Email for API contact/User-Agent (update with your real email)"
    )

    pubmed_api_key: Optional[SecretStr] = Field(default=None, description="NCBI E-utilities API key")

    pubmed_base_url: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
    cochrane_base_url: str = "https://api.cochranelibrary.com/content/reviews"
    clinical_trials_base_url: str = "https://clinicaltrials.gov/api/v2/studies"
    nice_base_url: str = "https://www.nice.org.uk/api/guidance"
    aha_base_url: str = "https://professional.heart.org/api/statements"
    cdc_base_url: str = "https://www.cdc.gov/api/guidelines"

    # Minimum spacing between outbound calls of one source adapter
    pubmed_cooldown_seconds: float = Field(default=1.0, ge=0)
    cochrane_cooldown_seconds: float = Field(default=2.0, ge=0)
    clinical_trials_cooldown_seconds: float = Field(default=1.0, ge=0)
    guidelines_cooldown_seconds: float = Field(default=1.5, ge=0)

    http_timeout_seconds: float = Field(default=15.0, gt=0)
    default_max_results: int = Field(default=20, ge=1, le=100)

    cors_origins: List[str] = ["http://localhost:4200", "*"]

    # Inbound API limits (slowapi syntax)
    rate_limit_storage_uri: str = "memory://"
    default_rate_limit: str = "100/minute"
    search_rate_limit: str = "20/minute"
    detail_rate_limit: str = "60/minute"

    @property
    def API_CONTACT_EMAIL(self) -> str:
        return self.api_contact_email

    @property
    def PUBMED_API_KEY(self) -> Optional[str]:
        if self.pubmed_api_key:
            return self.pubmed_api_key.get_secret_value()
        return None

    @property
    def PROJECT_NAME(self) -> str:
        return self.project_name

    @property
    def USER_AGENT(self) -> str:
        return f"ClinicalEvidenceEngine/1.0 (mailto:{self.api_contact_email})"

    @property
    def GUIDELINE_PUBLISHER_URLS(self) -> Dict[str, str]:
        return {
            "NICE": self.nice_base_url,
            "AHA": self.aha_base_url,
            "CDC": self.cdc_base_url,
        }


settings = Settings()
