"""Configuration settings for Project Lens."""

# Load .env into os.environ before settings are read
from dotenv import load_dotenv

load_dotenv()

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Any, Dict, Literal


# Output limits can be lowered through config but never raised past this.
HARD_LIMIT_CEILING = 100


class Settings(BaseSettings):
    """Global settings for Project Lens.

    Settings can be overridden via environment variables with PROJECT_LENS_ prefix.
    Example: PROJECT_LENS_MAX_OUTPUT_LIMIT=25
    """

    # Output
    max_output_limit: int = Field(
        default=50,
        ge=1,
        le=HARD_LIMIT_CEILING,
        description="Largest number of items a limited projection may return"
    )

    # Extraction policy
    skip_malformed_items: bool = Field(
        default=True,
        description="Skip items that fail extraction instead of aborting the snapshot"
    )

    # Well-known custom field names
    status_field: str = Field(
        default="Status",
        description="Project field backing the status facet"
    )
    priority_field: str = Field(
        default="Priority",
        description="Project field backing the priority facet"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level for the CLI handler (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    model_config = {
        "env_prefix": "PROJECT_LENS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def facet_field_names(self) -> Dict[str, str]:
        """Map well-known field facets to the project field they read."""
        return {
            "status": self.status_field,
            "priority": self.priority_field,
        }


# Create singleton instance
settings = Settings()
