"""
Configuration settings for the block flow compiler.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Compiler settings with environment variable support."""

    # Application settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="detailed",
        description="Log format style (simple, detailed, json)"
    )

    # Linker settings
    block_id_strategy: str = Field(
        default="sequential",
        description="Identifier strategy used by the graph linker (sequential, uuid)"
    )
    block_id_prefix: str = Field(
        default="b",
        description="Prefix for identifiers generated by the sequential strategy"
    )

    # Lowering settings
    min_fork_paths: int = Field(
        default=2,
        description="Fork path count below which a degenerate fork warning is emitted"
    )

    # Canonicalization settings
    strict_canonicalization: bool = Field(
        default=False,
        description="Raise on unknown operations instead of emitting a warning"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Create global settings instance
settings = Settings()
