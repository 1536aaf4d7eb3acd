"""Configuration models for vibesync.yml."""

from pydantic import BaseModel, Field


class CollectionsConfig(BaseModel):
    """Names of the remote collections."""

    projects: str = Field(default="projects", min_length=1)
    tasks: str = Field(default="tasks", min_length=1)
    moodboard_items: str = Field(default="moodboardItems", min_length=1)


class MoodboardConfig(BaseModel):
    """Moodboard placement settings."""

    # New items are scattered uniformly over [0, scatter_size) on both axes
    scatter_size: float = Field(default=500.0, gt=0)


class VibesyncConfig(BaseModel):
    """Root configuration model for vibesync.yml."""

    version: int = 1
    collections: CollectionsConfig = Field(default_factory=CollectionsConfig)
    moodboard: MoodboardConfig = Field(default_factory=MoodboardConfig)

    @classmethod
    def default(cls) -> "VibesyncConfig":
        """Return default configuration."""
        return cls()
