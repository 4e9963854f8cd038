from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CourseConfig(BaseModel):
    """Course content location and the namespace used for persisted keys."""

    title: str = Field("Some Basic Concepts of Chemistry")
    content_path: Path = Field(Path("data/sample_course.json"))
    storage_prefix: str = Field("chemistry_course", min_length=1)


class NavigationConfig(BaseModel):
    """Thresholds for turning wheel/touch/keyboard input into single steps."""

    cooldown_ms: float = Field(300, ge=0, description="Suppression window after an accepted wheel/touch step.")
    wheel_threshold: float = Field(0.0, ge=0, description="Minimum |deltaY| for a wheel event to count.")
    touch_min_distance_px: float = Field(50, ge=0)


class AutoplayConfig(BaseModel):
    """Timer settings for forward stepping."""

    default_speed_ms: int = Field(3000, ge=1)
    min_speed_ms: int = Field(1000, ge=1)
    max_speed_ms: int = Field(8000, ge=1)
    speed_step_ms: int = Field(500, ge=1)

    @model_validator(mode="after")
    def check_speed_bounds(self) -> "AutoplayConfig":
        """Keep the default speed inside the adjustable range."""
        if self.min_speed_ms > self.max_speed_ms:
            raise ValueError("min_speed_ms must not exceed max_speed_ms")
        if not self.min_speed_ms <= self.default_speed_ms <= self.max_speed_ms:
            raise ValueError("default_speed_ms must lie within [min_speed_ms, max_speed_ms]")
        return self


class ContextConfig(BaseModel):
    """How much dialogue history accompanies a question."""

    history_turns: int = Field(5, ge=0)


class ModelConfig(BaseModel):
    """Chat model used by the question-answering collaborator."""

    name: str = Field("gpt-4-turbo-preview", description="LLM identifier.")
    temperature: float = Field(0.7, ge=0, le=2)
    max_output_tokens: int = Field(500, ge=16)


class PathsConfig(BaseModel):
    """Filesystem layout for the key-value store and logs."""

    store_path: Path = Field(Path("data/processed/progress_store.json"))
    logs_dir: Path = Field(Path("logs"))


class LoggingConfig(BaseModel):
    """Controls for logging output and format."""

    model_config = ConfigDict(populate_by_name=True)

    level: str = Field("INFO")
    use_json: bool = Field(False, alias="json")


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("Dialogue Tutor")
    course: CourseConfig = Field(default_factory=CourseConfig)
    navigation: NavigationConfig = Field(default_factory=NavigationConfig)
    autoplay: AutoplayConfig = Field(default_factory=AutoplayConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
