from typing import Any

from pydantic import BaseModel, Field


class MilestoneOption(BaseModel):
    value: str
    label: str


class RowColors(BaseModel):
    planned: str = "#fbdd2b"
    actual: str = "#1f3cd1"
    planned_opacity: float = Field(default=0.2, ge=0, le=1)
    actual_opacity: float = Field(default=0.2, ge=0, le=1)
    sub_subtask_opacity: float = Field(default=0.15, ge=0, le=1)


class CategoryColors(BaseModel):
    dev: str = "#10b981"
    test: str = "#3b82f6"
    infra: str = "#eab308"
    support: str = "#f97316"


class CategoryOpacity(BaseModel):
    dev: float = Field(default=1.0, ge=0, le=1)
    test: float = Field(default=1.0, ge=0, le=1)
    infra: float = Field(default=1.0, ge=0, le=1)
    support: float = Field(default=1.0, ge=0, le=1)


DEFAULT_MILESTONE_OPTIONS = [
    MilestoneOption(value="planned", label="PLANNED"),
    MilestoneOption(value="closed", label="CLOSED"),
    MilestoneOption(value="dev-complete", label="Dev Complete"),
    MilestoneOption(value="dev-merge-done", label="Dev Merge Done"),
    MilestoneOption(value="staging-merge-done", label="Staging Merge Done"),
    MilestoneOption(value="prod-merge-done", label="Prod Merge Done"),
    MilestoneOption(value="in-progress", label="In progress"),
]


class TrackerConfig(BaseModel):
    milestone_options: list[MilestoneOption] = Field(
        default_factory=lambda: list(DEFAULT_MILESTONE_OPTIONS)
    )
    row_colors: RowColors = Field(default_factory=RowColors)
    category_colors: CategoryColors = Field(default_factory=CategoryColors)
    category_opacity: CategoryOpacity = Field(default_factory=CategoryOpacity)


class ConfigValueUpdate(BaseModel):
    config_value: Any
