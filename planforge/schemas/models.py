"""Domain schemas for the four generated artefacts.

Models accept whatever a model emitted and coerce it into shape: a scalar
where a list belongs is wrapped, a list of words where a string belongs is
joined, an entry given as a bare string becomes ``{"name": ...}``, and a
value of the wrong shape that cannot be coerced is dropped so the field
default applies.  Unknown keys are kept (``extra="allow"``) and come back
out of ``model_dump(by_alias=True)`` untouched.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, ClassVar, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, model_validator

_NO_DESCRIPTION = "No description provided."
_INT = re.compile(r"-?\d+")


class SchemaKind(str, Enum):
    PROJECT_STRUCTURE = "project_structure"
    SPRINT_PLAN = "sprint_plan"
    COST_ESTIMATION = "cost_estimation"
    DOCUMENTATION = "documentation"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def coerce_value(annotation: Any, value: Any) -> Any:
    """Best-effort coercion of *value* towards *annotation*; ``MISSING`` drops it."""
    if value is None:
        return MISSING
    origin = get_origin(annotation)

    if annotation is str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return str(value).lower()
        if _is_scalar(value):
            return str(value)
        if isinstance(value, list) and value and all(_is_scalar(v) for v in value):
            return ", ".join(str(v) for v in value)
        return MISSING

    if annotation is int:
        if isinstance(value, bool):
            return MISSING
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else MISSING
        if isinstance(value, str):
            m = _INT.search(value)
            return int(m.group()) if m else MISSING
        return MISSING

    if origin is list:
        args = get_args(annotation)
        item_type = args[0] if args else Any
        items = value if isinstance(value, list) else [value]
        coerced = (_coerce_item(item_type, item) for item in items)
        return [item for item in coerced if item is not MISSING]

    if origin is dict:
        if isinstance(value, dict):
            return value
        if isinstance(value, str) and value.strip():
            return {"overview": value}
        return MISSING

    if isinstance(annotation, type) and issubclass(annotation, DomainModel):
        if isinstance(value, dict):
            return value
        if annotation.scalar_field and _is_scalar(value):
            return {annotation.scalar_field: str(value)}
        if annotation.list_field and isinstance(value, list):
            return {annotation.list_field: value}
        return MISSING

    return value


def _coerce_item(item_type: Any, item: Any) -> Any:
    if item_type is str and isinstance(item, dict):
        for key in ("name", "title", "description"):
            if isinstance(item.get(key), str):
                return item[key]
        return MISSING
    if item_type is Any:
        return MISSING if item is None else item
    return coerce_value(item_type, item)


class DomainModel(BaseModel):
    """Lenient base: coerces field shapes before pydantic validates them."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    # Field a bare scalar entry is promoted into, e.g. "Login" -> {"name": "Login"}
    scalar_field: ClassVar[str | None] = None
    # Field a bare list is promoted into, e.g. [...] -> {"sprints": [...]}
    list_field: ClassVar[str | None] = None
    # Alternate keys a model sometimes uses for a field, e.g. "title" for "name"
    alternate_keys: ClassVar[dict[str, tuple[str, ...]]] = {}

    @model_validator(mode="before")
    @classmethod
    def _coerce_shapes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            data = coerce_value(cls, data)
            if data is MISSING:
                return {}
        data = dict(data)
        for name, info in cls.model_fields.items():
            key = info.alias or name
            if key not in data and name in data:
                key = name
            if key not in data:
                for alternate in cls.alternate_keys.get(key, ()):
                    if _is_scalar(data.get(alternate)):
                        data[key] = data[alternate]
                        break
                else:
                    continue
            value = coerce_value(info.annotation, data[key])
            if value is MISSING:
                del data[key]
            else:
                data[key] = value
        return data


def _field(default: Any = MISSING, *, alias: str | None = None, factory: Any = None) -> Any:
    if factory is not None:
        return Field(default_factory=factory, alias=alias)
    return Field(default=default, alias=alias)


# ── Project structure ───────────────────────────────────────────────────


class Feature(DomainModel):
    scalar_field: ClassVar[str | None] = "name"
    alternate_keys: ClassVar[dict[str, tuple[str, ...]]] = {"name": ("title",)}

    id: str = ""
    name: str = ""
    description: str = _NO_DESCRIPTION


def _fill_entries(entries: list[Any], id_pattern: str | None, name_attr: str, name_pattern: str) -> None:
    for number, entry in enumerate(entries, start=1):
        if id_pattern and not entry.id:
            entry.id = id_pattern.format(number)
        if not getattr(entry, name_attr):
            setattr(entry, name_attr, name_pattern.format(number))


class ProjectStructure(DomainModel):
    title: str = "Untitled Project"
    description: str = _NO_DESCRIPTION
    core_features: list[Feature] = _field(alias="coreFeatures", factory=list)
    suggested_features: list[Feature] = _field(alias="suggestedFeatures", factory=list)

    @model_validator(mode="after")
    def _fill_features(self) -> ProjectStructure:
        _fill_entries(self.core_features, "core_feature_{}", "name", "Feature {}")
        _fill_entries(self.suggested_features, "suggested_feature_{}", "name", "Feature {}")
        return self


# ── Sprint plan ─────────────────────────────────────────────────────────


class SprintTask(DomainModel):
    scalar_field: ClassVar[str | None] = "title"
    alternate_keys: ClassVar[dict[str, tuple[str, ...]]] = {"title": ("name",)}

    id: str = ""
    title: str = ""
    description: str = _NO_DESCRIPTION
    dependencies: list[str] = _field(factory=list)


class Sprint(DomainModel):
    scalar_field: ClassVar[str | None] = "name"
    alternate_keys: ClassVar[dict[str, tuple[str, ...]]] = {"name": ("title",)}

    name: str = ""
    duration: str = "2 weeks"
    sprint_number: int = _field(0, alias="sprintNumber")
    focus: str = ""
    features_implemented: list[str] = _field(alias="featuresImplemented", factory=list)
    objectives: list[str] = _field(factory=list)
    tasks: list[SprintTask] = _field(factory=list)


class SprintTrack(DomainModel):
    list_field: ClassVar[str | None] = "sprints"

    sprints: list[Sprint] = _field(factory=list)


class ProjectAnalysis(DomainModel):
    complexity_level: str = _field("Moderate", alias="complexityLevel")
    total_features: int = _field(0, alias="totalFeatures")
    suggested_sprints: int = _field(0, alias="suggestedSprints")
    actual_sprints: int = _field(0, alias="actualSprints")
    reasoning: str = ""


def _fill_track(track: SprintTrack, prefix: str) -> None:
    for number, sprint in enumerate(track.sprints, start=1):
        if not sprint.sprint_number:
            sprint.sprint_number = number
        if not sprint.name:
            sprint.name = f"Sprint {number}"
        _fill_entries(sprint.tasks, f"{prefix}-s{sprint.sprint_number}-t{{}}", "title", "Task {}")


class SprintPlan(DomainModel):
    project_analysis: ProjectAnalysis = _field(alias="projectAnalysis", factory=ProjectAnalysis)
    developer_sprint_plan: SprintTrack = _field(alias="developerSprintPlan", factory=SprintTrack)
    ai_sprint_plan: SprintTrack = _field(alias="aiSprintPlan", factory=SprintTrack)

    @model_validator(mode="after")
    def _fill_sprints(self) -> SprintPlan:
        _fill_track(self.developer_sprint_plan, "dev")
        _fill_track(self.ai_sprint_plan, "ai")
        if not self.project_analysis.actual_sprints:
            self.project_analysis.actual_sprints = len(self.developer_sprint_plan.sprints)
        return self


# ── Cost estimation ─────────────────────────────────────────────────────


class CostOverview(DomainModel):
    scalar_field: ClassVar[str | None] = "summary"

    summary: str = "Cost overview unavailable."
    major_cost_drivers: list[Any] = _field(alias="majorCostDrivers", factory=list)


class CostCategory(DomainModel):
    scalar_field: ClassVar[str | None] = "name"

    name: str = ""
    description: str = _NO_DESCRIPTION


class OptimizationStrategy(DomainModel):
    scalar_field: ClassVar[str | None] = "name"

    name: str = ""
    description: str = _NO_DESCRIPTION


class CostEstimation(DomainModel):
    overview: CostOverview = _field(factory=CostOverview)
    cost_categories: list[CostCategory] = _field(alias="costCategories", factory=list)
    optimization_strategies: list[OptimizationStrategy] = _field(alias="optimizationStrategies", factory=list)
    environment_costs: dict[str, Any] = _field(alias="environmentCosts", factory=dict)
    assumptions: list[Any] = _field(factory=list)
    recommendations: list[Any] = _field(factory=list)

    @model_validator(mode="after")
    def _fill_names(self) -> CostEstimation:
        _fill_entries(self.cost_categories, None, "name", "Category {}")
        _fill_entries(self.optimization_strategies, None, "name", "Strategy {}")
        return self


# ── Documentation ───────────────────────────────────────────────────────


class DocFeature(DomainModel):
    scalar_field: ClassVar[str | None] = "name"
    alternate_keys: ClassVar[dict[str, tuple[str, ...]]] = {"name": ("title",)}

    name: str = ""
    description: str = _NO_DESCRIPTION


class ProjectOverview(DomainModel):
    scalar_field: ClassVar[str | None] = "description"

    title: str = "Project Documentation"
    description: str = _NO_DESCRIPTION
    business_objectives: list[str] = _field(alias="businessObjectives", factory=list)
    target_audience: list[str] = _field(alias="targetAudience", factory=list)
    key_features: list[DocFeature] = _field(alias="keyFeatures", factory=list)


class ApiReference(DomainModel):
    scalar_field: ClassVar[str | None] = "overview"

    overview: str = ""
    authentication: str = ""
    endpoints: list[Any] = _field(factory=list)


class Documentation(DomainModel):
    project_overview: ProjectOverview = _field(alias="projectOverview", factory=ProjectOverview)
    technical_architecture: dict[str, Any] = _field(alias="technicalArchitecture", factory=dict)
    developer_guide: dict[str, Any] = _field(alias="developerGuide", factory=dict)
    user_guide: dict[str, Any] = _field(alias="userGuide", factory=dict)
    operations_guide: dict[str, Any] = _field(alias="operationsGuide", factory=dict)
    api_reference: ApiReference = _field(alias="apiReference", factory=ApiReference)


SECTION_KEYS = (
    "projectOverview",
    "technicalArchitecture",
    "developerGuide",
    "userGuide",
    "operationsGuide",
    "apiReference",
)


class DocumentationTree(DomainModel):
    documentation: Documentation = _field(factory=Documentation)

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_sections(cls, data: Any) -> Any:
        # Sections emitted at the top level, without the "documentation" wrapper
        if isinstance(data, dict) and "documentation" not in data and any(k in data for k in SECTION_KEYS):
            return {"documentation": data}
        return data


SCHEMAS: dict[SchemaKind, type[DomainModel]] = {
    SchemaKind.PROJECT_STRUCTURE: ProjectStructure,
    SchemaKind.SPRINT_PLAN: SprintPlan,
    SchemaKind.COST_ESTIMATION: CostEstimation,
    SchemaKind.DOCUMENTATION: DocumentationTree,
}


def model_for(kind: SchemaKind | str) -> type[DomainModel]:
    return SCHEMAS[SchemaKind(kind)]
