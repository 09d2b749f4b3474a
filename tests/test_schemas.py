"""Tests for planforge.schemas — coercion, id filling, placeholders and normalization."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from planforge.schemas.fallback import synthesize_fallback
from planforge.schemas.models import MISSING, SchemaKind, coerce_value, model_for
from planforge.schemas.normalizer import normalize, normalize_with_status

CONFORMING_PROJECT = {
    "title": "T",
    "description": "D",
    "coreFeatures": [{"id": "f1", "name": "N", "description": "d"}],
    "suggestedFeatures": [],
}


# ── Coercion primitives ─────────────────────────────────────────────────


class TestCoerceValue:
    def test_none_is_missing(self):
        assert coerce_value(str, None) is MISSING

    def test_str_from_number_and_bool(self):
        assert coerce_value(str, 3) == "3"
        assert coerce_value(str, True) == "true"

    def test_str_from_word_list(self):
        assert coerce_value(str, ["My", "App"]) == "My, App"

    def test_str_from_object_dropped(self):
        assert coerce_value(str, {"a": 1}) is MISSING

    def test_int_from_non_finite_float_dropped(self):
        assert coerce_value(int, float("inf")) is MISSING
        assert coerce_value(int, float("nan")) is MISSING
        assert coerce_value(int, 2.9) == 2

    def test_int_from_text(self):
        assert coerce_value(int, "Sprint 3") == 3
        assert coerce_value(int, "none") is MISSING

    def test_scalar_wrapped_in_list(self):
        assert coerce_value(list[str], "one") == ["one"]

    def test_list_of_str_from_objects(self):
        assert coerce_value(list[str], [{"name": "a"}, {"title": "b"}, {"x": 1}]) == ["a", "b"]

    def test_dict_from_text(self):
        assert coerce_value(dict[str, int], "n/a") == {"overview": "n/a"}


# ── Models ──────────────────────────────────────────────────────────────


class TestProjectStructure:
    def test_defaults(self):
        data, modified = normalize({"title": "X"}, SchemaKind.PROJECT_STRUCTURE)
        assert modified
        assert data == {
            "title": "X",
            "description": "No description provided.",
            "coreFeatures": [],
            "suggestedFeatures": [],
        }

    def test_conforming_unchanged(self):
        data, modified = normalize(dict(CONFORMING_PROJECT), "project_structure")
        assert not modified
        assert data == CONFORMING_PROJECT

    def test_extra_keys_preserved(self):
        value = {**CONFORMING_PROJECT, "techStack": ["py"]}
        data, modified = normalize(value, SchemaKind.PROJECT_STRUCTURE)
        assert not modified
        assert data["techStack"] == ["py"]

    def test_feature_names_become_features(self):
        data, _ = normalize({"coreFeatures": ["A", "B"]}, SchemaKind.PROJECT_STRUCTURE)
        assert data["coreFeatures"] == [
            {"id": "core_feature_1", "name": "A", "description": "No description provided."},
            {"id": "core_feature_2", "name": "B", "description": "No description provided."},
        ]

    def test_single_feature_wrapped(self):
        data, _ = normalize({"suggestedFeatures": "Login"}, SchemaKind.PROJECT_STRUCTURE)
        assert data["suggestedFeatures"][0]["id"] == "suggested_feature_1"
        assert data["suggestedFeatures"][0]["name"] == "Login"

    def test_feature_title_used_as_name(self):
        data, _ = normalize({"coreFeatures": [{"title": "Search"}]}, SchemaKind.PROJECT_STRUCTURE)
        feature = data["coreFeatures"][0]
        assert feature["name"] == "Search"
        assert feature["title"] == "Search"

    def test_unnamed_feature_numbered(self):
        data, _ = normalize({"coreFeatures": [{"description": "x"}]}, SchemaKind.PROJECT_STRUCTURE)
        assert data["coreFeatures"][0]["name"] == "Feature 1"

    def test_title_word_list_joined(self):
        data, _ = normalize({"title": ["My", "App"]}, SchemaKind.PROJECT_STRUCTURE)
        assert data["title"] == "My, App"


class TestSprintPlan:
    def test_bare_track_and_tasks(self):
        data, modified = normalize(
            {"developerSprintPlan": [{"tasks": ["Setup repo", {"title": "CI"}]}]},
            SchemaKind.SPRINT_PLAN,
        )
        assert modified
        sprint = data["developerSprintPlan"]["sprints"][0]
        assert sprint["name"] == "Sprint 1"
        assert sprint["sprintNumber"] == 1
        assert sprint["duration"] == "2 weeks"
        assert [t["id"] for t in sprint["tasks"]] == ["dev-s1-t1", "dev-s1-t2"]
        assert [t["title"] for t in sprint["tasks"]] == ["Setup repo", "CI"]
        assert data["aiSprintPlan"] == {"sprints": []}
        assert data["projectAnalysis"]["actualSprints"] == 1

    def test_sprint_number_from_text(self):
        data, _ = normalize(
            {"aiSprintPlan": {"sprints": [{"sprintNumber": "3", "tasks": [{"name": "Deploy"}]}]}},
            SchemaKind.SPRINT_PLAN,
        )
        task = data["aiSprintPlan"]["sprints"][0]["tasks"][0]
        assert task["id"] == "ai-s3-t1"
        assert task["title"] == "Deploy"

    def test_analysis_defaults(self):
        data, _ = normalize({}, SchemaKind.SPRINT_PLAN)
        assert data["projectAnalysis"]["complexityLevel"] == "Moderate"
        assert data["projectAnalysis"]["actualSprints"] == 0


class TestCostEstimation:
    def test_shape_coercion(self):
        data, _ = normalize(
            {
                "overview": "Cheap",
                "environmentCosts": "n/a",
                "assumptions": "one",
                "costCategories": [{"description": "x"}],
            },
            SchemaKind.COST_ESTIMATION,
        )
        assert data["overview"] == {"summary": "Cheap", "majorCostDrivers": []}
        assert data["environmentCosts"] == {"overview": "n/a"}
        assert data["assumptions"] == ["one"]
        assert data["costCategories"][0]["name"] == "Category 1"
        assert data["optimizationStrategies"] == []


class TestDocumentation:
    def test_bare_sections_wrapped(self):
        data, _ = normalize(
            {"projectOverview": {"title": "T"}, "technicalArchitecture": "text"},
            SchemaKind.DOCUMENTATION,
        )
        doc = data["documentation"]
        assert doc["projectOverview"]["title"] == "T"
        assert doc["technicalArchitecture"] == {"overview": "text"}
        assert doc["apiReference"] == {"overview": "", "authentication": "", "endpoints": []}
        assert doc["userGuide"] == {}

    def test_model_for(self):
        assert model_for("documentation").__name__ == "DocumentationTree"


# ── Normalizer edge cases ───────────────────────────────────────────────


class TestNormalize:
    def test_list_reduced_to_first_object(self):
        data, modified = normalize(["noise", dict(CONFORMING_PROJECT)], SchemaKind.PROJECT_STRUCTURE)
        assert modified
        assert data == CONFORMING_PROJECT

    def test_non_object_gets_defaults(self):
        data, modified = normalize(42, SchemaKind.PROJECT_STRUCTURE)
        assert modified
        assert data["title"] == "Untitled Project"

    def test_validation_error_falls_back(self, monkeypatch):
        class Strict(BaseModel):
            n: int

        monkeypatch.setattr("planforge.schemas.normalizer.model_for", lambda kind: Strict)
        data, modified = normalize({"n": "abc"}, SchemaKind.COST_ESTIMATION)
        assert modified
        assert data == synthesize_fallback(SchemaKind.COST_ESTIMATION)

    def test_invalid_field_dropped_not_whole_object(self, monkeypatch):
        class Strict(BaseModel):
            n: int = 0
            name: str = ""

        monkeypatch.setattr("planforge.schemas.normalizer.model_for", lambda kind: Strict)
        data, modified, placeholder = normalize_with_status({"n": "abc", "name": "kept"}, SchemaKind.COST_ESTIMATION)
        assert data == {"n": 0, "name": "kept"}
        assert modified
        assert not placeholder

    def test_invalid_list_entry_dropped(self, monkeypatch):
        class Item(BaseModel):
            n: int

        class Strict(BaseModel):
            items: list[Item] = []

        monkeypatch.setattr("planforge.schemas.normalizer.model_for", lambda kind: Strict)
        value = {"items": [{"n": 1}, {"n": "x"}, {"n": 3}]}
        data, _, placeholder = normalize_with_status(value, SchemaKind.COST_ESTIMATION)
        assert data == {"items": [{"n": 1}, {"n": 3}]}
        assert not placeholder
        assert value["items"][1] == {"n": "x"}

    def test_placeholder_reported(self, monkeypatch):
        class Strict(BaseModel):
            n: int

        monkeypatch.setattr("planforge.schemas.normalizer.model_for", lambda kind: Strict)
        _, _, placeholder = normalize_with_status({"n": "abc"}, SchemaKind.COST_ESTIMATION)
        assert placeholder

    def test_non_finite_sprint_number_defaulted(self):
        data, _ = normalize(
            {"developerSprintPlan": {"sprints": [{"name": "Real", "sprintNumber": float("nan")}]}},
            SchemaKind.SPRINT_PLAN,
        )
        sprint = data["developerSprintPlan"]["sprints"][0]
        assert sprint["name"] == "Real"
        assert sprint["sprintNumber"] == 1


# ── Placeholders ────────────────────────────────────────────────────────


class TestFallback:
    @pytest.mark.parametrize("kind", list(SchemaKind))
    def test_placeholder_already_conforms(self, kind):
        placeholder = synthesize_fallback(kind)
        data, modified = normalize(placeholder, kind)
        assert not modified
        assert data == synthesize_fallback(kind)

    @pytest.mark.parametrize("kind", list(SchemaKind))
    def test_deterministic_fresh_copies(self, kind):
        first = synthesize_fallback(kind)
        second = synthesize_fallback(kind)
        assert first == second
        first.clear()
        assert synthesize_fallback(kind) == second

    def test_project_feature_counts(self):
        placeholder = synthesize_fallback("project_structure")
        assert len(placeholder["coreFeatures"]) == 5
        assert len(placeholder["suggestedFeatures"]) == 8

    def test_sprint_tracks(self):
        placeholder = synthesize_fallback(SchemaKind.SPRINT_PLAN)
        for track, prefix in (("developerSprintPlan", "dev"), ("aiSprintPlan", "ai")):
            sprints = placeholder[track]["sprints"]
            assert len(sprints) == 3
            assert sprints[1]["tasks"][0]["id"] == f"{prefix}-s2-t1"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            synthesize_fallback("slides")
