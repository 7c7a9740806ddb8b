"""Tests for clearance step template configuration."""

from pathlib import Path

import pytest
import yaml

from campusconnect.core.templates import (
    StepTemplate,
    ClearanceTemplates,
    parse_step_template,
    parse_step_list,
    parse_templates,
    load_templates,
)


class TestStepTemplate:
    """Tests for single step parsing."""

    def test_parse_fixed_department(self):
        step = parse_step_template(
            {"key": "library", "title": "Library", "department": "Library", "approver_role": "faculty"}
        )
        assert step.key == "library"
        assert step.department == "Library"
        assert step.resolve_department("Physics") == "Library"

    def test_title_defaults_from_key(self):
        step = parse_step_template({"key": "finance", "department": "Finance", "approver_role": "admin"})
        assert step.title == "Finance"

    def test_home_department_resolves_to_student(self):
        step = parse_step_template({"key": "hod", "home_department": True, "approver_role": "faculty"})
        assert step.resolve_department("Physics") == "Physics"

    def test_home_department_needs_student_department(self):
        step = StepTemplate(key="hod", title="HoD", approver_role="faculty", home_department=True)
        with pytest.raises(ValueError):
            step.resolve_department(None)

    @pytest.mark.parametrize("entry", [
        {"title": "No key", "department": "Library", "approver_role": "faculty"},
        {"key": "library", "department": "Library"},
        {"key": "library", "approver_role": "faculty"},
        "library",
    ])
    def test_invalid_entries(self, entry):
        with pytest.raises(ValueError):
            parse_step_template(entry)


class TestStepList:
    """Tests for step chains."""

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            parse_step_list("default", [])

    def test_duplicate_keys_rejected(self):
        steps = [
            {"key": "library", "department": "Library", "approver_role": "faculty"},
            {"key": "library", "department": "Main Library", "approver_role": "faculty"},
        ]
        with pytest.raises(ValueError, match="duplicate"):
            parse_step_list("default", steps)


class TestParseTemplates:
    """Tests for the full template document."""

    def test_builtin_default(self):
        templates = parse_templates({})
        assert [s.key for s in templates.default] == ["library", "finance", "hod"]
        assert [s.approver_role for s in templates.default] == ["faculty", "admin", "faculty"]
        assert templates.default[2].home_department
        assert templates.default[1].department == "Finance"

    def test_department_override(self):
        templates = parse_templates({
            "departments": {
                "Law": [{"key": "bar", "title": "Bar Council", "department": "Law Office", "approver_role": "clearance_officer"}],
            },
        })
        assert [s.key for s in templates.for_department("Law")] == ["bar"]
        assert [s.key for s in templates.for_department("Physics")] == ["library", "finance", "hod"]
        assert [s.key for s in templates.for_department(None)] == ["library", "finance", "hod"]

    def test_empty_templates_object(self):
        assert ClearanceTemplates().for_department("Physics") == []


class TestLoadTemplates:
    """Tests for loading templates from YAML files."""

    def test_no_path_uses_builtin(self):
        templates = load_templates(None)
        assert [s.title for s in templates.default] == ["Library", "Finance", "HoD"]

    def test_builtin_finance_step_follows_configured_department(self):
        templates = load_templates(None, finance_department="Accounts")
        finance = next(s for s in templates.default if s.key == "finance")
        assert finance.department == "Accounts"
        assert finance.title == "Finance"

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text(yaml.safe_dump({
            "default": [
                {"key": "library", "title": "Library", "department": "Library", "approver_role": "faculty"},
                {"key": "hostel", "title": "Hostel", "department": "Hostel Office", "approver_role": "clearance_officer"},
            ],
        }))

        templates = load_templates(str(path))
        assert [s.key for s in templates.default] == ["library", "hostel"]

    def test_env_var_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FINANCE_DEPT", "Bursary")
        path = tmp_path / "templates.yaml"
        path.write_text(
            "default:\n"
            "  - key: finance\n"
            "    department: ${FINANCE_DEPT}\n"
            "    approver_role: admin\n"
        )

        templates = load_templates(str(path))
        assert templates.default[0].department == "Bursary"

    def test_empty_file_uses_builtin_default(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text("")

        templates = load_templates(str(path))
        assert [s.key for s in templates.default] == ["library", "finance", "hod"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_templates(str(tmp_path / "missing.yaml"))

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(TypeError):
            load_templates(str(path))

    def test_example_file_is_valid(self):
        example = Path(__file__).resolve().parents[3] / "config" / "clearance_templates.example.yaml"
        templates = load_templates(str(example))
        assert [s.key for s in templates.for_department("Physics")] == ["library", "lab", "finance", "hod"]
