"""Clearance step templates.

Loads the per-department approval chains from YAML. A template lists the
steps every new clearance request gets; departments may override the default
chain. Supports ``$VAR`` environment expansion in string values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


@dataclass
class StepTemplate:
    """One step of an approval chain."""

    key: str
    title: str
    approver_role: str
    department: Optional[str] = None
    home_department: bool = False

    def resolve_department(self, student_department: Optional[str]) -> str:
        """Department that owns this step for a given student."""
        if self.home_department:
            if not student_department:
                raise ValueError(f"Step '{self.key}' needs the student's home department")
            return student_department
        return self.department


@dataclass
class ClearanceTemplates:
    """Default chain plus department-specific overrides."""

    default: List[StepTemplate] = field(default_factory=list)
    departments: Dict[str, List[StepTemplate]] = field(default_factory=dict)

    def for_department(self, department: Optional[str]) -> List[StepTemplate]:
        if department and department in self.departments:
            return self.departments[department]
        return self.default


def default_template_config(finance_department: str = "Finance") -> Dict[str, Any]:
    """Built-in Library / Finance / HoD chain.

    The finance step belongs to ``finance_department``, the department any
    admin may act on.
    """
    return {
        "default": [
            {"key": "library", "title": "Library", "department": "Library", "approver_role": "faculty"},
            {"key": "finance", "title": "Finance", "department": finance_department, "approver_role": "admin"},
            {"key": "hod", "title": "HoD", "home_department": True, "approver_role": "faculty"},
        ],
    }


def parse_step_template(step_dict: Dict[str, Any]) -> StepTemplate:
    """Parse a single step entry.

    Raises:
        ValueError: If the entry is missing its key, role or department
    """
    if not isinstance(step_dict, dict):
        raise ValueError(f"Step template must be a mapping, got {type(step_dict).__name__}")

    key = step_dict.get("key")
    approver_role = step_dict.get("approver_role")
    if not key or not approver_role:
        raise ValueError(f"Step template requires 'key' and 'approver_role': {step_dict}")

    home_department = bool(step_dict.get("home_department", False))
    department = step_dict.get("department")
    if not home_department and not department:
        raise ValueError(f"Step '{key}' needs a 'department' or 'home_department: true'")

    return StepTemplate(
        key=key,
        title=step_dict.get("title", key.title()),
        approver_role=approver_role,
        department=department,
        home_department=home_department,
    )


def parse_step_list(name: str, steps: Any) -> List[StepTemplate]:
    if not isinstance(steps, list) or not steps:
        raise ValueError(f"Template '{name}' must be a non-empty list of steps")

    parsed = [parse_step_template(s) for s in steps]
    keys = [s.key for s in parsed]
    if len(keys) != len(set(keys)):
        raise ValueError(f"Template '{name}' has duplicate step keys: {keys}")
    return parsed


def parse_templates(config_dict: Dict[str, Any], finance_department: str = "Finance") -> ClearanceTemplates:
    """Parse the full template document. A missing ``default`` falls back to the built-in chain."""
    default = config_dict.get("default", default_template_config(finance_department)["default"])
    default = parse_step_list("default", default)

    departments = {}
    for department, steps in (config_dict.get("departments") or {}).items():
        departments[department] = parse_step_list(department, steps)

    return ClearanceTemplates(default=default, departments=departments)


def load_templates(config_path: Optional[str] = None, finance_department: str = "Finance") -> ClearanceTemplates:
    """Load clearance templates from YAML, or the built-in chain when no path is given.

    Raises:
        FileNotFoundError: If the template file doesn't exist
        yaml.YAMLError: If the file is invalid YAML
        TypeError: If the document root is not a mapping
    """
    if not config_path:
        return parse_templates(default_template_config(finance_department))

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Clearance template file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Template root must be a mapping, got {type(config).__name__}"
        )

    return parse_templates(_expand_env_vars(config), finance_department)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj
