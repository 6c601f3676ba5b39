"""
Data-fetch tools exposed to the assistant model.

Each tool fetches from the catalog service and shrinks the upstream payload so
that tool results stay small enough for the completion context.
"""

import json
import sys
from dataclasses import dataclass
from typing import Any, Callable

from catalog_client import CatalogClient, CatalogError
from requirements import RequirementType

MAX_ITEMS = 15
MAX_OVERVIEW_LENGTH = 120
MAX_INSTRUCTORS = 1
MAX_REQUIREMENT_GROUPS = 8
MAX_REQUIREMENT_OPTIONS = 4
MAX_BETWEEN_CLAUSES = 2
MAX_CLAUSE_COURSES = 3

ELLIPSIS = "..."

_GROUP_TYPE_LABELS = {
    RequirementType.THEME: "Theme",
    RequirementType.UNRESTRICTED: "Unrestricted",
}


class ToolArgumentError(ValueError):
    """Raised when a tool call names an unknown tool or carries unusable arguments."""


def _pick(payload: dict, lower: str, upper: str, default=None):
    if lower in payload:
        return payload[lower]
    return payload.get(upper, default)


# ── Payload simplification ────────────────────────────────────────────────────

def clamp_overview(text) -> str:
    if not text:
        return ""
    text = str(text)
    if len(text) <= MAX_OVERVIEW_LENGTH:
        return text
    return text[:MAX_OVERVIEW_LENGTH] + ELLIPSIS


def simplify_course(course: dict) -> dict:
    instructors = _pick(course, "instructors", "Instructors", [])
    return {
        "title": _pick(course, "title", "Title") or "",
        "number": _pick(course, "number", "Number") or "",
        "subject": _pick(course, "subject", "Subject") or "",
        "overview": clamp_overview(_pick(course, "overview", "Overview")),
        "instructors": instructors[:MAX_INSTRUCTORS] if isinstance(instructors, list) else [],
        "quarter": _pick(course, "quarter", "Quarter"),
    }


def simplify_courses(payload) -> list[dict]:
    """First MAX_ITEMS courses, original order, trimmed to the fields the model needs."""
    if not isinstance(payload, list):
        return []
    return [simplify_course(c) for c in payload[:MAX_ITEMS] if isinstance(c, dict)]


def _generic_group_courses(requirements: list) -> list[str]:
    seen: dict[str, None] = {}
    for option in requirements[:MAX_REQUIREMENT_OPTIONS]:
        if not isinstance(option, dict):
            continue
        between = _pick(option, "between", "Between")
        if not isinstance(between, list):
            continue
        for clause in between[:MAX_BETWEEN_CLAUSES]:
            if not isinstance(clause, dict):
                continue
            courses = _pick(clause, "courses", "Courses")
            if not isinstance(courses, list):
                continue
            for course in courses[:MAX_CLAUSE_COURSES]:
                seen.setdefault(str(course), None)
    return list(seen)


def simplify_major_requirements(payload) -> dict | None:
    if not payload or not isinstance(payload, dict):
        return None

    result = {
        "major": _pick(payload, "major", "Major"),
        "isEngineering": _pick(payload, "isEngineering", "IsEngineering"),
        "requirements": [],
    }

    groups = _pick(payload, "allreqs", "AllRequirements")
    if not isinstance(groups, list):
        return result

    for group in groups[:MAX_REQUIREMENT_GROUPS]:
        if not isinstance(group, dict):
            continue
        req_type = _pick(group, "requirementType", "RequirementType")
        if req_type == RequirementType.GENERIC:
            reqs = _pick(group, "requirements", "Requirements")
            result["requirements"].append({
                "type": "Generic",
                "name": _pick(group, "name", "Name"),
                "courses": _generic_group_courses(reqs) if isinstance(reqs, list) else [],
            })
        else:
            result["requirements"].append({
                "type": _GROUP_TYPE_LABELS.get(req_type, "Unknown") if isinstance(req_type, int) else "Unknown",
                "numReqs": _pick(group, "numreqs", "NumRequirements"),
            })

    return result


# ── Data-fetch handlers ───────────────────────────────────────────────────────

def get_major_requirements(catalog: CatalogClient, arguments: dict):
    major = _require_str(arguments, "major")
    try:
        data = catalog.get_major_requirements(major)
    except CatalogError as exc:
        print(f"[WARN] Error fetching major requirements for '{major}': {exc}", file=sys.stderr)
        return {"error": "Failed to fetch major requirements"}
    return simplify_major_requirements(data)


def get_courses_by_quarter(catalog: CatalogClient, arguments: dict):
    quarter = _require_int(arguments, "quarterId")
    try:
        data = catalog.get_courses_by_quarter(quarter, MAX_ITEMS)
    except CatalogError as exc:
        print(f"[WARN] Error fetching courses for quarter {quarter}: {exc}", file=sys.stderr)
        return []
    return simplify_courses(data)


def get_courses_by_subject(catalog: CatalogClient, arguments: dict):
    subject = _require_str(arguments, "subject")
    try:
        data = catalog.get_courses_by_subject(subject, MAX_ITEMS)
    except CatalogError as exc:
        print(f"[WARN] Error fetching courses for subject '{subject}': {exc}", file=sys.stderr)
        return []
    return simplify_courses(data)


def get_courses_by_key(catalog: CatalogClient, arguments: dict):
    key = _require_str(arguments, "key")
    try:
        data = catalog.get_courses_by_key(key)
    except CatalogError as exc:
        print(f"[WARN] Error fetching courses for key '{key}': {exc}", file=sys.stderr)
        return []
    return simplify_courses(data)


def _require_str(arguments: dict, name: str) -> str:
    value = arguments.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ToolArgumentError(f"'{name}' must be a non-empty string")
    return value.strip()


def _require_int(arguments: dict, name: str) -> int:
    value = arguments.get(name)
    if isinstance(value, bool):
        raise ToolArgumentError(f"'{name}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ToolArgumentError(f"'{name}' must be an integer")


# ── Registry ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    parameters: dict

    def to_openai(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class Tool:
    descriptor: ToolDescriptor
    handler: Callable[[CatalogClient, dict], Any]


def _single_param(name: str, json_type: str, description: str) -> dict:
    return {
        "type": "object",
        "properties": {name: {"type": json_type, "description": description}},
        "required": [name],
    }


TOOLS: dict[str, Tool] = {
    tool.descriptor.name: tool
    for tool in (
        Tool(
            ToolDescriptor(
                name="getMajorRequirements",
                description="Returns the requirements for a major in simplified format.",
                parameters=_single_param(
                    "major", "string",
                    "The major name (e.g., 'Computer Science', 'Civil Engineering')",
                ),
            ),
            get_major_requirements,
        ),
        Tool(
            ToolDescriptor(
                name="getCoursesByQuarter",
                description="Returns courses available in a specific quarter (limited to most relevant).",
                parameters=_single_param("quarterId", "integer", "The quarter ID"),
            ),
            get_courses_by_quarter,
        ),
        Tool(
            ToolDescriptor(
                name="getCoursesBySubject",
                description="Returns courses for a given subject (limited to most relevant).",
                parameters=_single_param(
                    "subject", "string", "The subject code (e.g., 'COMP_SCI', 'ECON')",
                ),
            ),
            get_courses_by_subject,
        ),
        Tool(
            ToolDescriptor(
                name="getCoursesByKey",
                description="Returns details for a specific course key.",
                parameters=_single_param("key", "string", "The course key (e.g., 'COMP_SCI 213-0')"),
            ),
            get_courses_by_key,
        ),
    )
}

TOOL_SPECS: list[dict] = [tool.descriptor.to_openai() for tool in TOOLS.values()]


def run_tool_call(catalog: CatalogClient, name: str, raw_arguments) -> Any:
    """
    Execute one model-requested tool call.

    Never raises for bad input: unknown tools, malformed JSON and invalid
    arguments come back as {"error": ...} so the model sees what went wrong.
    """
    try:
        tool = TOOLS.get(name)
        if tool is None:
            raise ToolArgumentError(f"Unknown tool: {name}")
        arguments = json.loads(raw_arguments or "{}")
        if not isinstance(arguments, dict):
            raise ToolArgumentError("arguments must be a JSON object")
        return tool.handler(catalog, arguments)
    except Exception as exc:
        print(f"[WARN] Tool call error for {name}: {exc}", file=sys.stderr)
        return {"error": f"Error executing {name}: {exc}"}
