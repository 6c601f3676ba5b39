from dataclasses import dataclass, field
from enum import IntEnum


class RequirementType(IntEnum):
    GENERIC = 0
    THEME = 1
    UNRESTRICTED = 2


class RequirementsFormatError(ValueError):
    """Raised when a requirements payload cannot be read as a requirement tree."""


@dataclass(frozen=True)
class Option:
    """One way of satisfying a requirement: every listed course key must be taken."""
    courses: tuple[str, ...] = ()


@dataclass(frozen=True)
class Requirement:
    """Satisfied when any one of its options is satisfied."""
    options: tuple[Option, ...] = ()


@dataclass(frozen=True)
class GenericGroup:
    name: str
    requirements: tuple[Requirement, ...] = ()
    kind = "Generic"


@dataclass(frozen=True)
class ThemeGroup:
    count: int = 0
    kind = "Theme"


@dataclass(frozen=True)
class UnrestrictedGroup:
    count: int = 0
    kind = "Unrestricted"


@dataclass(frozen=True)
class UnknownGroup:
    count: int = 0
    requirement_type: int | None = None
    kind = "Unknown"


RequirementGroup = GenericGroup | ThemeGroup | UnrestrictedGroup | UnknownGroup


@dataclass(frozen=True)
class MajorRequirements:
    major: str
    is_engineering: bool = False
    groups: tuple[RequirementGroup, ...] = field(default_factory=tuple)


def _field(payload: dict, *names, default=None):
    """First present key wins. The API emits lowercase keys; older dumps are capitalized."""
    for name in names:
        if name in payload:
            return payload[name]
    return default


def _parse_count(raw) -> int:
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return 0


def _parse_option(payload) -> Option:
    if not isinstance(payload, dict):
        return Option()
    courses = _field(payload, "courses", "Courses", default=[]) or []
    if not isinstance(courses, list):
        return Option()
    return Option(courses=tuple(str(c) for c in courses if c is not None))


def _parse_requirement(payload) -> Requirement:
    if not isinstance(payload, dict):
        return Requirement()
    between = _field(payload, "between", "Between", default=[]) or []
    if not isinstance(between, list):
        return Requirement()
    return Requirement(options=tuple(_parse_option(o) for o in between))


def parse_group(payload: dict) -> RequirementGroup:
    """
    Dispatch a raw group on shape, then on its numeric tag.

    A `requirements` list, or an explicit null, makes the group Generic
    whatever its tag says; null means a Generic group with nothing to count.
    Everything else is a count-only group.
    """
    if not isinstance(payload, dict):
        raise RequirementsFormatError(f"Requirement group must be an object, got {type(payload).__name__}")

    reqs = _field(payload, "requirements", "Requirements")
    has_reqs_key = "requirements" in payload or "Requirements" in payload
    if isinstance(reqs, list) or (has_reqs_key and reqs is None):
        name = str(_field(payload, "name", "Name", default="") or "")
        return GenericGroup(name=name, requirements=tuple(_parse_requirement(r) for r in reqs or ()))

    raw_type = _field(payload, "requirementType", "RequirementType")
    count = _parse_count(_field(payload, "numreqs", "NumRequirements", "numReqs"))
    try:
        req_type = int(raw_type)
    except (TypeError, ValueError):
        req_type = None

    if req_type == RequirementType.THEME:
        return ThemeGroup(count=count)
    if req_type == RequirementType.UNRESTRICTED:
        return UnrestrictedGroup(count=count)
    return UnknownGroup(count=count, requirement_type=req_type)


def parse_major_requirements(payload) -> MajorRequirements:
    """Parse a `/api/reqs` response. Raises RequirementsFormatError on a malformed tree."""
    if not isinstance(payload, dict):
        raise RequirementsFormatError("Requirements payload must be a JSON object.")
    groups_raw = _field(payload, "allreqs", "AllRequirements", default=[])
    if groups_raw is None:
        groups_raw = []
    if not isinstance(groups_raw, list):
        raise RequirementsFormatError("'allreqs' must be a list of requirement groups.")
    return MajorRequirements(
        major=str(_field(payload, "major", "Major", default="") or ""),
        is_engineering=bool(_field(payload, "isEngineering", "IsEngineering", default=False)),
        groups=tuple(parse_group(g) for g in groups_raw),
    )


def displayable_requirements(group: GenericGroup) -> list[Requirement]:
    """Requirements worth rendering: at least one option with at least one course."""
    return [
        req for req in group.requirements
        if req.options and any(opt.courses for opt in req.options)
    ]


def group_to_payload(group: RequirementGroup) -> dict:
    if isinstance(group, GenericGroup):
        return {
            "requirementType": int(RequirementType.GENERIC),
            "name": group.name,
            "requirements": [
                {"between": [{"courses": list(opt.courses)} for opt in req.options]}
                for req in group.requirements
            ],
        }
    if isinstance(group, ThemeGroup):
        return {"requirementType": int(RequirementType.THEME), "numreqs": group.count}
    if isinstance(group, UnrestrictedGroup):
        return {"requirementType": int(RequirementType.UNRESTRICTED), "numreqs": group.count}
    return {"requirementType": group.requirement_type, "numreqs": group.count}


def to_payload(major_reqs: MajorRequirements) -> dict:
    return {
        "major": major_reqs.major,
        "isEngineering": major_reqs.is_engineering,
        "allreqs": [group_to_payload(g) for g in major_reqs.groups],
    }
