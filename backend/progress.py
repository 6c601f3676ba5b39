import math
from dataclasses import asdict, dataclass

from requirements import (
    GenericGroup,
    MajorRequirements,
    Option,
    Requirement,
    RequirementGroup,
    ThemeGroup,
    UnrestrictedGroup,
    UnknownGroup,
    displayable_requirements,
)


@dataclass(frozen=True)
class CompletionStats:
    completed: int = 0
    total: int = 0
    percentage: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def completion_percentage(completed: int, total: int) -> int:
    """Half-up rounding, so 2/8 -> 25 and 1/8 -> 13 (not banker's 12)."""
    if total <= 0:
        return 0
    return int(math.floor(completed * 100 / total + 0.5))


def option_satisfied(option: Option, completed) -> bool:
    return set(option.courses).issubset(completed)


def requirement_satisfied(requirement: Requirement, completed) -> bool:
    return any(option_satisfied(opt, completed) for opt in requirement.options)


def evaluate_group(group: RequirementGroup, completed) -> dict:
    """
    Per-group counts.

    Count-only groups (theme, unrestricted, unknown) have no course lists, so
    they count toward the total and are never marked complete.
    """
    completed = set(completed or ())
    if not isinstance(group, GenericGroup):
        return {"completed": 0, "total": 1}

    done = 0
    total = 0
    for req in group.requirements:
        if not req.options:
            continue
        total += 1
        if requirement_satisfied(req, completed):
            done += 1
    return {"completed": done, "total": total}


def evaluate(groups, completed) -> CompletionStats:
    completed = set(completed or ())
    done = 0
    total = 0
    for group in groups or ():
        counts = evaluate_group(group, completed)
        done += counts["completed"]
        total += counts["total"]
    return CompletionStats(
        completed=done,
        total=total,
        percentage=completion_percentage(done, total),
    )


def _group_report(group: RequirementGroup, completed: set[str]) -> dict:
    counts = evaluate_group(group, completed)
    if isinstance(group, GenericGroup):
        requirements = []
        for req in displayable_requirements(group):
            requirements.append({
                "satisfied": requirement_satisfied(req, completed),
                "options": [
                    {"courses": list(opt.courses), "satisfied": option_satisfied(opt, completed)}
                    for opt in req.options
                ],
            })
        return {
            "type": group.kind,
            "name": group.name,
            "requirements": requirements,
            **counts,
        }

    entry = {"type": group.kind, "count": group.count, **counts}
    if isinstance(group, UnknownGroup):
        entry["requirement_type"] = group.requirement_type
    elif not isinstance(group, (ThemeGroup, UnrestrictedGroup)):
        raise TypeError(f"Unhandled requirement group: {group!r}")
    return entry


def progress_report(major_reqs: MajorRequirements, completed) -> dict:
    """Aggregate stats plus a per-group breakdown for the requirements checklist."""
    completed = set(completed or ())
    stats = evaluate(major_reqs.groups, completed)
    return {
        "major": major_reqs.major,
        "is_engineering": major_reqs.is_engineering,
        **stats.to_dict(),
        "groups": [_group_report(g, completed) for g in major_reqs.groups],
    }
