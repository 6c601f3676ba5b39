import re

# Splits free-text key lists: "COMP_SCI 111-0, MATH 220-1; ..."
KEY_LIST_SPLIT = re.compile(r'[,\n;]+')
WHITESPACE = re.compile(r'\s+')

BASE_QUARTER_TAG = 4930
BASE_QUARTER_YEAR = 2024
QUARTER_STEP = 10
QUARTER_NAMES = ["Winter", "Spring", "Summer", "Fall"]


def course_key(subject, number) -> str | None:
    """
    Builds the join key used against requirement course lists.

    'comp_sci', '213-0-20' -> 'COMP_SCI 213-0'
    Returns None if either part is blank.
    """
    subj = str(subject or "").strip()
    num = str(number or "").strip()
    if not subj or not num:
        return None
    parts = [p.strip() for p in num.split("-")]
    return f"{subj} {'-'.join(parts[:2])}".upper()


def course_key_for(course: dict) -> str | None:
    if not isinstance(course, dict):
        return None
    subject = course.get("subject", course.get("Subject"))
    number = course.get("number", course.get("Number"))
    return course_key(subject, number)


def normalize_keys(raw) -> list[str]:
    """
    Accepts a list of keys or one comma/semicolon/newline separated string.
    Upper-cases, collapses whitespace and drops duplicates (first seen wins).
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        tokens = KEY_LIST_SPLIT.split(raw)
    elif isinstance(raw, (list, tuple, set, frozenset)):
        tokens = [str(t) for t in raw if t is not None]
    else:
        return []

    keys = []
    seen: set[str] = set()
    for token in tokens:
        key = WHITESPACE.sub(" ", token.strip()).upper()
        if not key or key in seen:
            continue
        keys.append(key)
        seen.add(key)
    return keys


def quarter_name(tag: int) -> str:
    """4930 -> '2024 Winter', 4940 -> '2024 Spring', 4970 -> '2025 Winter'."""
    offset = (int(tag) - BASE_QUARTER_TAG) // QUARTER_STEP
    year = BASE_QUARTER_YEAR + offset // 4
    return f"{year} {QUARTER_NAMES[offset % 4]}"


def quarter_options(tags) -> list[dict]:
    return [
        {"quarter_id": int(tag), "quarter_name": quarter_name(tag)}
        for tag in tags or []
    ]
