import re

CODE_FENCE_RE = re.compile(r'```[\s\S]*?```')
LEADING_HEADING_RE = re.compile(r'^# Course Recommendations\s*', re.IGNORECASE)
HTML_TAG_RE = re.compile(r'<[^>]+>')
BOLD_RE = re.compile(r'\*\*([^*\n]+)\*\*')
ITALIC_RE = re.compile(r'\*([^*\n]+)\*')
BULLET_RE = re.compile(r'^[ \t]*[-*][ \t]*', re.MULTILINE)
NUMBERED_RE = re.compile(r'^[ \t]*\d+\.[ \t]+', re.MULTILINE)
HORIZONTAL_RULE_RE = re.compile(r'^[ \t]*---[ \t]*$', re.MULTILINE)
HEADING_MARKER_RE = re.compile(r'^#+[ \t]+', re.MULTILINE)
EXCESS_NEWLINES_RE = re.compile(r'\n{3,}')


def format_response(text) -> str:
    """
    Turns model output into plain chat text.

    The model is told not to use markdown, but still does; this strips code
    fences, HTML tags, emphasis, list markers and headings.
    """
    formatted = CODE_FENCE_RE.sub("", str(text or "").strip()).strip()
    formatted = LEADING_HEADING_RE.sub("", formatted)
    formatted = HTML_TAG_RE.sub("", formatted)

    formatted = BOLD_RE.sub(r"\1", formatted)
    formatted = ITALIC_RE.sub(r"\1", formatted)

    formatted = HORIZONTAL_RULE_RE.sub("", formatted)
    formatted = BULLET_RE.sub("", formatted)
    formatted = NUMBERED_RE.sub("", formatted)
    formatted = HEADING_MARKER_RE.sub("", formatted)
    formatted = EXCESS_NEWLINES_RE.sub("\n\n", formatted)
    return formatted.strip()
