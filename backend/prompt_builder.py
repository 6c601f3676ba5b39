from course_keys import quarter_options

SYSTEM_PROMPT = """You are a helpful course planning assistant at Northwestern University.

Please respond in a natural, conversational way - just like a helpful advisor would talk.

Format your recommendations as follows:
- Start with a friendly greeting
- Don't use any markdown formatting (no # symbols) or HTML tags
- Format course codes in ALL CAPS like this: "CS 101: INTRODUCTION TO PROGRAMMING"
- Mention 3-5 core courses the student should take based on their major
- Suggest 2-3 interesting electives that align with typical interests for this major
- End with a friendly reminder to check with an academic advisor

Use the available tools to look up major requirements and course offerings
instead of guessing. Never invent course codes."""


def build_system_prompt(taken_courses, major: str | None, quarters=None) -> str:
    """
    Builds the system message for one assistant turn.
    The student's context goes in the system message so it survives context trimming.
    """
    taken = [str(c) for c in taken_courses or [] if str(c).strip()]
    context_lines = [
        SYSTEM_PROMPT,
        "",
        f"The student has taken: {', '.join(taken) if taken else 'none'}",
        f"Their major is: {str(major or '').strip() or 'undeclared'}",
    ]
    options = quarter_options(quarters)
    if options:
        listed = ", ".join(f"{q['quarter_id']} ({q['quarter_name']})" for q in options)
        context_lines.append(f"Quarter IDs available for course lookups: {listed}")
    return "\n".join(context_lines)
