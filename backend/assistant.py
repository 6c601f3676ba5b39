import json
import sys

from openai import OpenAI, RateLimitError

from chat_tools import TOOL_SPECS, run_tool_call
from prompt_builder import build_system_prompt
from response_formatter import format_response
from settings import DEFAULT_OPENAI_MODEL, Settings

# Maximum number of tool-call rounds per turn.
MAX_TOOL_CALLS = 3

RATE_LIMIT_MESSAGE = (
    "I encountered a limit while processing your request. "
    "Please try a more specific question or try again later."
)
GENERIC_ERROR_MESSAGE = "Sorry, I encountered an error while processing your request. Please try again."


def get_openai_client(settings: Settings) -> OpenAI:
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY not set in environment")
    return OpenAI(api_key=settings.openai_api_key)


def is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    return status == 429


def _assistant_message_dict(message) -> dict:
    """Re-serialize the model's tool-call message so it can be sent back verbatim."""
    return {
        "role": "assistant",
        "content": message.content,
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.function.name,
                    "arguments": call.function.arguments,
                },
            }
            for call in (message.tool_calls or [])
        ],
    }


class Assistant:
    """
    Runs one conversational turn: system prompt + question, then up to
    MAX_TOOL_CALLS rounds of model-requested data lookups.

    Each round sends only the system message, the original question, the
    latest tool-call message and its results. Earlier rounds are dropped.
    """

    def __init__(
        self,
        client,
        catalog,
        model: str = DEFAULT_OPENAI_MODEL,
        temperature: float = 0.7,
        max_tool_calls: int = MAX_TOOL_CALLS,
    ):
        self.client = client
        self.catalog = catalog
        self.model = model
        self.temperature = temperature
        self.max_tool_calls = max_tool_calls

    @classmethod
    def from_settings(cls, settings: Settings, client, catalog) -> "Assistant":
        return cls(
            client,
            catalog,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
        )

    def _run_tool_calls(self, message) -> list[dict]:
        results = []
        for call in message.tool_calls or []:
            result = run_tool_call(self.catalog, call.function.name, call.function.arguments)
            results.append({
                "role": "tool",
                "tool_call_id": call.id,
                "content": json.dumps(result),
            })
        return results

    def converse(
        self,
        taken_course_keys,
        major: str | None,
        available_quarters,
        user_message: str,
    ) -> str:
        """Returns sanitized reply text, an apology string on API failure, or '' on an empty completion."""
        system_prompt = build_system_prompt(sorted(taken_course_keys or []), major, available_quarters)
        system_msg = {"role": "system", "content": system_prompt}
        user_msg = {"role": "user", "content": user_message}

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[system_msg, user_msg],
                tools=TOOL_SPECS,
                tool_choice="auto",
                temperature=self.temperature,
            )

            rounds = 0
            while response.choices[0].finish_reason == "tool_calls" and rounds < self.max_tool_calls:
                rounds += 1
                assistant_msg = response.choices[0].message
                tool_results = self._run_tool_calls(assistant_msg)

                context = [system_msg, user_msg, _assistant_message_dict(assistant_msg), *tool_results]
                response = self.client.chat.completions.create(model=self.model, messages=context)

            content = response.choices[0].message.content or ""
            return format_response(content)
        except Exception as exc:
            if is_rate_limit_error(exc):
                print(f"[WARN] Completion endpoint rate limited: {exc}", file=sys.stderr)
                return RATE_LIMIT_MESSAGE
            print(f"[ERROR] Completion endpoint error: {exc}", file=sys.stderr)
            return GENERIC_ERROR_MESSAGE


def converse(
    client,
    catalog,
    taken_course_keys,
    major: str | None,
    available_quarters,
    user_message: str,
    model: str = DEFAULT_OPENAI_MODEL,
) -> str:
    return Assistant(client, catalog, model=model).converse(
        taken_course_keys, major, available_quarters, user_message
    )
