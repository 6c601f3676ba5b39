import sys
import os
from types import SimpleNamespace

import httpx
import pytest

# Add backend/ to path so tests can import backend modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

# Add scripts/ to path so tests can import script modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "scripts"))

from catalog_client import CatalogClient


# ── Scripted completion client ────────────────────────────────────────────────

def make_tool_call(name: str, arguments: str, call_id: str = "call_1"):
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def make_completion(content=None, tool_calls=None, finish_reason=None):
    if finish_reason is None:
        finish_reason = "tool_calls" if tool_calls else "stop"
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(finish_reason=finish_reason, message=message)])


class FakeCompletions:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.responses:
            raise AssertionError("No scripted completion left")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


class FakeOpenAI:
    """Stands in for openai.OpenAI: only chat.completions.create is used."""

    def __init__(self, responses):
        self.completions = FakeCompletions(responses)
        self.chat = SimpleNamespace(completions=self.completions)


# ── Catalog API fixtures ──────────────────────────────────────────────────────

SAMPLE_REQS = {
    "major": "computer science",
    "isEngineering": True,
    "allreqs": [
        {
            "requirementType": 0,
            "name": "Core",
            "requirements": [
                {"between": [{"courses": ["COMP_SCI 111-0"]}]},
                {"between": [{"courses": ["COMP_SCI 211-0", "COMP_SCI 213-0"]}]},
                {"between": [{"courses": ["MATH 220-1"]}, {"courses": ["MATH 218-1"]}]},
                {"between": []},
            ],
        },
        {"requirementType": 1, "numreqs": 3},
        {"requirementType": 2, "numreqs": 5},
    ],
}


def sample_courses(n: int, overview: str = "Intro course.") -> list[dict]:
    return [
        {
            "title": f"Course {i}",
            "number": f"{100 + i}-0-20",
            "subject": "COMP_SCI",
            "school": "MEAS",
            "overview": overview,
            "instructors": [{"name": "A"}, {"name": "B"}],
            "meetingTimes": [],
            "section": i,
            "quarter": 4960,
        }
        for i in range(n)
    ]


def catalog_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    params = request.url.params
    if path == "/api/quarters":
        return httpx.Response(200, json=[4930, 4940, 4950, 4960])
    if path == "/api/majors":
        return httpx.Response(200, json=["computer science", "economics"])
    if path == "/api/reqs":
        if params.get("major") == "computer science":
            return httpx.Response(200, json=SAMPLE_REQS)
        return httpx.Response(404, json={"error": "major not found"})
    if path == "/api/courses":
        return httpx.Response(200, json=sample_courses(20))
    if path == "/api/courses/subject":
        return httpx.Response(200, json=sample_courses(3))
    if path == "/api/courses/key":
        return httpx.Response(200, json=sample_courses(1))
    return httpx.Response(404, json={"error": "not found"})


def failing_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500, text="upstream exploded")


@pytest.fixture()
def catalog():
    client = CatalogClient("http://catalog.test", transport=httpx.MockTransport(catalog_handler))
    yield client
    client.close()


@pytest.fixture()
def broken_catalog():
    client = CatalogClient("http://catalog.test", transport=httpx.MockTransport(failing_handler))
    yield client
    client.close()
