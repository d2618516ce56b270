"""Shared fixtures: fake provider, in-memory collection and sample records."""
import copy
import json
import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from prospect_matcher.models.models import JobPosition, Prospect
from prospect_matcher.services.llm import LLMProvider


def match_json(score=75, **overrides):
    payload = {
        "match_score": score,
        "strengths": ["Strong Python background", "Led backend teams"],
        "gaps": ["No Kubernetes experience"],
        "recommendation": "Recommended",
        "detailed_analysis": "Solid fit overall.",
    }
    payload.update(overrides)
    return json.dumps(payload)


class FakeProvider(LLMProvider):
    """Provider double driven by a responder(prompt) callable.

    The responder returns the completion content or an exception instance to raise.
    """

    name = "fake"

    def __init__(self, responder=None, embedding=None, embed_error=None):
        self.responder = responder or (lambda prompt: match_json())
        self.embedding = embedding or [0.1, 0.2, 0.3]
        self.embed_error = embed_error
        self.prompts = []
        self.system_prompts = []
        self.embed_calls = []

    async def complete_json(self, system_prompt, prompt):
        self.system_prompts.append(system_prompt)
        self.prompts.append(prompt)
        outcome = self.responder(prompt)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def embed(self, text):
        self.embed_calls.append(text)
        if self.embed_error is not None:
            raise self.embed_error
        return list(self.embedding)


def respond_by_marker(mapping, default=None):
    """Pick the response whose marker appears in the prompt."""
    def responder(prompt):
        for marker, outcome in mapping.items():
            if marker in prompt:
                return outcome
        return default if default is not None else match_json()
    return responder


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, key, direction=1):
        self.docs = sorted(self.docs, key=lambda d: d.get(key) or 0, reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        return [copy.deepcopy(d) for d in self.docs]


class FakeDeleteResult:
    def __init__(self, deleted_count):
        self.deleted_count = deleted_count


class InMemoryCollection:
    """Equality-filter subset of the motor collection API."""

    def __init__(self, unique_keys=None):
        self.docs = []
        self.unique_keys = unique_keys or []

    @staticmethod
    def _matches(doc, flt):
        return all(doc.get(k) == v for k, v in (flt or {}).items())

    async def find_one(self, flt):
        for doc in self.docs:
            if self._matches(doc, flt):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc):
        if self.unique_keys:
            key = tuple(doc.get(k) for k in self.unique_keys)
            if any(tuple(d.get(k) for k in self.unique_keys) == key for d in self.docs):
                raise DuplicateKeyError("E11000 duplicate key error")
        self.docs.append(copy.deepcopy(doc))

    async def find_one_and_update(self, flt, update, return_document=ReturnDocument.BEFORE):
        for doc in self.docs:
            if self._matches(doc, flt):
                before = copy.deepcopy(doc)
                doc.update(update.get("$set", {}))
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        return None

    def find(self, flt=None):
        return FakeCursor([d for d in self.docs if self._matches(d, flt)])

    async def distinct(self, key, flt=None):
        values = []
        for doc in self.docs:
            if self._matches(doc, flt) and doc.get(key) not in values:
                values.append(doc.get(key))
        return values

    async def delete_one(self, flt):
        for i, doc in enumerate(self.docs):
            if self._matches(doc, flt):
                del self.docs[i]
                return FakeDeleteResult(1)
        return FakeDeleteResult(0)

    async def count_documents(self, flt):
        return len([d for d in self.docs if self._matches(d, flt)])


@pytest.fixture
def evaluations_store():
    return InMemoryCollection(unique_keys=["prospect_id", "job_position_id"])


@pytest.fixture
def prospect():
    return Prospect(
        id="3f1c9a52-5d0e-4c55-9a5e-1f0d2b6c7a10",
        agent_id="9b2f0d4e-1111-4a2b-8c3d-000000000001",
        name="Jane Smith",
        email="jane@acme.io",
        linkedin_url="https://www.linkedin.com/in/janesmith",
        profile_text="Backend engineer with 7 years of Python and FastAPI.",
        profile_json={"skills": ["python", "fastapi", "mongodb"], "years_experience": 7},
    )


@pytest.fixture
def empty_prospect():
    return Prospect(id="8d7e6f5a-0000-4000-8000-000000000002")


@pytest.fixture
def position():
    return JobPosition(
        id="c0ffee00-1234-4abc-9def-000000000010",
        name="Senior Python Developer",
        description="Build and run our matching APIs.",
        long_description="You will own the backend services end to end.",
        evaluation_criteria="5 years Python",
        llm_score_threshold=70,
        department="Engineering",
        work_mode="Remote",
    )


def make_position(index, **kwargs):
    return JobPosition(
        id=f"position-{index}",
        name=kwargs.pop("name", f"Position {index}"),
        description=f"Description {index}",
        evaluation_criteria=kwargs.pop("evaluation_criteria", "5 years Python"),
        **kwargs,
    )


def make_prospect(index, **kwargs):
    return Prospect(
        id=f"prospect-{index}",
        name=kwargs.pop("name", f"Prospect {index}"),
        **kwargs,
    )
