import pytest

from conftest import FakeProvider, make_prospect
from prospect_matcher.models.models import Prospect
from prospect_matcher.services.search import (
    cosine_similarity,
    make_vector_ranker,
    semantic_search,
    text_search,
)
from prospect_matcher.utils.exceptions import ConfigurationError, MalformedResponseError, ProviderError


@pytest.fixture
def candidates():
    return [
        make_prospect(0, email="ana@acme.io"),
        make_prospect(1, email="bo@globex.com"),
        make_prospect(2, profile_text="Worked at ACME Corp for three years"),
        make_prospect(3, name="Acmeson Lee"),
        make_prospect(4),
        make_prospect(5, email="cy@acme.io"),
        make_prospect(6, email="di@acme.io"),
        make_prospect(7, email="ed@acme.io"),
    ]


class TestTextSearch:

    def test_case_insensitive_filter_with_limit(self, candidates):
        results = text_search("acme", candidates, 5)

        assert [p.id for p in results] == ["prospect-0", "prospect-2", "prospect-3", "prospect-5", "prospect-6"]

    def test_limit_larger_than_matches(self, candidates):
        results = text_search("ACME", candidates, 50)
        assert len(results) == 6

    def test_missing_fields_do_not_match_literal_null(self):
        prospect = Prospect(id="x")
        assert text_search("null", [prospect], 5) == []
        assert text_search("none", [prospect], 5) == []

    def test_zero_limit(self, candidates):
        assert text_search("acme", candidates, 0) == []


class TestSemanticSearch:

    @pytest.mark.asyncio
    async def test_embeds_query_then_filters(self, candidates):
        provider = FakeProvider()

        results = await semantic_search("acme", candidates, 5, provider)

        assert provider.embed_calls == ["acme"]
        assert [p.id for p in results] == [p.id for p in text_search("acme", candidates, 5)]

    @pytest.mark.asyncio
    async def test_embedding_failure_falls_back(self, candidates):
        provider = FakeProvider(embed_error=ProviderError("embeddings down", provider="fake"))

        results = await semantic_search("globex", candidates, 5, provider)

        assert [p.id for p in results] == ["prospect-1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        MalformedResponseError("bad embedding payload"),
        ConfigurationError("missing key", config_key="OPENAI_API_KEY"),
        AttributeError("'list' object has no attribute 'get'"),
    ])
    async def test_any_embedding_failure_falls_back(self, candidates, error):
        provider = FakeProvider(embed_error=error)

        results = await semantic_search("globex", candidates, 5, provider, ranker=lambda v, c: [])

        assert [p.id for p in results] == ["prospect-1"]

    @pytest.mark.asyncio
    async def test_ranker_reorders_filtered_candidates(self, candidates):
        provider = FakeProvider(embedding=[1.0, 0.0])
        ranker = make_vector_ranker({
            "prospect-0": [0.0, 1.0],
            "prospect-2": [1.0, 0.1],
            "prospect-5": [0.7, 0.7],
        })

        results = await semantic_search("acme", candidates, 4, provider, ranker=ranker)

        # unscored candidates keep their relative order after scored ones
        assert [p.id for p in results] == ["prospect-2", "prospect-5", "prospect-0", "prospect-3"]

    @pytest.mark.asyncio
    async def test_ranker_never_sees_non_matching_candidates(self, candidates):
        seen = []

        def ranker(query_vector, filtered):
            seen.extend(p.id for p in filtered)
            return list(reversed(filtered))

        results = await semantic_search("globex", candidates, 5, FakeProvider(), ranker=ranker)

        assert seen == ["prospect-1"]
        assert [p.id for p in results] == ["prospect-1"]


class TestCosineSimilarity:

    def test_identical_vectors(self):
        assert cosine_similarity([1, 2, 3], [1, 2, 3]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_zero_vector(self):
        assert cosine_similarity([0, 0], [1, 1]) == 0.0
