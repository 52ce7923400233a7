import asyncio

import pytest

from playword.core.errors import NoCandidateError, ReasonerMalformedOutput
from playword.dom.ranker import ElementIndex, cosine_similarity, rank

LOCATIONS = [
    {"xpath": "//input[1]", "html": '<input name="email" placeholder="Email"/>'},
    {"xpath": '//a[@href="/login"]', "html": '<a href="/login">Login</a>'},
    {"xpath": "//button[1]", "html": "<button>Search</button>"},
    {"xpath": "//a[2]", "html": '<a href="/signin">Login here</a>'},
]


def test_cosine_similarity():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([0, 0], [1, 1]) == 0.0


def test_rank_is_non_increasing_and_ties_keep_document_order():
    records = [
        {"content": "a", "embedding": [0.0, 1.0]},
        {"content": "b", "embedding": [1.0, 0.0]},
        {"content": "c", "embedding": [1.0, 1.0]},
        {"content": "d", "embedding": [2.0, 0.0]},
    ]
    ranked = rank([1.0, 0.0], records, k=3)
    print("Ranked:", ranked)
    assert [pos for pos, _ in ranked] == [1, 3, 2]
    scores = [score for _, score in ranked]
    assert scores == sorted(scores, reverse=True)


def test_search_returns_top_k(reasoner):
    async def scenario():
        index = ElementIndex(reasoner, top_k=2)
        await index.build(LOCATIONS)
        return await index.search("login link")

    results = asyncio.run(scenario())
    assert [r["xpath"] for r in results] == ['//a[@href="/login"]', "//a[2]"]


def test_select_returns_reasoner_choice(reasoner):
    reasoner.candidate_index = 1

    async def scenario():
        index = ElementIndex(reasoner)
        await index.build(LOCATIONS)
        return await index.select("Click the login link", "login")

    chosen = asyncio.run(scenario())
    assert chosen["xpath"] == "//a[2]"
    # the model sees sanitized fragments in ranked order
    assert reasoner.candidates_seen[0][0] == '<a href="/login">Login</a>'


@pytest.mark.parametrize("answer", [4, -1, "1", None])
def test_select_rejects_out_of_range_answer(reasoner, answer):
    reasoner.candidate_index = answer

    async def scenario():
        index = ElementIndex(reasoner)
        await index.build(LOCATIONS)
        return await index.select("Click the login link", "login")

    with pytest.raises(ReasonerMalformedOutput):
        asyncio.run(scenario())


def test_empty_candidate_set(reasoner):
    with pytest.raises(NoCandidateError):
        asyncio.run(ElementIndex(reasoner).build([]))
    assert "embed_documents" not in reasoner.calls
