"""Tests for the Elasticsearch candidate retriever."""

import asyncio

import pytest
from elasticsearch.exceptions import ConnectionError as ESConnectionError

from product_search.models import Category
from product_search.retriever import ElasticsearchRetriever, RetrievalError, build_candidate_query


def test_query_matches_terms_in_title_or_description():
    body = build_candidate_query("iphone 15", None, 150)
    should = body["query"]["bool"]["should"]

    assert body["size"] == 150
    assert body["query"]["bool"]["minimum_should_match"] == 1
    assert should[0] == {
        "multi_match": {"query": "iphone 15", "fields": ["title^2", "description"], "operator": "or"}
    }


def test_terms_also_match_as_substrings():
    """"phone" must reach "Apple iPhone 15" and "mobile" must reach "mobiles"."""

    should = build_candidate_query("Phone mobile phone", None, 150)["query"]["bool"]["should"]
    wildcards = [clause["wildcard"] for clause in should if "wildcard" in clause]

    assert wildcards == [
        {"title": {"value": "*phone*", "case_insensitive": True, "boost": 2.0}},
        {"description": {"value": "*phone*", "case_insensitive": True, "boost": 1.0}},
        {"title": {"value": "*mobile*", "case_insensitive": True, "boost": 2.0}},
        {"description": {"value": "*mobile*", "case_insensitive": True, "boost": 1.0}},
    ]


def test_wildcard_characters_in_terms_are_escaped():
    should = build_candidate_query("usb*c", None, 10)["query"]["bool"]["should"]

    assert should[1]["wildcard"]["title"]["value"] == "*usb\\*c*"


def test_category_widens_instead_of_filtering():
    body = build_candidate_query("cheap phone", Category.PHONES, 100)
    bool_clause = body["query"]["bool"]

    assert {"term": {"category": "phones"}} in bool_clause["should"]
    assert "filter" not in bool_clause
    other_should = build_candidate_query("cable", Category.OTHER, 100)["query"]["bool"]["should"]
    assert not any("term" in clause for clause in other_should)


class FakeES:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def search(self, index, body):
        self.calls.append((index, body))
        if self.error is not None:
            raise self.error
        return self.response


def test_find_maps_hits_in_store_order():
    es = FakeES(
        {
            "took": 3,
            "hits": {
                "hits": [
                    {"_id": "b", "_source": {"title": "Second", "price": 10, "category": "phones"}},
                    {"_id": "a", "_source": {"title": "First", "stock": 4}},
                    {"_id": "c", "_source": {"title": "Third"}},
                ]
            },
        }
    )
    retriever = ElasticsearchRetriever(es, "products", limit=2)

    candidates = asyncio.run(retriever.find("phone"))

    assert [c.id for c in candidates] == ["b", "a"]
    assert candidates[0].category == Category.PHONES
    assert candidates[1].stock == 4
    assert es.calls[0][0] == "products"
    assert es.calls[0][1]["size"] == 2


def test_store_errors_become_retrieval_errors():
    retriever = ElasticsearchRetriever(FakeES(error=ESConnectionError("connection refused")), "products")

    with pytest.raises(RetrievalError):
        asyncio.run(retriever.find("phone"))
