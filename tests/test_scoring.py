"""Tests for the multi-factor rank scorer."""

import pytest

from product_search.corrections import correct_spelling
from product_search.intent import detect_intent
from product_search.models import Category, Intent, PricePreference, ProductCandidate
from product_search.scoring import RankScorer, ScoringWeights, fuzzy_similarity, levenshtein, score

from builders import make_candidate

scorer = RankScorer()
NEUTRAL = Intent()


def test_levenshtein_and_similarity():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert fuzzy_similarity("iphone", "iphonx") == pytest.approx(5 / 6)
    assert fuzzy_similarity("Galaxy S24", "galaxy") == 1.0
    assert fuzzy_similarity("", "") == 1.0


def test_text_relevance_tiers():
    title_only = make_candidate(title="iPhone", description="Apple smartphone")

    assert scorer.text_relevance(title_only, "iphone") == 50
    assert scorer.text_relevance(make_candidate(title="Apple iPhone 15"), "iphone") == 40
    assert scorer.text_relevance(make_candidate(title="Apple 15", description="the new iphone"), "iphone") == 20


def test_multi_term_partial_credit():
    half_title = make_candidate(title="Samsung Galaxy S24", description="A great phone")
    full_title = make_candidate(title="Galaxy phone by Samsung", description="A great phone")

    assert scorer.text_relevance(half_title, "samsung phone") == pytest.approx(0.5 * 30 + 0.5 * 10)
    # Full title coverage ignores the description.
    assert scorer.text_relevance(full_title, "samsung phone") == pytest.approx(30)


def test_fuzzy_rescue_only_when_nothing_matches():
    assert scorer.text_relevance(make_candidate(title="iphone"), "iphonx") == pytest.approx(25)
    assert scorer.text_relevance(make_candidate(title="laptop", description="portable"), "zzzz") == 0


def test_business_signals_for_reference_candidate():
    # rating 16 + stock 15 + sales 7.5 + returns 8 + complaints 3 + discount 0
    assert scorer.business_signals(make_candidate()) == pytest.approx(49.5)


def test_discount_and_high_stock():
    discounted = make_candidate(price=800, mrp=1000, stock=100)
    plain = make_candidate(price=1000, mrp=1000, stock=10)

    assert scorer.business_signals(discounted) - scorer.business_signals(plain) == pytest.approx(10 + 5)


def test_score_is_deterministic():
    candidate = make_candidate(title="Apple iPhone 15", metadata={"color": "Black"})
    intent = Intent(color="black", latestPreferred=True)

    assert score(candidate, "iphone", intent) == score(candidate, "iphone", intent)


def test_monotonic_in_sales_and_complaints():
    assert score(make_candidate(unitsSold=80), "widget", NEUTRAL) >= score(make_candidate(unitsSold=20), "widget", NEUTRAL)
    assert score(make_candidate(complaints=6), "widget", NEUTRAL) <= score(make_candidate(complaints=0), "widget", NEUTRAL)


def test_out_of_stock_scores_strictly_lower():
    in_stock = make_candidate(stock=3)
    sold_out = make_candidate(stock=0)

    assert score(sold_out, "widget", NEUTRAL) < score(in_stock, "widget", NEUTRAL)


def test_total_is_clamped_at_zero():
    awful = make_candidate(
        title="Broken thing",
        description="nothing",
        rating=0,
        stock=0,
        unitsSold=0,
        returnRate=100,
        complaints=20,
    )
    assert scorer.business_signals(awful) < 0
    assert score(awful, "zzzz", NEUTRAL) == 0


def test_corrected_query_hits_exact_title_tier():
    corrected = correct_spelling("ifone")

    assert corrected == "iphone"
    assert score(make_candidate(title="iphone"), corrected, NEUTRAL) >= ScoringWeights().exact_title


def test_cheap_intent_prefers_lower_price():
    query = correct_spelling("sasta mobile")
    intent = detect_intent(query)
    pricey = make_candidate(title="Mobile phone", price=50000, mrp=50000)
    budget = make_candidate(title="Mobile phone", price=5000, mrp=5000)

    assert intent.pricePreference == PricePreference.CHEAP
    assert score(budget, query, intent) > score(pricey, query, intent)


def test_expensive_intent_is_capped():
    intent = Intent(pricePreference=PricePreference.EXPENSIVE)

    assert scorer.intent_boost(make_candidate(price=50000), intent) == pytest.approx(5)
    assert scorer.intent_boost(make_candidate(price=500000), intent) == pytest.approx(10)


def test_recency_color_storage_and_category_boosts():
    candidate = make_candidate(
        title="iPhone 16 Pro",
        category="phones",
        metadata={"colour": "Midnight Black", "variant": "128GB"},
    )

    assert scorer.intent_boost(candidate, Intent(latestPreferred=True)) == 20
    assert scorer.intent_boost(candidate, Intent(color="black")) == 25
    assert scorer.intent_boost(candidate, Intent(storage="128GB")) == 25
    assert scorer.intent_boost(candidate, Intent(category=Category.PHONES)) == 30
    assert scorer.intent_boost(candidate, Intent(color="red", storage="1TB", category=Category.LAPTOPS)) == 0


def test_malformed_candidate_fields_default_to_zero():
    candidate = ProductCandidate.model_validate(
        {"title": "Cable", "description": None, "rating": None, "stock": "n/a", "metadata": None, "category": "cables"}
    )

    assert candidate.rating == 0
    assert candidate.stock == 0
    assert candidate.category == Category.OTHER
    assert score(candidate, "cable", NEUTRAL) >= 0


@pytest.mark.parametrize("value", ["nan", "inf", "-Infinity", float("nan"), float("inf")])
def test_non_finite_numbers_default_to_zero(value):
    candidate = ProductCandidate.model_validate(
        {"title": "Cable", "stock": value, "rating": value, "price": value, "unitsSold": value}
    )

    assert candidate.stock == 0
    assert candidate.rating == 0
    assert candidate.price == 0
    assert candidate.unitsSold == 0
    assert score(candidate, "cable", NEUTRAL) >= 0
