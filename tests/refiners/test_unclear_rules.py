import pytest

from allergen_scanner.analyzers.analysis_base import AnalysisResult, DetectedAllergen, Severity
from allergen_scanner.analyzers.vlm_parsing import INGREDIENTS_NOT_EXTRACTED
from allergen_scanner.refiners.unclear_rules import (
    MARKER_PHRASES,
    UNCLEAR_RULES,
    find_unclear_reason,
)

CLEAN_INGREDIENTS = "Rolled oats, honey, sunflower oil, almonds, sea salt, natural vanilla flavor"


def _result(**overrides) -> AnalysisResult:
    base = dict(
        product_name="Granola Clusters",
        is_safe=False,
        ingredients=CLEAN_INGREDIENTS,
        recommendation="Contains almonds; avoid if allergic to tree nuts.",
        alternative_suggestion="",
        detected_allergens=(DetectedAllergen("Tree Nuts", "almonds", Severity.UNSAFE),),
    )
    base.update(overrides)
    return AnalysisResult(**base)


def test_clean_result_has_no_unclear_reason():
    assert find_unclear_reason(_result()) is None


@pytest.mark.parametrize("field_name,phrase", MARKER_PHRASES)
def test_each_marker_phrase_triggers_on_its_field(field_name, phrase):
    current = getattr(_result(), field_name)
    res = _result(**{field_name: f"{current} {phrase.upper()} text"})
    assert find_unclear_reason(res) == f"{field_name}_mentions:{phrase}"


def test_typographic_apostrophe_is_matched():
    res = _result(ingredients="Sorry, I can’t read the small print on this package at all")
    assert find_unclear_reason(res) == "ingredients_mentions:can't read"


def test_marker_phrase_in_other_field_is_ignored():
    # "cannot" is only a marker when the model writes it into the ingredients transcript
    res = _result(recommendation="You cannot eat this: it contains almonds.")
    assert find_unclear_reason(res) is None


def test_empty_ingredients_is_unclear():
    assert find_unclear_reason(_result(ingredients="")) == "ingredients_empty"


def test_short_ingredients_is_unclear():
    assert find_unclear_reason(_result(ingredients="Water, salt")) == "ingredients_too_short"


def test_placeholder_ingredients_is_unclear():
    assert find_unclear_reason(_result(ingredients=INGREDIENTS_NOT_EXTRACTED)) == "ingredients_not_extracted"


def test_safe_claim_with_short_transcript_is_unclear():
    ingredients = "Spring water, lemon juice, cane sugar..."
    assert len(ingredients) == 40

    res = _result(is_safe=True, detected_allergens=(), ingredients=ingredients)
    assert find_unclear_reason(res) == "safe_claim_with_short_ingredients"


def test_safe_claim_with_long_enough_transcript_stands():
    ingredients = "Spring water, lemon juice, cane sugar, citric acid, sea salt"
    assert len(ingredients) == 60

    res = _result(is_safe=True, detected_allergens=(), ingredients=ingredients)
    assert find_unclear_reason(res) is None


def test_short_transcript_with_findings_is_not_forced_unclear():
    ingredients = "Spring water, lemon juice, whey protein"
    res = _result(is_safe=True, ingredients=ingredients)
    assert find_unclear_reason(res) is None


def test_rules_are_data_with_unique_reasons():
    reasons = [r.reason for r in UNCLEAR_RULES]
    assert len(reasons) == len(set(reasons))


def test_partial_list_marker_does_not_fire_on_ingredient_names():
    res = _result(ingredients="Enriched flour, partially hydrogenated soybean oil, sugar, salt, whey")
    assert find_unclear_reason(res) is None

    partial = _result(ingredients="Partial list only: sugar, wheat flour, cocoa butter, soy lecithin")
    assert find_unclear_reason(partial) == "ingredients_mentions:partial list"
