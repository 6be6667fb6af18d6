"""
Hard reject / skip rules applied before scoring, in rule order.
"""
import pytest

from sku_matcher import (
    REJECT_CATEGORY,
    REJECT_DISPLAY,
    REJECT_DISPLAY_BASE,
    REJECT_EXCLUDED,
    REJECT_NUMERIC,
    REJECT_SELF,
    REJECT_VARIANT,
    analyze_product,
    candidate_rejection,
)


def _rejection(sku1, sku2, title1='', title2=''):
    return candidate_rejection(
        sku1, sku2, analyze_product(sku1, title1), analyze_product(sku2, title2)
    )


@pytest.mark.parametrize("sku1, sku2, expected", [
    ("GBC-EAGLE", " gbc-eagle ", REJECT_SELF),
    ("NECKLACE-GOLD-01", "NECKLACE-GOLD-02", REJECT_EXCLUDED),   # excluded checked before numeric
    ("RS", "RS2", REJECT_NUMERIC),
    ("COINSLAB-40", "COINSLAB-45", REJECT_NUMERIC),
    ("GBC-EAGLE", "TBC-EAGLE", REJECT_CATEGORY),
    ("GBC123", "TBC123", REJECT_CATEGORY),
    ("VANTAGE", "VANTAGEP", REJECT_VARIANT),
    ("VANTAGE", "VANTAGE-BALL", REJECT_DISPLAY),
    ("VANTAGEP", "VANTAGE-BALL", REJECT_DISPLAY_BASE),
    ("PTB-GBC-HIO", "VANTAGE-GBC-HIO", None),
    ("HERITAGE-MAH-EAGLE", "HERITAGE-AHW-EAGLE", None),
    ("GBC-BALL", "-BALL", None),                                # empty bodies are not a prefix conflict
])
def test_rule_order(sku1, sku2, expected):
    assert _rejection(sku1, sku2) == expected


@pytest.mark.parametrize("sku1, sku2", [
    ("RS", "RS2"),
    ("COINSLAB-40", "COINSLAB-45"),
    ("GBC123", "TBC123"),
    ("GBC-EAGLE", "TBC-EAGLE"),
    ("VANTAGE", "VANTAGEP"),
    ("VANTAGE", "VANTAGE-BALL"),
])
def test_rejections_are_symmetric(sku1, sku2):
    assert _rejection(sku1, sku2) is not None
    assert _rejection(sku2, sku1) is not None


def test_excluded_by_title_only():
    rejection = _rejection("GBC-EAGLE", "GBC-BIRDIE", title2="Sterling Silver Bracelet")
    assert rejection == REJECT_EXCLUDED


def test_legacy_sku_with_different_prefix_is_rejected_before_scoring():
    # The scorer would tolerate the product-line conflict for a legacy SKU,
    # but the category prefix rule fires first.
    rejection = _rejection(
        "GBC-PTB-HIO", "TBC-VANTAGE-HIO",
        "Premium Turf Base Golf Ball Case", "Vantage Tennis Ball Case",
    )
    assert rejection == REJECT_CATEGORY
