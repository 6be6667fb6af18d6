"""
Structural SKU analysis:
- category prefix detection (known list, pattern fallback, B-series)
- product-name body stripping order
- numeric segment differences (RS vs RS2, COINSLAB-40 vs COINSLAB-45)
- P / -BALL variant utilities
"""
import pytest

from sku_matcher import (
    are_in_same_display_group,
    are_sku_variants,
    differs_by_numeric_segment,
    differs_only_by_display_suffix,
    differs_only_by_variant_suffix,
    extract_numeric_segments,
    get_base_sku,
    get_category_prefix,
    get_display_group_base,
    get_product_name_body,
    has_different_category_prefix,
    has_display_group_suffix,
    is_any_variant,
    is_variant_sku,
)


@pytest.mark.parametrize("sku, expected", [
    ("GBC-EAGLE", "GBC"),
    ("  gbc-eagle ", "GBC"),          # trimmed and upper-cased
    ("NFLBDS-CHIEFS", "NFLBDS"),      # longest known prefix wins over NFL
    ("NFL-CHIEFS", "NFL"),
    ("FHBC-01", "FHBC"),
    ("BBDC-STADIUM", "BBDC"),
    ("GBDS-3", "GBDS"),
    ("XYBC-01", "XYBC"),              # pattern: letters ending in BC
    ("ABDS9", "ABDS"),                # pattern: letters ending in DS
    ("B2-HIO", None),                 # B-series has no category prefix
    ("VANTAGE-GBC-HIO", None),
    ("PTB-GBC-HIO", None),
    ("BC", None),                     # nothing left after the prefix
    ("", None),
    (None, None),
])
def test_category_prefix(sku, expected):
    assert get_category_prefix(sku) == expected


@pytest.mark.parametrize("sku, expected", [
    ("GBC-EAGLE", "-EAGLE"),
    ("GBCVANTAGEP", "VANTAGE"),
    ("VANTAGEP-BALL", "VANTAGE"),     # -BALL stripped before P
    ("VANTAGE-BALL", "VANTAGE"),
    ("RSP", "RS"),
    ("P", "P"),
    ("-BALL", ""),                    # display suffix stripped even when it is the whole body
    ("GBC-BALL", ""),
])
def test_product_name_body(sku, expected):
    assert get_product_name_body(sku) == expected


@pytest.mark.parametrize("sku, expected", [
    ("COINSLAB-40", ["40"]),
    ("B2-HIO-10", ["2", "10"]),
    ("VANTAGE", []),
    ("", []),
])
def test_numeric_segments(sku, expected):
    assert extract_numeric_segments(sku) == expected


@pytest.mark.parametrize("sku1, sku2", [
    ("RS", "RS2"),
    ("COINSLAB-40", "COINSLAB-45"),
    ("coinslab-40", "COINSLAB-45"),
    ("GBC-HIO-1", "GBC-HIO-12"),
])
def test_numeric_difference_detected_both_directions(sku1, sku2):
    assert differs_by_numeric_segment(sku1, sku2)
    assert differs_by_numeric_segment(sku2, sku1)


@pytest.mark.parametrize("sku1, sku2", [
    ("RS", "RS"),
    ("RS2", "rs2"),
    ("A1B", "AB1"),                   # same digits, different skeleton
    ("GBC-EAGLE", "TBC-EAGLE"),
    ("PTB-GBC-HIO", "VANTAGE-GBC-HIO"),
])
def test_numeric_difference_not_detected(sku1, sku2):
    assert not differs_by_numeric_segment(sku1, sku2)


@pytest.mark.parametrize("sku1, sku2, expected", [
    ("GBC-EAGLE", "TBC-EAGLE", True),
    ("GBC123", "TBC123", True),
    ("GBC-EAGLE", "GBDS-EAGLE", True),    # case vs stand, same sport
    ("GBC-EAGLE", "-EAGLE", True),        # same body, only one side prefixed
    ("GBC-EAGLE", "GBC-BIRDIE", False),
    ("GBC-BALL", "-BALL", False),         # both bodies empty
    ("PTB-GBC-HIO", "VANTAGE-GBC-HIO", False),
])
def test_category_prefix_difference(sku1, sku2, expected):
    assert has_different_category_prefix(sku1, sku2) is expected
    assert has_different_category_prefix(sku2, sku1) is expected


class TestVariantUtilities:
    @pytest.mark.parametrize("sku, expected", [
        ("VANTAGEP", "VANTAGE"),
        ("rsp", "RS"),
        ("VANTAGE-BALL", "VANTAGE-BALL"),
        ("P", "P"),
        ("", ""),
    ])
    def test_base_sku(self, sku, expected):
        assert get_base_sku(sku) == expected

    @pytest.mark.parametrize("sku, expected", [
        ("VANTAGE-BALL", "VANTAGE"),
        ("VANTAGEP-BALL", "VANTAGE"),
        ("VANTAGEP", "VANTAGE"),
        ("VANTAGE", "VANTAGE"),
    ])
    def test_display_group_base(self, sku, expected):
        assert get_display_group_base(sku) == expected

    def test_variant_flags(self):
        assert is_variant_sku("VANTAGEP")
        assert not is_variant_sku("P")
        assert not is_variant_sku("")
        assert has_display_group_suffix("VANTAGE-BALL")
        assert not has_display_group_suffix("-BALL")
        assert is_any_variant("ICON-BALL")
        assert is_any_variant("ICONP")
        assert not is_any_variant("ICON")

    @pytest.mark.parametrize("sku1, sku2, expected", [
        ("VANTAGE", "VANTAGEP", True),
        ("RS", "RS2", False),
        ("VANTAGE", "VANTAGE-BALL", False),
        ("VANTAGE", "", False),
    ])
    def test_are_sku_variants(self, sku1, sku2, expected):
        assert are_sku_variants(sku1, sku2) is expected

    def test_same_display_group(self):
        assert are_in_same_display_group("VANTAGE", "VANTAGEP-BALL")
        assert not are_in_same_display_group("VANTAGE", "ICON")
        assert not are_in_same_display_group("", "ICON")

    def test_suffix_only_differences(self):
        assert differs_only_by_variant_suffix("VANTAGE", "VANTAGEP")
        assert not differs_only_by_variant_suffix("VANTAGEP", "VANTAGEP")
        assert differs_only_by_display_suffix("VANTAGE", "VANTAGE-BALL")
        assert not differs_only_by_display_suffix("VANTAGEP", "VANTAGE-BALL")
