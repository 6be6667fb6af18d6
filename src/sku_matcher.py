"""
SKU matching & suggestion engine.

Decides whether two differently-spelled SKUs denote the same physical product
and produces ranked, deduplicated mapping suggestions for human review.

Matching Approach:
    - Structural analysis of the SKU code: category prefix, product-name body,
      variant suffix ("P"), display-group suffix ("-BALL"), numeric segments
    - Title analysis: product line, material, background and sport from
      ordered keyword tables (first match in table order wins)
    - Legacy code resolution: old SKU formats (PTB, GBB02, 02) resolved to
      their current product line
    - Hard rejects before scoring, then a weighted score with boosts

Business Rules:
    1. P suffix = same stock/BOM (auto-linked elsewhere) -> never suggested
    2. -BALL suffix = different BOM but grouped for display -> never suggested
    3. Numeric differences = different products -> REJECT
         RS vs RS2 (Ring Stand vs Double Ring Stand)
         COINSLAB-40 vs COINSLAB-45 (different sizes)
    4. Category prefixes = different products -> REJECT
         GBC vs TBC vs BBC (Golf vs Tennis vs Baseball)
    5. Material evolution: AFZ -> MAH -> AHW (all equivalent, can map)
       OAK and OLIVE are standalone and never map to anything else
    6. Legacy product lines: PTB -> VANTAGE, 02/GBB02 -> ICON

Score / Confidence Tiers (defaults, see sku_config.MatcherSettings):
    - score = 0.4 * SKU edit similarity + 0.4 * title word overlap + boosts
    - HIGH:   score >= 0.85, or legacy and score >= 0.70
    - MEDIUM: score >= 0.65
    - LOW:    anything else that clears the acceptance threshold
    - Acceptance: >= 0.50, or >= 0.45 when either side is a legacy SKU

Everything here is a pure function of its inputs. Analyses are recomputed on
every call and nothing is cached between calls.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from sku_config import MatcherSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"
CONFIDENCE_TIERS = (CONFIDENCE_HIGH, CONFIDENCE_MEDIUM, CONFIDENCE_LOW)

# Suffixes marking the same physical item (personalised / engraved)
VARIANT_SUFFIXES = ('P',)

# Suffixes marking a different BOM that is grouped with its base for display
DISPLAY_GROUP_SUFFIXES = ('-BALL',)

# Category codes end with one of these (Ball Case, Display Case, Display Stand)
CATEGORY_SUFFIX_PATTERNS = ('BC', 'DC', 'DS')

# Known category prefixes. More reliable than pattern detection for known products.
KNOWN_CATEGORY_PREFIXES = (
    # Ball Cases
    'GBC',     # Golf Ball Case
    'TBC',     # Tennis Ball Case
    'CBC',     # Cricket Ball Case
    'BBC',     # Baseball Ball Case
    'SBC',     # Soccer Ball Case
    'RBC',     # Rugby Ball Case
    'HBC',     # Hockey Ball Case
    'FBC',     # Football Ball Case
    'FHBC',    # Field Hockey Ball Case
    'IHC',     # Ice Hockey (puck) Case
    # Display Cases
    'BBDC',    # Baseball Ball Display Case
    'CDC',     # Cricket Display Case
    # Display Stands
    'GBDS',    # Golf Ball Display Stand
    'CBDS',    # Cricket Ball Display Stand
    'TBDS',    # Tennis Ball Display Stand
    'FBDS',    # Football Display Stand
    'NFLBDS',  # NFL Football Display Stand
    # Other
    'NFL',     # American Football
    'GBMS',    # Golf Ball Marker Stand
    'GBPS',    # Golf Pencil Stand
)

# Longest first so NFLBDS wins over NFL, FHBC over a shorter match, etc.
_PREFIXES_LONGEST_FIRST = tuple(sorted(KNOWN_CATEGORY_PREFIXES, key=len, reverse=True))

# B-series SKUs (B1-xxx, B2-xxx, B3-xxx) encode base size, not category
_B_SERIES_PATTERN = re.compile(r'^B[123]-')
_ALPHA_ONLY = re.compile(r'^[A-Z]+$')
_DIGIT_RUN = re.compile(r'\d+')


# ---------------------------------------------------------------------------
# Vocabulary tables (ordered: first match wins)
# ---------------------------------------------------------------------------
#
# Product lines:
#   HERITAGE - solid wood base, no turf insert
#   PRESTIGE - solid wood base with turf insert
#   VANTAGE  - turf base (Premium Turf Base = PTB)
#   ICON     - high gloss black base, no turf
PRODUCT_LINE_VANTAGE = 'VANTAGE'
PRODUCT_LINE_ICON = 'ICON'
PRODUCT_LINE_PRESTIGE = 'PRESTIGE'
PRODUCT_LINE_HERITAGE = 'HERITAGE'

PRODUCT_LINE_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ('vantage', PRODUCT_LINE_VANTAGE),
    ('icon', PRODUCT_LINE_ICON),
    ('prestige', PRODUCT_LINE_PRESTIGE),
    ('heritage', PRODUCT_LINE_HERITAGE),
    ('premium turf base', PRODUCT_LINE_VANTAGE),
    ('turf base', PRODUCT_LINE_VANTAGE),
    ('high gloss black', PRODUCT_LINE_ICON),
    ('black base', PRODUCT_LINE_ICON),
    ('gloss black', PRODUCT_LINE_ICON),
    # 'hardwood' alone could be HERITAGE or PRESTIGE, so it is not a cue
)

# Product line names as they appear inside SKU codes
SKU_PRODUCT_LINE_TOKENS: Tuple[Tuple[str, str], ...] = (
    ('VANTAGE', PRODUCT_LINE_VANTAGE),
    ('ICON', PRODUCT_LINE_ICON),
    ('PRESTIGE', PRODUCT_LINE_PRESTIGE),
    ('HERITAGE', PRODUCT_LINE_HERITAGE),
    ('HERI', PRODUCT_LINE_HERITAGE),
)

MATERIAL_MAHOGANY = 'MAH'
MATERIAL_AFRICAN_HARDWOOD = 'AHW'
MATERIAL_AFZELIA = 'AFZ'
MATERIAL_OAK = 'OAK'
MATERIAL_OLIVE = 'OLIVE'

MATERIAL_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ('mahogany', MATERIAL_MAHOGANY),
    ('african hardwood', MATERIAL_AFRICAN_HARDWOOD),
    ('hardwood', MATERIAL_AFRICAN_HARDWOOD),
    ('solid oak', MATERIAL_OAK),
    ('oak', MATERIAL_OAK),
    ('olivewood', MATERIAL_OLIVE),
    ('olive', MATERIAL_OLIVE),
    ('afzelia', MATERIAL_AFZELIA),
)

# Material codes as they appear inside SKU codes, checked in this order
SKU_MATERIAL_TOKENS = (
    MATERIAL_AFRICAN_HARDWOOD,
    MATERIAL_MAHOGANY,
    MATERIAL_AFZELIA,
    MATERIAL_OAK,
    MATERIAL_OLIVE,
)

# Supplier evolution AFZ -> MAH -> AHW. OAK and OLIVE are standalone.
EQUIVALENT_MATERIALS: FrozenSet[str] = frozenset({
    MATERIAL_AFZELIA, MATERIAL_MAHOGANY, MATERIAL_AFRICAN_HARDWOOD,
})

BACKGROUND_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ('hole in one', 'HIO'),
    ('hole-in-one', 'HIO'),
    ('champion', 'CHAMP'),
    ('legendary', 'LEG'),
    ('golf course', 'GC'),
    ('eagle', 'EAGLE'),
    ('birdie', 'BIRDIE'),
    ('par edition', 'PAR'),
    ('albatross', 'ALBATROSS'),
    ('stadium', 'STADIUM'),
    ('home run', 'HOMERUN'),
    ('custom', 'CUSTOMBG'),
)

# NOTE: 'football' precedes 'american football', so 'NFL' is never returned
# from a title ('field hockey ball' likewise resolves to HBC). Kept as-is.
SPORT_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ('golf ball', 'GBC'),
    ('golf display', 'GBC'),
    ('tennis ball', 'TBC'),
    ('baseball', 'BBC'),
    ('cricket ball', 'CBC'),
    ('cricket display', 'CDC'),
    ('soccer ball', 'SBC'),
    ('rugby ball', 'RBC'),
    ('hockey ball', 'HBC'),
    ('field hockey', 'FHBC'),
    ('football', 'FBC'),
    ('american football', 'NFL'),
)

# Non-core categories (jewellery). Coins are NOT excluded.
EXCLUDED_KEYWORDS = (
    'jewel',
    'jewelry',
    'jewellery',
    'necklace',
    'bracelet',
    'earring',
    'earrings',
    'studs',
    'pendant',
    '14k gold',
    'gold-filled',
    'gold filled',
    'hypoallergenic',
    'sterling silver',
    'paperclip chain',
    'xoxo',
)

# (pattern, current product line, note). Matched against the upper-cased SKU.
LEGACY_SKU_PATTERNS: Tuple[Tuple[re.Pattern, str, str], ...] = (
    (re.compile(r'PTB'), PRODUCT_LINE_VANTAGE, 'Premium Turf Base = Vantage'),
    (re.compile(r'GBB02'), PRODUCT_LINE_ICON, 'Old Icon format'),
    (re.compile(r'02(?![0-9])'), PRODUCT_LINE_ICON, 'Old Icon format (02 not followed by digit)'),
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SkuRecord:
    """A catalog entry as seen by the engine (read-only)."""
    sku: str
    product_name: str = ''
    order_count: int = 0
    platforms: FrozenSet[str] = frozenset()

    @classmethod
    def from_dict(cls, data: Dict) -> 'SkuRecord':
        """Build a record from an API-style dict (camelCase or snake_case keys)."""
        name = data.get('productName', data.get('product_name', ''))
        count = data.get('orderCount', data.get('order_count', 0))
        platforms = data.get('platforms') or ()
        return cls(
            sku=str(data.get('sku') or ''),
            product_name=str(name or ''),
            order_count=int(count or 0),
            platforms=frozenset(str(p) for p in platforms),
        )


@dataclass(frozen=True)
class ProductAnalysis:
    category_prefix: Optional[str]
    product_line: Optional[str]
    material: Optional[str]
    background: Optional[str]
    sport: Optional[str]
    is_legacy: bool
    legacy_notes: Optional[str]
    legacy_product_line: Optional[str]
    is_excluded: bool


@dataclass(frozen=True)
class MatchScore:
    score: float
    confidence: str
    reason: str


@dataclass(frozen=True)
class Suggestion:
    source_sku: str
    target_sku: str
    confidence: str
    reason: str
    score: float

    def as_dict(self) -> Dict:
        return {
            'source_sku': self.source_sku,
            'target_sku': self.target_sku,
            'confidence': self.confidence,
            'reason': self.reason,
            'score': self.score,
        }


# ---------------------------------------------------------------------------
# Structural analysis of SKU codes
# ---------------------------------------------------------------------------

def normalize_sku(sku: Optional[str]) -> str:
    """Upper-case and trim a SKU. None becomes an empty string."""
    return (sku or '').strip().upper()


def _strip_first_suffix(text: str, suffixes: Sequence[str]) -> str:
    """Strip the first matching suffix, never reducing the text to nothing."""
    for suffix in suffixes:
        if text.endswith(suffix) and len(text) > len(suffix):
            return text[:-len(suffix)]
    return text


def _has_suffix(text: str, suffixes: Sequence[str]) -> bool:
    return any(text.endswith(s) and len(text) > len(s) for s in suffixes)


def get_category_prefix(sku: str) -> Optional[str]:
    """
    Extract the category prefix from a SKU.

    Known prefixes are checked first (longest first). Otherwise a 2-6 letter
    all-alphabetic leading segment ending in BC, DC or DS is treated as a
    category code. B-series SKUs (B1-, B2-, B3-) have no category prefix.

    Examples:
        'GBC-EAGLE'      -> 'GBC'
        'NFLBDS-CHIEFS'  -> 'NFLBDS'
        'XYBC-01'        -> 'XYBC'
        'B2-HIO'         -> None
        'VANTAGE-GBC'    -> None
    """
    upper = normalize_sku(sku)
    if not upper:
        return None

    for prefix in _PREFIXES_LONGEST_FIRST:
        if upper.startswith(prefix):
            return prefix

    if _B_SERIES_PATTERN.match(upper):
        return None

    for suffix in CATEGORY_SUFFIX_PATTERNS:
        for length in range(2, 7):
            if len(upper) <= length:
                break
            candidate = upper[:length]
            if candidate.endswith(suffix) and _ALPHA_ONLY.match(candidate):
                return candidate

    return None


def get_product_name_body(sku: str) -> str:
    """
    The product-name portion of a SKU: the category prefix is removed, then a
    display-group suffix, then a variant suffix (in that order).

    Examples:
        'GBC-EAGLE'       -> '-EAGLE'
        'GBCVANTAGEP'     -> 'VANTAGE'
        'VANTAGEP-BALL'   -> 'VANTAGE'
    """
    upper = normalize_sku(sku)
    prefix = get_category_prefix(upper)
    body = upper[len(prefix):] if prefix else upper
    # The display suffix is stripped even when it is the whole body ('-BALL' -> '')
    for suffix in DISPLAY_GROUP_SUFFIXES:
        if body.endswith(suffix):
            body = body[:-len(suffix)]
            break
    return _strip_first_suffix(body, VARIANT_SUFFIXES)


def extract_numeric_segments(sku: str) -> List[str]:
    """All maximal digit runs, in order ('COINSLAB-40' -> ['40'])."""
    return _DIGIT_RUN.findall(sku or '')


def differs_by_numeric_segment(sku1: str, sku2: str) -> bool:
    """
    True when two SKUs share a skeleton but differ in their digits.

    Catches both same-shape changes (COINSLAB-40 vs COINSLAB-45, via the
    '#' skeleton) and an added or dropped number (RS vs RS2, via the
    digit-free skeleton).
    """
    upper1 = normalize_sku(sku1)
    upper2 = normalize_sku(sku2)
    nums1 = extract_numeric_segments(upper1)
    nums2 = extract_numeric_segments(upper2)
    if nums1 == nums2:
        return False

    if _DIGIT_RUN.sub('#', upper1) == _DIGIT_RUN.sub('#', upper2):
        return True
    return _DIGIT_RUN.sub('', upper1) == _DIGIT_RUN.sub('', upper2)


def has_different_category_prefix(sku1: str, sku2: str) -> bool:
    """
    True when both SKUs carry a category prefix and they differ, or when
    their product-name bodies are identical but their prefixes are not
    (one side may have none).
    """
    prefix1 = get_category_prefix(sku1)
    prefix2 = get_category_prefix(sku2)

    if prefix1 and prefix2 and prefix1 != prefix2:
        return True

    body1 = get_product_name_body(sku1)
    body2 = get_product_name_body(sku2)
    return bool(body1) and body1 == body2 and prefix1 != prefix2


# ---------------------------------------------------------------------------
# SKU variant utilities (P suffix / -BALL suffix)
# ---------------------------------------------------------------------------

def get_base_sku(sku: str) -> str:
    """
    Base SKU for BOM/inventory purposes (P suffix stripped).

    Examples:
        'VANTAGEP'     -> 'VANTAGE'  (same stock)
        'RSP'          -> 'RS'
        'VANTAGE-BALL' -> 'VANTAGE-BALL'  (different stock, not stripped)
    """
    if not sku:
        return sku
    return _strip_first_suffix(normalize_sku(sku), VARIANT_SUFFIXES)


def get_display_group_base(sku: str) -> str:
    """Display group base: -BALL stripped, then P ('VANTAGEP-BALL' -> 'VANTAGE')."""
    if not sku:
        return sku
    result = _strip_first_suffix(normalize_sku(sku), DISPLAY_GROUP_SUFFIXES)
    return _strip_first_suffix(result, VARIANT_SUFFIXES)


def is_variant_sku(sku: str) -> bool:
    if not sku:
        return False
    return _has_suffix(normalize_sku(sku), VARIANT_SUFFIXES)


def has_display_group_suffix(sku: str) -> bool:
    if not sku:
        return False
    return _has_suffix(normalize_sku(sku), DISPLAY_GROUP_SUFFIXES)


def is_any_variant(sku: str) -> bool:
    return is_variant_sku(sku) or has_display_group_suffix(sku)


def are_sku_variants(sku1: str, sku2: str) -> bool:
    """
    True when two SKUs share a BOM (P-suffix relationship only).

    Examples:
        ('VANTAGE', 'VANTAGEP')     -> True
        ('RS', 'RS2')               -> False  (different products)
        ('VANTAGE', 'VANTAGE-BALL') -> False  (different BOM)
    """
    if not sku1 or not sku2:
        return False
    same_base = get_base_sku(sku1) == get_base_sku(sku2)
    return same_base and (is_variant_sku(sku1) or is_variant_sku(sku2))


def are_in_same_display_group(sku1: str, sku2: str) -> bool:
    """True when two SKUs group together for sales display (P and -BALL)."""
    if not sku1 or not sku2:
        return False
    return get_display_group_base(sku1) == get_display_group_base(sku2)


def differs_only_by_variant_suffix(sku1: str, sku2: str) -> bool:
    return (get_base_sku(normalize_sku(sku1)) == get_base_sku(normalize_sku(sku2))
            and is_variant_sku(sku1) != is_variant_sku(sku2))


def differs_only_by_display_suffix(sku1: str, sku2: str) -> bool:
    upper1 = normalize_sku(sku1)
    upper2 = normalize_sku(sku2)
    for suffix in DISPLAY_GROUP_SUFFIXES:
        has1 = upper1.endswith(suffix)
        has2 = upper2.endswith(suffix)
        if has1 == has2:
            continue
        base1 = upper1[:-len(suffix)] if has1 else upper1
        base2 = upper2[:-len(suffix)] if has2 else upper2
        if base1 == base2:
            return True
    return False


# ---------------------------------------------------------------------------
# Title analysis
# ---------------------------------------------------------------------------

def _first_keyword_match(text: str, table: Tuple[Tuple[str, str], ...]) -> Optional[str]:
    lower = (text or '').lower()
    for keyword, value in table:
        if keyword in lower:
            return value
    return None


def extract_product_line_from_title(title: str) -> Optional[str]:
    return _first_keyword_match(title, PRODUCT_LINE_KEYWORDS)


def extract_material_from_title(title: str) -> Optional[str]:
    return _first_keyword_match(title, MATERIAL_KEYWORDS)


def extract_background_from_title(title: str) -> Optional[str]:
    return _first_keyword_match(title, BACKGROUND_KEYWORDS)


def extract_sport_from_title(title: str) -> Optional[str]:
    return _first_keyword_match(title, SPORT_KEYWORDS)


def extract_product_line_from_sku(sku: str) -> Optional[str]:
    upper = normalize_sku(sku)
    for token, product_line in SKU_PRODUCT_LINE_TOKENS:
        if token in upper:
            return product_line
    return None


def extract_material_from_sku(sku: str) -> Optional[str]:
    upper = normalize_sku(sku)
    for code in SKU_MATERIAL_TOKENS:
        if code in upper:
            return code
    return None


def is_excluded_product(sku: str, title: str) -> bool:
    """True if the SKU or title names a non-core category (jewellery)."""
    combined = f"{sku or ''} {title or ''}".lower()
    return any(keyword in combined for keyword in EXCLUDED_KEYWORDS)


# ---------------------------------------------------------------------------
# Legacy SKU resolution
# ---------------------------------------------------------------------------

def resolve_legacy_product_line(sku: str) -> Optional[Tuple[str, str]]:
    """
    Resolve a legacy SKU format to its current product line.

    Returns (product_line, note) for the first matching pattern, or None.
        'PTB-GBC-HIO' -> ('VANTAGE', 'Premium Turf Base = Vantage')
        'GBB02-EAGLE' -> ('ICON', 'Old Icon format')
    """
    upper = normalize_sku(sku)
    for pattern, product_line, note in LEGACY_SKU_PATTERNS:
        if pattern.search(upper):
            return product_line, note
    return None


def are_materials_equivalent(material1: Optional[str], material2: Optional[str]) -> bool:
    """Same material, or both in the AFZ/MAH/AHW evolution set."""
    if not material1 or not material2:
        return False
    if material1 == material2:
        return True
    return material1 in EQUIVALENT_MATERIALS and material2 in EQUIVALENT_MATERIALS


# ---------------------------------------------------------------------------
# Product analysis
# ---------------------------------------------------------------------------

def analyze_product(sku: str, title: str) -> ProductAnalysis:
    """
    Extract structured information from a SKU and its title.

    Product line: SKU tokens, then title keywords, then the legacy resolver.
    Material: SKU codes, then title keywords.
    Background and sport come from the title only.
    """
    sku = sku or ''
    title = title or ''
    legacy = resolve_legacy_product_line(sku)

    product_line = extract_product_line_from_sku(sku) or extract_product_line_from_title(title)
    if not product_line and legacy:
        product_line = legacy[0]

    return ProductAnalysis(
        category_prefix=get_category_prefix(sku),
        product_line=product_line,
        material=extract_material_from_sku(sku) or extract_material_from_title(title),
        background=extract_background_from_title(title),
        sport=extract_sport_from_title(title),
        is_legacy=legacy is not None,
        legacy_notes=legacy[1] if legacy else None,
        legacy_product_line=legacy[0] if legacy else None,
        is_excluded=is_excluded_product(sku, title),
    )


# ---------------------------------------------------------------------------
# Candidate filter: hard rejects before any scoring
# ---------------------------------------------------------------------------
REJECT_SELF = 'self_match'
REJECT_EXCLUDED = 'excluded_product'
REJECT_NUMERIC = 'numeric_segment'
REJECT_CATEGORY = 'category_prefix'
REJECT_VARIANT = 'variant_suffix'
REJECT_DISPLAY = 'display_suffix'
REJECT_DISPLAY_BASE = 'same_display_base'


def candidate_rejection(
    source_sku: str,
    target_sku: str,
    source_analysis: ProductAnalysis,
    target_analysis: ProductAnalysis,
) -> Optional[str]:
    """
    Apply the hard reject/skip rules to a (source, candidate) pair.

    Rules are checked in a fixed order and the first hit is returned:
        1. Self-match
        2. Either side excluded (jewellery)
        3. Numeric-segment difference (RS vs RS2)
        4. Category-prefix difference (GBC vs TBC)
        5. Variant-suffix-only difference (VANTAGE vs VANTAGEP)
        6. Display-suffix-only difference (VANTAGE vs VANTAGE-BALL)
        7. Same display-group base after stripping both suffix classes

    Returns the rule name, or None if the pair may be scored.
    """
    source_upper = normalize_sku(source_sku)
    target_upper = normalize_sku(target_sku)

    if source_upper == target_upper:
        return REJECT_SELF
    if source_analysis.is_excluded or target_analysis.is_excluded:
        return REJECT_EXCLUDED
    if differs_by_numeric_segment(source_upper, target_upper):
        return REJECT_NUMERIC
    # A legacy SKU whose detected prefix differs from its target's is rejected
    # here, before the scorer's legacy exception for product lines applies.
    if has_different_category_prefix(source_upper, target_upper):
        return REJECT_CATEGORY
    if differs_only_by_variant_suffix(source_upper, target_upper):
        return REJECT_VARIANT
    if differs_only_by_display_suffix(source_upper, target_upper):
        return REJECT_DISPLAY
    if get_display_group_base(source_upper) == get_display_group_base(target_upper):
        return REJECT_DISPLAY_BASE
    return None


# ---------------------------------------------------------------------------
# Similarity & scoring
# ---------------------------------------------------------------------------

def string_similarity(a: str, b: str) -> float:
    """1 - case-insensitive Levenshtein distance / longer length (1.0 for two empties)."""
    a = (a or '').lower()
    b = (b or '').lower()
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1 - Levenshtein.distance(a, b) / max_len


def word_overlap_score(name1: str, name2: str, min_word_length: int = 3) -> float:
    """Jaccard overlap of the whitespace-separated words of two titles."""
    if not name1 or not name2:
        return 0.0
    words1 = {w for w in name1.lower().split() if len(w) >= min_word_length}
    words2 = {w for w in name2.lower().split() if len(w) >= min_word_length}
    if not words1 or not words2:
        return 0.0
    return len(words1 & words2) / len(words1 | words2)


def _percent(value: float) -> int:
    """Round half-up to a whole percentage."""
    return int(value * 100 + 0.5)


def classify_confidence(score: float, is_legacy: bool, settings: MatcherSettings) -> str:
    if score >= settings.high_confidence or (is_legacy and score >= settings.legacy_high_confidence):
        return CONFIDENCE_HIGH
    if score >= settings.medium_confidence:
        return CONFIDENCE_MEDIUM
    return CONFIDENCE_LOW


def acceptance_threshold(
    source_analysis: ProductAnalysis,
    target_analysis: ProductAnalysis,
    settings: MatcherSettings,
) -> float:
    if source_analysis.is_legacy or target_analysis.is_legacy:
        return settings.legacy_min_score
    return settings.min_score


def semantic_rejection(source_analysis: ProductAnalysis, target_analysis: ProductAnalysis) -> Optional[str]:
    """
    Different product lines or non-equivalent materials mean a different BOM.

    A product-line conflict is tolerated when either side is a legacy SKU,
    since the legacy resolver is what tells us they match.
    """
    line1, line2 = source_analysis.product_line, target_analysis.product_line
    if line1 and line2 and line1 != line2:
        if not (source_analysis.is_legacy or target_analysis.is_legacy):
            return 'product_line'

    mat1, mat2 = source_analysis.material, target_analysis.material
    if mat1 and mat2 and mat1 != mat2 and not are_materials_equivalent(mat1, mat2):
        return 'material'
    return None


def calculate_match_score(
    source: SkuRecord,
    target: SkuRecord,
    source_analysis: ProductAnalysis,
    target_analysis: ProductAnalysis,
    settings: Optional[MatcherSettings] = None,
) -> Optional[MatchScore]:
    """
    Score a candidate pair using both SKU and title analysis.

    Returns None when the pair is a semantic conflict (see semantic_rejection).
    Otherwise returns the score, its confidence tier and a reason such as
        'SKU 60%, Title 50% | Same product line (VANTAGE), Same background (HIO)'
    """
    settings = settings or MatcherSettings()

    rejected = semantic_rejection(source_analysis, target_analysis)
    if rejected:
        logger.debug("Rejected %s -> %s (%s)", source.sku, target.sku, rejected)
        return None

    sku_similarity = string_similarity(normalize_sku(source.sku), normalize_sku(target.sku))
    name_similarity = word_overlap_score(
        source.product_name, target.product_name, settings.min_word_length
    )

    score = sku_similarity * settings.sku_weight + name_similarity * settings.title_weight
    reasons = []

    line1, line2 = source_analysis.product_line, target_analysis.product_line
    if line1 and line2 and line1 == line2:
        score += settings.same_line_boost
        reasons.append(f"Same product line ({line1})")

    if are_materials_equivalent(source_analysis.material, target_analysis.material):
        score += settings.equivalent_material_boost
        reasons.append(
            f"Equivalent materials ({source_analysis.material}→{target_analysis.material})"
        )

    is_legacy = source_analysis.is_legacy or target_analysis.is_legacy
    if is_legacy:
        if source_analysis.is_legacy:
            legacy_line, other_line = source_analysis.legacy_product_line, target_analysis.product_line
        else:
            legacy_line, other_line = target_analysis.legacy_product_line, source_analysis.product_line
        if legacy_line and other_line and legacy_line == other_line:
            score += settings.legacy_boost
            notes = source_analysis.legacy_notes or target_analysis.legacy_notes
            reasons.append(f"Legacy SKU mapping ({notes})")

    bg1, bg2 = source_analysis.background, target_analysis.background
    if bg1 and bg2 and bg1 == bg2:
        score += settings.same_background_boost
        reasons.append(f"Same background ({bg1})")

    if name_similarity >= settings.similar_title_threshold:
        score += settings.similar_title_boost
        reasons.append('Very similar titles')

    reason = f"SKU {_percent(sku_similarity)}%, Title {_percent(name_similarity)}%"
    if reasons:
        reason += " | " + ", ".join(reasons)

    return MatchScore(
        score=score,
        confidence=classify_confidence(score, is_legacy, settings),
        reason=reason,
    )


# ---------------------------------------------------------------------------
# Suggestion ranking & deduplication
# ---------------------------------------------------------------------------

def _rank_candidates(
    source: SkuRecord,
    source_analysis: ProductAnalysis,
    catalog: Sequence[SkuRecord],
    analyses: Sequence[ProductAnalysis],
    limit: int,
    settings: MatcherSettings,
) -> List[Suggestion]:
    if source_analysis.is_excluded:
        return []

    suggestions = []
    for target, target_analysis in zip(catalog, analyses):
        # A blank SKU is still scored: SKU similarity 0, title overlap counts
        rule = candidate_rejection(source.sku, target.sku, source_analysis, target_analysis)
        if rule:
            if rule != REJECT_SELF:
                logger.debug("Skipped %s -> %s (%s)", source.sku, target.sku, rule)
            continue

        match = calculate_match_score(source, target, source_analysis, target_analysis, settings)
        if match is None:
            continue
        if match.score < acceptance_threshold(source_analysis, target_analysis, settings):
            continue

        suggestions.append(Suggestion(
            source_sku=source.sku,
            target_sku=target.sku,
            confidence=match.confidence,
            reason=match.reason,
            score=match.score,
        ))

    # sorted() is stable: equal scores keep catalog order
    suggestions = sorted(suggestions, key=lambda s: s.score, reverse=True)
    return suggestions[:limit]


def get_suggestions_for_sku(
    source: SkuRecord,
    catalog: Sequence[SkuRecord],
    max_suggestions: Optional[int] = None,
    settings: Optional[MatcherSettings] = None,
) -> List[Suggestion]:
    """
    Suggested mapping targets for one source SKU, best first.

    An empty list is the normal "no suggestion" answer, not an error.
    """
    settings = settings or MatcherSettings()
    limit = settings.max_suggestions if max_suggestions is None else max_suggestions
    analyses = [analyze_product(r.sku, r.product_name) for r in catalog]
    source_analysis = analyze_product(source.sku, source.product_name)
    return _rank_candidates(source, source_analysis, catalog, analyses, limit, settings)


def deduplicate_suggestions(suggestions: Iterable[Suggestion]) -> List[Suggestion]:
    """
    Keep only the first suggestion per unordered {source, target} pair.

    Input order decides which direction survives (A->B drops a later B->A).
    """
    seen = set()
    unique = []
    for suggestion in suggestions:
        key = tuple(sorted((normalize_sku(suggestion.source_sku), normalize_sku(suggestion.target_sku))))
        if key in seen:
            continue
        seen.add(key)
        unique.append(suggestion)
    return unique


def generate_all_suggestions(
    records: Sequence[SkuRecord],
    mapped_skus: Iterable[str] = (),
    settings: Optional[MatcherSettings] = None,
) -> List[Suggestion]:
    """
    Suggestions for every not-yet-mapped SKU in the catalog.

    Each unmapped source contributes its top `batch_suggestions` candidates
    (default 2). Symmetric duplicates are then removed, keeping the first
    occurrence in catalog order, so `records` must be an ordered sequence.
    """
    settings = settings or MatcherSettings()
    mapped = {normalize_sku(s) for s in mapped_skus}
    analyses = [analyze_product(r.sku, r.product_name) for r in records]

    collected = []
    scanned = 0
    for record, analysis in zip(records, analyses):
        if normalize_sku(record.sku) in mapped:
            continue
        scanned += 1
        collected.extend(_rank_candidates(
            record, analysis, records, analyses, settings.batch_suggestions, settings
        ))

    unique = deduplicate_suggestions(collected)
    logger.info(
        "Scanned %d of %d SKUs: %d suggestions (%d after dedup)",
        scanned, len(records), len(collected), len(unique),
    )
    return unique


def summarize_by_confidence(suggestions: Iterable[Suggestion]) -> Dict[str, int]:
    """Count suggestions per confidence tier ({'high': n, 'medium': n, 'low': n})."""
    summary = {tier: 0 for tier in CONFIDENCE_TIERS}
    for suggestion in suggestions:
        summary[suggestion.confidence] += 1
    return summary
