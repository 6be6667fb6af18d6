"""
Tabular adapters between pandas and the SKU suggestion engine.

Catalog export files (SKU discovery sheets, order-line dumps) arrive with
inconsistent headers, so the SKU / title / order-count / platforms columns
are detected by keyword against the header row.

Suggestions go back out as a DataFrame or an Excel workbook for review:
    - Summary sheet: counts per confidence tier
    - One sheet per tier (High / Medium / Low), best score first
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from sku_matcher import (
    CONFIDENCE_TIERS,
    SkuRecord,
    Suggestion,
    normalize_sku,
    summarize_by_confidence,
)

logger = logging.getLogger(__name__)


class CatalogFormatError(ValueError):
    """Raised when a catalog frame has no usable SKU column."""


# ---------------------------------------------------------------------------
# Column detection
# ---------------------------------------------------------------------------

# Checked against the lowercased header. Order matters: first hit wins.
SKU_KEYWORDS = ['sku', 'item code', 'product code', 'code']
NAME_KEYWORDS = ['product name', 'productname', 'title', 'name', 'description']
ORDER_COUNT_KEYWORDS = ['order count', 'ordercount', 'order_count', 'orders']
PLATFORM_KEYWORDS = ['platforms', 'platform', 'channel', 'store']

# Headers containing these are never taken as the title column
NAME_EXCLUDE_KEYWORDS = ['sku', 'code', 'id']

SUGGESTION_COLUMNS = ['source_sku', 'target_sku', 'confidence', 'score', 'reason']


def _find_column(columns: Sequence[str], keywords: List[str], taken: Iterable[str] = ()) -> Optional[str]:
    taken = set(taken)
    for keyword in keywords:
        for col in columns:
            if col in taken:
                continue
            if keyword in str(col).lower().strip():
                return col
    return None


def detect_catalog_columns(columns: Sequence[str]) -> Dict[str, Optional[str]]:
    """
    Given the header of a catalog sheet, detect which column holds what.

    Returns dict with:
        'sku_col':      SKU code column (None if not found)
        'name_col':     product title column
        'count_col':    order count column
        'platform_col': platforms column
    """
    columns = list(columns)
    sku_col = _find_column(columns, SKU_KEYWORDS)

    name_candidates = [
        c for c in columns
        if c != sku_col and not any(kw in str(c).lower().split() for kw in NAME_EXCLUDE_KEYWORDS)
    ]
    name_col = _find_column(name_candidates, NAME_KEYWORDS)

    taken = [c for c in (sku_col, name_col) if c]
    count_col = _find_column(columns, ORDER_COUNT_KEYWORDS, taken)
    if count_col:
        taken.append(count_col)
    platform_col = _find_column(columns, PLATFORM_KEYWORDS, taken)

    return {
        'sku_col': sku_col,
        'name_col': name_col,
        'count_col': count_col,
        'platform_col': platform_col,
    }


# ---------------------------------------------------------------------------
# DataFrame -> records
# ---------------------------------------------------------------------------

def _parse_platforms(value) -> frozenset:
    """Platforms arrive as a list, or as 'shopify, etsy' text."""
    if isinstance(value, (list, tuple, set, frozenset)):
        items = value
    elif value is None or (isinstance(value, float) and pd.isna(value)):
        return frozenset()
    else:
        items = str(value).split(',')
    return frozenset(str(p).strip().lower() for p in items if str(p).strip())


def _parse_count(value) -> int:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return 0
    count = pd.to_numeric(value, errors='coerce')
    return 0 if pd.isna(count) else int(count)


def records_from_dataframe(
    df: pd.DataFrame,
    sku_col: Optional[str] = None,
    name_col: Optional[str] = None,
    count_col: Optional[str] = None,
    platform_col: Optional[str] = None,
) -> List[SkuRecord]:
    """
    Build engine records from a catalog DataFrame, preserving row order.

    Columns not given explicitly are detected from the header. Rows with
    neither SKU nor title are dropped; a row with only a title is kept with an
    empty SKU and matched on its title. A missing title column yields empty
    titles, which the scorer treats as zero title overlap.
    """
    detected = detect_catalog_columns(df.columns)
    sku_col = sku_col or detected['sku_col']
    name_col = name_col or detected['name_col']
    count_col = count_col or detected['count_col']
    platform_col = platform_col or detected['platform_col']

    if sku_col is None or sku_col not in df.columns:
        raise CatalogFormatError(f"No SKU column found in {list(df.columns)}")

    records = []
    dropped = 0
    for _, row in df.iterrows():
        raw_sku = row[sku_col]
        sku = '' if pd.isna(raw_sku) else str(raw_sku).strip()

        title = ''
        if name_col and not pd.isna(row[name_col]):
            title = str(row[name_col]).strip()

        if not sku and not title:
            dropped += 1
            continue

        records.append(SkuRecord(
            sku=sku,
            product_name=title,
            order_count=_parse_count(row[count_col]) if count_col else 0,
            platforms=_parse_platforms(row[platform_col]) if platform_col else frozenset(),
        ))

    if dropped:
        logger.info("Dropped %d catalog rows with no SKU or title", dropped)
    return records


def read_catalog(source, sheet_name=0) -> List[SkuRecord]:
    """Read a CSV or Excel catalog (path or file-like with a .name) into records."""
    name = str(getattr(source, 'name', source)).lower()
    if name.endswith('.csv'):
        df = pd.read_csv(source)
    else:
        df = pd.read_excel(source, sheet_name=sheet_name, engine='openpyxl')
    return records_from_dataframe(df)


# ---------------------------------------------------------------------------
# Suggestions -> DataFrame / Excel
# ---------------------------------------------------------------------------

def suggestions_to_dataframe(suggestions: Iterable[Suggestion]) -> pd.DataFrame:
    """One row per suggestion, in the order given."""
    rows = [s.as_dict() for s in suggestions]
    df = pd.DataFrame(rows, columns=SUGGESTION_COLUMNS)
    df['score'] = df['score'].astype(float).round(4)
    return df


def compute_suggestion_metrics(
    records: Sequence[SkuRecord],
    suggestions: Sequence[Suggestion],
    mapped_skus: Iterable[str] = (),
) -> Dict[str, object]:
    """
    Review dashboard metrics for a suggestion run.

    Returns a dict with:
        total_skus: catalog size
        mapped_skus: catalog SKUs already mapped (not scanned as sources)
        unmapped_skus: catalog SKUs scanned as sources
        suggestion_count: suggestions after deduplication
        sources_with_suggestions / coverage_rate: unmapped SKUs that received
            at least one suggestion, and as a percentage of unmapped SKUs
        high / medium / low: per-tier counts
        avg_score: mean score across suggestions
    """
    mapped = {normalize_sku(s) for s in mapped_skus}
    catalog_skus = [normalize_sku(r.sku) for r in records if normalize_sku(r.sku)]
    unmapped = [s for s in catalog_skus if s not in mapped]
    sources = {normalize_sku(s.source_sku) for s in suggestions}
    covered = len([s for s in set(unmapped) if s in sources])

    metrics = {
        'total_skus': len(catalog_skus),
        'mapped_skus': len(catalog_skus) - len(unmapped),
        'unmapped_skus': len(unmapped),
        'suggestion_count': len(suggestions),
        'sources_with_suggestions': covered,
        'coverage_rate': round(covered / len(set(unmapped)) * 100, 1) if unmapped else 0.0,
        'avg_score': round(sum(s.score for s in suggestions) / len(suggestions), 4) if suggestions else 0.0,
    }
    metrics.update(summarize_by_confidence(suggestions))
    return metrics


def export_suggestions(suggestions: Sequence[Suggestion], target) -> None:
    """
    Write suggestions to an Excel workbook (path or binary buffer).

    Sheets: 'Summary', then 'High', 'Medium', 'Low' (each best score first).
    """
    df = suggestions_to_dataframe(suggestions)
    summary = summarize_by_confidence(suggestions)
    summary_rows = [{'confidence': tier, 'count': summary[tier]} for tier in CONFIDENCE_TIERS]
    summary_rows.append({'confidence': 'total', 'count': len(df)})

    if isinstance(target, (str, Path)):
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(target, engine='openpyxl') as writer:
        pd.DataFrame(summary_rows).to_excel(writer, sheet_name='Summary', index=False)
        for tier in CONFIDENCE_TIERS:
            tier_df = df[df['confidence'] == tier].sort_values('score', ascending=False, kind='stable')
            tier_df.to_excel(writer, sheet_name=tier.capitalize(), index=False)
