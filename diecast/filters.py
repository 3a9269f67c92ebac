import pandas as pd

from diecast.models import normalize_collection

SEARCH_COLUMNS = ["model", "brand", "pack"]


def facet_options(df: pd.DataFrame, column: str) -> list[str]:
    if df is None or df.empty or column not in df.columns:
        return []
    vals = df[column].fillna("").astype(str).str.strip()
    return sorted({v for v in vals if v}, key=str.lower)


def filter_collection(df: pd.DataFrame, search: str = "", brand: str = "", manufacturer: str = "") -> pd.DataFrame:
    """
    search matches model/brand/pack as a case-insensitive substring;
    brand and manufacturer are case-insensitive exact filters. Blank = no filter.
    """
    filtered = normalize_collection(df)

    if brand:
        filtered = filtered[filtered["brand"].str.strip().str.lower() == brand.strip().lower()]
    if manufacturer:
        filtered = filtered[filtered["manufacturer"].str.strip().str.lower() == manufacturer.strip().lower()]

    s = (search or "").lower()
    if s:
        mask = pd.Series(False, index=filtered.index)
        for col in SEARCH_COLUMNS:
            mask |= filtered[col].str.lower().str.contains(s, regex=False)
        filtered = filtered[mask]

    return filtered
