"""
Duplicate detection for the scanner and the purchase check.

The scanner compares an AI-read car against the collection and grades each
hit as exact, strong or potential. Model strings are compared with the brand
stripped out, so "Toyota Corolla" does not hit "Toyota Supra" on "toyota".
"""

import re
import unicodedata

MATCH_EXACT = "exact"
MATCH_STRONG = "strong"
MATCH_POTENTIAL = "potential"

MATCH_ORDER = {MATCH_EXACT: 0, MATCH_STRONG: 1, MATCH_POTENTIAL: 2}

MATCH_REASONS = {
    MATCH_EXACT: "Identical model",
    MATCH_STRONG: "Very close variation",
    MATCH_POTENTIAL: "Similar model",
}


def normalize(value) -> str:
    """Lowercase, trimmed, accents stripped."""
    s = "" if value is None else str(value)
    s = unicodedata.normalize("NFD", s.lower().strip())
    return "".join(ch for ch in s if not unicodedata.combining(ch))


def clean_model(model: str, brand: str) -> str:
    if not brand:
        return model.strip()
    return model.replace(brand, "", 1).strip()


def tokens(s: str) -> list[str]:
    return [w for w in s.split() if len(w) > 1]


def _tokens_match(a: list[str], b: list[str]) -> bool:
    common = [t for t in a if t in b]
    if not common:
        return False
    # every word of the shorter model is in the longer one
    is_subset = len(common) == min(len(a), len(b))
    multi = len(common) >= 2
    # "911", "gt3", "f-150": one shared numeric token is enough
    numeric = len(common) == 1 and re.search(r"\d", common[0]) is not None
    return is_subset or multi or numeric


def find_duplicates(candidate: dict, collection: list[dict]) -> list[dict]:
    """
    Collection items that look like `candidate`, each a copy of the record
    with `match_type` and `match_reason` added, ordered exact > strong > potential.
    """
    cand_brand = normalize(candidate.get("brand"))
    cand_model = clean_model(normalize(candidate.get("model")), cand_brand)
    if not cand_model:
        return []
    cand_tokens = tokens(cand_model)

    found = []
    for car in collection:
        car_brand = normalize(car.get("brand"))
        if cand_brand and car_brand and cand_brand != car_brand:
            continue

        car_model = clean_model(normalize(car.get("model")), car_brand)

        if car_model == cand_model:
            kind = MATCH_EXACT
        elif _tokens_match(cand_tokens, tokens(car_model)):
            same_maker = normalize(car.get("manufacturer")) == normalize(candidate.get("manufacturer"))
            same_color = normalize(car.get("color")) == normalize(candidate.get("color"))
            kind = MATCH_STRONG if same_maker and same_color else MATCH_POTENTIAL
        else:
            continue

        found.append({**car, "match_type": kind, "match_reason": MATCH_REASONS[kind]})

    found.sort(key=lambda m: MATCH_ORDER[m["match_type"]])
    return found


def purchase_check(criteria: dict, collection: list[dict], manual_search: str = ""):
    """
    Quick "do I already own this?" lookup. Returns None when there is nothing
    to search for, otherwise the matching records.
    """
    model = (criteria.get("model") or "").strip()
    brand = (criteria.get("brand") or "").strip()
    if not model and not brand and not manual_search.strip():
        return None

    term = (model or manual_search).strip().lower()
    brand_term = brand.lower()

    found = []
    for car in collection:
        if term not in str(car.get("model") or "").lower():
            continue
        if brand_term and brand_term not in str(car.get("brand") or "").lower():
            continue
        found.append(car)
    return found
