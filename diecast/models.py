import time
from datetime import date, datetime

import pandas as pd

# =========================================================
# COLUMNS
# =========================================================

CAR_COLUMNS = [
    "car_id",
    "brand",          # real car brand: Porsche, Toyota, ...
    "model",          # real car model: 911 GT3, Supra, ...
    "manufacturer",   # toy maker: Hot Wheels, Matchbox, ...
    "color",
    "year",
    "pack",           # series / pack name
    "notes",
    "photo_url",      # Google Drive link written back by the sheet script
]

# photo_base64 only travels with an upsert; the sheet script turns it into photo_url
TRANSIENT_COLUMNS = ["photo_base64"]

# internal column -> key used by the spreadsheet endpoint
WIRE_KEYS = {
    "car_id": "id",
    "brand": "marca",
    "model": "modelo",
    "manufacturer": "fabricante",
    "color": "cor",
    "year": "ano",
    "pack": "pack",
    "notes": "observacoes",
    "photo_url": "fotoUrl",
    "photo_base64": "fotoBase64",
}

# sheet header names the script has used for the photo column over time
PHOTO_READ_KEYS = ["foto", "fotourl", "fotoUrl"]

DEFAULT_MANUFACTURER = "Hot Wheels"

MANUFACTURER_OPTIONS = [
    "Hot Wheels",
    "Matchbox",
    "Majorette",
    "Maisto",
    "Bburago",
    "Tomica",
    "Mini GT",
    "Greenlight",
    "Johnny Lightning",
    "Other",
]

COLOR_SWATCHES = [
    (("vermelho", "red", "vinho", "bordo"), "#ef4444"),
    (("azul", "blue"), "#3b82f6"),
    (("verde", "green"), "#10b981"),
    (("amarelo", "yellow"), "#facc15"),
    (("preto", "black"), "#171717"),
    (("branco", "white"), "#f8fafc"),
    (("roxo", "purple"), "#a855f7"),
    (("laranja", "orange"), "#f97316"),
    (("prata", "silver", "cinza"), "#94a3b8"),
    (("dourado", "gold"), "#eab308"),
]


# =========================================================
# HELPERS
# =========================================================

def _safe_str(x) -> str:
    if x is None or (isinstance(x, float) and pd.isna(x)):
        return ""
    return str(x)


def new_car_id() -> str:
    return str(int(time.time() * 1000))


def empty_record() -> dict:
    return {c: "" for c in CAR_COLUMNS}


def record_from_wire(item: dict, index: int) -> dict:
    """Map one row returned by the spreadsheet endpoint to a car record."""
    rec = {}
    for col in CAR_COLUMNS:
        v = item.get(WIRE_KEYS[col])
        rec[col] = _safe_str(v).strip() if v else ""

    if not rec["car_id"]:
        rec["car_id"] = f"sheet-{index}"

    if not rec["photo_url"]:
        for k in PHOTO_READ_KEYS:
            if item.get(k):
                rec["photo_url"] = _safe_str(item[k]).strip()
                break
    return rec


def record_to_wire(record: dict) -> dict:
    out = {}
    for col, key in WIRE_KEYS.items():
        v = _safe_str(record.get(col, ""))
        if col in TRANSIENT_COLUMNS and not v:
            continue
        out[key] = v
    return out


def clean_record(record: dict) -> dict:
    """Trimmed string copy with every car column present (plus a photo payload if any)."""
    rec = {c: _safe_str(record.get(c, "")).strip() for c in CAR_COLUMNS}
    photo = _safe_str(record.get("photo_base64", ""))
    if photo:
        rec["photo_base64"] = photo
    return rec


def normalize_collection(data) -> pd.DataFrame:
    """DataFrame with exactly CAR_COLUMNS, all strings, from records or a frame."""
    df = pd.DataFrame(data) if not isinstance(data, pd.DataFrame) else data.copy()
    for col in CAR_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    df = df[CAR_COLUMNS].copy()
    for col in CAR_COLUMNS:
        df[col] = df[col].apply(_safe_str).astype(object)
    return df.reset_index(drop=True)


def records_of(df: pd.DataFrame) -> list[dict]:
    return normalize_collection(df).to_dict(orient="records")


def photo_preview_url(url: str) -> str:
    """Drive 'open?id=' links do not render inline; the export view does."""
    url = _safe_str(url)
    return url.replace("open?", "uc?export=view&")


def added_on(car_id: str) -> date | None:
    """Date encoded in a millisecond-timestamp id, if the id is one."""
    prefix = _safe_str(car_id)[:13]
    if len(prefix) != 13 or not prefix.isdigit():
        return None
    try:
        return datetime.fromtimestamp(int(prefix) / 1000).date()
    except (OverflowError, OSError, ValueError):
        return None


def color_to_hex(color_name: str) -> str:
    if not color_name:
        return "#cbd5e1"
    c = color_name.lower()
    for words, hex_code in COLOR_SWATCHES:
        if any(w in c for w in words):
            return hex_code
    return "#94a3b8"


def car_label(record: dict) -> str:
    parts = [_safe_str(record.get("brand")), _safe_str(record.get("model"))]
    label = " ".join(p for p in parts if p).strip() or "(unnamed)"
    extra = [_safe_str(record.get(k)) for k in ["manufacturer", "color"] if record.get(k)]
    return f"{label} ({', '.join(extra)})" if extra else label


EDITABLE_COLUMNS = ["brand", "model", "manufacturer", "color", "year", "pack", "notes"]


def changed_records(before: pd.DataFrame, after: pd.DataFrame) -> list[dict]:
    """Rows of `after` whose editable fields differ from `before`, matched on car_id."""
    orig = normalize_collection(before).drop_duplicates("car_id").set_index("car_id")
    changed = []
    for _, r in after.iterrows():
        car_id = _safe_str(r["car_id"])
        if car_id not in orig.index:
            continue
        old = orig.loc[car_id]
        new_vals = {c: _safe_str(r.get(c, "")).strip() for c in EDITABLE_COLUMNS}
        if any(new_vals[c] != old[c] for c in EDITABLE_COLUMNS):
            rec = {c: old[c] for c in CAR_COLUMNS if c != "car_id"}
            rec.update(new_vals)
            rec["car_id"] = car_id
            changed.append(rec)
    return changed
