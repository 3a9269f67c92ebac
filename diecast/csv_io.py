import csv
import io
import uuid
from datetime import date

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from diecast.models import normalize_collection

# column -> CSV header, in file order
CSV_HEADERS = {
    "brand": "Brand",
    "model": "Model",
    "manufacturer": "Manufacturer",
    "color": "Color",
    "year": "Year",
    "pack": "Pack",
    "notes": "Notes",
    "photo_url": "Photo URL",
}

PDF_COLUMNS = ["brand", "model", "manufacturer", "color", "year"]

# first-line words that mark a header row (older exports used Portuguese headers)
HEADER_MARKERS = ("marca", "brand")


def export_csv(df: pd.DataFrame) -> str:
    df = normalize_collection(df)
    # header line is bare, every data field is quoted
    header = ",".join(CSV_HEADERS.values())
    rows = df[list(CSV_HEADERS)].to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return "\n".join([header, rows]).rstrip("\n")


def parse_csv(text: str) -> list[dict]:
    """
    Rows of Brand, Model, Manufacturer, Color, Year, Pack, Notes, Photo URL.
    Header row optional. Rows with fewer than 3 fields are skipped.
    """
    lines = [ln for ln in (text or "").strip().splitlines()]
    if not lines or not lines[0].strip():
        return []

    start = 1 if any(m in lines[0].lower() for m in HEADER_MARKERS) else 0
    reader = csv.reader(lines[start:], skipinitialspace=True)

    cars = []
    for parts in reader:
        if len(parts) < 3:
            continue
        clean = [p.strip() for p in parts]
        clean += [""] * (len(CSV_HEADERS) - len(clean))
        rec = {"car_id": f"csv-{uuid.uuid4().hex[:12]}"}
        for col, value in zip(CSV_HEADERS, clean):
            rec[col] = value
        cars.append(rec)
    return cars


def export_pdf(df: pd.DataFrame, title: str = "Die-cast Collection") -> bytes:
    df = normalize_collection(df)
    df = df.sort_values(["brand", "model"], key=lambda s: s.str.lower(), kind="stable")

    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=15 * mm, rightMargin=15 * mm, topMargin=15 * mm)
    styles = getSampleStyleSheet()

    body = [[CSV_HEADERS[c] for c in PDF_COLUMNS]]
    body += df[PDF_COLUMNS].values.tolist()

    table = Table(body, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0f172a")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f5f9")]),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#cbd5e1")),
    ]))

    story = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"{len(df):,} items, {date.today().isoformat()}", styles["Normal"]),
        Spacer(1, 6 * mm),
        table,
    ]
    doc.build(story)
    return buf.getvalue()
