"""
Gemini photo analysis.

Reads a photo of a die-cast car and returns the catalog fields it can see,
so the add form and the scanner can be pre-filled. Also reads the sync
endpoint / client id off a screenshot of the Apps Script deployment page.
"""

from __future__ import annotations

import base64
import io
import json
import logging

from google import genai
from google.genai import types
from PIL import Image, ImageOps

from diecast.errors import AnalysisError
from diecast.models import DEFAULT_MANUFACTURER, new_car_id

logger = logging.getLogger(__name__)

MAX_IMAGE_SIDE = 1024
JPEG_QUALITY = 70

CAR_FIELDS = ["brand", "model", "manufacturer", "color", "year", "pack", "notes"]

CAR_PROMPT = """
Analyze this image of a die-cast car. Extract details into a JSON object.
- 'brand': Real car brand.
- 'model': Real car model.
- 'manufacturer': The toy brand (Matchbox, Hot Wheels, etc).
- 'color': Visual color.
- 'year': Year visible.
- 'pack': Series name.
- 'notes': Extra features.
Return valid JSON only.
"""

CONFIG_PROMPT = """
Extract the 'Google Client ID' and the 'App Script Sync URL' from this image of a computer screen.
The Client ID usually ends in '.apps.googleusercontent.com'.
The Sync URL usually starts with 'https://script.google.com/macros/s/'.
Return a JSON object with keys 'clientId' and 'syncUrl'.
If not found, return null for that key.
"""

CAR_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={f: types.Schema(type=types.Type.STRING) for f in CAR_FIELDS},
)

CONFIG_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "clientId": types.Schema(type=types.Type.STRING, nullable=True),
        "syncUrl": types.Schema(type=types.Type.STRING, nullable=True),
    },
)


def prepare_image(data: bytes) -> tuple[bytes, str]:
    """Shrink to MAX_IMAGE_SIDE, re-encode as JPEG. Returns (jpeg bytes, data URL)."""
    try:
        img = Image.open(io.BytesIO(data))
        img = ImageOps.exif_transpose(img)
    except (OSError, ValueError) as e:
        raise AnalysisError(f"Not a readable image: {e}") from e

    img = img.convert("RGB")
    img.thumbnail((MAX_IMAGE_SIDE, MAX_IMAGE_SIDE))

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=JPEG_QUALITY)
    jpeg = buf.getvalue()
    return jpeg, "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")


def _clean_fields(parsed: dict, keys: list[str]) -> dict:
    out = {}
    for k in keys:
        v = parsed.get(k)
        if v is None:
            continue
        v = str(v).strip()
        if v and v.lower() not in {"null", "none", "unknown", "n/a"}:
            out[k] = v
    return out


class CarVision:
    def __init__(self, client, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings) -> "CarVision":
        if not settings.gemini_api_key:
            raise AnalysisError("No Gemini API key configured (gemini_api_key in secrets).")
        return cls(genai.Client(api_key=settings.gemini_api_key), settings.gemini_model)

    def _generate(self, image_bytes: bytes, mime_type: str, prompt: str, schema) -> dict:
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    prompt,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                    temperature=0.1,
                ),
            )
            parsed = json.loads(response.text or "{}")
        except Exception as e:
            logger.error("Gemini analysis error: %s", e)
            raise AnalysisError(str(e)) from e

        if not isinstance(parsed, dict):
            raise AnalysisError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed

    def analyze_car_image(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> dict:
        """Partial car record with whatever fields the model could read."""
        parsed = self._generate(image_bytes, mime_type, CAR_PROMPT, CAR_SCHEMA)
        return _clean_fields(parsed, CAR_FIELDS)

    def analyze_config_image(self, image_bytes: bytes, mime_type: str = "image/png") -> dict:
        parsed = self._generate(image_bytes, mime_type, CONFIG_PROMPT, CONFIG_SCHEMA)
        found = _clean_fields(parsed, ["clientId", "syncUrl"])
        return {
            k: v for k, v in {
                "client_id": found.get("clientId", ""),
                "sync_url": found.get("syncUrl", ""),
            }.items() if v
        }


def scanned_record(analysis: dict, photo_data_url: str = "") -> dict:
    """Record to save straight from a scan, without going through the form."""
    return {
        "car_id": new_car_id(),
        "brand": analysis.get("brand") or "Unknown",
        "model": analysis.get("model") or "Unknown",
        "manufacturer": analysis.get("manufacturer") or "Unknown",
        "color": analysis.get("color", ""),
        "year": analysis.get("year", ""),
        "pack": analysis.get("pack", ""),
        "notes": analysis.get("notes", ""),
        "photo_url": "",
        "photo_base64": photo_data_url,
    }


def form_prefill(analysis: dict, photo_data_url: str = "") -> dict:
    """Analysis merged over an empty form, for review before saving."""
    prefill = {f: "" for f in CAR_FIELDS}
    prefill["manufacturer"] = DEFAULT_MANUFACTURER
    prefill.update({k: v for k, v in analysis.items() if k in CAR_FIELDS and v})
    if photo_data_url:
        prefill["photo_base64"] = photo_data_url
    return prefill


def merge_analysis(current: dict, analysis: dict) -> dict:
    """Overlay only the fields the photo actually showed; everything else keeps its current value."""
    merged = dict(current)
    merged.update({k: v for k, v in analysis.items() if k in CAR_FIELDS and v})
    return merged
