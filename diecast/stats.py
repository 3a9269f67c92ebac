from dataclasses import dataclass, field

import pandas as pd

from diecast.models import normalize_collection

NO_COLOR = "N/A"


def _count_table(values: pd.Series) -> pd.DataFrame:
    """(name, value) counts sorted by value desc; ties keep first-seen order."""
    values = values[values != ""]
    if values.empty:
        return pd.DataFrame({"name": pd.Series(dtype=str), "value": pd.Series(dtype=int)})
    counts = values.value_counts(sort=False)
    table = counts.rename_axis("name").reset_index(name="value")
    return table.sort_values("value", ascending=False, kind="stable").reset_index(drop=True)


@dataclass
class CollectionStats:
    total_cars: int = 0
    total_brands: int = 0
    brands: pd.DataFrame = field(default_factory=pd.DataFrame)
    manufacturers: pd.DataFrame = field(default_factory=pd.DataFrame)
    colors: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def top_manufacturer(self):
        """(name, count) of the most common manufacturer, or None."""
        if self.manufacturers.empty:
            return None
        row = self.manufacturers.iloc[0]
        return row["name"], int(row["value"])


def collection_stats(df: pd.DataFrame) -> CollectionStats:
    df = normalize_collection(df)

    brands = _count_table(df["brand"].str.strip())
    manufacturers = _count_table(df["manufacturer"].str.strip())
    colors = _count_table(df["color"].str.strip().replace("", NO_COLOR))

    return CollectionStats(
        total_cars=len(df),
        total_brands=len(brands),
        brands=brands,
        manufacturers=manufacturers,
        colors=colors,
    )
