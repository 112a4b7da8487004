#!filepath: herdsim/io/loader.py
from __future__ import annotations

from pathlib import Path
from typing import List

import pandas as pd

from herdsim import logs
from herdsim.config.data_config import DataConfig
from herdsim.core.types import Record
from herdsim.utils.errors import InvalidInputError


def read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, skip_blank_lines=True)
    if suffix in (".parquet", ".pq"):
        return pd.read_parquet(path, engine="pyarrow")
    raise InvalidInputError(f"[loader] unsupported file type: {path.name}")


def frame_to_records(df: pd.DataFrame, config: DataConfig) -> List[Record]:
    """
    DataFrame → Records

    - timestamp column parsed as UTC (naive values are taken as UTC)
    - entity ids are strings
    - NaN → None
    """
    missing = [c for c in (config.entity_column, config.timestamp_column) if c not in df.columns]
    if missing:
        raise InvalidInputError(f"[loader] missing required columns: {missing}")

    df = df.dropna(subset=[config.entity_column, config.timestamp_column])

    try:
        ts = pd.to_datetime(df[config.timestamp_column], utc=True)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"[loader] unparseable timestamps: {e}") from e

    epoch = pd.Timestamp("1970-01-01", tz="UTC")
    ts_us = ((ts - epoch) // pd.Timedelta(microseconds=1)).tolist()
    entities = df[config.entity_column].astype(str).tolist()

    value_cols = [c for c in df.columns if c not in (config.entity_column, config.timestamp_column)]
    values = df[value_cols].astype(object).where(df[value_cols].notna(), None)

    return [
        Record(entity_id=entity, ts_us=int(t), fields=row)
        for entity, t, row in zip(entities, ts_us, values.to_dict(orient="records"))
    ]


@logs.catch(msg="failed to load dataset")
def load_records(path: str | Path, config: DataConfig | None = None) -> List[Record]:
    config = config or DataConfig()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    records = frame_to_records(read_frame(path), config)
    logs.info(f"[loader] {path.name}: {len(records)} records")
    return records
