#!filepath: herdsim/config/data_config.py
from pydantic import BaseModel
from typing import Optional


class DataConfig(BaseModel):
    """
    Where the historical dataset lives and which columns carry
    identity / time / categorical state.
    """
    path: Optional[str] = None
    entity_column: str = "cow_id"
    timestamp_column: str = "timestamp"
    state_column: Optional[str] = "Classification"
