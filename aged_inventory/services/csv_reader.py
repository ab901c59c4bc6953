"""
CSV upload reader.
Turns uploaded report bytes into a list of header-keyed text records.
"""

from io import StringIO
from typing import Dict, List

import pandas as pd


def decode_upload(content: bytes) -> str:
    """Decode as UTF-8 (BOM tolerated), falling back to latin-1"""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def read_csv_records(content: bytes) -> List[Dict[str, str]]:
    """
    Parse CSV bytes into records keyed by (trimmed) header.

    Every cell is kept as text and empty cells stay "" so numeric parsing is
    left to the rollup. Blank lines are skipped.
    """
    text = decode_upload(content)
    if not text.strip():
        return []

    df = pd.read_csv(StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    df.columns = [str(col).strip() for col in df.columns]
    return df.to_dict(orient="records")
