from pathlib import Path
import pandas as pd

def _ensure_exists(path: Path):
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"file not found: {p}")

def read_parquet(path: Path) -> pd.DataFrame:
    _ensure_exists(path)
    return pd.read_parquet(path)

def read_csv(path: Path, **kwargs) -> pd.DataFrame:
    _ensure_exists(path)
    return pd.read_csv(path, encoding="utf-8", **kwargs)
