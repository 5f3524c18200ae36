from __future__ import annotations
from pathlib import Path
import duckdb
import pandas as pd


class Engine:
    """
    Scoped handle on an in-process duckdb connection.

    Tables handed out by the engine are lazy relations: transforms build a
    query plan and nothing is computed until a result is fetched
    (`.df()`, `.fetchall()`, ...). Relations die with the connection, so
    everything derived from them must be materialised before `close()`.
    """

    def __init__(self, database: str = ":memory:"):
        self.database = database
        self._con: duckdb.DuckDBPyConnection | None = None
        self._closed = False

    def open(self) -> "Engine":
        if self._closed:
            raise RuntimeError("engine already closed; open a new one")
        if self._con is None:
            self._con = duckdb.connect(database=self.database)
        return self

    def close(self) -> None:
        if self._con is not None:
            self._con.close()
            self._con = None
        self._closed = True

    @property
    def is_open(self) -> bool:
        return self._con is not None

    @property
    def con(self) -> duckdb.DuckDBPyConnection:
        if self._con is None:
            raise RuntimeError("engine is not open")
        return self._con

    def __enter__(self) -> "Engine":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def read_csv(self, path: str | Path) -> duckdb.DuckDBPyRelation:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"CSV not found: {p}")
        return self.con.read_csv(str(p), header=True)

    def from_frame(self, df: pd.DataFrame) -> duckdb.DuckDBPyRelation:
        return self.con.from_df(df)
