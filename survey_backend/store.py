"""
Row store abstraction for Postgres (via SQLAlchemy) and in-memory testing.

A row store holds named tables made of an ordered list of rows. Rows and
columns are addressed 1-based and row 1 is the header row, the same way a
spreadsheet addresses its cells.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from survey_backend.errors import StoreAccessError


class RowStore(Protocol):
    """Defines the operations the submissions backend needs from a table."""

    def get_table(self, name: str) -> Optional["Table"]:
        ...

    def create_table(self, name: str) -> "Table":
        ...

    def append_row(self, name: str, row: List[Any]) -> None:
        ...

    def get_rows(self, name: str) -> List[List[Any]]:
        ...

    def get_cell(self, name: str, row: int, column: int) -> Any:
        ...

    def set_cell(self, name: str, row: int, column: int, value: Any) -> None:
        ...

    def format_header(
        self, name: str, *, bold: bool = True, frozen_rows: int = 1
    ) -> None:
        ...


@dataclass
class Table:
    name: str
    bold_header: bool = False
    frozen_rows: int = 0
    created_at: float = field(default_factory=lambda: time.time())


def _check_position(row: int, column: int) -> None:
    if row < 1 or column < 1:
        raise StoreAccessError(
            f"Cell positions are 1-based, got row={row} column={column}"
        )


def _write_cell(cells: List[Any], column: int, value: Any) -> List[Any]:
    updated = list(cells)
    if len(updated) < column:
        updated.extend([""] * (column - len(updated)))
    updated[column - 1] = value
    return updated


class InMemoryRowStore:
    """Simple in-memory row store for development and tests."""

    def __init__(self):
        self.tables: Dict[str, Table] = {}
        self.rows: Dict[str, List[List[Any]]] = {}

    def _rows_for(self, name: str) -> List[List[Any]]:
        if name not in self.tables:
            raise StoreAccessError(f"Table not found: {name}")
        return self.rows[name]

    def get_table(self, name: str) -> Optional[Table]:
        return self.tables.get(name)

    def create_table(self, name: str) -> Table:
        if name in self.tables:
            raise StoreAccessError(f"Table already exists: {name}")
        table = Table(name=name)
        self.tables[name] = table
        self.rows[name] = []
        return table

    def append_row(self, name: str, row: List[Any]) -> None:
        self._rows_for(name).append(list(row))

    def get_rows(self, name: str) -> List[List[Any]]:
        return [list(row) for row in self._rows_for(name)]

    def get_cell(self, name: str, row: int, column: int) -> Any:
        _check_position(row, column)
        rows = self._rows_for(name)
        if row > len(rows) or column > len(rows[row - 1]):
            return ""
        return rows[row - 1][column - 1]

    def set_cell(self, name: str, row: int, column: int, value: Any) -> None:
        _check_position(row, column)
        rows = self._rows_for(name)
        if row > len(rows):
            raise StoreAccessError(f"Row {row} does not exist in {name}")
        rows[row - 1] = _write_cell(rows[row - 1], column, value)

    def format_header(
        self, name: str, *, bold: bool = True, frozen_rows: int = 1
    ) -> None:
        table = self.tables.get(name)
        if not table:
            raise StoreAccessError(f"Table not found: {name}")
        table.bold_header = bold
        table.frozen_rows = frozen_rows

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.tables.clear()
        self.rows.clear()


class SqlRowStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlRowStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreAccessError(f"Row store failure: {exc}") from exc

    def _to_table(self, row: "TableRow") -> Table:
        return Table(
            name=row.name,
            bold_header=row.bold_header,
            frozen_rows=row.frozen_rows,
            created_at=row.created_at,
        )

    def _require_table(self, session: Session, name: str) -> "TableRow":
        table = session.get(TableRow, name)
        if not table:
            raise StoreAccessError(f"Table not found: {name}")
        return table

    def _get_row(self, session: Session, name: str, row: int) -> Optional["CellRow"]:
        stmt = select(CellRow).where(
            CellRow.table_name == name, CellRow.row_index == row
        )
        return session.execute(stmt).scalar_one_or_none()

    def get_table(self, name: str) -> Optional[Table]:
        with self._session() as session:
            table = session.get(TableRow, name)
            if not table:
                return None
            return self._to_table(table)

    def create_table(self, name: str) -> Table:
        with self._session() as session:
            if session.get(TableRow, name):
                raise StoreAccessError(f"Table already exists: {name}")
            table = TableRow(
                name=name,
                bold_header=False,
                frozen_rows=0,
                created_at=time.time(),
            )
            session.add(table)
            session.commit()
            session.refresh(table)
            return self._to_table(table)

    def append_row(self, name: str, row: List[Any]) -> None:
        with self._session() as session:
            self._require_table(session, name)
            last_index = session.execute(
                select(func.max(CellRow.row_index)).where(CellRow.table_name == name)
            ).scalar()
            session.add(
                CellRow(
                    table_name=name,
                    row_index=(last_index or 0) + 1,
                    cells=list(row),
                )
            )
            session.commit()

    def get_rows(self, name: str) -> List[List[Any]]:
        with self._session() as session:
            self._require_table(session, name)
            stmt = (
                select(CellRow)
                .where(CellRow.table_name == name)
                .order_by(CellRow.row_index.asc())
            )
            return [list(row.cells or []) for row in session.execute(stmt).scalars()]

    def get_cell(self, name: str, row: int, column: int) -> Any:
        _check_position(row, column)
        with self._session() as session:
            self._require_table(session, name)
            stored = self._get_row(session, name, row)
            if not stored or column > len(stored.cells or []):
                return ""
            return stored.cells[column - 1]

    def set_cell(self, name: str, row: int, column: int, value: Any) -> None:
        _check_position(row, column)
        with self._session() as session:
            self._require_table(session, name)
            stored = self._get_row(session, name, row)
            if not stored:
                raise StoreAccessError(f"Row {row} does not exist in {name}")
            # Reassign so the JSON column is flagged as modified.
            stored.cells = _write_cell(stored.cells or [], column, value)
            session.commit()

    def format_header(
        self, name: str, *, bold: bool = True, frozen_rows: int = 1
    ) -> None:
        with self._session() as session:
            table = self._require_table(session, name)
            table.bold_header = bold
            table.frozen_rows = frozen_rows
            session.commit()


Base = declarative_base()


class TableRow(Base):
    __tablename__ = "row_tables"

    name = Column(String, primary_key=True)
    bold_header = Column(Boolean, nullable=False, default=False)
    frozen_rows = Column(Integer, nullable=False, default=0)
    created_at = Column(Float, nullable=False)


class CellRow(Base):
    __tablename__ = "table_rows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(
        String, ForeignKey("row_tables.name"), nullable=False, index=True
    )
    row_index = Column(Integer, nullable=False)
    cells = Column(JSON, nullable=False)
