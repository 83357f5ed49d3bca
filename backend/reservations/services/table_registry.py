"""
Table Registry

Authoritative set of active tables, loaded once at start-up. When durable
storage cannot be read the registry falls back to FALLBACK_TABLES and
reports DataSource.SEED so callers can tell seed data from live data.
"""

from enum import Enum
from typing import Dict, List, Optional
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..core.errors import StorageError
from ..models.table_model import TableRecord
from ..schemas.table_schema import Table

logger = logging.getLogger(__name__)


class DataSource(Enum):
    LIVE = "live"
    SEED = "seed"


FALLBACK_TABLES = (
    Table(table_number=1, capacity=2, location="Window"),
    Table(table_number=2, capacity=4, location="Main hall"),
    Table(table_number=3, capacity=6, location="VIP area"),
    Table(table_number=4, capacity=2, location="Terrace"),
    Table(table_number=5, capacity=8, location="Banquet hall"),
    Table(table_number=6, capacity=4, location="Bar counter"),
)


def load_active_tables(session_factory: sessionmaker) -> List[Table]:
    """Read every active table ordered by number. Raises StorageError."""
    session = session_factory()
    try:
        rows = session.query(TableRecord).filter(
            TableRecord.is_active.is_(True)
        ).order_by(TableRecord.table_number).all()
        return [Table.model_validate(row) for row in rows]
    except SQLAlchemyError as e:
        logger.error(f"Failed to load tables: {e}", exc_info=True)
        raise StorageError(f"could not load tables: {e}") from e
    except PydanticValidationError as e:
        logger.error(f"Invalid table row in storage: {e}")
        raise StorageError(f"could not load tables: invalid row: {e}") from e
    finally:
        session.close()


class TableRegistry:

    def __init__(self, tables: Optional[List[Table]] = None):
        self._tables: Dict[int, Table] = {}
        self.source = DataSource.LIVE
        self.load_error: Optional[StorageError] = None
        if tables:
            self._replace(tables)

    def _replace(self, tables):
        self._tables = {table.table_number: table for table in tables}

    def load(self, session_factory: sessionmaker) -> DataSource:
        try:
            tables = load_active_tables(session_factory)
        except StorageError as e:
            logger.warning(
                f"Table registry running in degraded mode with {len(FALLBACK_TABLES)} seed tables: {e}"
            )
            self._replace(FALLBACK_TABLES)
            self.source = DataSource.SEED
            self.load_error = e
            return self.source

        self._replace(tables)
        self.source = DataSource.LIVE
        self.load_error = None
        logger.info(f"Loaded {len(tables)} active tables")
        return self.source

    @property
    def degraded(self) -> bool:
        return self.source is DataSource.SEED

    def all(self) -> List[Table]:
        return [self._tables[number] for number in sorted(self._tables)]

    def find_by_number(self, table_number: int) -> Optional[Table]:
        return self._tables.get(table_number)

    def __len__(self):
        return len(self._tables)

    def __contains__(self, table_number):
        return table_number in self._tables
