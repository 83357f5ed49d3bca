from sqlalchemy import Boolean, Column, Integer, String
from ..core.database import Base

class TableRecord(Base):
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, index=True)
    table_number = Column(Integer, unique=True, index=True, nullable=False)
    capacity = Column(Integer, nullable=False)
    location = Column(String(255))
    is_active = Column(Boolean, nullable=False, default=True)
