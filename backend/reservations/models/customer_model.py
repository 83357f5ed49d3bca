from sqlalchemy import Column, Integer, String
from ..core.database import Base

class CustomerRecord(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), unique=True, index=True, nullable=False)  # dedup key
