from pydantic import BaseModel, Field, field_validator

class Table(BaseModel):
    """Physical seating unit. Read-only to the core."""
    table_number: int = Field(..., gt=0, description="Unique number of the table")
    capacity: int = Field(..., gt=0, description="Seats at the table")
    location: str = Field("", description="Where the table stands, e.g. Terrace")
    is_active: bool = True

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("location", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return value or ""

    def __str__(self):
        return f"Table #{self.table_number} ({self.capacity} guests) - {self.location}"
