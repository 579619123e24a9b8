"""Data shapes shared by the sync layer, the CLI and the enrichment server."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

# Collection names in the document store
SHOES = "shoes"
SHOE_VIEWS = "shoeViews"


class Shoe(BaseModel):
    """A shoe in the user's list."""
    name: str
    price: float

    def display_price(self) -> str:
        return f"${self.price:.2f}"


class PastView(BaseModel):
    """Display form of a stored enrichment result."""
    id: str
    shoe_name: str
    details: str
    timestamp: datetime

    @property
    def display_timestamp(self) -> str:
        return self.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ShoesRequest(BaseModel):
    """Body of POST /shoes."""
    shoes: list[Shoe]
    userId: Optional[str] = None


class ShoesResponse(BaseModel):
    """Response of POST /shoes. Exactly one of the fields is set."""
    details: Optional[str] = None
    error: Optional[str] = None
