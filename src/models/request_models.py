from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List

class SearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    # "lat,lng" or a free-text address
    location: str = Field(..., min_length=1, max_length=200)
    radius: int = Field(5000, gt=0, le=50000, description="Search radius in meters")
    max_price: int = Field(4, ge=0, le=4, description="Price ceiling on the 0-4 Google scale")

    # Advisory only; forwarded to nobody yet
    cuisine: str = ""

    # Dietary filters forwarded to the review summarizer
    veg_only: bool = False
    jain_food: bool = False
    menu: List[str] = Field(default_factory=list, description="Dishes the user wants matched")

    @field_validator("location")
    @classmethod
    def _strip_location(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("location must not be blank")
        return value

    @field_validator("menu")
    @classmethod
    def _clean_menu(cls, value: List[str]) -> List[str]:
        return [item.strip() for item in value if item and item.strip()]

    def filters(self) -> dict:
        """Filter context shared with the summarizer and the search log."""
        return {
            "radius": self.radius,
            "max_price": self.max_price,
            "cuisine": self.cuisine,
            "veg_only": self.veg_only,
            "jain_food": self.jain_food,
            "menu": list(self.menu),
        }
