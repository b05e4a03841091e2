"""
Input validation schemas using Pydantic for meal requests.
"""
from pydantic import BaseModel, Field, field_validator

from mealweek.utilities.constants import WEEKS_PER_YEAR


class MealInput(BaseModel):
    """Schema for creating a meal.

    Week numbers outside 1..52 are rejected here rather than clamped.
    """
    name: str = Field(..., min_length=1, max_length=200)
    week: int = Field(..., ge=1, le=WEEKS_PER_YEAR)
    year: int = Field(..., ge=1970, le=9999)
    eaten: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Strip whitespace and refuse blank names."""
        if not v.strip():
            raise ValueError('Meal name cannot be empty')
        return v.strip()


class MealUpdateInput(MealInput):
    """Schema for editing a meal; the id comes from the URL."""
