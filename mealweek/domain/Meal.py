"""Meal domain entity: a named meal planned for a (week, year), optionally eaten."""
from typing import Optional


class Meal:
    def __init__(self, id: str, name: str, week: int, year: int,
                 is_this_week: bool = False, eaten: bool = False):
        self.id = id
        self.name = name
        self.week = week
        self.year = year
        # Derived; recomputed against "now" whenever meals are loaded or saved
        self.is_this_week = is_this_week
        self.eaten = eaten

    def is_week(self, week: int, year: int) -> bool:
        return self.week == week and self.year == year

    def copy(self, **changes) -> "Meal":
        data = {
            "id": self.id,
            "name": self.name,
            "week": self.week,
            "year": self.year,
            "is_this_week": self.is_this_week,
            "eaten": self.eaten,
        }
        data.update(changes)
        return Meal(**data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Meal):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __str__(self) -> str:
        parts = [f"{self.name} - Week {self.week}, {self.year}"]
        if self.eaten:
            parts.append("eaten")
        return " - ".join(parts)

    def __repr__(self) -> str:
        return f"Meal(id={self.id!r}, name={self.name!r}, week={self.week}, year={self.year}, eaten={self.eaten})"

    @staticmethod
    def from_dict(data) -> Optional["Meal"]:
        '''Creates a Meal from its stored dictionary. Ignores unknown keys.

        Returns None for entries that lack an id or a usable week/year.
        Flags count only when stored as JSON true; strings like "false" are false.
        '''
        d = dict(data) if isinstance(data, dict) else {}
        meal_id = d.get("id")
        if meal_id in (None, ""):
            return None
        try:
            week = int(d.get("week"))
            year = int(d.get("year"))
        except (TypeError, ValueError):
            return None
        return Meal(
            id=str(meal_id),
            name=str(d.get("name") or ""),
            week=week,
            year=year,
            is_this_week=d.get("isThisWeek") is True,
            eaten=d.get("eaten") is True,
        )

    def to_dict(self) -> dict:
        '''Converts the Meal to a dictionary for JSON persistence and API responses.'''
        return {
            "id": self.id,
            "name": self.name,
            "week": self.week,
            "year": self.year,
            "isThisWeek": self.is_this_week,
            "eaten": self.eaten,
        }
