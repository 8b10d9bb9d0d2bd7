from enum import Enum
from typing import Optional


class Sport(str, Enum):
    FOOTBALL = "Football"
    BASKETBALL = "Basketball"
    BASEBALL = "Baseball"
    HOCKEY = "Hockey"
    SOCCER = "Soccer"
    GOLF = "Golf"
    RACING = "Racing"
    WRESTLING = "Wrestling"
    TENNIS = "Tennis"
    BOXING = "Boxing"
    MMA = "MMA"
    POKEMON = "Pokemon"
    YU_GI_OH = "Yu-Gi-Oh"
    MAGIC = "Magic"
    UNKNOWN = "Unknown"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Sport":
        """Parse a sport name as stored in data files or catalogs; Unknown if unrecognised."""
        if isinstance(label, cls):
            return label
        if not label:
            return cls.UNKNOWN
        key = "".join(ch for ch in str(label).lower() if ch.isalnum())
        for sport in cls:
            if "".join(ch for ch in sport.value.lower() if ch.isalnum()) == key:
                return sport
        return cls.UNKNOWN

    @classmethod
    def from_optional(cls, label: Optional[str]) -> Optional["Sport"]:
        sport = cls.from_label(label)
        return None if sport is cls.UNKNOWN else sport


# Keyword cascade precedence; card games come last.
SPORT_ORDER = (
    Sport.FOOTBALL,
    Sport.BASKETBALL,
    Sport.BASEBALL,
    Sport.HOCKEY,
    Sport.SOCCER,
    Sport.GOLF,
    Sport.RACING,
    Sport.WRESTLING,
    Sport.TENNIS,
    Sport.BOXING,
    Sport.MMA,
    Sport.POKEMON,
    Sport.YU_GI_OH,
    Sport.MAGIC,
)


class CardTypeFlag(str, Enum):
    ROOKIE = "rookie"
    AUTO = "auto"
    RELIC = "relic"
    NUMBERED = "numbered"
    SHORT_PRINT = "shortPrint"

    @classmethod
    def from_label(cls, label: str) -> Optional["CardTypeFlag"]:
        if isinstance(label, cls):
            return label
        for flag in cls:
            if flag.value.lower() == str(label).lower():
                return flag
        return None


CARD_TYPE_ORDER = tuple(CardTypeFlag)
