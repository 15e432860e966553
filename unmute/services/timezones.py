"""Timezone lookup for display.

Only used to show human-readable previews; scheduling reads the stored
timezone identifier directly.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, available_timezones

from loguru import logger

logger = logger.bind(module="services.timezones")

CITY_COUNTRIES = {
    "Kolkata": "India",
    "Mumbai": "India",
    "New Delhi": "India",
    "Chennai": "India",
    "New York": "USA",
    "Los Angeles": "USA",
    "Chicago": "USA",
    "Denver": "USA",
    "Phoenix": "USA",
    "Anchorage": "USA",
    "Honolulu": "USA",
    "London": "UK",
    "Paris": "France",
    "Berlin": "Germany",
    "Tokyo": "Japan",
    "Shanghai": "China",
    "Hong Kong": "China",
    "Sydney": "Australia",
    "Melbourne": "Australia",
    "Dubai": "UAE",
    "Singapore": "Singapore",
    "Seoul": "South Korea",
    "Toronto": "Canada",
    "Vancouver": "Canada",
    "Moscow": "Russia",
    "Sao Paulo": "Brazil",
    "Cairo": "Egypt",
    "Istanbul": "Turkey",
    "Bangkok": "Thailand",
    "Jakarta": "Indonesia",
    "Karachi": "Pakistan",
    "Lagos": "Nigeria",
    "Nairobi": "Kenya",
    "Johannesburg": "South Africa",
    "Auckland": "New Zealand",
    "Lima": "Peru",
    "Bogota": "Colombia",
    "Mexico City": "Mexico",
}

REGION_NAMES = {
    "America": "Americas",
    "Europe": "Europe",
    "Asia": "Asia",
    "Africa": "Africa",
    "Australia": "Australia",
    "Pacific": "Pacific",
    "Atlantic": "Atlantic",
    "Indian": "Indian Ocean",
    "Arctic": "Arctic",
    "Antarctica": "Antarctica",
}

EMPTY_QUERY_RESULTS = 20


@dataclass(frozen=True)
class TimezoneCity:
    id: str  # timezone identifier, e.g. "Asia/Kolkata"
    city: str
    country: str
    abbreviation: str
    utc_offset: str

    @property
    def display_name(self) -> str:
        return f"{self.city}, {self.country}"

    @property
    def full_display(self) -> str:
        return f"{self.city}, {self.country} ({self.abbreviation}, {self.utc_offset})"


def format_utc_offset(seconds: int) -> str:
    """'UTC+5:30', 'UTC-8', 'UTC+0'."""
    sign = "+" if seconds >= 0 else "-"
    hours, rest = divmod(abs(seconds), 3600)
    minutes = rest // 60
    if minutes:
        return f"UTC{sign}{hours}:{minutes:02d}"
    return f"UTC{sign}{hours}"


def country_for(region: str, city: str) -> str:
    return CITY_COUNTRIES.get(city) or REGION_NAMES.get(region, region)


def city_from_identifier(identifier: str, now: datetime | None = None) -> TimezoneCity | None:
    """Build a display entry from an IANA id; ids without a region/city part are skipped."""
    parts = identifier.split("/")
    if len(parts) < 2:
        return None
    region = parts[0]
    city = parts[-1].replace("_", " ")

    tz = ZoneInfo(identifier)
    local = (now or datetime.now(timezone.utc)).astimezone(tz)
    offset = local.utcoffset()
    seconds = int(offset.total_seconds()) if offset is not None else 0

    return TimezoneCity(
        id=identifier,
        city=city,
        country=country_for(region, city),
        abbreviation=local.tzname() or "",
        utc_offset=format_utc_offset(seconds),
    )


class TimezoneDirectory:
    """Searchable list of cities built from the known timezone identifiers."""

    def __init__(self, now: datetime | None = None):
        cities = []
        for identifier in available_timezones():
            if identifier.startswith(("Etc/", "SystemV/")):
                continue
            try:
                entry = city_from_identifier(identifier, now)
            except (KeyError, ValueError) as e:
                logger.debug(f"Skipping timezone {identifier}: {e}")
                continue
            if entry is not None:
                cities.append(entry)
        self.cities = sorted(cities, key=lambda c: (c.city, c.id))
        self._by_id = {c.id: c for c in self.cities}

    def search(self, query: str) -> list[TimezoneCity]:
        if not query:
            return self.cities[:EMPTY_QUERY_RESULTS]
        q = query.lower()
        return [
            c for c in self.cities
            if q in c.city.lower() or q in c.country.lower() or q in c.abbreviation.lower()
        ]

    def city(self, identifier: str) -> TimezoneCity | None:
        return self._by_id.get(identifier)


@lru_cache(maxsize=1)
def default_directory() -> TimezoneDirectory:
    return TimezoneDirectory()
