"""
Typed data models for the restaurant inspection lookup pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


UNKNOWN_DATE = "Unknown Date"


@dataclass
class InspectionRow:
    """One violation line from the inspection feed."""
    camis: Optional[str] = None
    dba: Optional[str] = None
    building: Optional[str] = None
    street: Optional[str] = None
    boro: Optional[str] = None
    zipcode: Optional[str] = None
    grade: Optional[str] = None
    inspection_date: Optional[str] = None  # e.g. "2024-03-04T00:00:00.000"
    violation_description: Optional[str] = None
    grade_date: Optional[str] = None
    critical_flag: Optional[str] = None  # "Critical" / "Not Critical"
    score: Optional[str] = None  # string-encoded demerit points, lower is better


@dataclass
class AggregatedInspection:
    """All violation rows of one inspection visit folded together."""
    inspection_date: str
    description: str  # descriptions joined with " ||| "
    critical_flag: str
    score: Optional[int] = None
    row_count: int = 0


class Stage(str, Enum):
    """Cascade stage a feed query belongs to."""
    CAMIS = "camis"
    NAME_BUILDING = "name_building"
    BUILDING_ONLY = "building_only"
    NAME_ONLY = "name_only"


@dataclass
class FeedQuery:
    """A single inspection feed request within a cascade."""
    stage: Stage
    url: str


@dataclass
class MatchCandidate:
    """A restaurant's identity in the inspection feed, as picked by the resolver."""
    camis: Optional[str]
    name: Optional[str]
    stage: Stage
    latest: InspectionRow
    rows: List[InspectionRow] = field(default_factory=list)
    inspections: List[AggregatedInspection] = field(default_factory=list)

    @property
    def grade(self) -> Optional[str]:
        return self.latest.grade

    @property
    def address(self) -> str:
        return f"{self.latest.building or ''} {self.latest.street or ''}, {self.latest.zipcode or ''}"


@dataclass
class PlaceDetails:
    """Place details from the places directory."""
    place_id: str
    rating: Optional[float] = None
    open_now: Optional[bool] = None
    weekday_text: Optional[List[str]] = None
    photo_reference: Optional[str] = None
    formatted_address: Optional[str] = None
    street_number: Optional[str] = None
    postal_code: Optional[str] = None


@dataclass
class NearbyPlace:
    """A restaurant pin returned by a nearby search."""
    name: str
    place_id: str
    lat: float
    lng: float


@dataclass
class FavoriteRestaurant:
    """User-curated favorite; camis is the unique key."""
    name: str
    camis: str
    grade: Optional[str] = None
    rating: Optional[float] = None
    address: Optional[str] = None
    place_id: Optional[str] = None


@dataclass
class RecentRestaurant:
    """Recently searched restaurant; kept in a ring buffer ordered by viewed_at."""
    name: str
    camis: str
    viewed_at: float
    grade: Optional[str] = None
    rating: Optional[float] = None
    address: Optional[str] = None
    place_id: Optional[str] = None


@dataclass
class ViolationView:
    """One inspection visit, ready for display."""
    date: str
    formatted_date: str
    details: List[str]
    critical_flag: str
    display_score: Optional[int]  # None renders as "N/A"
    severity_hue: float


@dataclass
class InspectionView:
    """Grade badge and violation history for one resolved restaurant."""
    camis: Optional[str]
    name: Optional[str]
    display_grade: str
    color_class: str
    violations: List[ViolationView] = field(default_factory=list)


@dataclass
class RestaurantLookup:
    """Final result of one lookup pipeline run."""
    query_name: str
    place: Optional[PlaceDetails] = None
    match: Optional[MatchCandidate] = None
    view: Optional[InspectionView] = None
    photo: Optional[bytes] = None

    @property
    def matched(self) -> bool:
        return self.match is not None
