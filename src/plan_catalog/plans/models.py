"""Plan request/response models.

Documents in the ``plans`` collection keep camelCase field names, and so does
the HTTP API. Python code uses snake_case attributes and the models translate
through ``to_camel`` aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Mapping, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

CONSTRUCTION_TYPES = ("Hebel", "Cladding", "Brick", "NRG")
OUTDOOR_FEATURES = (
    "Alfresco",
    "Balcony",
    "Courtyard",
    "Deck",
    "Double Garage",
    "Garden",
    "Patio",
    "Pool",
    "Single Garage",
    "Spa",
)
INDOOR_FEATURES = (
    "Butler's Pantry",
    "Ensuite",
    "Fireplace",
    "Home Office",
    "Home Theatre",
    "Laundry",
    "Open Plan Living",
    "Study",
    "Walk-in Pantry",
    "Walk-in Robe",
)

ConstructionType = Literal["Hebel", "Cladding", "Brick", "NRG"]
OutdoorFeature = Literal[
    "Alfresco", "Balcony", "Courtyard", "Deck", "Double Garage",
    "Garden", "Patio", "Pool", "Single Garage", "Spa",
]
IndoorFeature = Literal[
    "Butler's Pantry", "Ensuite", "Fireplace", "Home Office", "Home Theatre",
    "Laundry", "Open Plan Living", "Study", "Walk-in Pantry", "Walk-in Robe",
]
PlanStatus = Literal["active", "inactive"]

ACTIVE = "active"


def _one_decimal(value: float) -> float:
    if round(value, 1) != value:
        raise ValueError("must have at most one decimal place")
    return value


def _unique(values: list[Any]) -> list[Any]:
    return list(dict.fromkeys(values))


Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Str50 = Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]
Str100 = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]
Str255 = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]
Storeys = Annotated[int, Field(ge=1)]
RoomCount = Annotated[int, Field(ge=0, le=70)]
Measure = Annotated[float, Field(ge=0)]
RoofPitch = Annotated[float, Field(ge=0, le=35), AfterValidator(_one_decimal)]
ConstructionTypes = Annotated[list[ConstructionType], AfterValidator(_unique)]
OutdoorFeatures = Annotated[list[OutdoorFeature], AfterValidator(_unique)]
IndoorFeatures = Annotated[list[IndoorFeature], AfterValidator(_unique)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_lot_range(low: Optional[float], high: Optional[float]) -> None:
    if low is not None and high is not None and low > high:
        raise ValueError("lotSizeMin must not exceed lotSizeMax")


class PlanCreate(CamelModel):
    """Metadata accepted alongside an uploaded PDF."""

    model_config = ConfigDict(extra="forbid")

    title: Title
    description: Optional[str] = None
    plan_type: Optional[Str100] = None
    storeys: Storeys
    lot_size: Optional[Str50] = None
    lot_size_min: Optional[Measure] = None
    lot_size_max: Optional[Measure] = None
    orientation: Optional[Str50] = None
    site_type: Optional[Str100] = None
    foundation_type: Optional[Str100] = None
    council_area: Optional[Str100] = None
    road_position: Optional[Str50] = None
    house_type: Optional[Str50] = None
    builder_name: Optional[Str255] = None
    bedrooms: RoomCount = 3
    toilets: RoomCount = 2
    living_areas: RoomCount = 1
    construction_type: ConstructionTypes = Field(default_factory=list)
    plot_length: Optional[Measure] = None
    plot_width: Optional[Measure] = None
    covered_area: Optional[Measure] = None
    total_building_height: Optional[Measure] = None
    roof_pitch: Optional[RoofPitch] = None
    outdoor_features: OutdoorFeatures = Field(default_factory=list)
    indoor_features: IndoorFeatures = Field(default_factory=list)
    status: PlanStatus = ACTIVE

    @model_validator(mode="after")
    def _lot_range(self) -> "PlanCreate":
        _check_lot_range(self.lot_size_min, self.lot_size_max)
        return self

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class PlanUpdate(CamelModel):
    """Partial metadata for an admin edit. Only the fields sent are applied."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[Title] = None
    description: Optional[str] = None
    plan_type: Optional[Str100] = None
    storeys: Optional[Storeys] = None
    lot_size: Optional[Str50] = None
    lot_size_min: Optional[Measure] = None
    lot_size_max: Optional[Measure] = None
    orientation: Optional[Str50] = None
    site_type: Optional[Str100] = None
    foundation_type: Optional[Str100] = None
    council_area: Optional[Str100] = None
    road_position: Optional[Str50] = None
    house_type: Optional[Str50] = None
    builder_name: Optional[Str255] = None
    bedrooms: Optional[RoomCount] = None
    toilets: Optional[RoomCount] = None
    living_areas: Optional[RoomCount] = None
    construction_type: Optional[ConstructionTypes] = None
    plot_length: Optional[Measure] = None
    plot_width: Optional[Measure] = None
    covered_area: Optional[Measure] = None
    total_building_height: Optional[Measure] = None
    roof_pitch: Optional[RoofPitch] = None
    outdoor_features: Optional[OutdoorFeatures] = None
    indoor_features: Optional[IndoorFeatures] = None
    status: Optional[PlanStatus] = None

    @field_validator(
        "title", "storeys", "bedrooms", "toilets", "living_areas", "status",
        "construction_type", "outdoor_features", "indoor_features",
    )
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may not be null")
        return value

    @model_validator(mode="after")
    def _lot_range(self) -> "PlanUpdate":
        _check_lot_range(self.lot_size_min, self.lot_size_max)
        return self

    def to_changes(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class Plan(CamelModel):
    """A stored plan as returned by the API. Accepts legacy rows with unvalidated values."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    description: Optional[str] = None
    file_name: Optional[str] = None
    file_path: Optional[str] = None
    file_size: Optional[int] = None
    plan_type: Optional[str] = None
    storeys: Optional[int] = None
    lot_size: Optional[str] = None
    lot_size_min: Optional[float] = None
    lot_size_max: Optional[float] = None
    orientation: Optional[str] = None
    site_type: Optional[str] = None
    foundation_type: Optional[str] = None
    council_area: Optional[str] = None
    road_position: Optional[str] = None
    house_type: Optional[str] = None
    builder_name: Optional[str] = None
    bedrooms: int = 3
    toilets: int = 2
    living_areas: int = 1
    construction_type: list[str] = Field(default_factory=list)
    plot_length: Optional[float] = None
    plot_width: Optional[float] = None
    covered_area: Optional[float] = None
    total_building_height: Optional[float] = None
    roof_pitch: Optional[float] = None
    outdoor_features: list[str] = Field(default_factory=list)
    indoor_features: list[str] = Field(default_factory=list)
    extracted_keywords: list[str] = Field(default_factory=list)
    status: str = ACTIVE
    download_count: int = 0
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Plan":
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        # Legacy rows stored a single construction type string.
        if isinstance(data.get("constructionType"), str):
            data["constructionType"] = [data["constructionType"]]
        return cls.model_validate(data)

    @property
    def download_name(self) -> str:
        return self.file_name or f"{self.title}.pdf"


class PlanStats(CamelModel):
    total_plans: int = 0
    total_downloads: int = 0
    recent_uploads: int = 0


class TotalDownloads(CamelModel):
    total_downloads: int = 0


class DownloadCountReset(CamelModel):
    model_config = ConfigDict(extra="forbid")

    count: int = Field(default=0, ge=0)


class MessageResponse(BaseModel):
    message: str
