"""
Pydantic schemas for data validation.

Defines the district and infrastructure records read from the data store,
the coverage result written back, and the audit record attributing a run
to a user.
"""
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class AnalysisType(str, Enum):
    """Kinds of coverage analysis."""
    TELECOM = "telecom"
    INTERNET = "internet"
    EDUCATION = "education"
    HEALTHCARE = "healthcare"


class CoverageLevel(str, Enum):
    """Coverage tier of a district."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class InfrastructureKind(str, Enum):
    """Infrastructure collections exposed by a data source."""
    TOWERS = "towers"
    SCHOOLS = "schools"
    HOSPITALS = "hospitals"


class District(BaseModel):
    """
    Schema for an administrative district.

    Example:
        >>> district = District(
        ...     id='d-kampala',
        ...     name='Kampala',
        ...     population=1680600,
        ...     area_sqkm=189.0
        ... )
    """
    id: str = Field(..., min_length=1, description="District identifier")
    name: str = Field(..., min_length=1, description="District name")
    code: Optional[str] = Field(None, description="Administrative code")
    region: Optional[str] = Field(None, description="Region (Central, Eastern, ...)")
    population: Optional[int] = Field(None, ge=0, description="Resident population")
    area_sqkm: Optional[float] = Field(None, ge=0, description="Area in square kilometers")

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """Numeric identifiers from CSV exports become strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    model_config = {
        "str_strip_whitespace": True,
        "frozen": True,
    }


class InfrastructurePoint(BaseModel):
    """
    Common fields of towers, schools and hospitals.

    ``location`` holds whatever positional encoding the store returned
    (GeoJSON, WKT, WKB hex, ...); it is resolved lazily by
    ``infra_coverage.core.coordinates.resolve_point_location``.
    """
    id: str = Field(..., min_length=1, description="Record identifier")
    name: Optional[str] = Field(None, description="Display name")
    district_id: Optional[str] = Field(None, description="Owning district identifier")
    location: Any = Field(None, description="Positional value of unknown encoding")
    latitude: Optional[float] = Field(None, description="Raw latitude field, if exported")
    longitude: Optional[float] = Field(None, description="Raw longitude field, if exported")
    has_internet: Optional[bool] = Field(None, description="Whether the site is connected")

    @field_validator('id', 'district_id', mode='before')
    @classmethod
    def coerce_identifier(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    model_config = {
        "str_strip_whitespace": True,
        "frozen": True,
    }


class Tower(InfrastructurePoint):
    """
    Schema for a telecom tower.

    Example:
        >>> tower = Tower(
        ...     id='t-001',
        ...     district_id='d-kampala',
        ...     type='cellular',
        ...     status='Active',
        ...     coverage_radius=5.0,
        ...     location='SRID=4326;POINT(32.5811 0.3136)'
        ... )
        >>> tower.status
        'active'
    """
    operator: Optional[str] = Field(None, description="Network operator")
    type: str = Field("cellular", description="cellular, microwave, satellite or fiber_node")
    status: str = Field("active", description="active, maintenance or inactive")
    coverage_radius: Optional[float] = Field(None, ge=0, description="Coverage radius (km)")
    last_maintenance: Optional[date] = Field(None, description="Date of last maintenance")

    @field_validator('type', 'status', mode='before')
    @classmethod
    def normalize_label(cls, v):
        """Store labels are mixed case ('Active', 'Fiber_Node')."""
        if v is None:
            return v
        return str(v).strip().lower()

    @field_validator('last_maintenance', mode='before')
    @classmethod
    def parse_maintenance_date(cls, v):
        """Accept full ISO timestamps as well as plain dates."""
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and 'T' in v:
            return datetime.fromisoformat(v.replace('Z', '+00:00')).date()
        return v


class School(InfrastructurePoint):
    """Schema for a school."""
    level: Optional[str] = Field(None, description="primary, secondary, university, vocational")
    student_count: Optional[int] = Field(None, ge=0, description="Enrolled students")


class Hospital(InfrastructurePoint):
    """Schema for a hospital or health center."""
    type: Optional[str] = Field(None, description="national, regional, district, private, clinic")
    beds: Optional[int] = Field(None, ge=0, description="Bed capacity")


class CoverageResult(BaseModel):
    """
    Coverage of one district for one analysis type.

    Produced fresh by every analysis run; a new run supersedes, never
    patches, the previous result for the same district and type.
    """
    id: str = Field(..., description="Result identifier")
    district_id: str = Field(..., min_length=1)
    coverage_type: AnalysisType
    coverage_level: CoverageLevel
    percentage_covered: float = Field(..., ge=0, le=100, description="Percent covered, one decimal")
    population_covered: int = Field(..., ge=0, description="Estimated people covered")
    coverage_area: Optional[str] = Field(None, description="Approximate coverage area as WKT")
    last_calculated: datetime
    analysis_version: str = "2.0"

    model_config = {
        "frozen": True,
    }

    @staticmethod
    def make_id(district_id: str, coverage_type: str, calculated_at: datetime) -> str:
        """Deterministic identifier for a (district, type, timestamp) triple."""
        key = f"{district_id}:{coverage_type}:{calculated_at.isoformat()}"
        return str(uuid.uuid5(uuid.NAMESPACE_URL, key))

    def to_record(self) -> dict:
        """Flat dictionary with plain values, ready for a table row."""
        record = self.model_dump()
        record['coverage_type'] = self.coverage_type.value
        record['coverage_level'] = self.coverage_level.value
        record['last_calculated'] = self.last_calculated.isoformat()
        return record


class AuditRecord(BaseModel):
    """Audit log entry attributing an action to a user."""
    user_id: str = Field(..., min_length=1)
    action: str = Field("analysis", min_length=1)
    details: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {
        "frozen": True,
    }
