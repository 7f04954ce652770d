"""
Unit tests for the facility-ratio coverage model.
"""
import pytest
from shapely.geometry import MultiPolygon

from infra_coverage.analysis.facilities import FacilityCoverageModel
from infra_coverage.data.schemas import Hospital, School
from infra_coverage.utils.config import FacilityParams


@pytest.fixture
def schools():
    """10 schools, 4 connected; 600 of 1000 students in connected schools."""
    connected = [
        School(id=f's{i}', district_id='d1', has_internet=True, student_count=150,
               location=f'POINT({32.5 + i * 0.05} 0.3)')
        for i in range(4)
    ]
    offline = [
        School(id=f's{i + 4}', district_id='d1', has_internet=False, student_count=count)
        for i, count in enumerate([100, 100, 50, 50, 50, 50])
    ]
    return connected + offline


class TestEducation:
    """Tests for the education model."""

    def test_ratios_averaged(self, schools):
        coverage = FacilityCoverageModel.education().calculate(schools)

        assert coverage.facility_ratio == pytest.approx(40.0)
        assert coverage.capacity_ratio == pytest.approx(60.0)
        assert coverage.percentage == pytest.approx(50.0)
        assert coverage.facility_count == 10
        assert coverage.connected_count == 4

    def test_geometry_for_connected_schools(self, schools):
        coverage = FacilityCoverageModel.education().calculate(schools)

        assert isinstance(coverage.coverage_geometry, MultiPolygon)
        assert len(coverage.coverage_geometry.geoms) == 4

    def test_school_radius(self):
        model = FacilityCoverageModel.education(FacilityParams(school_radius_km=3.0))
        assert model.radius_km == 3.0
        assert FacilityCoverageModel.education().radius_km == 2.0

    def test_no_schools(self):
        coverage = FacilityCoverageModel.education().calculate([])

        assert coverage.percentage == 0
        assert coverage.coverage_geometry is None

    def test_no_connected_schools(self):
        schools = [School(id='s1', has_internet=False, student_count=10)]
        coverage = FacilityCoverageModel.education().calculate(schools)

        assert coverage.percentage == 0
        assert coverage.coverage_geometry is None

    def test_unlocatable_school_counts_in_ratio(self):
        schools = [
            School(id='s1', has_internet=True, student_count=10, location='POINT(32.5 0.3)'),
            School(id='s2', has_internet=True, student_count=10),
        ]
        coverage = FacilityCoverageModel.education().calculate(schools)

        assert coverage.percentage == pytest.approx(100.0)
        assert len(coverage.coverage_geometry.geoms) == 1

    def test_missing_student_counts(self):
        """Without capacity data the capacity ratio is 0."""
        schools = [School(id='s1', has_internet=True), School(id='s2', has_internet=False)]
        coverage = FacilityCoverageModel.education().calculate(schools)

        assert coverage.capacity_ratio == 0
        assert coverage.percentage == pytest.approx(25.0)


class TestHealthcare:
    """Tests for the healthcare model."""

    def test_beds_weighting(self):
        hospitals = [
            Hospital(id='h1', has_internet=True, beds=300, latitude=0.33, longitude=32.57),
            Hospital(id='h2', has_internet=False, beds=100),
        ]
        coverage = FacilityCoverageModel.healthcare().calculate(hospitals)

        assert coverage.facility_ratio == pytest.approx(50.0)
        assert coverage.capacity_ratio == pytest.approx(75.0)
        assert coverage.percentage == pytest.approx(62.5)

    def test_hospital_radius(self):
        assert FacilityCoverageModel.healthcare().radius_km == 5.0
        assert FacilityCoverageModel.healthcare().capacity_field == 'beds'

    def test_percentage_bounded(self):
        hospitals = [Hospital(id=f'h{i}', has_internet=True, beds=10) for i in range(5)]
        coverage = FacilityCoverageModel.healthcare().calculate(hospitals)

        assert 0 <= coverage.percentage <= 100
        assert coverage.percentage == pytest.approx(100.0)
