from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from ..database import Base

COUNT_COLUMNS = (
    "total_residents",
    "total_households",
    "male_count",
    "female_count",
    "age_0_5",
    "age_6_14",
    "age_15_24",
    "age_25_59",
    "age_60_plus",
    "single_count",
    "married_count",
    "widowed_count",
    "divorced_separated_count",
    "employed_count",
    "unemployed_count",
    "student_count",
    "retired_count",
    "senior_citizen_count",
    "pwd_count",
    "ofw_count",
    "solo_parent_count",
    "indigenous_count",
    "out_of_school_children_count",
    "out_of_school_youth_count",
)


class BarangayDashboardSummary(Base):
    """Pre-computed per-barangay statistics; may lag the source tables"""

    __tablename__ = "barangay_dashboard_summaries"

    barangay_code = Column(
        String(10), ForeignKey("psgc_barangays.code"), primary_key=True
    )

    total_residents = Column(Integer, default=0)
    total_households = Column(Integer, default=0)
    male_count = Column(Integer, default=0)
    female_count = Column(Integer, default=0)

    age_0_5 = Column(Integer, default=0)
    age_6_14 = Column(Integer, default=0)
    age_15_24 = Column(Integer, default=0)
    age_25_59 = Column(Integer, default=0)
    age_60_plus = Column(Integer, default=0)

    single_count = Column(Integer, default=0)
    married_count = Column(Integer, default=0)
    widowed_count = Column(Integer, default=0)
    divorced_separated_count = Column(Integer, default=0)

    employed_count = Column(Integer, default=0)
    unemployed_count = Column(Integer, default=0)
    student_count = Column(Integer, default=0)
    retired_count = Column(Integer, default=0)

    senior_citizen_count = Column(Integer, default=0)
    pwd_count = Column(Integer, default=0)
    ofw_count = Column(Integer, default=0)
    solo_parent_count = Column(Integer, default=0)
    indigenous_count = Column(Integer, default=0)
    out_of_school_children_count = Column(Integer, default=0)
    out_of_school_youth_count = Column(Integer, default=0)

    average_household_size = Column(Numeric(5, 2), default=0)

    calculation_date = Column(DateTime(timezone=True), nullable=False)
    calculation_duration_ms = Column(Integer)

    def counts(self) -> dict:
        return {name: getattr(self, name) or 0 for name in COUNT_COLUMNS}
