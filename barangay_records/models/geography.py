from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Region(Base):
    __tablename__ = "psgc_regions"

    code = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    provinces = relationship("Province", back_populates="region")


class Province(Base):
    __tablename__ = "psgc_provinces"

    code = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False)
    region_code = Column(String(10), ForeignKey("psgc_regions.code"), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    region = relationship("Region", back_populates="provinces")
    cities = relationship("CityMunicipality", back_populates="province")


class CityMunicipality(Base):
    __tablename__ = "psgc_cities_municipalities"

    code = Column(String(10), primary_key=True)
    name = Column(String(200), nullable=False)
    # NULL for independent cities
    province_code = Column(String(10), ForeignKey("psgc_provinces.code"))
    # Independent cities carry their region directly
    region_code = Column(String(10), ForeignKey("psgc_regions.code"))
    type = Column(String(50), nullable=False, default="Municipality")
    is_city = Column(Boolean, default=False)
    is_independent = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    province = relationship("Province", back_populates="cities")
    barangays = relationship("Barangay", back_populates="city_municipality")

    __table_args__ = (
        CheckConstraint(
            "(is_independent AND province_code IS NULL) OR NOT is_independent",
            name="independence_rule",
        ),
    )


class Barangay(Base):
    __tablename__ = "psgc_barangays"

    code = Column(String(10), primary_key=True)
    name = Column(String(100), nullable=False, index=True)
    city_municipality_code = Column(
        String(10), ForeignKey("psgc_cities_municipalities.code"), nullable=False
    )
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    city_municipality = relationship("CityMunicipality", back_populates="barangays")


class PsocMajorGroup(Base):
    __tablename__ = "psoc_major_groups"

    code = Column(String(10), primary_key=True)
    title = Column(String(200), nullable=False)


class PsocUnitGroup(Base):
    __tablename__ = "psoc_unit_groups"

    code = Column(String(10), primary_key=True)
    title = Column(String(200), nullable=False)
    major_code = Column(String(10), ForeignKey("psoc_major_groups.code"), nullable=False)

    major_group = relationship("PsocMajorGroup")
