from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Boolean, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from .database import Base
import enum


def utcnow():
    return datetime.now(timezone.utc)


# --- Enums ---

class UnitOfMeasure(str, enum.Enum):
    AREA = "AREA"        # length x height, priced per unit area
    LENGTH = "LENGTH"    # priced per running unit
    COUNT = "COUNT"      # priced per piece


# Codes used by stored projects and rate cards before the enum existed.
LEGACY_UOM_CODES = {
    "SFT": UnitOfMeasure.AREA,
    "RFT": UnitOfMeasure.LENGTH,
    "NOS": UnitOfMeasure.COUNT,
}


class ProjectType(str, enum.Enum):
    APARTMENT = "Apartment"
    VILLA = "Villa"
    FARMHOUSE = "Farmhouse"
    INDEPENDENT_HOUSE = "Independent House"
    OFFICE_SPACE = "Office Space"
    OTHER = "Other"


class LayoutType(int, enum.Enum):
    COMPACT = 1
    DETAILED = 2
    VISUAL = 3


# --- Tables ---

class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=False)
    website = Column(String, nullable=True)
    primary_color = Column(String, default="#C62828")
    header_bg_color = Column(String, default="#FFFFFF")
    header_text_color = Column(String, default="#333333")
    created_at = Column(DateTime, default=utcnow)

    projects = relationship("Project", back_populates="company", cascade="all, delete-orphan")
    rate_cards = relationship("RateCard", back_populates="company", cascade="all, delete-orphan")
    export_templates = relationship("ExportTemplate", back_populates="company", cascade="all, delete-orphan")


class Project(Base):
    """One client quote: project info, rooms, line items and pricing settings."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    name = Column(String, nullable=False)
    client_name = Column(String, nullable=False)
    site_address = Column(Text, nullable=False)
    contact_info = Column(String, nullable=True)
    project_type = Column(String, default=ProjectType.APARTMENT.value)
    # Settings
    tax_percent = Column(Float, default=18.0)
    discount_percent = Column(Float, default=0.0)
    version = Column(String, default="1.0")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="projects")
    rooms = relationship("Room", back_populates="project", cascade="all, delete-orphan", order_by="Room.id")
    line_items = relationship("LineItem", back_populates="project", cascade="all, delete-orphan", order_by="LineItem.id")


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint("project_id", "name", name="uq_room_project_name"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)

    project = relationship("Project", back_populates="rooms")


class LineItem(Base):
    """
    One priced row of work within a room.

    `room` is the room name, not a foreign key; rooms and line items are
    separate lists on the project, joined by name. `amount` is a cache of the
    last calculator run and is rewritten on every create/update.
    """
    __tablename__ = "line_items"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    room = Column(String, nullable=False)
    item = Column(String, nullable=False)
    category = Column(String, nullable=True)
    unit_of_measure = Column(String, default=UnitOfMeasure.AREA.value)

    length = Column(Float, default=0.0)
    height = Column(Float, default=0.0)
    quantity = Column(Float, default=1.0)
    rate = Column(Float, nullable=False, default=0.0)

    material = Column(JSON, nullable=True)     # MaterialSelection
    add_ons = Column(JSON, default=dict)       # {name: AddOnSelection}

    amount = Column(Float, default=0.0)

    project = relationship("Project", back_populates="line_items")


class RateCard(Base):
    __tablename__ = "rate_cards"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    name = Column(String, nullable=False)
    version = Column(String, default="1.0")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="rate_cards")
    items = relationship("RateCardItem", back_populates="rate_card", cascade="all, delete-orphan", order_by="RateCardItem.id")


class RateCardItem(Base):
    """Catalog template. Raw comma lists are parsed when an item is instantiated."""
    __tablename__ = "rate_card_items"

    id = Column(Integer, primary_key=True, index=True)
    rate_card_id = Column(Integer, ForeignKey("rate_cards.id"), nullable=False)
    category = Column(String, nullable=False)
    item = Column(String, nullable=False)
    unit_of_measure = Column(String, default=UnitOfMeasure.AREA.value)
    rate = Column(Float, nullable=False, default=0.0)
    material_options = Column(Text, default="")   # "Laminate,Veneer,PU"
    material_prices = Column(Text, default="")    # "Veneer:500,PU:800"
    add_ons = Column(Text, default="")            # "Profile Door,Lights" or "None"
    addon_prices = Column(Text, default="")       # "Lights:250"

    rate_card = relationship("RateCard", back_populates="items")


class ExportTemplate(Base):
    """Layout and wording options for the exported quote document."""
    __tablename__ = "export_templates"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    name = Column(String, nullable=False)
    include_logo = Column(Boolean, default=True)
    include_company_details = Column(Boolean, default=True)
    include_images = Column(Boolean, default=False)
    include_terms = Column(Boolean, default=True)
    terms_text = Column(Text, nullable=True)
    primary_color = Column(String, default="#C62828")
    header_text = Column(String, default="Interior Design Quote")
    footer_text = Column(String, default="Thank you for choosing our services.")
    font_family = Column(String, default="Helvetica")
    font_size = Column(Integer, default=10)
    layout_type = Column(Integer, default=LayoutType.DETAILED.value)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    company = relationship("Company", back_populates="export_templates")
