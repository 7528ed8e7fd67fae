from sqlalchemy import Column, Integer, String, Boolean, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin

class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), default="doer", nullable=False)  # doer, supervisor
    is_active = Column(Boolean, default=True, nullable=False)


class Doer(Base, TimestampMixin):
    __tablename__ = "doers"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), unique=True, index=True, nullable=False)
    qualification = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)

    # Payout details
    bank_account_name = Column(String(100), nullable=True)
    bank_account_number = Column(String(18), nullable=True)
    bank_ifsc_code = Column(String(11), nullable=True)
    bank_name = Column(String(255), nullable=True)
    upi_id = Column(String(255), nullable=True)

    is_activated = Column(Boolean, default=False, nullable=False)
    total_earnings = Column(Float, default=0.0, nullable=False)
    average_rating = Column(Float, default=0.0, nullable=False)

    profile = relationship("Profile")


class Supervisor(Base, TimestampMixin):
    __tablename__ = "supervisors"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), unique=True, index=True, nullable=False)

    profile = relationship("Profile")
