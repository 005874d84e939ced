from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, UniqueConstraint


def utcnow() -> datetime:
    # naive UTC; every timestamp column is a plain DATETIME
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ------------------------------------------------------------------
# Enumerations (stored as plain strings)
# ------------------------------------------------------------------
class UserRole(str, Enum):
    PASSENGER = "passenger"
    DRIVER = "driver"
    ADMIN = "admin"


class DriverStatus(str, Enum):
    OFFLINE = "offline"
    ONLINE = "online"
    BUSY = "busy"
    SUSPENDED = "suspended"


class KycStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VehicleType(str, Enum):
    SEDAN = "sedan"
    SUV = "suv"
    VAN = "van"
    BIKE = "bike"
    LUX = "lux"


class VehicleStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    BANNED = "banned"


class TripStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"
    PROMO = "promo"


class OwnerType(str, Enum):
    USER = "user"
    DRIVER = "driver"
    PLATFORM = "platform"


class DiscountType(str, Enum):
    PERCENT = "percent"
    FLAT = "flat"


class PromotionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class OtpPurpose(str, Enum):
    REGISTRATION = "registration"
    LOGIN = "login"
    RESET_PASSWORD = "reset_password"


class NotificationType(str, Enum):
    TRIP_ACCEPTED = "trip_accepted"
    TRIP_STARTED = "trip_started"
    TRIP_COMPLETED = "trip_completed"
    TRIP_CANCELLED = "trip_cancelled"
    PAYMENT_CONFIRMED = "payment_confirmed"
    SYSTEM = "system"


# ------------------------------------------------------------------
# Tables
# ------------------------------------------------------------------
class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("phone"), UniqueConstraint("email"))
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(max_length=32)
    email: Optional[str] = None
    name: Optional[str] = None
    password_hash: Optional[str] = None
    role: str = UserRole.PASSENGER.value
    is_active: bool = True
    phone_verified: bool = False
    phone_verified_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    last_login_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class Driver(SQLModel, table=True):
    __tablename__ = "drivers"
    __table_args__ = (UniqueConstraint("user_id"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    vehicle_id: Optional[int] = None
    status: str = Field(default=DriverStatus.OFFLINE.value, index=True)
    kyc_status: str = Field(default=KycStatus.PENDING.value, index=True)
    rating_avg: float = 0
    total_trips: int = 0
    vehicle_type: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_capacity: Optional[int] = None
    license_number: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    location_updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    kyc_approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    kyc_rejected_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    kyc_approved_by: Optional[int] = None
    kyc_rejection_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class Vehicle(SQLModel, table=True):
    __tablename__ = "vehicles"
    id: Optional[int] = Field(default=None, primary_key=True)
    driver_id: int = Field(foreign_key="drivers.id", index=True)
    type: str = VehicleType.SEDAN.value
    model: str
    color: str
    plate: Optional[str] = None
    capacity: int = 4
    status: str = VehicleStatus.PENDING.value
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class Trip(SQLModel, table=True):
    __tablename__ = "trips"
    id: Optional[int] = Field(default=None, primary_key=True)
    passenger_id: int = Field(foreign_key="users.id", index=True)
    driver_id: Optional[int] = Field(default=None, foreign_key="drivers.id", index=True)
    vehicle_id: Optional[int] = Field(default=None, foreign_key="vehicles.id")
    origin_lat: float
    origin_lng: float
    origin_text: str
    dest_lat: float
    dest_lng: float
    dest_text: str
    status: str = Field(default=TripStatus.PENDING.value, index=True)
    price_estimated: int = 0
    price_final: Optional[int] = None
    distance_m: int = 0
    duration_s: int = 0
    payment_method: Optional[str] = None
    payment_status: str = PaymentStatus.PENDING.value
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)
    started_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    ended_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    cancellation_reason: Optional[str] = None
    deleted_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class Payment(SQLModel, table=True):
    __tablename__ = "payments"
    id: Optional[int] = Field(default=None, primary_key=True)
    trip_id: int = Field(foreign_key="trips.id", index=True)
    amount: int
    currency: str = "GNF"
    method: str = PaymentMethod.CASH.value
    provider_ref: Optional[str] = None
    status: str = Field(default=PaymentStatus.PENDING.value, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)


class Wallet(SQLModel, table=True):
    __tablename__ = "wallets"
    __table_args__ = (UniqueConstraint("owner_type", "owner_id"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_type: str
    owner_id: int
    balance_cents: int = 0
    currency: str = "GNF"


class Rating(SQLModel, table=True):
    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("trip_id", "from_user_id"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    trip_id: int = Field(foreign_key="trips.id", index=True)
    from_user_id: int = Field(foreign_key="users.id")
    to_user_id: int = Field(foreign_key="users.id", index=True)
    rating: int
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class Zone(SQLModel, table=True):
    __tablename__ = "zones"
    __table_args__ = (UniqueConstraint("name"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    base_fare: float
    per_km: float
    per_min: float
    surge_multiplier: float = 1.0


class PromoCode(SQLModel, table=True):
    __tablename__ = "promo_codes"
    __table_args__ = (UniqueConstraint("code"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str
    discount_type: str = DiscountType.PERCENT.value
    value: int
    active: bool = True
    usage_limit: Optional[int] = None
    valid_from: Optional[datetime] = Field(default=None, sa_type=DateTime)
    valid_to: Optional[datetime] = Field(default=None, sa_type=DateTime)


class Promotion(SQLModel, table=True):
    __tablename__ = "promotions"
    __table_args__ = (UniqueConstraint("code"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str
    description: Optional[str] = None
    type: str = PromotionType.PERCENTAGE.value
    value: float
    min_trip_amount: Optional[int] = None
    max_discount: Optional[int] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    usage_per_user: Optional[int] = None
    is_active: bool = True
    valid_from: Optional[datetime] = Field(default=None, sa_type=DateTime)
    valid_until: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class PromotionUsage(SQLModel, table=True):
    __tablename__ = "promotion_usages"
    id: Optional[int] = Field(default=None, primary_key=True)
    promotion_id: int = Field(foreign_key="promotions.id", index=True)
    user_id: int = Field(foreign_key="users.id")
    trip_id: Optional[int] = None
    discount_amount: int = 0
    used_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class AuthSession(SQLModel, table=True):
    __tablename__ = "sessions"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(index=True)
    expires_at: datetime = Field(sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class DriverLocation(SQLModel, table=True):
    __tablename__ = "driver_location_live"
    driver_id: int = Field(foreign_key="drivers.id", primary_key=True)
    lat: float
    lng: float
    updated_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)


class KycDocument(SQLModel, table=True):
    __tablename__ = "kyc_documents"
    id: Optional[int] = Field(default=None, primary_key=True)
    driver_id: int = Field(foreign_key="drivers.id", index=True)
    document_type: str
    storage_key: str
    status: str = KycStatus.PENDING.value
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class AdminLog(SQLModel, table=True):
    __tablename__ = "admin_logs"
    id: Optional[int] = Field(default=None, primary_key=True)
    admin_id: int = Field(foreign_key="users.id", index=True)
    action: str = Field(index=True)
    resource_type: str
    resource_id: Optional[int] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)


class OtpCode(SQLModel, table=True):
    __tablename__ = "otp_codes"
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(index=True)
    code: str
    purpose: str = OtpPurpose.REGISTRATION.value
    attempts: int = 0
    expires_at: datetime = Field(sa_type=DateTime)
    verified_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    type: str = NotificationType.SYSTEM.value
    title: str
    message: str
    trip_id: Optional[int] = Field(default=None, foreign_key="trips.id")
    is_read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)
    read_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
