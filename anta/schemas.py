from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from .models import (
    DiscountType,
    DriverStatus,
    KycStatus,
    OtpPurpose,
    OwnerType,
    PaymentMethod,
    PaymentStatus,
    PromotionType,
    TripStatus,
    UserRole,
    VehicleStatus,
    VehicleType,
)


class ORMModel(BaseModel):
    model_config = {"from_attributes": True, "use_enum_values": True}


Latitude = Field(ge=-90, le=90)
Longitude = Field(ge=-180, le=180)


# ------------------------------------------------------------------
# Users
# ------------------------------------------------------------------
class UserCreate(ORMModel):
    phone: str = Field(min_length=6, max_length=32)
    email: Optional[str] = None
    name: Optional[str] = None
    role: UserRole = UserRole.PASSENGER


class UserUpdate(ORMModel):
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = Field(default=None, min_length=6, max_length=32)


class UserRead(ORMModel):
    id: int
    phone: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    is_active: bool
    phone_verified: bool = False
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None


# ------------------------------------------------------------------
# Drivers
# ------------------------------------------------------------------
class DriverCreate(ORMModel):
    user_id: int
    vehicle_id: Optional[int] = None
    status: DriverStatus = DriverStatus.OFFLINE
    kyc_status: KycStatus = KycStatus.PENDING
    vehicle_type: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_capacity: Optional[int] = None
    license_number: Optional[str] = None


class DriverUpdate(ORMModel):
    vehicle_id: Optional[int] = None
    status: Optional[DriverStatus] = None
    kyc_status: Optional[KycStatus] = None
    rating_avg: Optional[float] = Field(default=None, ge=0, le=5)
    total_trips: Optional[int] = Field(default=None, ge=0)
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


class DriverStatusUpdate(ORMModel):
    status: DriverStatus


class DriverRatingUpdate(ORMModel):
    rating_avg: float = Field(ge=0, le=5)
    total_trips: Optional[int] = Field(default=None, ge=0)


class LocationUpdate(ORMModel):
    latitude: float = Latitude
    longitude: float = Longitude


class KycDocumentCreate(ORMModel):
    document_type: str
    storage_key: str


class KycRejection(ORMModel):
    reason: Optional[str] = None


# ------------------------------------------------------------------
# Vehicles
# ------------------------------------------------------------------
class VehicleCreate(ORMModel):
    driver_id: int
    type: VehicleType = VehicleType.SEDAN
    model: str
    color: str
    plate: Optional[str] = None
    capacity: int = Field(default=4, ge=1)
    status: VehicleStatus = VehicleStatus.PENDING


class VehicleUpdate(ORMModel):
    type: Optional[VehicleType] = None
    model: Optional[str] = None
    color: Optional[str] = None
    plate: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)


class VehicleStatusUpdate(ORMModel):
    status: VehicleStatus


# ------------------------------------------------------------------
# Trips
# ------------------------------------------------------------------
class TripCreate(ORMModel):
    passenger_id: int
    origin_lat: float = Latitude
    origin_lng: float = Longitude
    origin_text: str
    dest_lat: float = Latitude
    dest_lng: float = Longitude
    dest_text: str
    price_estimated: int = Field(default=0, ge=0)
    distance_m: int = Field(default=0, ge=0)
    duration_s: int = Field(default=0, ge=0)
    payment_method: Optional[PaymentMethod] = None


class TripUpdate(ORMModel):
    origin_text: Optional[str] = None
    dest_text: Optional[str] = None
    price_estimated: Optional[int] = Field(default=None, ge=0)
    price_final: Optional[int] = Field(default=None, ge=0)
    distance_m: Optional[int] = Field(default=None, ge=0)
    duration_s: Optional[int] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None


class TripStatusUpdate(ORMModel):
    status: TripStatus


class TripAssign(ORMModel):
    driver_id: int
    vehicle_id: Optional[int] = None


class TripComplete(ORMModel):
    price_final: Optional[int] = Field(default=None, ge=0)


class TripCancel(ORMModel):
    reason: Optional[str] = None


# ------------------------------------------------------------------
# Payments
# ------------------------------------------------------------------
class PaymentCreate(ORMModel):
    trip_id: int
    amount: int = Field(ge=0)
    currency: str = "GNF"
    method: PaymentMethod = PaymentMethod.CASH


class PaymentUpdate(ORMModel):
    amount: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = None
    method: Optional[PaymentMethod] = None
    provider_ref: Optional[str] = None


class PaymentStatusUpdate(ORMModel):
    status: PaymentStatus
    provider_ref: Optional[str] = None


# ------------------------------------------------------------------
# Ratings
# ------------------------------------------------------------------
class RatingCreate(ORMModel):
    trip_id: int
    to_user_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


# ------------------------------------------------------------------
# Wallets
# ------------------------------------------------------------------
class WalletCredit(ORMModel):
    amount_cents: int = Field(gt=0)


class WalletTransfer(ORMModel):
    from_type: OwnerType
    from_id: int
    to_type: OwnerType
    to_id: int
    amount_cents: int = Field(gt=0)


# ------------------------------------------------------------------
# Zones
# ------------------------------------------------------------------
class ZoneCreate(ORMModel):
    name: str
    base_fare: float = Field(ge=0)
    per_km: float = Field(ge=0)
    per_min: float = Field(ge=0)
    surge_multiplier: float = Field(default=1.0, gt=0)


class ZoneUpdate(ORMModel):
    name: Optional[str] = None
    base_fare: Optional[float] = Field(default=None, ge=0)
    per_km: Optional[float] = Field(default=None, ge=0)
    per_min: Optional[float] = Field(default=None, ge=0)


class ZoneSurgeUpdate(ORMModel):
    surge_multiplier: float = Field(gt=0)


# ------------------------------------------------------------------
# Promo codes / promotions
# ------------------------------------------------------------------
class PromoCodeCreate(ORMModel):
    code: str = Field(min_length=2, max_length=32)
    discount_type: DiscountType = DiscountType.PERCENT
    value: int = Field(gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()


class PromoCodeUpdate(ORMModel):
    discount_type: Optional[DiscountType] = None
    value: Optional[int] = Field(default=None, gt=0)
    active: Optional[bool] = None
    usage_limit: Optional[int] = Field(default=None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None


class PromoCodeCheck(ORMModel):
    code: str
    amount: int = Field(ge=0)


class PromotionCreate(ORMModel):
    code: str = Field(min_length=2, max_length=32)
    description: Optional[str] = None
    type: PromotionType = PromotionType.PERCENTAGE
    value: float = Field(gt=0)
    min_trip_amount: Optional[int] = Field(default=None, ge=0)
    max_discount: Optional[int] = Field(default=None, ge=0)
    usage_limit: Optional[int] = Field(default=None, ge=0)
    usage_per_user: Optional[int] = Field(default=None, ge=0)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class PromotionUpdate(ORMModel):
    code: Optional[str] = Field(default=None, min_length=2, max_length=32)
    description: Optional[str] = None
    type: Optional[PromotionType] = None
    value: Optional[float] = Field(default=None, gt=0)
    min_trip_amount: Optional[int] = Field(default=None, ge=0)
    max_discount: Optional[int] = Field(default=None, ge=0)
    usage_limit: Optional[int] = Field(default=None, ge=0)
    usage_per_user: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


# ------------------------------------------------------------------
# OTP
# ------------------------------------------------------------------
class OtpSend(ORMModel):
    phone: str
    purpose: OtpPurpose = OtpPurpose.REGISTRATION


class OtpVerify(ORMModel):
    phone: str
    code: str = Field(min_length=1, max_length=8)
    purpose: OtpPurpose = OtpPurpose.REGISTRATION
