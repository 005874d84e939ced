from .base import CrudRepository
from .admin_logs import AdminLogRepository
from .driver_locations import DriverLocationRepository
from .drivers import DriverRepository, haversine_distance
from .kyc_documents import KycDocumentRepository
from .notifications import NotificationRepository
from .otp_codes import OtpCodeRepository
from .payments import PaymentRepository
from .promo_codes import PromoCodeRepository
from .promotions import PromotionRepository, PromotionUsageRepository
from .ratings import RatingRepository
from .sessions import SessionRepository
from .trips import TripRepository
from .users import UserRepository
from .vehicles import VehicleRepository
from .wallets import WalletRepository
from .zones import ZoneRepository

__all__ = [
    "CrudRepository",
    "AdminLogRepository",
    "DriverLocationRepository",
    "DriverRepository",
    "KycDocumentRepository",
    "NotificationRepository",
    "OtpCodeRepository",
    "PaymentRepository",
    "PromoCodeRepository",
    "PromotionRepository",
    "PromotionUsageRepository",
    "RatingRepository",
    "SessionRepository",
    "TripRepository",
    "UserRepository",
    "VehicleRepository",
    "WalletRepository",
    "ZoneRepository",
    "haversine_distance",
]
