from fastapi import APIRouter

from . import (
    admin_logs,
    auth,
    directions,
    drivers,
    geocoding,
    health,
    notifications,
    payments,
    promo_codes,
    promotions,
    ratings,
    stats,
    trips,
    users,
    vehicles,
    wallets,
    zones,
)

api_router = APIRouter()
for module in (
    health, auth, users, drivers, vehicles, trips, payments, ratings,
    wallets, zones, promo_codes, promotions, stats, admin_logs, geocoding, directions, notifications,
):
    api_router.include_router(module.router)

__all__ = ["api_router"]
