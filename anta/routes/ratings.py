from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import schemas as s
from ..auth import CurrentUser, get_current_user
from ..database import get_session
from ..errors import ApiError
from ..repositories import DriverRepository, RatingRepository, TripRepository, UserRepository
from ..responses import Page, paginated, pagination, success

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("", status_code=201)
def create_rating(
    payload: s.RatingCreate,
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    TripRepository(session).get_or_404(payload.trip_id)
    UserRepository(session).get_or_404(payload.to_user_id)
    if payload.to_user_id == current.user_id:
        raise ApiError.bad_request("You cannot rate yourself")

    ratings = RatingRepository(session)
    if ratings.has_rated_trip(payload.trip_id, current.user_id):
        raise ApiError.conflict("You have already rated this trip")
    rating = ratings.create({"from_user_id": current.user_id, **payload.model_dump()})

    # keep the rated driver's average in step
    drivers = DriverRepository(session)
    driver = drivers.find_by_user_id(payload.to_user_id)
    if driver is not None:
        drivers.update_rating(driver.id, round(ratings.get_average_rating(payload.to_user_id), 2))

    session.refresh(rating)
    return success(rating)


@router.get("/pending")
def pending_ratings(
    user_type: str = Query("passenger", pattern="^(passenger|driver)$"),
    current: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    trips = TripRepository(session).get_unrated_trips(current.user_id, as_driver=user_type == "driver")
    return success(trips)


@router.get("/user/{user_id}/badges")
def user_badges(
    user_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    UserRepository(session).get_or_404(user_id)
    return success({"user_id": user_id, "badges": RatingRepository(session).calculate_badges(user_id)})


@router.get("/user/{user_id}")
def ratings_for_user(
    user_id: int,
    page: Page = Depends(pagination),
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = RatingRepository(session)
    rows = repo.get_ratings_for_user(user_id, page.limit, page.offset)
    return paginated(rows, page.page, page.limit, repo.count({"to_user_id": user_id}))


@router.get("/user/{user_id}/stats")
def rating_stats(
    user_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success(RatingRepository(session).get_rating_stats(user_id))


@router.get("/trip/{trip_id}")
def ratings_for_trip(
    trip_id: int,
    _user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return success(RatingRepository(session).find_all({"trip_id": trip_id}))
