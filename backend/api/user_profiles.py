"""User profile API endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from database import get_db
from schemas.user_profile import UserProfileCreate, UserProfileCreateResponse
from services.user_profile_service import UserProfileService

router = APIRouter(prefix="/api/user-profile", tags=["user-profile"])


@router.post("/create", response_model=UserProfileCreateResponse)
def create_user_profile(
    request: UserProfileCreate, response: Response, db: Session = Depends(get_db)
):
    """Create an empty profile and portfolio (201), or return the existing one (200)."""
    profile, created = UserProfileService.get_or_create(db, request.user_id, request.email)
    if created:
        db.commit()
        db.refresh(profile)
        response.status_code = status.HTTP_201_CREATED
        message = "User profile and empty portfolio created"
    else:
        message = "User profile already exists"
    return {"message": message, "user_profile": profile}
