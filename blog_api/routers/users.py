import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=List[schemas.UserOut],
    responses={500: {"model": schemas.ErrorResponse}},
)
def list_users(db: Session = Depends(get_db)):
    """Return all users along with their posts and each post's tags."""
    try:
        return crud.get_users(db)
    except crud.StoreError:
        logger.exception("Listing users failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching users",
        )


@router.get(
    "/{user_id}",
    response_model=schemas.UserOut,
    responses={
        404: {"model": schemas.ErrorResponse},
        500: {"model": schemas.ErrorResponse},
    },
)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Return a single user with their posts.

    An id that is not a number cannot match any row, so it is reported
    as 404 like any other unknown id.
    """
    parsed_id = crud.parse_id(user_id)
    if parsed_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        user = crud.get_user(db, parsed_id)
    except crud.StoreError:
        logger.exception("Loading user %s failed", parsed_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching user",
        )

    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.post(
    "",
    response_model=schemas.UserOut,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": schemas.ErrorResponse},
        500: {"model": schemas.ErrorResponse},
    },
)
def create_user(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_user(db, user_in)
    except crud.StoreError:
        logger.exception("Creating user failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user",
        )
