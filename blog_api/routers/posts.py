import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud, schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["posts"])


def owner_id_from_path(user_id: str) -> int:
    """Resolve the owner id before the request body is looked at."""
    owner_id = crud.parse_id(user_id)
    if owner_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user ID")
    return owner_id


@router.post(
    "/users/{user_id}/posts",
    response_model=schemas.PostOut,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": schemas.ErrorResponse},
        500: {"model": schemas.ErrorResponse},
    },
)
def create_post(
    post_in: schemas.PostCreate,
    owner_id: int = Depends(owner_id_from_path),
    db: Session = Depends(get_db),
):
    """Add a new post to the user given in the path."""
    try:
        return crud.create_post(db, owner_id, post_in)
    except crud.StoreError:
        logger.exception("Creating post for user %s failed", owner_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create post",
        )
