import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud, schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tags"])


@router.get(
    "/tags",
    response_model=List[schemas.TagOut],
    responses={500: {"model": schemas.ErrorResponse}},
)
def list_tags(db: Session = Depends(get_db)):
    """Return all tags along with their posts."""
    try:
        return crud.get_tags(db)
    except crud.StoreError:
        logger.exception("Listing tags failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching tags",
        )


@router.post(
    "/tags",
    response_model=schemas.TagOut,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": schemas.ErrorResponse},
        500: {"model": schemas.ErrorResponse},
    },
)
def create_tag(tag_in: schemas.TagCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_tag(db, tag_in)
    except crud.StoreError:
        logger.exception("Creating tag failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create tag",
        )


@router.post(
    "/posts/{post_id}/tags/{tag_id}",
    response_model=schemas.MessageResponse,
    responses={
        404: {"model": schemas.ErrorResponse},
        500: {"model": schemas.ErrorResponse},
    },
)
def add_tag_to_post(post_id: str, tag_id: str, db: Session = Depends(get_db)):
    """Associate an existing tag with a post.

    Repeating the call for the same pair succeeds without adding a
    second link.
    """
    parsed_post_id = crud.parse_id(post_id)
    if parsed_post_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    parsed_tag_id = crud.parse_id(tag_id)
    if parsed_tag_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")

    try:
        crud.add_tag_to_post(db, parsed_post_id, parsed_tag_id)
    except crud.NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except crud.StoreError:
        logger.exception("Tagging post %s with tag %s failed", parsed_post_id, parsed_tag_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to associate tag with post",
        )

    return {"message": "Tag added to post"}
