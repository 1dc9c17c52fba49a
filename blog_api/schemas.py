from typing import List

from pydantic import BaseModel


# ----- Tag Schemas -----


class TagBase(BaseModel):
    name: str


class TagCreate(TagBase):
    pass


class TagSummary(TagBase):
    """Tag as nested under a post, without its own posts."""

    id: int

    class Config:
        from_attributes = True


# ----- Post Schemas -----


class PostBase(BaseModel):
    title: str = ""
    body: str = ""


class PostCreate(PostBase):
    """Incoming post body; the owner always comes from the URL."""
    pass


class PostSummary(PostBase):
    id: int
    user_id: int

    class Config:
        from_attributes = True


class PostOut(PostSummary):
    tags: List[TagSummary] = []


class TagOut(TagSummary):
    posts: List[PostSummary] = []


# ----- User Schemas -----


class UserBase(BaseModel):
    name: str
    email: str


class UserCreate(UserBase):
    pass


class UserOut(UserBase):
    id: int
    posts: List[PostOut] = []

    class Config:
        from_attributes = True


# ----- Generic responses -----


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    code: int
    message: str
