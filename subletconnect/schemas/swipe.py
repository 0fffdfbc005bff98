from typing import Optional
from uuid import UUID

from pydantic import model_validator
from pydantic_core import PydanticCustomError

from subletconnect.models.enums import SwipeDirection, SwipedType
from subletconnect.schemas.common import ApiModel


class SwipeCreate(ApiModel):
    swiper_id: UUID
    swiped_id: UUID
    swiped_type: SwipedType
    direction: SwipeDirection

    @model_validator(mode="after")
    def _forbid_self_swipe(self) -> "SwipeCreate":
        if self.swiped_type is SwipedType.USER and self.swiper_id == self.swiped_id:
            raise PydanticCustomError("self_swipe", "Cannot swipe on yourself")
        return self


class SwipeResult(ApiModel):
    swipe_id: UUID
    matched: bool
    match_id: Optional[UUID] = None


class ResetSwipesResponse(ApiModel):
    message: str
    deleted_count: int
