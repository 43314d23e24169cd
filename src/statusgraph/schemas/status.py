"""Status composition schemas."""

from pydantic import BaseModel, Field, field_validator, model_validator

from statusgraph.models import StatusVisibility


class PollCreate(BaseModel):
    """Schema for a poll attached to a new status."""

    options: list[str] = Field(..., min_length=2, max_length=4, description="Poll choices")
    expires_in: int = Field(..., ge=300, le=2_629_746, description="Lifetime in seconds")
    multiple: bool = Field(False, description="Allow choosing more than one option")

    @field_validator("options")
    @classmethod
    def _options_not_blank(cls, options: list[str]) -> list[str]:
        stripped = [option.strip() for option in options]
        if any(not option for option in stripped):
            raise ValueError("poll options must not be blank")
        return stripped


class StatusCreate(BaseModel):
    """Schema for composing a new status on behalf of a local account."""

    text: str = Field("", description="Body text")
    spoiler_text: str = Field("", description="Content warning shown before the body")
    markdown: str | None = Field(None, description="Markdown source of the body")
    sensitive: bool | None = Field(None, description="Hide media behind a warning")
    visibility: StatusVisibility | None = Field(None, description="Audience tier")
    language: str | None = Field(None, max_length=16, description="Content language tag")
    in_reply_to_id: int | None = Field(None, description="Status being replied to")
    reblog_of_id: int | None = Field(None, description="Status being shared")
    quote_of_id: int | None = Field(None, description="Status being quoted")
    group_id: int | None = Field(None, description="Group the status is posted into")
    media_ids: list[int] = Field(default_factory=list, max_length=4)
    poll: PollCreate | None = None

    @field_validator("visibility")
    @classmethod
    def _selectable_visibility(cls, value: StatusVisibility | None) -> StatusVisibility | None:
        if value in (StatusVisibility.LIMITED, StatusVisibility.PRIVATE_GROUP):
            raise ValueError(f"{value.value} cannot be chosen when composing")
        return value

    @model_validator(mode="after")
    def _poll_excludes_media(self) -> "StatusCreate":
        if self.poll is not None and self.media_ids:
            raise ValueError("a status cannot carry both a poll and media")
        return self
