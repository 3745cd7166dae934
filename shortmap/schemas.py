"""
Pydantic schemas for shell input.

The engine trusts its inputs; these models are where oversized URLs and
malformed codes get rejected before it is called.
"""

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from shortmap.config import settings
from shortmap.manager.strategies import BASE62_ALPHABET, CODE_LENGTH

CODE_PATTERN = rf"^[{BASE62_ALPHABET}]{{{CODE_LENGTH}}}$"


class ShortenRequest(BaseModel):
    """Payload for `gen`. Pass `context={"url_max_length": n}` to override the limit."""
    url: str = Field(min_length=1)

    @field_validator("url")
    @classmethod
    def _within_max_length(cls, value: str, info: ValidationInfo) -> str:
        limit = (info.context or {}).get("url_max_length", settings.URL_MAX_LENGTH)
        if len(value) > limit:
            raise PydanticCustomError(
                "url_too_long",
                "URL is too long! Maximum allowed length is {limit} characters.",
                {"limit": limit},
            )
        return value


class CodeRequest(BaseModel):
    """Payload for `get` and `del`."""
    code: str = Field(pattern=CODE_PATTERN)
