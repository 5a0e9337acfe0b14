"""
Pydantic input models for the catalog service.

They are the only place caller input is checked. Anything that reaches a
repository has already passed through one of these.
"""
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookcatalog.validators.input_validators import require_non_blank

# authors.id is a 32-bit INTEGER column
AuthorId = Annotated[int, Field(gt=0, le=2 ** 31 - 1)]


class AuthorInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def non_blank(cls, v, info):
        return require_non_blank(v, info.field_name)


class TitleInput(BaseModel):
    """
    A title plus the full set of its author ids.

    `author_ids` must hold at least one positive id. Numeric strings ("3")
    are accepted; anything else is rejected. Repeated ids are kept as given.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    isbn: str = Field(max_length=20)
    name: str = Field(max_length=500)
    edition_number: int = Field(gt=0)
    copyright_year: str = Field(max_length=10)
    author_ids: list[AuthorId] = Field(min_length=1)

    @field_validator("isbn", "name", "copyright_year", mode="before")
    @classmethod
    def non_blank(cls, v, info):
        return require_non_blank(v, info.field_name)
