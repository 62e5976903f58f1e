"""Result wrapper returned by the repositories."""

from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class Success(BaseModel, Generic[T]):
    """The call produced data."""

    model_config = ConfigDict(frozen=True)

    data: T


class Error(BaseModel):
    """The call failed; message is meant for the user."""

    model_config = ConfigDict(frozen=True)

    message: str
    data: Any = None


class Loading(BaseModel):
    """The call has not finished.

    Repositories never return this; consumers still handle it.
    """

    model_config = ConfigDict(frozen=True)


Resource = Union[Success, Error, Loading]
