# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""Result values for grant decisions.

Every grant processor returns ``Ok(AccessTokenResponse)`` or ``Err(OAuth2Error)``.
Protocol rejections are values; only infrastructure faults are raised.
"""

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from attrs import frozen

T = TypeVar("T")
E = TypeVar("E")


@frozen
class Ok(Generic[T]):
    """A decision that succeeded."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    @property
    def ok_value(self) -> T:
        """The success value."""
        return self.value

    @property
    def err_value(self) -> None:
        """Always None; an Ok carries no error."""
        return None


@frozen
class Err(Generic[E]):
    """A decision that was rejected."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    @property
    def ok_value(self) -> None:
        """Always None; an Err carries no value."""
        return None

    @property
    def err_value(self) -> E:
        """The rejection."""
        return self.error


if TYPE_CHECKING:
    Result = Ok[T] | Err[E]
else:

    class Result(Generic[T, E]):
        """Runtime stand-in so ``Result[T, E]`` works in beartype-checked annotations."""

        def __class_getitem__(cls, params: Any) -> Any:
            return Ok[Any] | Err[Any]
