"""Value types shared across the runtime."""

from enum import Enum


class Undefined(Enum):
    """Type of the sentinel recorded when an error is suppressed."""

    UNDEFINED = "undefined"

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = Undefined.UNDEFINED

type Value = int | float | str | bool
