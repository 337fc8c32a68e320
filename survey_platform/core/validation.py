"""
Input Validation

Service functions validate their arguments before touching the database:

    validate_inputs((person_id, Id), (page, OptionalPage))

Each pair is (value, schema) where schema is anything pydantic's TypeAdapter
accepts. The first failure raises InvalidInputError.
"""
from functools import lru_cache
from typing import Annotated, Any, Optional, Tuple

from annotated_types import Ge
from pydantic import StringConstraints, TypeAdapter, ValidationError

from survey_platform.core.exceptions import InvalidInputError
from survey_platform.utils.logging import get_logger

logger = get_logger(__name__)

Id = Annotated[str, StringConstraints(min_length=1, max_length=36)]
OptionalPage = Optional[Annotated[int, Ge(1)]]
NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
# Fits the String(255) name and user id columns
Name = Annotated[str, StringConstraints(min_length=1, max_length=255)]


@lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def validate_inputs(*pairs: Tuple[Any, Any]) -> None:
    for value, schema in pairs:
        try:
            _adapter(schema).validate_python(value)
        except ValidationError as exc:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in error['loc']) or 'value'}: {error['msg']}"
                for error in exc.errors()
            )
            logger.debug(f"Input validation failed: {messages}")
            raise InvalidInputError(f"Validation failed: {messages}")
