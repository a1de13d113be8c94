"""
Tool argument validation.

Runs tool arguments through their pydantic input model and reports the first
problem as a PubMedError the MCP client can act on.
"""

from typing import Iterable, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .error_handler import InvalidIDError, InvalidQueryError

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_input(
    model: Type[ModelT],
    id_fields: Iterable[str] = (),
    **kwargs
) -> ModelT:
    """
    Build ``model`` from tool arguments.

    Args:
        model: Pydantic input model for the tool
        id_fields: Fields holding a PubMed ID; errors there raise InvalidIDError
        **kwargs: Tool arguments

    Raises:
        InvalidIDError: If a PubMed ID field is not numeric
        InvalidQueryError: If any other argument is invalid
    """
    try:
        return model(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        if field in set(id_fields):
            raise InvalidIDError(
                message=f"{field} must be a numeric PubMed ID",
                identifier=str(kwargs.get(field)),
                expected_format="digits only, e.g. 31452104"
            )
        raise InvalidQueryError(
            message=f"Invalid value for {field}: {first['msg']}",
            parameter=field
        )
