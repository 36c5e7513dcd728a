"""Shared base for stored entities."""

from typing import Any, Dict, Mapping, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError


class StoredModel(BaseModel):
    """Entity persisted as a camelCase JSON object."""

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    def to_record(self) -> Dict[str, Any]:
        """Get the stored representation (aliases, no unset optionals)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


ModelT = TypeVar("ModelT", bound=StoredModel)


def coerce(model: Type[ModelT], item: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """
    Validate a model instance or a plain mapping into ``model``.

    Raises:
        ValidationError: If required fields are missing or values are invalid
    """
    try:
        if isinstance(item, model):
            return model.model_validate(item.model_dump(by_alias=True))
        return model.model_validate(item)
    except PydanticValidationError as e:
        fields = ', '.join('.'.join(str(p) for p in err['loc']) or '<root>' for err in e.errors())
        raise ValidationError(f"Invalid {model.__name__} ({fields})") from e
