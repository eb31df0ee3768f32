"""Base model for backend DTOs."""

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base DTO with camelCase wire names.

    Fields are declared in snake_case and (de)serialized under their camelCase
    alias. Unknown keys sent by the backend are ignored.
    """

    model_config: ConfigDict = ConfigDict(  # pyright: ignore[reportIncompatibleVariableOverride]
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=False,
    )

    def to_payload(self) -> dict[str, object]:
        """Serialize to a JSON-ready dict under wire names, omitting None."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def normalize_keys(cls, changes: Mapping[str, object]) -> dict[str, object]:
        """Map field names or wire names in ``changes`` to field names.

        Raises:
            ValueError: If a key names no field of the model
        """
        by_alias = {info.alias or name: name for name, info in cls.model_fields.items()}
        normalized: dict[str, object] = {}
        for key, value in changes.items():
            name = key if key in cls.model_fields else by_alias.get(key)
            if name is None:
                msg = f"Unknown {cls.__name__} field: {key!r}"
                raise ValueError(msg)
            normalized[name] = value
        return normalized

    @classmethod
    def partial_payload(cls, changes: Mapping[str, object]) -> dict[str, object]:
        """Wire-named payload for a partial update."""
        fields = cls.model_fields
        return {fields[name].alias or name: value for name, value in cls.normalize_keys(changes).items()}


def camel_params(values: Mapping[str, object]) -> dict[str, str | int | float | bool | None]:
    """Convert snake_case keyword values to camelCase query parameters.

    Examples:
        >>> camel_params({"user_id": 3, "course_id": None})
        {'userId': 3, 'courseId': None}
    """
    params: dict[str, str | int | float | bool | None] = {}
    for key, value in values.items():
        if value is None or isinstance(value, (str, int, float, bool)):
            params[to_camel(key)] = value
        else:
            params[to_camel(key)] = str(value)
    return params
