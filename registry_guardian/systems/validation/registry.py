"""
Registry Guardian — Schema Registry

Maps every Collection to exactly one schema model and turns pydantic
ValidationErrors into FieldError data. Nothing here raises on bad input.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ValidationError

from registry_guardian.primitives.common import Collection, parse_collection
from registry_guardian.primitives.errors import ConfigurationError
from registry_guardian.systems.validation.schemas import (
    AgentSchema,
    AgentStatusSchema,
    CapabilitySetSchema,
    EconomicsSchema,
    LoreSchema,
    PersonaSchema,
    PracticeContractSchema,
    ProfileSchema,
)
from registry_guardian.systems.validation.types import FieldError

ROOT_PATH = "(root)"

DEFAULT_SCHEMAS: Mapping[Collection, type[BaseModel]] = MappingProxyType({
    Collection.AGENT: AgentSchema,
    Collection.AGENT_STATUS: AgentStatusSchema,
    Collection.LORE: LoreSchema,
    Collection.PROFILE: ProfileSchema,
    Collection.PERSONA: PersonaSchema,
    Collection.ECONOMICS: EconomicsSchema,
    Collection.PRACTICE: PracticeContractSchema,
    Collection.CAPABILITIES: CapabilitySetSchema,
})


def _path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc) or ROOT_PATH


def to_field_errors(exc: ValidationError) -> list[FieldError]:
    return [
        FieldError(path=_path(err["loc"]), message=err["msg"], type=err["type"])
        for err in exc.errors(include_url=False)
    ]


class SchemaRegistry:
    """
    Collection → schema model.

    Construction fails if any collection is left without a schema, so a
    collection can never silently skip validation.
    """

    def __init__(self, schemas: Mapping[Collection, type[BaseModel]] = DEFAULT_SCHEMAS) -> None:
        missing = [c.value for c in Collection if c not in schemas]
        if missing:
            raise ConfigurationError(f"No schema registered for: {', '.join(missing)}")
        self._schemas: Mapping[Collection, type[BaseModel]] = MappingProxyType(dict(schemas))

    def schema_for(self, collection: Collection | str) -> type[BaseModel]:
        return self._schemas[parse_collection(collection)]

    def check(self, collection: Collection | str, payload: Any) -> list[FieldError]:
        """Run the collection's schema. Returns the violations, empty when valid."""
        schema = self.schema_for(collection)
        if not isinstance(payload, Mapping):
            return [
                FieldError(
                    path=ROOT_PATH,
                    message=f"Expected an object, got {type(payload).__name__}",
                    type="model_type",
                )
            ]
        try:
            schema.model_validate(dict(payload))
        except ValidationError as exc:
            return to_field_errors(exc)
        return []
