"""Registry data model — setter and substitution definitions.

The registry document keeps every definition under
``openAPI.definitions``. Keys are a per-kind namespace prefix followed by
the entity name; the ``x-k8s-cli`` extension carries the kind-specific
payload::

    openAPI:
      definitions:
        io.k8s.cli.setters.replicas:
          description: hello world
          x-k8s-cli:
            setter:
              name: replicas
              value: "3"
        io.k8s.cli.substitutions.image:
          x-k8s-cli:
            substitution:
              name: image
              pattern: ${image-name}:${image-tag}

:func:`decode_definitions` is the one place that turns raw definitions
into tagged :data:`RegistryEntity` values; collision checks and writers
work from its output rather than sniffing key prefixes themselves.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter
from ruamel.yaml.comments import CommentedMap

from cfgset.domain.errors import MalformedInputError, NameCollisionError

OPENAPI_KEY = "openAPI"
DEFINITIONS_KEY = "definitions"
EXTENSION_KEY = "x-k8s-cli"
SETTER_PREFIX = "io.k8s.cli.setters."
SUBSTITUTION_PREFIX = "io.k8s.cli.substitutions."

_PREFIXES = {"setter": SETTER_PREFIX, "substitution": SUBSTITUTION_PREFIX}


class SetterEntity(BaseModel):
    """A registered setter."""

    model_config = {"frozen": True}

    kind: Literal["setter"] = "setter"
    key: str
    name: str
    value: str = ""
    list_values: list[str] | None = None
    set_by: str | None = None
    description: str | None = None
    required: bool = False


class SubstitutionEntity(BaseModel):
    """A registered substitution (a pattern composed of setter markers)."""

    model_config = {"frozen": True}

    kind: Literal["substitution"] = "substitution"
    key: str
    name: str
    pattern: str = ""
    markers: list[str] = Field(default_factory=list)


RegistryEntity = Annotated[SetterEntity | SubstitutionEntity, Field(discriminator="kind")]

_ENTITY_ADAPTER: TypeAdapter[SetterEntity | SubstitutionEntity] = TypeAdapter(RegistryEntity)


def setter_key(name: str) -> str:
    """Namespaced definitions key for setter *name*."""
    return SETTER_PREFIX + name


def substitution_key(name: str) -> str:
    """Namespaced definitions key for substitution *name*."""
    return SUBSTITUTION_PREFIX + name


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def decode_entity(key: str, body: Any) -> SetterEntity | SubstitutionEntity | None:
    """Decode one definition; None when it is neither a setter nor a substitution."""
    if not isinstance(body, dict):
        body = {}
    kind: str | None = None
    payload: dict[str, Any] = {}
    extension = body.get(EXTENSION_KEY)
    if isinstance(extension, dict):
        for candidate in ("setter", "substitution"):
            if isinstance(extension.get(candidate), dict):
                kind = candidate
                payload = extension[candidate]
                break
    if kind is None:
        kind = next((k for k, prefix in _PREFIXES.items() if key.startswith(prefix)), None)
        if kind is None:
            return None

    prefix = _PREFIXES[kind]
    fallback = key[len(prefix) :] if key.startswith(prefix) else key
    data: dict[str, Any] = {"kind": kind, "key": key, "name": _text(payload.get("name")) or fallback}
    if kind == "setter":
        list_values = payload.get("listValues")
        data.update(
            value=_text(payload.get("value")),
            list_values=[_text(v) for v in list_values] if isinstance(list_values, list) else None,
            set_by=_text(payload["setBy"]) if payload.get("setBy") is not None else None,
            description=_text(body.get("description")) if body.get("description") else None,
            required=bool(payload.get("required", False)),
        )
    else:
        values = payload.get("values")
        data.update(
            pattern=_text(payload.get("pattern")),
            markers=[
                _text(v.get("marker")) for v in values or [] if isinstance(v, dict)
            ],
        )
    return _ENTITY_ADAPTER.validate_python(data)


def decode_definitions(definitions: Any) -> list[SetterEntity | SubstitutionEntity]:
    """Decode every setter and substitution in a definitions mapping."""
    if not isinstance(definitions, dict):
        return []
    entities: list[SetterEntity | SubstitutionEntity] = []
    for key, body in definitions.items():
        entity = decode_entity(str(key), body)
        if entity is not None:
            entities.append(entity)
    return entities


def registry_definitions(tree: Any) -> Any:
    """Return the definitions mapping of a registry tree (None if absent)."""
    if not isinstance(tree, dict):
        return None
    openapi = tree.get(OPENAPI_KEY)
    if not isinstance(openapi, dict):
        return None
    return openapi.get(DEFINITIONS_KEY)


# ---------------------------------------------------------------------------
# Collision checking
# ---------------------------------------------------------------------------


def check_collision(
    entities: list[SetterEntity | SubstitutionEntity],
    name: str,
) -> SetterEntity | None:
    """Ensure *name* is free for a new setter.

    Setters and substitutions share one namespace. Returns the existing
    setter of the same name, if any, so the caller can report the
    overwrite.

    Raises:
        NameCollisionError: A substitution named *name* exists.
    """
    existing: SetterEntity | None = None
    for entity in entities:
        if entity.name != name:
            continue
        if isinstance(entity, SubstitutionEntity):
            raise NameCollisionError(
                f"substitution with name {name} already exists, "
                "substitution and setter can't have same name",
                key=entity.key,
            )
        existing = entity
    return existing


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def write_entry(tree: Any, key: str, entry: CommentedMap) -> None:
    """Insert or replace *entry* under ``openAPI.definitions[key]``.

    Missing ``openAPI``/``definitions`` mappings are created at the end of
    their parent. Replacing an existing key keeps its position; every
    other key is left untouched.
    """
    if not isinstance(tree, dict):
        raise MalformedInputError("registry document must be a mapping")
    openapi = tree.get(OPENAPI_KEY)
    if not isinstance(openapi, dict):
        openapi = CommentedMap()
        tree[OPENAPI_KEY] = openapi
    definitions = openapi.get(DEFINITIONS_KEY)
    if not isinstance(definitions, dict):
        definitions = CommentedMap()
        openapi[DEFINITIONS_KEY] = definitions
    definitions[key] = entry
