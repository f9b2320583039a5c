"""Command: create a setter over resource fields."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from cfgset.commands._base import CfgCommand

if TYPE_CHECKING:
    from cfgset.commands._context import AppContext

SETTER_TYPES = ("string", "integer", "number", "boolean", "array")
ELEMENT_TYPES = ("string", "integer", "number", "boolean")


@click.command(
    "create-setter",
    cls=CfgCommand,
    examples="""\
  cfgset create-setter deploy.yaml replicas 3
  cfgset create-setter deploy.yaml image --field spec.template.spec.containers[0].image
  cfgset create-setter pkg/ args --type array --field spec.args
  cfgset create-setter pkg/ replicas --value 3 --description "replica count" --set-by me
  cfgset --json create-setter deploy.yaml cpu 500m --schema-path cpu-schema.yaml""",
)
@click.argument("resources", type=click.Path(exists=True, path_type=Path))
@click.argument("name")
@click.argument("value", required=False, default=None)
@click.option(
    "--value", "value_option", default=None, help="Current field value (alternative to VALUE)."
)
@click.option("--description", default=None, help="Description stored with the setter.")
@click.option("--set-by", default=None, help="Who set the value (provenance).")
@click.option(
    "--type",
    "setter_type",
    type=click.Choice(SETTER_TYPES),
    default=None,
    help="OpenAPI type of the field; 'array' makes a list setter.",
)
@click.option(
    "--element-type",
    type=click.Choice(ELEMENT_TYPES),
    default=None,
    help="OpenAPI type of array elements (with --type array).",
)
@click.option("--field", "field_path", default=None, help="Field path, e.g. spec.replicas.")
@click.option(
    "--schema-path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with OpenAPI constraints for the setter.",
)
@click.option(
    "--registry",
    "registry_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Registry file (default: Krmfile beside the resources).",
)
@click.option("--required", is_flag=True, help="Mark the setter as required.")
@click.pass_obj
def create_setter(
    app: AppContext,
    resources: Path,
    name: str,
    value: str | None,
    value_option: str | None,
    description: str | None,
    set_by: str | None,
    setter_type: str | None,
    element_type: str | None,
    field_path: str | None,
    schema_path: Path | None,
    registry_path: Path | None,
    required: bool,
) -> None:
    """Mark fields in RESOURCES as setter NAME and register it."""
    if value is not None and value_option is not None:
        raise click.UsageError("VALUE and --value are mutually exclusive.")
    value = value if value is not None else value_option
    if element_type is not None and setter_type != "array":
        raise click.UsageError("--element-type requires --type array.")
    if setter_type != "array" and value is None and field_path is None:
        raise click.UsageError("A value or --field is required.")

    from cfgset.services.setters import SetterService

    app.emit(
        SetterService(app.workspace).create_setter(
            resources,
            name,
            value=value,
            field=field_path,
            description=description,
            set_by=set_by,
            setter_type=setter_type,
            element_type=element_type,
            schema_path=schema_path,
            registry_path=registry_path,
            required=required,
        )
    )
