"""Commands for inspecting relation types and mapped relations."""

from typing import Optional

import typer
from relmap.db import get_connection, init_db
from relmap.db.models import OBJECT_KINDS
from relmap.db.relations import (
    create_relation_type,
    get_relation_type_by_alias,
    get_relations_by_type,
    list_relation_types,
)
from relmap.errors import PropertyTypeNotFoundError
from relmap.mapping import RelationMappingComment, get_related_ids

type_app = typer.Typer(help="Manage relation types.", no_args_is_help=True)
relations_app = typer.Typer(help="Inspect mapped relations.", no_args_is_help=True)


@type_app.command("add")
def type_add(
    alias: str = typer.Argument(..., help="Relation type alias."),
    parent: str = typer.Option(..., help=f"Parent object type: {' | '.join(OBJECT_KINDS)}"),
    child: str = typer.Option(..., help=f"Child object type: {' | '.join(OBJECT_KINDS)}"),
    bidirectional: bool = typer.Option(False, "--bidirectional", help="Either side may be parent."),
    name: Optional[str] = typer.Option(None, help="Display name (defaults to the alias)."),
) -> None:
    """Define a new relation type."""
    conn = get_connection()
    init_db(conn)
    try:
        relation_type = create_relation_type(
            conn,
            alias,
            parent_object_type=parent,
            child_object_type=child,
            is_bidirectional=bidirectional,
            name=name,
        )
    except ValueError as exc:
        typer.echo(f"[type add] {exc}")
        raise typer.Exit(1)
    finally:
        conn.close()
    typer.echo(f"[type add] Created relation type {relation_type.alias!r} (id={relation_type.id})")


@type_app.command("list")
def type_list() -> None:
    """List all relation types."""
    conn = get_connection()
    init_db(conn)
    try:
        relation_types = list_relation_types(conn)
    finally:
        conn.close()
    if not relation_types:
        typer.echo("[type list] No relation types found.")
        return
    for rt in relation_types:
        direction = "<->" if rt.is_bidirectional else "->"
        typer.echo(f"  {rt.id}  {rt.alias}  {rt.parent_object_type} {direction} {rt.child_object_type}")


@relations_app.command("list")
def relations_list(
    alias: str = typer.Argument(..., help="Relation type alias."),
) -> None:
    """List every relation of a type with its decoded mapping comment."""
    conn = get_connection()
    init_db(conn)
    try:
        relation_type = get_relation_type_by_alias(conn, alias)
        if relation_type is None:
            typer.echo(f"[relations list] Unknown relation type {alias!r}.")
            raise typer.Exit(1)
        relations = get_relations_by_type(conn, relation_type.id)
    finally:
        conn.close()

    if not relations:
        typer.echo(f"[relations list] No relations of type {alias!r}.")
        return
    for r in relations:
        comment = RelationMappingComment.parse(r.comment)
        typer.echo(
            f"  {r.id}  {r.parent_id} -> {r.child_id}  "
            f"property={comment.property_alias!r}  "
            f"order={comment.parent_sort_order}/{comment.child_sort_order}"
        )


@relations_app.command("related")
def relations_related(
    context_id: int = typer.Argument(..., help="Id of the content / media / member."),
    property_alias: str = typer.Argument(..., help="Alias of the picker property."),
    alias: str = typer.Option(..., "--type", help="Relation type alias."),
    relations_only: bool = typer.Option(False, "--relations-only", help="Picker uses the relations-only format."),
) -> None:
    """Print the ids related to an entity through a picker property."""
    conn = get_connection()
    init_db(conn)
    try:
        ids = get_related_ids(conn, context_id, property_alias, alias, relations_only)
    except PropertyTypeNotFoundError as exc:
        typer.echo(f"[relations related] {exc}")
        raise typer.Exit(1)
    finally:
        conn.close()

    if ids is None:
        typer.echo(f"[relations related] Unknown relation type {alias!r}.")
        raise typer.Exit(1)
    if not ids:
        typer.echo("[relations related] No related ids.")
        return
    typer.echo(",".join(str(i) for i in ids))


@relations_app.command("decode")
def relations_decode(
    comment: str = typer.Argument(..., help="Raw relation comment."),
) -> None:
    """Decode a relation comment."""
    decoded = RelationMappingComment.parse(comment)
    typer.echo(f"PropertyAlias        : {decoded.property_alias!r}")
    typer.echo(f"PropertyTypeId       : {decoded.property_type_id}")
    typer.echo(f"DataTypeDefinitionId : {decoded.data_type_definition_id}")
    typer.echo(f"ParentSortOrder      : {decoded.parent_sort_order}")
    typer.echo(f"ChildSortOrder       : {decoded.child_sort_order}")
