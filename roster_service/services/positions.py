# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Position hierarchy — pure computation, no side effects.

Positions form a single-level tree: a position without ``parent_id`` is a
group head, positions whose ``parent_id`` names it are its children.
Grandchildren are not supported.
"""

from typing import Optional

from roster_service.models.domain import Position


def group_of(all_positions: list[Position], position_name: str) -> list[str]:
    """
    Return ``[position_name, child1, child2, ...]`` in position-list order.
    Only direct children are collected.
    """
    children = [p.name for p in all_positions if p.parent_id == position_name]
    return [position_name, *children]


def find_position(all_positions: list[Position], name: str) -> Optional[Position]:
    for position in all_positions:
        if position.name == name:
            return position
    return None


def group_heads(all_positions: list[Position]) -> list[Position]:
    return [p for p in all_positions if not p.parent_id]


def validate_hierarchy(all_positions: list[Position]) -> None:
    """Raise ValueError on duplicate names, dangling parents or grandchildren."""
    by_name: dict[str, Position] = {}
    for position in all_positions:
        if position.name in by_name:
            raise ValueError(f"Duplicate position name '{position.name}'")
        by_name[position.name] = position

    for position in all_positions:
        if not position.parent_id:
            continue
        if position.parent_id == position.name:
            raise ValueError(f"Position '{position.name}' cannot be its own parent")
        parent = by_name.get(position.parent_id)
        if parent is None:
            raise ValueError(
                f"Position '{position.name}' has unknown parent '{position.parent_id}'"
            )
        if parent.parent_id:
            raise ValueError(
                f"Position '{position.name}' would be nested under child "
                f"'{parent.name}'; only one level of grouping is supported"
            )
