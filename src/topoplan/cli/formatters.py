"""
CLI-specific formatting functions for human-readable output.

JSON and YAML render any command result; the table format recognises plan,
apply, state, validation and output results and falls back to JSON for
anything else.
"""

import json
from typing import Any, Dict, List

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

_STATUS_STYLES = {
    "succeeded": "green",
    "failed": "bold red",
    "skipped": "yellow",
    "not_attempted": "dim",
}

_ACTION_STYLES = {
    "create": "green",
    "update": "yellow",
    "replace": "magenta",
    "delete": "red",
    "noop": "dim",
}


def format_output(data: Any, format_type: str) -> str:
    """Format data according to the specified format type."""
    if format_type == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    elif format_type == "table":
        return format_table_output(data)
    return json.dumps(data, indent=2, default=str)


def format_table_output(data: Any) -> str:
    """Format data as a table."""
    if isinstance(data, dict) and "groups" in data and "operations" in data:
        return format_plan_table(data)
    elif isinstance(data, dict) and "succeeded" in data and "operations" in data:
        return format_apply_table(data)
    elif isinstance(data, dict) and "entries" in data:
        return format_state_table(data["entries"])
    elif isinstance(data, dict) and "order" in data:
        return format_order_table(data)
    elif isinstance(data, dict) and "outputs" in data:
        return format_mapping_table("Output", "Value", data["outputs"])
    # Fallback to JSON for unknown data structures
    return json.dumps(data, indent=2, default=str)


def format_plan_table(plan: Dict[str, Any]) -> str:
    operations = plan.get("operations", [])
    if not operations:
        return "No changes. Applied state matches the topology."

    group_of = {}
    for index, group in enumerate(plan.get("groups", [])):
        for key in group:
            group_of[key] = index

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Group", justify="right")
    table.add_column("Action")
    table.add_column("Step")
    table.add_column("Logical ID", style="cyan")
    table.add_column("Kind", style="blue")
    table.add_column("Changed")

    for op in operations:
        key = f"{op['logical_id']}:{op['step']}"
        style = _ACTION_STYLES.get(op["action"], "")
        table.add_row(
            str(group_of[key]) if key in group_of else "-",
            f"[{style}]{op['action']}[/{style}]" if style else op["action"],
            op["step"],
            op["logical_id"],
            op["kind"],
            ", ".join(op.get("changed_properties", [])),
        )

    summary = ", ".join(f"{count} to {action}" for action, count in plan["summary"].items()
                        if count and action != "noop")
    return _render(table) + f"Plan: {summary or 'no changes'}\n"


def format_apply_table(result: Dict[str, Any]) -> str:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Logical ID", style="cyan")
    table.add_column("Action")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Error")

    for op in result["operations"]:
        style = _STATUS_STYLES.get(op["status"], "")
        error = op.get("error", {}).get("message", "") if op.get("error") else ""
        table.add_row(
            op["logical_id"],
            op["action"],
            op["step"],
            f"[{style}]{op['status']}[/{style}]",
            escape(error),
        )

    footer = (
        f"Apply: {len(result['succeeded'])} succeeded, {len(result['failed'])} failed, "
        f"{len(result['skipped'])} skipped, {len(result['not_attempted'])} not attempted"
    )
    if result.get("cancelled"):
        footer += " (cancelled)"
    return _render(table) + footer + "\n"


def format_state_table(entries: List[Dict[str, Any]]) -> str:
    if not entries:
        return "No applied resources."

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Logical ID", style="cyan")
    table.add_column("Kind", style="blue")
    table.add_column("Physical ID")
    table.add_column("Retain", justify="center")
    table.add_column("Updated")

    for entry in entries:
        table.add_row(
            entry["logical_id"],
            entry["kind"],
            entry.get("outputs", {}).get("id", "N/A"),
            "yes" if entry.get("retain_on_delete") else "",
            str(entry.get("updated_at") or ""),
        )
    return _render(table)


def format_order_table(data: Dict[str, Any]) -> str:
    table = Table(show_header=True, header_style="bold magenta", title=data.get("name"))
    table.add_column("#", justify="right")
    table.add_column("Logical ID", style="cyan")
    table.add_column("Depends on")
    for index, item in enumerate(data["order"], start=1):
        table.add_row(str(index), item["logical_id"], ", ".join(item.get("depends_on", [])))
    return _render(table)


def format_mapping_table(key_header: str, value_header: str, mapping: Dict[str, Any]) -> str:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column(key_header, style="cyan")
    table.add_column(value_header)
    for key, value in mapping.items():
        table.add_row(key, "N/A" if value is None else str(value))
    return _render(table)


def _render(table: Table) -> str:
    # Capture Rich output as string
    console = Console(width=120, legacy_windows=False, force_terminal=False)
    with console.capture() as capture:
        console.print(table)
    return capture.get()
