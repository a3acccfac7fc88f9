"""Rich renderer for HR snapshots, alerts and validation reports."""

from typing import List, Sequence

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from praxiscalc.sdk.hr import (
    ComplianceValidationResult,
    HrAlert,
    HrKpiSnapshot,
    SnapshotAlerts,
)


STATUS_STYLES = {"ok": "green", "warning": "yellow", "critical": "red"}
SEVERITY_STYLES = {"info": "green", "warn": "yellow", "critical": "red"}


def render_warnings(console: Console, warnings: Sequence[str]) -> None:
    for warning in warnings:
        console.print(Panel(
            f"[yellow]{warning}[/yellow]",
            title="Note",
            border_style="yellow"
        ))


def render_snapshots(console: Console, snapshots: List[HrKpiSnapshot]) -> None:
    """One row per snapshot with all KPI metrics."""
    if not snapshots:
        console.print("[dim]No snapshots.[/dim]")
        return

    first = snapshots[0]
    table = Table(
        title=f"HR KPIs {first.period_start} - {first.period_end}",
        box=box.ROUNDED,
    )
    table.add_column("Group", style="bold")
    table.add_column("Level")
    table.add_column("Size", justify="right")
    table.add_column("FTE", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Quote", justify="right")
    table.add_column("Absence %", justify="right")
    table.add_column("Overtime %", justify="right")
    table.add_column("Labor cost %", justify="right")
    table.add_column("Status")

    for snapshot in snapshots:
        m = snapshot.metrics
        style = STATUS_STYLES[m.overall_status]
        table.add_row(
            snapshot.group_key,
            snapshot.aggregation_level.value,
            str(snapshot.group_size),
            f"{m.current_fte:.2f}",
            f"{m.target_fte:.2f}",
            f"{m.fte_quote * 100:.1f}%",
            f"{m.absence_rate_percent:.2f}",
            f"{m.overtime_rate_percent:.2f}",
            "-" if m.labor_cost_ratio_percent is None else f"{m.labor_cost_ratio_percent:.2f}",
            f"[{style}]{m.overall_status}[/{style}]",
        )

    console.print(table)
    audit = first.audit
    console.print(
        f"[dim]k={audit.k_used}  compliance v{audit.compliance_version}  "
        f"created {audit.created_at.isoformat()}[/dim]"
    )


def render_alerts(console: Console, alerts_by_snapshot: List[SnapshotAlerts]) -> None:
    for entry in alerts_by_snapshot:
        console.print(f"\n[bold]{entry.group_key}[/bold] ({entry.aggregation_level.value})")
        if not entry.alerts:
            console.print("  [dim]No alerts.[/dim]")
            continue
        for alert in entry.alerts:
            _render_alert(console, alert)


def _render_alert(console: Console, alert: HrAlert) -> None:
    style = SEVERITY_STYLES[alert.severity]
    body = [alert.explanation, ""]
    body.extend(f"• {action}" for action in alert.recommended_actions)
    console.print(Panel(
        "\n".join(body),
        title=f"[{style}]{alert.severity.upper()}[/{style}] {alert.title}",
        subtitle=f"{alert.metric}: {alert.current_value:g} (threshold {alert.threshold_value:g})",
        border_style=style,
    ))


def render_validation(console: Console, result: ComplianceValidationResult) -> None:
    if result.valid:
        console.print("[green]✓ Input is compliant[/green]")
    else:
        console.print("[red]✗ Input rejected[/red]")
    for error in result.errors:
        console.print(f"  [red]error[/red]   {error}")
    for warning in result.warnings:
        console.print(f"  [yellow]warning[/yellow] {warning}")
