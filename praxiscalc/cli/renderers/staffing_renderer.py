"""Rich renderer for staffing demand results."""

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from praxiscalc.sdk.staffing import StaffingResult


ROLE_LABELS = [
    ("chairside", "Chairside"),
    ("steri", "Steri"),
    ("zfa_total", "ZFA total"),
    ("prophy", "Prophylaxe"),
    ("frontdesk", "Empfang"),
    ("pm", "Praxismanagement"),
]

FLAG_STYLES = {"red": "red", "yellow": "yellow", "green": "green"}


def render_staffing(console: Console, result: StaffingResult) -> None:
    """Render a staffing result as Rich panels and tables.

    Args:
        console: Rich Console instance
        result: Output of compute_staffing()
    """
    for warning in result.derived.warnings:
        console.print(Panel(
            f"[yellow]{warning}[/yellow]",
            title="Note",
            border_style="yellow"
        ))

    if not result.meta.is_practice_active:
        console.print("[dim]Practice inactive: no dentists, chairs or patients.[/dim]")

    _render_derived(console, result)
    _render_fte_table(console, result)
    _render_flags(console, result)


def _render_derived(console: Console, result: StaffingResult) -> None:
    d = result.derived
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value")

    table.add_row("Chairs (C)", f"{d.C:g}")
    table.add_row("Patients/day (N)", f"{d.N:g}")
    table.add_row("Patients/chair", f"{d.PPC:.2f}")
    table.add_row("Turnover index", f"{d.TI:.2f}")
    table.add_row("Support factor", f"{d.SF:.3f}")
    table.add_row("Complexity bonus", f"{d.CB:+.2f}")

    console.print(Panel(table, title="Derived", border_style="dim"))


def _render_fte_table(console: Console, result: StaffingResult) -> None:
    """Base / final / rounded FTE per role, with headcount and coverage."""
    coverage = result.coverage
    table = Table(
        title=f"Staffing Demand (engine {result.meta.engine_version})",
        box=box.ROUNDED,
    )
    table.add_column("Role", style="bold", min_width=18)
    table.add_column("Base", justify="right")
    table.add_column("Buffered", justify="right")
    table.add_column("FTE", justify="right", style="bold")
    table.add_column("Heads", justify="right")
    if coverage is not None:
        table.add_column("Coverage", justify="right")

    for role, label in ROLE_LABELS:
        row = [
            f"  {label}" if role in ("chairside", "steri") else label,
            f"{getattr(result.base_fte, role):.2f}",
            f"{getattr(result.final_fte, role):.2f}",
            f"{getattr(result.rounded_fte, role):.2f}",
            str(getattr(result.headcount_hint, role)),
        ]
        if coverage is not None:
            row.append(_fmt_coverage(getattr(coverage, role)))
        table.add_row(*row)

    total_row = [
        "[bold]Total[/bold]",
        "",
        "",
        f"[bold]{result.meta.total_from_rounded_parts:.2f}[/bold]",
        str(result.headcount_hint.total),
    ]
    if coverage is not None:
        total_row.append(_fmt_coverage(coverage.total))
    table.add_row(*total_row)

    console.print(table)


def _render_flags(console: Console, result: StaffingResult) -> None:
    r = result.ratios
    console.print(
        f"Chairside/chair: {r.chairside_per_chair:.2f}   "
        f"ZFA/chair: {r.zfa_total_per_chair:.2f}   "
        f"Empfang/dentist FTE: {r.frontdesk_per_dentist_fte:.2f}"
    )
    for flag in result.flags:
        style = FLAG_STYLES[flag.severity]
        console.print(f"[{style}]● {flag.id}[/{style}]  {flag.message}")


def _fmt_coverage(value: Optional[float]) -> str:
    if value is None:
        return "-"
    style = "green" if value >= 1 else "yellow" if value >= 0.8 else "red"
    return f"[{style}]{value * 100:.0f}%[/{style}]"
