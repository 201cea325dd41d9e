"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from verifyhub.domain.lifecycle import STATE_COLORS, RequestState
from verifyhub.output.console import create_console, get_output, status_style

if TYPE_CHECKING:
    from rich.console import Console

    from verifyhub.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: ids for listings, totals for quotes."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(key for key in (_extract_key(i) for i in items) if key)
    if "total" in result.data and "currency" in result.data:
        return f"{result.data['currency']} {result.data['total']:.2f}"
    key = _extract_key(result.data)
    return key or f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_key(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("id", "code"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_text(state: str) -> Text:
    try:
        color = STATE_COLORS[RequestState(state)]
    except ValueError:
        color = None
    return Text(state, style=status_style(color))


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="vh.ok"), Text(f"  {result.op}", style="vh.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="vh.key")
    if key in ("id", "code") or key.endswith("_id"):
        v = Text(str(value), style="vh.id")
    elif key in ("status", "previous_status"):
        v = _status_text(str(value))
    elif key == "title":
        v = Text(str(value), style="vh.title")
    else:
        v = Text(str(value))
    console.print(Text.assemble(k, v))


def _money(value: Any, currency: str) -> str:
    return f"{currency} {float(value):.2f}".strip()


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(Text("ERROR", style="vh.error"), Text(f"  {result.op}{code}", style="vh.op"), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {escape(str(v))}")


# ── Generic / mutation renderers ──────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)) and not verbose:
            continue
        _field(console, key, value)


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render request create/transition results."""
    _status_line(console, result)
    keys = ("id", "title", "status", "previous_status", "price", "assigned_agent_id")
    for key in keys:
        if result.data.get(key) is not None:
            _field(console, key, result.data[key])
    if verbose:
        for key in ("estimated_completion_date", "payment_status"):
            if result.data.get(key) is not None:
                _field(console, key, result.data[key])
    docs = result.data.get("required_documents")
    if docs:
        console.print(Text("  required documents:", style="vh.key"))
        for doc in docs:
            console.print(f"    - {escape(str(doc))}")


# ── Request renderers ─────────────────────────────────────────────────


def _render_request(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_request as a panel with the status history."""
    d = result.data
    lines: list[str] = []
    for key in (
        "client_id",
        "category",
        "urgency",
        "price",
        "assigned_agent_id",
        "payment_status",
        "created_at",
        "estimated_completion_date",
    ):
        val = d.get(key)
        if val is not None:
            lines.append(f"{key}: {escape(str(val))}")
    nxt = d.get("valid_next_states") or []
    lines.append(f"next: {', '.join(nxt) if nxt else '(final)'}")
    if d.get("is_overdue"):
        lines.append("[vh.warning]overdue[/vh.warning]")
    if d.get("needs_payment_reconciliation"):
        lines.append("[vh.error]payment needs reconciliation[/vh.error]")

    title = escape(f"{d.get('id', '?')}: {d.get('title', 'Untitled')} [{d.get('status_display', '')}]")
    color = None
    try:
        color = STATE_COLORS[RequestState(d.get("status", ""))]
    except ValueError:
        pass
    console.print(Panel("\n".join(lines), title=title, border_style=color or "dim", expand=False))

    history = d.get("history", [])
    if history:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Status")
        table.add_column("Changed at", style="dim")
        table.add_column("By")
        table.add_column("Reason")
        for entry in history:
            table.add_row(
                _status_text(str(entry.get("status", ""))),
                str(entry.get("changed_at", "")),
                str(entry.get("changed_by") or ""),
                str(entry.get("reason") or ""),
            )
        console.print(table)


def _render_request_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="vh.id", no_wrap=True)
    table.add_column("Title", style="vh.title")
    table.add_column("Category")
    table.add_column("Urgency")
    table.add_column("Status")
    table.add_column("Price", justify="right")
    if verbose:
        table.add_column("Agent")
        table.add_column("Created", style="dim")
    for item in items:
        row: list[Any] = [
            str(item.get("id", "")),
            str(item.get("title", "")),
            str(item.get("category", "")),
            str(item.get("urgency", "")),
            _status_text(str(item.get("status", ""))),
            str(item.get("price", "")),
        ]
        if verbose:
            row.append(str(item.get("assigned_agent_id") or ""))
            row.append(str(item.get("created_at", "")))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} requests")


# ── Pricing renderers ─────────────────────────────────────────────────

_BREAKDOWN_LINES = (
    ("Base fee", "base_amount"),
    ("Distance", "distance_amount"),
    ("Time slot", "time_adjustment"),
    ("Category", "type_adjustment"),
    ("Difficulty", "difficulty_adjustment"),
    ("Mode", "mode_adjustment"),
    ("Urgency", "urgency_adjustment"),
    ("Surge", "surge_amount"),
)


def _render_quote(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a quote as an itemized breakdown table."""
    d = result.data
    b = d.get("breakdown", {})
    currency = str(d.get("currency", b.get("currency", "")))
    factors = b.get("factors", {})

    title = f"{d.get('category', '')} / {d.get('urgency', '')} / {d.get('mode', '')}"
    console.print(Text(title, style="vh.title"))
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Line")
    table.add_column("Amount", justify="right")
    for label, key in _BREAKDOWN_LINES:
        amount = b.get(key, 0)
        if key == "surge_amount" and not amount:
            continue
        style = "vh.surge" if key == "surge_amount" else ""
        table.add_row(label, Text(_money(amount, currency), style=style))
    table.add_section()
    table.add_row("Subtotal", _money(b.get("subtotal", 0), currency))
    if b.get("discount_amount"):
        table.add_row(
            "Discount",
            Text(f"-{_money(b['discount_amount'], currency)}", style="vh.discount"),
        )
    table.add_row(Text("Total", style="bold"), Text(_money(d.get("total", 0), currency), style="vh.money"))
    console.print(table)

    console.print(
        f"  distance: {d.get('distance_km', 0):.2f} km"
        f"  travel: ~{d.get('travel_minutes', 0)} min"
        f"  slot: {factors.get('time_slot', '?')}"
    )
    if d.get("surge_active"):
        console.print(f"  [vh.surge]surge x{factors.get('surge_multiplier')}[/vh.surge]")

    suggestions = d.get("suggestions") or []
    if suggestions:
        console.print()
        _suggestion_table(console, suggestions, currency)


def _suggestion_table(console: Console, items: list[dict[str, Any]], currency: str) -> None:
    table = Table(title="Cheaper slots", show_header=True, pad_edge=False, expand=False)
    table.add_column("Slot")
    table.add_column("Suggested time", style="dim")
    table.add_column("Price", justify="right")
    table.add_column("Savings", justify="right", style="vh.discount")
    for s in items:
        table.add_row(
            str(s.get("time_slot", "")),
            str(s.get("suggested_time", "")),
            _money(s.get("estimated_price", 0), currency),
            f"{_money(s.get('savings', 0), currency)} ({float(s.get('savings_percentage', 0)):.1f}%)",
        )
    console.print(table)


def _render_suggestions(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("[vh.ok]OK[/vh.ok]  Already in the cheapest slot.")
        return
    _suggestion_table(console, items, "")


# ── Location pricing renderers ────────────────────────────────────────


def _render_location_price(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    d = result.data
    where = d.get("city", "")
    if d.get("area"):
        where = f"{where} / {d['area']}"
    console.print(
        Text(where, style="vh.title"),
        Text(f"  {float(d.get('total_cost', 0)):.2f}", style="vh.money"),
        Text(f"  ({d.get('pricing_source', '')})", style="dim"),
    )
    if verbose:
        _field(console, "city_cost", d.get("city_cost"))
        _field(console, "area_cost", d.get("area_cost"))
        if d.get("applied_pricing_id"):
            _field(console, "applied_pricing_id", d["applied_pricing_id"])


def _render_location_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="vh.id", no_wrap=True)
    table.add_column("City")
    table.add_column("Area")
    table.add_column("City cost", justify="right")
    table.add_column("Area cost", justify="right")
    table.add_column("Status")
    if verbose:
        table.add_column("Effective", style="dim")
    for item in items:
        row = [
            str(item.get("id", "")),
            str(item.get("city", "")),
            str(item.get("area") or "(city-wide)"),
            f"{float(item.get('city_cost', 0)):.2f}",
            f"{float(item.get('area_cost', 0)):.2f}",
            str(item.get("status", "")),
        ]
        if verbose:
            row.append(f"{item.get('effective_from') or '-'} .. {item.get('effective_to') or '-'}")
        table.add_row(*row)
    console.print(table)
    meta = result.meta or {}
    if "total" in meta:
        console.print(f"\npage {meta.get('page')}: {len(items)} of {meta['total']} records")
    else:
        console.print(f"\n{result.data.get('count', len(items))} records")


def _render_discount_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Code", style="vh.id")
    table.add_column("Type")
    table.add_column("Value", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Active")
    table.add_column("Description")
    for item in items:
        limit = item.get("usage_limit")
        used = f"{item.get('usage_count', 0)}/{limit}" if limit is not None else str(item.get("usage_count", 0))
        table.add_row(
            str(item.get("code", "")),
            str(item.get("discount_type", "")),
            f"{float(item.get('value', 0)):g}",
            used,
            "yes" if item.get("is_active") else "no",
            str(item.get("description", "")),
        )
    console.print(table)


def _render_validate_discount(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    d = result.data
    if d.get("valid"):
        console.print(
            f"[vh.ok]VALID[/vh.ok]  {d.get('code')}  "
            f"[vh.discount]-{float(d.get('amount_off', 0)):.2f}[/vh.discount]"
        )
    else:
        console.print(f"[vh.warning]NOT APPLICABLE[/vh.warning]  {escape(str(d.get('code')))}")


# ── Check renderer ────────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render check results with issues grouped by category."""
    issues = result.data.get("issues", [])
    count = result.data.get("count", len(issues))

    if count == 0:
        console.print("[vh.ok]OK[/vh.ok]  No issues found.")
        return

    severity_styles = {"error": "vh.error", "warning": "vh.warning"}
    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        by_category.setdefault(str(issue.get("category", "unknown")), []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            prefix = f"[{style}]{sev}[/{style}]" if style else sev
            rid = escape(f" [{issue['request_id']}]") if issue.get("request_id") else ""
            console.print(f"  {prefix}{rid}: {escape(str(issue.get('message', '')))}")
            if verbose and issue.get("fix_action"):
                console.print(f"    fix: {escape(issue['fix_action'])}")

    errors = sum(1 for i in issues if i.get("severity") == "error")
    console.print(f"\n{errors} errors, {count - errors} warnings")


_OP_RENDERERS: dict[str, Any] = {
    # Requests
    "create_request": _render_mutation,
    "submit": _render_mutation,
    "assign_agent": _render_mutation,
    "start_verification": _render_mutation,
    "complete": _render_mutation,
    "cancel": _render_mutation,
    "reject": _render_mutation,
    "request_revision": _render_mutation,
    "transition": _render_mutation,
    "schedule": _render_mutation,
    "add_attachment": _render_mutation,
    "remove_attachment": _render_mutation,
    "update_notes": _render_mutation,
    "set_pending_payment": _render_mutation,
    "confirm_payment": _render_mutation,
    "update_payment": _render_mutation,
    "get_request": _render_request,
    "list_requests": _render_request_table,
    "overdue_requests": _render_request_table,
    # Pricing
    "quote": _render_quote,
    "suggestions": _render_suggestions,
    "validate_discount": _render_validate_discount,
    "list_discounts": _render_discount_table,
    # Location pricing
    "location_price": _render_location_price,
    "list_location_pricing": _render_location_table,
    "search_location_pricing": _render_location_table,
    "city_areas": _render_location_table,
    "bulk_create_location_pricing": _render_location_table,
    # Check
    "check": _render_check,
}
