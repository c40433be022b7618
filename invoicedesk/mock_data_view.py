"""Browse and poke at the in-memory store while running with mock data."""
from __future__ import annotations

import html
import json
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse

from invoicedesk.services.mock_store import MockDataStore, get_mock_store

router = APIRouter()

Row = Dict[str, Any]

_PAGE = """
<html>
  <head>
    <title>Mock Data Overview</title>
    <style>
      body {{ font-family: Arial, sans-serif; margin: 2rem; color: #222; }}
      h1 {{ text-align: center; }}
      section {{ margin-bottom: 2rem; }}
      table {{ border-collapse: collapse; width: 100%; font-size: 0.9rem; }}
      th, td {{ border: 1px solid #ccc; padding: 0.4rem 0.6rem; text-align: left; }}
      th {{ background-color: #eef2f7; }}
      .empty {{ color: #777; font-style: italic; }}
    </style>
  </head>
  <body>
    <h1>Mock Data Overview</h1>
    {sections}
  </body>
</html>
"""

DOMAIN_STATUSES = {"verified", "pending", "failed", "not_started"}


def _cell(value: Any) -> str:
    if value is None:
        text = ""
    elif isinstance(value, (str, int, float, bool)):
        text = str(value)
    else:
        text = json.dumps(value, default=str)
    return f"<td>{html.escape(text)}</td>"


def _columns(rows: Sequence[Mapping[str, Any]]) -> List[str]:
    seen: Dict[str, None] = {}
    for row in rows:
        seen.update(dict.fromkeys(row))
    return list(seen)


def _render_section(title: str, rows: Sequence[Mapping[str, Any]]) -> str:
    heading = f"<h2>{html.escape(title)} ({len(rows)})</h2>"
    if not rows:
        return f'<section>{heading}<p class="empty">No records found.</p></section>'

    columns = _columns(rows)
    head = "".join(f"<th>{html.escape(column)}</th>" for column in columns)
    body = "".join(
        "<tr>" + "".join(_cell(row.get(column)) for column in columns) + "</tr>"
        for row in rows
    )
    return (
        f"<section>{heading}<table><thead><tr>{head}</tr></thead>"
        f"<tbody>{body}</tbody></table></section>"
    )


def _without(records: Sequence[Row], *hidden: str) -> List[Row]:
    return [{key: value for key, value in record.items() if key not in hidden} for record in records]


def _invoice_rows(invoices: Sequence[Row]) -> List[Row]:
    rows = _without(invoices, "items")
    for row, invoice in zip(rows, invoices):
        row["line_items"] = len(invoice.get("items") or [])
    return rows


async def _sections(store: MockDataStore) -> List[str]:
    return [
        _render_section("Clients", await store.clients.list()),
        _render_section("Invoices", _invoice_rows(await store.invoices.list())),
        _render_section("Email Domains", _without(await store.domains.list(), "records")),
        _render_section("Sent Emails", _without(await store.outbox.list(), "html")),
        _render_section("Checkout Sessions", await store.payments.list()),
    ]


@router.get("/mock-data", response_class=HTMLResponse)
async def view_mock_data() -> HTMLResponse:
    """Render every mock repository as an HTML table."""
    sections = await _sections(get_mock_store())
    return HTMLResponse(content=_PAGE.format(sections="".join(sections)))


@router.post("/mock-data/domains/{name}/status/{status}")
async def set_mock_domain_status(name: str, status: str) -> Dict[str, str]:
    """Simulate the provider finishing (or failing) DNS verification."""

    if status not in DOMAIN_STATUSES:
        raise HTTPException(status_code=400, detail="Unsupported domain status")
    domain = await get_mock_store().domains.set_status(name, status)
    if domain is None:
        raise HTTPException(status_code=404, detail="Domain not found")
    return {"name": str(domain["name"]), "status": status}


def _deleters(store: MockDataStore) -> Dict[str, Callable[[str], Awaitable[bool]]]:
    return {
        "clients": store.clients.delete,
        "invoices": store.invoices.delete,
        "domains": store.domains.remove,
        "emails": store.outbox.delete,
        "payments": store.payments.delete,
    }


@router.delete("/mock-data/{collection}/{record_id}")
async def delete_mock_record(collection: str, record_id: str) -> Dict[str, str]:
    """Remove one record; ``collection`` may be singular or plural."""

    name = collection.strip().lower()
    deleters = _deleters(get_mock_store())
    if name not in deleters and f"{name}s" in deleters:
        name = f"{name}s"
    delete = deleters.get(name)
    if delete is None:
        raise HTTPException(status_code=404, detail="Unsupported mock data collection")

    if not await delete(record_id):
        raise HTTPException(status_code=404, detail="Record not found")
    return {"status": "deleted", "collection": name, "record_id": record_id}
