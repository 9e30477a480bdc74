#!/usr/bin/env python3
"""
QuickBill management CLI.

Usage:
    python manage.py serve         Start the API server
    python manage.py check         Connect the configured backend and report status
    python manage.py next-number   Print the next free bill number
    python manage.py list          List saved bills, newest first
    python manage.py pdf 0007      Write bill-0007.pdf
"""

import argparse
import asyncio
import sys
from pathlib import Path

from quickbill.config import configure_logging, get_settings
from quickbill.core.formatting import format_indian_currency
from quickbill.core.services import BillStorageOrchestrator, ConnectionState
from quickbill.infrastructure.storage import create_orchestrator


def _orchestrator(args: argparse.Namespace) -> BillStorageOrchestrator:
    return create_orchestrator(args.backend)


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "quickbill.api.main:app",
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        reload=args.reload,
    )


async def _check(args: argparse.Namespace) -> int:
    storage = _orchestrator(args)
    try:
        state = await storage.initialize()
        print(f"Backend: {storage.backend_name or 'none'}")
        print(f"Status:  {storage.status_label}")
        if storage.last_error is not None:
            print(f"Error:   {storage.last_error.message}")
        return 0 if state is ConnectionState.CONNECTED else 1
    finally:
        await storage.close()


def cmd_check(args: argparse.Namespace) -> None:
    sys.exit(asyncio.run(_check(args)))


async def _next_number(args: argparse.Namespace) -> None:
    storage = _orchestrator(args)
    try:
        await storage.initialize()
        print(await storage.next_sequence_number())
    finally:
        await storage.close()


def cmd_next_number(args: argparse.Namespace) -> None:
    asyncio.run(_next_number(args))


async def _list(args: argparse.Namespace) -> None:
    storage = _orchestrator(args)
    try:
        await storage.initialize()
        if args.customer:
            records = await storage.fetch_by_customer(args.customer)
        else:
            records = await storage.fetch_all()

        print(f"{len(records)} bill(s) ({storage.status_label})")
        for record in records:
            print(
                f"  {record.s_no:>6}  {record.date.isoformat()}  "
                f"{record.customer_name[:24]:<24}  {format_indian_currency(record.balance_due):>14}"
            )
    finally:
        await storage.close()


def cmd_list(args: argparse.Namespace) -> None:
    asyncio.run(_list(args))


async def _pdf(args: argparse.Namespace) -> int:
    from quickbill.core.entities.bill import normalize_sequence_number
    from quickbill.infrastructure.pdf import get_bill_pdf_renderer, pdf_filename

    storage = _orchestrator(args)
    try:
        await storage.initialize()
        wanted = normalize_sequence_number(args.s_no)
        for record in await storage.fetch_all():
            if record.s_no == wanted:
                output = Path(args.output or pdf_filename(record))
                output.write_bytes(get_bill_pdf_renderer().render(record))
                print(f"Wrote {output}")
                return 0
        print(f"Error: bill {wanted} not found.")
        return 1
    finally:
        await storage.close()


def cmd_pdf(args: argparse.Namespace) -> None:
    sys.exit(asyncio.run(_pdf(args)))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="QuickBill management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--backend",
        choices=["relational", "firebase", "kv", "offline"],
        default=None,
        help="Override STORAGE_BACKEND",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override LOG_LEVEL",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default=None, help="Bind host (default: API_HOST)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default: API_PORT)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # check
    p_check = sub.add_parser("check", help="Connect the backend, create its schema, report status")
    p_check.set_defaults(func=cmd_check)

    # next-number
    p_next = sub.add_parser("next-number", help="Print the next free bill number")
    p_next.set_defaults(func=cmd_next_number)

    # list
    p_list = sub.add_parser("list", help="List saved bills")
    p_list.add_argument("--customer", default=None, help="Only this customer (any case)")
    p_list.set_defaults(func=cmd_list)

    # pdf
    p_pdf = sub.add_parser("pdf", help="Export a saved bill as PDF")
    p_pdf.add_argument("s_no", help="Bill number")
    p_pdf.add_argument("-o", "--output", default=None, help="Output path (default: bill-<sNo>.pdf)")
    p_pdf.set_defaults(func=cmd_pdf)

    args = parser.parse_args()
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
