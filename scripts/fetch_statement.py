"""Fetch and print one customer's account statement page as JSON."""

import argparse
import json
import os

import httpx


def main() -> None:
    """CLI entrypoint for statement lookups."""

    parser = argparse.ArgumentParser(description="Fetch a customer account statement.")
    parser.add_argument("customer_id", type=int)
    parser.add_argument("--statement-url", default="http://localhost:8010")
    parser.add_argument("--api-key", default=os.getenv("API_KEY", ""))
    parser.add_argument(
        "--filter",
        default="all",
        choices=["today", "week", "month", "quarter", "year", "custom", "all"],
    )
    parser.add_argument("--start", help="custom range start, YYYY-MM-DD")
    parser.add_argument("--end", help="custom range end, YYYY-MM-DD")
    parser.add_argument("--search", help="find one transaction by M-Pesa code or description")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=50)
    parser.add_argument("--full", action="store_true", help="fetch the complete chronological statement")
    args = parser.parse_args()

    headers = {"x-api-key": args.api_key}
    if args.full:
        resp = httpx.get(
            f"{args.statement_url}/customers/{args.customer_id}/statement/full",
            headers=headers,
            timeout=30.0,
        )
    else:
        params = {"filter": args.filter, "page": args.page, "page_size": args.page_size}
        for key in ("start", "end", "search"):
            value = getattr(args, key)
            if value:
                params[key] = value
        resp = httpx.get(
            f"{args.statement_url}/customers/{args.customer_id}/statement",
            params=params,
            headers=headers,
            timeout=30.0,
        )
    resp.raise_for_status()
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
