"""NEXUS Research command line.

Runs a company research or a deep research and prints the result as JSON.
"""

import argparse
import asyncio
import json
import sys

from nexus.agents.deep_research import deep_research
from nexus.agents.orchestrator import research_company
from nexus.models.research import ResearchInput


async def run_company(name: str, website: str | None, twitter: str | None, enrich: bool) -> dict:
    research_input = ResearchInput(name=name, website=website, twitter_handle=twitter, enrich=enrich)
    result = await research_company(research_input)
    return result.to_dict()


async def run_deep(query: str, rounds: int | None) -> dict:
    result = await deep_research(query, rounds)
    return result.to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NEXUS Research aggregation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    company = subparsers.add_parser("research", help="Research one company")
    company.add_argument("--name", "-n", required=True, help="Company name")
    company.add_argument("--website", "-w", help="Company website")
    company.add_argument("--twitter", "-t", help="Twitter/X handle")
    company.add_argument("--no-enrich", action="store_true", help="Skip enrichment sources")

    deep = subparsers.add_parser("deep", help="Multi-round research on a query")
    deep.add_argument("--query", "-q", required=True, help="Research query")
    deep.add_argument("--rounds", "-r", type=int, help="Max rounds (1-3)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "research":
        if not args.name.strip():
            print("[!] Error: name is required", file=sys.stderr)
            return 2
        payload = asyncio.run(run_company(args.name, args.website, args.twitter, not args.no_enrich))
    else:
        if not args.query.strip():
            print("[!] Error: query is required", file=sys.stderr)
            return 2
        payload = asyncio.run(run_deep(args.query, args.rounds))

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0
