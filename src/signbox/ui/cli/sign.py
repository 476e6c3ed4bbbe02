"""Signing command handler for signbox CLI."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path

from ...config import load_settings
from ...core.outcome import PermanentFailure, RetryableFailure, Signed, SigningOutcome
from ...core.signing import SignboxClient
from ...errors import ConfigError
from ...network.pool import ConnectionPool
from ...network.request import SignatureFormat, SignatureLevel
from ..helpers import atomic_write, default_output_path, format_size_kb, guess_format, safe_read_file

# sysexits.h EX_TEMPFAIL: every failure was transient, try again later
EXIT_TEMPFAIL = 75


@dataclass
class _Job:
    path: Path
    output: Path
    format: SignatureFormat
    document: bytes


def _plan_jobs(args: argparse.Namespace) -> list[_Job]:
    """Read every input file and decide format and output path."""
    if args.output and len(args.files) > 1:
        print("Error: --output can only be used with a single file.", file=sys.stderr)
        sys.exit(1)

    jobs: list[_Job] = []
    for name in args.files:
        path = Path(name)
        document = safe_read_file(path, "document")
        if document is None:
            sys.exit(1)
        fmt = SignatureFormat[args.format.upper()] if args.format else guess_format(path)
        output = Path(args.output) if args.output else default_output_path(path, fmt)
        jobs.append(_Job(path=path, output=output, format=fmt, document=document))
    return jobs


async def _sign_all(jobs: list[_Job], level: SignatureLevel) -> list[SigningOutcome]:
    settings = load_settings()
    async with ConnectionPool.from_settings(settings) as pool:
        client = SignboxClient.from_settings(pool, settings)
        return list(
            await asyncio.gather(*(client.sign(job.document, job.format, level) for job in jobs))
        )


def _report(job: _Job, outcome: SigningOutcome) -> SigningOutcome:
    """Write or report one outcome; a failed write turns it into a permanent failure."""
    if isinstance(outcome, Signed):
        try:
            atomic_write(job.output, outcome.document)
        except OSError as e:
            print(f"  FAIL  {job.path.name}: cannot write {job.output}: {e}", file=sys.stderr)
            return PermanentFailure(
                reason=f"cannot write {job.output}", transaction_id=outcome.transaction_id
            )
        print(f"  OK    {job.path.name} -> {job.output} ({format_size_kb(len(outcome.document))})")
        return outcome
    kind = "RETRY" if isinstance(outcome, RetryableFailure) else "FAIL"
    status = f" [HTTP {outcome.status_code}]" if outcome.status_code else ""
    print(f"  {kind:<5} {job.path.name}{status}: {outcome.reason}", file=sys.stderr)
    return outcome


def cmd_sign(args: argparse.Namespace) -> None:
    """Sign one or more files concurrently and write the results."""
    jobs = _plan_jobs(args)
    level = SignatureLevel.from_timestamping(args.timestamp)

    print(f"Signing {len(jobs)} file(s), level {level.value}...")
    try:
        outcomes = asyncio.run(_sign_all(jobs, level))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    outcomes = [_report(job, outcome) for job, outcome in zip(jobs, outcomes)]

    failures = [o for o in outcomes if not o.ok]
    if not failures:
        return
    if all(o.retryable for o in failures):
        sys.exit(EXIT_TEMPFAIL)
    sys.exit(1)
