#!/usr/bin/env python3
"""
Export a survey's responses to a CSV file, the same document the results page downloads.

Reads store settings from .env:
    SURVEY_API_URL    — base URL of the survey store API
    EXPORT_TIMEZONE   — timezone for the dates written in the file (optional)

Usage:
    cd surveys-backend
    python -m scripts.export_results --survey-id <id> [--output-dir exports]
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from zoneinfo import ZoneInfo

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "surveys"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from app.config import Settings
from app.results.schemas import SessionState
from app.results.session import ResultsSession
from app.results.sinks import DirectorySink
from app.surveys.store import open_survey_store


async def main(survey_id: str, output_dir: str | None) -> int:
    settings = Settings()
    sink = DirectorySink(output_dir or settings.export_output_dir)

    async with open_survey_store(settings) as store:
        session = ResultsSession(store)
        await session.load_results(survey_id)

    if session.state is SessionState.ERRORED:
        print(f"Error: could not load survey {survey_id}: {session.error}")
        return 1

    exported = session.export(sink=sink, tz=ZoneInfo(settings.export_timezone))
    print(f"Wrote {len(session.responses)} responses to {sink.directory / exported.filename}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--survey-id", required=True)
    parser.add_argument("--output-dir", default=None)
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.survey_id, args.output_dir)))
