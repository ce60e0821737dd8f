"""Entry point for the inbox ingest package.

Usage::

    python -m inbox_ingest serve          # HTTP service
    python -m inbox_ingest parse FILE     # parse a local .eml, print JSON
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

from .config import ParserConfig, Settings
from .logging import setup_logging
from .parser import MessageParser, ParsedEmail

USAGE = "Usage: python -m inbox_ingest <serve|parse FILE>"


def summarize(parsed: ParsedEmail) -> dict:
    """JSON-friendly view of a parse result; attachment bytes are omitted."""
    return {
        "headers": parsed.headers,
        "preview_text": parsed.preview_text,
        "attachments": [
            {
                "filename": att.filename,
                "content_type": att.content_type,
                "size": att.size,
            }
            for att in parsed.attachments
        ],
    }


def _serve() -> None:
    import uvicorn

    settings = Settings()
    setup_logging(json=settings.log_json, level=settings.log_level)
    uvicorn.run(
        "inbox_ingest.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def _parse(path: str) -> None:
    setup_logging(json=False, level="WARNING")
    parser = MessageParser(ParserConfig())
    parsed = parser.parse(Path(path).read_bytes())
    print(json.dumps(summarize(parsed), indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if args[:1] == ["serve"] and len(args) == 1:
        _serve()
    elif args[:1] == ["parse"] and len(args) == 2:
        _parse(args[1])
    else:
        print(USAGE, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
