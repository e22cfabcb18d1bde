#!/usr/bin/env python3
"""
Envelope Conversion Script
==========================

Standalone script to convert envelope JSON files into wire payloads.

This script:
    1. Loads configuration (and any configured plugins)
    2. Reads one envelope, or a list of envelopes, from a JSON file
    3. Converts them with the converter bound to the requested format
    4. Writes the payload(s) to stdout or an output file

Usage:
    python scripts/convert_envelope.py event.json --format 0
    python scripts/convert_envelope.py events.json --format 2 --output batch.bin
    python scripts/convert_envelope.py events.json --format 1 --output-dir out/
    python scripts/convert_envelope.py --list-formats --config config.yaml
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pydantic import TypeAdapter, ValidationError

from msgconv.config import load_config
from msgconv.errors import MsgConvError
from msgconv.models import Envelope
from msgconv.registry import create_default_registry, load_plugins


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def read_envelopes(path: str) -> List[Envelope]:
    """Read a single envelope or a JSON list of envelopes."""
    raw = sys.stdin.buffer.read() if path == "-" else Path(path).read_bytes()
    if raw.lstrip().startswith(b"["):
        return TypeAdapter(List[Envelope]).validate_json(raw)
    return [Envelope.model_validate_json(raw)]


def write_payload(data: bytes, output: str) -> None:
    if output == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    else:
        Path(output).write_bytes(data)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Convert envelope JSON into msgconv wire payloads"
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Envelope JSON file, '-' for stdin (default: -)",
    )
    parser.add_argument(
        "--format",
        type=lambda s: int(s, 0),
        default=0,
        help="Payload format id, e.g. 0, 2 or 0x150 (default: 0)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="config.yaml to load converter options and plugins from",
    )
    parser.add_argument(
        "--output",
        default="-",
        help="Output file for a single or framed payload (default: stdout)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write per-event payloads as <index>.bin into this directory",
    )
    parser.add_argument(
        "--list-formats",
        action="store_true",
        help="List bound formats and exit",
    )
    args = parser.parse_args()

    settings = load_config(args.config)
    registry = create_default_registry(settings.converters)

    try:
        load_plugins(registry, settings.plugins)

        if args.list_formats:
            for format_id, converter in sorted(registry.converters().items()):
                print(f"{format_id:#06x}  {converter.name:<24} {converter.content_type}")
            return 0

        envelopes = read_envelopes(args.input)
        converter = registry.get(args.format)
        logger.info(f"Converting {len(envelopes)} envelope(s) with '{converter.name}'")

        if len(envelopes) == 1 and args.output_dir is None:
            write_payload(converter.convert(envelopes[0]).data, args.output)
            return 0

        result = converter.convert_batch(envelopes)
        if result.framed:
            write_payload(result.payloads[0].data, args.output)
        elif args.output_dir is not None:
            out_dir = Path(args.output_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            for index, payload in enumerate(result.payloads):
                if payload is not None:
                    (out_dir / f"{index}.bin").write_bytes(payload.data)
        else:
            # JSON formats: one payload per line
            write_payload(b"".join(p.data + b"\n" for p in result.succeeded), args.output)

        for index, error in sorted(result.errors.items()):
            logger.error(f"Event {index}: {error}")
        logger.info(f"Converted {len(result.succeeded)}/{len(envelopes)} events")
        return 0 if result.ok else 1

    except (MsgConvError, ValidationError, OSError) as e:
        logger.error(str(e))
        return 2
    finally:
        registry.close()


if __name__ == "__main__":
    sys.exit(main())
