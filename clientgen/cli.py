"""Command line entry point for Python client binding generation"""

import argparse
import logging
import os
import sys
import tempfile
import time
from pathlib import Path

from . import tigerbeetle
from .parser import SchemaParseError, SchemaParser
from .python_generator import GeneratorConfig, PythonGenerator
from .types import GenerationError

logger = logging.getLogger(__name__)


def write_atomic(path: Path, content: str):
    """Write content to path via a temporary file in the same directory"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise


def main(argv=None) -> int:
    start_time = time.perf_counter()

    parser = argparse.ArgumentParser(description="Generate Python client bindings from a native schema")
    parser.add_argument("schema", nargs="?", help="Path to JSON schema (default: built-in TigerBeetle schema)")
    parser.add_argument("--output", "-o", default="", help="Output file (default: stdout)")
    parser.add_argument("--runtime-module", default=".lib", help="Module providing c_uint128, dataclass and validate_uint")
    parser.add_argument("--library-handle", default="tbclient", help="Name of the loaded native library handle")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config = GeneratorConfig(
        runtime_module=args.runtime_module,
        library_handle=args.library_handle,
    )

    try:
        if args.schema:
            schema = SchemaParser(Path(args.schema).read_text(encoding="utf-8")).parse()
        else:
            schema = tigerbeetle.schema()
        content = PythonGenerator(schema, config).generate()
    except OSError as exc:
        logger.error("cannot read schema: %s", exc)
        return 1
    except (GenerationError, SchemaParseError) as exc:
        logger.error("generation failed: %s", exc)
        return 1

    if args.output:
        try:
            write_atomic(Path(args.output), content)
        except OSError as exc:
            logger.error("cannot write output: %s", exc)
            return 1
        logger.info("Generated: %s", args.output)
    else:
        sys.stdout.write(content)

    elapsed = time.perf_counter() - start_time
    logger.info("Generation completed in %.2f ms", elapsed * 1000)
    return 0


if __name__ == "__main__":
    sys.exit(main())
