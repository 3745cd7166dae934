"""
Command shell for shortmap.

Usage:
  shortmap [--strategy scrambled] [--modulus-bits 40] [--multiplier 36779219]
           [--buckets 1009] [--log-level WARNING]

Reads one command per line from stdin:
  gen <long_url>      print the short code for a URL (existing or new)
  get <short_code>    print the original URL
  del <short_code>    delete a mapping
  list                print every mapping
  count               print non-empty bucket counts of both tables
  exit                shut down (EOF does the same)
"""

import argparse
import logging
import sys
from typing import Callable, Dict, Optional, TextIO

from pydantic import ValidationError

from shortmap.config import MAX_MODULUS_BITS, settings
from shortmap.errors import CapacityExhausted, IndexInconsistency
from shortmap.manager.engine import MappingEngine, create_engine
from shortmap.manager.strategies import STRATEGY_REGISTRY
from shortmap.schemas import CodeRequest, ShortenRequest

logger = logging.getLogger(__name__)

BANNER = "URL Shortener CLI"
COMMANDS_HELP = "Commands: gen <long_url>, get <short_code>, del <short_code>, list, count, exit"
PROMPT = "> "


class Shell:
    """Line-oriented front end; validates input, calls the engine, prints results."""

    def __init__(self, engine: MappingEngine, out: Optional[TextIO] = None, url_max_length: Optional[int] = None):
        self.engine = engine
        self.out = out if out is not None else sys.stdout
        self.url_max_length = url_max_length if url_max_length is not None else settings.URL_MAX_LENGTH
        self._commands: Dict[str, Callable[[str], None]] = {
            "gen": self._gen,
            "get": self._get,
            "del": self._del,
            "list": self._list,
            "count": self._count,
        }

    def _print(self, text: str) -> None:
        self.out.write(text + "\n")

    # ---------------------------------------------------------------------
    # Commands
    # ---------------------------------------------------------------------
    def _gen(self, arg: str) -> None:
        if not arg:
            self._print("Usage: gen <long_url>")
            return
        try:
            req = ShortenRequest.model_validate({"url": arg}, context={"url_max_length": self.url_max_length})
        except ValidationError as exc:
            self._print(f"Error: {exc.errors()[0]['msg']}")
            return
        try:
            code = self.engine.generate_or_get(req.url)
        except CapacityExhausted:
            self._print("Error: code space exhausted.")
            return
        self._print(f"Short code: {code}")

    def _parse_code(self, arg: str, usage: str) -> Optional[str]:
        token = arg.split()[0] if arg else ""
        if not token:
            self._print(usage)
            return None
        try:
            return CodeRequest(code=token).code
        except ValidationError:
            self._print("Invalid short code.")
            return None

    def _get(self, arg: str) -> None:
        code = self._parse_code(arg, "Usage: get <short_code>")
        if code is None:
            return
        url = self.engine.resolve(code)
        self._print(f"Original URL: {url}" if url is not None else "Not found.")

    def _del(self, arg: str) -> None:
        code = self._parse_code(arg, "Usage: del <short_code>")
        if code is None:
            return
        self._print(f"Deleted mapping {code}" if self.engine.delete(code) else "Not found.")

    def _list(self, arg: str) -> None:
        self._print("Current mappings (short -> long):")
        for record in self.engine.iter_records():
            self._print(f"{record.code} -> {record.url}")

    def _count(self, arg: str) -> None:
        short_count, long_count = self.engine.occupancy()
        self._print(f"Short_table count->{short_count}")
        self._print(f"Long_table count->{long_count}")

    # ---------------------------------------------------------------------
    # Loop
    # ---------------------------------------------------------------------
    def handle(self, line: str) -> bool:
        """Run one command line. Returns False when the shell should stop."""
        parts = line.strip().split(maxsplit=1)
        if not parts:
            return True
        cmd = parts[0]
        arg = parts[1].strip() if len(parts) > 1 else ""
        if cmd == "exit":
            return False
        handler = self._commands.get(cmd)
        if handler is None:
            self._print("Unknown command.")
            return True
        handler(arg)
        return True

    def run(self, stdin: TextIO) -> None:
        self._print(BANNER)
        self._print(COMMANDS_HELP)
        while True:
            self.out.write(PROMPT)
            self.out.flush()
            line = stdin.readline()
            if not line:
                break
            if not self.handle(line):
                break


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shortmap", description="Bidirectional URL shortener shell")
    parser.add_argument("--strategy", default=settings.CODE_STRATEGY, choices=sorted(STRATEGY_REGISTRY))
    parser.add_argument("--modulus-bits", type=int, default=settings.MODULUS_BITS,
                        help=f"scramble space is 2**bits (1..{MAX_MODULUS_BITS})")
    parser.add_argument("--multiplier", type=int, default=settings.MULTIPLIER, help="odd scramble multiplier")
    parser.add_argument("--buckets", type=int, default=settings.BUCKETS, help="bucket count per table")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    return parser


def main(argv=None, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not 1 <= args.modulus_bits <= MAX_MODULUS_BITS:
        parser.error(f"--modulus-bits must be between 1 and {MAX_MODULUS_BITS}")
    if args.buckets < 1:
        parser.error("--buckets must be at least 1")

    if not logging.getLogger().handlers:
        logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    try:
        engine = create_engine(
            args.strategy,
            modulus=1 << args.modulus_bits,
            multiplier=args.multiplier,
            buckets=args.buckets,
        )
    except ValueError as exc:
        parser.error(str(exc))

    out = stdout if stdout is not None else sys.stdout
    shell = Shell(engine, out=out)
    try:
        shell.run(stdin if stdin is not None else sys.stdin)
    except (MemoryError, IndexInconsistency):
        logger.critical("Fatal engine failure, terminating", exc_info=True)
        engine.shutdown()
        return 1

    engine.shutdown()
    out.write("Clean-Up Done!!\nExiting Code...\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
