# src/tetris_engine/cli/engine_speedtest.py
from __future__ import annotations

from tetris_engine.apps.engine_speedtest.entrypoint import parse_args, run_speedtest


def main() -> int:
    return run_speedtest(parse_args())


if __name__ == "__main__":
    raise SystemExit(main())
