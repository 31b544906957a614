"""
Worker process entry point:

    python -m reconforge.workers <kind>

stdout is reserved for protocol messages. The channel takes the real stdout
stream; anything else that prints is sent to stderr with the logs.
"""

import argparse
import sys
from typing import List, Optional

from reconforge.base.config import get_config, setup_logging
from reconforge.ipc.channel import Channel
from reconforge.workers import WORKERS, create_worker


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m reconforge.workers")
    parser.add_argument("kind", choices=sorted(WORKERS))
    args = parser.parse_args(argv)

    config = get_config()
    setup_logging(config)

    channel = Channel.stdio()
    sys.stdout = sys.stderr

    return create_worker(args.kind, channel, config).serve()


if __name__ == "__main__":
    sys.exit(main())
