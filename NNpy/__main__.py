"""Startup hook: ``python -m NNpy`` configures the numeric kernel for this host."""

import logging
import os

from .core import KernelConfig, initialize_kernel


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config = initialize_kernel(KernelConfig(threads=os.cpu_count() or 1))
    print(f"NNpy numeric kernel: {config.threads} thread(s)")


if __name__ == "__main__":
    main()
