"""Allow running as `python -m entroscan`."""

from entroscan.cli.main import main

main()
