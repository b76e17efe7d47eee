"""Allow running as python -m neosync."""

from .cli import main

main()
