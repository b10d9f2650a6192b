"""Allow ``python -m notify``."""
from .cli import main

main()
