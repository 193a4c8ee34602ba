"""Entry point: python -m tiggh.dashboard [owner/repo]"""

from ..cli import main

if __name__ == "__main__":
    main()
