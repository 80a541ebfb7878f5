import sys

from clawdbot_notify.cli import main

if __name__ == "__main__":
    sys.exit(main())
