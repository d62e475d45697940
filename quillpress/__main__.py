"""Entry point for `python -m quillpress`."""

import sys


def main():
    from quillpress.app import run_app
    sys.exit(run_app())


if __name__ == "__main__":
    main()
