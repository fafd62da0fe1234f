"""
Ledger CLI entrypoint.

This module provides the console_script entrypoint for the ledger package.
"""


def main():
    """Ledger CLI entrypoint."""
    from ledger.commands import ledger_app

    ledger_app()


if __name__ == "__main__":
    main()
