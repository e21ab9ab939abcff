"""
Entry point for the messenger console.
"""
from .cli import app


def main():
    """Launch the messenger console.

    Subcommands:
        demo: Replay the sample conversations
        run: Start an interactive session
    """
    app()


if __name__ == "__main__":
    main()
