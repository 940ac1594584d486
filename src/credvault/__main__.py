"""Entry point for 'python -m credvault' command."""

from credvault.cli import main

if __name__ == "__main__":
    main()
