"""Entry point for jadnet-dns-sd."""
import asyncio
from .discovery import main as discovery_main

__all__ = ['main']


def main():
    """Main entry point for the jadnet-dns-sd console script."""
    try:
        asyncio.run(discovery_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
