"""Entry point for the gist editor CLI.

Run the local server first (python -m api.server), then start the client
with: python main.py
"""

from cli.client import main

if __name__ == "__main__":
    main()
