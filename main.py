"""Main entry point for the bookmark manager - runs the web server."""

from dotenv import load_dotenv

from bookmark_manager.cli import main


if __name__ == "__main__":
    load_dotenv()
    main(["serve"])
