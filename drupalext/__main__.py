"""
Main entry point for the Drupal editor extension.

This file is executed when running: python -m drupalext

The server communicates with the editor via stdin/stdout using JSON-RPC.
"""
from drupalext.lsp.server import create_server


def main():
    """Start the extension server on stdin/stdout."""
    server = create_server()

    # Listens on stdin/stdout for JSON-RPC messages from the editor host
    server.start_io()


if __name__ == "__main__":
    main()
