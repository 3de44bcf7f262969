"""MCP Interactive - ask the human behind an MCP client through a pop-up dialog."""

__version__ = "0.0.1"
