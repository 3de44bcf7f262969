"""MCP server exposing the dialog tools over stdio."""
