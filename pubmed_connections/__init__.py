"""
PubMed Article Connections MCP Server

A FastMCP-based server that discovers articles related to a PubMed record
(similar, citing, referenced) and enriches them with bibliographic metadata.
"""

__version__ = "1.0.0"
__author__ = "PubMed MCP Team"
