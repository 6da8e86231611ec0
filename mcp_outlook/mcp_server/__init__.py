"""Outlook MCP stdio server"""
