"""
HTTP backend for the analyst terminal.

Routers:
- /auth: credential and verification steps, logout
- /api: session state, view selection and the analyst screens
"""
