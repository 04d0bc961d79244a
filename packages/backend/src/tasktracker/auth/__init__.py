"""Authentication.

Learn: Users log in with email/password and receive a signed JWT in an
HttpOnly cookie. Nothing about the session is stored server-side; every
request re-derives the user from that cookie, pages and API alike.
"""
