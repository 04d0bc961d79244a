"""Task Tracker — personal task lists behind a cookie session.

A landing page, login and registration, and an authenticated dashboard
where each user manages their own tasks and profile.
"""

__version__ = "0.1.0"
