"""bizdesk package.

Organized by feature modules (users, projects, leaves, policies, analytics)
with a thin Flask controller layer over service/repository layers.
"""
