"""
HTTP layer for the identity core.

identity_web.main:app mounts:
- identity_web.api.auth_router   (/auth/...)
- identity_web.api.action_router (/exec, peer JSON actions)
- identity_web.api.router        (/api/...)
"""
