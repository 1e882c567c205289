"""Auth0 user-management REST facade.

To build the Flask app:
    from auth0_admin.flask_app import create_app

To use the Management API services directly:
    from auth0_admin.core.auth0 import Auth0Client, UserService, RoleService

To provision a user:
    from auth0_admin.core.provisioning_service import provision_user
"""
# flask_app is not imported here so the CLI can use auth0_admin.core
# without pulling in Flask
