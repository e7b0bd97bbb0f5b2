"""Okta nested collection resources (redirect URIs, audiences...).

To manage a collection member:
    from okta_provider.provider import build_provider
    from okta_provider.config import load_settings

    ctx = build_provider(load_settings())
    resource = ctx.resource("okta_app_oauth_post_logout_redirect_uri")

To use the Okta client directly:
    from okta_provider.core.okta import OktaClient, ApplicationService
"""
# Note: We don't import submodules here so the client library can be used
# without loading settings from the environment.

__version__ = "0.1.0"
