"""
Unit tests for collection member resources (okta_provider.resources)

Runs create/read/update/delete/import against an in-memory Okta and
checks write counts, remote state and benign no-op logging.
"""
import logging
from unittest.mock import MagicMock

import pytest

from okta_provider.core.okta.exceptions import (
    InvalidRequestError,
    NotFoundError,
    ParentNotFoundError,
    TransientError,
)
from okta_provider.resources import RESOURCE_TYPES, ResourceState

POST_LOGOUT = "okta_app_oauth_post_logout_redirect_uri"


def config_for(resource, parent_id, value):
    schema = resource.schema
    return schema.parse_config({schema.parent_key: parent_id, schema.value_key: value})


# ============================================================================
# End-to-end scenario
# ============================================================================

def test_post_logout_redirect_uri_lifecycle(fake_okta, make_resource, caplog):
    caplog.set_level(logging.INFO, logger="okta_provider")
    fake_okta.add_app("app1", post_logout_uris=["https://a/logout"])
    resource = make_resource(fake_okta)

    state = resource.create(config_for(resource, "app1", "https://b/logout"))
    assert state == ResourceState(id="https://b/logout", parent_id="app1", value="https://b/logout")
    assert fake_okta.post_logout_uris("app1") == ["https://a/logout", "https://b/logout"]
    assert fake_okta.writes == 1

    caplog.clear()
    resource.create(config_for(resource, "app1", "https://b/logout"))
    assert fake_okta.writes == 1
    assert "already has post logout redirect URI https://b/logout" in caplog.text

    resource.delete(ResourceState(id="https://a/logout", parent_id="app1", value="https://a/logout"))
    assert fake_okta.post_logout_uris("app1") == ["https://b/logout"]
    assert fake_okta.writes == 2

    caplog.clear()
    resource.delete(ResourceState(id="https://z/logout", parent_id="app1", value="https://z/logout"))
    assert fake_okta.writes == 2
    assert "does not have post logout redirect URI https://z/logout" in caplog.text

    del fake_okta.objects["app1"]
    caplog.clear()
    resource.delete(state)
    assert fake_okta.writes == 2
    assert "no longer exists" in caplog.text


def test_write_keeps_unrelated_fields(fake_okta, make_resource):
    fake_okta.add_app("app1", post_logout_uris=[], redirect_uris=["https://r/cb"])
    resource = make_resource(fake_okta)

    resource.create(config_for(resource, "app1", "https://b/logout"))

    app = fake_okta.objects["app1"]
    assert app["label"] == "App app1"
    assert app["settings"]["oauthClient"]["redirect_uris"] == ["https://r/cb"]


# ============================================================================
# Failure semantics
# ============================================================================

def test_create_on_missing_parent_fails(fake_okta, make_resource):
    resource = make_resource(fake_okta)

    with pytest.raises(ParentNotFoundError, match="application with id ghost does not exist"):
        resource.create(config_for(resource, "ghost", "https://b/logout"))
    assert fake_okta.writes == 0


def test_invalid_write_propagates(fake_okta, make_resource):
    fake_okta.add_app("app1")
    fake_okta.fail_write_with = InvalidRequestError(400, "Api validation failed: label", "/api/v1/apps/app1")
    resource = make_resource(fake_okta)

    with pytest.raises(InvalidRequestError, match="Api validation failed"):
        resource.create(config_for(resource, "app1", "https://b/logout"))


def test_transient_fetch_error_propagates_on_delete(make_resource):
    okta = MagicMock()
    okta.get.side_effect = TransientError(503, "Service Unavailable", "/api/v1/apps/app1")
    resource = make_resource(okta)

    with pytest.raises(TransientError):
        resource.delete(ResourceState(id="https://a/logout", parent_id="app1", value="https://a/logout"))
    okta.put.assert_not_called()


def test_delete_succeeds_when_parent_vanishes_before_write(fake_okta, make_resource):
    fake_okta.add_app("app1", post_logout_uris=["https://a/logout"])
    fake_okta.fail_write_with = NotFoundError(404, "Not found: Resource not found: app1", "/api/v1/apps/app1")
    hook = MagicMock()
    resource = make_resource(fake_okta, audit_hook=hook)

    resource.delete(ResourceState(id="https://a/logout", parent_id="app1", value="https://a/logout"))

    assert hook.call_args.kwargs["success"] is True
    assert hook.call_args.kwargs["details"] == {"outcome": "parent_absent"}


def test_create_fails_when_parent_vanishes_before_write(fake_okta, make_resource):
    fake_okta.add_app("app1")
    fake_okta.fail_write_with = NotFoundError(404, "Not found: Resource not found: app1", "/api/v1/apps/app1")
    resource = make_resource(fake_okta)

    with pytest.raises(ParentNotFoundError, match="application with id app1 does not exist"):
        resource.create(config_for(resource, "app1", "https://b/logout"))


def test_lock_released_after_failure(fake_okta, make_resource, mutex):
    fake_okta.add_app("app1")
    fake_okta.fail_write_with = TransientError(None, "connection reset", "/api/v1/apps/app1")
    resource = make_resource(fake_okta)

    with pytest.raises(TransientError):
        resource.create(config_for(resource, "app1", "https://b/logout"))

    with mutex.hold("application/app1", timeout=0.1):
        pass


# ============================================================================
# Read / update / import
# ============================================================================

def test_read_makes_no_remote_call(make_resource):
    okta = MagicMock()
    resource = make_resource(okta)
    state = ResourceState(id="https://a/logout", parent_id="app1", value="https://a/logout")

    assert resource.read(state) is state
    okta.get.assert_not_called()


def test_update_appends_new_value_and_keeps_old(fake_okta, make_resource):
    fake_okta.add_app("app1", post_logout_uris=["https://a/logout"])
    resource = make_resource(fake_okta)
    old = ResourceState(id="https://a/logout", parent_id="app1", value="https://a/logout")

    new = resource.update(old, config_for(resource, "app1", "https://c/logout"))

    assert new.id == "https://c/logout"
    assert fake_okta.post_logout_uris("app1") == ["https://a/logout", "https://c/logout"]


def test_update_cannot_move_parent(fake_okta, make_resource):
    resource = make_resource(fake_okta)
    old = ResourceState(id="https://a/logout", parent_id="app1", value="https://a/logout")

    with pytest.raises(ValueError, match="must be replaced"):
        resource.update(old, config_for(resource, "app2", "https://a/logout"))


def test_import_splits_on_first_slash(make_resource, fake_okta):
    resource = make_resource(fake_okta)

    state = resource.import_state("app1/https://b/logout?x=1")

    assert state == ResourceState(id="https://b/logout?x=1", parent_id="app1", value="https://b/logout?x=1")
    assert fake_okta.fetches == 0


@pytest.mark.parametrize("import_id", ["app1", "/https://b", "app1/"])
def test_import_rejects_malformed_ids(make_resource, fake_okta, import_id):
    resource = make_resource(fake_okta)
    with pytest.raises(ValueError, match="<app_id>/<uri>"):
        resource.import_state(import_id)


# ============================================================================
# Configuration parsing
# ============================================================================

class TestParseConfig:
    schema = RESOURCE_TYPES[POST_LOGOUT].schema

    def test_valid(self):
        config = self.schema.parse_config({"app_id": " app1 ", "uri": " https://b/logout "})
        assert (config.parent_id, config.value) == ("app1", "https://b/logout")

    @pytest.mark.parametrize(
        "raw, message",
        [
            ({"uri": "https://b"}, "missing required attribute 'app_id'"),
            ({"app_id": "app1"}, "missing required attribute 'uri'"),
            ({"app_id": 1, "uri": "https://b"}, "must be a string"),
            ({"app_id": "app1", "uri": "ftp://b"}, "invalid uri"),
            ({"app_id": "app1", "uri": "https://b", "extra": "x"}, "unsupported attributes extra"),
            ({"app_id": "a/b", "uri": "https://b"}, "app_id contains invalid characters"),
        ],
    )
    def test_invalid(self, raw, message):
        with pytest.raises(ValueError, match=message):
            self.schema.parse_config(raw)

    def test_attributes(self):
        state = ResourceState(id="https://b", parent_id="app1", value="https://b")
        assert self.schema.attributes(state) == {"id": "https://b", "app_id": "app1", "uri": "https://b"}


# ============================================================================
# Other resource types
# ============================================================================

def test_redirect_uri_resource_targets_redirect_uris(fake_okta, make_resource):
    fake_okta.add_app("app1", post_logout_uris=["https://a/logout"], redirect_uris=["https://a/cb"])
    resource = make_resource(fake_okta, "okta_app_oauth_redirect_uri")

    resource.create(config_for(resource, "app1", "https://b/cb"))

    oauth = fake_okta.objects["app1"]["settings"]["oauthClient"]
    assert oauth["redirect_uris"] == ["https://a/cb", "https://b/cb"]
    assert oauth["post_logout_redirect_uris"] == ["https://a/logout"]


def test_app_resources_share_lock_key(fake_okta, make_resource):
    post_logout = make_resource(fake_okta, POST_LOGOUT)
    redirect = make_resource(fake_okta, "okta_app_oauth_redirect_uri")
    assert post_logout.remote.lock_key("app1") == redirect.remote.lock_key("app1") == "application/app1"


def test_auth_server_audience(fake_okta, make_resource):
    fake_okta.add_auth_server("aus1", audiences=["api://default"])
    resource = make_resource(fake_okta, "okta_auth_server_audience")

    state = resource.create(config_for(resource, "aus1", "api://orders"))
    resource.delete(ResourceState(id="api://default", parent_id="aus1", value="api://default"))

    assert state.value == "api://orders"
    assert fake_okta.objects["aus1"]["audiences"] == ["api://orders"]
    assert resource.remote.lock_key("aus1") == "authorization server/aus1"


def test_auth_server_missing_on_create(fake_okta, make_resource):
    resource = make_resource(fake_okta, "okta_auth_server_audience")
    with pytest.raises(ParentNotFoundError, match="authorization server with id aus9 does not exist"):
        resource.create(config_for(resource, "aus9", "api://orders"))


# ============================================================================
# Audit hook
# ============================================================================

def test_audit_hook_records_outcomes(fake_okta, make_resource):
    fake_okta.add_app("app1")
    hook = MagicMock()
    resource = make_resource(fake_okta, audit_hook=hook)

    resource.create(config_for(resource, "app1", "https://b/logout"))
    resource.create(config_for(resource, "app1", "https://b/logout"))
    resource.delete(ResourceState(id="https://b/logout", parent_id="app1", value="https://b/logout"))

    outcomes = [(c.args[0], c.kwargs["details"]["outcome"]) for c in hook.call_args_list]
    assert outcomes == [("create", "changed"), ("create", "already_present"), ("delete", "changed")]
    assert hook.call_args_list[0].args[1] == POST_LOGOUT
    assert hook.call_args_list[0].kwargs["parent_id"] == "app1"


def test_audit_hook_records_failure(fake_okta, make_resource):
    hook = MagicMock()
    resource = make_resource(fake_okta, audit_hook=hook)

    with pytest.raises(ParentNotFoundError):
        resource.create(config_for(resource, "ghost", "https://b/logout"))

    assert hook.call_args.kwargs["success"] is False
    assert "does not exist" in hook.call_args.kwargs["details"]["error"]
