"""Tests for form validation, messages and toasts."""

import pytest

from bloghouse.forms import BlogCreateForm, SimpleVpsForm, ValidationFailure, VpsCredentials
from bloghouse.messages import translate
from bloghouse.notifier import Notifier, ToastLevel


class TestForms:
    """Client-side validation."""

    def test_simple_form_missing_fields(self):
        form = SimpleVpsForm(host=" ", password="")
        assert form.missing_fields() == ["host", "password"]
        with pytest.raises(ValidationFailure) as exc_info:
            form.validate_required()
        assert exc_info.value.message_key == "validation.required"

    def test_private_key_payload(self):
        form = VpsCredentials(host=" h ", auth_method="privateKey", private_key="KEY")
        form.validate_required()
        assert form.to_payload() == {
            "host": "h", "port": 22, "username": "root", "authMethod": "privateKey", "privateKey": "KEY",
        }

    def test_password_required_for_password_auth(self):
        with pytest.raises(ValidationFailure) as exc_info:
            VpsCredentials(host="h").validate_required()
        assert exc_info.value.message_key == "validation.password"

    def test_blog_domain_normalized(self):
        form = BlogCreateForm(host="h", password="p", domain=" My.Blog.COM ")
        form.validate_required()
        assert form.to_payload()["domain"] == "my.blog.com"


class TestMessages:
    """Localized messages."""

    def test_default_locale(self):
        assert translate("validation.required") == "Preencha todos os campos"

    def test_fallback_to_english(self):
        assert translate("validation.required", "fr") == "Please fill in all fields"

    def test_unknown_key(self):
        assert translate("no.such.key", "en") == "no.such.key"

    def test_params(self):
        assert translate("blog.error_toast", "en", error="DNS") == "Error: DNS"


class TestNotifier:
    """Toasts."""

    def test_collects_and_notifies(self):
        notifier = Notifier()
        seen = []
        notifier.on_toast(seen.append)
        notifier.success("ok")
        notifier.error("bad")
        assert notifier.last.level == ToastLevel.ERROR
        assert notifier.messages(ToastLevel.SUCCESS) == ["ok"]
        assert [t.message for t in seen] == ["ok", "bad"]
