"""
Form models for the provisioning flows.

Validation happens client-side before any request is sent: a form with a
missing required field never reaches the network.
"""

from typing import Any, ClassVar, Literal, Optional

from pydantic import BaseModel


class ValidationFailure(Exception):
    """A form is missing required fields."""

    def __init__(self, missing_fields: list[str], message_key: str = "validation.required"):
        super().__init__(f"Missing required fields: {', '.join(missing_fields)}")
        self.missing_fields = missing_fields
        self.message_key = message_key


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ProvisioningForm(BaseModel):
    required_fields: ClassVar[tuple[str, ...]] = ()

    def missing_fields(self) -> list[str]:
        return [name for name in self.required_fields if _blank(getattr(self, name))]

    def validate_required(self):
        """Raise ValidationFailure when a required field is empty."""
        missing = self.missing_fields()
        if missing:
            raise ValidationFailure(missing)

    def to_payload(self) -> dict[str, Any]:
        raise NotImplementedError


class VpsCredentials(ProvisioningForm):
    """Credentials for the full VPS setup and connection tests."""
    required_fields: ClassVar[tuple[str, ...]] = ("host", "username")

    host: str = ""
    port: int = 22
    username: str = "root"
    password: Optional[str] = None
    private_key: Optional[str] = None
    auth_method: Literal["password", "privateKey"] = "password"

    def missing_fields(self) -> list[str]:
        missing = super().missing_fields()
        if self.auth_method == "password" and _blank(self.password):
            missing.append("password")
        if self.auth_method == "privateKey" and _blank(self.private_key):
            missing.append("private_key")
        return missing

    def validate_required(self):
        missing = super().missing_fields()
        if missing:
            raise ValidationFailure(missing)
        if self.auth_method == "password" and _blank(self.password):
            raise ValidationFailure(["password"], "validation.password")
        if self.auth_method == "privateKey" and _blank(self.private_key):
            raise ValidationFailure(["private_key"], "validation.private_key")

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "host": self.host.strip(),
            "port": self.port,
            "username": self.username.strip(),
            "authMethod": self.auth_method,
        }
        if self.auth_method == "password":
            payload["password"] = self.password
        else:
            payload["privateKey"] = self.private_key
        return payload


class SimpleVpsForm(ProvisioningForm):
    """Host and root credentials for the one-click server setup."""
    required_fields: ClassVar[tuple[str, ...]] = ("host", "username", "password")

    host: str = ""
    username: str = "root"
    password: str = ""
    port: int = 22

    def to_payload(self) -> dict[str, Any]:
        return {
            "host": self.host.strip(),
            "port": self.port,
            "username": self.username.strip(),
            "password": self.password,
        }


class BlogCreateForm(ProvisioningForm):
    """Server credentials plus the domain of the blog to create."""
    required_fields: ClassVar[tuple[str, ...]] = ("host", "username", "password", "domain")

    host: str = ""
    username: str = "root"
    password: str = ""
    domain: str = ""
    port: int = 22

    def to_payload(self) -> dict[str, Any]:
        return {
            "host": self.host.strip(),
            "port": self.port,
            "username": self.username.strip(),
            "password": self.password,
            "domain": self.domain.strip().lower(),
        }
