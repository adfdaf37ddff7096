from typing import Any

from ninja import Schema
from pydantic import field_validator


class FormRegisterPayload(Schema):
    name: str
    form_type: str
    schema_definition: Any

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v


class FormFilterParams(Schema):
    form_type: str | None = None
    status: str | None = None


class InstanceCreatePayload(Schema):
    form_id: str
    payload: Any


class InstanceSupersedePayload(Schema):
    payload: Any


class InstanceFilterParams(Schema):
    current_only: bool = False
    form_type: str | None = None


class IssuePayload(Schema):
    instance_id: str
    recipient_member_id: str | None = None
    invitee_locator: str | None = None


class ResolvePayload(Schema):
    resolution: str


class IssuedFilterParams(Schema):
    status: str | None = None


class ReceivedFilterParams(Schema):
    pending_only: bool = False
