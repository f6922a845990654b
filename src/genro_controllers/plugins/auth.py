# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""TagAuthorizer - tag-based authorizer for permission metadata.

The core carries ``@permission`` / ``@allow_anonymous`` metadata without
enforcing it. ``TagAuthorizer`` is an authorizer that turns it into a guard
middleware, placed in front of the action's own middleware.

Usage::

    from genro_controllers import Controller, allow_anonymous, controller, get, permission
    from genro_controllers.plugins.auth import TagAuthorizer

    @controller("admin")
    @permission("staff")
    class AdminController(Controller):
        @get("report")
        @permission("admin&!guest")
        def report(self):
            return {"ok": True}

        @get("ping")
        @allow_anonymous
        def ping(self):
            return None

    authorizer = TagAuthorizer(lambda request: request.headers.get("x-tags"))
    AdminController().register(host, authorizer=authorizer)

Rule syntax (``genro_toolbox.tags_match``):
    - ``|`` : OR (user must have at least one)
    - ``&`` : AND (user must have all)
    - ``!`` : NOT (user must not have)
    - ``()`` : grouping

Comma is not allowed in rules. Every rule of the controller and of the action
must match. Outcomes:

- anonymous action or controller: no guard;
- no rules and ``implicit_access``: no guard;
- no rules otherwise: any tag set is accepted, none answers 401;
- rules present: no tags answers 401, non-matching tags answer 403.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from genro_toolbox import tags_match

from genro_controllers.core.registrar import AccessPolicy
from genro_controllers.exceptions import ConfigurationError

__all__ = ["TagAuthorizer"]

TagsGetter = Callable[[Any], "str | Iterable[str] | None"]


class TagAuthorizer:
    """Authorizer evaluating permission rules against the caller's tags."""

    __slots__ = ("_get_tags",)

    def __init__(self, get_tags: TagsGetter) -> None:
        if not callable(get_tags):
            raise TypeError("get_tags must be callable")
        self._get_tags = get_tags

    def __call__(self, policy: AccessPolicy) -> Callable | None:
        for rule in policy.rules:
            if "," in rule:
                raise ConfigurationError(
                    f"Comma not allowed in permission rule {rule!r} of {policy.action}. "
                    "Use '|' for OR (e.g., 'admin|manager') or '&' for AND (e.g., 'admin&hr')."
                )
        if policy.anonymous:
            return None
        if not policy.rules and policy.implicit_access:
            return None
        return self._guard(policy.rules)

    def tags_of(self, request: Any) -> set[str]:
        """Return the caller's tags as a set (empty when unauthenticated)."""
        raw = self._get_tags(request)
        if not raw:
            return set()
        values = raw.split(",") if isinstance(raw, str) else raw
        return {value.strip() for value in values if value and value.strip()}

    def deny_reason(self, rules: Iterable[str], tags: set[str]) -> str:
        """Return "", "not_authenticated" or "not_authorized"."""
        if not tags:
            return "not_authenticated"
        for rule in rules:
            if not tags_match(rule, tags):
                return "not_authorized"
        return ""

    def _guard(self, rules: tuple[str, ...]) -> Callable:
        async def guard(request: Any, response: Any, call_next: Callable) -> None:
            reason = self.deny_reason(rules, self.tags_of(request))
            if reason == "not_authenticated":
                response.send_json({"message": "Authentication required"}, 401)
                return
            if reason == "not_authorized":
                response.send_json({"message": "Access denied"}, 403)
                return
            await call_next()

        return guard
