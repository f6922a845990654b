"""Genro Controllers - declarative HTTP actions on class methods.

Decorate controller methods with verb/path, parameter bindings, middleware
and permission metadata; ``register`` compiles them into request handlers
and wires them onto an existing HTTP router (the "host").

Public exports:
    - ``Controller``: Mixin providing ``register(host, logger=None, **settings)``
    - ``controller``: Class decorator declaring the path prefix
    - ``route``, ``get``, ``post``, ``put``, ``head``, ``options``, ``delete``
    - ``req``, ``res``, ``body``, ``body_field``, ``query``, ``path_param``
    - ``use``, ``permission``, ``allow_anonymous``
    - ``register_validator``: Extension point of the validator registry

Example::

    from genro_controllers import Controller, controller, get, query

    @controller("returns")
    class ReturnsController(Controller):
        @get("get-promise")
        @query("value", int)
        async def get_promise(self, value):
            return {"value": value}

    ReturnsController().register(host)
"""

__version__ = "0.1.0"

from .core import (
    AccessPolicy,
    ActionDescriptor,
    Controller,
    ControllerRegistrar,
    DispatchPipeline,
    HostInterface,
    Outcome,
    ParamSource,
    RegisteredRoute,
    RegistrationSettings,
    RequestInterface,
    ResponseInterface,
    Validator,
    ValidatorRegistry,
    action_descriptor,
    allow_anonymous,
    body,
    body_field,
    controller,
    default_registry,
    delete,
    get,
    head,
    options,
    path_param,
    permission,
    post,
    put,
    query,
    register_validator,
    req,
    res,
    route,
    shape_response,
    use,
    validator_for_model,
)
from .exceptions import (
    ClientInputError,
    ConfigurationError,
    ValidationMismatchError,
    WebError,
)

__all__ = [
    "AccessPolicy",
    "ActionDescriptor",
    "ClientInputError",
    "ConfigurationError",
    "Controller",
    "ControllerRegistrar",
    "DispatchPipeline",
    "HostInterface",
    "Outcome",
    "ParamSource",
    "RegisteredRoute",
    "RegistrationSettings",
    "RequestInterface",
    "ResponseInterface",
    "ValidationMismatchError",
    "Validator",
    "ValidatorRegistry",
    "WebError",
    "action_descriptor",
    "allow_anonymous",
    "body",
    "body_field",
    "controller",
    "default_registry",
    "delete",
    "get",
    "head",
    "options",
    "path_param",
    "permission",
    "post",
    "put",
    "query",
    "register_validator",
    "req",
    "res",
    "route",
    "shape_response",
    "use",
    "validator_for_model",
]
