"""Core runtime aggregator for Genro Controllers.

Exposes the building blocks from a single module: descriptors and the
decorators that fill them, the validator registry, the binder compiler, the
dispatch pipeline and the registrar.

Importing this module performs only imports; it registers nothing on a host.
"""

from .binders import compile_binders
from .controller import Controller
from .decorators import (
    allow_anonymous,
    body,
    body_field,
    controller,
    delete,
    get,
    head,
    options,
    path_param,
    permission,
    post,
    put,
    query,
    req,
    res,
    route,
    use,
)
from .descriptors import (
    ActionDescriptor,
    ControllerDescriptor,
    ParamBinding,
    ParamSource,
    action_descriptor,
    controller_descriptor,
)
from .dispatch import DispatchPipeline, Outcome, shape_response
from .host import HostInterface, RequestInterface, ResponseInterface
from .registrar import (
    AccessPolicy,
    ControllerRegistrar,
    RegisteredRoute,
    RegistrationSettings,
)
from .validators import (
    Validator,
    ValidatorRegistry,
    default_registry,
    register_validator,
    validator_for_model,
)

__all__ = [
    "AccessPolicy",
    "ActionDescriptor",
    "Controller",
    "ControllerDescriptor",
    "ControllerRegistrar",
    "DispatchPipeline",
    "HostInterface",
    "Outcome",
    "ParamBinding",
    "ParamSource",
    "RegisteredRoute",
    "RegistrationSettings",
    "RequestInterface",
    "ResponseInterface",
    "Validator",
    "ValidatorRegistry",
    "action_descriptor",
    "allow_anonymous",
    "body",
    "body_field",
    "compile_binders",
    "controller",
    "controller_descriptor",
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
