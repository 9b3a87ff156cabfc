"""
Security scheme descriptors and validation.

A scheme is accepted only when its ``type`` belongs to the closed AsyncAPI
set and its type-specific parameters are well formed: API key locations,
IANA-registered HTTP auth schemes, OAuth2 flow URLs and so on.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

SECURITY_SCHEME_TYPES = (
    "userPassword",
    "apiKey",
    "X509",
    "symmetricEncryption",
    "asymmetricEncryption",
    "httpApiKey",
    "http",
    "oauth2",
    "openIdConnect",
    "plain",
    "scramSha256",
    "scramSha512",
    "gssapi",
)

SCOPED_SCHEME_TYPES = ("oauth2", "openIdConnect")

API_KEY_LOCATIONS = ("user", "password")
HTTP_API_KEY_LOCATIONS = ("query", "header", "cookie")

# IANA HTTP Authentication Scheme Registry
HTTP_SCHEMES = (
    "basic",
    "bearer",
    "digest",
    "dpop",
    "gnap",
    "hoba",
    "mutual",
    "negotiate",
    "oauth",
    "privatetoken",
    "scram-sha-1",
    "scram-sha-256",
    "vapid",
)

OAUTH_FLOW_REQUIREMENTS: Dict[str, tuple] = {
    "implicit": ("authorizationUrl",),
    "password": ("tokenUrl",),
    "clientCredentials": ("tokenUrl",),
    "authorizationCode": ("authorizationUrl", "tokenUrl"),
}

_URL = re.compile(r"^https?://.+")
_URL_FIELDS = ("authorizationUrl", "tokenUrl", "refreshUrl")


@dataclass
class SchemeValidation:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class SecuritySchemeDescriptor:
    """A named authentication mechanism ready for ``components.securitySchemes``."""

    name: str
    type: str
    description: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_asyncapi(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.description:
            data["description"] = self.description
        data.update(self.parameters)
        return data


def validate_security_scheme(scheme: Mapping[str, Any]) -> SchemeValidation:
    """Check a raw scheme mapping against the rules for its type."""

    result = SchemeValidation()
    scheme_type = scheme.get("type")
    if not scheme_type:
        result.errors.append("Security scheme type is required")
        return result
    if scheme_type not in SECURITY_SCHEME_TYPES:
        result.errors.append(
            f"Security scheme type must be one of: {', '.join(SECURITY_SCHEME_TYPES)}"
        )
        return result

    if scheme_type == "apiKey":
        _check_location(scheme, API_KEY_LOCATIONS, result)
    elif scheme_type == "httpApiKey":
        if not scheme.get("name"):
            result.errors.append("httpApiKey scheme requires a 'name'")
        _check_location(scheme, HTTP_API_KEY_LOCATIONS, result)
    elif scheme_type == "http":
        _check_http(scheme, result)
    elif scheme_type == "oauth2":
        _check_oauth2(scheme, result)
    elif scheme_type == "openIdConnect":
        url = scheme.get("openIdConnectUrl")
        if not url:
            result.errors.append("openIdConnect scheme requires 'openIdConnectUrl'")
        elif not _URL.match(str(url)):
            result.errors.append("openIdConnectUrl must be an http(s) URL")
    return result


def _check_location(scheme: Mapping[str, Any], allowed: tuple, result: SchemeValidation) -> None:
    location = scheme.get("in")
    if location is None:
        result.errors.append(f"{scheme['type']} scheme requires 'in'")
    elif location not in allowed:
        result.errors.append(f"'in' must be one of: {', '.join(allowed)}")


def _check_http(scheme: Mapping[str, Any], result: SchemeValidation) -> None:
    http_scheme = scheme.get("scheme")
    if not http_scheme:
        result.errors.append("http scheme requires 'scheme'")
        return
    if str(http_scheme).lower() not in HTTP_SCHEMES:
        result.errors.append(
            f"HTTP scheme '{http_scheme}' is not a registered authentication scheme"
        )
        return
    if str(http_scheme).lower() == "bearer" and not scheme.get("bearerFormat"):
        result.warnings.append("Bearer scheme should declare 'bearerFormat' (for example JWT)")


def _check_oauth2(scheme: Mapping[str, Any], result: SchemeValidation) -> None:
    flows = scheme.get("flows")
    if not isinstance(flows, Mapping) or not flows:
        result.errors.append("OAuth2 scheme must define at least one flow")
        return
    for flow_name, flow in flows.items():
        required = OAUTH_FLOW_REQUIREMENTS.get(flow_name)
        if required is None:
            result.errors.append(
                f"Unknown OAuth2 flow '{flow_name}'. Valid flows: {', '.join(OAUTH_FLOW_REQUIREMENTS)}"
            )
            continue
        if not isinstance(flow, Mapping):
            result.errors.append(f"OAuth2 flow '{flow_name}' must be an object")
            continue
        for url_field in required:
            if not flow.get(url_field):
                result.errors.append(f"OAuth2 {flow_name} flow requires '{url_field}'")
        for url_field in _URL_FIELDS:
            value = flow.get(url_field)
            if value and not _URL.match(str(value)):
                result.errors.append(f"OAuth2 {flow_name} flow '{url_field}' must be an http(s) URL")
        scopes = flow.get("availableScopes")
        if scopes is not None and not isinstance(scopes, Mapping):
            result.errors.append(f"OAuth2 {flow_name} flow 'availableScopes' must be a mapping")


def build_security_scheme(name: str, scheme: Mapping[str, Any]) -> SecuritySchemeDescriptor:
    """Create a descriptor from a raw scheme mapping. Validate first."""

    parameters = {k: v for k, v in scheme.items() if k not in ("type", "description")}
    return SecuritySchemeDescriptor(
        name=name,
        type=str(scheme.get("type")),
        description=scheme.get("description"),
        parameters=parameters,
    )


__all__ = [
    "API_KEY_LOCATIONS",
    "HTTP_API_KEY_LOCATIONS",
    "HTTP_SCHEMES",
    "OAUTH_FLOW_REQUIREMENTS",
    "SCOPED_SCHEME_TYPES",
    "SECURITY_SCHEME_TYPES",
    "SchemeValidation",
    "SecuritySchemeDescriptor",
    "build_security_scheme",
    "validate_security_scheme",
]
