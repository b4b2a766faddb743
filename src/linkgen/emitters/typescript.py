from __future__ import annotations

import json
from typing import Iterable, Sequence

from linkgen.config import GeneratorConfig
from linkgen.extractors.loco.handlers import importable_types
from linkgen.naming.case import CaseStyle, recase, sanitize_identifier
from linkgen.routes.paths import param_name
from linkgen.routes.specs import HttpMethod, RouteInfo

HEADER = "// @generated by linkgen. Do not edit by hand; changes are overwritten on the next build."

DEFAULT_RESPONSE_TYPE = "unknown"

_QUERY_IMPORTS = (
    'import { useMutation, useQuery, type UseMutationOptions, type UseQueryOptions } '
    'from "@tanstack/react-query";'
)

_RUNTIME = """\
export type HttpMethod = {methods};

export interface RouteDescriptor {
  url: string;
  method: HttpMethod;
}

// Error body returned by the server
export type RawApiError = {
  error: string;
  description: string;
};

export type ApiError<TDetails = unknown> = RawApiError & {
  details: TDetails;
};

export type BadRequestErrorDetails = {
  code: string;
  message: string;
};

export function isBadRequestError(error: unknown): error is ApiError<BadRequestErrorDetails> {
  if (typeof error !== "object" || error === null) return false;
  const e = error as Partial<ApiError<Partial<BadRequestErrorDetails>>>;
  return (
    e.error === "Bad Request" &&
    typeof e.details === "object" &&
    e.details !== null &&
    "code" in e.details &&
    "message" in e.details
  );
}

function toApiError(raw: RawApiError): ApiError {
  if (raw.error === "Bad Request" && raw.description) {
    try {
      return { ...raw, details: JSON.parse(raw.description) as BadRequestErrorDetails };
    } catch {
      return { ...raw, details: raw.description };
    }
  }
  return { ...raw, details: raw.description };
}

export interface ApiClientConfig {
  baseUrl?: string;
  getToken?: () => Promise<string | null>;
}

export interface SendOptions {
  body?: unknown;
  requiresAuth?: boolean;
  signal?: AbortSignal;
}

export class ApiClient {
  private baseUrl: string;
  private getToken?: () => Promise<string | null>;

  constructor(config: ApiClientConfig = {}) {
    this.baseUrl = config.baseUrl ?? "";
    this.getToken = config.getToken;
  }

  configure(config: ApiClientConfig): void {
    if (config.baseUrl !== undefined) this.baseUrl = config.baseUrl;
    if (config.getToken !== undefined) this.getToken = config.getToken;
  }

  async send<T>(route: RouteDescriptor, options: SendOptions = {}): Promise<T> {
    const headers = new Headers();
    if (options.body !== undefined) {
      headers.set("Content-Type", "application/json");
    }
    if (options.requiresAuth && this.getToken) {
      const token = await this.getToken();
      if (token) headers.set("Authorization", `Bearer ${token}`);
    }

    const response = await fetch(this.baseUrl + route.url, {
      method: route.method,
      headers,
      body: options.body !== undefined ? JSON.stringify(options.body) : undefined,
      signal: options.signal,
    });

    if (!response.ok) {
      const raw = (await response
        .json()
        .catch(() => ({ error: response.statusText, description: "" }))) as RawApiError;
      throw toApiError(raw);
    }
    if (response.status === 204) {
      return undefined as T;
    }
    return (await response.json()) as T;
  }
}

export const apiClient = new ApiClient();

export function configureApiClient(config: ApiClientConfig): void {
  apiClient.configure(config);
}
"""

INDENT = "  "


def function_name(route: RouteInfo) -> str:
    return sanitize_identifier(recase(route.variant_name, CaseStyle.CAMEL))


def type_base_name(route: RouteInfo) -> str:
    return sanitize_identifier(recase(route.variant_name, CaseStyle.PASCAL))


def params_type_name(route: RouteInfo) -> str:
    return f"{type_base_name(route)}Params"


def hook_name(route: RouteInfo) -> str:
    return f"use{type_base_name(route)}"


# top-level names the generated module imports or declares in its runtime
RESERVED_NAMES = frozenset(
    {
        "useQuery", "useMutation", "UseQueryOptions", "UseMutationOptions",
        "HttpMethod", "RouteDescriptor", "RawApiError", "ApiError", "BadRequestErrorDetails",
        "isBadRequestError", "toApiError", "ApiClientConfig", "SendOptions", "ApiClient",
        "apiClient", "configureApiClient", "client",
    }
)


def declared_names(route: RouteInfo) -> list[str]:
    """Top-level names a route adds to the generated module."""
    names = [hook_name(route)]
    if route.field_names:
        names.append(params_type_name(route))
    return names


def imported_type_names(routes: Iterable[RouteInfo]) -> set[str]:
    names: set[str] = set()
    for r in routes:
        for ts_type in (r.handler_info.body_type, r.handler_info.return_type):
            if ts_type:
                names.update(importable_types(ts_type))
    return names


def _url_expr(route: RouteInfo, params_var: str = "params") -> str:
    if not route.field_names:
        return json.dumps(route.final_path)
    by_param = {p.name: f for p, f in zip(route.parameters, route.field_names)}
    parts: list[str] = []
    for seg in route.final_path.split("/"):
        name = param_name(seg)
        if name is None:
            parts.append(seg.replace("`", "\\`"))
        else:
            parts.append("${encodeURIComponent(" + f"{params_var}.{by_param[name]}" + ")}")
    return "`" + "/".join(parts) + "`"


def _params_interface(route: RouteInfo) -> str:
    fields = "\n".join(f"{INDENT}{f}: string;" for f in route.field_names)
    return (
        f"/** Path parameters of `{route.method.value} {route.final_path}`. */\n"
        f"export interface {params_type_name(route)} {{\n{fields}\n}}"
    )


def _client_entry(route: RouteInfo) -> str:
    method = json.dumps(route.method.value)
    url = _url_expr(route)
    if route.field_names:
        signature = f"(params: {params_type_name(route)})"
    else:
        signature = "()"
    return f"{INDENT}{function_name(route)}: {signature}: RouteDescriptor => ({{ url: {url}, method: {method} }}),"


def _hook(route: RouteInfo) -> str:
    info = route.handler_info
    result = info.return_type or DEFAULT_RESPONSE_TYPE
    auth = "true" if info.requires_auth else "false"
    fn = function_name(route)
    name = hook_name(route)
    has_params = bool(route.field_names)
    params_type = params_type_name(route)

    if route.method.is_query:
        key = json.dumps(route.variant_name)
        if has_params:
            args = f"params: {params_type}, "
            query_key = f"[{key}, params] as const"
            descriptor = f"client.{fn}(params)"
        else:
            args = ""
            query_key = f"[{key}] as const"
            descriptor = f"client.{fn}()"
        return "\n".join(
            [
                f"export function {name}(",
                f"{INDENT}{args}options?: Omit<UseQueryOptions<{result}, ApiError>, \"queryKey\" | \"queryFn\">,",
                ") {",
                f"{INDENT}return useQuery<{result}, ApiError>({{",
                f"{INDENT * 2}queryKey: {query_key},",
                f"{INDENT * 2}queryFn: ({{ signal }}) => apiClient.send<{result}>({descriptor}, {{ requiresAuth: {auth}, signal }}),",
                f"{INDENT * 2}...options,",
                f"{INDENT}}});",
                "}",
            ]
        )

    body = info.body_type
    if has_params and body:
        variables = f"{{ params: {params_type}; body: {body} }}"
        call = f"(input: {variables}) => apiClient.send<{result}>(client.{fn}(input.params), {{ body: input.body, requiresAuth: {auth} }})"
    elif has_params:
        variables = f"{{ params: {params_type} }}"
        call = f"(input: {variables}) => apiClient.send<{result}>(client.{fn}(input.params), {{ requiresAuth: {auth} }})"
    elif body:
        variables = body
        call = f"(body: {body}) => apiClient.send<{result}>(client.{fn}(), {{ body, requiresAuth: {auth} }})"
    else:
        variables = "void"
        call = f"() => apiClient.send<{result}>(client.{fn}(), {{ requiresAuth: {auth} }})"

    return "\n".join(
        [
            f"export function {name}(",
            f"{INDENT}options?: Omit<UseMutationOptions<{result}, ApiError, {variables}>, \"mutationFn\">,",
            ") {",
            f"{INDENT}return useMutation<{result}, ApiError, {variables}>({{",
            f"{INDENT * 2}mutationFn: {call},",
            f"{INDENT * 2}...options,",
            f"{INDENT}}});",
            "}",
        ]
    )


def _type_imports(routes: Sequence[RouteInfo], config: GeneratorConfig) -> list[str]:
    names = imported_type_names(routes)
    base = config.typescript_bindings_import.rstrip("/")
    return [f'import type {{ {n} }} from "{base}/{n}";' for n in sorted(names)]


def generate_typescript(routes: Sequence[RouteInfo], config: GeneratorConfig) -> str:
    """
    Render the TypeScript client: parameter types, a `client` object returning
    `{ url, method }` descriptors, a fetch-based `apiClient` and one TanStack
    Query hook per route (useQuery for GET/HEAD/OPTIONS, useMutation otherwise).

    Every name is derived from the route's canonical variant_name and
    field_names, the same values the Rust enum uses.
    """
    ordered = sorted(routes, key=lambda r: r.source_order_index)
    methods = " | ".join(json.dumps(m.value) for m in HttpMethod)

    sections: list[str] = [HEADER + "\n/* eslint-disable */"]
    sections.append("\n".join([_QUERY_IMPORTS, *_type_imports(ordered, config)]))
    sections.append(_RUNTIME.replace("{methods}", methods).rstrip("\n"))

    interfaces = [_params_interface(r) for r in ordered if r.field_names]
    if interfaces:
        sections.append("\n\n".join(interfaces))

    entries = "\n".join(_client_entry(r) for r in ordered)
    sections.append(f"export const client = {{\n{entries}\n}};" if entries else "export const client = {};")

    hooks = [_hook(r) for r in ordered]
    if hooks:
        sections.append("\n\n".join(hooks))

    return "\n\n".join(sections) + "\n"
