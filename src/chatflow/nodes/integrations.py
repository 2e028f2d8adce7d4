"""Nodes that call external systems: api_call, webhook and tag_contact.

All three always advance. Failures are captured into session variables or
the execution log and never abort the turn.
"""

import logging
from typing import Any

from chatflow.core.errors import GatewayError
from chatflow.core.state import utcnow
from chatflow.graph.models import ApiCallData, Node, TagContactData, WebhookData
from chatflow.nodes.base import NodeContext, NodeResult, advance, step

logger = logging.getLogger(__name__)

API_RESPONSE_VARIABLE = "api_response"
API_ERROR_VARIABLE = "api_error"

JSON_HEADERS = {"Content-Type": "application/json"}


def render_headers(ctx: NodeContext, headers: dict[str, str]) -> dict[str, str]:
    """JSON content type unless overridden, with interpolated values."""
    return {**JSON_HEADERS, **{key: ctx.render(value) for key, value in headers.items()}}


class ApiCallProcessor:
    """Call an HTTP API and expose its JSON response as ``api_response``."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(ApiCallData)
        url = ctx.render(data.url)
        method = (data.method or "GET").upper()
        headers = render_headers(ctx, data.headers)
        body = ctx.render(data.body) if data.body and method != "GET" else None

        def failed(error: str, **details: Any) -> NodeResult:
            variables = {**ctx.variables, API_ERROR_VARIABLE: error}
            log = step(node, url=url, method=method, error=error, **details)
            return advance(ctx, node, log, variables=variables)

        if not url:
            return failed("API call has no url")

        try:
            response = await ctx.gateway.http_request(method, url, headers=headers, content=body)
        except GatewayError as e:
            logger.info(f"API call from node {node.id} failed: {e}")
            return failed(e.message)

        if not response.ok:
            return failed(f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            return failed(f"Invalid JSON response: {e}", status_code=response.status_code)

        variables = {
            key: value for key, value in ctx.variables.items() if key != API_ERROR_VARIABLE
        }
        variables[API_RESPONSE_VARIABLE] = payload
        log = step(node, url=url, method=method, status_code=response.status_code)
        return advance(ctx, node, log, variables=variables)


def webhook_payload(ctx: NodeContext) -> dict[str, Any]:
    """JSON body posted by webhook nodes."""
    execution = ctx.execution
    contact = execution.contact
    return {
        "contact": {
            "id": contact.id,
            "name": contact.name,
            "phone": contact.phone,
            "email": contact.email,
        },
        "conversation_id": execution.conversation_id,
        "graph_id": execution.graph_id,
        "execution_id": execution.id,
        "variables": ctx.variables,
        "timestamp": utcnow().isoformat(),
    }


class WebhookProcessor:
    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(WebhookData)
        url = ctx.render(data.url)
        method = (data.method or "POST").upper()
        if not url:
            return advance(ctx, node, step(node, error="Webhook has no url"))

        headers = render_headers(ctx, data.headers)
        try:
            response = await ctx.gateway.http_request(
                method, url, headers=headers, json=webhook_payload(ctx)
            )
        except GatewayError as e:
            logger.info(f"Webhook from node {node.id} failed: {e}")
            return advance(ctx, node, step(node, webhook_url=url, error=e.message))

        details: dict[str, Any] = {"webhook_url": url, "status_code": response.status_code}
        if not response.ok:
            details["error"] = f"HTTP {response.status_code}"
        return advance(ctx, node, step(node, **details))


class TagContactProcessor:
    """Attach a company tag to the contact (created on first use)."""

    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        tag_name = ctx.render(node.parse_data(TagContactData).resolved_tag_name)
        if not tag_name:
            return advance(ctx, node, step(node, tag=None))

        execution = ctx.execution
        try:
            await ctx.gateway.tag_contact(execution.company_id, execution.contact.id, tag_name)
        except GatewayError as e:
            logger.info(f"Tagging from node {node.id} failed: {e}")
            return advance(ctx, node, step(node, tag=tag_name, error=e.message))
        return advance(ctx, node, step(node, tag=tag_name))
