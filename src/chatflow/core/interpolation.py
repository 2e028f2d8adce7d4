"""Placeholder interpolation for outbound text.

Templates reference values with ``{{key}}`` tokens. Keys match
case-insensitively and resolve, in order of precedence, against:

1. session variables of the execution
2. contact built-ins (``name``/``nome``, ``email``, ``phone``/``telefone``,
   ``first_name``/``primeiro_nome``)
3. contact custom fields, also reachable as ``contato_<field>``

Tokens that resolve to nothing are removed so they never reach a contact.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

from chatflow.core.state import Contact

_TOKEN_RE = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")
_LEFTOVER_RE = re.compile(r"\{\{[^}]*\}\}")


def build_scope(
    variables: Mapping[str, Any] | None,
    contact: Contact | None = None,
) -> dict[str, Any]:
    """Build the lookup table used to resolve tokens.

    Keys are lower-cased; later layers override earlier ones so that session
    variables always win.
    """
    scope: dict[str, Any] = {}

    if contact is not None:
        for field, value in contact.custom_fields.items():
            scope[field.lower()] = value
            scope[f"contato_{field}".lower()] = value

        name = contact.name or ""
        first_name = name.split(" ")[0] if name else ""
        scope.update(
            {
                "name": name,
                "nome": name,
                "email": contact.email or "",
                "phone": contact.phone or "",
                "telefone": contact.phone or "",
                "first_name": first_name,
                "primeiro_nome": first_name,
            }
        )

    for key, value in (variables or {}).items():
        scope[str(key).lower()] = value

    return scope


def to_text(value: Any) -> str:
    """Render a variable value as message text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def interpolate(
    template: str | None,
    variables: Mapping[str, Any] | None,
    contact: Contact | None = None,
) -> str:
    """Resolve ``{{key}}`` tokens in a template.

    Args:
        template: Text authored in the graph
        variables: Session variables of the execution
        contact: Contact snapshot for built-in fields

    Returns:
        Interpolated text, trimmed, with unresolved tokens removed.

    Examples:
        >>> interpolate("Olá {{NOME}}!", {}, Contact(id="c1", name="Ana Lima"))
        'Olá Ana Lima!'
        >>> interpolate("Pedido {{order}} {{missing}}", {"order": 42})
        'Pedido 42'
    """
    if not template:
        return ""

    scope = build_scope(variables, contact)

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1).lower()
        return to_text(scope.get(key))

    result = _TOKEN_RE.sub(_replace, template)
    result = _LEFTOVER_RE.sub("", result)
    return result.strip()
