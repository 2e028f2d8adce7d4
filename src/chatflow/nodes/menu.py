"""Menu nodes: numbered options and selection matching."""

from collections.abc import Sequence

from chatflow.core.constants import DEFAULT_MENU_FALLBACK, DEFAULT_MENU_TITLE
from chatflow.graph.models import MenuData, MenuOption, Node
from chatflow.nodes.base import NodeContext, NodeResult, advance, step, wait

DEFAULT_SELECTION_VARIABLE = "menu_selection"


def render_menu(title: str, options: Sequence[MenuOption]) -> str:
    """Title, a blank line, then one ``N. label`` line per option.

    Examples:
        >>> render_menu("Pick", [MenuOption(id="a", label="Sales", value="sales")])
        'Pick\\n\\n1. Sales'
    """
    lines = [f"{index}. {option.label}" for index, option in enumerate(options, start=1)]
    return f"{title}\n\n" + "\n".join(lines)


def match_option(options: Sequence[MenuOption], raw_input: str) -> MenuOption | None:
    """Find the option selected by ``raw_input``.

    The trimmed, case-insensitive input is compared against each option in
    order: its 1-based position, ``value``, ``label`` and ``id``. The first
    option matching any of them wins.
    """
    choice = raw_input.strip().lower()
    if not choice:
        return None
    for index, option in enumerate(options, start=1):
        candidates = (str(index), option.value.lower(), option.label.lower(), option.id.lower())
        if choice in candidates:
            return option
    return None


class MenuProcessor:
    async def process(self, node: Node, ctx: NodeContext) -> NodeResult:
        data = node.parse_data(MenuData)

        if ctx.user_input is None:
            title = ctx.render(data.title or DEFAULT_MENU_TITLE)
            delivered = await ctx.send(render_menu(title, data.options))
            return wait(node, step(node, menu=title, delivered=delivered), messages_sent=1)

        selected = match_option(data.options, ctx.user_input)
        if selected is None:
            fallback = ctx.graph.settings.default_fallback_message or DEFAULT_MENU_FALLBACK
            delivered = await ctx.send(fallback)
            log = step(node, invalid_selection=ctx.user_input, delivered=delivered)
            return wait(node, log, messages_sent=1)

        variables = {
            **ctx.variables,
            data.variable_name or DEFAULT_SELECTION_VARIABLE: selected.value,
        }
        log = step(node, selected=selected.value)
        return advance(ctx, node, log, branch=selected.value, variables=variables)
