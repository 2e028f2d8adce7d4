"""Tests for menu rendering, option matching and MenuProcessor."""

import pytest

from chatflow.core.constants import DEFAULT_MENU_FALLBACK, DEFAULT_MENU_TITLE
from chatflow.graph.models import MenuOption
from chatflow.nodes.base import Outcome
from chatflow.nodes.menu import MenuProcessor, match_option, render_menu

OPTIONS = [
    MenuOption(id="opt_sales", label="Vendas", value="sales"),
    MenuOption(id="opt_support", label="Suporte Técnico", value="support"),
]

MENU_DATA = {
    "title": "Olá {{primeiro_nome}}, escolha:",
    "variableName": "topic",
    "options": [option.model_dump(by_alias=True) for option in OPTIONS],
}


@pytest.fixture
def menu_graph(build_graph):
    return build_graph(
        [("start", "start"), ("menu", "menu", MENU_DATA), ("sales", "end"), ("other", "end")],
        [("start", "menu"), ("menu", "sales", "sales"), ("menu", "other")],
    )


class TestRenderMenu:
    def test_numbered_lines_after_blank_line(self):
        assert render_menu("Escolha:", OPTIONS) == "Escolha:\n\n1. Vendas\n2. Suporte Técnico"


class TestMatchOption:
    @pytest.mark.parametrize("raw", ["2", "support", "SUPPORT", "suporte técnico", "opt_support"])
    def test_matches_index_value_label_and_id(self, raw):
        assert match_option(OPTIONS, raw).value == "support"

    def test_input_is_trimmed(self):
        assert match_option(OPTIONS, "  1  ").value == "sales"

    @pytest.mark.parametrize("raw", ["", "   ", "3", "0", "vendas!"])
    def test_no_match(self, raw):
        assert match_option(OPTIONS, raw) is None

    def test_first_matching_option_wins(self):
        """An option whose value looks like an index shadows the later option."""
        options = [
            MenuOption(id="a", label="A", value="2"),
            MenuOption(id="b", label="B", value="b"),
        ]

        assert match_option(options, "2").id == "a"


class TestMenuProcessor:
    """Tests for MenuProcessor."""

    @pytest.mark.asyncio
    async def test_first_phase_sends_menu_and_waits(self, menu_graph, node_context, channel):
        node = menu_graph.get_node("menu")

        result = await MenuProcessor().process(node, node_context(menu_graph))

        assert result.outcome is Outcome.WAIT
        assert result.next_node_id == "menu"
        assert result.messages_sent == 1
        assert channel.texts() == ["Olá Ana, escolha:\n\n1. Vendas\n2. Suporte Técnico"]

    @pytest.mark.asyncio
    async def test_default_title(self, build_graph, node_context, channel):
        graph = build_graph([("menu", "menu", {"options": [{"label": "Sim", "value": "s"}]})])

        await MenuProcessor().process(graph.get_node("menu"), node_context(graph))

        assert channel.texts()[0].startswith(DEFAULT_MENU_TITLE)

    @pytest.mark.asyncio
    async def test_selection_routes_by_value_and_stores_it(self, menu_graph, node_context):
        node = menu_graph.get_node("menu")

        result = await MenuProcessor().process(node, node_context(menu_graph, user_input="1"))

        assert result.outcome is Outcome.CONTINUE
        assert result.next_node_id == "sales"
        assert result.variables == {"topic": "sales"}
        assert result.log.details == {"selected": "sales"}

    @pytest.mark.asyncio
    async def test_selection_without_handle_takes_default_edge(self, menu_graph, node_context):
        node = menu_graph.get_node("menu")

        result = await MenuProcessor().process(
            node, node_context(menu_graph, user_input="Suporte técnico")
        )

        assert result.next_node_id == "other"
        assert result.variables["topic"] == "support"

    @pytest.mark.asyncio
    async def test_invalid_selection_resends_fallback(self, menu_graph, node_context, channel):
        node = menu_graph.get_node("menu")

        result = await MenuProcessor().process(node, node_context(menu_graph, user_input="9"))

        assert result.outcome is Outcome.WAIT
        assert result.next_node_id == "menu"
        assert result.variables is None
        assert channel.texts() == [DEFAULT_MENU_FALLBACK]

    @pytest.mark.asyncio
    async def test_graph_fallback_message_overrides_default(
        self, build_graph, node_context, channel
    ):
        graph = build_graph(
            [("menu", "menu", MENU_DATA)],
            settings={"defaultFallbackMessage": "Não entendi."},
        )

        await MenuProcessor().process(graph.get_node("menu"), node_context(graph, user_input="x"))

        assert channel.texts() == ["Não entendi."]

    @pytest.mark.asyncio
    async def test_default_selection_variable(self, build_graph, node_context):
        graph = build_graph([("menu", "menu", {"options": [{"label": "Sim", "value": "s"}]})])

        result = await MenuProcessor().process(
            graph.get_node("menu"), node_context(graph, user_input="sim")
        )

        assert result.variables == {"menu_selection": "s"}
