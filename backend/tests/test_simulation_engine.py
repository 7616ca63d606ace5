"""Unit tests for the Circuit Simulation Engine."""

import logging

import pytest

from circuitflow.catalog import ELECTRICAL_REGISTRY
from circuitflow.definitions import battery
from circuitflow.schemas.circuit import CircuitEdge, CircuitNode
from circuitflow.simulation.engine import (
    SOURCE_MINUS,
    SOURCE_PLUS,
    build_circuit_graph,
    build_wire_graph,
    find_connected_components,
    partition_edges,
    run_simulation,
    simulate_circuit,
    trace_completed_paths,
)
from circuitflow.simulation.types import (
    ElectricalDefinition,
    HandleRef,
    no_internal_edges,
)


# ─── Fixtures ───


def _battery(node_id: str = "BAT1") -> CircuitNode:
    return CircuitNode(id=node_id, type="battery", data={"label": "Battery", "voltage": 5})


def _led(node_id: str = "LED1", **data) -> CircuitNode:
    return CircuitNode(
        id=node_id, type="led", data={"label": "LED", "isPowered": False, **data}
    )


def _button(node_id: str = "BTN1", closed: bool = False) -> CircuitNode:
    return CircuitNode(
        id=node_id, type="button", data={"label": "Button", "isClosed": closed}
    )


def _node(node_id: str, node_type: str, **data) -> CircuitNode:
    return CircuitNode(id=node_id, type=node_type, data={"label": node_type, **data})


def _wire(src: str, src_handle: str, tgt: str, tgt_handle: str) -> CircuitEdge:
    return CircuitEdge(
        id=f"e_{src}_{src_handle}_{tgt}_{tgt_handle}",
        source=src,
        source_handle=src_handle,
        target=tgt,
        target_handle=tgt_handle,
    )


def _button_circuit(closed: bool):
    """battery+ → button → LED → battery-"""
    nodes = [_battery(), _button(closed=closed), _led()]
    edges = [
        _wire("BAT1", "plus", "BTN1", "in"),
        _wire("BTN1", "out", "LED1", "anode"),
        _wire("LED1", "cathode", "BAT1", "minus"),
    ]
    return nodes, edges


def _by_id(nodes: list[CircuitNode]) -> dict[str, CircuitNode]:
    return {n.id: n for n in nodes}


# ═══════════════════════════════════════════════════════════
# Connectivity Partitioner
# ═══════════════════════════════════════════════════════════


class TestConnectedComponents:
    def test_isolated_nodes_are_singletons(self):
        nodes = [_battery(), _led(), _button()]
        components = find_connected_components(nodes, [])
        assert sorted(map(sorted, components)) == [["BAT1"], ["BTN1"], ["LED1"]]

    def test_wired_nodes_share_a_component(self):
        nodes, edges = _button_circuit(closed=False)
        components = find_connected_components(nodes, edges)
        assert components == [{"BAT1", "BTN1", "LED1"}]

    def test_direction_and_handles_are_ignored(self):
        nodes = [_battery(), _led()]
        edges = [_wire("LED1", "cathode", "BAT1", "plus")]
        assert find_connected_components(nodes, edges) == [{"BAT1", "LED1"}]

    def test_two_clusters(self):
        nodes = [_battery("B1"), _led("L1"), _battery("B2"), _led("L2")]
        edges = [
            _wire("B1", "plus", "L1", "anode"),
            _wire("B2", "plus", "L2", "anode"),
        ]
        components = find_connected_components(nodes, edges)
        assert len(components) == 2
        assert {"B1", "L1"} in components
        assert {"B2", "L2"} in components

    def test_every_node_in_exactly_one_component(self):
        nodes = [_node(f"N{i}", "led") for i in range(6)]
        edges = [
            _wire("N0", "anode", "N1", "cathode"),
            _wire("N1", "anode", "N2", "cathode"),
            _wire("N2", "anode", "N0", "cathode"),
            _wire("N4", "anode", "N5", "anode"),
        ]
        components = find_connected_components(nodes, edges)
        seen = [node_id for component in components for node_id in component]
        assert sorted(seen) == sorted(n.id for n in nodes)

    def test_dangling_edge_is_ignored(self):
        nodes = [_battery()]
        edges = [_wire("BAT1", "plus", "GHOST", "anode")]
        assert find_connected_components(nodes, edges) == [{"BAT1"}]

    def test_edges_bucketed_by_partition(self):
        partitions = [{"B1", "L1"}, {"B2", "L2"}, {"X"}]
        first = _wire("B1", "plus", "L1", "anode")
        second = _wire("L2", "cathode", "B2", "minus")
        dangling = _wire("B1", "minus", "GHOST", "anode")

        buckets = partition_edges(partitions, [second, dangling, first])
        assert buckets == [[first], [second], []]


# ═══════════════════════════════════════════════════════════
# Path Tracer
# ═══════════════════════════════════════════════════════════


class TestPathTracer:
    def test_wire_graph_is_bidirectional(self):
        graph = build_wire_graph([_wire("A", "x", "B", "y")])
        assert graph["A:x"] == [HandleRef("B", "y")]
        assert graph["B:y"] == [HandleRef("A", "x")]

    def test_missing_handle_is_empty_string(self):
        edge = CircuitEdge(id="e1", source="A", target="B")
        graph = build_wire_graph([edge])
        assert "A:" in graph and "B:" in graph

    def test_internal_edges_are_directed(self):
        graph = build_circuit_graph([_led()], [], ELECTRICAL_REGISTRY)
        assert graph["LED1:anode"] == [HandleRef("LED1", "cathode")]
        assert "LED1:cathode" not in graph

    def test_trace_simple_loop(self):
        graph = {
            "B:plus": [HandleRef("X", "in")],
            "X:in": [HandleRef("B", "plus"), HandleRef("X", "out")],
            "X:out": [HandleRef("B", "minus")],
        }
        assert trace_completed_paths(graph, "B") == {"B", "X"}

    def test_no_loop_contributes_nothing(self):
        graph = {"B:plus": [HandleRef("X", "in")], "X:in": [HandleRef("B", "plus")]}
        assert trace_completed_paths(graph, "B") == set()

    def test_loop_must_return_to_same_source(self):
        graph = {
            "B1:plus": [HandleRef("X", "in")],
            "X:in": [HandleRef("X", "out")],
            "X:out": [HandleRef("B2", "minus")],
        }
        assert trace_completed_paths(graph, "B1") == set()

    def test_source_terminals_match_battery_handles(self):
        assert (SOURCE_PLUS, SOURCE_MINUS) == (battery.PLUS, battery.MINUS)

    def test_converging_branches_keep_first_arrival(self):
        """Branches meeting before minus only record the first to arrive."""
        nodes = [_battery(), _led("L1"), _led("L2"), _button("S", closed=True)]
        edges = [
            _wire("BAT1", "plus", "L1", "anode"),
            _wire("BAT1", "plus", "L2", "anode"),
            _wire("L1", "cathode", "S", "in"),
            _wire("L2", "cathode", "S", "in"),
            _wire("S", "out", "BAT1", "minus"),
        ]
        result = run_simulation(nodes, edges)
        assert result.completed_paths == {"BAT1", "L1", "S"}

    def test_cycles_terminate(self):
        graph = {
            "B:plus": [HandleRef("X", "a")],
            "X:a": [HandleRef("Y", "a"), HandleRef("B", "plus")],
            "Y:a": [HandleRef("X", "a"), HandleRef("Z", "a")],
            "Z:a": [HandleRef("X", "a"), HandleRef("Y", "a")],
        }
        assert trace_completed_paths(graph, "B") == set()


# ═══════════════════════════════════════════════════════════
# Full simulation pass
# ═══════════════════════════════════════════════════════════


class TestSimulateCircuit:
    def test_closed_button_powers_led(self):
        nodes, edges = _button_circuit(closed=True)
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["LED1"].data["isPowered"] is True

    def test_opening_button_unpowers_led_only(self):
        nodes, edges = _button_circuit(closed=True)
        powered = simulate_circuit(nodes, edges)

        opened = [
            n.model_copy(update={"data": {**n.data, "isClosed": False}})
            if n.id == "BTN1"
            else n
            for n in powered
        ]
        result = simulate_circuit(opened, edges)

        assert result is not opened
        by_id = _by_id(result)
        assert by_id["LED1"].data["isPowered"] is False
        assert by_id["BAT1"] is opened[0]
        assert by_id["BTN1"] is opened[1]
        assert by_id["BTN1"].data == {"label": "Button", "isClosed": False}

    def test_open_button_leaves_led_off_and_returns_same_list(self):
        nodes, edges = _button_circuit(closed=False)
        assert simulate_circuit(nodes, edges) is nodes

    def test_idempotent(self):
        nodes, edges = _button_circuit(closed=True)
        first = simulate_circuit(nodes, edges)
        second = simulate_circuit(first, edges)
        assert second is first
        assert all(a is b for a, b in zip(first, second))

    def test_single_leg_never_powers_led(self):
        nodes = [_battery(), _led()]
        edges = [_wire("BAT1", "plus", "LED1", "anode")]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["LED1"].data["isPowered"] is False

    def test_reversed_led_stays_off(self):
        nodes = [_battery(), _led()]
        edges = [
            _wire("BAT1", "plus", "LED1", "cathode"),
            _wire("LED1", "anode", "BAT1", "minus"),
        ]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["LED1"].data["isPowered"] is False

    def test_disjoint_clusters_simulate_independently(self):
        nodes = [_battery("B1"), _led("L1"), _battery("B2"), _led("L2")]
        edges = [
            _wire("B1", "plus", "L1", "anode"),
            _wire("L1", "cathode", "B1", "minus"),
            # Second cluster: only one leg wired
            _wire("B2", "plus", "L2", "anode"),
        ]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["L1"].data["isPowered"] is True
        assert result["L2"].data["isPowered"] is False

    def test_parallel_branches_all_powered(self):
        nodes = [_battery(), _led("L1"), _led("L2")]
        edges = [
            _wire("BAT1", "plus", "L1", "anode"),
            _wire("BAT1", "plus", "L2", "anode"),
            _wire("L1", "cathode", "BAT1", "minus"),
            _wire("L2", "cathode", "BAT1", "minus"),
        ]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["L1"].data["isPowered"] is True
        assert result["L2"].data["isPowered"] is True

    def test_series_leds_powered(self):
        nodes = [_battery(), _led("L1"), _led("L2")]
        edges = [
            _wire("BAT1", "plus", "L1", "anode"),
            _wire("L1", "cathode", "L2", "anode"),
            _wire("L2", "cathode", "BAT1", "minus"),
        ]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["L1"].data["isPowered"] is True
        assert result["L2"].data["isPowered"] is True

    def test_led_off_loop_not_powered(self):
        """An LED hanging off a live rail by one leg is not on the loop."""
        nodes = [_battery(), _led("L1"), _led("L2")]
        edges = [
            _wire("BAT1", "plus", "L1", "anode"),
            _wire("L1", "cathode", "BAT1", "minus"),
            _wire("L2", "anode", "BAT1", "plus"),
        ]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["L1"].data["isPowered"] is True
        assert result["L2"].data["isPowered"] is False

    def test_cyclic_wiring_terminates(self):
        nodes = [
            _battery(),
            _button("S1", closed=True),
            _button("S2", closed=True),
            _led(),
        ]
        edges = [
            _wire("BAT1", "plus", "S1", "in"),
            _wire("S1", "out", "S2", "in"),
            _wire("S2", "out", "S1", "in"),
            _wire("S1", "out", "LED1", "anode"),
            _wire("LED1", "cathode", "BAT1", "minus"),
        ]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["LED1"].data["isPowered"] is True

    def test_second_source_in_partition(self):
        nodes = [_battery("B1"), _battery("B2"), _led()]
        edges = [
            _wire("B1", "plus", "LED1", "anode"),
            _wire("LED1", "cathode", "B1", "minus"),
            _wire("B2", "plus", "LED1", "anode"),
        ]
        result = run_simulation(nodes, edges)
        assert _by_id(result.nodes)["LED1"].data["isPowered"] is True
        assert "B2" not in result.completed_paths

    def test_batteries_never_derive_state(self):
        nodes, edges = _button_circuit(closed=True)
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["BAT1"] is nodes[0]
        assert "isPowered" not in result["BAT1"].data

    def test_missing_field_counts_as_change(self):
        led = CircuitNode(id="LED1", type="led", data={"label": "LED"})
        result = simulate_circuit([led], [])
        assert result[0].data == {"label": "LED", "isPowered": False}

    def test_input_is_never_mutated(self):
        nodes, edges = _button_circuit(closed=True)
        simulate_circuit(nodes, edges)
        assert nodes[2].data["isPowered"] is False


# ═══════════════════════════════════════════════════════════
# Externally driven nodes
# ═══════════════════════════════════════════════════════════


class TestExternallyDriven:
    def test_driven_led_keeps_its_data(self):
        led = _led(isPowered=True, brightness=0.5, arduinoControlled=True)
        nodes = [_battery(), led]
        edges = [_wire("BAT1", "plus", "LED1", "anode")]

        result = nodes
        for _ in range(3):
            result = simulate_circuit(result, edges)

        assert result is nodes
        assert result[1].data["isPowered"] is True
        assert result[1].data["brightness"] == 0.5

    def test_driven_led_in_closed_loop_not_overwritten(self):
        nodes, edges = _button_circuit(closed=True)
        nodes[2] = _led(isPowered=False, arduinoControlled=True)
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["LED1"].data["isPowered"] is False

    def test_driven_node_still_conducts(self):
        """Skipping derivation does not remove the node from the graph."""
        motor = _node("M1", "dc-motor", isRunning=True, speed=40, arduinoControlled=True)
        nodes = [_battery(), motor, _led()]
        edges = [
            _wire("BAT1", "plus", "M1", "positive"),
            _wire("M1", "negative", "LED1", "anode"),
            _wire("LED1", "cathode", "BAT1", "minus"),
        ]
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["LED1"].data["isPowered"] is True
        assert result["M1"] is motor


# ═══════════════════════════════════════════════════════════
# Error handling
# ═══════════════════════════════════════════════════════════


def _boom(*_args):
    raise RuntimeError("boom")


class TestErrorHandling:
    def test_unknown_type_passes_through(self):
        resistor = _node("R1", "resistor", ohms=220)
        nodes = [_battery(), resistor, _led()]
        edges = [
            _wire("BAT1", "plus", "R1", "a"),
            _wire("R1", "b", "LED1", "anode"),
            _wire("LED1", "cathode", "BAT1", "minus"),
        ]
        result = simulate_circuit(nodes, edges)
        # No internal edges through an unknown part: loop stays open
        assert result is nodes
        assert result[1] is resistor

    def test_failing_derive_is_isolated(self, caplog):
        registry = {
            **ELECTRICAL_REGISTRY,
            "faulty": ElectricalDefinition(no_internal_edges, _boom),
        }
        faulty = _node("F1", "faulty", isPowered=False)
        nodes, edges = _button_circuit(closed=True)
        nodes.append(faulty)

        with caplog.at_level(logging.ERROR, logger="circuitflow.simulation.engine"):
            result = _by_id(simulate_circuit(nodes, edges, registry))

        assert result["LED1"].data["isPowered"] is True
        assert result["F1"] is faulty
        assert "derive_state failed for node F1" in caplog.text

    def test_failing_internal_edges_is_isolated(self, caplog):
        registry = {
            **ELECTRICAL_REGISTRY,
            "faulty": ElectricalDefinition(_boom, lambda ctx: None),
        }
        nodes, edges = _button_circuit(closed=True)
        nodes.append(_node("F1", "faulty"))
        edges.append(_wire("F1", "x", "LED1", "anode"))

        with caplog.at_level(logging.ERROR, logger="circuitflow.simulation.engine"):
            result = _by_id(simulate_circuit(nodes, edges, registry))

        assert result["LED1"].data["isPowered"] is True
        assert "internal_edges failed for node F1" in caplog.text

    def test_non_mapping_derive_result_is_isolated(self, caplog):
        registry = {
            **ELECTRICAL_REGISTRY,
            "faulty": ElectricalDefinition(no_internal_edges, lambda ctx: ["x"]),
        }
        faulty = _node("F1", "faulty", isPowered=False)
        nodes, edges = _button_circuit(closed=True)
        nodes.append(faulty)

        with caplog.at_level(logging.ERROR, logger="circuitflow.simulation.engine"):
            result = _by_id(simulate_circuit(nodes, edges, registry))

        assert result["LED1"].data["isPowered"] is True
        assert result["F1"] is faulty
        assert "derive_state failed for node F1" in caplog.text

    @pytest.mark.parametrize(
        "declared",
        [
            [("F1:x", "F1:y")],
            [(HandleRef("F1", "x"), None)],
            [(HandleRef("F1", "x"), HandleRef("F1", 3))],
            42,
        ],
    )
    def test_malformed_internal_edges_are_isolated(self, caplog, declared):
        registry = {
            **ELECTRICAL_REGISTRY,
            "faulty": ElectricalDefinition(lambda node_id, data: declared, lambda ctx: None),
        }
        nodes, edges = _button_circuit(closed=True)
        nodes.append(_node("F1", "faulty"))
        edges.append(_wire("F1", "x", "LED1", "anode"))

        with caplog.at_level(logging.ERROR, logger="circuitflow.simulation.engine"):
            result = _by_id(simulate_circuit(nodes, edges, registry))

        assert result["LED1"].data["isPowered"] is True
        assert "internal_edges failed for node F1" in caplog.text

    def test_dangling_edge_tolerated(self):
        nodes, edges = _button_circuit(closed=True)
        edges.append(_wire("BAT1", "plus", "GHOST", "anode"))
        edges.append(_wire("GHOST", "cathode", "BAT1", "minus"))
        result = _by_id(simulate_circuit(nodes, edges))
        assert result["LED1"].data["isPowered"] is True

    @pytest.mark.parametrize("edges", [[], [_wire("BAT1", "plus", "BAT1", "plus")]])
    def test_empty_or_degenerate_graph(self, edges):
        nodes = [_battery()]
        assert simulate_circuit(nodes, edges) is nodes

    def test_empty_circuit(self):
        nodes: list[CircuitNode] = []
        assert simulate_circuit(nodes, []) is nodes
