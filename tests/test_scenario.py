# ==============================================
# Tests for progress scenario classification
# ==============================================

import itertools

import pytest

from prtg_stream.errors import ScenarioError
from prtg_stream.progress.coordinator import _HANDLERS
from prtg_stream.progress.scenario import (
    BlockingKind,
    InputKind,
    PipelineGraph,
    ProgressScenario,
    classify,
    resolve_scenario,
)


def graph(input_kind, position=0, length=1, **kwargs):
    return PipelineGraph(input_kind=input_kind, position=position, length=length, **kwargs)


# ==============================================
# Classification Table Tests
# ==============================================

class TestClassify:
    """One row of the table per test."""

    def test_disabled_progress(self):
        g = graph(InputKind.STREAM, position=1, length=2, progress_enabled=False)
        assert classify(g) == ProgressScenario.NO_PROGRESS

    def test_take_last_upstream(self):
        g = graph(InputKind.STREAM, position=1, length=2, upstream_blocking=BlockingKind.TAKE_LAST)
        assert classify(g) == ProgressScenario.SELECT_LAST

    def test_skip_last_upstream(self):
        g = graph(InputKind.STREAM, position=1, length=2, upstream_blocking=BlockingKind.SKIP_LAST)
        assert classify(g) == ProgressScenario.SELECT_SKIP_LAST

    def test_variable_to_single(self):
        assert classify(graph(InputKind.VARIABLE)) == ProgressScenario.VARIABLE_TO_SINGLE_CMDLET

    def test_variable_to_multiple(self):
        g = graph(InputKind.VARIABLE, length=3)
        assert classify(g) == ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS

    def test_stream_after_blocking_further_upstream(self):
        g = graph(InputKind.STREAM, position=2, length=3, blocking_further_upstream=True)
        assert classify(g) == ProgressScenario.MULTIPLE_CMDLETS_FROM_BLOCKING_SELECT

    def test_stream_last(self):
        g = graph(InputKind.STREAM, position=1, length=2)
        assert classify(g) == ProgressScenario.STREAM_PROGRESS

    def test_stream_middle(self):
        g = graph(InputKind.STREAM, position=1, length=3)
        assert classify(g) == ProgressScenario.MULTIPLE_CMDLETS

    def test_head_with_downstream(self):
        assert classify(graph(InputKind.NONE, length=2)) == ProgressScenario.MULTIPLE_CMDLETS

    def test_lone_streaming_head(self):
        g = graph(InputKind.NONE, streaming=True)
        assert classify(g) == ProgressScenario.STREAM_PROGRESS

    def test_lone_non_streaming_head(self):
        assert classify(graph(InputKind.NONE)) == ProgressScenario.NO_PROGRESS

    def test_downstream_blocking_counts_as_last(self):
        g = graph(InputKind.NONE, length=2, streaming=True, downstream_blocking=BlockingKind.TAKE_LAST)
        assert g.is_last
        assert classify(g) == ProgressScenario.STREAM_PROGRESS


class TestInvalidGraphs:
    """Shapes the table cannot place are programming errors."""

    @pytest.mark.parametrize("g", [
        graph(InputKind.STREAM),
        graph(InputKind.NONE, position=1, length=2),
        graph(InputKind.STREAM, position=2, length=2),
        graph(InputKind.STREAM, position=-1, length=2),
        graph(InputKind.NONE, length=0),
        graph(InputKind.VARIABLE, upstream_blocking=BlockingKind.TAKE_LAST),
        graph(InputKind.VARIABLE, blocking_further_upstream=True),
    ])
    def test_raises_scenario_error(self, g):
        with pytest.raises(ScenarioError):
            classify(g)

    def test_raised_even_when_progress_disabled(self):
        with pytest.raises(ScenarioError):
            classify(graph(InputKind.STREAM, progress_enabled=False))


# ==============================================
# Blocking Resolution Tests
# ==============================================

class TestResolve:
    """SELECT_LAST / SELECT_SKIP_LAST become concrete scenarios."""

    def test_non_blocking_unchanged(self):
        g = graph(InputKind.STREAM, position=1, length=2)
        assert resolve_scenario(g, ProgressScenario.STREAM_PROGRESS) == ProgressScenario.STREAM_PROGRESS

    def test_select_last_as_last_stage(self):
        g = graph(InputKind.STREAM, position=1, length=2, upstream_blocking=BlockingKind.TAKE_LAST)
        assert resolve_scenario(g, classify(g)) == ProgressScenario.VARIABLE_TO_SINGLE_CMDLET

    def test_select_last_with_downstream(self):
        g = graph(InputKind.STREAM, position=1, length=3, upstream_blocking=BlockingKind.TAKE_LAST)
        assert resolve_scenario(g, classify(g)) == ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS

    def test_skip_last_with_downstream(self):
        g = graph(InputKind.STREAM, position=1, length=3, upstream_blocking=BlockingKind.SKIP_LAST)
        assert resolve_scenario(g, classify(g)) == ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS

    def test_skip_last_on_last_stage_degrades(self):
        g = graph(InputKind.STREAM, position=1, length=2, upstream_blocking=BlockingKind.SKIP_LAST)
        assert resolve_scenario(g, classify(g)) == ProgressScenario.VARIABLE_TO_SINGLE_CMDLET

    def test_without_blocking(self):
        g = graph(InputKind.STREAM, position=1, length=2, upstream_blocking=BlockingKind.TAKE_LAST)
        stripped = g.without_blocking()
        assert stripped.upstream_blocking is None
        assert stripped.input_kind == InputKind.VARIABLE


# ==============================================
# Totality Tests
# ==============================================

def supported_graphs():
    """Every consistent (input × chain length × blocking) combination."""
    for length, enabled, streaming in itertools.product([1, 2, 3, 4], [True, False], [True, False]):
        for position in range(length):
            kinds = [InputKind.NONE, InputKind.VARIABLE] if position == 0 else [InputKind.STREAM]
            upstreams = [None] if position == 0 else [None, BlockingKind.TAKE_LAST, BlockingKind.SKIP_LAST]
            downstreams = [None, BlockingKind.TAKE_LAST, BlockingKind.SKIP_LAST]
            further = [False] if position < 2 else [False, True]
            for kind, up, down, far in itertools.product(kinds, upstreams, downstreams, further):
                yield PipelineGraph(
                    input_kind=kind, position=position, length=length,
                    upstream_blocking=up, downstream_blocking=down,
                    blocking_further_upstream=far, streaming=streaming,
                    progress_enabled=enabled,
                )


class TestTotality:

    def test_every_supported_shape_classifies(self):
        for g in supported_graphs():
            scenario = classify(g)
            resolved = resolve_scenario(g, scenario)
            assert isinstance(scenario, ProgressScenario)
            assert resolved not in (ProgressScenario.SELECT_LAST, ProgressScenario.SELECT_SKIP_LAST)

    def test_blocking_scenarios_resolve_to_variable_behavior(self):
        variable = (ProgressScenario.VARIABLE_TO_SINGLE_CMDLET,
                    ProgressScenario.VARIABLE_TO_MULTIPLE_CMDLETS)
        for g in supported_graphs():
            scenario = classify(g)
            if scenario in (ProgressScenario.SELECT_LAST, ProgressScenario.SELECT_SKIP_LAST):
                assert resolve_scenario(g, scenario) in variable

    def test_every_scenario_has_a_handler(self):
        assert set(_HANDLERS) == set(ProgressScenario)
