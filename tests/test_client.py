# ==============================================
# Tests for PrtgClient
# ==============================================

import pytest

from prtg_stream.client import PrtgClient
from prtg_stream.errors import TransportError
from prtg_stream.pipeline.stages import Stage, TakeLast
from prtg_stream.progress.scenario import ProgressScenario
from prtg_stream.request.fetcher import PageFetcher
from prtg_stream.request.query import Content
from prtg_stream.streaming.log_stream import TimeCursorLogStream
from prtg_stream.streaming.paged_stream import PagedStream


@pytest.fixture
def sleeps():
    return []


# ==============================================
# Construction Tests
# ==============================================

class TestConstruction:

    def test_builds_page_fetcher_from_config(self, app_config):
        client = PrtgClient(app_config)
        inner = client.fetcher._fetcher
        assert isinstance(inner, PageFetcher)
        assert inner.url == "https://prtg.example.com/api/table.json"
        assert inner.passhash == "12345678"
        client.close()

    def test_retry_policy_from_config(self, app_config, table_fetcher):
        client = PrtgClient(app_config, fetcher=table_fetcher([]))
        assert client.retry_policy.retry_count == 2
        assert client.retry_policy.retry_delay == 3.0


# ==============================================
# Object Retrieval Tests
# ==============================================

class TestObjects:

    def test_stream_is_lazy_paged_stream(self, app_config, table_fetcher, rows):
        fetcher = table_fetcher(rows(10))
        stream = PrtgClient(app_config, fetcher=fetcher).stream(Content.SENSORS, page_size=4)

        assert isinstance(stream, PagedStream)
        assert fetcher.calls == []
        assert len(list(stream)) == 10
        assert fetcher.calls == [(0, 4), (4, 4), (8, 2)]

    def test_default_page_size_from_config(self, app_config, table_fetcher, rows):
        fetcher = table_fetcher(rows(3))
        PrtgClient(app_config, fetcher=fetcher).get(Content.DEVICES)
        assert fetcher.calls == [(0, 500)]

    def test_get_sensors_passes_filters(self, app_config, table_fetcher, rows):
        fetcher = table_fetcher(rows(2))
        records = PrtgClient(app_config, fetcher=fetcher).get_sensors(status=5)

        assert len(records) == 2
        assert fetcher.queries[0].content == Content.SENSORS
        assert fetcher.queries[0].filter_value("status") == 5

    def test_transient_failure_retried(self, app_config, table_fetcher, rows, sleeps):
        fetcher = table_fetcher(rows(3), fail_at=1)
        notices = []
        client = PrtgClient(app_config, fetcher=fetcher, sleep=sleeps.append,
                            on_retry=lambda *args: notices.append(args))

        assert len(client.get_groups()) == 3
        assert sleeps == [3.0]
        assert len(notices) == 1

    def test_persistent_failure_surfaces(self, app_config, sleeps):
        class Down:
            def fetch(self, query):
                raise TransportError("unreachable")

        client = PrtgClient(app_config, fetcher=Down(), sleep=sleeps.append)
        with pytest.raises(TransportError):
            client.get_probes()
        assert sleeps == [3.0, 6.0]


# ==============================================
# Logs & Pipelines
# ==============================================

class TestLogsAndPipelines:

    def test_stream_logs_uses_config_interval(self, app_config, table_fetcher):
        stream = PrtgClient(app_config, fetcher=table_fetcher([])).stream_logs()
        assert isinstance(stream, TimeCursorLogStream)
        assert stream.poll_interval == 0.0

    def test_pipeline_head_streams_content(self, app_config, table_fetcher, rows, renderer):
        fetcher = table_fetcher(rows(7))
        client = PrtgClient(app_config, fetcher=fetcher)
        pipeline = client.pipeline(
            Content.SENSORS,
            TakeLast(2),
            Stage("names", process=lambda r: [r["name"]]),
            filters={"status": 5},
            renderer=renderer,
        )

        assert list(pipeline) == ["Sensor 5", "Sensor 6"]
        assert fetcher.queries[0].filter_value("status") == 5
        assert pipeline.coordinators[0].scenario == ProgressScenario.STREAM_PROGRESS
        assert renderer.for_record(1)[0].activity == "PRTG Sensor Search"

    def test_pipeline_progress_override(self, app_config, table_fetcher, rows, renderer):
        client = PrtgClient(app_config, fetcher=table_fetcher(rows(2)))
        list(client.pipeline(Content.DEVICES, renderer=renderer, progress=False))
        assert renderer.records == []
