import pytest

from media_relay.config import Settings
from media_relay.errors import ConfigurationError
from media_relay.models import JobSpec, TaskState
from media_relay.providers import (
    ReplicateAdapter,
    RunwayAdapter,
    WavespeedAdapter,
    available_providers,
    first_non_empty,
    first_output,
    get_adapter,
)


def test_first_output_accepts_list_string_and_object():
    assert first_output(["https://cdn/a.mp4", "https://cdn/b.mp4"]) == "https://cdn/a.mp4"
    assert first_output("https://cdn/a.mp4") == "https://cdn/a.mp4"
    assert first_output({"url": "https://cdn/a.mp4"}) == "https://cdn/a.mp4"
    assert first_output([]) is None
    assert first_output(None) is None


def test_first_non_empty_falls_back_in_order():
    assert first_non_empty(None, "", "CODE", default="fallback") == "CODE"
    assert first_non_empty({"message": "boom"}, default="fallback") == "boom"
    assert first_non_empty(None, None, default="fallback") == "fallback"


class TestRunway:
    def test_submit_request_shape(self):
        adapter = RunwayAdapter("key", model="gen3a_turbo", api_version="2024-11-06")
        url, headers, payload = adapter.build_submit_request(
            JobSpec(prompt="waves", image="https://img/x.png", duration=10, ratio="768:1280")
        )
        assert url == "https://api.runwayml.com/v1/image_to_video"
        assert headers["X-Runway-Version"] == "2024-11-06"
        assert payload == {
            "model": "gen3a_turbo",
            "promptText": "waves",
            "promptImage": "https://img/x.png",
            "duration": 10,
            "ratio": "768:1280",
        }

    @pytest.mark.parametrize("status", ["PENDING", "THROTTLED", "RUNNING", "SOMETHING_NEW"])
    def test_non_terminal_states_are_processing(self, status):
        adapter = RunwayAdapter("key")
        result = adapter.normalize_status(adapter.handle("t"), {"status": status})
        assert result.state is TaskState.PROCESSING

    def test_failure_message_preferred_over_code(self):
        adapter = RunwayAdapter("key")
        result = adapter.normalize_status(
            adapter.handle("t"), {"status": "FAILED", "failure": "Bad input", "failureCode": "INPUT"}
        )
        assert result.detail == "Bad input"

    def test_failure_without_detail_uses_generic_message(self):
        adapter = RunwayAdapter("key")
        result = adapter.normalize_status(adapter.handle("t"), {"status": "FAILED"})
        assert result.detail == "Video generation failed"

    def test_cancelled_is_failed(self):
        adapter = RunwayAdapter("key")
        result = adapter.normalize_status(adapter.handle("t"), {"status": "CANCELLED"})
        assert result.state is TaskState.FAILED


class TestWavespeed:
    def test_submit_request_and_id(self):
        adapter = WavespeedAdapter("key", endpoint_path="wavespeed-ai/wan-2.2/i2v-480p")
        url, headers, payload = adapter.build_submit_request(JobSpec(prompt="waves", image="https://img/x.png"))
        assert url == "https://api.wavespeed.ai/api/v3/wavespeed-ai/wan-2.2/i2v-480p"
        assert headers["Authorization"] == "Bearer key"
        assert payload["image"] == "https://img/x.png"
        assert adapter.extract_task_id({"code": 200, "data": {"id": "ws_1"}}) == "ws_1"
        assert adapter.extract_task_id({"code": 200, "data": {}}) is None

    def test_status_url(self):
        adapter = WavespeedAdapter("key")
        url, _ = adapter.build_status_request("ws_1")
        assert url == "https://api.wavespeed.ai/api/v3/predictions/ws_1/result"

    def test_envelope_error_code(self):
        adapter = WavespeedAdapter("key")
        body = {"code": 400, "message": "bad prompt"}
        assert adapter.extract_error(body) == body
        assert adapter.extract_error({"code": 200, "data": {}}) is None

    def test_status_mapping(self):
        adapter = WavespeedAdapter("key")
        handle = adapter.handle("ws_1")
        done = adapter.normalize_status(handle, {"code": 200, "data": {"status": "completed", "outputs": ["https://cdn/v.mp4"]}})
        failed = adapter.normalize_status(handle, {"code": 200, "data": {"status": "failed", "error": "nsfw"}})
        running = adapter.normalize_status(handle, {"code": 200, "data": {"status": "processing"}})
        assert (done.state, done.result) == (TaskState.COMPLETED, "https://cdn/v.mp4")
        assert (failed.state, failed.detail) == (TaskState.FAILED, "nsfw")
        assert running.state is TaskState.PROCESSING


class TestReplicate:
    def test_submit_request_shape(self):
        adapter = ReplicateAdapter("key", model="wan-video/wan-2.2-i2v-fast")
        url, _, payload = adapter.build_submit_request(JobSpec(prompt="waves", ratio="1280:768"))
        assert url == "https://api.replicate.com/v1/models/wan-video/wan-2.2-i2v-fast/predictions"
        assert payload == {"input": {"prompt": "waves", "aspect_ratio": "16:9"}}

    def test_singular_output_field(self):
        adapter = ReplicateAdapter("key")
        result = adapter.normalize_status(adapter.handle("p1"), {"status": "succeeded", "output": "https://cdn/v.mp4"})
        assert result.result == "https://cdn/v.mp4"

    def test_canceled_and_failed(self):
        adapter = ReplicateAdapter("key")
        canceled = adapter.normalize_status(adapter.handle("p1"), {"status": "canceled", "error": None})
        failed = adapter.normalize_status(adapter.handle("p1"), {"status": "failed", "error": "CUDA OOM"})
        assert (canceled.state, canceled.detail) == (TaskState.FAILED, "canceled")
        assert failed.detail == "CUDA OOM"

    def test_null_error_is_not_a_rejection(self):
        adapter = ReplicateAdapter("key")
        assert adapter.extract_error({"id": "p1", "status": "starting", "error": None}) is None


def test_registry_builds_configured_adapters():
    settings = Settings(runway_api_key="a", wavespeed_api_key="b", replicate_api_token=None)
    assert isinstance(get_adapter("runway", settings), RunwayAdapter)
    assert isinstance(get_adapter("WAVESPEED", settings), WavespeedAdapter)
    replicate = get_adapter("replicate", settings)
    assert isinstance(replicate, ReplicateAdapter)
    assert not replicate.is_available()
    assert available_providers() == ["replicate", "runway", "wavespeed"]


def test_registry_rejects_unknown_provider():
    with pytest.raises(ConfigurationError):
        get_adapter("sora", Settings())


def test_progress_is_taken_as_fraction_by_default():
    adapter = RunwayAdapter("key")
    status = adapter.normalize_status(adapter.handle("t1"), {"status": "RUNNING", "progress": 1.02})
    assert status.progress == 1.0


def test_percent_reporting_adapter_scales_progress():
    class PercentWavespeed(WavespeedAdapter):
        reports_percent = True

    adapter = PercentWavespeed("key")
    status = adapter.normalize_status(adapter.handle("ws_1"), {"code": 200, "data": {"status": "processing", "progress": 40}})
    assert status.state is TaskState.PROCESSING
    assert status.progress == pytest.approx(0.4)
