import json

from conftest import ScriptedProvider, text_reply
from structured_agent.agent import Agent
from structured_agent.monitoring.telemetry import TelemetryLogger
from structured_agent.observation import Observation, Observer


def test_noop_observation_without_client():
    obs = Observation()
    child = obs.generation(input={"x": 1}, model="m")
    assert isinstance(child, Observation)
    assert not child.enabled
    child.update(input="ignored")
    child.end(output="ignored")


def test_observer_without_telemetry_path_is_noop():
    observer = Observer.create_from_options()
    assert observer.client is None
    assert not observer.trace(input="hi").enabled


def test_telemetry_jsonl(tmp_path):
    outp = tmp_path / "telemetry.jsonl"
    tl = TelemetryLogger(str(outp))
    tl.log({"event": "turn_start", "step": 1})
    tl.log({"event": "assistant_choice", "has_content": True})
    tl.close()
    lines = outp.read_text().splitlines()
    assert len(lines) == 2
    assert "turn_start" in lines[0]


def test_trace_records_generations_and_trace_output(tmp_path):
    outp = tmp_path / "trace.jsonl"
    with Observer.create_from_options(telemetry_path=str(outp)) as observer:
        trace = observer.trace(input="What is the weather?", user_id="u1", session_id="s1")

        provider = ScriptedProvider([text_reply("Sunny.", tokens=5)])
        response = Agent().get_response(
            messages=[{"role": "user", "content": "What is the weather?"}],
            provider=provider,
            model="m",
            observation=trace,
        )
        trace.end(output=response.output_text)
    assert observer.client._fh is None

    records = [json.loads(line) for line in outp.read_text().splitlines()]
    events = [record["event"] for record in records]
    assert events == ["trace", "generation", "end", "update"]
    assert records[0]["user_id"] == "u1"
    assert records[1]["parent_id"] == records[0]["id"]
    assert records[1]["model"] == "m"
    assert records[2]["output"]["tokens_used"] == 5
    # trace-level handles are updated, not ended
    assert records[3]["output"] == "Sunny."
    assert records[3]["kind"] == "trace"


def test_observer_close_releases_telemetry_file(tmp_path):
    observer = Observer.create_from_options(telemetry_path=str(tmp_path / "t.jsonl"))
    observer.trace(input="hi")
    observer.close()
    assert observer.client._fh is None
    # closing twice, or closing a no-op observer, is harmless
    observer.close()
    Observer().close()
