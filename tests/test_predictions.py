import requests

from drill_dashboard import predictions
from drill_dashboard.predictions import PredictionClient, Predictions, run_predictions


class _FakeResponse:
    def __init__(self, body, status_code: int = 200) -> None:
        self._body = body
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


def _feed(n: int):
    # newest first, like the store returns it
    return [
        {"temperature": 30.0 + i, "rpm": 4000 + i, "load": 10.0, "vibration": 1.0, "depth": 2.0}
        for i in reversed(range(n))
    ]


def test_predict_rul_posts_batch_of_one(monkeypatch) -> None:
    sent = {}

    def fake_post(url, json, timeout):
        sent["url"] = url
        sent["json"] = json
        return _FakeResponse({"rul": 812.6})

    monkeypatch.setattr(predictions.requests, "post", fake_post)
    client = PredictionClient("http://model:5000/")
    sequence = [[1.0] * 7, [2.0] * 7]

    assert client.predict_rul(sequence) == 813
    assert sent["url"] == "http://model:5000/predict_rul"
    assert sent["json"] == {"sequence": [sequence]}


def test_estimate_temperature_posts_flat_sequence(monkeypatch) -> None:
    sent = {}

    def fake_post(url, json, timeout):
        sent["url"] = url
        sent["json"] = json
        return _FakeResponse({"temp_est": 41.23456})

    monkeypatch.setattr(predictions.requests, "post", fake_post)
    client = PredictionClient("http://model:5000")

    assert client.estimate_temperature([0.5] * 12) == 41.23
    assert sent["url"] == "http://model:5000/predict_temp"
    assert sent["json"] == {"sequence": [0.5] * 12}


def test_network_error_means_unavailable(monkeypatch) -> None:
    def fake_post(url, json, timeout):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(predictions.requests, "post", fake_post)
    client = PredictionClient()
    assert client.predict_rul([[0.0] * 7]) is None
    assert client.estimate_temperature([0.0] * 6) is None


def test_malformed_responses_mean_unavailable(monkeypatch) -> None:
    bodies = iter(
        [
            _FakeResponse({"unexpected": 1}),
            _FakeResponse(ValueError("not json")),
            _FakeResponse({"rul": "soon"}),
            _FakeResponse({"rul": None}),
            _FakeResponse({"rul": float("nan")}),
            _FakeResponse({"rul": 10}, status_code=500),
        ]
    )
    monkeypatch.setattr(predictions.requests, "post", lambda url, json, timeout: next(bodies))
    client = PredictionClient()
    for _ in range(6):
        assert client.predict_rul([[0.0] * 7]) is None


def test_run_predictions_waits_for_full_window(monkeypatch) -> None:
    def fail_post(*args, **kwargs):
        raise AssertionError("should not call the model with a short window")

    monkeypatch.setattr(predictions.requests, "post", fail_post)
    assert run_predictions(_feed(19), PredictionClient()) == Predictions()


def test_run_predictions_sends_chronological_window(monkeypatch) -> None:
    calls = {}

    def fake_post(url, json, timeout):
        calls[url.rsplit("/", 1)[1]] = json["sequence"]
        if url.endswith("/predict_rul"):
            return _FakeResponse({"rul": 120})
        return _FakeResponse({"temp_est": 55.5})

    monkeypatch.setattr(predictions.requests, "post", fake_post)
    result = run_predictions(_feed(30), PredictionClient("http://model"))

    assert result == Predictions(rul=120, temperature=55.5)

    batch = calls["predict_rul"]
    assert len(batch) == 1
    rows = batch[0]
    assert len(rows) == 20
    # newest 20 of the feed, oldest first: temperatures 40..59
    assert [row[0] for row in rows] == [30.0 + i for i in range(10, 30)]
    assert rows[0][5] == 0.0
    assert all(row[5] == 1.0 for row in rows[1:])

    flat = calls["predict_temp"]
    assert len(flat) == 6 * 20
    assert flat[0] == rows[0][1]


def test_one_failed_endpoint_does_not_hide_the_other(monkeypatch) -> None:
    def fake_post(url, json, timeout):
        if url.endswith("/predict_rul"):
            raise requests.Timeout("slow model")
        return _FakeResponse({"temp_est": 60})

    monkeypatch.setattr(predictions.requests, "post", fake_post)
    result = run_predictions(_feed(20), PredictionClient())
    assert result == Predictions(rul=None, temperature=60.0)
