import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from natscaler.api import NamespacedName, ScalingRule, ScalingRuleSpec
from natscaler.controller import (
    ERR_REQUEUE_INTERVAL_LONG,
    ERR_REQUEUE_INTERVAL_SHORT,
    Result,
    ScalingRuleReconciler,
    validate_scaling_rule_spec,
)
from natscaler.errors import HTTPStatusCodeError
from natscaler.kube import InMemoryClient
from natscaler.nats import AccountDetails, ConsumerDetail, JszResponse, NatsService, StreamDetail

NS = "default"
DEP = "test-deployment"
RULE_KEY = NamespacedName("test-resource-1", NS)


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        state = self.server.state
        state["path"] = self.path.split("?", 1)[0]
        body = (json.dumps(state["resp"].to_dict(), separators=(",", ":")) + "\n").encode()
        self.send_response(state["status"])
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, *args):
        pass


@pytest.fixture
def nats_server():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.state = {"resp": JszResponse(), "status": 200, "path": None}
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd.state, f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


class MockScaler:
    def __init__(self, err=None):
        self.err = err
        self.called_with = None

    def reconcile_scale(self, client, deployment, rule, pending_msgs):
        self.called_with = (deployment, rule, pending_msgs)
        if self.err is not None:
            raise self.err


def _spec(url):
    return ScalingRuleSpec(
        deployment_name=DEP,
        namespace=NS,
        min_replicas=1,
        max_replicas=3,
        nats_monitoring_url=url,
        stream_name="ORDERS",
        consumer_name="orders-consumer",
        scale_up_threshold=10,
        scale_down_threshold=2,
        poll_interval_seconds=10,
    )


def _orders(pending):
    return JszResponse(account_details=[AccountDetails(stream_detail=[StreamDetail(
        name="ORDERS", consumer_detail=[ConsumerDetail(name="orders-consumer", num_pending=pending)],
    )])])


def _client_with_rule(spec):
    client = InMemoryClient()
    client.add(ScalingRule(name=RULE_KEY.name, namespace=NS, spec=spec))
    return client


def _last_error(caplog):
    records = [r for r in caplog.records if r.name == "natscaler.controller"]
    return records[-1]


def test_successful_reconcile(nats_server):
    state, url = nats_server
    state["resp"] = _orders(2)
    spec = _spec(url)
    scaler = MockScaler()
    reconciler = ScalingRuleReconciler(_client_with_rule(spec), NatsService(timeout=5), scaler)

    res = reconciler.reconcile(RULE_KEY)

    assert res.requeue_after == spec.poll_interval_seconds
    assert state["path"] == "/jsz"
    deployment, params, pending = scaler.called_with
    assert deployment == NamespacedName(DEP, NS)
    assert params.min_replicas == spec.min_replicas
    assert params.max_replicas == spec.max_replicas
    assert pending == 2


def test_nats_status_code_error(nats_server, caplog):
    caplog.set_level(logging.ERROR, logger="natscaler.controller")
    state, url = nats_server
    state["status"] = 500
    scaler = MockScaler()
    reconciler = ScalingRuleReconciler(_client_with_rule(_spec(url)), NatsService(timeout=5), scaler)

    res = reconciler.reconcile(RULE_KEY)

    assert res.requeue_after == ERR_REQUEUE_INTERVAL_SHORT
    record = _last_error(caplog)
    assert "failed to get pending messages from NATS" in record.getMessage()
    err = record.exc_info[1]
    assert isinstance(err, HTTPStatusCodeError)
    assert err.code == 500
    assert err.body == b'{"account_details":null}\n'
    assert scaler.called_with is None


def test_scaling_error(nats_server, caplog):
    caplog.set_level(logging.ERROR, logger="natscaler.controller")
    state, url = nats_server
    state["resp"] = _orders(15)
    spec = _spec(url)
    expected = RuntimeError("some error")
    scaler = MockScaler(err=expected)
    reconciler = ScalingRuleReconciler(_client_with_rule(spec), NatsService(timeout=5), scaler)

    res = reconciler.reconcile(RULE_KEY)

    assert res.requeue_after == ERR_REQUEUE_INTERVAL_SHORT
    assert _last_error(caplog).exc_info[1] is expected
    deployment, params, pending = scaler.called_with
    assert deployment == NamespacedName(DEP, NS)
    assert params.min_replicas == spec.min_replicas
    assert params.max_replicas == spec.max_replicas
    assert pending == 15


def test_missing_rule_is_not_requeued():
    reconciler = ScalingRuleReconciler(InMemoryClient(), NatsService(timeout=5), MockScaler())
    assert reconciler.reconcile(RULE_KEY) == Result()


def test_invalid_spec_requeues_long():
    spec = _spec("http://127.0.0.1:1")
    spec.min_replicas = 5
    scaler = MockScaler()
    reconciler = ScalingRuleReconciler(_client_with_rule(spec), NatsService(timeout=5), scaler)
    assert reconciler.reconcile(RULE_KEY).requeue_after == ERR_REQUEUE_INTERVAL_LONG
    assert scaler.called_with is None


def test_validate_rejects_min_above_max():
    spec = _spec("http://localhost")
    spec.min_replicas = 4
    with pytest.raises(ValueError, match="minReplicas"):
        validate_scaling_rule_spec(spec)


def test_validate_accepts_equal_bounds():
    spec = _spec("http://localhost")
    spec.min_replicas = spec.max_replicas
    assert validate_scaling_rule_spec(spec) is None