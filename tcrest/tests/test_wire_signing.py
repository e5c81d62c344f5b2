"""
Signature checks against requests captured by a local HTTP server

These tests let requests and urllib3 write the real request line, so any
re-encoding done below the session shows up as a signature mismatch.
"""
import base64
import hashlib
import hmac
import json
import threading
import pytest
from http.server import BaseHTTPRequestHandler, HTTPServer

from tcrest.config import Credentials
from tcrest.connectors.threatconnect_connector import ThreatConnectConnector
from tcrest.models.resources import ByIndicator, ByTagName, IndicatorType, Pagination
from tcrest.normalization.response_normalizer import ResultSet


ACCESS_ID = "12345678901234567890"
SECRET_KEY = "secret-key"


class RecordingHandler(BaseHTTPRequestHandler):
    """Answers every request with a Success envelope and records it"""

    def _answer(self):
        self.server.captured.append({
            "method": self.command,
            "target": self.path,
            "timestamp": self.headers.get("Timestamp"),
            "authorization": self.headers.get("Authorization"),
        })
        length = int(self.headers.get("Content-Length") or 0)
        if length:
            self.rfile.read(length)

        body = json.dumps({"status": "Success", "data": {"resultCount": 0}}).encode('utf-8')
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    do_GET = _answer
    do_POST = _answer
    do_DELETE = _answer

    def log_message(self, format, *args):
        pass


def expected_authorization(target, method, timestamp):
    message = f"{target}:{method}:{timestamp}"
    digest = hmac.new(SECRET_KEY.encode('utf-8'), message.encode('utf-8'), hashlib.sha256).digest()
    return f"TC {ACCESS_ID}:{base64.b64encode(digest).decode('ascii')}"


@pytest.fixture
def server():
    httpd = HTTPServer(("127.0.0.1", 0), RecordingHandler)
    httpd.captured = []
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()
    thread.join(timeout=5)


@pytest.fixture
def live_connector(server):
    host, port = server.server_address
    credentials = Credentials(
        access_id=ACCESS_ID,
        secret_key=SECRET_KEY,
        base_url=f"http://{host}:{port}/api"
    )
    with ThreatConnectConnector(credentials) as connector:
        # Talk to the local server directly even when a proxy is configured
        connector.session.trust_env = False
        yield connector


def captured_request(server):
    assert len(server.captured) == 1
    return server.captured[0]


@pytest.mark.unit
class TestSignatureMatchesRequestLine:
    """The signed target is the target the server receives"""

    def test_non_ascii_host_indicator(self, server, live_connector):
        live_connector.get_indicator(IndicatorType.HOST, "bücher.example")

        request = captured_request(server)
        assert request["target"] == "/api/v2/indicators/hosts/b%C3%BCcher.example"
        assert request["authorization"] == expected_authorization(
            request["target"], "GET", request["timestamp"]
        )

    def test_email_indicator_with_reserved_characters(self, server, live_connector):
        live_connector.delete_indicator(IndicatorType.EMAIL_ADDRESS, "a b/c?d#e@example.com")

        request = captured_request(server)
        assert request["target"] == "/api/v2/indicators/emailAddresses/a%20b%2Fc%3Fd%23e@example.com"
        assert request["authorization"] == expected_authorization(
            request["target"], "DELETE", request["timestamp"]
        )

    def test_url_indicator(self, server, live_connector):
        live_connector.list_tags(
            ByIndicator(indicator_type=IndicatorType.URL, value="http://example.com/a b?x=%41")
        )

        request = captured_request(server)
        assert request["target"] == \
            "/api/v2/indicators/urls/http%3A%2F%2Fexample.com%2Fa%20b%3Fx%3D%2541/tags"
        assert request["authorization"] == expected_authorization(
            request["target"], "GET", request["timestamp"]
        )

    def test_owner_and_pagination_query_string(self, server, live_connector):
        result = live_connector.list_groups(
            ByTagName(name="Ransomware café"),
            owner="Acme Co",
            pagination=Pagination(start=10, limit=20)
        )

        assert isinstance(result, ResultSet)
        request = captured_request(server)
        assert request["target"] == \
            "/api/v2/tags/Ransomware%20caf%C3%A9/groups?owner=Acme%20Co&resultStart=10&resultLimit=20"
        assert request["authorization"] == expected_authorization(
            request["target"], "GET", request["timestamp"]
        )
