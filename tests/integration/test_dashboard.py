"""Integration tests for the HTML dashboard at GET /."""


def _create(client, **payload):
    resp = client.post("/api/pixels", json=payload)
    return resp.json()["pixelId"]


def test_empty_dashboard(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "No pixels issued yet." in resp.text


def test_lists_recent_sends(client):
    pixel_id = _create(client, emailId="E1", recipient="a@x.com", subject="Quarterly report")
    _create(client, emailId="E2", recipient="b@x.com")
    client.get(f"/v1/{pixel_id}.gif", headers={"User-Agent": "Mozilla/5.0"})

    html = client.get("/").text
    assert "Quarterly report" in html
    assert "a@x.com" in html
    assert "(no subject)" in html
    assert "badge-success\">Opened" in html


def test_bot_opens_badged(client):
    pixel_id = _create(client, emailId="E1", recipient="a@x.com")
    client.get(f"/v1/{pixel_id}.gif", headers={"User-Agent": "Googlebot/2.1"})

    assert "1 bot" in client.get("/").text


def test_values_are_escaped(client):
    _create(client, emailId="E1", recipient="a@x.com", subject="<script>alert(1)</script>")

    html = client.get("/").text
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_requires_key_when_configured(secured_client):
    assert secured_client.get("/").status_code == 401
    assert secured_client.get("/", params={"apiKey": "s3cret"}).status_code == 200
