"""End-to-end tests through the HTTP surface."""

from fastapi.testclient import TestClient


def _register(client: TestClient, content_id: str = "topic-1", author_id: str = "alice") -> None:
    response = client.post(
        "/api/v1/content",
        json={"content_id": content_id, "kind": "TOPIC", "author_id": author_id},
    )
    assert response.status_code == 201


def _sync(client: TestClient, user_id: str, role: str = "USER", kyc: bool = True) -> None:
    response = client.put(f"/api/v1/users/{user_id}", json={"role": role, "kyc_verified": kyc})
    assert response.status_code == 200


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ingest_is_idempotent_over_http(client: TestClient) -> None:
    _register(client)
    body = {"event_id": "evt-1", "content_id": "topic-1", "actor_id": "bob", "kind": "LIKE"}

    first = client.post("/api/v1/events", json=body)
    second = client.post("/api/v1/events", json=body)

    assert first.json()["accepted"] is True
    assert second.json()["accepted"] is False
    assert second.json()["counts"] == {"likes": 1, "replies": 0, "views": 0}


def test_caller_errors_map_to_status_codes(client: TestClient) -> None:
    _register(client)
    _sync(client, "mod", role="ADMIN_L1")

    unknown = client.post(
        "/api/v1/events",
        json={"event_id": "e", "content_id": "nope", "actor_id": "bob", "kind": "LIKE"},
    )
    invalid = client.post(
        "/api/v1/events",
        json={"event_id": "e", "content_id": "topic-1", "actor_id": "bob", "kind": "SHARE"},
    )
    illegal = client.post(
        "/api/v1/moderation/topic-1/transition",
        json={"to_status": "VISIBLE", "actor_id": "mod"},
    )
    bad_period = client.post("/api/v1/payouts/2025-99/run")

    assert unknown.status_code == 404
    assert invalid.status_code == 422
    assert invalid.json()["error"] == "InvalidKindError"
    assert illegal.status_code == 409
    assert illegal.json()["error"] == "IllegalTransitionError"
    assert bad_period.status_code == 422


def test_privilege_rejection_names_the_reason(client: TestClient) -> None:
    _register(client)
    _sync(client, "mod", role="ADMIN_L1")
    _sync(client, "boss", role="OWNER")
    quarantine = client.post(
        "/api/v1/moderation/topic-1/transition",
        json={"to_status": "QUARANTINED", "actor_id": "mod", "reason": "reports"},
    )
    assert quarantine.json() == {"content_id": "topic-1", "status": "QUARANTINED"}

    denied = client.post(
        "/api/v1/moderation/topic-1/transition",
        json={"to_status": "VISIBLE", "actor_id": "mod"},
    )
    lifted = client.post(
        "/api/v1/moderation/topic-1/transition",
        json={"to_status": "VISIBLE", "actor_id": "boss"},
    )

    assert denied.status_code == 403
    assert denied.json()["error"] == "InsufficientPrivilegeError"
    assert lifted.status_code == 200
    history = client.get("/api/v1/moderation/topic-1/history").json()
    assert [(h["from_status"], h["to_status"]) for h in history] == [
        ("VISIBLE", "QUARANTINED"),
        ("QUARANTINED", "VISIBLE"),
    ]
    audit = client.get("/api/v1/audit/content/topic-1").json()
    assert len(audit) == 2


def test_classifier_reports_and_queue(client: TestClient) -> None:
    _register(client, "hidden")
    _register(client, "reported")

    verdict = client.post("/api/v1/moderation/hidden/classifier", json={"confidence": 0.97})
    for reporter in ("r1", "r2", "r3"):
        report = client.post("/api/v1/moderation/reported/reports", json={"reporter_id": reporter})

    assert verdict.json()["decision"] == "HIDE"
    assert report.json() == {"content_id": "reported", "report_count": 3}
    queue = client.get("/api/v1/moderation/queue").json()
    assert [item["content_id"] for item in queue] == ["hidden", "reported"]


def test_fraud_endpoints(client: TestClient) -> None:
    created = client.post(
        "/api/v1/fraud/signals", json={"user_id": "bob", "signal_type": "velocity_spike"}
    )
    client.post("/api/v1/fraud/signals", json={"user_id": "bob", "signal_type": "duplicate_device"})
    unknown_type = client.post(
        "/api/v1/fraud/signals", json={"user_id": "bob", "signal_type": "astrology"}
    )

    assert created.status_code == 201
    assert unknown_type.status_code == 422
    score = client.get("/api/v1/fraud/users/bob").json()
    assert score["score"] == 55
    assert score["risk_level"] == "HIGH"
    assert score["high_risk"] is True
    assert [u["user_id"] for u in client.get("/api/v1/fraud/high-risk").json()] == ["bob"]


def test_payout_flow(client: TestClient, export_sink) -> None:
    _sync(client, "alice")
    _register(client, "topic-1", author_id="alice")
    for i in range(201):
        client.post(
            "/api/v1/events",
            json={"event_id": f"r{i}", "content_id": "topic-1", "actor_id": f"u{i}", "kind": "REPLY"},
        )

    summary = client.get("/api/v1/earnings/users/alice").json()
    assert summary["unpaid_cents"] == 50
    assert summary["payout_eligible"] is True

    batch = client.post("/api/v1/payouts/2025-02B/run").json()
    assert batch["total_cents"] == 0  # below the payout minimum
    assert batch["status"] == "EXPORTED"
    assert client.get("/api/v1/payouts/2025-02B").json()["id"] == batch["id"]
    assert client.get("/api/v1/payouts/2025-03").status_code == 404
    assert client.post("/api/v1/payouts/batches/999/export").status_code == 404


def test_recompute_endpoint_is_idempotent(client: TestClient) -> None:
    _register(client)
    first = client.post("/api/v1/earnings/topic-1/recompute")
    second = client.post("/api/v1/earnings/topic-1/recompute")

    assert first.json() == second.json() == []
    assert client.post("/api/v1/earnings/missing/recompute").status_code == 404


def test_verify_export_endpoint(client: TestClient, export_sink) -> None:
    batch = client.post("/api/v1/payouts/2025-03/run").json()
    exported = export_sink.deliver.call_args.kwargs["csv_bytes"].decode("utf-8")

    match = client.post(f"/api/v1/payouts/batches/{batch['id']}/verify", json={"csv": exported})
    tampered = client.post(
        f"/api/v1/payouts/batches/{batch['id']}/verify", json={"csv": exported + "x"}
    )

    assert match.status_code == 200
    assert match.json() == {
        "batch_id": batch["id"],
        "csv_sha256": batch["csv_sha256"],
        "matches": True,
    }
    assert tampered.json()["matches"] is False
    missing = client.post("/api/v1/payouts/batches/999/verify", json={"csv": exported})
    assert missing.status_code == 404
