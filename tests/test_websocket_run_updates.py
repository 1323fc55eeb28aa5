from __future__ import annotations


def test_ws_run_updates_broadcast(client_and_redis) -> None:
    client, _r = client_and_redis

    run_id = client.post("/runs", json={"seed": 4}).json()["run_id"]

    with client.websocket_connect(f"/ws/runs/{run_id}") as ws:
        res = client.post(f"/runs/{run_id}/commands/select", json={"index": 1})
        assert res.status_code == 200

        msg = ws.receive_json()
        assert msg == {"type": "run_updated", "run_id": run_id}


def test_ws_subscribers_follow_a_restart(client_and_redis) -> None:
    client, _r = client_and_redis

    run_id = client.post("/runs", json={"seed": 4}).json()["run_id"]

    with client.websocket_connect(f"/ws/runs/{run_id}") as ws:
        body = client.post(f"/runs/{run_id}/commands/restart", json={"seed": 5}).json()
        new_id = body["snapshot"]["run_id"]
        assert ws.receive_json() == {"type": "run_updated", "run_id": new_id}

        res = client.post(f"/runs/{new_id}/commands/select", json={"index": 0})
        assert res.status_code == 200
        assert ws.receive_json() == {"type": "run_updated", "run_id": new_id}
