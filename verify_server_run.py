import time
import httpx
import subprocess
import sys


def run_verification():
    print("Starting Network Value HTTP Server...")
    server_process = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "api.http_server:app", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True
    )

    # Wait for server to start
    time.sleep(3)

    try:
        client = httpx.Client(base_url="http://127.0.0.1:8000")

        print("Checking server health...")
        health = client.get("/health")
        print(f"Health Status: {health.json()}")

        print("\nValuing a two-node network...")
        network_payload = {
            "nodes": [
                {"id": "a", "value": 100, "active_rate": 1.0},
                {"id": "b", "value": 100, "active_rate": 1.0},
            ],
            "connections": [
                {"id": "c1", "source_id": "a", "target_id": "b", "synergy": "excellent"},
            ],
            "integration_level": "full",
            "caller_identity": "verification-script",
        }
        value_resp = client.post("/v1/network-value", json=network_payload).json()
        print(f"Response Status: {value_resp['status']}")
        print(f"Summary: {value_resp['summary']}")
        print(f"Multiplier: {value_resp['data']['multiplier']} (expected 4.5)")

        print("\nValuing the phone network preset...")
        preset_resp = client.post(
            "/v1/presets/phone/network-value",
            json={"integration_level": "moderate", "caller_identity": "verification-script"},
        ).json()
        print(f"Summary: {preset_resp['summary']}")

        print("\nQuerying Audit Log...")
        audit_resp = client.post(
            "/v1/audit-log",
            json={"operation": "compute_network_value", "limit": 5, "caller_identity": "verification-script"},
        )
        audit_data = audit_resp.json()

        print("\n--- Recent Audit Records ---")
        for record in audit_data.get("records", []):
            print(f"ID: {record['id']} | Op: {record['operation']} | Caller: {record['caller_identity']} | TS: {record['timestamp']}")

        found = any(
            r["operation"] == "compute_network_value" and r["caller_identity"] == "verification-script"
            for r in audit_data["records"]
        )
        if found and abs(value_resp["data"]["multiplier"] - 4.5) < 1e-9:
            print("\nVerification SUCCESS: valuation matches and was audited.")
        else:
            print("\nVerification FAILURE: unexpected multiplier or missing audit record.")

    finally:
        print("\nShutting down server...")
        server_process.terminate()
        try:
            server_process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            server_process.kill()


if __name__ == "__main__":
    run_verification()
