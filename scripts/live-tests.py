#!/usr/bin/env python3
# This project was developed with assistance from AI tools.
"""Live smoke suite for the Loan Intake Document API.

Exercises the REST endpoints, the upload pipeline, the reviewer queue
and the live websocket views against a running server instance.

Prerequisites:
  - API server running on localhost:8000 with AUTH_DISABLED=true
  - Document types seeded (python -m intake_api.seed)
  - A lead row to upload against (see --lead-id)
  - MinIO reachable; the classifier may be down (uploads fall back to manual review)

Usage:
  ./scripts/live-tests.py                  # full suite against lead 1
  ./scripts/live-tests.py --lead-id 42     # use a different lead
  ./scripts/live-tests.py --section rest   # skip websocket checks
"""

import argparse
import asyncio
import base64
import json
import sys

import httpx
import websockets

BASE = "http://localhost:8000"
WS_BASE = "ws://localhost:8000"
HEADERS = {"Origin": "http://localhost:5173"}

# 1x1 transparent PNG
TINY_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

# ---------------------------------------------------------------------------
# Test runner
# ---------------------------------------------------------------------------

PASS = 0
FAIL = 0
ERRORS: list[str] = []
SECTION = ""


def section(name: str):
    global SECTION
    SECTION = name
    print(f"\n{'=' * 60}")
    print(f"  {name}")
    print(f"{'=' * 60}\n")


def ok(name: str, passed: bool, detail: str = ""):
    global PASS, FAIL
    if passed:
        PASS += 1
        print(f"  PASS  {name}")
    else:
        FAIL += 1
        msg = f"[{SECTION}] {name}: {detail}" if detail else f"[{SECTION}] {name}"
        ERRORS.append(msg)
        print(f"  FAIL  {name} -- {detail}")


def has_keys(d: dict, *keys: str) -> bool:
    return all(k in d for k in keys)


# ---------------------------------------------------------------------------
# 1. Health
# ---------------------------------------------------------------------------

async def test_health(c: httpx.AsyncClient):
    section("Health")

    r = await c.get("/health/")
    ok("GET /health/ returns 200", r.status_code == 200)
    ok("database reachable", r.json().get("database") is True)

    r = await c.get("/")
    ok("GET / root returns 200", r.status_code == 200)
    ok("root has welcome message", "message" in r.json())


# ---------------------------------------------------------------------------
# 2. Reference data
# ---------------------------------------------------------------------------

async def test_document_types(c: httpx.AsyncClient) -> dict:
    section("Document types")

    r = await c.get("/api/document-types")
    ok("GET /api/document-types returns 200", r.status_code == 200)
    body = r.json()
    ok("count matches data", body.get("count") == len(body.get("data", [])))
    types = {t["name"]: t for t in body.get("data", [])}
    ok("PAN Card seeded", "PAN Card" in types)

    r = await c.get("/api/document-types", params={"category": "collateral"})
    ok("category filter returns 200", r.status_code == 200)
    ok("category filter applied",
       all(t["category"] == "collateral" for t in r.json().get("data", [])))

    r = await c.get("/api/document-types", params={"category": "pets"})
    ok("unknown category is 422", r.status_code == 422)
    return types


# ---------------------------------------------------------------------------
# 3. Upload pipeline
# ---------------------------------------------------------------------------

async def _upload(c: httpx.AsyncClient, lead_id: int, type_id: int, name: str, data: bytes,
                  content_type: str) -> httpx.Response:
    return await c.post(
        f"/api/leads/{lead_id}/uploads",
        files={"file": (name, data, content_type)},
        data={"document_type_id": str(type_id)},
    )


async def test_uploads(c: httpx.AsyncClient, lead_id: int, types: dict) -> int | None:
    section("Uploads")

    pan = types.get("PAN Card")
    if pan is None:
        ok("PAN Card available for upload tests", False, "seed document types first")
        return None

    r = await _upload(c, lead_id, pan["id"], "setup.exe", b"MZ", "image/png")
    if r.status_code == 404:
        ok(f"lead {lead_id} exists", False, "pass --lead-id for an existing lead")
        return None
    ok("executable refused locally", r.json().get("state") == "error")
    ok("refusal is a file constraint", r.json().get("failure_kind") == "file_constraint")

    r = await _upload(c, lead_id, pan["id"], "pan.gif", b"GIF89a", "image/gif")
    ok("unlisted format refused", r.json().get("error", "").startswith("File type not supported"))

    r = await _upload(c, lead_id, pan["id"], "pan.png", TINY_PNG, "image/png")
    ok("upload returns 201", r.status_code == 201, f"got {r.status_code}")
    entry = r.json()
    ok("entry is terminal", entry.get("state") in ("completed", "rejected", "error"),
       entry.get("state", ""))

    document_id = None
    if entry.get("state") == "rejected":
        r = await c.post(f"/api/uploads/{entry['correlation_id']}/override")
        ok("override after rejection returns 200", r.status_code == 200)
        entry = r.json()
        ok("override completes", entry.get("state") == "completed", entry.get("state", ""))
    if entry.get("state") == "completed":
        document_id = entry.get("document_id")
        ok("completed entry carries document id", document_id is not None)
        r = await c.post(f"/api/uploads/{entry['correlation_id']}/override")
        ok("override after completion is 409", r.status_code == 409)

    r = await c.get(f"/api/leads/{lead_id}/uploads")
    ok("entries listed for lead", r.status_code == 200 and len(r.json()) >= 1)

    r = await c.delete(f"/api/uploads/{entry['correlation_id']}")
    ok("entry removed", r.status_code == 204)
    r = await c.get(f"/api/uploads/{entry['correlation_id']}")
    ok("removed entry is gone", r.status_code == 404)
    return document_id


# ---------------------------------------------------------------------------
# 4. Verification queue
# ---------------------------------------------------------------------------

async def test_verification(c: httpx.AsyncClient, document_id: int | None):
    section("Verification queue")

    r = await c.get("/api/verification-queue")
    ok("GET /api/verification-queue returns 200", r.status_code == 200)
    rows = r.json().get("data", [])
    if rows:
        ok("queue rows carry lead context",
           has_keys(rows[0], "case_id", "student_name", "document_type_name"))

    r = await c.post("/api/documents/999999/verify")
    ok("verify unknown document is 404", r.status_code == 404)

    if document_id is None:
        return
    ok("new upload is queued", any(row["id"] == document_id for row in rows))

    r = await c.get(f"/api/documents/{document_id}/download-url")
    ok("download url issued", r.status_code == 200 and r.json().get("url", "").startswith("http"))

    r = await c.post(f"/api/documents/{document_id}/reject", json={"notes": "   "})
    ok("blank rejection reason is 422", r.status_code == 422)

    r = await c.post(f"/api/documents/{document_id}/reject", json={"notes": "  blurry photo  "})
    ok("reject returns 200", r.status_code == 200)
    ok("reason stored trimmed", r.json().get("admin_notes") == "blurry photo")

    r = await c.post(f"/api/documents/{document_id}/verify")
    ok("verify after reject is 409", r.status_code == 409)

    r = await c.get(f"/api/documents/{document_id}/audit")
    events = [e["event_type"] for e in r.json().get("data", [])]
    ok("audit has upload and reject", events[:1] == ["document_upload"] and "document_reject" in events,
       json.dumps(events))


# ---------------------------------------------------------------------------
# 5. Activity and audit
# ---------------------------------------------------------------------------

async def test_activity(c: httpx.AsyncClient):
    section("Activity feed")

    r = await c.get("/api/activity", params={"limit": 5})
    ok("GET /api/activity returns 200", r.status_code == 200)
    data = r.json().get("data", [])
    ok("at most 5 events", len(data) <= 5)
    stamps = [e["timestamp"] for e in data]
    ok("newest first", stamps == sorted(stamps, reverse=True))

    r = await c.get("/api/activity", params={"limit": 0})
    ok("limit 0 is 422", r.status_code == 422)

    r = await c.get("/api/audit/verify")
    ok("audit chain intact", r.json().get("status") == "OK", json.dumps(r.json()))


# ---------------------------------------------------------------------------
# 6. Live views
# ---------------------------------------------------------------------------

async def test_websockets():
    section("Live views")

    for path, kind in (("/api/verification-queue/ws", "verification_queue"),
                       ("/api/activity/ws", "activity")):
        try:
            async with websockets.connect(f"{WS_BASE}{path}") as ws:
                snapshot = json.loads(await asyncio.wait_for(ws.recv(), timeout=10))
            ok(f"{path} sends snapshot", snapshot.get("type") == kind)
            ok(f"{path} snapshot has data", has_keys(snapshot, "data", "count"))
        except (OSError, asyncio.TimeoutError, websockets.WebSocketException) as e:
            ok(f"{path} connects", False, str(e))


async def main():
    parser = argparse.ArgumentParser(description="Live tests for the Loan Intake API")
    parser.add_argument("--lead-id", type=int, default=1, help="Existing lead to upload against")
    parser.add_argument("--section", choices=["rest", "ws", "all"], default="all")
    args = parser.parse_args()

    async with httpx.AsyncClient(base_url=BASE, headers=HEADERS, timeout=60) as c:

        # Pre-flight: make sure server is up
        try:
            r = await c.get("/health/")
            if r.status_code != 200:
                print(f"\n  Server returned {r.status_code} on /health/ -- is it running?")
                sys.exit(2)
        except httpx.ConnectError:
            print("\n  Cannot connect to server at localhost:8000 -- is it running?")
            sys.exit(2)

        if args.section in ("rest", "all"):
            await test_health(c)
            types = await test_document_types(c)
            document_id = await test_uploads(c, args.lead_id, types)
            await test_verification(c, document_id)
            await test_activity(c)

    if args.section in ("ws", "all"):
        await test_websockets()

    # Summary
    print(f"\n{'=' * 60}")
    print(f"  RESULTS: {PASS} passed, {FAIL} failed")
    print(f"{'=' * 60}")

    if ERRORS:
        print("\nFailures:")
        for e in ERRORS:
            print(f"  - {e}")

    sys.exit(0 if FAIL == 0 else 1)


if __name__ == "__main__":
    asyncio.run(main())
