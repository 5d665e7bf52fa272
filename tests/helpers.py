"""Shared test helpers: request signing, tokens, Slack stub and seed data."""
import json
import time
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

import httpx
from jose import jwt

from app.services.slack_api import SlackApiClient
from app.utils.signature import compute_signature

SIGNING_SECRET = "test-signing-secret"
JWT_SECRET = "test-jwt-secret"
RESPONSE_URL = "https://hooks.slack.test/actions/T1/B1/xyz"

SLACK_USER = "U_LINKED"
USER_ID = "user-1"


def signed_headers(body: bytes, secret: str = SIGNING_SECRET, timestamp: Optional[int] = None) -> dict:
    """Headers Slack would send for this body."""
    ts = str(int(time.time()) if timestamp is None else timestamp)
    return {
        "X-Slack-Signature": compute_signature(body, ts, secret),
        "X-Slack-Request-Timestamp": ts,
        "Content-Type": "application/x-www-form-urlencoded",
    }


def command_body(command: str, text: str = "", user_id: str = SLACK_USER) -> bytes:
    return urlencode({"command": command, "text": text, "user_id": user_id}).encode()


def interaction_body(
    action_id: str,
    value: str = "",
    user_id: str = SLACK_USER,
    response_url: Optional[str] = RESPONSE_URL,
) -> bytes:
    payload = {
        "type": "block_actions",
        "user": {"id": user_id},
        "actions": [{"action_id": action_id, "value": value}],
    }
    if response_url:
        payload["response_url"] = response_url
    return urlencode({"payload": json.dumps(payload)}).encode()


def bearer(user_id: str = USER_ID) -> dict:
    token = jwt.encode({"sub": user_id}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


class SlackStub:
    """Stands in for the Slack Web API and response URLs via httpx.MockTransport."""

    def __init__(self):
        self.emails: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.fail_response_url = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/users.info"):
            slack_user = request.url.params.get("user")
            email = self.emails.get(slack_user)
            if email is None:
                return httpx.Response(200, json={"ok": False, "error": "user_not_found"})
            return httpx.Response(
                200,
                json={"ok": True, "user": {"id": slack_user, "profile": {"email": email}}},
            )
        if self.fail_response_url:
            return httpx.Response(500, text="boom")
        return httpx.Response(200, text="ok")

    def client(self, token: Optional[str] = "xoxb-test") -> SlackApiClient:
        return SlackApiClient(
            token,
            base_url="https://slack.test/api",
            transport=httpx.MockTransport(self.handler),
        )

    @property
    def replacements(self) -> list[dict]:
        return [
            json.loads(request.content)
            for request in self.requests
            if request.url.host == "hooks.slack.test"
        ]


async def seed(db) -> dict:
    """Insert a user, a Slack link, projects and tickets. Returns their IDs."""
    now = datetime(2024, 1, 1, 12, 0, 0)
    await db["users"].insert_one({"_id": USER_ID, "email": "ada@example.com", "name": "Ada"})
    await db["users"].insert_one({"_id": "user-2", "email": "Grace@Example.com", "name": "Grace"})
    await db["slack_identities"].insert_one({"_id": SLACK_USER, "user_id": USER_ID})

    names = ["Internal", "Marketing", "Support", "Research", "Mobile App", "Website Redesign"]
    project_ids = {}
    for offset, name in enumerate(names):
        result = await db["projects"].insert_one({
            "name": name,
            "hourly_rate": 90.0,
            "created_at": now + timedelta(days=offset),
        })
        project_ids[name] = str(result.inserted_id)

    ticket = await db["tickets"].insert_one({
        "project_id": project_ids["Website Redesign"],
        "ticket_number": 42,
        "title": "New landing page",
        "status": "open",
        "priority": "high",
    })

    return {"projects": project_ids, "ticket_id": str(ticket.inserted_id)}
