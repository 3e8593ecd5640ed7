"""Mock GoRest users API for offline runs.

Implements the slice of the GoRest v1 API the suite touches:
- GET /public/v1/users: paginated list in a {meta, data} envelope
- GET /public/v1/users/<id>: single user
- PATCH /public/v1/users/<id>: partial update (auth required)

Requests carrying an Authorization header must use MOCK_TOKEN (401
otherwise); anonymous reads are allowed, anonymous writes are not.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List

from flask import Flask, jsonify, request

# Mock data storage
USERS: Dict[int, Dict[str, Any]] = {}

MOCK_TOKEN = "mock-gorest-token"
API_PREFIX = "/public/v1"
PAGE_LIMIT = 10

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

DEFAULT_USERS: List[Dict[str, Any]] = [
    {"id": 7001, "name": "Dhanvin Nair", "email": "dhanvin_nair@example.test", "gender": "male", "status": "inactive"},
    {"id": 7002, "name": "Jana Waters", "email": "jana.waters@example.test", "gender": "female", "status": "active"},
    {"id": 7003, "name": "Aarav Mehta", "email": "aarav_mehta@example.test", "gender": "male", "status": "active"},
    {"id": 7004, "name": "Chandni Iyer", "email": "chandni_iyer@example.test", "gender": "female", "status": "inactive"},
]


def _error(status: int, message: str):
    return jsonify({"meta": None, "data": {"message": message}}), status


def create_mock_api_app() -> Flask:
    """Create and configure the mock GoRest Flask app."""
    app = Flask(__name__)
    app.config["TESTING"] = True

    def _auth_failure(write: bool):
        header = request.headers.get("Authorization")
        if header is None:
            return _error(401, "Authentication failed") if write else None
        if header != f"Bearer {MOCK_TOKEN}":
            return _error(401, "Invalid token")
        return None

    @app.route(f"{API_PREFIX}/users", methods=["GET"])
    def list_users():
        failure = _auth_failure(write=False)
        if failure:
            return failure

        page = max(request.args.get("page", 1, type=int), 1)
        users = sorted(USERS.values(), key=lambda u: u["id"], reverse=True)
        total = len(users)
        pages = max((total + PAGE_LIMIT - 1) // PAGE_LIMIT, 1)
        start = (page - 1) * PAGE_LIMIT
        base = request.base_url
        return jsonify({
            "meta": {
                "pagination": {
                    "total": total,
                    "pages": pages,
                    "page": page,
                    "limit": PAGE_LIMIT,
                    "links": {
                        "previous": f"{base}?page={page - 1}" if page > 1 else None,
                        "current": f"{base}?page={page}",
                        "next": f"{base}?page={page + 1}" if page < pages else None,
                    },
                }
            },
            "data": users[start:start + PAGE_LIMIT],
        }), 200

    @app.route(f"{API_PREFIX}/users/<int:user_id>", methods=["GET"])
    def get_user(user_id: int):
        failure = _auth_failure(write=False)
        if failure:
            return failure
        user = USERS.get(user_id)
        if user is None:
            return _error(404, "Resource not found")
        return jsonify({"meta": None, "data": user}), 200

    @app.route(f"{API_PREFIX}/users/<int:user_id>", methods=["PATCH", "PUT"])
    def update_user(user_id: int):
        failure = _auth_failure(write=True)
        if failure:
            return failure
        user = USERS.get(user_id)
        if user is None:
            return _error(404, "Resource not found")

        payload = request.get_json(silent=True) or {}
        errors = _validate(user_id, payload)
        if errors:
            return jsonify({"meta": None, "data": errors}), 422

        for key in ("name", "email", "gender", "status"):
            if key in payload:
                user[key] = payload[key]
        return jsonify({"meta": None, "data": user}), 200

    return app


def _validate(user_id: int, payload: Dict[str, Any]) -> List[Dict[str, str]]:
    errors = []
    if "name" in payload and not str(payload["name"]).strip():
        errors.append({"field": "name", "message": "can't be blank"})
    if "email" in payload:
        email = str(payload["email"])
        if not _EMAIL_RE.match(email):
            errors.append({"field": "email", "message": "is invalid"})
        elif any(u["email"] == email and u["id"] != user_id for u in USERS.values()):
            errors.append({"field": "email", "message": "has already been taken"})
    if "gender" in payload and payload["gender"] not in ("male", "female"):
        errors.append({"field": "gender", "message": "can't be blank, can be male of female"})
    if "status" in payload and payload["status"] not in ("active", "inactive"):
        errors.append({"field": "status", "message": "can't be blank"})
    return errors


def reset_mock_state():
    """Reset all mock API state."""
    USERS.clear()


def seed_users(users: List[Dict[str, Any]] | None = None):
    """Seed the user store (defaults to DEFAULT_USERS)."""
    for user in users if users is not None else DEFAULT_USERS:
        USERS[user["id"]] = dict(user)


if __name__ == "__main__":
    app = create_mock_api_app()
    seed_users()
    print(f"Mock GoRest API running on http://localhost:5556{API_PREFIX}")
    print(f"Token: {MOCK_TOKEN}")
    app.run(host="0.0.0.0", port=5556, debug=True)
