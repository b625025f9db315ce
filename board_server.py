#!/usr/bin/env python3
"""
Board Status Server
-------------------
Reference implementation of the status-update RPC that the drag & drop
engine reconciles against, backed by a SQLite task store.

Usage:
    python board_server.py --port 3000 --db ./board.db

API:
    POST /api/tasks/update_status  → JSON body: { task_id: int, status: str }
                                     Returns: { success, message, data: { task_id, new_status } }
    GET  /api/board                → JSON: { success, data: { tasks_by_status, counts } }
    GET  /health                   → JSON: { status, db }
"""

import logging
import os
import sqlite3
import sys

from flask import Flask, jsonify, request

from pkg.dragdrop.config import BoardConfig
from pkg.dragdrop.store import TaskStore

app = Flask(__name__)


# ── Config ───────────────────────────────────────────────────────────────────

def get_config() -> BoardConfig:
    """Load config from DRAGDROP_CONFIG (or ./board.yaml); env overrides applied."""
    return BoardConfig.load(os.environ.get("DRAGDROP_CONFIG"))


def get_store(cfg: BoardConfig) -> TaskStore:
    return TaskStore(cfg.db_path)


def status_response(success: bool, message: str, data: dict = None, code: int = 200):
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return jsonify(body), code


# ── Routes ───────────────────────────────────────────────────────────────────

@app.route("/api/tasks/update_status", methods=["POST"])
def api_update_status():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict) or not data.get("task_id") or not data.get("status"):
        return status_response(False, "task_id and status required", code=400)

    try:
        task_id = int(data["task_id"])
    except (TypeError, ValueError):
        return status_response(False, "Invalid task ID", code=400)

    cfg = get_config()
    new_status = data["status"]
    if new_status not in cfg.columns:
        return status_response(False, "Invalid status", code=400)

    try:
        updated = get_store(cfg).update_status(task_id, new_status)
    except sqlite3.Error as e:
        app.logger.error(f"Database error in update_status: {e}")
        return status_response(False, "Database error occurred", code=500)

    if not updated:
        return status_response(False, "Task not found", code=404)

    return status_response(True, "Task status updated successfully", {
        "task_id": task_id,
        "new_status": new_status,
    })


@app.route("/api/board")
def api_board():
    cfg = get_config()
    try:
        grouped = get_store(cfg).tasks_by_status(cfg.columns)
    except sqlite3.Error as e:
        app.logger.warning(f"api_board error: {e}")
        return status_response(False, "Database error occurred", code=500)

    return status_response(True, "ok", {
        "tasks_by_status": grouped,
        "counts": {key: len(tasks) for key, tasks in grouped.items()},
    })


@app.route("/health")
def health():
    return jsonify({"status": "ok", "db": get_config().db_path})


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Board Status Server")
    parser.add_argument("--host", default="127.0.0.1",
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--db", help="Path to board.db (overrides DRAGDROP_DB env var)")
    parser.add_argument("--config", help="Path to board.yaml (overrides DRAGDROP_CONFIG env var)")
    args = parser.parse_args()

    if args.db:
        os.environ["DRAGDROP_DB"] = args.db
    if args.config:
        os.environ["DRAGDROP_CONFIG"] = args.config

    cfg = get_config()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper()),
        format="%(asctime)s [board_server] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    get_store(cfg)  # create schema up front

    logging.getLogger("board_server").info(
        f"Serving http://{args.host}:{args.port} (db={cfg.db_path}, columns={cfg.columns})"
    )
    app.run(host=args.host, port=args.port, debug=False, threaded=True)
